"""
Domain records exchanged between the storage layer, the pipeline and the API.

Records serialize with camelCase aliases (``userId``, ``fileUrl``, ...).
Internal fields such as the identity link or the blob storage key are
excluded from API output.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.interview import InterviewQuestion


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Resume profile state ---

class NotParsed(BaseModel):
    """Normalization has not succeeded yet for this resume."""
    state: Literal["not_parsed"] = "not_parsed"


class Parsed(BaseModel):
    """Normalized, section-organized profile text."""
    state: Literal["parsed"] = "parsed"
    content: str = Field(..., min_length=1)


ResumeProfile = Annotated[Union[NotParsed, Parsed], Field(discriminator="state")]


# --- Persisted entities ---

class User(CamelModel):
    id: int
    username: str
    email: str
    full_name: Optional[str] = None
    plan: str = "free"
    created_at: datetime
    external_id: Optional[str] = Field(default=None, exclude=True)


class Resume(CamelModel):
    id: int
    user_id: int
    file_name: str
    file_url: str
    created_at: datetime
    file_key: Optional[str] = Field(default=None, exclude=True)
    profile: ResumeProfile = Field(default_factory=NotParsed, exclude=True)

    @property
    def parsed(self) -> bool:
        return isinstance(self.profile, Parsed)

    @property
    def parsed_content(self) -> Optional[str]:
        return self.profile.content if isinstance(self.profile, Parsed) else None


class JobSpec(CamelModel):
    id: int
    user_id: int
    title: str
    description: str
    required_skills: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None
    created_at: datetime


class InterviewQuestionSet(CamelModel):
    id: int
    user_id: int
    resume_id: int
    job_spec_id: int
    questions: list[InterviewQuestion] = Field(..., min_length=1)
    created_at: datetime


class Subscription(CamelModel):
    id: int
    user_id: int
    plan: str
    status: str
    current_period_start: datetime
    current_period_end: datetime
    created_at: datetime


# --- Creation payloads (storage inputs) ---

class NewUser(BaseModel):
    username: str
    email: str
    full_name: Optional[str] = None
    plan: str = "free"
    external_id: Optional[str] = None


class NewResume(BaseModel):
    user_id: int
    file_name: str
    file_url: str
    file_key: Optional[str] = None


class NewJobSpec(BaseModel):
    user_id: int
    title: str
    description: str
    required_skills: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None


class NewInterviewQuestionSet(BaseModel):
    user_id: int
    resume_id: int
    job_spec_id: int
    questions: list[InterviewQuestion] = Field(..., min_length=1)


class NewSubscription(BaseModel):
    user_id: int
    plan: str
    status: str
    current_period_start: datetime
    current_period_end: datetime


# --- Uploads and external-service shapes ---

class UploadedDocument(BaseModel):
    """Binary upload handed to the ingestion flow."""
    content: bytes = Field(repr=False)
    media_type: str
    user_id: int
    file_name: str

    @property
    def size(self) -> int:
        return len(self.content)


class StoredBlob(BaseModel):
    """Location of a stored document: the key used to fetch it back and its public URL."""
    key: str
    url: str


class IdentityUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class AuthSession(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.schemas.records import AuthSession, CamelModel, Resume, User

# Plans known to the bookkeeping layer
SUBSCRIPTION_PLANS = ("free", "basic", "professional", "enterprise")


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    username: Optional[str] = Field(default=None, min_length=1)
    full_name: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    user: User
    session: AuthSession


class JobSpecCreate(CamelModel):
    user_id: int
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    required_skills: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None


class GenerateQuestionsRequest(CamelModel):
    user_id: int
    resume_id: int
    job_spec_id: int


class UpdatePlanRequest(CamelModel):
    user_id: int
    plan: str = Field(..., min_length=1)


class UpdatePlanResponse(CamelModel):
    success: bool
    plan: str


class ResumeResponse(CamelModel):
    """API view of a resume: parse state flattened to ``parsed`` / ``parsedContent``."""
    id: int
    user_id: int
    file_name: str
    file_url: str
    parsed: bool
    parsed_content: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_record(cls, resume: Resume) -> "ResumeResponse":
        return cls(
            id=resume.id,
            user_id=resume.user_id,
            file_name=resume.file_name,
            file_url=resume.file_url,
            parsed=resume.parsed,
            parsed_content=resume.parsed_content,
            created_at=resume.created_at,
        )

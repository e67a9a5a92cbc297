"""
Shared fixtures for the test suite.

External services are never contacted: the environment is cleared of
credentials before the app is imported, the SQL store runs on in-memory
SQLite, and the LLM, blob and identity collaborators are deterministic stubs.
"""
import asyncio
import io
import os
import time
from typing import List, Optional, Sequence, Union

# Set test environment BEFORE any app imports so Settings never picks up real values
os.environ["GROQ_API_KEY"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from langchain_core.messages import AIMessage
from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import AuthenticationError, StorageError, ValidationError
from app.db.database import build_engine, init_db
from app.db.storage import SqlStorage
from app.schemas.records import (
    AuthSession,
    IdentityUser,
    NewJobSpec,
    NewResume,
    NewUser,
    Parsed,
    StoredBlob,
)
from app.services.integrations.base import BlobStore, IdentityProvider
from app.services.pipeline.llm_service import LLMService


# ============================================================================
# Builders
# ============================================================================

def make_pdf(pages: Sequence[Sequence[str]]) -> bytes:
    """Build a PDF with one page per entry, one drawn line per string."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    for lines in pages:
        y = 720
        for line in lines:
            pdf.drawString(72, y, line)
            y -= 24
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def encrypt_pdf(content: bytes, password: str = "secret") -> bytes:
    """Password-protect an existing PDF."""
    writer = PdfWriter()
    for page in PdfReader(io.BytesIO(content)).pages:
        writer.add_page(page)
    writer.encrypt(password)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


async def measure_loop_stall(awaitable, interval: float = 0.02):
    """
    Await ``awaitable`` while a ticker task records the gaps between its
    wake-ups. Returns ``(result, longest_gap_seconds)``.
    """
    gaps: List[float] = []
    done = asyncio.Event()

    async def ticker():
        last = time.perf_counter()
        while not done.is_set():
            await asyncio.sleep(interval)
            now = time.perf_counter()
            gaps.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    # Let the ticker take its first timestamp before the awaited work starts
    await asyncio.sleep(0)
    try:
        result = await awaitable
    finally:
        done.set()
        await task
    return result, max(gaps, default=0.0)


SIX_SECTION_PROFILE = (
    "## Contact Information\nJane Doe, jane@example.com\n\n"
    "## Professional Summary\nBackend engineer with 6 years of experience.\n\n"
    "## Skills\nGo, SQL, Kubernetes\n\n"
    "## Work Experience\nAcme Corp - Senior Engineer (2019-2024)\n\n"
    "## Education\nBSc Computer Science\n\n"
    "## Additional Information\nAWS certified"
)


# ============================================================================
# Stubs
# ============================================================================

class ScriptedChatModel:
    """
    Chat model double: returns scripted replies in order and records calls.
    A reply may be an exception instance, which is raised instead.
    """

    def __init__(self, replies: Sequence[Union[str, Exception]], delay: float = 0.0):
        self.replies: List[Union[str, Exception]] = list(replies)
        self.delay = delay
        self.calls: list = []

    async def ainvoke(self, messages, **kwargs):
        self.calls.append((messages, kwargs))
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)


def scripted_llm(*replies: Union[str, Exception], delay: float = 0.0, timeout: float = 5.0) -> LLMService:
    return LLMService(ScriptedChatModel(replies, delay=delay), timeout_seconds=timeout)


class InMemoryBlobStore(BlobStore):
    def __init__(self, fail: bool = False):
        self.blobs: dict = {}
        self.fail = fail

    async def store_blob(self, path: str, content: bytes, content_type: str) -> StoredBlob:
        if self.fail:
            raise StorageError("Blob store unavailable")
        self.blobs[path] = content
        return StoredBlob(key=path, url=f"https://blobs.test/{path}")

    async def retrieve_blob(self, key: str) -> bytes:
        if key not in self.blobs:
            raise StorageError(f"Stored document is unavailable: {key}")
        return self.blobs[key]


class StubIdentityProvider(IdentityProvider):
    def __init__(self):
        self.accounts: dict = {}

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> IdentityUser:
        if email in self.accounts:
            raise ValidationError("User already registered")
        identity = IdentityUser(id=f"ext-{len(self.accounts) + 1}", email=email, full_name=full_name)
        self.accounts[email] = (password, identity)
        return identity

    async def sign_in(self, email: str, password: str):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials")
        identity = account[1]
        return identity, AuthSession(access_token=f"token-{identity.id}")

    async def get_user(self, access_token: str) -> IdentityUser:
        for _, identity in self.accounts.values():
            if access_token == f"token-{identity.id}":
                return identity
        raise AuthenticationError("Invalid or expired token")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def storage():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield SqlStorage(sessionmaker(bind=engine, expire_on_commit=False))
    engine.dispose()


@pytest.fixture
def user(storage):
    return storage.create_user(NewUser(username="jane", email="jane@example.com", full_name="Jane Doe"))


@pytest.fixture
def other_user(storage):
    return storage.create_user(NewUser(username="omar", email="omar@example.com"))


@pytest.fixture
def job_spec(storage, user):
    return storage.create_job_spec(
        NewJobSpec(
            user_id=user.id,
            title="Backend Engineer",
            description="Build and operate APIs.",
            required_skills=["Go", "SQL"],
            responsibilities=["Design services", "Review code"],
        )
    )


@pytest.fixture
def unparsed_resume(storage, user):
    return storage.create_resume(
        NewResume(user_id=user.id, file_name="jane.pdf", file_url="https://blobs.test/jane.pdf", file_key="1/jane.pdf")
    )


@pytest.fixture
def parsed_resume(storage, unparsed_resume):
    return storage.update_resume_profile(unparsed_resume.id, Parsed(content=SIX_SECTION_PROFILE))


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def two_page_pdf():
    return make_pdf([["Jane Doe", "Backend Engineer"], ["Education: BSc Computer Science"]])


@pytest.fixture
def failing_blob_store():
    return InMemoryBlobStore(fail=True)


@pytest.fixture
def identity_provider():
    return StubIdentityProvider()


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def llm_factory():
    """Build an LLMService over a scripted chat model: ``llm_factory(reply, ..., delay=, timeout=)``."""
    return scripted_llm


@pytest.fixture
def encrypted_pdf(two_page_pdf):
    return encrypt_pdf(two_page_pdf)


@pytest.fixture
def loop_stall():
    """``await loop_stall(coro)`` -> ``(result, longest event-loop gap in seconds)``."""
    return measure_loop_stall


@pytest.fixture
def slow_storage(storage, monkeypatch):
    """Make the named storage methods block their calling thread, like a slow database round trip."""
    def slow_down(*methods: str, seconds: float = 0.3):
        for name in methods:
            original = getattr(storage, name)

            def slow(*args, _original=original, **kwargs):
                time.sleep(seconds)
                return _original(*args, **kwargs)

            monkeypatch.setattr(storage, name, slow)
        return storage
    return slow_down

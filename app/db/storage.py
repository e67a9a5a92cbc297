"""
Repository layer.

``Storage`` is the contract the pipeline and the API depend on: get / create /
update per entity. ``SqlStorage`` implements it on SQLAlchemy. Each write is
committed on its own; there is no transaction spanning several entities.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.db.models import (
    InterviewQuestionSetRow,
    JobSpecRow,
    ResumeRow,
    SubscriptionRow,
    UserRow,
    utcnow,
)
from app.schemas.records import (
    InterviewQuestionSet,
    JobSpec,
    NewInterviewQuestionSet,
    NewJobSpec,
    NewResume,
    NewSubscription,
    NewUser,
    NotParsed,
    Parsed,
    Resume,
    ResumeProfile,
    Subscription,
    User,
)

logger = logging.getLogger(__name__)

USER_UPDATABLE_FIELDS = {"username", "full_name", "plan", "external_id"}
SUBSCRIPTION_UPDATABLE_FIELDS = {"plan", "status", "current_period_start", "current_period_end"}


class Storage(ABC):
    """Persistence contract for every entity the service owns."""

    # User operations
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_external_id(self, external_id: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, new_user: NewUser) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, **changes) -> User: ...

    # Resume operations
    @abstractmethod
    def create_resume(self, new_resume: NewResume) -> Resume: ...

    @abstractmethod
    def get_resume(self, resume_id: int) -> Optional[Resume]: ...

    @abstractmethod
    def list_resumes_by_user(self, user_id: int) -> list[Resume]: ...

    @abstractmethod
    def update_resume_profile(self, resume_id: int, profile: ResumeProfile) -> Resume: ...

    # Job spec operations (no update: job specs are immutable)
    @abstractmethod
    def create_job_spec(self, new_job_spec: NewJobSpec) -> JobSpec: ...

    @abstractmethod
    def get_job_spec(self, job_spec_id: int) -> Optional[JobSpec]: ...

    @abstractmethod
    def list_job_specs_by_user(self, user_id: int) -> list[JobSpec]: ...

    # Interview question operations
    @abstractmethod
    def create_interview_questions(self, new_set: NewInterviewQuestionSet) -> InterviewQuestionSet: ...

    @abstractmethod
    def get_interview_questions(self, set_id: int) -> Optional[InterviewQuestionSet]: ...

    @abstractmethod
    def list_interview_questions_by_user(self, user_id: int) -> list[InterviewQuestionSet]: ...

    @abstractmethod
    def count_interview_questions(self) -> int: ...

    # Subscription operations
    @abstractmethod
    def create_subscription(self, new_subscription: NewSubscription) -> Subscription: ...

    @abstractmethod
    def get_subscription_by_user(self, user_id: int) -> Optional[Subscription]: ...

    @abstractmethod
    def update_subscription(self, user_id: int, **changes) -> Subscription: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _user_from_row(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        full_name=row.full_name,
        plan=row.plan,
        created_at=_as_utc(row.created_at),
        external_id=row.external_id,
    )


def _resume_from_row(row: ResumeRow) -> Resume:
    if row.parsed and row.parsed_content:
        profile = Parsed(content=row.parsed_content)
    else:
        profile = NotParsed()
    return Resume(
        id=row.id,
        user_id=row.user_id,
        file_name=row.file_name,
        file_url=row.file_url,
        file_key=row.file_key,
        profile=profile,
        created_at=_as_utc(row.created_at),
    )


def _job_spec_from_row(row: JobSpecRow) -> JobSpec:
    return JobSpec(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        required_skills=list(row.required_skills or []),
        responsibilities=list(row.responsibilities or []),
        additional_notes=row.additional_notes,
        created_at=_as_utc(row.created_at),
    )


def _question_set_from_row(row: InterviewQuestionSetRow) -> InterviewQuestionSet:
    return InterviewQuestionSet(
        id=row.id,
        user_id=row.user_id,
        resume_id=row.resume_id,
        job_spec_id=row.job_spec_id,
        questions=row.questions,
        created_at=_as_utc(row.created_at),
    )


def _subscription_from_row(row: SubscriptionRow) -> Subscription:
    return Subscription(
        id=row.id,
        user_id=row.user_id,
        plan=row.plan,
        status=row.status,
        current_period_start=_as_utc(row.current_period_start),
        current_period_end=_as_utc(row.current_period_end),
        created_at=_as_utc(row.created_at),
    )


class SqlStorage(Storage):
    """SQLAlchemy-backed storage."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Integrity error during {operation}: {e.orig}")
            raise ValidationError(f"Conflicting data for {operation}", {"operation": operation}) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}", exc_info=True)
            raise StorageError(f"Database error during {operation}", {"operation": operation}) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Users ---

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session("get_user") as session:
            row = session.get(UserRow, user_id)
            return _user_from_row(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._session("get_user_by_email") as session:
            row = session.scalars(select(UserRow).where(UserRow.email == email)).first()
            return _user_from_row(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._session("get_user_by_username") as session:
            row = session.scalars(select(UserRow).where(UserRow.username == username)).first()
            return _user_from_row(row) if row else None

    def get_user_by_external_id(self, external_id: str) -> Optional[User]:
        with self._session("get_user_by_external_id") as session:
            row = session.scalars(select(UserRow).where(UserRow.external_id == external_id)).first()
            return _user_from_row(row) if row else None

    def create_user(self, new_user: NewUser) -> User:
        with self._session("create_user") as session:
            row = UserRow(**new_user.model_dump(), created_at=utcnow())
            session.add(row)
            session.flush()
            return _user_from_row(row)

    def update_user(self, user_id: int, **changes) -> User:
        unknown = set(changes) - USER_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        with self._session("update_user") as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise NotFoundError(f"User with id {user_id} not found", {"user_id": user_id})
            for field, value in changes.items():
                setattr(row, field, value)
            session.flush()
            return _user_from_row(row)

    # --- Resumes ---

    def create_resume(self, new_resume: NewResume) -> Resume:
        with self._session("create_resume") as session:
            row = ResumeRow(**new_resume.model_dump(), parsed=False, created_at=utcnow())
            session.add(row)
            session.flush()
            return _resume_from_row(row)

    def get_resume(self, resume_id: int) -> Optional[Resume]:
        with self._session("get_resume") as session:
            row = session.get(ResumeRow, resume_id)
            return _resume_from_row(row) if row else None

    def list_resumes_by_user(self, user_id: int) -> list[Resume]:
        with self._session("list_resumes_by_user") as session:
            rows = session.scalars(
                select(ResumeRow).where(ResumeRow.user_id == user_id).order_by(ResumeRow.id)
            ).all()
            return [_resume_from_row(row) for row in rows]

    def update_resume_profile(self, resume_id: int, profile: ResumeProfile) -> Resume:
        with self._session("update_resume_profile") as session:
            row = session.get(ResumeRow, resume_id)
            if row is None:
                raise NotFoundError(f"Resume with id {resume_id} not found", {"resume_id": resume_id})
            if isinstance(profile, Parsed):
                row.parsed = True
                row.parsed_content = profile.content
            else:
                row.parsed = False
                row.parsed_content = None
            session.flush()
            return _resume_from_row(row)

    # --- Job specs ---

    def create_job_spec(self, new_job_spec: NewJobSpec) -> JobSpec:
        with self._session("create_job_spec") as session:
            row = JobSpecRow(**new_job_spec.model_dump(), created_at=utcnow())
            session.add(row)
            session.flush()
            return _job_spec_from_row(row)

    def get_job_spec(self, job_spec_id: int) -> Optional[JobSpec]:
        with self._session("get_job_spec") as session:
            row = session.get(JobSpecRow, job_spec_id)
            return _job_spec_from_row(row) if row else None

    def list_job_specs_by_user(self, user_id: int) -> list[JobSpec]:
        with self._session("list_job_specs_by_user") as session:
            rows = session.scalars(
                select(JobSpecRow).where(JobSpecRow.user_id == user_id).order_by(JobSpecRow.id)
            ).all()
            return [_job_spec_from_row(row) for row in rows]

    # --- Interview questions ---

    def create_interview_questions(self, new_set: NewInterviewQuestionSet) -> InterviewQuestionSet:
        with self._session("create_interview_questions") as session:
            row = InterviewQuestionSetRow(
                user_id=new_set.user_id,
                resume_id=new_set.resume_id,
                job_spec_id=new_set.job_spec_id,
                questions=[question.model_dump() for question in new_set.questions],
                created_at=utcnow(),
            )
            session.add(row)
            session.flush()
            return _question_set_from_row(row)

    def get_interview_questions(self, set_id: int) -> Optional[InterviewQuestionSet]:
        with self._session("get_interview_questions") as session:
            row = session.get(InterviewQuestionSetRow, set_id)
            return _question_set_from_row(row) if row else None

    def list_interview_questions_by_user(self, user_id: int) -> list[InterviewQuestionSet]:
        with self._session("list_interview_questions_by_user") as session:
            rows = session.scalars(
                select(InterviewQuestionSetRow)
                .where(InterviewQuestionSetRow.user_id == user_id)
                .order_by(InterviewQuestionSetRow.id)
            ).all()
            return [_question_set_from_row(row) for row in rows]

    def count_interview_questions(self) -> int:
        with self._session("count_interview_questions") as session:
            return session.scalar(select(func.count()).select_from(InterviewQuestionSetRow)) or 0

    # --- Subscriptions ---

    def create_subscription(self, new_subscription: NewSubscription) -> Subscription:
        with self._session("create_subscription") as session:
            row = SubscriptionRow(**new_subscription.model_dump(), created_at=utcnow())
            session.add(row)
            session.flush()
            return _subscription_from_row(row)

    def get_subscription_by_user(self, user_id: int) -> Optional[Subscription]:
        with self._session("get_subscription_by_user") as session:
            row = session.scalars(
                select(SubscriptionRow).where(SubscriptionRow.user_id == user_id)
            ).first()
            return _subscription_from_row(row) if row else None

    def update_subscription(self, user_id: int, **changes) -> Subscription:
        unknown = set(changes) - SUBSCRIPTION_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update subscription fields: {sorted(unknown)}")
        with self._session("update_subscription") as session:
            row = session.scalars(
                select(SubscriptionRow).where(SubscriptionRow.user_id == user_id)
            ).first()
            if row is None:
                raise NotFoundError(
                    f"Subscription for user {user_id} not found", {"user_id": user_id}
                )
            for field, value in changes.items():
                setattr(row, field, value)
            session.flush()
            return _subscription_from_row(row)

"""
Interview Question Generation Orchestrator.

This module runs one generation request:
1. Validation (user, resume and job spec exist and belong to the caller;
   the resume profile has been parsed)
2. Question generation
3. Persistence of exactly one question set

Extraction and normalization happen at upload time (see resume_ingestion);
this orchestrator never runs them. Nothing is written unless every stage
before persistence succeeded.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional

from app.core.exceptions import NotFoundError, PreconditionError
from app.core.logger import log_async_execution_time, set_correlation_id
from app.db.storage import Storage
from app.schemas.records import (
    InterviewQuestionSet,
    JobSpec,
    NewInterviewQuestionSet,
    Parsed,
    Resume,
    User,
)
from app.services.pipeline.question_generator import QuestionGenerator

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    VALIDATING = "validating"
    GENERATING = "generating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class InterviewPipeline:
    """
    Orchestrates a single interview question generation request.

    Stages run strictly in sequence; any failure moves the pipeline to
    ``FAILED`` and the error propagates unchanged to the caller.
    """

    def __init__(
        self,
        storage: Storage,
        question_generator: QuestionGenerator,
        correlation_id: Optional[str] = None,
    ):
        """
        Initialize the InterviewPipeline.

        Args:
            storage: Repository used to resolve inputs and persist the result
            question_generator: Question generation stage
            correlation_id: Optional correlation ID for request tracking (auto-generated if not provided)
        """
        self.storage = storage
        self.question_generator = question_generator
        self.stage = PipelineStage.VALIDATING

        self.correlation_id = correlation_id or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

    def _advance(self, stage: PipelineStage) -> None:
        logger.info(f"Pipeline stage: {self.stage.value} -> {stage.value}")
        self.stage = stage

    @log_async_execution_time
    async def run(self, user_id: int, resume_id: int, job_spec_id: int) -> InterviewQuestionSet:
        """
        Generate and persist a question set for (resume, job spec).

        Raises:
            NotFoundError: The user, resume or job spec is missing or owned by someone else.
            PreconditionError: The resume has not been parsed.
            GenerationError: The generator failed.
            StorageError: The question set could not be written.
        """
        try:
            # Storage is synchronous; keep its round trips off the event loop
            user, resume, job_spec, profile = await asyncio.to_thread(
                self._validate, user_id, resume_id, job_spec_id
            )

            self._advance(PipelineStage.GENERATING)
            questions = await self.question_generator.generate(
                profile.content,
                job_spec.title,
                job_spec.description,
                job_spec.required_skills,
                job_spec.responsibilities,
            )

            self._advance(PipelineStage.PERSISTING)
            question_set = await asyncio.to_thread(
                self.storage.create_interview_questions,
                NewInterviewQuestionSet(
                    user_id=user.id,
                    resume_id=resume.id,
                    job_spec_id=job_spec.id,
                    questions=questions,
                ),
            )
        except Exception as e:
            logger.error(f"Pipeline failed during {self.stage.value}: {type(e).__name__}: {e}")
            self.stage = PipelineStage.FAILED
            raise

        self._advance(PipelineStage.DONE)
        logger.info(
            f"Persisted question set {question_set.id} "
            f"({len(question_set.questions)} questions) for resume {resume_id} / job spec {job_spec_id}"
        )
        return question_set

    def _validate(
        self, user_id: int, resume_id: int, job_spec_id: int
    ) -> tuple[User, Resume, JobSpec, Parsed]:
        user = self.storage.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found", {"user_id": user_id})

        resume = self.storage.get_resume(resume_id)
        if resume is None or resume.user_id != user.id:
            raise NotFoundError("Resume not found", {"resume_id": resume_id})

        job_spec = self.storage.get_job_spec(job_spec_id)
        if job_spec is None or job_spec.user_id != user.id:
            raise NotFoundError("Job spec not found", {"job_spec_id": job_spec_id})

        if not isinstance(resume.profile, Parsed):
            raise PreconditionError("Resume has not been parsed", {"resume_id": resume_id})

        return user, resume, job_spec, resume.profile

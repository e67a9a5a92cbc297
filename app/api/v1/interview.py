import logging
from typing import Callable, List

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.deps import get_pipeline_factory, get_storage
from app.core.exceptions import NotFoundError
from app.core.logger import get_correlation_id
from app.db.storage import Storage
from app.schemas.records import InterviewQuestionSet
from app.schemas.requests import GenerateQuestionsRequest
from app.services.pipeline.interview_pipeline import InterviewPipeline
from app.services.tools.report_generator import ReportGenerator

logger = logging.getLogger(__name__)

interview_router = APIRouter()


@interview_router.post("/generate-questions", response_model=InterviewQuestionSet, status_code=201)
async def generate_interview_questions(
    payload: GenerateQuestionsRequest,
    pipeline_factory: Callable[..., InterviewPipeline] = Depends(get_pipeline_factory),
):
    """
    Generates interview questions for a parsed resume against a job spec.

    Flow:
    1. Validate user, resume and job spec ownership
    2. Refuse resumes that have not been parsed
    3. Generate questions
    4. Persist and return the question set
    """
    pipeline = pipeline_factory(correlation_id=get_correlation_id())
    return await pipeline.run(payload.user_id, payload.resume_id, payload.job_spec_id)


@interview_router.get("/interview-questions/user/{user_id}", response_model=List[InterviewQuestionSet])
def list_user_interview_questions(user_id: int, storage: Storage = Depends(get_storage)):
    return storage.list_interview_questions_by_user(user_id)


@interview_router.get("/interview-questions/{set_id}", response_model=InterviewQuestionSet)
def get_interview_questions(set_id: int, storage: Storage = Depends(get_storage)):
    question_set = storage.get_interview_questions(set_id)
    if question_set is None:
        raise NotFoundError("Interview questions not found", {"id": set_id})
    return question_set


@interview_router.get("/interview-questions/{set_id}/download")
def download_interview_questions(set_id: int, storage: Storage = Depends(get_storage)):
    """
    Download a stored question set as a TXT file.
    Uses ReportGenerator service to format the content.
    """
    question_set = storage.get_interview_questions(set_id)
    if question_set is None:
        raise NotFoundError("Interview questions not found", {"id": set_id})

    text_content = ReportGenerator.generate_txt_report(
        question_set,
        job_spec=storage.get_job_spec(question_set.job_spec_id),
        resume=storage.get_resume(question_set.resume_id),
    )
    download_filename = ReportGenerator.report_filename(question_set)
    logger.info(f"Generating download text file: {download_filename}")

    return Response(
        content=text_content,
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{download_filename}"'},
    )

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_resume_ingestion, get_storage
from app.core.exceptions import NotFoundError, ValidationError
from app.db.storage import Storage
from app.schemas.records import UploadedDocument
from app.schemas.requests import ResumeResponse
from app.services.pipeline.resume_ingestion import ResumeIngestion

logger = logging.getLogger(__name__)

resumes_router = APIRouter(prefix="/resumes")


@resumes_router.post("", response_model=ResumeResponse, status_code=201)
async def upload_resume(
    resume: UploadFile = File(...),
    user_id: int = Form(..., alias="userId"),
    ingestion: ResumeIngestion = Depends(get_resume_ingestion),
):
    """
    Upload a resume PDF.

    The resume is stored even if its text cannot be extracted or normalized;
    in that case it comes back with ``parsed: false``.
    """
    if not resume.filename:
        raise ValidationError("No file uploaded")

    # One byte past the limit is enough for the validator to reject an oversized upload
    content = await resume.read(ingestion.validator.max_file_size_bytes + 1)
    document = UploadedDocument(
        content=content,
        media_type=resume.content_type or "application/octet-stream",
        user_id=user_id,
        file_name=resume.filename,
    )
    return ResumeResponse.from_record(await ingestion.upload(document))


@resumes_router.get("/user/{user_id}", response_model=List[ResumeResponse])
def list_user_resumes(user_id: int, storage: Storage = Depends(get_storage)):
    return [ResumeResponse.from_record(resume) for resume in storage.list_resumes_by_user(user_id)]


@resumes_router.get("/{resume_id}", response_model=ResumeResponse)
def get_resume(resume_id: int, storage: Storage = Depends(get_storage)):
    resume = storage.get_resume(resume_id)
    if resume is None:
        raise NotFoundError("Resume not found", {"resume_id": resume_id})
    return ResumeResponse.from_record(resume)


@resumes_router.post("/{resume_id}/parse", response_model=ResumeResponse)
async def reparse_resume(resume_id: int, ingestion: ResumeIngestion = Depends(get_resume_ingestion)):
    """Retry extraction and normalization for a resume stored without parsed content."""
    return ResumeResponse.from_record(await ingestion.reparse(resume_id))

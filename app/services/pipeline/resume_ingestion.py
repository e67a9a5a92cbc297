"""
Resume upload flow.

Validates and stores the original document, creates the resume record, then
tries to extract and normalize its content. Extraction, normalization and
profile-write failures are recovered: the record stays "not parsed" and can
be re-parsed later from the stored document.
"""
import asyncio
import hashlib
import logging
import time
from pathlib import PurePath

from app.core.exceptions import (
    ExtractionError,
    NormalizationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.core.logger import log_async_execution_time
from app.db.storage import Storage
from app.schemas.records import NewResume, Parsed, Resume, UploadedDocument
from app.services.integrations.base import BlobStore
from app.services.pipeline.content_normalizer import ContentNormalizer
from app.services.pipeline.document_extractor import PDF_MEDIA_TYPE, DocumentExtractor
from app.services.pipeline.file_validator import FileValidator

logger = logging.getLogger(__name__)


def build_blob_path(user_id: int, file_name: str) -> str:
    """Unique storage path: ``{user_id}/{md5(user_id-timestamp)}-{file name}``."""
    timestamp = time.time_ns()
    digest = hashlib.md5(f"{user_id}-{timestamp}".encode()).hexdigest()
    safe_name = PurePath(file_name).name.replace(" ", "_")
    return f"{user_id}/{digest}-{safe_name}"


class ResumeIngestion:
    """Handles resume uploads and re-parsing of stored resumes."""

    def __init__(
        self,
        storage: Storage,
        blob_store: BlobStore,
        extractor: DocumentExtractor,
        normalizer: ContentNormalizer,
        validator: FileValidator,
    ):
        self.storage = storage
        self.blob_store = blob_store
        self.extractor = extractor
        self.normalizer = normalizer
        self.validator = validator

    @log_async_execution_time
    async def upload(self, document: UploadedDocument) -> Resume:
        """
        Store an uploaded resume and try to parse it.

        Raises:
            NotFoundError: The owning user does not exist.
            ValidationError: The upload is empty, not a PDF, or too large.
            StorageError: The document or its record could not be stored.
        """
        if await asyncio.to_thread(self.storage.get_user, document.user_id) is None:
            raise NotFoundError("User not found", {"user_id": document.user_id})

        self.validator.validate(document)

        blob_path = build_blob_path(document.user_id, document.file_name)
        blob = await self.blob_store.store_blob(blob_path, document.content, document.media_type)

        resume = await asyncio.to_thread(
            self.storage.create_resume,
            NewResume(
                user_id=document.user_id,
                file_name=document.file_name,
                file_url=blob.url,
                file_key=blob.key,
            ),
        )
        logger.info(f"Created resume {resume.id} for user {document.user_id} ({blob.url})")

        return await self._parse(resume, document.content, document.media_type)

    @log_async_execution_time
    async def reparse(self, resume_id: int) -> Resume:
        """
        Retry extraction and normalization for a stored resume.

        Already-parsed resumes are returned unchanged.

        Raises:
            NotFoundError: The resume does not exist.
            ValidationError: The resume has no stored document to parse.
            StorageError: The stored document could not be fetched.
        """
        resume = await asyncio.to_thread(self.storage.get_resume, resume_id)
        if resume is None:
            raise NotFoundError("Resume not found", {"resume_id": resume_id})
        if resume.parsed:
            return resume
        if not resume.file_key:
            raise ValidationError("Resume has no stored document to parse", {"resume_id": resume_id})

        content = await self.blob_store.retrieve_blob(resume.file_key)
        return await self._parse(resume, content, PDF_MEDIA_TYPE)

    async def _parse(self, resume: Resume, content: bytes, media_type: str) -> Resume:
        try:
            raw_text = await self.extractor.extract(content, media_type)
            profile = await self.normalizer.normalize(raw_text)
        except (ExtractionError, NormalizationError) as e:
            # Keep the record; it stays "not parsed" and can be re-parsed later
            logger.warning(f"Resume {resume.id} stored without parsed content ({e.kind}): {e.message}")
            return resume

        try:
            return await asyncio.to_thread(self.storage.update_resume_profile, resume.id, Parsed(content=profile))
        except StorageError as e:
            # The document and its record are already stored; a later re-parse can fill the profile
            logger.error(f"Resume {resume.id} profile could not be saved: {e.message}")
            return resume

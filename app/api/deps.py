import logging
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends

from app.core.config import Settings, get_settings, settings
from app.core.llm import get_chat_model
from app.db.database import get_session_factory
from app.db.storage import SqlStorage, Storage
from app.services.integrations.base import BlobStore, IdentityProvider
from app.services.integrations.local_storage import LocalBlobStore
from app.services.integrations.supabase_service import (
    SupabaseBlobStore,
    SupabaseIdentityProvider,
    get_supabase_client,
)
from app.services.pipeline.content_normalizer import ContentNormalizer
from app.services.pipeline.document_extractor import DocumentExtractor
from app.services.pipeline.file_validator import FileValidator
from app.services.pipeline.interview_pipeline import InterviewPipeline
from app.services.pipeline.llm_service import LLMService
from app.services.pipeline.question_generator import QuestionGenerator
from app.services.pipeline.resume_ingestion import ResumeIngestion

logger = logging.getLogger(__name__)


@lru_cache
def get_storage() -> Storage:
    return SqlStorage(get_session_factory())


@lru_cache
def get_llm_service() -> Optional[LLMService]:
    """LLM service, or None when no credential is configured (offline fallbacks)."""
    if not settings.llm_configured:
        logger.warning("GROQ_API_KEY missing - resume parsing and question generation use offline fallbacks")
        return None
    return LLMService(get_chat_model())


@lru_cache
def get_blob_store() -> BlobStore:
    local_store = LocalBlobStore(settings.LOCAL_UPLOAD_DIR)
    if not settings.supabase_configured:
        logger.warning("Supabase not configured - resumes are stored on local disk")
        return local_store
    return SupabaseBlobStore(
        get_supabase_client(),
        settings.SUPABASE_BUCKET,
        fallback=local_store,
        max_file_size=settings.MAX_FILE_SIZE_MB * 1024 * 1024,
    )


def get_identity_provider() -> IdentityProvider:
    """Raises ConfigurationError when Supabase is not configured."""
    return SupabaseIdentityProvider(get_supabase_client())


def get_question_generator(llm: Optional[LLMService] = Depends(get_llm_service)) -> QuestionGenerator:
    return QuestionGenerator(llm)


def get_content_normalizer(llm: Optional[LLMService] = Depends(get_llm_service)) -> ContentNormalizer:
    return ContentNormalizer(llm)


def get_resume_ingestion(
    storage: Storage = Depends(get_storage),
    blob_store: BlobStore = Depends(get_blob_store),
    normalizer: ContentNormalizer = Depends(get_content_normalizer),
    config: Settings = Depends(get_settings),
) -> ResumeIngestion:
    return ResumeIngestion(
        storage=storage,
        blob_store=blob_store,
        extractor=DocumentExtractor(timeout_seconds=config.EXTRACTION_TIMEOUT_SECONDS),
        normalizer=normalizer,
        validator=FileValidator(logger=logger, max_size_mb=config.MAX_FILE_SIZE_MB),
    )


def get_pipeline_factory(
    storage: Storage = Depends(get_storage),
    question_generator: QuestionGenerator = Depends(get_question_generator),
) -> Callable[..., InterviewPipeline]:
    """
    Dependency for providing a factory to create InterviewPipeline instances.
    This allows deferring creation until the request's correlation id is known.
    """
    def factory(correlation_id: Optional[str] = None) -> InterviewPipeline:
        return InterviewPipeline(storage, question_generator, correlation_id=correlation_id)
    return factory

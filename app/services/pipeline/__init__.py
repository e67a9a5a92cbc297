"""
Resume-to-Interview-Questions Pipeline Package

Architecture:
- resume_ingestion.py: Upload flow (validate, store, extract, normalize)
- interview_pipeline.py: Generation orchestration
- document_extractor.py: PDF text extraction
- content_normalizer.py: Resume profile normalization
- question_generator.py: Interview question generation
- llm_service.py: LLM API calls
- llm_parser.py: Response parsing
- file_validator.py: Upload validation
"""

from .content_normalizer import ContentNormalizer
from .document_extractor import DocumentExtractor
from .file_validator import FileValidator
from .interview_pipeline import InterviewPipeline, PipelineStage
from .llm_parser import parse_llm_response
from .llm_service import LLMService
from .question_generator import QuestionGenerator
from .resume_ingestion import ResumeIngestion

__all__ = [
    'ContentNormalizer',
    'DocumentExtractor',
    'FileValidator',
    'InterviewPipeline',
    'LLMService',
    'PipelineStage',
    'QuestionGenerator',
    'ResumeIngestion',
    'parse_llm_response',
]

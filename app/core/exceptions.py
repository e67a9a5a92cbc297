"""
Custom exceptions for the HirePrompt API.

This module defines the error taxonomy used across the pipeline and the HTTP
layer. Every application error carries a stable machine-readable ``kind``,
a human-readable message and optional structured details; the FastAPI
handlers at the bottom turn them into JSON responses.
"""
import logging
from typing import Optional

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ============================================================================
# Custom Exception Classes
# ============================================================================

class AppError(Exception):
    """Base exception for all application errors."""
    kind: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationError(AppError):
    """Malformed or missing input, unsupported file type, oversized file."""
    kind = "validation_error"
    status_code = 400


class AuthenticationError(AppError):
    """Credentials or session token rejected by the identity service."""
    kind = "authentication_error"
    status_code = 401


class NotFoundError(AppError):
    """Referenced user, resume, job spec or question set is absent (or not owned by the caller)."""
    kind = "not_found"
    status_code = 404


class PreconditionError(AppError):
    """Generation requested for a resume whose profile has not been parsed."""
    kind = "precondition_failed"
    status_code = 409


class ExtractionError(AppError):
    """Uploaded document could not be turned into text."""
    kind = "extraction_error"
    status_code = 422


class NormalizationError(AppError):
    """Text-generation service failed to produce a normalized profile."""
    kind = "normalization_error"
    status_code = 502


class GenerationError(AppError):
    """Text-generation service failed to produce interview questions."""
    kind = "generation_error"
    status_code = 502


class StorageError(AppError):
    """Blob or persistence failure."""
    kind = "storage_error"
    status_code = 500


class ConfigurationError(AppError):
    """Exception raised when configuration is invalid or missing."""
    kind = "configuration_error"
    status_code = 503


class LLMServiceError(AppError):
    """Network or upstream failure talking to the text-generation service."""
    kind = "llm_service_error"
    status_code = 502


class LLMTimeoutError(LLMServiceError):
    """Text-generation call exceeded its timeout."""
    kind = "llm_timeout"
    status_code = 504


class LLMResponseFormatError(AppError):
    """Structured output was requested but the response did not parse."""
    kind = "llm_response_format_error"
    status_code = 502


# ============================================================================
# FastAPI Exception Handlers
# ============================================================================

async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "kind": ValidationError.kind,
            "message": "Invalid request data",
            "details": {"errors": jsonable_errors(exc)},
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # input/ctx may hold uploads or exception instances that JSON cannot encode
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"kind": "internal_error", "message": "Internal Server Error", "details": {}},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP exception: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": "http_error", "message": str(exc.detail), "details": {}},
    )

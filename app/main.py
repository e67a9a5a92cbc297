import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.auth import auth_router
from app.api.v1.interview import interview_router
from app.api.v1.job_specs import job_specs_router
from app.api.v1.resumes import resumes_router
from app.api.v1.subscriptions import subscriptions_router
from app.core.config import Settings, get_settings, settings
from app.core.exceptions import (
    AppError,
    app_error_handler,
    global_exception_handler,
    http_exception_handler,
    request_validation_handler,
)
from app.core.logger import set_correlation_id, setup_logger
from app.db.database import get_engine, init_db

setup_logger(
    log_level=logging.DEBUG if settings.DEBUG_MODE else logging.INFO,
    use_json=settings.LOG_JSON,
)
logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: HirePrompt API")
    init_db(get_engine())
    if not settings.llm_configured:
        logger.warning("Missing GROQ_API_KEY - AI question generation will use offline responses")
    if not settings.supabase_configured:
        logger.warning("Missing Supabase environment variables - auth disabled, resumes stored locally")
    yield
    logger.info("Application shutdown")


app = FastAPI(
    title="HirePrompt API",
    description="AI-generated interview questions from resumes and job specifications.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    set_correlation_id(correlation_id)
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


app.include_router(auth_router, prefix="/api/v1", tags=["auth"])
app.include_router(resumes_router, prefix="/api/v1", tags=["resumes"])
app.include_router(job_specs_router, prefix="/api/v1", tags=["job-specs"])
app.include_router(interview_router, prefix="/api/v1", tags=["interview"])
app.include_router(subscriptions_router, prefix="/api/v1", tags=["subscriptions"])


@app.get("/api/v1/health")
async def health(config: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "llm": "configured" if config.llm_configured else "offline",
        "supabase": "configured" if config.supabase_configured else "not configured",
    }

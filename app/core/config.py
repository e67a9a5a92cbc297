from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


CONFIG_DIR = Path(__file__).resolve().parent
# .env lives in the project root (two levels up from app/core)
PROJECT_ROOT = CONFIG_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / '.env'

load_dotenv(ENV_FILE_PATH)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    DEBUG_MODE: bool = False
    LOG_JSON: bool = False
    CORS_ALLOW_ORIGINS: str = "*"

    # Relational store
    DATABASE_URL: str = "sqlite:///./hireprompt.db"

    # Text generation (Groq via LangChain). Empty key switches to offline fallbacks.
    GROQ_API_KEY: str = ""
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 4096
    LLM_REQUEST_TIMEOUT_SECONDS: float = 60.0

    # Token Management
    SAFE_TOKEN_LIMIT: int = 50000  # Warn above this estimated prompt size

    # Supabase (identity + blob storage)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""
    SUPABASE_BUCKET: str = "resumes"
    STORAGE_REQUEST_TIMEOUT_SECONDS: float = 30.0
    LOCAL_UPLOAD_DIR: str = "uploads"

    # File Upload Limits
    MAX_FILE_SIZE_MB: int = 10
    EXTRACTION_TIMEOUT_SECONDS: float = 30.0

    @property
    def llm_configured(self) -> bool:
        return bool(self.GROQ_API_KEY.strip())

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL.strip() and self.SUPABASE_SERVICE_KEY.strip())

    @property
    def cors_origins(self) -> list[str]:
        origins = [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]
        return origins or ["*"]


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Dependency hook returning the process-wide settings."""
    return settings

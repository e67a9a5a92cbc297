"""
Language Model (LLM) client configuration.

This module provides:
- A lazily built ChatGroq instance shared by profile normalization and
  question generation
- Consistent model, temperature, token and API key handling

The client is only built when a Groq API key is configured; without one the
pipeline stages fall back to their deterministic offline output.
"""
from functools import lru_cache

from langchain_groq import ChatGroq

from app.core.config import settings
from app.core.exceptions import ConfigurationError


@lru_cache
def get_chat_model() -> ChatGroq:
    """Get the ChatGroq client used by the pipeline."""
    if not settings.llm_configured:
        raise ConfigurationError("GROQ_API_KEY is not configured")
    return ChatGroq(
        model=settings.LLM_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        api_key=settings.GROQ_API_KEY,
        max_tokens=settings.LLM_MAX_TOKENS,
        timeout=settings.LLM_REQUEST_TIMEOUT_SECONDS,
        max_retries=0,  # retries are a caller concern
    )

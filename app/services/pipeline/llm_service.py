import asyncio
import logging
import time
from typing import Any, Optional, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import LLMResponseFormatError, LLMServiceError, LLMTimeoutError
from app.services.pipeline.llm_parser import parse_llm_response

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

JSON_RESPONSE_FORMAT = {"type": "json_object"}


class LLMService:
    """
    Service for text-generation calls: one system + user exchange per call,
    optional JSON mode, a hard timeout and typed failures.

    Calls are never retried here. Errors carry a ``retryable`` flag so the
    caller can decide.
    """

    def __init__(self, chat_model: BaseChatModel, timeout_seconds: Optional[float] = None):
        self.chat_model = chat_model
        self.timeout_seconds = timeout_seconds or settings.LLM_REQUEST_TIMEOUT_SECONDS

    @staticmethod
    def get_safe_token_limit() -> int:
        """Get the configured safe token limit."""
        return settings.SAFE_TOKEN_LIMIT

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Roughly estimate token count (char count / 4)."""
        return len(text) // 4

    @staticmethod
    def _is_retryable_error(error: Exception) -> bool:
        """Check if an error is retryable (transient server errors, timeouts, etc.)."""
        error_str = str(error).lower()

        if any(code in error_str for code in ("500", "502", "503", "504")):
            return True

        retryable_patterns = [
            "internal server error",
            "service unavailable",
            "bad gateway",
            "gateway timeout",
            "connection reset",
            "connection refused",
            "temporary failure",
            "rate limit",
        ]
        return any(pattern in error_str for pattern in retryable_patterns)

    @staticmethod
    def _response_text(response: Any) -> str:
        content = response.content if hasattr(response, 'content') else response
        if isinstance(content, list):
            # Some providers return content blocks
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return str(content or "").strip()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        label: str = "LLM",
    ) -> str:
        """
        Send one system/user exchange and return the generated text.

        Raises:
            LLMTimeoutError: The call exceeded the configured timeout.
            LLMServiceError: The service was unreachable or returned an error.
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        call_kwargs = {"response_format": JSON_RESPONSE_FORMAT} if json_mode else {}

        prompt_tokens = self.estimate_tokens(system_prompt + user_prompt)
        logger.info(f"[{label}] LLM call starting (~{prompt_tokens} tokens, json_mode={json_mode})")
        start_time = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                self.chat_model.ainvoke(messages, **call_kwargs),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"[{label}] LLM call timed out after {self.timeout_seconds}s")
            raise LLMTimeoutError(
                f"Text generation timed out after {self.timeout_seconds}s",
                {"label": label, "retryable": True},
            ) from e
        except Exception as e:
            retryable = self._is_retryable_error(e)
            logger.error(f"[{label}] LLM call failed (retryable={retryable}): {e}")
            raise LLMServiceError(
                f"Text generation failed: {e}",
                {"label": label, "retryable": retryable},
            ) from e

        elapsed = time.perf_counter() - start_time
        text = self._response_text(response)
        logger.info(f"[{label}] LLM call completed in {elapsed:.2f}s ({len(text)} chars)")
        logger.debug(f"[{label}] Response preview: {text[:200]}...")
        return text

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_class: type[SchemaT],
        label: str = "LLM",
    ) -> SchemaT:
        """
        Request structured output and validate it against ``schema_class``.

        Raises:
            LLMTimeoutError / LLMServiceError: As for ``complete``.
            LLMResponseFormatError: The response did not parse into the schema.
        """
        response_text = await self.complete(system_prompt, user_prompt, json_mode=True, label=label)
        try:
            return parse_llm_response(response_text, schema_class)
        except ValueError as e:
            raise LLMResponseFormatError(
                f"Malformed structured output: {e}",
                {"label": label, "schema": schema_class.__name__},
            ) from e

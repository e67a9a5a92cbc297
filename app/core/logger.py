"""
Logging setup for the HirePrompt API.

Every record carries the correlation id of the request (or pipeline run)
that produced it, and credentials for the text-generation service, the
Supabase project and user sessions are masked before anything is written.
Console output is colored by level; the rotating file under ``logs/`` is
plain text or JSON lines.
"""
import inspect
import json
import logging
import re
import sys
import time
from contextvars import ContextVar
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

MASK = "***MASKED***"

# (pattern, replacement) pairs applied in order
SECRET_PATTERNS = [
    # Groq API keys
    (re.compile(r"\bgsk_[\w-]{16,}"), MASK),
    # Supabase service keys and session tokens are JWTs
    (re.compile(r"\beyJ[\w-]{10,}\.[\w-]{10,}\.[\w-]{10,}"), MASK),
    (re.compile(r"((?:api|service)[_-]?key\s*[=:]\s*)[\"']?[\w.-]{20,}[\"']?", re.IGNORECASE), rf"\1{MASK}"),
    (re.compile(r"(bearer\s+)[\w.-]{20,}", re.IGNORECASE), rf"\1{MASK}"),
    (re.compile(r"(authorization\s*[=:]\s*)[\"']?[\w.-]{20,}[\"']?", re.IGNORECASE), rf"\1{MASK}"),
]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOGS_DIR = PROJECT_ROOT / "logs"
LOG_FILE_NAME = "hireprompt.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def mask_secrets(text: str) -> str:
    """Replace credentials in ``text`` with a fixed marker."""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretMaskingFilter(logging.Filter):
    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = mask_secrets(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(mask_secrets(a) if isinstance(a, str) else a for a in record.args)
        return True


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id``; ``-`` outside a request."""

    def filter(self, record):
        record.correlation_id = correlation_id_var.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            entry.update(extra)
        return json.dumps(entry, default=str)


class LevelColorFormatter(logging.Formatter):
    """Wraps each console line in an ANSI color picked by level."""

    RESET = "\x1b[0m"
    COLORS = {
        logging.DEBUG: "\x1b[38;20m",
        logging.INFO: "\x1b[38;20m",
        logging.WARNING: "\x1b[33;20m",
        logging.ERROR: "\x1b[31;20m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def __init__(self):
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record):
        line = super().format(record)
        color = self.COLORS.get(record.levelno)
        return f"{color}{line}{self.RESET}" if color else line


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter,
            filters: Iterable[logging.Filter]) -> None:
    handler.setFormatter(formatter)
    for log_filter in filters:
        handler.addFilter(log_filter)
    logger.addHandler(handler)


def log_file_path(clear_log: bool = False) -> Path:
    """Ensure the logs directory exists and return the active log file, optionally truncated."""
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOGS_DIR / LOG_FILE_NAME
    if clear_log and log_file.exists():
        log_file.write_text("")
    return log_file


def setup_logger(
    name: str = "app",
    log_level: int = logging.INFO,
    clear_log: bool = False,
    use_json: bool = False,
    mask_secrets: bool = True,
) -> logging.Logger:
    """
    Configure the application logger with a colored console handler and a
    rotating file handler. Idempotent: a logger that already has handlers
    only gets its level updated.

    Args:
        name: Logger name; module loggers under ``app.`` inherit from it
        log_level: Logging level
        clear_log: Truncate the log file first
        use_json: Write the file as JSON lines instead of plain text
        mask_secrets: Mask credentials in every handler
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    if logger.handlers:
        return logger

    filters = [CorrelationIdFilter()]
    if mask_secrets:
        filters.append(SecretMaskingFilter())

    _attach(logger, logging.StreamHandler(sys.stdout), LevelColorFormatter(), filters)

    file_handler = RotatingFileHandler(
        log_file_path(clear_log),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    file_formatter = JsonFormatter(datefmt=DATE_FORMAT) if use_json else logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    _attach(logger, file_handler, file_formatter, filters)

    return logger


def set_correlation_id(correlation_id: str):
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


_timing_logger = logging.getLogger("app.timing")


def log_async_execution_time(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator logging how long a coroutine took, including when it raised.
    Only coroutine functions are accepted.
    """
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"log_async_execution_time expects a coroutine function, got {func!r}")

    @wraps(func)
    async def wrapper(*args, **kwargs):
        started = time.perf_counter()
        _timing_logger.info(f"{func.__qualname__} started")
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            elapsed = time.perf_counter() - started
            _timing_logger.error(f"{func.__qualname__} failed after {elapsed:.3f}s: {type(e).__name__}: {e}")
            raise
        elapsed = time.perf_counter() - started
        _timing_logger.info(f"{func.__qualname__} finished in {elapsed:.3f}s")
        return result
    return wrapper

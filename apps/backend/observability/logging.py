"""
Structured logging with correlation IDs and JSON formatting.

Usage:
    from observability import get_logger

    logger = get_logger(__name__)
    logger.info("Source search finished", extra={
        "source": "Printables",
        "result_count": 24,
    })
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional, Dict, Any

from pythonjsonlogger import jsonlogger

from utils.security import redact_secrets_from_text

SERVICE_NAME = "model-aggregator-backend"

# Per-request correlation id, isolated per asyncio task
_correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_ctx.set(correlation_id)


def generate_correlation_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


class correlation_id_context:
    """Context manager for setting correlation ID."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token = None

    def __enter__(self):
        self.token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id_ctx.reset(self.token)


class CorrelationIDFilter(logging.Filter):
    """Adds correlation_id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        return True


class SensitiveDataFilter(logging.Filter):
    """Redacts upstream credentials from log records.

    Source adapters carry API keys in query strings and auth headers, so the
    message text is scrubbed as well as structured ``extra`` fields.
    """

    SENSITIVE_KEYS = {
        "password", "token", "api_key", "secret", "authorization",
        "thingiverse_token", "cults3d_api_key", "myminifactory_api_key",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_secrets_from_text(record.msg)

        if record.args:
            record.args = self._redact(record.args)

        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE_KEYS:
                setattr(record, key, "[REDACTED]")

        return True

    def _redact(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in self.SENSITIVE_KEYS else self._redact(v)
                for k, v in data.items()
            }
        if isinstance(data, tuple):
            return tuple(self._redact(item) for item in data)
        if isinstance(data, list):
            return [self._redact(item) for item in data]
        if isinstance(data, str):
            return redact_secrets_from_text(data)
        return data


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps service and environment on every line."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        log_record["environment"] = os.getenv("ENVIRONMENT", "development")
        log_record["service"] = SERVICE_NAME

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging() -> None:
    """
    Setup structured logging for the application.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_FORMAT: json or text (default: json in production, text in dev)
    - ENVIRONMENT: development, staging, production
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("LOG_FORMAT", "json" if os.getenv("ENVIRONMENT") == "production" else "text")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if log_format == "json":
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(correlation_id)s %(message)s",
            rename_fields={"timestamp": "@timestamp"}
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIDFilter())
    handler.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Upstream HTTP clients log full request URLs at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# Setup logging on module import
setup_logging()

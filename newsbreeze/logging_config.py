"""Structured logging configuration for NewsBreeze."""

import json
import logging
import sys
import uuid
from datetime import UTC, datetime
from typing import Any

# Record attributes copied into the JSON output when a caller provides them
CONTEXT_FIELDS = (
    "request_id",
    "component",
    "upstream",
    "status_code",
    "feed_url",
    "method",
    "path",
    "duration_ms",
    "attempt",
    "error",
)


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class RequestLogger:
    """Logger bound to one request and one component."""

    def __init__(self, request_id: str, component: str = "api"):
        """Initialize request logger.

        Args:
            request_id: Identifier of the request being served
            component: Component name (e.g., 'feed_fetcher', 'summarizer')
        """
        self.request_id = request_id
        self.component = component
        self.logger = logging.getLogger(f"newsbreeze.{component}")

    def _log_with_context(self, level: int, message: str, **kwargs) -> None:
        extra = {
            "request_id": self.request_id,
            "component": self.component,
            **kwargs,
        }
        self.logger.log(level, message, extra=extra)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with context."""
        self._log_with_context(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with context."""
        self._log_with_context(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message with context."""
        self._log_with_context(logging.ERROR, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with context."""
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def log_upstream_call(self, upstream: str, url: str) -> None:
        """Log an outgoing upstream call."""
        self.info(f"Calling {upstream}", upstream=upstream, path=url)

    def log_upstream_failure(
        self, upstream: str, message: str, status_code: int | None = None, **kwargs
    ) -> None:
        """Log an upstream failure with whatever the upstream told us."""
        self.error(
            f"{upstream} failed: {message}",
            upstream=upstream,
            status_code=status_code,
            **kwargs,
        )


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Setup structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    loggers = [
        "newsbreeze",
        "newsbreeze.api",
        "newsbreeze.feed_fetcher",
        "newsbreeze.summarizer",
        "newsbreeze.speech_synthesizer",
        "newsbreeze.upstream",
        "uvicorn",
        "uvicorn.error",
        "uvicorn.access",
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


def new_request_id() -> str:
    """Generate a short identifier for an incoming request."""
    return uuid.uuid4().hex[:12]


def create_request_logger(
    component: str, request_id: str | None = None
) -> RequestLogger:
    """Create a request logger for a component.

    Args:
        component: Component name
        request_id: Optional request ID (will generate one if not provided)

    Returns:
        RequestLogger instance
    """
    if not request_id:
        request_id = new_request_id()

    return RequestLogger(request_id, component)

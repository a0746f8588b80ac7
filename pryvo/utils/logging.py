"""Structured logging for the Pryvo backend."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from pryvo.config import settings

_SHARED_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Route stdlib logging through structlog.

    Development gets the colourised console renderer; every other environment
    emits one JSON object per line so log shippers can parse it.

    Args:
        level (Optional[str]): Log level name. Defaults to `settings.LOG_LEVEL`.
        json_output (Optional[bool]): Force JSON rendering on or off. Defaults to
            JSON outside of the development environment.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", level=log_level, stream=sys.stdout, force=True)

    if json_output is None:
        json_output = settings.ENVIRONMENT.lower() != "development"

    renderer: Processor = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger bound to `initial_values`.

    Args:
        name (str): Logger name (usually `__name__`).
        **initial_values: Key-value pairs bound to every event from this logger.

    Returns:
        structlog.stdlib.BoundLogger: The bound logger.
    """
    return structlog.get_logger(name).bind(**initial_values)  # type: ignore


def bind_context(**values: Any) -> None:
    """Bind values (request id, user id) to every log event in the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    """Drop everything bound with `bind_context`."""
    structlog.contextvars.clear_contextvars()


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    message: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an exception with its type, message and any `details` payload.

    Args:
        logger (structlog.stdlib.BoundLogger): The logger instance to use.
        error (Exception): The exception to log.
        message (Optional[str]): Event name. Defaults to "Unhandled error".
        extra (Optional[Dict[str, Any]]): Additional context to log.
    """
    context = dict(extra or {})
    context["error_type"] = type(error).__name__
    context["error_message"] = str(error)

    details = getattr(error, "details", None)
    if details:
        context["error_details"] = details

    kind = getattr(error, "kind", None)
    if kind is not None:
        context["error_kind"] = getattr(kind, "value", kind)

    logger.error(message or "Unhandled error", **context, exc_info=error)

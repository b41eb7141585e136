"""
Structured logging configuration using structlog.
Provides run-scoped logging with automatic context injection.

The library only emits events through ``structlog.get_logger()`` and never
calls ``configure_logging`` itself. It is the host application's hook: call
it once at startup to get the processor chain and renderer chosen by the
FUNNEL_LOG_* settings. Until then structlog's defaults apply.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from funnel_engine.config import get_settings


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging for the host application.
    Uses JSON format in production, console format in development.

    Call once from the application entry point; library code never does.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_severity,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_run_context(**kwargs: Any) -> None:
    """
    Bind key/value pairs to every log line emitted in the current context.

    Typical use is an analysis run identifier set by the caller before
    invoking the engines, e.g. ``bind_run_context(client_id="c-42")``.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_run_context() -> None:
    """Drop all context bound with :func:`bind_run_context`."""
    structlog.contextvars.clear_contextvars()

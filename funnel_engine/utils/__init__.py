"""Utility helpers (structured logging)."""

from .logging import bind_run_context, clear_run_context, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_run_context",
    "clear_run_context",
]

"""Logging helpers for the notice intake service."""

from .logging import LogContext, configure_logging, log_operation

__all__ = [
    "configure_logging",
    "LogContext",
    "log_operation",
]

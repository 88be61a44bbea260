"""structlog setup for the notice intake service.

Every event carries the context bound with ``LogContext`` (fingerprint,
environment), so a notice can be followed from parse to issue update.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Optional

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging on stdout.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: Render JSON lines instead of console output
        include_timestamp: Stamp events with an ISO timestamp
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors.append(structlog.processors.format_exc_info)
    processors.append(
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class LogContext:
    """Bind context variables to every event logged inside the block."""

    def __init__(self, **context):
        self.context = context

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.context)


@contextmanager
def log_operation(
    operation: str,
    logger: Optional[structlog.BoundLogger] = None,
    **context,
):
    """Log the start and outcome of an operation.

    Yields a dict the caller fills with result fields; they are logged on
    completion. Failures are logged as warnings and re-raised.
    """
    log = (logger or structlog.get_logger()).bind(operation=operation, **context)
    log.debug(f"{operation} started")

    result = {"success": False, "error": None}
    try:
        yield result
    except Exception as e:
        result["error"] = str(e)
        log.warning(f"{operation} failed", **result)
        raise

    result["success"] = True
    log.info(f"{operation} completed", **result)

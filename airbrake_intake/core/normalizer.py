"""
Backtrace and session log normalization.

Both inputs arrive in loose shapes (a lone object where a list is expected,
junk entries, JSON text that does not decode). Bad items are dropped one at
a time so that a malformed frame or log line never rejects the notice.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import structlog

from .elements import GenericValue, ListValue, ObjectValue, Scalar
from .errors import EmbeddedPayloadError
from .payload import decode_embedded_json

logger = structlog.get_logger()

# Ruby Time#to_s, as written by Ruby notifiers
RUBY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


@dataclass(frozen=True)
class Frame:
    """A single backtrace line. Outermost call first."""
    file: Optional[str] = None
    method: Optional[str] = None
    line_number: Optional[str] = None


@dataclass(frozen=True)
class LogEntry:
    """A timestamped line from the session log."""
    time: datetime
    line: str


def normalize_backtrace(raw: Optional[GenericValue]) -> tuple[Frame, ...]:
    """Coerce a converted backtrace value into frames.

    Accepts a lone ObjectValue, a ListValue of ObjectValues, or anything
    else (which yields no frames).
    """
    if raw is None:
        return ()

    entries = raw.items if isinstance(raw, ListValue) else (raw,)

    frames = []
    for entry in entries:
        if not isinstance(entry, ObjectValue):
            logger.debug("Dropping backtrace entry", entry_type=type(entry).__name__)
            continue
        frames.append(Frame(
            file=entry.text("file"),
            method=entry.text("method"),
            line_number=entry.text("number"),
        ))
    return tuple(frames)


def normalize_session_log(raw: Optional[GenericValue]) -> Optional[tuple[LogEntry, ...]]:
    """Decode the JSON session log into timestamped entries.

    Returns None when the log is absent, undecodable, or has no valid entry.
    """
    if not isinstance(raw, Scalar) or raw.is_blank():
        return None

    try:
        data = decode_embedded_json(raw.value)
    except EmbeddedPayloadError as e:
        logger.debug("Ignoring undecodable session log", error=str(e))
        return None

    items = data if isinstance(data, list) else [data]

    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        time = parse_datetime(item.get("time"))
        if time is None:
            logger.debug("Dropping session log entry without time", time=item.get("time"))
            continue
        line = item.get("line")
        entries.append(LogEntry(time=time, line="" if line is None else str(line)))

    return tuple(entries) or None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse datetime from various formats. Naive values are taken as UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    parsed = _parse_text_datetime(text)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _parse_text_datetime(text: str) -> Optional[datetime]:
    """Try ISO 8601, Ruby Time#to_s, then RFC 2822."""
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        return datetime.strptime(text, RUBY_TIME_FORMAT)
    except ValueError:
        pass

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None

"""Core notice handling: conversion, parsing, fingerprinting and dedup decisions."""

from .dedup import (
    Action,
    CreateNew,
    IncrementOccurrence,
    ReopenWithNote,
    decide,
    should_reopen,
)
from .elements import (
    GenericValue,
    ListValue,
    ObjectValue,
    Scalar,
    convert_element,
    is_blank,
)
from .errors import EmbeddedPayloadError, InvalidNotice, NoticeError, UnsupportedVersion
from .fingerprint import fingerprint, normalized_backtrace
from .normalizer import Frame, LogEntry, normalize_backtrace, normalize_session_log
from .notice import SUPPORTED_API_VERSIONS, Error, Notice, Request, Session, parse_notice

__all__ = [
    # Elements
    "GenericValue",
    "Scalar",
    "ListValue",
    "ObjectValue",
    "convert_element",
    "is_blank",
    # Notice
    "Notice",
    "Error",
    "Request",
    "Session",
    "Frame",
    "LogEntry",
    "SUPPORTED_API_VERSIONS",
    "parse_notice",
    "normalize_backtrace",
    "normalize_session_log",
    # Errors
    "NoticeError",
    "InvalidNotice",
    "UnsupportedVersion",
    "EmbeddedPayloadError",
    # Fingerprint
    "fingerprint",
    "normalized_backtrace",
    # Decisions
    "Action",
    "CreateNew",
    "IncrementOccurrence",
    "ReopenWithNote",
    "decide",
    "should_reopen",
]

"""Fingerprinting of notice errors for duplicate detection.

The fingerprint identifies "the same error" across occurrences: same class,
same message and same backtrace, where generated block/closure identifiers
in method names (``block_2_in_render``) are ignored.
"""

import hashlib
import re
from typing import Optional

import structlog

from .normalizer import Frame
from .notice import Error

logger = structlog.get_logger()

# Runtime-generated identifiers such as the "_2_" in "foo_2_bar"
GENERATED_SUFFIX = re.compile(r"_\d+_")


def strip_generated(method: str) -> str:
    """Remove generated identifier fragments from a method name."""
    return GENERATED_SUFFIX.sub("", method)


def frame_signature(frame: Frame) -> Optional[str]:
    """Return the ``file|method|number`` entry for a frame.

    Frames without a method have no signature and are skipped.
    """
    if frame.method is None:
        return None
    return f"{frame.file or ''}|{strip_generated(frame.method)}|{frame.line_number or ''}"


def normalized_backtrace(error: Error) -> list[str]:
    """Frame signatures in backtrace order."""
    signatures = []
    for frame in error.backtrace:
        signature = frame_signature(frame)
        if signature is None:
            logger.debug("Frame skipped in fingerprint", file=frame.file, line_number=frame.line_number)
            continue
        signatures.append(signature)
    return signatures


def fingerprint(error: Error) -> str:
    """Compute the MD5 hex digest identifying this error."""
    parts = [error.class_name, error.message, *normalized_backtrace(error)]
    combined = "\n".join(p for p in parts if p is not None)
    return hashlib.md5(combined.encode("utf-8")).hexdigest()

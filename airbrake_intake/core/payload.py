"""Decoding of JSON payloads embedded inside notice elements.

The api-key element and the session log both carry JSON text inside XML.
Decoding is kept out of the generic converter so that callers decide how a
bad blob is treated.
"""

import json
from typing import Any, Optional

from .errors import EmbeddedPayloadError


def decode_embedded_json(text: Optional[str]) -> Any:
    """Decode a JSON document embedded in element text."""
    if text is None or not text.strip():
        raise EmbeddedPayloadError("empty payload")
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise EmbeddedPayloadError(str(e)) from e


def decode_string_mapping(text: Optional[str]) -> dict[str, str]:
    """Decode an embedded JSON object into a str -> str mapping.

    Non-string values are re-encoded as JSON text; null values are dropped.
    """
    data = decode_embedded_json(text)
    if not isinstance(data, dict):
        raise EmbeddedPayloadError(f"expected a JSON object, got {type(data).__name__}")

    mapping = {}
    for key, value in data.items():
        if value is None:
            continue
        mapping[str(key)] = value if isinstance(value, str) else json.dumps(value)
    return mapping

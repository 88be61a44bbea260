"""Airbrake notice intake: parse error notices, fingerprint them, and file deduplicated issues."""

__version__ = "0.1.0"

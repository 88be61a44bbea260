"""Errors raised while reading Airbrake notices."""


class NoticeError(Exception):
    """Base exception for notice parsing."""
    pass


class InvalidNotice(NoticeError):
    """Raised when a notice is malformed or lacks a required section."""
    pass


class UnsupportedVersion(NoticeError):
    """Raised when the notice declares an API version we do not speak."""

    def __init__(self, version: str):
        super().__init__(f"unsupported notice version {version!r}")
        self.version = version


class EmbeddedPayloadError(NoticeError):
    """Raised when a JSON blob embedded in the notice cannot be decoded."""
    pass

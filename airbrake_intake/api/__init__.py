"""HTTP surface for the notice intake service."""

from .notices import router as notices_router

__all__ = ["notices_router"]

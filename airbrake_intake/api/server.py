"""FastAPI application for the Airbrake notice intake service.

Provides:
- The Airbrake notifier endpoint
- Health check
"""

import os
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from airbrake_intake import __version__
from airbrake_intake.api.notices import router as notices_router
from airbrake_intake.config import get_settings
from airbrake_intake.utils.logging import configure_logging

logger = structlog.get_logger()

app = FastAPI(
    title="Airbrake Intake API",
    description="Receives Airbrake error notices and files them as deduplicated issues",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(notices_router)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Liveness probe."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG") else "An error occurred",
        },
    )


@app.on_event("startup")
async def startup():
    """Configure logging on startup."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    logger.info(
        "Airbrake intake API starting",
        version=__version__,
        reopen_regexp=settings.reopen_regexp,
    )


@app.on_event("shutdown")
async def shutdown():
    """Log shutdown."""
    logger.info("Airbrake intake API shutting down")


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)

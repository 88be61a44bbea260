"""Configuration management for the Airbrake notice intake service."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AIRBRAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Issue workflow
    reopen_regexp: Optional[str] = Field(
        None,
        description="Reopen closed issues when the notice environment name matches this pattern",
    )
    subject_max_length: int = Field(255, description="Maximum length of generated issue subjects")

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    json_logs: bool = Field(False, description="Render logs as JSON instead of console output")

    # Server Settings
    server_host: str = Field("0.0.0.0", description="Server host")
    server_port: int = Field(8000, description="Server port")


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()

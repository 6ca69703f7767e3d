"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables prefixed SAT_SCRAPER_
  - Fall back to a .env file
  - Validate types and ranges when the settings are created

Portal URLs are protocol constants (see cfdi_sat_scraper.portal) and are
intentionally not configurable. Credentials are not settings either: the
caller builds the session manager with them.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cfdi_sat_scraper import portal

# Resolve the .env file relative to the project root (two levels above this file)
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ScraperSettings(BaseSettings):
    """
    Runtime settings of the HTTP gateway, logging and caller retry policy.

    Load order (highest priority first):
      1. Environment variables (SAT_SCRAPER_HTTP_TIMEOUT_SECONDS, ...)
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="SAT_SCRAPER_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    http_timeout_seconds: float = Field(default=30, gt=0)
    verify_tls: bool = Field(default=True)
    user_agent: str = Field(default=portal.USER_AGENT)
    log_level: str = Field(default="INFO")
    retry_attempts: int = Field(default=3, ge=1, le=10)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return level

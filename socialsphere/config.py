"""
Runtime configuration helpers for the SocialSphere core.

Loads DATABASE_URL and the tuning knobs of the graph/engagement/feed services
from the environment, falling back to the .env file in the project root.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required field: must come from the environment or .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="SocialSphere", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")

    # Engagement / graph behaviour
    engagement_cache_size: int = Field(default=10_000, ge=1, alias="ENGAGEMENT_CACHE_SIZE")
    friend_suggestions_limit: int = Field(default=10, ge=1, alias="FRIEND_SUGGESTIONS_LIMIT")
    cascade_post_delete: bool = Field(default=True, alias="CASCADE_POST_DELETE")

    # Best-effort bookkeeping retries
    retry_attempts: int = Field(default=3, ge=1, alias="RETRY_ATTEMPTS")
    retry_delay_seconds: float = Field(default=1.0, ge=0.0, alias="RETRY_DELAY_SECONDS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


class MissingSecretError(RuntimeError):
    """Raised when a required secret environment variable is unset or a placeholder."""


_PLACEHOLDER_SECRETS = {"changeme", "change-me", "placeholder", "example", "your-key-here"}


def require_secret(name: str) -> str:
    """Return the trimmed secret ``name`` from the environment."""

    value = (os.getenv(name) or "").strip()
    if not value or value.lower() in _PLACEHOLDER_SECRETS:
        raise MissingSecretError(f"Environment variable {name} is required and must not use placeholder defaults")
    return value


__all__ = ["MissingSecretError", "Settings", "get_settings", "require_secret"]

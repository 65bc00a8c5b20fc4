"""
Configuration using Pydantic Settings.

Every field can be set from the environment with a DUEQ_ prefix
(DUEQ_REDIS_URL, DUEQ_DEFAULT_WAIT, ...) or from a .env file.

Durations are timedelta. Pydantic accepts seconds ("600"), "HH:MM:SS"
("00:10:00") or ISO-8601 ("PT10M") for them.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Queue settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUEQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store / lock service
    redis_url: str = "redis://localhost:6379/0"
    prefix: str = "dueq"

    # Worker
    default_wait: timedelta = timedelta(minutes=10)
    lock_time: timedelta = timedelta(minutes=5)

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    @field_validator("default_wait", "lock_time")
    @classmethod
    def _positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("duration must be positive")
        return v

    @field_validator("prefix")
    @classmethod
    def _strip_prefix(cls, v: str) -> str:
        v = v.strip().rstrip(":")
        if not v:
            raise ValueError("prefix must not be empty")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""
Application configuration via environment variables.

Uses Pydantic BaseSettings to load and validate all config from env vars
or a .env.local file. Every setting has a sensible default so the engine
and the API can start with no configuration at all.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment selector."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Central configuration for the voice form filler.

    Values are loaded from environment variables first, falling back
    to a `.env.local` file in the project root.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Environment = Environment.DEVELOPMENT

    # ── Date Parsing ─────────────────────────────────────────────
    date_languages: list[str] = Field(default=["en"], description="Languages tried by the date parser")
    date_order: str = Field(default="MDY", description="Order used for ambiguous numeric dates")
    date_prefer_from: str = Field(default="future", description="past | current_period | future")
    date_timezone: str = Field(default="UTC", description="Timezone relative dates resolve in")

    # ── Confidence Thresholds ────────────────────────────────────
    auto_apply_threshold: float = Field(default=0.85, ge=0.0, le=1.0, description="At or above: apply without review")
    review_threshold: float = Field(default=0.70, ge=0.0, le=1.0, description="Below: flag the field for review")

    # ── Operational Limits ───────────────────────────────────────
    max_transcript_chars: int = Field(default=10_000, ge=1, description="Longest transcript the API accepts")
    rate_limit_window_seconds: int = Field(default=60, ge=1, description="Rate limit window")
    rate_limit_max_requests: int = Field(default=100, ge=1, description="Requests per window per client")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Derived helpers ──────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached Settings instance.

    Using lru_cache ensures we read env vars exactly once, and every
    module that calls ``get_settings()`` gets the same object.
    """
    return Settings()

# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: reasoning service,
job store, result cache, analysis collaborators and logging.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_JOB_STORE_SCHEMES = ("sqlite://",)


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === REASONING SERVICE ===
    llm_provider: str = "anthropic"
    llm_default_model: str = "claude-opus-4-20250514"
    llm_fast_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.2
    llm_timeout_s: float = 600.0
    anthropic_api_key: str = ""

    # === Sequencing budgets ===
    sequence_thinking_threshold: int = 200
    sequence_large_model_threshold: int = 500
    sequence_thinking_budget_standard: int = 10_000
    sequence_thinking_budget_deep: int = 24_000
    sequence_thinking_budget_large: int = 32_000
    sequence_thinking_budget_deep_large: int = 48_000

    # Upper bound on any context text sent in a single prompt
    prompt_context_chars: int = 12_000

    # === Job store ===
    # Empty = in-process store. "sqlite:///path/to/jobs.db" = durable store.
    job_store_url: str = ""
    job_store_max_jobs: int = 100

    # === Result cache ===
    cache_enabled: bool = True
    cache_backend: Literal["json", "sqlite", "redis", "memory"] = "json"
    cache_root: Path = Path("~/.buildcheck/cache")
    cache_redis_url: str = ""
    cache_max_entries: int = 5

    # === Analysis collaborators ===
    price_catalog_path: Path | None = None
    rules_path: Path | None = None
    price_match_threshold: float = 0.5
    schedule_daily_output: float = 2500.0
    schedule_start_date: date | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("job_store_max_jobs", "cache_max_entries")
    @classmethod
    def validate_capacity(cls, v: int) -> int:
        """Capacities must be strictly positive."""
        if v < 1:
            raise ValueError("capacity must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.job_store_url and not self.job_store_url.startswith(
            SUPPORTED_JOB_STORE_SCHEMES
        ):
            errors.append(
                f"JOB_STORE_URL scheme not supported: {self.job_store_url!r} "
                f"(expected one of {', '.join(SUPPORTED_JOB_STORE_SCHEMES)})"
            )

        if self.sequence_thinking_threshold > self.sequence_large_model_threshold:
            errors.append(
                "SEQUENCE_THINKING_THRESHOLD must be <= SEQUENCE_LARGE_MODEL_THRESHOLD"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def reasoning_enabled(self) -> bool:
        """Whether a reasoning-service credential is configured."""
        return bool(self.anthropic_api_key)

    @property
    def job_store_path(self) -> Path | None:
        """Filesystem path of the durable job store, if configured."""
        if not self.job_store_url:
            return None
        return Path(self.job_store_url.removeprefix("sqlite://")).expanduser()


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

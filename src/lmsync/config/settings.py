# src/lmsync/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings. The cache backend
is chosen here once per process and injected into the adapter factory;
business logic never inspects the environment itself.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LMSYNC_",
        extra="ignore",
    )

    # === Server cache ===
    # "memory" for short-lived/stateless processes, "directory" for
    # long-lived ones, "redis" for shared deployments.
    cache_backend: Literal["memory", "directory", "redis"] = "directory"
    cache_root: Path = Path("~/.lmsync/cache")
    cache_redis_url: str = ""
    cache_ttl_seconds: int | None = None

    # === Synchronization ===
    sync_batch_size: int = 5
    sync_purge_on_cancel: Literal["none", "job", "all"] = "job"

    # === Retry ===
    retry_max_retries: int = 3
    retry_base_delay_s: float = 1.0
    retry_backoff_factor: float = 2.0
    retry_jitter: bool = True

    # === Client store ===
    client_store_path: Path = Path("~/.lmsync/client.db")
    prefetch_delay_s: float = 0.2

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("sync_batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("sync_batch_size must be >= 1")
        return v

    @field_validator("retry_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("retry_max_retries must be >= 0")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int | None) -> int | None:  # noqa: N805
        if v is not None and v <= 0:
            raise ValueError("cache_ttl_seconds must be positive when set")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.cache_ttl_seconds is not None and self.cache_backend != "memory":
            errors.append("CACHE_TTL_SECONDS is only supported by the memory backend")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or one-off runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

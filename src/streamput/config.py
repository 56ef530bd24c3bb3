"""
Settings for streamput.

Values come from keyword arguments or ``STREAMPUT_*`` environment variables.
The upload core never reads settings directly; the service facade and the
CLI resolve them and pass plain values down.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024

# S3 rejects non-final parts below this size
MIN_PART_SIZE = 5 * MIB
MAX_PART_SIZE = 5 * 1024 * MIB


class Settings(BaseSettings):
    """Process-wide streamput settings."""

    model_config = SettingsConfigDict(
        env_prefix="STREAMPUT_",
        extra="ignore",
    )

    # Pipeline
    part_size: int = Field(default=8 * MIB, ge=MIN_PART_SIZE, le=MAX_PART_SIZE)
    worker_count: int = Field(default=5, ge=1, le=64)
    queue_depth_multiplier: int = Field(default=2, ge=1, le=8)
    max_parts: int = Field(default=10_000, ge=1, le=10_000)

    # Resilience
    retry_attempts: int = Field(default=3, ge=1, le=20)
    retry_initial_backoff: float = Field(default=0.5, ge=0.0, le=30.0)
    retry_max_backoff: float = Field(default=8.0, ge=0.0, le=300.0)
    complete_attempts: int = Field(default=2, ge=1, le=3)
    abort_timeout: float = Field(default=30.0, ge=1.0, le=300.0)
    upload_timeout: float | None = Field(default=None, gt=0.0)

    # Source
    http_connect_timeout: float = Field(default=10.0, ge=1.0, le=120.0)
    http_read_timeout: float = Field(default=60.0, ge=1.0, le=600.0)

    # Store
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None

    # Logging
    log_json: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @model_validator(mode="after")
    def _check_backoff(self) -> Settings:
        if self.retry_max_backoff < self.retry_initial_backoff:
            raise ValueError("retry_max_backoff must be >= retry_initial_backoff")
        return self

    @property
    def queue_size(self) -> int:
        """Bound for both pipeline queues."""
        return self.worker_count * self.queue_depth_multiplier


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the settings singleton, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_settings(**overrides: object) -> Settings:
    """
    Replace the settings singleton.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        The new settings instance.

    Example:
        >>> configure_settings(worker_count=8, log_json=True)
    """
    global _settings
    _settings = Settings(**overrides)  # type: ignore[arg-type]
    return _settings


def reset_settings() -> None:
    """Drop the singleton so the next get_settings() reloads from the environment."""
    global _settings
    _settings = None


__all__ = [
    "MAX_PART_SIZE",
    "MIB",
    "MIN_PART_SIZE",
    "Settings",
    "configure_settings",
    "get_settings",
    "reset_settings",
]

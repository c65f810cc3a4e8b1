"""Environment-based configuration using pydantic-settings.

Seeds the process-wide retry defaults and the logging setup from environment
variables, with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from retrykit.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_attempts
    3
    >>> settings.logging.format
    'stdlib'

    # Or with environment variables:
    # RETRYKIT_RETRY_MAX_ATTEMPTS=5
    # RETRYKIT_RETRY_BACKOFF=fibonacci
    # RETRYKIT_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, PositiveFloat, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackoffKind(StrEnum):
    """Tag identifying a backoff algorithm."""
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    FIBONACCI = "fibonacci"


class RetrySettings(BaseSettings):
    """Default retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_RETRY_",
        extra="ignore",
    )

    max_attempts: int = Field(default=3, description="Retries after the first try; negative retries forever")
    task_name: str = Field(default="default", description="Diagnostic label for log output")
    backoff: BackoffKind = BackoffKind.EXPONENTIAL
    base_delay: PositiveFloat = Field(default=0.05, description="Base delay in seconds")
    multiplier: PositiveFloat = Field(default=2.0, description="Exponential growth factor")
    max_delay: PositiveFloat = Field(default=30.0, description="Maximum delay in seconds")
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.2

    @field_validator("backoff", mode="before")
    @classmethod
    def _normalize_kind(cls, v: str) -> str:
        """Accept any casing for the backoff kind."""
        return v.strip().lower() if isinstance(v, str) else v

    @computed_field
    @property
    def unbounded(self) -> bool:
        """Whether the default budget retries forever."""
        return self.max_attempts < 0


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["stdlib", "console", "json", "none"] = "stdlib"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrykitSettings(BaseSettings):
    """Root settings for retrykit.

    Loads configuration from environment variables with RETRYKIT_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        RETRYKIT_RETRY_MAX_ATTEMPTS=-1
        RETRYKIT_RETRY_BACKOFF=linear
        RETRYKIT_RETRY_BASE_DELAY=0.5
        RETRYKIT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RetrykitSettings:
    """Get the global settings instance (cached).

    Example:
        >>> get_settings().retry.backoff
        <BackoffKind.EXPONENTIAL: 'exponential'>
    """
    return RetrykitSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()

"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    BackoffKind,
    LoggingSettings,
    RetrykitSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BackoffKind",
    "LoggingSettings",
    "RetrySettings",
    "RetrykitSettings",
    "clear_settings_cache",
    "get_settings",
]

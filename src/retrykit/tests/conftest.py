"""Shared fixtures for retrykit tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from retrykit.foundation.config import clear_settings_cache
from retrykit.runtime.observability import reset_logging
from retrykit.runtime.retry import reset_default_config


@pytest.fixture(autouse=True)
def clean_globals() -> Iterator[None]:
    """Reset settings, defaults registry and logging around each test."""
    clear_settings_cache()
    reset_default_config()
    reset_logging()
    yield
    clear_settings_cache()
    reset_default_config()
    reset_logging()

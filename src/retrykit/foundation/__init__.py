"""Foundation layer: errors and configuration shared by the runtime."""

from .config import BackoffKind, RetrykitSettings, clear_settings_cache, get_settings
from .errors import Cancelled, DeadlineExceeded, ErrorCode, RetryError, classify_exception, is_cancellation

__all__ = [
    "BackoffKind",
    "RetrykitSettings",
    "get_settings",
    "clear_settings_cache",
    "ErrorCode",
    "RetryError",
    "Cancelled",
    "DeadlineExceeded",
    "classify_exception",
    "is_cancellation",
]

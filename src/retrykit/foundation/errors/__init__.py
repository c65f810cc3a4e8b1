"""Error handling for retrykit.

- ErrorCode: Classification of terminal retry outcomes
- RetryError/Cancelled/DeadlineExceeded: Cancellation-classified exceptions
- classify_exception: Tell cancellation apart from action failures
"""

from .errors import (
    Cancelled,
    DeadlineExceeded,
    ErrorCode,
    RetryError,
    classify_exception,
    is_cancellation,
)

__all__ = [
    "ErrorCode",
    "RetryError",
    "Cancelled",
    "DeadlineExceeded",
    "classify_exception",
    "is_cancellation",
]

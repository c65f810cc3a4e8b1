"""Runtime layer: retry engine, cancellation primitives and observability."""

from .concurrency import CancelScope, ReadWriteLock, sleep, sleep_async
from .observability import BoundLogger, configure_logging, get_logger
from .retry import (
    Backoff,
    ConstantBackoff,
    ExponentialBackoff,
    FibonacciBackoff,
    LinearBackoff,
    Retry,
    RetryConfig,
    RetryEvent,
    RetryState,
)

__all__ = [
    "CancelScope",
    "ReadWriteLock",
    "sleep",
    "sleep_async",
    "BoundLogger",
    "configure_logging",
    "get_logger",
    "Backoff",
    "ConstantBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "Retry",
    "RetryConfig",
    "RetryEvent",
    "RetryState",
]

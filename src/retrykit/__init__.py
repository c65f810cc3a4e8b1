"""retrykit - Cancellation-aware retries with pluggable backoff.

Runs a unit of work until it succeeds, exhausts its retry budget, asks to stop,
or is cancelled, waiting a computed, jittered delay between attempts.

Quick Start:
    >>> import retrykit
    >>>
    >>> def fetch(state: retrykit.RetryState) -> dict:
    ...     return http_get("/users/42")  # raises on transient failure
    >>>
    >>> user = retrykit.call(fetch, max_attempts=5, task_name="fetch-user")

Backoff Strategies:
    >>> from retrykit import ConstantBackoff, ExponentialBackoff, FibonacciBackoff, LinearBackoff
    >>> retrykit.call(fetch, backoff=FibonacciBackoff(delay=0.1, max_delay=5.0))

Stopping Early:
    >>> def charge(state):
    ...     try:
    ...         return gateway.charge(order)
    ...     except CardDeclined:
    ...         state.stop()  # no point retrying
    ...         raise

Cancellation & Deadlines:
    >>> with retrykit.CancelScope(timeout=10.0) as scope:
    ...     retrykit.run(sync_inventory, scope=scope, max_attempts=-1)
    ... # raises retrykit.DeadlineExceeded if still failing after 10s

Async:
    >>> user = await retrykit.acall(fetch_async, max_attempts=3)

Process-wide Defaults:
    >>> retrykit.set_default_config(backoff=retrykit.CONSTANT, max_attempts=10)
    # or via environment: RETRYKIT_RETRY_MAX_ATTEMPTS=10 RETRYKIT_RETRY_BACKOFF=constant
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import Cancelled, DeadlineExceeded, ErrorCode, RetryError, classify_exception, is_cancellation

# Settings
from .foundation.config import BackoffKind, RetrykitSettings, clear_settings_cache, get_settings

# Cancellation
from .runtime.concurrency import CancelScope, sleep, sleep_async

# Logging
from .runtime.observability import configure_from_settings, configure_logging, get_logger

# Retry
from .runtime.retry import (
    CONSTANT,
    EXPONENTIAL,
    FIBONACCI,
    LINEAR,
    Backoff,
    ConstantBackoff,
    ExponentialBackoff,
    FibonacciBackoff,
    LinearBackoff,
    Retry,
    RetryConfig,
    RetryEvent,
    RetryState,
    acall,
    acall2,
    arun,
    call,
    call2,
    default_is_recoverable,
    get_default_config,
    reset_default_config,
    run,
    set_default_config,
)

__all__ = [
    "__version__",
    # Errors
    "ErrorCode",
    "RetryError",
    "Cancelled",
    "DeadlineExceeded",
    "classify_exception",
    "is_cancellation",
    # Settings
    "BackoffKind",
    "RetrykitSettings",
    "get_settings",
    "clear_settings_cache",
    # Cancellation
    "CancelScope",
    "sleep",
    "sleep_async",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    # Backoff
    "Backoff",
    "ConstantBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "CONSTANT",
    "LINEAR",
    "EXPONENTIAL",
    "FIBONACCI",
    # Retry
    "Retry",
    "RetryConfig",
    "RetryEvent",
    "RetryState",
    "default_is_recoverable",
    "get_default_config",
    "set_default_config",
    "reset_default_config",
    "run",
    "call",
    "call2",
    "arun",
    "acall",
    "acall2",
]

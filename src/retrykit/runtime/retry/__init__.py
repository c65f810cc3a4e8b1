"""Retry execution with pluggable backoff strategies.

Example:
    >>> from retrykit.runtime.retry import Retry, FibonacciBackoff
    >>>
    >>> retry = Retry(
    ...     max_attempts=5,
    ...     task_name="charge-card",
    ...     backoff=FibonacciBackoff(delay=0.2, max_delay=10.0),
    ...     is_recoverable=lambda exc: not isinstance(exc, CardDeclined),
    ... )
    >>> receipt = retry.call(lambda state: gateway.charge(order))
"""

from .backoff import (
    CONSTANT,
    EXPONENTIAL,
    FIBONACCI,
    LINEAR,
    Backoff,
    ConstantBackoff,
    ExponentialBackoff,
    FibonacciBackoff,
    LinearBackoff,
    backoff_from_settings,
    fibonacci,
)
from .config import (
    RetryConfig,
    RetryEvent,
    default_is_recoverable,
    get_default_config,
    reset_default_config,
    set_default_config,
)
from .engine import Retry, acall, acall2, arun, call, call2, run
from .state import RetryState

__all__ = [
    # Backoff strategies
    "Backoff",
    "ConstantBackoff",
    "LinearBackoff",
    "ExponentialBackoff",
    "FibonacciBackoff",
    "CONSTANT",
    "LINEAR",
    "EXPONENTIAL",
    "FIBONACCI",
    "backoff_from_settings",
    "fibonacci",
    # Configuration
    "RetryConfig",
    "RetryEvent",
    "default_is_recoverable",
    "get_default_config",
    "set_default_config",
    "reset_default_config",
    # Execution
    "Retry",
    "RetryState",
    "run",
    "call",
    "call2",
    "arun",
    "acall",
    "acall2",
]

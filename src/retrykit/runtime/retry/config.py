"""Retry configuration and the process-wide defaults registry.

RetryConfig is immutable. Build variants with the fluent ``with_*`` methods or
``replace()``; each returns a new, validated config.

The defaults registry is seeded from environment settings on first use and
may be replaced at runtime. It is read-mostly, so it is guarded by a
readers-writer lock. Engines copy the defaults when they are constructed, so
changing the defaults never affects a retry already in progress.

Example:
    >>> config = (
    ...     RetryConfig()
    ...     .with_task_name("fetch-user")
    ...     .with_max_attempts(5)
    ...     .with_backoff(FibonacciBackoff(delay=0.1, max_delay=5.0))
    ... )
    >>> set_default_config(max_attempts=-1)  # retry forever by default
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Callable, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from retrykit.foundation.config import RetrySettings, get_settings
from retrykit.foundation.errors import is_cancellation
from retrykit.runtime.concurrency import ReadWriteLock
from retrykit.runtime.observability import StructuredLogger

from .backoff import EXPONENTIAL, Backoff, backoff_from_settings

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TASK_NAME = "default"


def default_is_recoverable(exc: BaseException) -> bool:
    """Everything is worth retrying except cancellation and expired deadlines."""
    return not is_cancellation(exc)


@dataclass(frozen=True, slots=True)
class RetryEvent:
    """Diagnostic record emitted when a retry is scheduled.

    Attributes:
        task_name: Label of the retried operation
        attempt: Number of the retry about to happen (1 = first retry)
        max_attempts: Configured budget (negative = unbounded)
        delay: Seconds the engine will wait before the retry
        error: Failure that triggered the retry
    """

    task_name: str
    attempt: int
    max_attempts: int
    delay: float
    error: Exception


class RetryConfig(BaseModel):
    """Immutable retry configuration.

    Attributes:
        max_attempts: Retries after the first try (0 = never retry, negative = forever)
        task_name: Diagnostic label used in logs and exception notes
        backoff: Strategy computing the wait before each retry
        is_recoverable: Predicate deciding whether a failure is retried at all
        on_retry: Optional hook called with a RetryEvent before each wait
        logger: Structured logger receiving retry diagnostics (default: retrykit.retry)
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Backoff / StructuredLogger protocols
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    task_name: Annotated[str, Field(min_length=1)] = DEFAULT_TASK_NAME
    backoff: Backoff = Field(default_factory=lambda: EXPONENTIAL, repr=False)
    is_recoverable: Callable[[Exception], bool] = Field(default=default_is_recoverable, exclude=True, repr=False)
    on_retry: Callable[[RetryEvent], None] | None = Field(default=None, exclude=True, repr=False)
    logger: StructuredLogger | None = Field(default=None, exclude=True, repr=False)

    @field_validator("task_name", mode="before")
    @classmethod
    def _default_task_name(cls, v: object) -> object:
        """Blank names fall back to the default label."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_TASK_NAME
        return v

    @computed_field
    @property
    def unbounded(self) -> bool:
        """Whether retries continue until success, stop or cancellation."""
        return self.max_attempts < 0

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None) -> Self:
        """Build a config from RetrySettings (defaults to get_settings().retry)."""
        settings = settings or get_settings().retry
        return cls(
            max_attempts=settings.max_attempts,
            task_name=settings.task_name,
            backoff=backoff_from_settings(settings),
        )

    def allows_retry(self, attempts: int) -> bool:
        """Whether the budget permits a retry numbered ``attempts``."""
        return self.max_attempts < 0 or attempts <= self.max_attempts

    def replace(self, **changes: Any) -> Self:
        """Return a validated copy with the given fields changed."""
        fields = type(self).model_fields
        if unknown := changes.keys() - fields.keys():
            raise TypeError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        return type(self)(**{name: getattr(self, name) for name in fields} | changes)

    def with_max_attempts(self, attempts: int) -> Self:
        return self.replace(max_attempts=attempts)

    def with_task_name(self, name: str) -> Self:
        return self.replace(task_name=name)

    def with_backoff(self, backoff: Backoff) -> Self:
        return self.replace(backoff=backoff)

    def with_recoverable(self, predicate: Callable[[Exception], bool]) -> Self:
        return self.replace(is_recoverable=predicate)

    def with_on_retry(self, hook: Callable[[RetryEvent], None] | None) -> Self:
        return self.replace(on_retry=hook)

    def with_logger(self, logger: StructuredLogger | None) -> Self:
        return self.replace(logger=logger)


# ─────────────────────────────────────────────────────────────────────────────
# Defaults registry
# ─────────────────────────────────────────────────────────────────────────────

_defaults_lock = ReadWriteLock()
_defaults: RetryConfig | None = None


def get_default_config() -> RetryConfig:
    """Current process-wide defaults, seeded from settings on first use."""
    global _defaults
    with _defaults_lock.read():
        if _defaults is not None:
            return _defaults
    with _defaults_lock.write():
        if _defaults is None:
            _defaults = RetryConfig.from_settings()
        return _defaults


def set_default_config(config: RetryConfig | None = None, **options: Any) -> RetryConfig:
    """Replace the process-wide defaults.

    Args:
        config: New base config (default: the current defaults)
        **options: Fields to override on top of the base

    Returns:
        The new defaults
    """
    global _defaults
    with _defaults_lock.write():
        if config is None:
            config = _defaults if _defaults is not None else RetryConfig.from_settings()
        _defaults = config.replace(**options) if options else config
        return _defaults


def reset_default_config() -> None:
    """Drop customized defaults; the next read reseeds them from settings."""
    global _defaults
    with _defaults_lock.write():
        _defaults = None

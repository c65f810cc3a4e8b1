"""Backoff strategies for retry delays.

Provides pluggable delay calculation between retry attempts:
- ConstantBackoff: Fixed delay
- LinearBackoff: Delay grows by one base step per failure, with cap
- ExponentialBackoff: Delay multiplied per failure, with cap
- FibonacciBackoff: Delay follows the Fibonacci sequence, with cap

Every strategy is an immutable value, safe to share between any number of
concurrent retriers. ``next_delay(failures)`` takes the number of consecutive
failures so far (1 = first failure); ``next_delay(0)`` returns the base delay
untouched.

Jitter is an additive spread of ``base * jitter * U`` with ``U`` drawn uniformly
from [-1, 1], applied after the cap and followed by a clamp to [0, max_delay].
Jitter keeps many callers that failed against the same target at the same
moment from retrying in lockstep.

Invalid configuration is normalized instead of rejected: a missing or
non-positive delay becomes 50ms, a missing or non-positive cap becomes 30s,
and a missing or out-of-range jitter becomes 0.2. ``jitter=0.0`` disables
jitter.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from retrykit.foundation.config import BackoffKind

if TYPE_CHECKING:
    from retrykit.foundation.config import RetrySettings

DEFAULT_BASE_DELAY: float = 0.05
DEFAULT_MAX_DELAY: float = 30.0
DEFAULT_MULTIPLIER: float = 2.0
DEFAULT_JITTER: float = 0.2

# fib(48) no longer fits an unsigned 32-bit counter
FIBONACCI_MAX_INDEX = 47

_rng = random.Random()


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Implementations must be safe for concurrent use. The built-in
    strategies also expose a ``kind`` tag.
    """

    def next_delay(self, failures: int) -> float:
        """Calculate delay in seconds after the given number of consecutive failures.

        Args:
            failures: Consecutive failures so far (1 = first failure)

        Returns:
            Delay in seconds before the next attempt, never negative
        """
        ...


def _positive(value: float | None, default: float) -> float:
    return value if value is not None and value > 0 else default


def _jitter_factor(value: float | None) -> float:
    return value if value is not None and 0.0 <= value <= 1.0 else DEFAULT_JITTER


def _jittered(
    delay: float, base: float, jitter: float, rng: random.Random | None, max_delay: float | None = None,
) -> float:
    if jitter:
        delay += base * jitter * (rng or _rng).uniform(-1.0, 1.0)
    delay = max(delay, 0.0)
    return delay if max_delay is None else min(delay, max_delay)


def _fibonacci_table(size: int) -> tuple[int, ...]:
    seq = [0, 1]
    while len(seq) < size:
        seq.append(seq[-1] + seq[-2])
    return tuple(seq[:size])


_FIBONACCI = _fibonacci_table(FIBONACCI_MAX_INDEX + 1)


def fibonacci(n: int) -> int:
    """Standard Fibonacci number (fib(0)=0, fib(1)=1), index capped at 47."""
    return _FIBONACCI[min(max(n, 0), FIBONACCI_MAX_INDEX)]


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Same delay after every failure.

    Simple strategy for rate-limited APIs with known cooldown.

    Attributes:
        delay: Delay in seconds (default: 0.05)
        jitter: Jitter factor in [0, 1] (default: 0.2)
        rng: Random source for jitter; seed it for reproducible delays
    """

    kind: ClassVar[BackoffKind] = BackoffKind.CONSTANT

    delay: float | None = None
    jitter: float | None = None
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "delay", _positive(self.delay, DEFAULT_BASE_DELAY))
        object.__setattr__(self, "jitter", _jitter_factor(self.jitter))

    def next_delay(self, failures: int) -> float:
        if failures <= 0:
            return self.delay
        return _jittered(self.delay, self.delay, self.jitter, self.rng)


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Delay grows by one base step per failure.

    Delay = min(base_delay * (failures + 1), max_delay)

    Attributes:
        base_delay: Step size in seconds (default: 0.05)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        jitter: Jitter factor in [0, 1] (default: 0.2)
        rng: Random source for jitter
    """

    kind: ClassVar[BackoffKind] = BackoffKind.LINEAR

    base_delay: float | None = None
    max_delay: float | None = None
    jitter: float | None = None
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_delay", _positive(self.base_delay, DEFAULT_BASE_DELAY))
        object.__setattr__(self, "max_delay", _positive(self.max_delay, DEFAULT_MAX_DELAY))
        object.__setattr__(self, "jitter", _jitter_factor(self.jitter))

    def next_delay(self, failures: int) -> float:
        if failures <= 0:
            return self.base_delay
        d = min(self.base_delay * (failures + 1), self.max_delay)
        return _jittered(d, self.base_delay, self.jitter, self.rng, self.max_delay)


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with cap.

    Starting from base_delay, the delay is multiplied once per failure until
    it reaches max_delay, then clamped to max_delay.

    Attributes:
        base_delay: Delay after the first failure is base_delay * multiplier (default: 0.05)
        multiplier: Growth factor, ideally > 1 (default: 2.0)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        jitter: Jitter factor in [0, 1] (default: 0.2)
        rng: Random source for jitter
    """

    kind: ClassVar[BackoffKind] = BackoffKind.EXPONENTIAL

    base_delay: float | None = None
    multiplier: float | None = None
    max_delay: float | None = None
    jitter: float | None = None
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_delay", _positive(self.base_delay, DEFAULT_BASE_DELAY))
        object.__setattr__(self, "multiplier", _positive(self.multiplier, DEFAULT_MULTIPLIER))
        object.__setattr__(self, "max_delay", _positive(self.max_delay, DEFAULT_MAX_DELAY))
        object.__setattr__(self, "jitter", _jitter_factor(self.jitter))

    def next_delay(self, failures: int) -> float:
        if failures <= 0:
            return self.base_delay
        if self.multiplier <= 1.0:
            # Never grows, so the closed form cannot overflow
            d = self.base_delay * self.multiplier ** failures
        else:
            d = self.base_delay
            for _ in range(failures):
                if d >= self.max_delay:
                    break
                d *= self.multiplier
        return _jittered(min(d, self.max_delay), self.base_delay, self.jitter, self.rng, self.max_delay)


@dataclass(frozen=True, slots=True)
class FibonacciBackoff:
    """Delays follow the Fibonacci sequence: delay * fib(failures), with cap.

    Grows slower than exponential backoff, which suits long-running
    retries against services that recover gradually.

    Attributes:
        delay: Unit delay in seconds (default: 0.05)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        jitter: Jitter factor in [0, 1] (default: 0.2)
        rng: Random source for jitter
    """

    kind: ClassVar[BackoffKind] = BackoffKind.FIBONACCI

    delay: float | None = None
    max_delay: float | None = None
    jitter: float | None = None
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "delay", _positive(self.delay, DEFAULT_BASE_DELAY))
        object.__setattr__(self, "max_delay", _positive(self.max_delay, DEFAULT_MAX_DELAY))
        object.__setattr__(self, "jitter", _jitter_factor(self.jitter))

    def next_delay(self, failures: int) -> float:
        if failures <= 0:
            return self.delay
        d = min(self.delay * fibonacci(failures), self.max_delay)
        return _jittered(d, self.delay, self.jitter, self.rng, self.max_delay)


# Shared instances with library defaults
CONSTANT = ConstantBackoff()
LINEAR = LinearBackoff()
EXPONENTIAL = ExponentialBackoff()
FIBONACCI = FibonacciBackoff()


def backoff_from_settings(settings: RetrySettings) -> Backoff:
    """Build the strategy tagged by ``settings.backoff`` from its parameters."""
    match settings.backoff:
        case BackoffKind.CONSTANT:
            return ConstantBackoff(settings.base_delay, settings.jitter)
        case BackoffKind.LINEAR:
            return LinearBackoff(settings.base_delay, settings.max_delay, settings.jitter)
        case BackoffKind.EXPONENTIAL:
            return ExponentialBackoff(settings.base_delay, settings.multiplier, settings.max_delay, settings.jitter)
        case BackoffKind.FIBONACCI:
            return FibonacciBackoff(settings.base_delay, settings.max_delay, settings.jitter)
    raise ValueError(f"Unknown backoff kind: {settings.backoff}")

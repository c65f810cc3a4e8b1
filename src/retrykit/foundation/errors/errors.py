"""Error codes and exceptions raised by the retry engine.

Action failures are never wrapped: when the engine gives up because the attempt
budget ran out, the action asked to stop, or the failure was unrecoverable, the
caller gets the action's own exception back. Only outside cancellation produces
an exception of ours, so callers can tell "gave up because of the work" from
"gave up because somebody cancelled the operation".
"""

from __future__ import annotations

import asyncio
from enum import StrEnum


class ErrorCode(StrEnum):
    """Classification of a terminal retry outcome.

    ACTION_FAILED, CANCELLED and DEADLINE_EXCEEDED classify exceptions
    (see classify_exception). The remaining codes name the reason the
    engine stopped retrying an action failure and appear in logs and
    exception notes.
    """
    ACTION_FAILED = "ACTION_FAILED"
    UNRECOVERABLE = "UNRECOVERABLE"
    STOPPED = "STOPPED"
    EXHAUSTED = "EXHAUSTED"
    CANCELLED = "CANCELLED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"


class RetryError(Exception):
    """Base class for exceptions produced by retrykit itself."""

    code: ErrorCode = ErrorCode.ACTION_FAILED


class Cancelled(RetryError):
    """The operation's cancel scope was cancelled.

    Attributes:
        reason: Optional human-readable reason passed to CancelScope.cancel()
    """

    code = ErrorCode.CANCELLED

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"operation cancelled: {reason}" if reason else "operation cancelled")


class DeadlineExceeded(Cancelled, TimeoutError):
    """The operation's deadline passed.

    Subclasses TimeoutError so code that already handles stdlib timeouts
    keeps working.
    """

    code = ErrorCode.DEADLINE_EXCEEDED

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        RetryError.__init__(
            self, f"deadline exceeded after {timeout:g}s" if timeout is not None else "deadline exceeded"
        )
        self.reason = str(self)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map an exception to CANCELLED, DEADLINE_EXCEEDED or ACTION_FAILED."""
    if isinstance(exc, RetryError):
        return exc.code
    if isinstance(exc, asyncio.CancelledError):
        return ErrorCode.CANCELLED
    if isinstance(exc, TimeoutError):
        return ErrorCode.DEADLINE_EXCEEDED
    return ErrorCode.ACTION_FAILED


def is_cancellation(exc: BaseException) -> bool:
    """Whether exc signals outside cancellation or an expired deadline."""
    return classify_exception(exc) in (ErrorCode.CANCELLED, ErrorCode.DEADLINE_EXCEEDED)

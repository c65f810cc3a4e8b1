"""Per-call retry state shared between the engine and the action."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from retrykit.runtime.concurrency import CancelScope


class RetryState:
    """Mutable state of one retried operation.

    The engine creates a fresh instance for every call and hands it to each
    invocation of the action. It is owned by that call alone and is never
    shared between concurrent operations.

    Attributes:
        scope: Cancel scope of the whole operation
        task_name: Diagnostic label of the operation

    Example:
        >>> def fetch(state: RetryState) -> bytes:
        ...     if state.attempts >= 2 and cache_hit():
        ...         state.stop()  # give up after this failure
        ...     return download()
    """

    __slots__ = ("scope", "task_name", "_attempts", "_last_error", "_stop")

    def __init__(self, scope: CancelScope, task_name: str = "default") -> None:
        self.scope = scope
        self.task_name = task_name
        self._attempts = 0
        self._last_error: Exception | None = None
        self._stop = False

    @property
    def attempts(self) -> int:
        """Retries already performed (0 during the first try)."""
        return self._attempts

    @property
    def last_error(self) -> Exception | None:
        """Most recent failure, or None before the first one."""
        return self._last_error

    @property
    def stop_requested(self) -> bool:
        return self._stop

    def stop(self, stop: bool = True) -> None:
        """Ask the engine not to retry after the current failure, whatever the budget."""
        self._stop = stop

    def _record_failure(self, exc: Exception) -> None:
        self._attempts += 1
        self._last_error = exc

    def _undo_attempt(self) -> None:
        self._attempts -= 1

    def __repr__(self) -> str:
        return (
            f"RetryState(task={self.task_name!r}, attempts={self._attempts}, "
            f"stop_requested={self._stop}, last_error={self._last_error!r})"
        )

"""Cancel scopes: the cancellation and deadline signal of a retried operation.

A CancelScope is the operation context handed to the retry engine. It can be
cancelled from any thread or task, may carry a deadline, and may be nested
under a parent scope whose cancellation (and tighter deadline) it inherits.

Waiting on a scope is the only suspension point of the engine, so both a
blocking wait (threads) and an awaitable wait (asyncio) are provided. Each
races a timeout against the scope's cancellation and reports which fired.

Example:
    >>> scope = CancelScope(timeout=5.0)
    >>> if scope.wait(0.2):
    ...     raise scope.error()
    >>>
    >>> async with CancelScope(timeout=2.0) as scope:
    ...     await scope.wait_async(10.0)  # returns True after ~2s
    True
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from retrykit.foundation.errors import Cancelled, DeadlineExceeded, ErrorCode

if TYPE_CHECKING:
    from types import TracebackType


def _resolve(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)


@dataclass(slots=True, eq=False)
class CancelScope:
    """Cancellation scope with optional deadline and parent.

    Attributes:
        timeout: Seconds from construction until the scope expires (None = no deadline)
        parent: Scope whose cancellation this scope inherits

    Example:
        >>> parent = CancelScope()
        >>> child = CancelScope(parent=parent, timeout=1.0)
        >>> parent.cancel("shutting down")
        >>> child.cancel_called
        True
    """

    timeout: float | None = None
    parent: CancelScope | None = field(default=None, repr=False)
    _deadline: float | None = field(default=None, init=False, repr=False)
    _budget: float | None = field(default=None, init=False, repr=False)
    _code: ErrorCode | None = field(default=None, init=False, repr=False)
    _reason: str | None = field(default=None, init=False, repr=False)
    _event: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _callbacks: list[Callable[[], None]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.timeout is not None:
            if self.timeout < 0:
                raise ValueError(f"timeout must be >= 0, got {self.timeout}")
            self._deadline, self._budget = time.monotonic() + self.timeout, self.timeout
        if self.parent is not None:
            inherited = self.parent._deadline
            if inherited is not None and (self._deadline is None or inherited < self._deadline):
                self._deadline, self._budget = inherited, self.parent._budget
            self.parent.add_done_callback(self._on_parent_done)

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def deadline(self) -> float | None:
        """Deadline on the time.monotonic() clock, or None."""
        return self._deadline

    @property
    def cancel_called(self) -> bool:
        """Whether cancellation was requested on this scope or a parent."""
        return self._code is ErrorCode.CANCELLED

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        self._check_deadline()
        return self._code is ErrorCode.DEADLINE_EXCEEDED

    @property
    def done(self) -> bool:
        """Whether the scope was cancelled or its deadline passed."""
        return self._event.is_set() or self._check_deadline()

    def remaining(self) -> float | None:
        """Seconds left until the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def error(self) -> Cancelled | None:
        """Fresh exception describing why the scope finished, or None if still live."""
        if not self.done:
            return None
        if self._code is ErrorCode.DEADLINE_EXCEEDED:
            return DeadlineExceeded(self._budget)
        return Cancelled(self._reason)

    def raise_if_cancelled(self) -> None:
        """Raise Cancelled/DeadlineExceeded if the scope is done."""
        if (err := self.error()) is not None:
            raise err

    # ─────────────────────────────────────────────────────────────────────────
    # Cancellation
    # ─────────────────────────────────────────────────────────────────────────

    def cancel(self, reason: str | None = None) -> bool:
        """Cancel the scope. Safe to call from any thread.

        Returns:
            True if this call cancelled the scope, False if it was already done
        """
        return self._finish(ErrorCode.CANCELLED, reason)

    def add_done_callback(self, fn: Callable[[], None]) -> None:
        """Call fn once the scope finishes; immediately if it already has."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def remove_done_callback(self, fn: Callable[[], None]) -> bool:
        """Unregister a callback. Returns False if it was not registered."""
        with self._lock:
            try:
                self._callbacks.remove(fn)
            except ValueError:
                return False
            return True

    def close(self) -> None:
        """Detach from the parent scope.

        Finished scopes detach on their own; close a live child that is no
        longer needed so the parent does not keep it alive.
        """
        if self.parent is not None:
            self.parent.remove_done_callback(self._on_parent_done)

    def _finish(self, code: ErrorCode, reason: str | None) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self._code, self._reason = code, reason
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        self.close()
        for fn in callbacks:
            fn()
        return True

    def _check_deadline(self) -> bool:
        if self._deadline is not None and not self._event.is_set() and time.monotonic() >= self._deadline:
            self._finish(ErrorCode.DEADLINE_EXCEEDED, None)
        return self._event.is_set()

    def _on_parent_done(self) -> None:
        parent = self.parent
        if parent is None:
            return
        if parent._code is ErrorCode.DEADLINE_EXCEEDED:
            self._budget = parent._budget
        self._finish(parent._code or ErrorCode.CANCELLED, parent._reason)

    def _limit(self, timeout: float | None) -> tuple[float | None, bool]:
        """Effective wait limit and whether the deadline bounds it."""
        remaining = self.remaining()
        if remaining is not None and (timeout is None or remaining <= timeout):
            return remaining, True
        return timeout, False

    # ─────────────────────────────────────────────────────────────────────────
    # Waiting
    # ─────────────────────────────────────────────────────────────────────────

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the scope finishes or timeout elapses.

        Returns:
            True if the scope finished (cancelled or expired), False on timeout
        """
        if self.done:
            return True
        limit, by_deadline = self._limit(timeout)
        if self._event.wait(limit):
            return True
        if by_deadline:
            self._finish(ErrorCode.DEADLINE_EXCEEDED, None)
            return True
        return False

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Await until the scope finishes or timeout elapses.

        Cancellation from other threads wakes the waiter through the
        event loop. The waiter is unregistered on every exit path.

        Returns:
            True if the scope finished (cancelled or expired), False on timeout
        """
        if self.done:
            return True
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()

        def wake() -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve, waiter)

        self.add_done_callback(wake)
        try:
            limit, by_deadline = self._limit(timeout)
            finished, _ = await asyncio.wait({waiter}, timeout=limit)
        finally:
            self.remove_done_callback(wake)
            waiter.cancel()
        if finished:
            return True
        if by_deadline:
            self._finish(ErrorCode.DEADLINE_EXCEEDED, None)
            return True
        return False

    # ─────────────────────────────────────────────────────────────────────────
    # Context managers
    # ─────────────────────────────────────────────────────────────────────────

    def __enter__(self) -> CancelScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        self.close()
        return False

    async def __aenter__(self) -> CancelScope:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        self.close()
        return False

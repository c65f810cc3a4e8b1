"""Retry engine: runs an action until it succeeds or a terminal condition is hit.

The action receives a RetryState and either returns a result or raises. After
a failure the engine:

1. counts the failure and records it as ``state.last_error``
2. asks ``is_recoverable`` once; an unrecoverable failure stops retrying
3. if not stopped and the budget allows, waits ``backoff.next_delay(attempts)``
   while watching the operation's cancel scope, then invokes the action again
4. otherwise re-raises the action's own exception

``state.attempts`` always counts retries already performed: the increment is
undone whenever the engine gives up without scheduling another attempt.

If the scope is cancelled (or its deadline passes) during a wait, the engine
raises Cancelled / DeadlineExceeded chained from the last failure. An action
already running is never interrupted; cancellation is observed at the next
wait.

Example:
    >>> retry = Retry(max_attempts=5, task_name="fetch-user")
    >>> user = retry.call(lambda state: client.get_user(42))
    >>>
    >>> async with CancelScope(timeout=10.0) as scope:
    ...     user = await retry.acall(fetch_user, scope=scope)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, Callable, TypeVar

from retrykit.foundation.errors import Cancelled, ErrorCode
from retrykit.runtime.concurrency import CancelScope, sleep, sleep_async
from retrykit.runtime.observability import get_logger

from .config import RetryConfig, RetryEvent, get_default_config
from .state import RetryState

T = TypeVar("T")
U = TypeVar("U")


_NOTE_PREFIX = "retrykit: "


def _set_note(exc: BaseException, note: str) -> None:
    """Attach note, replacing a note left by an earlier give-up on the same instance."""
    notes = getattr(exc, "__notes__", None)
    if notes:
        notes[:] = [n for n in notes if not (isinstance(n, str) and n.startswith(_NOTE_PREFIX))]
    exc.add_note(note)


def _retries(n: int) -> str:
    return f"{n} {'retry' if n == 1 else 'retries'}"


def _pair(result: object) -> tuple[Any, Any]:
    if not isinstance(result, tuple) or len(result) != 2:
        raise TypeError(f"call2 action must return a 2-tuple, got {type(result).__name__}")
    return result


class Retry:
    """Retry executor bound to one immutable RetryConfig.

    The config is fixed at construction: explicit ``config`` (or the current
    process-wide defaults) with ``**options`` applied on top. A Retry holds no
    per-call state, so one instance may serve many concurrent calls.

    Args:
        config: Base configuration (default: get_default_config())
        **options: RetryConfig fields to override (max_attempts, task_name,
            backoff, is_recoverable, on_retry, logger)

    Example:
        >>> retry = Retry(backoff=LinearBackoff(base_delay=0.5), max_attempts=-1)
        >>> retry.run(lambda state: sync_inventory())
    """

    __slots__ = ("_config", "_log")

    def __init__(self, config: RetryConfig | None = None, **options: Any) -> None:
        base = config if config is not None else get_default_config()
        self._config = base.replace(**options) if options else base
        self._log = (self._config.logger or get_logger("retrykit.retry")).bind(task=self._config.task_name)

    @property
    def config(self) -> RetryConfig:
        return self._config

    # ─────────────────────────────────────────────────────────────────────────
    # Sync API
    # ─────────────────────────────────────────────────────────────────────────

    def run(self, action: Callable[[RetryState], object], *, scope: CancelScope | None = None) -> None:
        """Retry an action whose result is ignored."""
        self._execute(action, scope)

    def call(self, action: Callable[[RetryState], T], *, scope: CancelScope | None = None) -> T:
        """Retry an action and return its result."""
        return self._execute(action, scope)

    def call2(
        self, action: Callable[[RetryState], tuple[T, U]], *, scope: CancelScope | None = None,
    ) -> tuple[T, U]:
        """Retry an action returning a pair and return both values."""
        return _pair(self._execute(action, scope))

    def _execute(self, action: Callable[[RetryState], T], scope: CancelScope | None) -> T:
        scope = scope if scope is not None else CancelScope()
        state = RetryState(scope, self._config.task_name)
        while True:
            try:
                return action(state)
            except Exception as exc:
                delay = self._schedule(state, exc)
                if delay is None:
                    raise
                if not sleep(scope, delay):
                    raise self._cancelled(state, exc) from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Async API
    # ─────────────────────────────────────────────────────────────────────────

    async def arun(
        self, action: Callable[[RetryState], Awaitable[object]], *, scope: CancelScope | None = None,
    ) -> None:
        """Retry a coroutine function whose result is ignored."""
        await self._aexecute(action, scope)

    async def acall(
        self, action: Callable[[RetryState], Awaitable[T]], *, scope: CancelScope | None = None,
    ) -> T:
        """Retry a coroutine function and return its result."""
        return await self._aexecute(action, scope)

    async def acall2(
        self, action: Callable[[RetryState], Awaitable[tuple[T, U]]], *, scope: CancelScope | None = None,
    ) -> tuple[T, U]:
        """Retry a coroutine function returning a pair and return both values."""
        return _pair(await self._aexecute(action, scope))

    async def _aexecute(self, action: Callable[[RetryState], Awaitable[T]], scope: CancelScope | None) -> T:
        scope = scope if scope is not None else CancelScope()
        state = RetryState(scope, self._config.task_name)
        while True:
            try:
                return await action(state)
            except Exception as exc:
                delay = self._schedule(state, exc)
                if delay is None:
                    raise
                try:
                    elapsed = await sleep_async(scope, delay)
                except asyncio.CancelledError:
                    state._undo_attempt()
                    raise
                if not elapsed:
                    raise self._cancelled(state, exc) from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Bookkeeping
    # ─────────────────────────────────────────────────────────────────────────

    def _schedule(self, state: RetryState, exc: Exception) -> float | None:
        """Record a failure; return the delay before the next attempt, or None to give up."""
        cfg = self._config
        state._record_failure(exc)
        recoverable = cfg.is_recoverable(exc)
        if not recoverable:
            state.stop()
        if not state.stop_requested and cfg.allows_retry(state.attempts):
            delay = cfg.backoff.next_delay(state.attempts)
            self._report(state, exc, delay)
            return delay
        state._undo_attempt()
        if not recoverable:
            reason = ErrorCode.UNRECOVERABLE
        elif state.stop_requested:
            reason = ErrorCode.STOPPED
        else:
            reason = ErrorCode.EXHAUSTED
        self._give_up(state, exc, reason)
        return None

    def _emit(self, level: str, event: str, **kw: Any) -> None:
        try:
            getattr(self._log, level)(event, **kw)
        except Exception:  # noqa: BLE001
            pass  # A failing sink cannot report its own failure

    def _report(self, state: RetryState, exc: Exception, delay: float) -> None:
        cfg = self._config
        self._emit(
            "info", "retry scheduled", attempt=state.attempts, max_attempts=cfg.max_attempts,
            delay=round(delay, 6), error=repr(exc),
        )
        if cfg.on_retry is None:
            return
        try:
            cfg.on_retry(RetryEvent(cfg.task_name, state.attempts, cfg.max_attempts, delay, exc))
        except Exception as hook_exc:
            self._emit("warning", "on_retry hook failed", error=repr(hook_exc))

    def _give_up(self, state: RetryState, exc: BaseException, reason: ErrorCode) -> None:
        _set_note(exc, f"{_NOTE_PREFIX}task {state.task_name!r} gave up after {_retries(state.attempts)} ({reason.lower()})")
        self._emit("debug", "retry gave up", attempts=state.attempts, reason=reason.value, error=repr(exc))

    def _cancelled(self, state: RetryState, exc: Exception) -> Cancelled:
        state._undo_attempt()
        err = state.scope.error()
        if err is None:
            raise RuntimeError("retry wait was interrupted but the cancel scope is still live")
        self._give_up(state, err, err.code)
        return err

    def __repr__(self) -> str:
        cfg = self._config
        return f"Retry(task={cfg.task_name!r}, max_attempts={cfg.max_attempts}, backoff={cfg.backoff!r})"


# ─────────────────────────────────────────────────────────────────────────────
# One-shot helpers
# ─────────────────────────────────────────────────────────────────────────────


def run(
    action: Callable[[RetryState], object], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> None:
    """Retry an action once-off. See Retry for options."""
    Retry(config, **options).run(action, scope=scope)


def call(
    action: Callable[[RetryState], T], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> T:
    """Retry an action once-off and return its result."""
    return Retry(config, **options).call(action, scope=scope)


def call2(
    action: Callable[[RetryState], tuple[T, U]], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> tuple[T, U]:
    """Retry an action returning a pair once-off."""
    return Retry(config, **options).call2(action, scope=scope)


async def arun(
    action: Callable[[RetryState], Awaitable[object]], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> None:
    await Retry(config, **options).arun(action, scope=scope)


async def acall(
    action: Callable[[RetryState], Awaitable[T]], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> T:
    return await Retry(config, **options).acall(action, scope=scope)


async def acall2(
    action: Callable[[RetryState], Awaitable[tuple[T, U]]], *, scope: CancelScope | None = None,
    config: RetryConfig | None = None, **options: Any,
) -> tuple[T, U]:
    return await Retry(config, **options).acall2(action, scope=scope)

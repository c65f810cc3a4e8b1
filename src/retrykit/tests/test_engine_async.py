"""Tests for the asyncio retry engine."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from retrykit import (
    Cancelled,
    CancelScope,
    ConstantBackoff,
    DeadlineExceeded,
    Retry,
    RetryState,
    acall,
    acall2,
    arun,
)

FAST = ConstantBackoff(delay=0.001, jitter=0.0)
SLOW = ConstantBackoff(delay=5.0, jitter=0.0)


class Boom(Exception):
    pass


def flaky(failures: int, result: object = "ok") -> tuple[list[RetryState], object]:
    """Coroutine action failing ``failures`` times, plus the list of states it saw."""
    seen: list[RetryState] = []

    async def action(state: RetryState) -> object:
        seen.append(state)
        await asyncio.sleep(0)
        if len(seen) <= failures:
            raise Boom(f"failure {len(seen)}")
        return result

    return seen, action


@pytest.mark.asyncio
async def test_acall_success() -> None:
    seen, action = flaky(0, result=7)
    assert await Retry(backoff=FAST).acall(action) == 7
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_acall_eventual_success() -> None:
    seen, action = flaky(2)
    assert await Retry(max_attempts=3, backoff=FAST).acall(action) == "ok"
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_acall_exhaustion_reraises() -> None:
    seen, action = flaky(100)
    with pytest.raises(Boom, match="failure 3"):
        await Retry(max_attempts=2, backoff=FAST).acall(action)
    assert len(seen) == 3
    assert seen[0].attempts == 2


@pytest.mark.asyncio
async def test_arun_and_acall2() -> None:
    _, action = flaky(1, result=("a", "b"))
    assert await Retry(backoff=FAST).acall2(action) == ("a", "b")
    _, action = flaky(1)
    assert await Retry(backoff=FAST).arun(action) is None


@pytest.mark.asyncio
async def test_acall2_rejects_non_pair() -> None:
    _, action = flaky(0, result=[1, 2])
    with pytest.raises(TypeError):
        await Retry(backoff=FAST).acall2(action)


@pytest.mark.asyncio
async def test_cancel_on_loop_interrupts_wait() -> None:
    seen, action = flaky(10_000)
    scope = CancelScope()
    asyncio.get_running_loop().call_later(0.05, scope.cancel, "user abort")
    started = time.monotonic()
    with pytest.raises(Cancelled, match="user abort") as info:
        await Retry(max_attempts=-1, backoff=SLOW).arun(action, scope=scope)
    assert time.monotonic() - started < 2.0
    assert isinstance(info.value.__cause__, Boom)
    assert len(seen) == 1
    assert seen[0].attempts == 0


@pytest.mark.asyncio
async def test_cancel_from_thread_interrupts_wait() -> None:
    seen, action = flaky(10_000)
    scope = CancelScope()
    timer = threading.Timer(0.05, scope.cancel)
    timer.start()
    try:
        with pytest.raises(Cancelled):
            await Retry(max_attempts=-1, backoff=SLOW).arun(action, scope=scope)
    finally:
        timer.cancel()
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_deadline_interrupts_wait() -> None:
    seen, action = flaky(10_000)
    started = time.monotonic()
    async with CancelScope(timeout=0.05) as scope:
        with pytest.raises(DeadlineExceeded):
            await Retry(max_attempts=-1, backoff=SLOW).arun(action, scope=scope)
    assert time.monotonic() - started < 2.0
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_task_cancellation_propagates() -> None:
    """asyncio cancellation is never swallowed or retried."""
    seen, action = flaky(10_000)
    task = asyncio.create_task(Retry(max_attempts=-1, backoff=SLOW).arun(action))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(seen) == 1
    assert seen[0].attempts == 0


@pytest.mark.asyncio
async def test_cancelled_error_inside_action_is_not_retried() -> None:
    calls = 0

    async def action(state: RetryState) -> None:
        nonlocal calls
        calls += 1
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await Retry(max_attempts=5, backoff=FAST).arun(action)
    assert calls == 1


@pytest.mark.asyncio
async def test_module_level_async_helpers() -> None:
    _, action = flaky(1)
    assert await acall(action, backoff=FAST) == "ok"
    _, action = flaky(0, result=(1, 2))
    assert await acall2(action) == (1, 2)
    _, action = flaky(2)
    with pytest.raises(Boom):
        await arun(action, max_attempts=1, backoff=FAST)


@pytest.mark.asyncio
async def test_concurrent_calls_share_one_engine() -> None:
    retry = Retry(max_attempts=5, backoff=FAST)
    actions = [flaky(n, result=n) for n in range(4)]
    results = await asyncio.gather(*(retry.acall(action) for _, action in actions))
    assert results == [0, 1, 2, 3]
    assert [len(seen) for seen, _ in actions] == [1, 2, 3, 4]

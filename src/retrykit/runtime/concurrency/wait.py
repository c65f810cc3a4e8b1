"""Cancellable waits used between retry attempts.

A plain time.sleep() or asyncio.sleep() cannot be interrupted by the
operation's cancel scope. These helpers race the delay against the scope
and report whether the full delay elapsed.

Example:
    >>> scope = CancelScope(timeout=1.0)
    >>> sleep(scope, 0.1)
    True
    >>> sleep(scope, 5.0)  # deadline fires first
    False
"""

from __future__ import annotations

from .scope import CancelScope


def sleep(scope: CancelScope, delay: float) -> bool:
    """Block for delay seconds unless the scope finishes first.

    Returns:
        True if the delay elapsed, False if the scope was cancelled or expired
    """
    return not scope.wait(max(delay, 0.0))


async def sleep_async(scope: CancelScope, delay: float) -> bool:
    """Await delay seconds unless the scope finishes first.

    The internal timer and waiter are released on both paths.

    Returns:
        True if the delay elapsed, False if the scope was cancelled or expired
    """
    return not await scope.wait_async(max(delay, 0.0))


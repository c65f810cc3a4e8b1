"""Concurrency primitives for the retry engine.

Key Components:
    - CancelScope: Cancellation and deadline signal of one operation
    - sleep / sleep_async: Waits that a cancel scope can interrupt
    - ReadWriteLock: Guards read-mostly shared state

Example:
    >>> from retrykit.runtime.concurrency import CancelScope, sleep
    >>> with CancelScope(timeout=3.0) as scope:
    ...     finished = sleep(scope, 1.0)
"""

from __future__ import annotations

from .scope import CancelScope
from .sync import ReadWriteLock
from .wait import sleep, sleep_async

__all__ = [
    "CancelScope",
    "ReadWriteLock",
    "sleep",
    "sleep_async",
]

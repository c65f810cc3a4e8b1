"""Tests for RetryConfig and the process-wide defaults registry."""

from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from retrykit import (
    CONSTANT,
    EXPONENTIAL,
    Cancelled,
    FibonacciBackoff,
    LinearBackoff,
    RetryConfig,
    default_is_recoverable,
    get_default_config,
    get_logger,
    reset_default_config,
    set_default_config,
)
from retrykit.foundation.config import BackoffKind, RetrySettings, clear_settings_cache
from retrykit.runtime.concurrency import ReadWriteLock


def test_defaults() -> None:
    config = RetryConfig()
    assert config.max_attempts == 3
    assert config.task_name == "default"
    assert config.backoff is EXPONENTIAL
    assert config.is_recoverable is default_is_recoverable
    assert config.on_retry is None
    assert config.logger is None
    assert not config.unbounded


def test_default_predicate() -> None:
    assert default_is_recoverable(ValueError())
    assert not default_is_recoverable(Cancelled())
    assert not default_is_recoverable(TimeoutError())


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_task_name_uses_default(name: str | None) -> None:
    assert RetryConfig(task_name=name).task_name == "default"


def test_budget() -> None:
    assert RetryConfig(max_attempts=-1).unbounded
    assert RetryConfig(max_attempts=-1).allows_retry(10**9)
    assert RetryConfig(max_attempts=2).allows_retry(2)
    assert not RetryConfig(max_attempts=2).allows_retry(3)
    assert not RetryConfig(max_attempts=0).allows_retry(1)


def test_builders_return_new_configs() -> None:
    base = RetryConfig()
    log = get_logger("test")
    hook = print
    derived = (
        base.with_max_attempts(9)
        .with_task_name("sync")
        .with_backoff(CONSTANT)
        .with_recoverable(lambda exc: True)
        .with_on_retry(hook)
        .with_logger(log)
    )
    assert (derived.max_attempts, derived.task_name, derived.backoff) == (9, "sync", CONSTANT)
    assert derived.on_retry is hook
    assert derived.logger is log
    assert base == RetryConfig()


def test_config_is_frozen() -> None:
    with pytest.raises(ValidationError):
        RetryConfig().max_attempts = 5  # type: ignore[misc]


def test_replace_validates() -> None:
    with pytest.raises(TypeError, match="bogus"):
        RetryConfig().replace(bogus=1)
    with pytest.raises(ValidationError):
        RetryConfig().replace(backoff="exponential")
    with pytest.raises(ValidationError):
        RetryConfig(is_recoverable=42)


def test_custom_backoff_accepted() -> None:
    class Fixed:
        def next_delay(self, failures: int) -> float:
            return 0.5

    assert RetryConfig(backoff=Fixed()).backoff.next_delay(3) == 0.5


def test_from_settings() -> None:
    settings = RetrySettings(max_attempts=-1, task_name="worker", backoff=BackoffKind.LINEAR, base_delay=0.5, jitter=0.0)
    config = RetryConfig.from_settings(settings)
    assert config.max_attempts == -1
    assert config.task_name == "worker"
    assert config.backoff == LinearBackoff(base_delay=0.5, jitter=0.0)


# ═════════════════════════════════════════════════════════════════════════════
# Registry
# ═════════════════════════════════════════════════════════════════════════════


def test_registry_seeded_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRYKIT_RETRY_MAX_ATTEMPTS", "8")
    monkeypatch.setenv("RETRYKIT_RETRY_BACKOFF", "FIBONACCI")
    clear_settings_cache()
    reset_default_config()
    config = get_default_config()
    assert config.max_attempts == 8
    assert isinstance(config.backoff, FibonacciBackoff)


def test_set_and_reset_defaults() -> None:
    original = get_default_config()
    updated = set_default_config(max_attempts=10, task_name="svc")
    assert get_default_config() is updated
    assert (updated.max_attempts, updated.task_name) == (10, "svc")
    assert updated.backoff == original.backoff

    explicit = RetryConfig(max_attempts=1)
    assert set_default_config(explicit) is explicit

    reset_default_config()
    assert get_default_config() == original


def test_registry_is_thread_safe() -> None:
    errors: list[Exception] = []

    def worker(n: int) -> None:
        try:
            for _ in range(200):
                set_default_config(max_attempts=n)
                assert get_default_config().max_attempts >= 0
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []


def test_read_write_lock_excludes_writers() -> None:
    lock = ReadWriteLock()
    counter = 0

    def bump() -> None:
        nonlocal counter
        for _ in range(1000):
            with lock.write():
                counter += 1
            with lock.read():
                assert counter > 0

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counter == 4000

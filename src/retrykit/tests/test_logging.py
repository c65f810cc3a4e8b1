"""Tests for structured logging renderers and configuration."""

from __future__ import annotations

import io
import logging

import orjson
import pytest

from retrykit.foundation.config import LoggingSettings
from retrykit.runtime.observability import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    NoOpRenderer,
    StdlibRenderer,
    StructuredLogger,
    configure_from_settings,
    configure_logging,
    get_logger,
)


def test_bind_returns_new_logger() -> None:
    base = get_logger("retrykit.retry", service="api")
    bound = base.bind(task="sync")
    assert base.context == {"service": "api"}
    assert bound.context == {"service": "api", "task": "sync"}
    assert isinstance(bound, StructuredLogger)


def test_json_renderer() -> None:
    out = io.StringIO()
    configure_logging("json", "DEBUG", output=out)
    get_logger("retrykit.retry").bind(task="sync").info("retry scheduled", attempt=1, error=ValueError("x"))
    payload = orjson.loads(out.getvalue())
    assert payload["event"] == "retry scheduled"
    assert payload["level"] == "info"
    assert payload["logger"] == "retrykit.retry"
    assert payload["task"] == "sync"
    assert payload["attempt"] == 1
    assert payload["error"] == "x"
    assert "timestamp" in payload


def test_console_renderer() -> None:
    out = io.StringIO()
    BoundLogger("retrykit", {"task": "sync"}, ConsoleRenderer(output=out, show_timestamp=False)).warning(
        "on_retry hook failed", error="metrics down"
    )
    assert out.getvalue() == "[warning] on_retry hook failed error='metrics down' task=sync\n"


def test_stdlib_renderer(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="retrykit.retry"):
        BoundLogger("retrykit.retry", {"task": "sync"}, StdlibRenderer()).debug("retry gave up", attempts=2)
    record = caplog.records[-1]
    assert record.name == "retrykit.retry"
    assert record.levelno == logging.DEBUG
    assert record.getMessage() == "retry gave up attempts=2 task=sync"
    assert record.context == {"task": "sync", "attempts": 2}


def test_level_filtering() -> None:
    out = io.StringIO()
    configure_logging("json", "warning", output=out)
    log = get_logger()
    log.info("hidden")
    log.error("shown")
    lines = out.getvalue().splitlines()
    assert [orjson.loads(line)["event"] for line in lines] == ["shown"]


def test_none_format_is_silent() -> None:
    assert isinstance(configure_logging("none"), NoOpRenderer)


@pytest.mark.parametrize("fmt, level", [("xml", "INFO"), ("json", "LOUD")])
def test_invalid_configuration(fmt: str, level: str) -> None:
    with pytest.raises(ValueError):
        configure_logging(fmt, level)


def test_configure_from_settings() -> None:
    renderer = configure_from_settings(LoggingSettings(format="json", level="ERROR"))
    assert isinstance(renderer, JsonRenderer)

"""Structured logging for retry diagnostics.

The retry engine reports every scheduled retry (task, attempt, delay, error)
and every give-up through a structured logger. Output goes through a
pluggable renderer:

- StdlibRenderer: forwards to the ``logging`` module (default, plays well with apps)
- ConsoleRenderer: human-readable ``key=value`` lines on stderr
- JsonRenderer: JSON Lines via orjson for log aggregation
- NoOpRenderer: silent

Quick Start:
    >>> from retrykit.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="console", level="DEBUG")
    >>> log = get_logger("retrykit.retry").bind(task="fetch-user")
    >>> log.info("retry scheduled", attempt=1, delay=0.1)
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

if TYPE_CHECKING:
    from retrykit.foundation.config import LoggingSettings

JsonValue = Any


@runtime_checkable
class StructuredLogger(Protocol):
    """Protocol for structured loggers accepted as the retry log sink."""

    def debug(self, event: str, **kw: JsonValue) -> None: ...
    def info(self, event: str, **kw: JsonValue) -> None: ...
    def warning(self, event: str, **kw: JsonValue) -> None: ...
    def error(self, event: str, **kw: JsonValue) -> None: ...
    def bind(self, **kw: JsonValue) -> StructuredLogger: ...


@dataclass(slots=True)
class LogEntry:
    """Log entry with all bound and call-site context."""

    timestamp: float
    level: str
    event: str
    context: dict[str, JsonValue]
    logger: str = "retrykit"

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """Human-readable timestamp (HH:MM:SS.mmm)."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. Immutable - bind() returns a new logger.

    Example:
        >>> log = BoundLogger("retrykit.retry", context={"task": "sync"})
        >>> log.info("retry scheduled", attempt=2)
        # => 10:30:45.120 [info] retry scheduled attempt=2 task=sync
    """

    name: str = "retrykit"
    context: dict[str, JsonValue] = field(default_factory=dict)
    renderer: LogRenderer | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        """Create new logger with additional bound context."""
        return BoundLogger(self.name, {**self.context, **kw}, self.renderer)

    def _log(self, level: int, event: str, **kw: JsonValue) -> None:
        if level < _state.level:
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**self.context, **kw}, self.name)
        (self.renderer or _state.renderer).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: JsonValue) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: JsonValue) -> None: self._log(logging.ERROR, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


def _format_pairs(context: dict[str, JsonValue]) -> str:
    return " ".join(f"{k}={v!r}" if isinstance(v, str) and " " in v else f"{k}={v}" for k, v in sorted(context.items()))


@dataclass(slots=True)
class StdlibRenderer:
    """Forward entries to the stdlib ``logging`` logger named after the BoundLogger."""

    def render(self, entry: LogEntry) -> None:
        level = logging.getLevelName(entry.level.upper())
        pairs = _format_pairs(entry.context)
        logging.getLogger(entry.logger).log(
            level, f"{entry.event} {pairs}" if pairs else entry.event, extra={"context": entry.context}
        )


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable console output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    show_timestamp: bool = True

    def render(self, entry: LogEntry) -> None:
        parts = [entry.ts_human] if self.show_timestamp else []
        parts += [f"[{entry.level}]", entry.event]
        if pairs := _format_pairs(entry.context):
            parts.append(pairs)
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation (Elasticsearch, Loki, Datadog, etc.)."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        import orjson
        payload = {"timestamp": entry.ts_iso, "level": entry.level, "logger": entry.logger,
                   "event": entry.event, **entry.context}
        print(orjson.dumps(payload, option=orjson.OPT_NON_STR_KEYS, default=str).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class _LoggingState:
    renderer: LogRenderer = field(default_factory=StdlibRenderer)
    level: int = logging.DEBUG


_state = _LoggingState()


def configure_logging(
    format: str = "stdlib",  # noqa: A002 - shadows builtin but matches stdlib
    level: str = "INFO",
    *,
    output: TextIO | None = None,
) -> LogRenderer:
    """Configure global structured logging. Format: "stdlib", "console", "json", "none"."""
    if not isinstance(numeric := logging.getLevelName(level.upper()), int):
        raise ValueError(f"Unknown level: {level}")
    match format:
        case "stdlib": renderer: LogRenderer = StdlibRenderer()
        case "console": renderer = ConsoleRenderer(output=output or sys.stderr)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'stdlib', 'console', 'json', or 'none'")
    _state.renderer, _state.level = renderer, numeric
    return renderer


def configure_from_settings(settings: LoggingSettings | None = None) -> LogRenderer:
    """Configure logging from LoggingSettings (defaults to get_settings().logging)."""
    if settings is None:
        from retrykit.foundation.config import get_settings
        settings = get_settings().logging
    return configure_logging(settings.format, settings.level)


def reset_logging() -> None:
    """Restore the default stdlib renderer with no level filtering."""
    _state.renderer, _state.level = StdlibRenderer(), logging.DEBUG


def get_logger(name: str = "retrykit", **initial_context: JsonValue) -> BoundLogger:
    """Get a structured logger with optional initial context."""
    return BoundLogger(name, dict(initial_context))

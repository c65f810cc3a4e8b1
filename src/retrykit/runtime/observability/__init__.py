"""Observability for retry execution: structured logging with pluggable renderers."""

from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    NoOpRenderer,
    StdlibRenderer,
    StructuredLogger,
    configure_from_settings,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "BoundLogger",
    "StructuredLogger",
    "LogEntry",
    "LogRenderer",
    "StdlibRenderer",
    "ConsoleRenderer",
    "JsonRenderer",
    "NoOpRenderer",
    "configure_logging",
    "configure_from_settings",
    "reset_logging",
    "get_logger",
]

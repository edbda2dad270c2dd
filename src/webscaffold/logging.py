"""Logging configuration for webscaffold.

Two structlog loggers exist per registry: a console logger used during boot
and a database logger that writes records into the log store once it has
been migrated. A failing database write is reported on the console logger
and never raised to the caller.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Protocol

import structlog

_SHARED_PROCESSORS = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
)

_LEVEL_ALIASES = {"exception": "error", "warn": "warning", "fatal": "critical", "msg": "info"}


class LogWriter(Protocol):
    def log_create(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        *,
        time: datetime | None = None,
    ) -> str:
        ...


def configure_logging(*, debug: bool = False, json_output: bool = False) -> None:
    """Configure stdlib logging and structlog for the process."""

    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def create_console_logger(
    *,
    stream: IO[str] | None = None,
    level: int = logging.DEBUG,
) -> structlog.typing.FilteringBoundLogger:
    """Return the boot logger: coloured key/value lines on standard output."""

    output = stream or sys.stdout
    colors = bool(getattr(output, "isatty", lambda: False)())
    return structlog.wrap_logger(
        structlog.PrintLogger(file=output),
        processors=[*_SHARED_PROCESSORS, structlog.dev.ConsoleRenderer(colors=colors)],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


class _DatabaseSink:
    """Final destination of the database logger."""

    def __init__(self, writer: LogWriter, fallback: Any) -> None:
        self._writer = writer
        self._fallback = fallback

    def _write(self, method: str, **event: Any) -> None:
        level = str(event.pop("level", _LEVEL_ALIASES.get(method, method)))
        message = str(event.pop("event", ""))
        stamp = event.pop("timestamp", None)
        try:
            when = datetime.fromisoformat(stamp) if stamp else datetime.now(timezone.utc)
        except ValueError:
            when = datetime.now(timezone.utc)
        event.pop("exc_info", None)
        try:
            self._writer.log_create(level, message, event, time=when)
        except Exception as exc:
            try:
                self._fallback.error("logger.database.write_failed", error=str(exc))
                getattr(self._fallback, level, self._fallback.info)(message, **event)
            except Exception:  # pragma: no cover - console output unavailable
                pass

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def write(**event: Any) -> None:
            self._write(name, **event)

        return write


def _as_kwargs(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Make context values JSON friendly before they reach the sink."""

    return {key: _jsonable(value) for key, value in event_dict.items()}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def create_database_logger(
    writer: LogWriter,
    fallback: Any,
    *,
    level: int = logging.DEBUG,
) -> structlog.typing.FilteringBoundLogger:
    """Return a logger whose records are stored through ``writer.log_create``."""

    return structlog.wrap_logger(
        _DatabaseSink(writer, fallback),
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            _as_kwargs,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


__all__ = ["configure_logging", "create_console_logger", "create_database_logger"]

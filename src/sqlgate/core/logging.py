"""
sqlgate logging - structured logging and the executor diagnostics sink.

Executors never reach for a global logger. They are handed a
``Diagnostics`` collaborator at construction; the default one forwards
debug events to structlog, tests pass ``NullDiagnostics`` or
``RecordingDiagnostics``.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                    Logging Architecture                      │
        └─────────────────────────────────────────────────────────────┘

        configure_logging(level="DEBUG", json_format=True)
            ↓
        structlog processor chain:
            1. TimeStamper(iso)
            2. add_log_level / add_logger_name
            3. add_service_metadata
            4. elasticsearch_compatible (JSON only)
            5. JSONRenderer  |  ConsoleRenderer

        StatementExecutor(diagnostics=StructlogDiagnostics())
            diagnostics.debug("executing_query", sql="SELECT 1")
            ↓
        {"event": "executing_query", "sql": "SELECT 1",
         "log.level": "debug", "service.name": "sqlgate", ...}

Examples:
    >>> from sqlgate.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("executing_query", sql="SELECT 1")

Tags:
    logging, structlog, observability, diagnostics, sqlgate
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "sqlgate"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "sqlgate",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


# ── Diagnostics collaborators ────────────────────────────────────────────


class StructlogDiagnostics:
    """Forwards executor trace events to a structlog logger at debug level."""

    def __init__(self, logger: Any = None, **bound: Any):
        self._logger = logger or get_logger("sqlgate.executor")
        if bound:
            self._logger = self._logger.bind(**bound)

    def debug(self, event: str, **fields: Any) -> None:
        self._logger.debug(event, **fields)


class NullDiagnostics:
    """Discards everything."""

    def debug(self, event: str, **fields: Any) -> None:
        return None


class RecordingDiagnostics:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def debug(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]

    def values(self, key: str) -> list[Any]:
        return [fields[key] for _, fields in self.events if key in fields]

    def clear(self) -> None:
        self.events.clear()


__all__ = [
    "configure_logging",
    "get_logger",
    "StructlogDiagnostics",
    "NullDiagnostics",
    "RecordingDiagnostics",
]

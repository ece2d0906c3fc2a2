"""Build executors from settings.

Each ``create_*`` function reads a :class:`GatewaySettings` instance and
returns the matching component, so callers wire the gateway from
environment variables without touching backend classes directly.
"""

from __future__ import annotations

from typing import Any

from sqlgate.core.connection import OfflineConnection, create_connection
from sqlgate.core.dialect import Dialect, get_dialect
from sqlgate.core.executor import StatementExecutor
from sqlgate.core.logging import StructlogDiagnostics, configure_logging
from sqlgate.core.settings import GatewaySettings


def create_dialect(settings: GatewaySettings) -> Dialect:
    return get_dialect(settings.resolved_dialect_name)


def create_gateway_connection(settings: GatewaySettings) -> Any:
    """Open the configured connection, or an inert one in offline mode."""
    if settings.offline:
        return OfflineConnection(f"offline:{settings.resolved_dialect_name}")
    conn, _info = create_connection(settings.database_url)
    return conn


def create_executor(
    settings: GatewaySettings | None = None,
    *,
    configure_logs: bool = True,
) -> StatementExecutor:
    """Return a ``StatementExecutor`` wired from ``settings``.

    The returned executor borrows a connection the caller is responsible
    for closing (``executor.connection.close()``) when not offline.
    """
    settings = settings or GatewaySettings()
    if configure_logs:
        configure_logging(level=settings.log_level, json_format=settings.json_logs)
    dialect = create_dialect(settings)
    connection = create_gateway_connection(settings)
    return StatementExecutor(
        connection,
        dialect,
        diagnostics=StructlogDiagnostics(dialect=dialect.name),
    )


__all__ = [
    "create_dialect",
    "create_gateway_connection",
    "create_executor",
]

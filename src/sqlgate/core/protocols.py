"""
Canonical protocol definitions for sqlgate.

The gateway borrows everything it executes against. This module is the one
place those borrowed shapes are declared: the connection, the short-lived
execution handles it hands out, the cursor a query produces, and the
diagnostics sink executors trace to.

Architecture:
    ::

        protocols.py
        ├── DatabaseConnection  — is_offline, url, handle factories
        ├── StatementHandle     — plain execution (execute / query / update)
        ├── PreparedHandle      — parameterized execution with bound values
        ├── CallableHandle      — stored-procedure execution
        ├── Cursor              — DB-API style row cursor
        └── Diagnostics         — single-level debug trace sink

    Implementations:
        connection.DbapiConnection, connection.OfflineConnection,
        logging.StructlogDiagnostics, logging.NullDiagnostics

Guardrails:
    ❌ DON'T: Keep a handle past the call that acquired it
    ✅ DO: Close every handle in the scope that opened it

    ❌ DON'T: Share one connection across concurrent calls
    ✅ DO: Serialize access at the pool / session layer

Tags:
    protocol, connection, cursor, diagnostics, sqlgate, contracts
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Row cursor produced by a query.

    ``description`` follows DB-API 2.0: a sequence of 7-item sequences whose
    first item is the column label.
    """

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    def fetchall(self) -> list: ...

    def close(self) -> None: ...


@runtime_checkable
class StatementHandle(Protocol):
    """Plain execution resource, exclusively owned by one executor call."""

    def execute(self, sql: str) -> None:
        """Execute SQL with no typed result."""
        ...

    def execute_query(self, sql: str) -> Cursor:
        """Execute a read and return its cursor."""
        ...

    def execute_update(self, sql: str) -> int:
        """Execute a write and return the driver-reported row count."""
        ...

    def set_escape_processing(self, enabled: bool) -> None:
        """Toggle driver escape-sequence processing for subsequent calls."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class PreparedHandle(Protocol):
    """Parameterized execution resource bound to one SQL template."""

    def bind(self, parameters: Sequence[Any]) -> None:
        """Bind ordered values to the template's placeholders."""
        ...

    def execute(self) -> None: ...

    def execute_query(self) -> Cursor: ...

    def execute_update(self) -> int: ...

    def close(self) -> None: ...


@runtime_checkable
class CallableHandle(Protocol):
    """Stored-procedure execution resource bound to one call text."""

    def bind(self, parameters: Sequence[Any]) -> None: ...

    def execute(self) -> Any:
        """Run the call; returns driver output (e.g. OUT parameters)."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class DatabaseConnection(Protocol):
    """
    Connection borrowed by an executor.

    Owned by a collaborator (pool, session, CLI); the executor never closes
    it and never assumes it can be used from two calls at once.
    """

    @property
    def is_offline(self) -> bool:
        """True when the connection is inert and must not be executed against."""
        ...

    @property
    def url(self) -> str:
        """Identifying address used in error messages."""
        ...

    def create_statement(self) -> StatementHandle: ...

    def prepare_statement(self, sql: str) -> PreparedHandle: ...

    def prepare_call(self, sql: str) -> CallableHandle: ...


@runtime_checkable
class Diagnostics(Protocol):
    """Debug trace sink. Never raises, never touches the database."""

    def debug(self, event: str, **fields: Any) -> None: ...


__all__ = [
    "Cursor",
    "StatementHandle",
    "PreparedHandle",
    "CallableHandle",
    "DatabaseConnection",
    "Diagnostics",
]

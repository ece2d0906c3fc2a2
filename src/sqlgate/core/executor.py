"""
Statement executor — run statements against a borrowed connection.

``StatementExecutor`` is the gateway's dispatch primitive. Every public
operation follows the same path: render the statement for the dialect,
check the connection is online, acquire exactly one execution handle,
run a small action against it, release the handle on every exit path,
and translate any driver failure into an ``ExecutionError``.

Manifesto:
    - **Borrow, never own:** the connection belongs to the caller
    - **Scoped handles:** a handle never outlives the call that opened it
    - **Release before translate:** a failing handle is closed before the
      error is built, so a pool is never held hostage by error handling
    - **Fail fast:** no retries; offline connections fail before acquiring

Architecture:
    ::

        query / update / execute / execute_change / execute_callable
              │
              ├─ connection.is_offline?  ──► CONNECTION_UNAVAILABLE
              ▼
        StatementRenderer.render(statement, visitors)
              │
              ▼
        _dispatch(shape, rendered, action)
              │
              ▼
        _acquire(shape)  ── PLAIN    → connection.create_statement()
              │          ── PREPARED → connection.prepare_statement(sql)
              │          ── CALLABLE → connection.prepare_call(sql)
              ▼
        action(handle)  ──ok──► release ──► result
              │
              └─fail──► release ──► translate_driver_error ──► raise

    Self-executing statements (``PreparedSqlStatement``) skip the shared
    path in ``execute``: they get a ``PreparedStatementFactory`` and bind
    themselves. Closing the handle they were given still goes through
    ``_release``.

Examples:
    >>> from sqlgate.core.connection import create_connection
    >>> from sqlgate.core.dialect import get_dialect
    >>> from sqlgate.core.statements import RawSqlStatement
    >>> conn, _ = create_connection()
    >>> executor = StatementExecutor(conn, get_dialect("sqlite"))
    >>> executor.query(RawSqlStatement("SELECT 1 AS one")).to_list()
    [{'ONE': 1}]

Guardrails:
    ❌ DON'T: Call query/update with statements that split into many strings
    ✅ DO: Use execute() for multi-string scripts

    ❌ DON'T: Share one executor across threads
    ✅ DO: One executor per borrowed connection per thread

Tags:
    executor, dispatch, resource-lifecycle, error-translation, sqlgate
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from enum import Enum
from typing import Any

from sqlgate.core.dialect import Dialect
from sqlgate.core.errors import ExecutionError, translate_driver_error
from sqlgate.core.logging import StructlogDiagnostics
from sqlgate.core.protocols import (
    CallableHandle,
    Cursor,
    DatabaseConnection,
    Diagnostics,
    PreparedHandle,
)
from sqlgate.core.renderer import StatementRenderer, Visitors
from sqlgate.core.results import QueryResult, UpdateResult
from sqlgate.core.statements import (
    CallableSqlStatement,
    Change,
    ChangeStatement,
    PreparedSqlStatement,
    SqlStatement,
    bound_parameters,
    is_self_executing,
)


class ExecutionShape(str, Enum):
    """Which kind of handle an action runs against."""

    PLAIN = "plain"
    PREPARED = "prepared"
    CALLABLE = "callable"


_OPENERS: dict[ExecutionShape, Callable[[DatabaseConnection, str | None], Any]] = {
    ExecutionShape.PLAIN: lambda conn, sql: conn.create_statement(),
    ExecutionShape.PREPARED: lambda conn, sql: conn.prepare_statement(sql),
    ExecutionShape.CALLABLE: lambda conn, sql: conn.prepare_call(sql),
}


class _ReleasingHandle:
    """Prepared handle whose ``close()`` goes through the executor's release."""

    def __init__(self, handle: PreparedHandle, release: Callable[[Any], None]):
        self._handle = handle
        self._release = release

    def bind(self, parameters: Sequence[Any]) -> None:
        self._handle.bind(parameters)

    def execute(self) -> None:
        self._handle.execute()

    def execute_query(self) -> Cursor:
        return self._handle.execute_query()

    def execute_update(self) -> int:
        return self._handle.execute_update()

    def close(self) -> None:
        self._release(self._handle)


class PreparedStatementFactory:
    """Hands prepared handles to self-executing statements.

    With ``release`` set, closing a handed-out handle calls ``release``
    instead, so close failures are traced rather than raised.
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        release: Callable[[Any], None] | None = None,
    ):
        self.connection = connection
        self.release = release

    def create(self, sql: str) -> PreparedHandle:
        handle = self.connection.prepare_statement(sql)
        if self.release is None:
            return handle
        return _ReleasingHandle(handle, self.release)


class StatementExecutor:
    """Executes statements against one borrowed connection."""

    updates_database = True

    def __init__(
        self,
        connection: DatabaseConnection,
        dialect: Dialect,
        *,
        diagnostics: Diagnostics | None = None,
    ):
        self.connection = connection
        self.dialect = dialect
        self.renderer = StatementRenderer(dialect)
        self.diagnostics: Diagnostics = diagnostics or StructlogDiagnostics()

    # -- Read path -----------------------------------------------------------

    def query(self, statement: SqlStatement, visitors: Visitors = None) -> QueryResult:
        """Run a single-string read and materialize every row."""
        self._ensure_online()
        sql = self.renderer.render_single(statement, visitors, operation="query")
        shape = _shape_for(statement)

        def run(handle: Any) -> QueryResult:
            self.diagnostics.debug("executing_query", sql=sql)
            if shape is ExecutionShape.PREPARED:
                handle.bind(bound_parameters(statement))
                cursor = handle.execute_query()
            else:
                cursor = handle.execute_query(sql)
            return self._materialize(cursor)

        return self._dispatch(shape, [sql], run, sql=sql, operation="query")

    # -- Write path ----------------------------------------------------------

    def update(self, statement: SqlStatement, visitors: Visitors = None) -> UpdateResult:
        """Run a single-string write and report the affected row count."""
        if isinstance(statement, CallableSqlStatement):
            raise ExecutionError.unsupported(
                "Direct update using a callable statement is not implemented",
                operation="update",
            )
        self._ensure_online()
        sql = self.renderer.render_single(statement, visitors, operation="update")
        shape = _shape_for(statement)

        def run(handle: Any) -> UpdateResult:
            self.diagnostics.debug("executing_update", sql=sql)
            if shape is ExecutionShape.PREPARED:
                handle.bind(bound_parameters(statement))
                count = handle.execute_update()
            else:
                count = handle.execute_update(sql)
            # DB-API reports -1 when the count is unknown
            return UpdateResult(max(count or 0, 0))

        return self._dispatch(shape, [sql], run, sql=sql, operation="update")

    # -- Generic execute -----------------------------------------------------

    def execute(self, statement: SqlStatement, visitors: Visitors = None) -> None:
        """Execute any statement; multi-string renders run in order, fail-fast."""
        if isinstance(statement, ChangeStatement):
            self.execute_change(statement, visitors)
            return

        self._ensure_online()

        if is_self_executing(statement):
            self._execute_self(statement)
            return

        rendered = self.renderer.render(statement, visitors)

        def run(handle: Any) -> None:
            for sql in rendered:
                self.diagnostics.debug("executing_statement", sql=sql)
                if self.dialect.placeholder in sql:
                    handle.set_escape_processing(False)
                handle.execute(sql)

        self._dispatch(ExecutionShape.PLAIN, rendered, run, operation="execute")

    def execute_change(self, change: Change | ChangeStatement, visitors: Visitors = None) -> None:
        """Expand a change and execute each resulting statement in order."""
        self._ensure_online()
        wrapped = change if isinstance(change, ChangeStatement) else ChangeStatement(change)
        for statement in wrapped.expand(self.dialect):
            self.execute(statement, visitors)

    # -- Callable statements ---------------------------------------------------

    def execute_callable(
        self,
        statement: SqlStatement,
        callback: Callable[[CallableHandle], Any] | None = None,
        visitors: Visitors = None,
    ) -> Any:
        """Prepare a stored-procedure call and hand it to ``callback``.

        Without a callback the call is simply executed and the driver's
        output returned.
        """
        self._ensure_online()
        rendered = self.renderer.render(statement, visitors)
        if not rendered:
            raise ExecutionError.unsupported(
                "Callable statement rendered to no SQL", operation="execute_callable"
            )
        sql = rendered[0]

        def run(handle: Any) -> Any:
            self.diagnostics.debug("executing_callable", sql=sql)
            handle.bind(bound_parameters(statement))
            if callback is not None:
                return callback(handle)
            return handle.execute()

        return self._dispatch(
            ExecutionShape.CALLABLE, rendered, run, sql=sql, operation="execute_callable"
        )

    # -- Comments --------------------------------------------------------------

    def comment(self, message: str) -> None:
        """Forward a comment to diagnostics; nothing reaches the database."""
        self.diagnostics.debug("comment", message=message)

    # -- Internals -------------------------------------------------------------

    def _ensure_online(self) -> None:
        if self.connection.is_offline:
            raise ExecutionError.connection_unavailable(self.connection.url)

    def _execute_self(self, statement: Any) -> None:
        self.diagnostics.debug("executing_prepared", sql=getattr(statement, "sql", None))
        try:
            statement.execute(PreparedStatementFactory(self.connection, self._release))
        except Exception as exc:
            error = translate_driver_error(
                exc, [statement.sql], self.connection.url, operation="execute"
            )
            if error is exc:
                raise
            raise error from exc

    def _dispatch(
        self,
        shape: ExecutionShape,
        rendered: Sequence[str],
        action: Callable[[Any], Any],
        *,
        sql: str | None = None,
        operation: str,
    ) -> Any:
        with self._acquire(shape, sql, rendered, operation) as handle:
            return action(handle)

    @contextmanager
    def _acquire(
        self,
        shape: ExecutionShape,
        sql: str | None,
        rendered: Sequence[str],
        operation: str,
    ) -> Iterator[Any]:
        handle = None
        try:
            handle = _OPENERS[shape](self.connection, sql)
            yield handle
        except Exception as exc:
            if handle is not None:
                self._release(handle)
                handle = None
            error = translate_driver_error(
                exc, rendered, self.connection.url, operation=operation
            )
            if error is exc:
                raise
            raise error from exc
        finally:
            if handle is not None:
                self._release(handle)

    def _materialize(self, cursor: Cursor) -> QueryResult:
        try:
            return QueryResult.from_cursor(cursor)
        finally:
            self._release(cursor)

    def _release(self, resource: Any) -> None:
        try:
            resource.close()
        except Exception as exc:
            self.diagnostics.debug("release_failed", error=str(exc))


def _shape_for(statement: SqlStatement) -> ExecutionShape:
    if isinstance(statement, PreparedSqlStatement):
        return ExecutionShape.PREPARED
    return ExecutionShape.PLAIN


__all__ = [
    "ExecutionShape",
    "PreparedStatementFactory",
    "StatementExecutor",
]

"""SQL output executor — write rendered SQL to a stream instead of running it.

Used for "preview" runs: the same statements a ``StatementExecutor`` would
send to the database are rendered with the same dialect and visitors and
written to a text stream, one statement per block, each followed by the
dialect's terminator (and batch separator where the family has one).

Usage::

    import sys
    from sqlgate.core.output import SqlOutputExecutor

    out = SqlOutputExecutor(sys.stdout, get_dialect("oracle"))
    out.comment("Changeset 42")
    out.execute(RawSqlStatement("CREATE TABLE t (id NUMBER)"))
    # -- Changeset 42
    # CREATE TABLE t (id NUMBER);
    # /
"""

from __future__ import annotations

import re
from collections.abc import Callable
from functools import lru_cache
from typing import Any, TextIO

from sqlgate.core.dialect import Dialect
from sqlgate.core.errors import ExecutionError
from sqlgate.core.logging import NullDiagnostics
from sqlgate.core.protocols import Diagnostics
from sqlgate.core.renderer import StatementRenderer, Visitors
from sqlgate.core.results import QueryResult, UpdateResult
from sqlgate.core.statements import Change, ChangeStatement, SqlStatement


@lru_cache(maxsize=None)
def _trailing_separator(separator: str) -> re.Pattern[str]:
    escaped = re.escape(separator)
    # word separators (GO) only count alone on the last line
    if separator[-1:].isalnum():
        return re.compile(rf"(?:^|\n)[ \t]*{escaped}\s*$", re.IGNORECASE)
    return re.compile(rf"{escaped}\s*$")


class SqlOutputExecutor:
    """Executor surface that only writes SQL text."""

    updates_database = False

    def __init__(
        self,
        stream: TextIO,
        dialect: Dialect,
        *,
        address: str | None = None,
        diagnostics: Diagnostics | None = None,
    ):
        self.stream = stream
        self.dialect = dialect
        self.address = address or f"offline:{dialect.name}"
        self.renderer = StatementRenderer(dialect)
        self.diagnostics: Diagnostics = diagnostics or NullDiagnostics()

    def query(self, statement: SqlStatement, visitors: Visitors = None) -> QueryResult:  # noqa: ARG002
        raise ExecutionError.connection_unavailable(self.address).with_context(operation="query")

    def update(self, statement: SqlStatement, visitors: Visitors = None) -> UpdateResult:  # noqa: ARG002
        raise ExecutionError.connection_unavailable(self.address).with_context(operation="update")

    def execute(self, statement: SqlStatement, visitors: Visitors = None) -> None:
        for sql in self.renderer.render(statement, visitors):
            self._write(sql)

    def execute_change(self, change: Change | ChangeStatement, visitors: Visitors = None) -> None:
        wrapped = change if isinstance(change, ChangeStatement) else ChangeStatement(change)
        self.execute(wrapped, visitors)

    def execute_callable(
        self,
        statement: SqlStatement,
        callback: Callable[[Any], Any] | None = None,  # noqa: ARG002
        visitors: Visitors = None,
    ) -> None:
        rendered = self.renderer.render(statement, visitors)
        if rendered:
            self._write(rendered[0])

    def comment(self, message: str) -> None:
        self.stream.write(f"-- {message}\n")

    def _write(self, sql: str) -> None:
        self.diagnostics.debug("writing_statement", sql=sql)
        text = sql.rstrip()
        separator = self.dialect.batch_separator
        if separator:
            text = _trailing_separator(separator).sub("", text).rstrip()
        terminator = self.dialect.statement_terminator
        if not text.endswith(terminator):
            text += terminator
        self.stream.write(text + "\n")
        if separator:
            self.stream.write(separator + "\n")
        self.stream.write("\n")


__all__ = ["SqlOutputExecutor"]

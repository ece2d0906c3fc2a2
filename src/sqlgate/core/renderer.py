"""Statement renderer — Statement model + dialect + visitors → SQL strings.

Rendering is pure: the statement is never mutated, and the same inputs
always produce the same list of strings.

Pipeline per statement::

    statement ──► generate (per kind) ──► visitors (in order) ──► separator fix
                    │
                    └─ ChangeStatement expands first, each child rendered in turn
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Optional, Union

from sqlgate.core.dialect import Dialect
from sqlgate.core.errors import ExecutionError
from sqlgate.core.statements import (
    CallableSqlStatement,
    ChangeStatement,
    PreparedSqlStatement,
    RawSqlStatement,
    SqlStatement,
)
from sqlgate.core.visitors import SqlVisitor, apply_visitors

Visitors = Optional[Sequence[Union[SqlVisitor, Callable[[str], str]]]]


def strip_duplicate_separator(sql: str, separator: str = "/") -> str:
    """Remove one redundant trailing ``separator``.

    ``"BEGIN x; END;\\n/\\n/ "`` becomes ``"BEGIN x; END;\\n/"``. Text with a
    single trailing separator (or none) is returned unchanged, so the fix
    is idempotent.
    """
    sep = re.escape(separator)
    return re.sub(rf"{sep}\s*{sep}\s*$", separator, sql, count=1)


class StatementRenderer:
    """Renders statements for one dialect."""

    def __init__(self, dialect: Dialect):
        self.dialect = dialect

    def generate(self, statement: SqlStatement) -> list[str]:
        """Dialect-level SQL for a statement, before visitors run."""
        if isinstance(statement, ChangeStatement):
            generated: list[str] = []
            for child in statement.expand(self.dialect):
                generated.extend(self.generate(child))
            return generated
        if isinstance(statement, RawSqlStatement):
            return statement.split()
        if isinstance(statement, (PreparedSqlStatement, CallableSqlStatement)):
            return [statement.sql]
        raise TypeError(f"Cannot render {type(statement).__name__}")

    def finalize(self, sql: str, visitors: Visitors = None) -> str:
        sql = apply_visitors(sql, visitors, self.dialect)
        if self.dialect.requires_separator_fix:
            sql = strip_duplicate_separator(sql, self.dialect.batch_separator or "/")
        return sql

    def render(self, statement: SqlStatement, visitors: Visitors = None) -> list[str]:
        return [self.finalize(sql, visitors) for sql in self.generate(statement)]

    def render_single(
        self,
        statement: SqlStatement,
        visitors: Visitors = None,
        *,
        operation: str = "query",
    ) -> str:
        """Render a statement that must produce exactly one string."""
        rendered = self.render(statement, visitors)
        if len(rendered) != 1:
            raise ExecutionError.multi_statement(rendered, operation)
        return rendered[0]


def render(statement: SqlStatement, dialect: Dialect, visitors: Visitors = None) -> list[str]:
    """Functional shortcut for ``StatementRenderer(dialect).render``."""
    return StatementRenderer(dialect).render(statement, visitors)


__all__ = [
    "StatementRenderer",
    "render",
    "strip_duplicate_separator",
]

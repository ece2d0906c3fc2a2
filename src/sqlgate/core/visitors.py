"""SQL visitors — ordered text rewrites applied to rendered SQL.

A visitor takes one rendered SQL string and returns a new one. The pipeline
is a plain list; ``apply_visitors`` folds it left to right so each visitor
sees only the previous visitor's output.

Features:
    - **AppendSqlVisitor / PrependSqlVisitor:** add text at either end
    - **ReplaceSqlVisitor:** literal substring replacement
    - **RegExpReplaceSqlVisitor:** regex substitution
    - **CallableSqlVisitor:** wrap any ``(sql) -> sql`` function
    - **dbms filter:** every visitor can be limited to dialect names

Examples:
    >>> from sqlgate.core.dialect import get_dialect
    >>> pipeline = [AppendSqlVisitor(" ENGINE=InnoDB", dbms={"mysql"}),
    ...             ReplaceSqlVisitor("VARCHAR2", "VARCHAR")]
    >>> apply_visitors("CREATE TABLE t (a VARCHAR2(5))", pipeline, get_dialect("sqlite"))
    'CREATE TABLE t (a VARCHAR(5))'

Tags:
    sql-visitor, rewrite, pipeline, sqlgate
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol, runtime_checkable

from sqlgate.core.dialect import Dialect


@runtime_checkable
class SqlVisitor(Protocol):
    """One step of the visitor pipeline."""

    def applies_to(self, dialect: Dialect) -> bool: ...

    def modify_sql(self, sql: str, dialect: Dialect) -> str: ...


class _DbmsFilter:
    """Restricts a visitor to a set of dialect names (empty set = all)."""

    def __init__(self, dbms: Iterable[str] | None = None):
        self.dbms = frozenset(name.lower() for name in (dbms or ()))

    def applies_to(self, dialect: Dialect) -> bool:
        return not self.dbms or dialect.name in self.dbms


class AppendSqlVisitor(_DbmsFilter):
    def __init__(self, value: str, *, dbms: Iterable[str] | None = None):
        super().__init__(dbms)
        self.value = value

    def modify_sql(self, sql: str, dialect: Dialect) -> str:  # noqa: ARG002
        return sql + self.value

    def __repr__(self) -> str:
        return f"AppendSqlVisitor({self.value!r})"


class PrependSqlVisitor(_DbmsFilter):
    def __init__(self, value: str, *, dbms: Iterable[str] | None = None):
        super().__init__(dbms)
        self.value = value

    def modify_sql(self, sql: str, dialect: Dialect) -> str:  # noqa: ARG002
        return self.value + sql

    def __repr__(self) -> str:
        return f"PrependSqlVisitor({self.value!r})"


class ReplaceSqlVisitor(_DbmsFilter):
    """Replace every literal occurrence of ``replace`` with ``with_``."""

    def __init__(self, replace: str, with_: str, *, dbms: Iterable[str] | None = None):
        super().__init__(dbms)
        self.replace = replace
        self.with_ = with_

    def modify_sql(self, sql: str, dialect: Dialect) -> str:  # noqa: ARG002
        return sql.replace(self.replace, self.with_)

    def __repr__(self) -> str:
        return f"ReplaceSqlVisitor({self.replace!r} -> {self.with_!r})"


class RegExpReplaceSqlVisitor(_DbmsFilter):
    """Regex substitution; ``with_`` may use group references."""

    def __init__(self, pattern: str, with_: str, *, dbms: Iterable[str] | None = None):
        super().__init__(dbms)
        self.pattern = re.compile(pattern)
        self.with_ = with_

    def modify_sql(self, sql: str, dialect: Dialect) -> str:  # noqa: ARG002
        return self.pattern.sub(self.with_, sql)

    def __repr__(self) -> str:
        return f"RegExpReplaceSqlVisitor({self.pattern.pattern!r} -> {self.with_!r})"


class CallableSqlVisitor(_DbmsFilter):
    """Adapter for a plain ``(sql) -> sql`` function."""

    def __init__(self, fn: Callable[[str], str], *, dbms: Iterable[str] | None = None):
        super().__init__(dbms)
        self.fn = fn

    def modify_sql(self, sql: str, dialect: Dialect) -> str:  # noqa: ARG002
        return self.fn(sql)

    def __repr__(self) -> str:
        return f"CallableSqlVisitor({getattr(self.fn, '__name__', self.fn)!r})"


def as_visitor(visitor: SqlVisitor | Callable[[str], str]) -> SqlVisitor:
    if isinstance(visitor, SqlVisitor):
        return visitor
    if callable(visitor):
        return CallableSqlVisitor(visitor)
    raise TypeError(f"Not a SQL visitor: {visitor!r}")


def apply_visitors(
    sql: str,
    visitors: Sequence[SqlVisitor | Callable[[str], str]] | None,
    dialect: Dialect,
) -> str:
    """Run ``sql`` through every applicable visitor, in list order."""
    for visitor in visitors or ():
        step = as_visitor(visitor)
        if step.applies_to(dialect):
            sql = step.modify_sql(sql, dialect)
    return sql


__all__ = [
    "SqlVisitor",
    "AppendSqlVisitor",
    "PrependSqlVisitor",
    "ReplaceSqlVisitor",
    "RegExpReplaceSqlVisitor",
    "CallableSqlVisitor",
    "as_visitor",
    "apply_visitors",
]

"""Statement model — the executable units the gateway accepts.

Four shapes, all frozen dataclasses:

- ``RawSqlStatement``       — SQL text, optionally split into several strings
- ``PreparedSqlStatement``  — ``?`` template plus ordered bound values;
  self-executing (binds and runs itself through a handle factory)
- ``CallableSqlStatement``  — stored-procedure call text
- ``ChangeStatement``       — a higher-level ``Change`` that expands into
  zero or more of the above; never executed directly

Usage::

    from sqlgate.core.statements import PreparedSqlStatement, RawSqlStatement

    executor.execute(RawSqlStatement("CREATE TABLE t (id INTEGER)"))
    executor.execute(PreparedSqlStatement("INSERT INTO t VALUES (?)", (1,)))
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from sqlgate.core.dialect import Dialect
    from sqlgate.core.protocols import PreparedHandle


class HandleFactory(Protocol):
    """Hands out prepared handles to self-executing statements."""

    def create(self, sql: str) -> PreparedHandle: ...


@runtime_checkable
class SelfExecuting(Protocol):
    """Capability: the statement binds and runs itself."""

    def execute(self, factory: HandleFactory) -> None: ...


@runtime_checkable
class Change(Protocol):
    """Higher-level operation that expands into concrete statements."""

    def generate_statements(self, dialect: Dialect) -> Sequence[SqlStatement] | None: ...


@dataclass(frozen=True)
class RawSqlStatement:
    """Raw SQL text.

    With ``split_statements`` the text is cut wherever ``end_delimiter``
    closes a line, so one statement can render to several strings.
    """

    sql: str
    end_delimiter: str = ";"
    split_statements: bool = False

    def split(self) -> list[str]:
        if not self.split_statements:
            return [self.sql]
        return split_sql(self.sql, self.end_delimiter)


@dataclass(frozen=True)
class PreparedSqlStatement:
    """Parameterized template with ordered bound values."""

    sql: str
    parameters: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        # accept any sequence, store a tuple so the statement stays immutable
        object.__setattr__(self, "parameters", tuple(self.parameters))

    def execute(self, factory: HandleFactory) -> None:
        handle = factory.create(self.sql)
        try:
            handle.bind(self.parameters)
            handle.execute()
        finally:
            handle.close()


@dataclass(frozen=True)
class CallableSqlStatement:
    """Stored-procedure call, e.g. ``{call refresh_stats(?)}`` or ``CALL p()``."""

    sql: str
    parameters: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))


@dataclass(frozen=True)
class ChangeStatement:
    """Wraps a ``Change`` so it can flow through the same entry points."""

    change: Change

    def expand(self, dialect: Dialect) -> list[SqlStatement]:
        """Resolve into concrete statements, expanding nested changes."""
        generated = self.change.generate_statements(dialect) or ()
        expanded: list[SqlStatement] = []
        for statement in generated:
            if isinstance(statement, ChangeStatement):
                expanded.extend(statement.expand(dialect))
            else:
                expanded.append(statement)
        return expanded


SqlStatement = Union[RawSqlStatement, PreparedSqlStatement, CallableSqlStatement, ChangeStatement]


def is_self_executing(statement: object) -> bool:
    """Capability check used at the top of ``execute``."""
    return isinstance(statement, SelfExecuting)


def bound_parameters(statement: object) -> tuple[Any, ...]:
    return getattr(statement, "parameters", ())


def split_sql(sql: str, delimiter: str = ";") -> list[str]:
    """Split script text on ``delimiter`` at end of line.

    A delimiter alone on a line (``GO``, ``/``) also ends a statement.
    Word delimiters such as ``GO`` only count when alone on their line, so
    ``CARGO`` is never cut. Blank fragments are dropped and each fragment
    is stripped.
    """
    escaped = re.escape(delimiter)
    if delimiter[-1:].isalnum() or delimiter[-1:] == "_":
        source = rf"^\s*{escaped}\s*$"
    else:
        source = rf"{escaped}\s*$|^\s*{escaped}\s*$"
    pattern = re.compile(source, re.MULTILINE | re.IGNORECASE)
    parts = pattern.split(sql)
    return [part.strip() for part in parts if part.strip()]


class SimpleChange:
    """Change backed by a fixed list of statements.

    Handy for callers that already have their SQL and for tests.
    """

    def __init__(self, *statements: SqlStatement | str):
        self._statements = [
            RawSqlStatement(s) if isinstance(s, str) else s for s in statements
        ]

    def generate_statements(self, dialect: Dialect) -> list[SqlStatement]:  # noqa: ARG002
        return list(self._statements)

    def __repr__(self) -> str:
        return f"SimpleChange({len(self._statements)} statements)"


__all__ = [
    "HandleFactory",
    "SelfExecuting",
    "Change",
    "RawSqlStatement",
    "PreparedSqlStatement",
    "CallableSqlStatement",
    "ChangeStatement",
    "SqlStatement",
    "SimpleChange",
    "is_self_executing",
    "bound_parameters",
    "split_sql",
]

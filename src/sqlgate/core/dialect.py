"""SQL dialect abstraction for the execution gateway.

A ``Dialect`` tells the renderer and executors the handful of things that
differ between database families at execution time: the reserved
placeholder marker, the batch separator a script may carry, and whether
rendered text needs the duplicate-trailing-separator cleanup before it is
sent to the driver.

Manifesto:
    Statement rendering must not branch on database names scattered through
    the code. Every backend quirk lives on one dialect object.

    - **One interface:** Dialect protocol for every backend
    - **Stateless:** Dialects are pre-instantiated singletons
    - **Extensible:** register_dialect() for third-party backends

Architecture::

    ┌──────────┐ ┌──────────────┐ ┌────────┐ ┌────────┐ ┌──────────┐ ┌────────┐
    │ SQLite   │ │ PostgreSQL   │ │  DB2   │ │ MySQL  │ │  Oracle  │ │ MSSQL  │
    │ sep: -   │ │ sep: -       │ │ sep: - │ │ sep: - │ │ sep: /   │ │ sep: GO│
    │ fix: no  │ │ fix: no      │ │ fix: no│ │ fix: no│ │ fix: yes │ │ fix: no│
    └──────────┘ └──────────────┘ └────────┘ └────────┘ └──────────┘ └────────┘

Examples:
    >>> from sqlgate.core.dialect import get_dialect
    >>> get_dialect("oracle").requires_separator_fix
    True
    >>> get_dialect("sqlite").placeholder
    '?'

Guardrails:
    ❌ DON'T: Check ``dialect.name == "oracle"`` in executor code
    ✅ DO: Ask the dialect (``requires_separator_fix``)

Tags:
    dialect, sql, abstraction, portability, database, sqlgate
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

PLACEHOLDER = "?"


@runtime_checkable
class Dialect(Protocol):
    """Execution-time dialect contract."""

    @property
    def name(self) -> str:
        """Lower-case dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def placeholder(self) -> str:
        """Reserved parameter marker used in rendered SQL text."""
        ...

    @property
    def batch_separator(self) -> str | None:
        """Line-level separator between script batches, if the family has one."""
        ...

    @property
    def statement_terminator(self) -> str:
        """Terminator appended when SQL is written out instead of executed."""
        ...

    @property
    def requires_separator_fix(self) -> bool:
        """Whether rendered text can end in a duplicated batch separator."""
        ...

    @property
    def supports_callable(self) -> bool:
        """Whether stored-procedure calls are available."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite — no stored procedures, no batch separator."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return None

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return False

    @property
    def supports_callable(self) -> bool:
        return False


class PostgreSQLDialect:
    """PostgreSQL.

    Rendered text keeps ``?`` markers; the DB-API wrapper rewrites them to
    the driver's ``%s`` paramstyle at bind time.
    """

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return None

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return False

    @property
    def supports_callable(self) -> bool:
        return True


class DB2Dialect:
    """IBM DB2 — qmark paramstyle natively."""

    @property
    def name(self) -> str:
        return "db2"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return None

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return False

    @property
    def supports_callable(self) -> bool:
        return True


class MySQLDialect:
    """MySQL — ``mysql.connector`` / ``PyMySQL`` use format paramstyle."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return None

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return False

    @property
    def supports_callable(self) -> bool:
        return True


class OracleDialect:
    """Oracle — PL/SQL blocks end with ``/`` on its own line.

    Changelog SQL written for SQL*Plus often repeats the ``/`` after a
    block that already carries one, so rendered text gets one redundant
    trailing separator stripped before execution.
    """

    @property
    def name(self) -> str:
        return "oracle"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return "/"

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return True

    @property
    def supports_callable(self) -> bool:
        return True


class MSSQLDialect:
    """SQL Server — ``GO`` separates batches in scripts."""

    @property
    def name(self) -> str:
        return "mssql"

    @property
    def placeholder(self) -> str:
        return PLACEHOLDER

    @property
    def batch_separator(self) -> str | None:
        return "GO"

    @property
    def statement_terminator(self) -> str:
        return ";"

    @property
    def requires_separator_fix(self) -> bool:
        return False

    @property
    def supports_callable(self) -> bool:
        return True


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "db2": DB2Dialect(),
    "mysql": MySQLDialect(),
    "oracle": OracleDialect(),
    "mssql": MSSQLDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Args:
        db_type: One of ``'sqlite'``, ``'postgresql'``, ``'postgres'``,
                 ``'db2'``, ``'mysql'``, ``'oracle'``, ``'mssql'`` or a
                 name added with :func:`register_dialect`.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation.

    Useful for third-party database drivers or test doubles.
    """
    _DIALECTS[name.lower()] = dialect


def dialect_for_url(url: str | None) -> Dialect:
    """Guess the dialect from a connection URL.

    ``None``, ``memory`` and bare file paths are SQLite. Driver suffixes
    (``postgresql+psycopg://``) and ``mssql``/``oracle`` SQLAlchemy schemes
    are recognised.
    """
    if not url or "://" not in url:
        return _DIALECTS["sqlite"]
    scheme = url.split("://", 1)[0].split("+", 1)[0].lower()
    if scheme in ("oracle", "oracledb"):
        scheme = "oracle"
    elif scheme == "ibm_db_sa":
        scheme = "db2"
    if scheme not in _DIALECTS:
        raise ValueError(f"Cannot determine dialect for URL scheme '{scheme}'")
    return _DIALECTS[scheme]


__all__ = [
    "PLACEHOLDER",
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "DB2Dialect",
    "MySQLDialect",
    "OracleDialect",
    "MSSQLDialect",
    "get_dialect",
    "register_dialect",
    "dialect_for_url",
]

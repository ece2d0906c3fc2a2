"""Connections — adapt DB-API 2.0 drivers to the gateway's connection protocol.

The executor only needs three things from a connection: is it offline, what
is its address, and give me a plain / prepared / callable handle. A raw
DB-API connection (``sqlite3``, ``psycopg``, ``oracledb``, a SQLAlchemy
``raw_connection()``) has cursors instead, so ``DbapiConnection`` bridges
the gap.

Supported URL schemes for ``create_connection``
-----------------------------------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/my.db`` or ``/tmp/gate.db``         SQLite file
``(anything else)`` ``postgresql://user:pw@host:port/db``        SQLAlchemy
==================  ==========================================  ============

Usage
-----
::

    from sqlgate.core.connection import create_connection

    conn, info = create_connection("sqlite:///changelog.db")
    print(info)
    # ConnectionInfo(backend='sqlite', persistent=True, path='/abs/changelog.db')

Placeholders
------------
Rendered SQL always uses ``?``. Handles rewrite it to the driver's
``paramstyle`` right before binding; ``?`` inside single- or double-quoted
literals is left alone. For ``format``/``pyformat`` drivers every literal
``%`` is doubled, and handles always pass a parameter container so the
driver collapses ``%%`` back to ``%``.
"""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlgate.core.errors import ExecutionError
from sqlgate.core.logging import get_logger

logger = get_logger(__name__)

_QMARK_OUTSIDE_LITERALS = re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")|(\?)|(%)")


def convert_placeholders(sql: str, paramstyle: str) -> str:
    """Rewrite ``?`` markers for a DB-API ``paramstyle``.

    >>> convert_placeholders("SELECT * FROM t WHERE a = ? AND b = '?'", "format")
    "SELECT * FROM t WHERE a = %s AND b = '?'"
    >>> convert_placeholders("VALUES (?, ?)", "numeric")
    'VALUES (:1, :2)'
    >>> convert_placeholders("WHERE a LIKE 'x%' AND b = ?", "pyformat")
    "WHERE a LIKE 'x%%' AND b = %s"
    """
    if paramstyle == "qmark":
        return sql

    percent_format = paramstyle in ("format", "pyformat")
    counter = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal counter
        literal, _marker, percent = match.groups()
        if literal:
            return literal.replace("%", "%%") if percent_format else literal
        if percent:
            return "%%" if percent_format else percent
        counter += 1
        if percent_format:
            return "%s"
        if paramstyle == "numeric":
            return f":{counter}"
        if paramstyle == "named":
            return f":p{counter}"
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")

    return _QMARK_OUTSIDE_LITERALS.sub(_replace, sql)


def _bind_params(parameters: Sequence[Any], paramstyle: str) -> Sequence[Any] | dict[str, Any]:
    if paramstyle == "named":
        return {f"p{i}": value for i, value in enumerate(parameters, start=1)}
    return tuple(parameters)


# ── Handles ──────────────────────────────────────────────────────────────


class _HandleCursor:
    """Result view over a cursor the handle itself owns.

    ``close()`` is a no-op; the raw cursor is closed once, by the handle.
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor

    @property
    def description(self) -> Any:
        return self._cursor.description

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def close(self) -> None:
        return None


class DbapiStatement:
    """Plain statement handle over one DB-API cursor."""

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self.escape_processing = True
        self.closed = False

    def execute(self, sql: str) -> None:
        self._cursor.execute(sql)

    def execute_query(self, sql: str) -> _HandleCursor:
        self._cursor.execute(sql)
        return _HandleCursor(self._cursor)

    def execute_update(self, sql: str) -> int:
        self._cursor.execute(sql)
        return self._cursor.rowcount

    def set_escape_processing(self, enabled: bool) -> None:
        # DB-API drivers have no JDBC-style escape syntax; the flag is kept
        # for bridges (e.g. JayDeBeApi) that forward it.
        self.escape_processing = enabled
        setter = getattr(self._cursor, "setEscapeProcessing", None)
        if setter is not None:
            setter(enabled)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._cursor.close()


class DbapiPreparedStatement:
    """Prepared handle: one SQL template, ordered bound values."""

    def __init__(self, cursor: Any, sql: str, paramstyle: str):
        self._cursor = cursor
        self._paramstyle = paramstyle
        self.sql = convert_placeholders(sql, paramstyle)
        self.parameters: tuple[Any, ...] = ()
        self.closed = False

    def bind(self, parameters: Sequence[Any]) -> None:
        self.parameters = tuple(parameters)

    def _run(self) -> Any:
        self._cursor.execute(self.sql, _bind_params(self.parameters, self._paramstyle))
        return self._cursor

    def execute(self) -> None:
        self._run()

    def execute_query(self) -> _HandleCursor:
        return _HandleCursor(self._run())

    def execute_update(self) -> int:
        return self._run().rowcount

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._cursor.close()


_CALL_SYNTAX = re.compile(r"^\s*\{?\s*(?:\?\s*=\s*)?call\s+([\w.$\"]+)\s*(?:\((.*)\))?\s*\}?\s*;?\s*$", re.IGNORECASE | re.DOTALL)


_MARKER_LIST = re.compile(r"^\s*(?:\?\s*(?:,\s*\?\s*)*)?$")


def _callproc_target(sql: str, parameters: Sequence[Any]) -> str | None:
    """Procedure name when ``sql`` can go through ``callproc`` unchanged.

    Only calls whose argument list is nothing but ``?`` markers, one per
    bound value, qualify; literal arguments must stay in the SQL text.
    """
    match = _CALL_SYNTAX.match(sql)
    if match is None:
        return None
    arguments = match.group(2) or ""
    if not _MARKER_LIST.match(arguments):
        return None
    if arguments.count("?") != len(parameters):
        return None
    return match.group(1)


class DbapiCallableStatement:
    """Callable handle.

    ``{call proc(?, ?)}`` / ``CALL proc(?)`` go through ``cursor.callproc``
    when the driver has it and every argument is a bound marker; anything
    else is executed as text.
    """

    def __init__(self, cursor: Any, sql: str, paramstyle: str):
        self._cursor = cursor
        self._paramstyle = paramstyle
        self.sql = sql
        self.parameters: tuple[Any, ...] = ()
        self.closed = False

    def bind(self, parameters: Sequence[Any]) -> None:
        self.parameters = tuple(parameters)

    def execute(self) -> Any:
        callproc = getattr(self._cursor, "callproc", None)
        target = _callproc_target(self.sql, self.parameters)
        if target is not None and callproc is not None:
            return callproc(target, list(self.parameters))
        sql = convert_placeholders(self.sql, self._paramstyle)
        self._cursor.execute(sql, _bind_params(self.parameters, self._paramstyle))
        return self._cursor

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._cursor.close()


# ── Connections ──────────────────────────────────────────────────────────


class DbapiConnection:
    """Adapter: DB-API 2.0 connection → ``DatabaseConnection`` protocol.

    The raw connection stays owned by whoever created it; ``close()`` is
    only here for the factory's callers.
    """

    def __init__(self, raw: Any, url: str, *, paramstyle: str | None = None):
        self._raw = raw
        self._url = url
        self.paramstyle = paramstyle or _detect_paramstyle(raw)

    @property
    def is_offline(self) -> bool:
        return False

    @property
    def url(self) -> str:
        return self._url

    @property
    def raw(self) -> Any:
        """Access the underlying DB-API connection (e.g. for commit)."""
        return self._raw

    def create_statement(self) -> DbapiStatement:
        return DbapiStatement(self._raw.cursor())

    def prepare_statement(self, sql: str) -> DbapiPreparedStatement:
        return DbapiPreparedStatement(self._raw.cursor(), sql, self.paramstyle)

    def prepare_call(self, sql: str) -> DbapiCallableStatement:
        return DbapiCallableStatement(self._raw.cursor(), sql, self.paramstyle)

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        self._raw.close()

    def __repr__(self) -> str:
        return f"DbapiConnection({self._url!r}, paramstyle={self.paramstyle!r})"


class OfflineConnection:
    """Inert connection: used when SQL is generated but never executed."""

    def __init__(self, url: str = "offline:unknown"):
        self._url = url

    @property
    def is_offline(self) -> bool:
        return True

    @property
    def url(self) -> str:
        return self._url

    def create_statement(self) -> Any:
        raise ExecutionError.connection_unavailable(self._url)

    def prepare_statement(self, sql: str) -> Any:  # noqa: ARG002
        raise ExecutionError.connection_unavailable(self._url)

    def prepare_call(self, sql: str) -> Any:  # noqa: ARG002
        raise ExecutionError.connection_unavailable(self._url)

    def __repr__(self) -> str:
        return f"OfflineConnection({self._url!r})"


def _detect_paramstyle(raw: Any) -> str:
    """Find the driver module's ``paramstyle`` (``qmark`` if unknown)."""
    if isinstance(raw, sqlite3.Connection):
        return sqlite3.paramstyle
    module_name = type(raw).__module__.split(".")[0]
    module = __import__(module_name)
    return getattr(module, "paramstyle", "qmark")


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"``, ``"postgresql"``, etc."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.url!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"


# ── URL parsing / factory ────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is one of:
        ``"memory"``, ``"sqlite"``, ``"file"``, ``"sqlalchemy"``.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        return "sqlalchemy", db

    # bare file path: SQLite file
    return "file", db


def _create_sqlite(path: str) -> tuple[DbapiConnection, ConnectionInfo]:
    if path == ":memory:":
        raw = sqlite3.connect(":memory:", check_same_thread=False)
        return DbapiConnection(raw, "sqlite:///:memory:"), ConnectionInfo(
            backend="sqlite", persistent=False, url=":memory:"
        )

    resolved_path = Path(path)
    resolved_path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(resolved_path.resolve())
    raw = sqlite3.connect(resolved, check_same_thread=False)
    info = ConnectionInfo(backend="sqlite", persistent=True, url=path, resolved_path=resolved)
    return DbapiConnection(raw, f"sqlite:///{resolved}"), info


def _create_sqlalchemy(url: str) -> tuple[DbapiConnection, ConnectionInfo]:
    """Open a raw DB-API connection through a SQLAlchemy engine."""
    from sqlalchemy import create_engine

    engine = create_engine(url)
    raw = engine.raw_connection()
    paramstyle = engine.dialect.paramstyle
    backend = engine.dialect.name
    logger.debug("connection_opened", backend=backend, paramstyle=paramstyle)
    safe_url = engine.url.render_as_string(hide_password=True)
    return DbapiConnection(raw, safe_url, paramstyle=paramstyle), ConnectionInfo(
        backend=backend, persistent=True, url=safe_url
    )


def create_connection(db: str | None = None) -> tuple[DbapiConnection, ConnectionInfo]:
    """Create a gateway connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        - ``None`` or ``"memory"`` — in-memory SQLite (default)
        - ``"path/to/file.db"`` — file-based SQLite
        - ``"sqlite:///path/to/file.db"`` — explicit SQLite URL
        - any other ``scheme://`` URL — opened through SQLAlchemy

    Returns
    -------
    tuple[DbapiConnection, ConnectionInfo]
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        return _create_sqlite(":memory:")
    if scheme in ("sqlite", "file"):
        return _create_sqlite(target)
    return _create_sqlalchemy(target)


__all__ = [
    "convert_placeholders",
    "DbapiStatement",
    "DbapiPreparedStatement",
    "DbapiCallableStatement",
    "DbapiConnection",
    "OfflineConnection",
    "ConnectionInfo",
    "create_connection",
]

"""Tests for sqlgate.core.connection: DB-API handles and the connection factory.

These tests verify that create_connection() routes to the right backend,
that handles convert ``?`` placeholders for the driver's paramstyle, and
that OfflineConnection refuses to hand out handles.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sqlgate.core.connection import (
    ConnectionInfo,
    DbapiConnection,
    OfflineConnection,
    _parse_url,
    convert_placeholders,
    create_connection,
)
from sqlgate.core.dialect import get_dialect
from sqlgate.core.errors import ErrorKind, ExecutionError
from sqlgate.core.executor import StatementExecutor
from sqlgate.core.logging import RecordingDiagnostics
from sqlgate.core.protocols import DatabaseConnection
from sqlgate.core.statements import CallableSqlStatement, PreparedSqlStatement, RawSqlStatement
from tests._support.drivers import CallprocCursor, RecordingRawConnection


# ── Placeholders ─────────────────────────────────────────────────────────


class TestConvertPlaceholders:
    def test_qmark_unchanged(self):
        assert convert_placeholders("a = ? AND b = ?", "qmark") == "a = ? AND b = ?"

    @pytest.mark.parametrize("style", ["format", "pyformat"])
    def test_format(self, style):
        assert convert_placeholders("VALUES (?, ?)", style) == "VALUES (%s, %s)"

    def test_numeric(self):
        assert convert_placeholders("VALUES (?, ?)", "numeric") == "VALUES (:1, :2)"

    def test_named(self):
        assert convert_placeholders("VALUES (?, ?)", "named") == "VALUES (:p1, :p2)"

    def test_literals_left_alone(self):
        sql = "SELECT '?', \"a?\" FROM t WHERE x = ? AND y = 'it''s ?'"
        assert convert_placeholders(sql, "format") == "SELECT '?', \"a?\" FROM t WHERE x = %s AND y = 'it''s ?'"

    @pytest.mark.parametrize("style", ["format", "pyformat"])
    def test_percent_doubled_for_format_styles(self, style):
        sql = "SELECT * FROM t WHERE a LIKE 'x%' AND b = ? AND c % 2 = 0"
        assert convert_placeholders(sql, style) == "SELECT * FROM t WHERE a LIKE 'x%%' AND b = %s AND c %% 2 = 0"

    @pytest.mark.parametrize("style", ["qmark", "numeric", "named"])
    def test_percent_untouched_for_other_styles(self, style):
        assert "LIKE 'x%'" in convert_placeholders("a LIKE 'x%' AND b = ?", style)

    def test_unknown_style(self):
        with pytest.raises(ValueError, match="paramstyle"):
            convert_placeholders("?", "bogus")


# ── ConnectionInfo / URL parsing ─────────────────────────────────────────


class TestConnectionInfo:
    def test_sqlite_memory_info(self):
        info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
        assert info.is_sqlite
        assert not info.persistent
        assert "url=':memory:'" in repr(info)

    def test_postgresql_info(self):
        info = ConnectionInfo(backend="postgresql", persistent=True, url="postgresql://h/db")
        assert not info.is_sqlite


class TestParseUrl:
    @pytest.mark.parametrize("db", [None, "", "memory", ":memory:", "sqlite://", "sqlite:///:memory:"])
    def test_memory(self, db):
        assert _parse_url(db) == ("memory", ":memory:")

    def test_sqlite_url(self):
        assert _parse_url("sqlite:///data/gate.db") == ("sqlite", "data/gate.db")

    def test_bare_path(self):
        assert _parse_url("./gate.db") == ("file", "./gate.db")

    def test_other_scheme(self):
        assert _parse_url("postgresql://u@h/db") == ("sqlalchemy", "postgresql://u@h/db")


# ── Factory ──────────────────────────────────────────────────────────────


class TestCreateConnection:
    def test_memory(self):
        conn, info = create_connection()
        try:
            assert isinstance(conn, DbapiConnection)
            assert isinstance(conn, DatabaseConnection)
            assert conn.url == "sqlite:///:memory:"
            assert conn.paramstyle == "qmark"
            assert not conn.is_offline
            assert info.backend == "sqlite"
        finally:
            conn.close()

    def test_file(self, tmp_path: Path):
        target = tmp_path / "nested" / "gate.db"
        conn, info = create_connection(str(target))
        try:
            assert info.persistent
            assert info.resolved_path == str(target.resolve())
            assert target.exists()
        finally:
            conn.close()

    def test_wraps_existing_sqlite_connection(self):
        raw = sqlite3.connect(":memory:")
        try:
            conn = DbapiConnection(raw, "sqlite:///:memory:")
            assert conn.paramstyle == "qmark"
            assert conn.raw is raw
        finally:
            raw.close()


# ── Handles ──────────────────────────────────────────────────────────────


class TestHandles:
    @pytest.fixture
    def conn(self):
        conn, _ = create_connection()
        conn.raw.execute("CREATE TABLE t (id INTEGER, name TEXT)")
        yield conn
        conn.close()

    def test_statement_update_count(self, conn):
        stmt = conn.create_statement()
        try:
            assert stmt.execute_update("INSERT INTO t VALUES (1, 'a')") == 1
        finally:
            stmt.close()

    def test_statement_close_is_idempotent(self, conn):
        stmt = conn.create_statement()
        stmt.close()
        stmt.close()
        assert stmt.closed

    def test_escape_processing_flag(self, conn):
        stmt = conn.create_statement()
        stmt.set_escape_processing(False)
        assert stmt.escape_processing is False
        stmt.close()

    def test_prepared_binds(self, conn):
        prepared = conn.prepare_statement("INSERT INTO t VALUES (?, ?)")
        prepared.bind((2, "b"))
        assert prepared.execute_update() == 1
        prepared.close()

        query = conn.prepare_statement("SELECT name FROM t WHERE id = ?")
        query.bind((2,))
        assert query.execute_query().fetchall() == [("b",)]
        query.close()

    def test_callable_falls_back_to_text(self, conn):
        call = conn.prepare_call("INSERT INTO t VALUES (?, ?)")
        call.bind((3, "c"))
        call.execute()
        call.close()
        assert conn.raw.execute("SELECT COUNT(*) FROM t WHERE id = 3").fetchone() == (1,)


class TestOfflineConnection:
    def test_is_offline(self):
        conn = OfflineConnection("offline:oracle")
        assert conn.is_offline
        assert conn.url == "offline:oracle"
        assert isinstance(conn, DatabaseConnection)

    @pytest.mark.parametrize("method, args", [("create_statement", ()), ("prepare_statement", ("X",)), ("prepare_call", ("X",))])
    def test_handles_refused(self, method, args):
        with pytest.raises(ExecutionError) as exc_info:
            getattr(OfflineConnection(), method)(*args)
        assert exc_info.value.kind is ErrorKind.CONNECTION_UNAVAILABLE


# ── Cursor ownership and callproc over a raw DB-API driver ───────────────


def _gateway(raw: RecordingRawConnection, paramstyle: str = "format") -> StatementExecutor:
    conn = DbapiConnection(raw, "postgresql://db/app", paramstyle=paramstyle)
    return StatementExecutor(conn, get_dialect("postgresql"), diagnostics=RecordingDiagnostics())


class TestCursorReleasedOnce:
    def test_plain_query_closes_raw_cursor_once(self):
        raw = RecordingRawConnection()
        result = _gateway(raw).query(RawSqlStatement("SELECT a FROM t"))
        assert result.to_list() == [{"A": 1}]
        assert raw.closes == 1

    def test_prepared_query_closes_raw_cursor_once(self):
        raw = RecordingRawConnection()
        _gateway(raw).query(PreparedSqlStatement("SELECT a FROM t WHERE b = ?", (2,)))
        assert raw.log == [("execute", "SELECT a FROM t WHERE b = %s", (2,)), ("close",)]

    def test_handle_cursor_close_is_noop(self):
        raw = RecordingRawConnection()
        handle = DbapiConnection(raw, "x://", paramstyle="qmark").create_statement()
        cursor = handle.execute_query("SELECT a FROM t")
        cursor.close()
        assert raw.closes == 0
        handle.close()
        assert raw.closes == 1


class TestPercentBinding:
    def test_unbound_prepared_still_passes_parameters(self):
        raw = RecordingRawConnection()
        _gateway(raw).update(PreparedSqlStatement("DELETE FROM t WHERE a LIKE 'x%'"))
        assert raw.log[0] == ("execute", "DELETE FROM t WHERE a LIKE 'x%%'", ())


class TestCallproc:
    def test_marker_arguments_use_callproc(self):
        raw = RecordingRawConnection(cursor_class=CallprocCursor)
        out = _gateway(raw).execute_callable(CallableSqlStatement("{call refresh(?, ?)}", (1, "a")))
        assert out == [1, "a"]
        assert raw.log[0] == ("callproc", "refresh", [1, "a"])

    def test_no_arguments_use_callproc(self):
        raw = RecordingRawConnection(cursor_class=CallprocCursor)
        _gateway(raw).execute_callable(CallableSqlStatement("CALL refresh()"))
        assert raw.log[0] == ("callproc", "refresh", [])

    def test_literal_arguments_stay_in_sql(self):
        raw = RecordingRawConnection(cursor_class=CallprocCursor)
        _gateway(raw).execute_callable(CallableSqlStatement("CALL refresh(42, 'x')"))
        assert raw.log[0] == ("execute", "CALL refresh(42, 'x')", ())
        assert not any(entry[0] == "callproc" for entry in raw.log)

    def test_mixed_arguments_stay_in_sql(self):
        raw = RecordingRawConnection(cursor_class=CallprocCursor)
        _gateway(raw).execute_callable(CallableSqlStatement("CALL refresh(?, 'x')", (1,)))
        assert raw.log[0] == ("execute", "CALL refresh(%s, 'x')", (1,))

    def test_marker_count_mismatch_stays_in_sql(self):
        raw = RecordingRawConnection(cursor_class=CallprocCursor)
        _gateway(raw).execute_callable(CallableSqlStatement("CALL refresh(?, ?)", (1,)))
        assert raw.log[0][0] == "execute"

"""Tests for the SQL output executor."""

from __future__ import annotations

import io

import pytest

from sqlgate.core.dialect import get_dialect
from sqlgate.core.errors import ErrorKind, ExecutionError
from sqlgate.core.output import SqlOutputExecutor
from sqlgate.core.statements import (
    CallableSqlStatement,
    PreparedSqlStatement,
    RawSqlStatement,
    SimpleChange,
)
from sqlgate.core.visitors import AppendSqlVisitor


def _output(dialect: str = "sqlite") -> tuple[SqlOutputExecutor, io.StringIO]:
    stream = io.StringIO()
    return SqlOutputExecutor(stream, get_dialect(dialect)), stream


class TestWrite:
    def test_does_not_update_database(self):
        out, _ = _output()
        assert out.updates_database is False

    def test_terminator_added(self):
        out, stream = _output()
        out.execute(RawSqlStatement("CREATE TABLE t (id INT)"))
        assert stream.getvalue() == "CREATE TABLE t (id INT);\n\n"

    def test_terminator_not_doubled(self):
        out, stream = _output()
        out.execute(RawSqlStatement("DELETE FROM t;"))
        assert stream.getvalue() == "DELETE FROM t;\n\n"

    def test_oracle_separator_line(self):
        out, stream = _output("oracle")
        out.execute(RawSqlStatement("CREATE TABLE t (id NUMBER)"))
        assert stream.getvalue() == "CREATE TABLE t (id NUMBER);\n/\n\n"

    def test_oracle_trailing_separator_not_repeated(self):
        out, stream = _output("oracle")
        out.execute(RawSqlStatement("BEGIN NULL; END;\n/"))
        assert stream.getvalue() == "BEGIN NULL; END;\n/\n\n"

    def test_mssql_go(self):
        out, stream = _output("mssql")
        out.execute(RawSqlStatement("SELECT 1"))
        assert stream.getvalue() == "SELECT 1;\nGO\n\n"

    def test_mssql_identifier_ending_in_go_kept(self):
        out, stream = _output("mssql")
        out.execute(RawSqlStatement("SELECT * FROM CARGO"))
        assert stream.getvalue() == "SELECT * FROM CARGO;\nGO\n\n"

    def test_mssql_trailing_go_not_repeated(self):
        out, stream = _output("mssql")
        out.execute(RawSqlStatement("SELECT 1\ngo"))
        assert stream.getvalue() == "SELECT 1;\nGO\n\n"

    def test_visitors_applied(self):
        out, stream = _output()
        out.execute(RawSqlStatement("SELECT 1"), [AppendSqlVisitor(" AS one")])
        assert stream.getvalue().startswith("SELECT 1 AS one;")

    def test_prepared_template_written(self):
        out, stream = _output()
        out.execute(PreparedSqlStatement("INSERT INTO t VALUES (?)", (1,)))
        assert "INSERT INTO t VALUES (?);" in stream.getvalue()

    def test_change_written_in_order(self):
        out, stream = _output()
        out.execute_change(SimpleChange("A", "B"))
        assert stream.getvalue() == "A;\n\nB;\n\n"

    def test_callable_written(self):
        out, stream = _output("postgresql")
        out.execute_callable(CallableSqlStatement("CALL p(?)", (1,)))
        assert stream.getvalue() == "CALL p(?);\n\n"

    def test_comment(self):
        out, stream = _output()
        out.comment("Changeset 42")
        assert stream.getvalue() == "-- Changeset 42\n"


class TestNoDatabase:
    @pytest.mark.parametrize("operation", ["query", "update"])
    def test_reads_and_counts_unavailable(self, operation):
        out, stream = _output("oracle")
        with pytest.raises(ExecutionError) as exc_info:
            getattr(out, operation)(RawSqlStatement("SELECT 1 FROM dual"))
        assert exc_info.value.kind is ErrorKind.CONNECTION_UNAVAILABLE
        assert exc_info.value.context.address == "offline:oracle"
        assert exc_info.value.context.operation == operation
        assert stream.getvalue() == ""

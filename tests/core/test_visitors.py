"""Tests for SQL visitors and the visitor pipeline."""

from __future__ import annotations

import pytest

from sqlgate.core.dialect import get_dialect
from sqlgate.core.visitors import (
    AppendSqlVisitor,
    CallableSqlVisitor,
    PrependSqlVisitor,
    RegExpReplaceSqlVisitor,
    ReplaceSqlVisitor,
    SqlVisitor,
    apply_visitors,
    as_visitor,
)


@pytest.fixture
def sqlite():
    return get_dialect("sqlite")


class TestConcreteVisitors:
    def test_append(self, sqlite):
        assert AppendSqlVisitor(" LIMIT 1").modify_sql("SELECT 1", sqlite) == "SELECT 1 LIMIT 1"

    def test_prepend(self, sqlite):
        assert PrependSqlVisitor("/* x */ ").modify_sql("SELECT 1", sqlite) == "/* x */ SELECT 1"

    def test_replace_all_occurrences(self, sqlite):
        visitor = ReplaceSqlVisitor("VARCHAR2", "VARCHAR")
        assert visitor.modify_sql("a VARCHAR2(1), b VARCHAR2(2)", sqlite) == "a VARCHAR(1), b VARCHAR(2)"

    def test_regexp_replace_with_groups(self, sqlite):
        visitor = RegExpReplaceSqlVisitor(r"NUMBER\((\d+)\)", r"DECIMAL(\1)")
        assert visitor.modify_sql("id NUMBER(10)", sqlite) == "id DECIMAL(10)"

    def test_callable(self, sqlite):
        assert CallableSqlVisitor(str.lower).modify_sql("SELECT 1", sqlite) == "select 1"

    def test_all_satisfy_protocol(self):
        for visitor in [
            AppendSqlVisitor("x"),
            PrependSqlVisitor("x"),
            ReplaceSqlVisitor("a", "b"),
            RegExpReplaceSqlVisitor("a", "b"),
            CallableSqlVisitor(str.strip),
        ]:
            assert isinstance(visitor, SqlVisitor)


class TestDbmsFilter:
    def test_applies_to_all_when_empty(self, sqlite):
        assert AppendSqlVisitor("x").applies_to(sqlite)

    def test_applies_only_to_listed(self, sqlite):
        visitor = AppendSqlVisitor(" ENGINE=InnoDB", dbms={"MySQL"})
        assert visitor.applies_to(get_dialect("mysql"))
        assert not visitor.applies_to(sqlite)


class TestApplyVisitors:
    def test_none_is_identity(self, sqlite):
        assert apply_visitors("SELECT 1", None, sqlite) == "SELECT 1"

    def test_empty_is_identity(self, sqlite):
        assert apply_visitors("SELECT 1", [], sqlite) == "SELECT 1"

    def test_order_is_list_order(self, sqlite):
        pipeline = [AppendSqlVisitor("B"), AppendSqlVisitor("C"), PrependSqlVisitor("0")]
        assert apply_visitors("A", pipeline, sqlite) == "0ABC"

    def test_each_visitor_sees_previous_output(self, sqlite):
        seen = []

        def spy(sql):
            seen.append(sql)
            return sql + "!"

        apply_visitors("X", [spy, spy, spy], sqlite)
        assert seen == ["X", "X!", "X!!"]

    def test_skips_non_applicable(self, sqlite):
        pipeline = [AppendSqlVisitor(" oracle-only", dbms={"oracle"}), AppendSqlVisitor(" all")]
        assert apply_visitors("SQL", pipeline, sqlite) == "SQL all"

    def test_plain_functions_accepted(self, sqlite):
        assert apply_visitors("select 1", [str.upper], sqlite) == "SELECT 1"


class TestAsVisitor:
    def test_visitor_returned_as_is(self):
        visitor = AppendSqlVisitor("x")
        assert as_visitor(visitor) is visitor

    def test_function_wrapped(self):
        assert isinstance(as_visitor(str.upper), CallableSqlVisitor)

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            as_visitor(42)  # type: ignore[arg-type]

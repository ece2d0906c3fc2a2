"""
Shared pytest fixtures for sqlgate tests.

This module provides:
- Executor fixtures over recording driver doubles (tests/_support/drivers.py)
- RecordingDiagnostics so tests can assert on trace events
- A real in-memory sqlite3 connection for end-to-end paths
"""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

from sqlgate.core.connection import create_connection
from sqlgate.core.dialect import get_dialect
from sqlgate.core.executor import StatementExecutor
from sqlgate.core.logging import RecordingDiagnostics
from tests._support.drivers import FakeConnection


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any configure_logging() a test performed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def executor(fake_conn: FakeConnection, diagnostics: RecordingDiagnostics) -> StatementExecutor:
    return StatementExecutor(fake_conn, get_dialect("sqlite"), diagnostics=diagnostics)


@pytest.fixture
def sqlite_executor(diagnostics: RecordingDiagnostics):
    """Executor over a real in-memory sqlite3 database."""
    conn, _info = create_connection()
    yield StatementExecutor(conn, get_dialect("sqlite"), diagnostics=diagnostics)
    conn.close()

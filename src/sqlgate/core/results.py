"""Typed query and update results, and the row mapper that builds them.

``QueryResult`` is materialized eagerly from a cursor, so no cursor or
statement handle outlives the executor call that produced it. Rows are
read-only mappings keyed by the upper-cased column label.

Examples:
    >>> result = QueryResult.from_rows([{"ID": 1, "NAME": "a"}])
    >>> result.first()["NAME"]
    'a'
    >>> result.scalar()
    1
    >>> UpdateResult(3).affected_rows
    3
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sqlgate.core.protocols import Cursor

Row = Mapping[str, Any]


def extract_value(value: Any) -> Any:
    """Convert a driver-native value into a plain Python value.

    - ``memoryview`` / ``bytearray`` (BLOB columns) → ``bytes``
    - LOB handles exposing ``read()`` (oracledb ``LOB``, file-like) → content
    - anything else is returned unchanged
    """
    if isinstance(value, memoryview):
        return value.tobytes()
    if isinstance(value, bytearray):
        return bytes(value)
    if not isinstance(value, (str, bytes)) and callable(getattr(value, "read", None)):
        return value.read()
    return value


def column_labels(description: Sequence[Sequence[Any]] | None) -> list[str]:
    """Upper-cased column labels from a DB-API ``cursor.description``."""
    return [str(column[0]).upper() for column in description or ()]


def map_row(description: Sequence[Sequence[Any]] | None, row: Sequence[Any]) -> Row:
    """Map one cursor row to ``{LABEL: value}``.

    Labels are upper-cased; when two labels collide after upper-casing the
    later column wins.
    """
    mapped: dict[str, Any] = {}
    for label, value in zip(column_labels(description), row, strict=False):
        mapped[label] = extract_value(value)
    return MappingProxyType(mapped)


@dataclass(frozen=True)
class QueryResult:
    """Immutable, ordered sequence of row mappings."""

    rows: tuple[Row, ...] = ()
    columns: tuple[str, ...] = ()

    @classmethod
    def from_cursor(cls, cursor: Cursor) -> QueryResult:
        description = cursor.description
        rows = tuple(map_row(description, row) for row in cursor.fetchall())
        return cls(rows=rows, columns=tuple(column_labels(description)))

    @classmethod
    def from_rows(cls, rows: Sequence[Mapping[str, Any]]) -> QueryResult:
        frozen = tuple(MappingProxyType(dict(row)) for row in rows)
        columns = tuple(frozen[0].keys()) if frozen else ()
        return cls(rows=frozen, columns=columns)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> Row:
        return self.rows[index]

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def first(self) -> Row | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """First column of the first row, or ``None`` if there are no rows."""
        if not self.rows or not self.columns:
            return None
        return self.rows[0][self.columns[0]]

    def column(self, name: str) -> list[Any]:
        key = name.upper()
        return [row.get(key) for row in self.rows]

    def to_list(self) -> list[dict[str, Any]]:
        """Mutable copies of the rows."""
        return [dict(row) for row in self.rows]


@dataclass(frozen=True)
class UpdateResult:
    """Number of rows affected by a write."""

    affected_rows: int

    def __post_init__(self) -> None:
        if self.affected_rows < 0:
            raise ValueError(f"affected_rows must be >= 0, got {self.affected_rows}")

    def __int__(self) -> int:
        return self.affected_rows


__all__ = [
    "Row",
    "QueryResult",
    "UpdateResult",
    "extract_value",
    "column_labels",
    "map_row",
]

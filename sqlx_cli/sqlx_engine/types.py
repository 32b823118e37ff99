"""Data structures shared across sqlx-engine modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence, Union

# SQLite values are typed per cell, not per column.
CellValue = Union[None, int, float, str, bytes]


class CellKind(str, Enum):
    NULL = "null"
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"

    @classmethod
    def of(cls, value: Any) -> CellKind:
        if value is None:
            return cls.NULL
        # bool is an int subclass; SQLite stores it as an integer too.
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, float):
            return cls.REAL
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.BLOB
        if isinstance(value, str):
            return cls.TEXT
        raise TypeError(f"Unsupported SQLite cell value: {type(value).__name__}")


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """One row of ``PRAGMA table_info``."""

    cid: int
    name: str
    type: str
    not_null: bool
    default: str | None
    primary_key: int  # 1-based position inside the key, 0 when not a key column

    @property
    def is_primary_key(self) -> bool:
        return self.primary_key > 0


@dataclass(frozen=True, slots=True)
class TableInfo:
    """Schema snapshot for a single table."""

    name: str
    columns: Sequence[ColumnInfo]
    row_count: int

    @property
    def auto_increment_column(self) -> ColumnInfo | None:
        """The single-column integer key the insert helper may omit."""
        keyed = [column for column in self.columns if column.is_primary_key]
        if len(keyed) == 1 and keyed[0].primary_key == 1:
            return keyed[0]
        return None


@dataclass(frozen=True, slots=True)
class DatabaseSchema:
    """All user tables of one handle, in catalog order."""

    tables: Sequence[TableInfo] = field(default_factory=tuple)

    @property
    def table_names(self) -> tuple[str, ...]:
        return tuple(table.name for table in self.tables)

    def table(self, name: str) -> TableInfo | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Structured result set returned by the executor layer.

    Column names may repeat (joins); they are matched to cells by position.
    """

    columns: tuple[str, ...] = ()
    rows: Sequence[tuple[CellValue, ...]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.columns

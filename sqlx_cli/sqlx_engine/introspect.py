"""Schema introspection for a live database handle."""

from __future__ import annotations

import sqlite3
from typing import Sequence

from sqlx_cli.shared.exceptions import DatabaseError

from .engine import DatabaseHandle
from .types import ColumnInfo, DatabaseSchema, TableInfo

RESERVED_PREFIX = "sqlite_"

_TABLES_SQL = (
    "SELECT name FROM sqlite_master "
    "WHERE type = 'table' AND substr(name, 1, length(:prefix)) != :prefix"
)


def quote_identifier(name: str) -> str:
    """Quote a table/column name for interpolation into generated SQL."""
    return '"' + name.replace('"', '""') + '"'


def describe_schema(handle: DatabaseHandle) -> DatabaseSchema:
    """Derive tables, columns and row counts from the catalog. Nothing is cached."""
    connection = handle.connection
    try:
        tables: list[TableInfo] = []
        for table_name in _fetch_table_names(connection):
            tables.append(
                TableInfo(
                    name=table_name,
                    columns=_fetch_table_columns(connection, table_name),
                    row_count=_count_rows(connection, table_name),
                )
            )
    except sqlite3.Error as exc:
        raise DatabaseError(f"Failed to read schema: {exc}") from exc
    return DatabaseSchema(tables=tuple(tables))


def _fetch_table_names(connection: sqlite3.Connection) -> list[str]:
    # substr() instead of LIKE: '_' is a LIKE wildcard and LIKE ignores case.
    cursor = connection.execute(_TABLES_SQL, {"prefix": RESERVED_PREFIX})
    return [row[0] for row in cursor.fetchall()]


def _fetch_table_columns(connection: sqlite3.Connection, table: str) -> Sequence[ColumnInfo]:
    cursor = connection.execute(f"PRAGMA table_info({quote_identifier(table)})")
    return tuple(
        ColumnInfo(
            cid=int(row[0]),
            name=row[1],
            type=row[2] or "",
            not_null=bool(row[3]),
            default=row[4],
            primary_key=int(row[5]),
        )
        for row in cursor.fetchall()
    )


def _count_rows(connection: sqlite3.Connection, table: str) -> int:
    cursor = connection.execute(f"SELECT COUNT(*) FROM {quote_identifier(table)}")
    return int(cursor.fetchone()[0])

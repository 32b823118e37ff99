"""Public exports for the sqlx-engine package."""

from .engine import DatabaseHandle, close, get_engine, open_database, serialize
from .executor import execute, requires_schema_refresh, split_statements
from .export import to_bytes, to_csv, to_payload
from .introspect import describe_schema, quote_identifier
from .session import Session, quote_literal
from .types import CellKind, ColumnInfo, DatabaseSchema, QueryResult, TableInfo

__all__ = [
    "CellKind",
    "ColumnInfo",
    "DatabaseHandle",
    "DatabaseSchema",
    "QueryResult",
    "Session",
    "TableInfo",
    "close",
    "describe_schema",
    "execute",
    "get_engine",
    "open_database",
    "quote_identifier",
    "quote_literal",
    "requires_schema_refresh",
    "serialize",
    "split_statements",
    "to_bytes",
    "to_csv",
    "to_payload",
]

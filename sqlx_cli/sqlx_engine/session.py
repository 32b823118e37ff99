"""Session orchestration: one live handle, serialized operations, schema refresh."""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from typing import Any

from sqlx_cli.shared.exceptions import NoDatabaseLoadedError, QueryError

from . import engine
from .executor import execute, requires_schema_refresh
from .export import to_bytes, to_csv
from .introspect import describe_schema, quote_identifier
from .types import CellKind, DatabaseSchema, QueryResult

DEFAULT_BROWSE_LIMIT = 100


def quote_literal(value: Any) -> str:
    """Render a Python value as a SQLite literal."""
    kind = CellKind.of(value)
    if kind is CellKind.NULL:
        return "NULL"
    if kind is CellKind.INTEGER:
        return str(int(value))
    if kind is CellKind.REAL:
        return repr(float(value))
    if kind is CellKind.BLOB:
        return f"X'{bytes(value).hex()}'"
    return "'" + str(value).replace("'", "''") + "'"


class Session:
    """Owns at most one database handle and runs every operation under a lock.

    Loading a new buffer closes the previous handle first. Query failures are
    raised as ``QueryError`` but leave the handle, the schema and the last
    successful result usable.
    """

    def __init__(self, *, browse_limit: int = DEFAULT_BROWSE_LIMIT) -> None:
        self._lock = threading.RLock()
        self._handle: engine.DatabaseHandle | None = None
        self._schema_version: int | None = None
        self.browse_limit = browse_limit
        self.schema: DatabaseSchema | None = None
        self.last_result: QueryResult | None = None
        self.last_elapsed: float | None = None
        self.name: str | None = None
        self.size: int = 0

    @property
    def handle(self) -> engine.DatabaseHandle | None:
        return self._handle

    @property
    def loaded(self) -> bool:
        return self._handle is not None and not self._handle.closed

    def load(self, buffer: bytes, *, name: str | None = None) -> DatabaseSchema:
        with self._lock:
            self._release()
            handle = engine.open_database(buffer, name=name)
            try:
                schema = describe_schema(handle)
                version = _schema_version(handle)
            except Exception:
                handle.close()
                raise
            self._handle = handle
            self._schema_version = version
            self.schema = schema
            self.name = name
            self.size = len(buffer)
            return schema

    def refresh_schema(self) -> DatabaseSchema:
        with self._lock:
            handle = self._require_handle()
            self.schema = describe_schema(handle)
            self._schema_version = _schema_version(handle)
            return self.schema

    def run(self, sql: str) -> QueryResult:
        """Execute ``sql``; re-introspect when it may have changed the structure."""
        with self._lock:
            handle = self._require_handle()
            started = time.perf_counter()
            try:
                result = execute(handle, sql)
            except QueryError:
                # Earlier statements in the text may still have changed the schema.
                if self._schema_changed(handle):
                    self.refresh_schema()
                raise
            self.last_result = result
            self.last_elapsed = time.perf_counter() - started
            if requires_schema_refresh(sql) or self._schema_changed(handle):
                self.refresh_schema()
            return result

    def browse(self, table: str, limit: int | None = None) -> QueryResult:
        effective = self.browse_limit if limit is None else limit
        return self.run(f"SELECT * FROM {quote_identifier(table)} LIMIT {int(effective)};")

    def insert_record(self, table: str, values: Mapping[str, Any]) -> QueryResult:
        """Insert one row from form-style values.

        Empty strings mean "not provided" and are left to column defaults; the
        auto-increment key is omitted unless a value is given.
        """
        with self._lock:
            self._require_handle()
            schema = self.schema or self.refresh_schema()
            table_info = schema.table(table)
            if table_info is None:
                raise QueryError(f"no such table: {table}")

            auto_key = table_info.auto_increment_column
            provided = {
                column: value
                for column, value in values.items()
                if value != "" and not (auto_key and column == auto_key.name and value is None)
            }
            target = quote_identifier(table)
            if provided:
                columns = ", ".join(quote_identifier(column) for column in provided)
                literals = ", ".join(quote_literal(value) for value in provided.values())
                sql = f"INSERT INTO {target} ({columns}) VALUES ({literals});"
            else:
                sql = f"INSERT INTO {target} DEFAULT VALUES;"

            result = self.run(sql)
            self.refresh_schema()
            return result

    def export_csv(self, result: QueryResult | None = None) -> str:
        target = result if result is not None else self.last_result
        if target is None:
            return ""
        return to_csv(target)

    def export_database(self) -> bytes:
        with self._lock:
            return to_bytes(self._require_handle())

    def close(self) -> None:
        with self._lock:
            self._release()

    def _release(self) -> None:
        if self._handle is not None:
            engine.close(self._handle)
        self._handle = None
        self._schema_version = None
        self.schema = None
        self.last_result = None
        self.last_elapsed = None
        self.name = None
        self.size = 0

    def _require_handle(self) -> engine.DatabaseHandle:
        if self._handle is None:
            raise NoDatabaseLoadedError()
        return self._handle

    def _schema_changed(self, handle: engine.DatabaseHandle) -> bool:
        return _schema_version(handle) != self._schema_version

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _schema_version(handle: engine.DatabaseHandle) -> int:
    return int(handle.connection.execute("PRAGMA schema_version").fetchone()[0])

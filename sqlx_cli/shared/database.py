"""Metadata database: connections and the migration runner for file records."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Iterator, Sequence

from .config import AppConfig
from .exceptions import DatabaseError

MIGRATION_PACKAGE = "sqlx_cli.shared.migrations"
# Request threads share one file; wait for a writer instead of failing at once.
BUSY_TIMEOUT_SECONDS = 5.0

_migrated: set[Path] = set()
_migration_lock = threading.Lock()


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    sql: str

    @classmethod
    def from_resource(cls, filename: str, sql: str) -> Migration:
        """Build from ``<version>_<description>.sql``."""
        stem = filename.rsplit(".", 1)[0]
        version_text, _, description = stem.partition("_")
        try:
            version = int(version_text)
        except ValueError as exc:  # pragma: no cover - packaging error
            raise DatabaseError(f"Invalid migration filename '{filename}'") from exc
        return cls(version=version, description=description or stem, sql=sql)


def metadata_path(config: AppConfig) -> Path:
    path = config.storage.metadata_db
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _open_connection(path: Path, *, read_only: bool = False) -> sqlite3.Connection:
    try:
        if read_only:
            connection = sqlite3.connect(f"file:{path}?mode=ro", uri=True, timeout=BUSY_TIMEOUT_SECONDS)
        else:
            connection = sqlite3.connect(path, timeout=BUSY_TIMEOUT_SECONDS)
    except sqlite3.Error as exc:
        raise DatabaseError(f"Cannot open metadata database {path}: {exc}") from exc
    connection.row_factory = sqlite3.Row
    return connection


def load_migrations() -> Sequence[Migration]:
    migrations = [
        Migration.from_resource(entry.name, entry.read_text(encoding="utf-8"))
        for entry in resources.files(MIGRATION_PACKAGE).iterdir()
        if entry.name.lower().endswith(".sql")
    ]
    return sorted(migrations, key=lambda migration: migration.version)


def _applied_versions(connection: sqlite3.Connection) -> set[int]:
    try:
        rows = connection.execute("SELECT version FROM schema_versions").fetchall()
    except sqlite3.OperationalError:
        return set()
    return {int(row[0]) for row in rows}


def run_migrations(config: AppConfig) -> list[int]:
    """Apply pending migrations and return the versions applied by this call."""
    path = metadata_path(config)
    applied_now: list[int] = []
    with _migration_lock:
        connection = _open_connection(path)
        try:
            applied = _applied_versions(connection)
            for migration in load_migrations():
                if migration.version in applied:
                    continue
                try:
                    connection.executescript(migration.sql)
                    connection.execute(
                        "INSERT OR REPLACE INTO schema_versions(version, description) VALUES (?, ?)",
                        (migration.version, migration.description),
                    )
                    connection.commit()
                except sqlite3.Error as exc:
                    connection.rollback()
                    raise DatabaseError(f"Metadata migration {migration.version} failed: {exc}") from exc
                applied_now.append(migration.version)
        finally:
            connection.close()
        _migrated.add(path)
    return applied_now


@contextmanager
def connect(
    config: AppConfig,
    *,
    read_only: bool = False,
    apply_migrations: bool = True,
) -> Iterator[sqlite3.Connection]:
    """Yield a connection to the metadata database, committing on success.

    Migrations are checked once per database file per process; the store
    opens a short-lived connection for every record operation.
    """
    path = metadata_path(config)
    if apply_migrations and not read_only and path not in _migrated:
        run_migrations(config)
    connection = _open_connection(path, read_only=read_only)
    try:
        yield connection
        if not read_only:
            connection.commit()
    finally:
        connection.close()

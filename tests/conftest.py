"""Shared pytest fixtures.

Databases are built with the native ``sqlite3`` module and handed to the
code under test as raw bytes, the same way uploads arrive.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from pathlib import Path

import pytest

from sqlx_cli.shared import paths
from sqlx_cli.shared.config import AppConfig, load_config

PEOPLE_SCRIPT = """
CREATE TABLE people (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    age INTEGER,
    nickname TEXT DEFAULT 'none'
);
INSERT INTO people (name, age) VALUES ('Ada', 36), ('Grace', 45), ('Linus', NULL);
CREATE TABLE "order items" (
    "select" TEXT,
    qty REAL NOT NULL DEFAULT 1.0
);
INSERT INTO "order items" VALUES ('widget', 2.5);
"""


def build_database(script: str) -> bytes:
    connection = sqlite3.connect(":memory:")
    try:
        connection.executescript(script)
        connection.commit()
        return bytes(connection.serialize())
    finally:
        connection.close()


@pytest.fixture()
def make_database() -> Callable[[str], bytes]:
    """Return a factory turning a SQL script into a database image."""
    return build_database


@pytest.fixture()
def people_db() -> bytes:
    return build_database(PEOPLE_SCRIPT)


@pytest.fixture()
def people_db_path(tmp_path: Path, people_db: bytes) -> Path:
    path = tmp_path / "people.db"
    path.write_bytes(people_db)
    return path


@pytest.fixture()
def config_env(tmp_path: Path) -> dict[str, str]:
    return {
        paths.CONFIG_FILE_ENV: str(tmp_path / "config" / "missing.yaml"),
        paths.UPLOADS_DIR_ENV: str(tmp_path / "uploads"),
        paths.METADATA_DB_ENV: str(tmp_path / "meta" / "files.db"),
    }


@pytest.fixture()
def app_config(config_env: dict[str, str]) -> AppConfig:
    """AppConfig whose store lives entirely under tmp_path."""
    return load_config(env=config_env)


@pytest.fixture()
def isolated_env(monkeypatch: pytest.MonkeyPatch, config_env: dict[str, str]) -> dict[str, str]:
    """Point the process environment at tmp_path so CLI runs never touch ~/.sqlx."""
    for key, value in config_env.items():
        monkeypatch.setenv(key, value)
    return config_env


class StubLogger:
    """Records (level, message) pairs instead of printing them."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))


@pytest.fixture()
def stub_logger() -> StubLogger:
    return StubLogger()

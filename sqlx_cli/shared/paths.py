"""Where sqlx keeps its config file, uploaded blobs and the record database.

Every location can be moved with an ``SQLX_*`` variable; values may use
``~`` and ``$VARS``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

DEFAULT_CONFIG_DIR = "~/.sqlx"
DEFAULT_DATA_DIR = "~/.sqlx/data"
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_UPLOADS_DIRNAME = "uploads"
DEFAULT_METADATA_DB_NAME = "files.db"

CONFIG_DIR_ENV = "SQLX_CONFIG_DIR"
DATA_DIR_ENV = "SQLX_DATA_DIR"
CONFIG_FILE_ENV = "SQLX_CONFIG_PATH"
UPLOADS_DIR_ENV = "SQLX_UPLOADS_DIR"
METADATA_DB_ENV = "SQLX_METADATA_DB"


def resolve_path(path_str: str | Path) -> Path:
    """Expand ``~`` and environment variables."""
    return Path(os.path.expandvars(os.fspath(path_str))).expanduser()


def _from_env(env: Mapping[str, str] | None, variable: str) -> Path | None:
    value = (os.environ if env is None else env).get(variable)
    return resolve_path(value) if value else None


def _ensure_dir(path: Path, create: bool) -> Path:
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir(create: bool = False, env: Mapping[str, str] | None = None) -> Path:
    path = _from_env(env, CONFIG_DIR_ENV) or resolve_path(DEFAULT_CONFIG_DIR)
    return _ensure_dir(path, create)


def get_data_dir(create: bool = False, env: Mapping[str, str] | None = None) -> Path:
    path = _from_env(env, DATA_DIR_ENV) or resolve_path(DEFAULT_DATA_DIR)
    return _ensure_dir(path, create)


def default_config_path(create_parents: bool = False, env: Mapping[str, str] | None = None) -> Path:
    """``$SQLX_CONFIG_PATH`` if set, else ``config.yaml`` in the config dir."""
    explicit = _from_env(env, CONFIG_FILE_ENV)
    if explicit is None:
        return get_config_dir(create=create_parents, env=env) / DEFAULT_CONFIG_FILE
    _ensure_dir(explicit.parent, create_parents)
    return explicit


def default_uploads_dir(env: Mapping[str, str] | None = None) -> Path:
    """Directory holding uploaded database blobs."""
    return _from_env(env, UPLOADS_DIR_ENV) or get_data_dir(env=env) / DEFAULT_UPLOADS_DIRNAME


def default_metadata_db_path(env: Mapping[str, str] | None = None) -> Path:
    """SQLite file that tracks upload records."""
    return _from_env(env, METADATA_DB_ENV) or get_data_dir(env=env) / DEFAULT_METADATA_DB_NAME

"""Configuration loading utilities for the sqlx tool suite."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from . import paths
from .exceptions import ConfigurationError

BYTES_PER_MB = 1024 * 1024
TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
FALSE_WORDS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class StorageSettings:
    """Byte-buffer store configuration."""

    uploads_dir: Path
    metadata_db: Path
    cache_enabled: bool
    max_upload_mb: int
    allowed_extensions: tuple[str, ...]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * BYTES_PER_MB


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """HTTP transfer layer configuration."""

    host: str
    port: int
    url: str  # base URL the CLI uses to reach a running server


@dataclass(frozen=True, slots=True)
class QuerySettings:
    """Interactive query display configuration."""

    row_limit: int
    browse_limit: int


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    storage: StorageSettings
    server: ServerSettings
    query: QuerySettings

    def with_uploads_dir(self, new_path: str | Path) -> AppConfig:
        """Return a copy with an updated uploads directory."""
        resolved = paths.resolve_path(new_path)
        return replace(self, storage=replace(self.storage, uploads_dir=resolved))

    def with_server_url(self, url: str) -> AppConfig:
        """Return a copy pointing the CLI at another server."""
        return replace(self, server=replace(self.server, url=url.rstrip("/")))


def _default_sections(env: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    return {
        "storage": {
            "uploads_dir": str(paths.default_uploads_dir(env=env)),
            "metadata_db": str(paths.default_metadata_db_path(env=env)),
            "cache_enabled": True,
            "max_upload_mb": 100,
            "allowed_extensions": [".db", ".sqlite", ".sqlite3"],
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8000,
            "url": "http://127.0.0.1:8000",
        },
        "query": {
            "row_limit": 200,
            "browse_limit": 100,
        },
    }


def _parse_flag(raw: str) -> bool:
    word = raw.lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ValueError(f"expected one of {sorted(TRUE_WORDS | FALSE_WORDS)}")


def _parse_extensions(raw: str) -> tuple[str, ...]:
    return tuple(filter(None, (piece.strip() for piece in raw.split(","))))


@dataclass(frozen=True, slots=True)
class EnvOverride:
    """One environment variable that replaces a ``section.key`` setting."""

    section: str
    key: str
    variable: str
    parse: Callable[[str], Any] = str


ENV_OVERRIDES: tuple[EnvOverride, ...] = (
    EnvOverride("storage", "uploads_dir", paths.UPLOADS_DIR_ENV),
    EnvOverride("storage", "metadata_db", paths.METADATA_DB_ENV),
    EnvOverride("storage", "cache_enabled", "SQLX_STORAGE_CACHE", _parse_flag),
    EnvOverride("storage", "max_upload_mb", "SQLX_MAX_UPLOAD_MB", int),
    EnvOverride("storage", "allowed_extensions", "SQLX_ALLOWED_EXTENSIONS", _parse_extensions),
    EnvOverride("server", "host", "SQLX_SERVER_HOST"),
    EnvOverride("server", "port", "SQLX_SERVER_PORT", int),
    EnvOverride("server", "url", "SQLX_SERVER_URL"),
    EnvOverride("query", "row_limit", "SQLX_QUERY_ROW_LIMIT", int),
)


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build the config: built-in defaults, then the YAML file, then ``SQLX_*`` variables."""
    env = dict(env or os.environ)
    source = paths.resolve_path(config_path) if config_path else paths.default_config_path(env=env)
    sections = _default_sections(env)
    _overlay_file(sections, _read_config_file(source), source)
    _overlay_env(sections, env)
    return _build_config(sections, source)


def _read_config_file(path: Path) -> Mapping[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
    return data


def _overlay_file(
    sections: dict[str, dict[str, Any]], file_data: Mapping[str, Any], source: Path
) -> None:
    for name, values in file_data.items():
        if name not in sections:
            # Unknown top-level sections are ignored.
            continue
        if not isinstance(values, Mapping):
            raise ConfigurationError(f"Section '{name}' in {source} must be a mapping.")
        sections[name].update(values)


def _overlay_env(sections: dict[str, dict[str, Any]], env: Mapping[str, str]) -> None:
    for override in ENV_OVERRIDES:
        raw = env.get(override.variable)
        if raw is None:
            continue
        try:
            value = override.parse(raw.strip())
        except ValueError as exc:
            raise ConfigurationError(f"{override.variable}={raw!r} is not usable: {exc}") from exc
        sections[override.section][override.key] = value


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return _parse_flag(value.strip())
    return bool(value)


def _normalise_extension(raw: Any) -> str:
    ext = str(raw).strip().lower()
    if not ext.startswith("."):
        ext = f".{ext}"
    return ext


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        storage_cfg = data["storage"]
        storage = StorageSettings(
            uploads_dir=paths.resolve_path(storage_cfg["uploads_dir"]),
            metadata_db=paths.resolve_path(storage_cfg["metadata_db"]),
            cache_enabled=_as_flag(storage_cfg["cache_enabled"]),
            max_upload_mb=int(storage_cfg["max_upload_mb"]),
            allowed_extensions=tuple(
                _normalise_extension(ext) for ext in storage_cfg["allowed_extensions"]
            ),
        )
        server_cfg = data["server"]
        server = ServerSettings(
            host=str(server_cfg["host"]),
            port=int(server_cfg["port"]),
            url=str(server_cfg["url"]).rstrip("/"),
        )
        query_cfg = data["query"]
        query = QuerySettings(
            row_limit=int(query_cfg["row_limit"]),
            browse_limit=int(query_cfg["browse_limit"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    if storage.max_upload_mb <= 0:
        raise ConfigurationError("storage.max_upload_mb must be a positive integer.")
    if not storage.allowed_extensions:
        raise ConfigurationError("storage.allowed_extensions must list at least one extension.")

    return AppConfig(
        source_path=source_path,
        storage=storage,
        server=server,
        query=query,
    )

from __future__ import annotations

from pathlib import Path

from sqlx_cli.shared import paths


def test_get_config_dir_uses_env_override(tmp_path: Path) -> None:
    env = {paths.CONFIG_DIR_ENV: str(tmp_path / "config")}
    result = paths.get_config_dir(create=True, env=env)
    assert result == tmp_path / "config"
    assert result.exists()


def test_default_config_path_uses_override(tmp_path: Path) -> None:
    cfg_path = tmp_path / "conf" / "custom.yaml"
    env = {paths.CONFIG_FILE_ENV: str(cfg_path)}
    resolved = paths.default_config_path(create_parents=True, env=env)
    assert resolved == cfg_path
    assert resolved.parent.exists()


def test_storage_paths_follow_data_dir(tmp_path: Path) -> None:
    env = {paths.DATA_DIR_ENV: str(tmp_path / "data")}
    assert paths.default_uploads_dir(env=env) == tmp_path / "data" / "uploads"
    assert paths.default_metadata_db_path(env=env) == tmp_path / "data" / "files.db"


def test_storage_paths_accept_direct_overrides(tmp_path: Path) -> None:
    env = {
        paths.DATA_DIR_ENV: str(tmp_path / "data"),
        paths.UPLOADS_DIR_ENV: str(tmp_path / "blobs"),
        paths.METADATA_DB_ENV: str(tmp_path / "meta.db"),
    }
    assert paths.default_uploads_dir(env=env) == tmp_path / "blobs"
    assert paths.default_metadata_db_path(env=env) == tmp_path / "meta.db"


def test_resolve_path_expands_user(tmp_path: Path, monkeypatch) -> None:
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    result = paths.resolve_path("~/file.txt")
    assert result == fake_home / "file.txt"

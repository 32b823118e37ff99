from __future__ import annotations

from pathlib import Path

import pytest
import uvicorn
from click.testing import CliRunner
from fastapi import FastAPI

from sqlx_cli.sqlx_serve import main as serve_main
from sqlx_cli.sqlx_serve.main import cli


@pytest.fixture(autouse=True)
def keep_root_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(serve_main, "configure_logging", lambda verbose=False: None)


def test_serve_uses_configured_bind_address(
    isolated_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[dict[str, object]] = []

    def fake_run(app: FastAPI, **kwargs: object) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(uvicorn, "run", fake_run)

    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 0, result.output
    assert calls[0]["host"] == "127.0.0.1"
    assert calls[0]["port"] == 8000
    assert isinstance(calls[0]["app"], FastAPI)


def test_serve_applies_overrides(
    isolated_env: dict[str, str], monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append({"app": app, **kwargs}))
    uploads = tmp_path / "elsewhere"

    result = CliRunner().invoke(
        cli, ["--host", "0.0.0.0", "--port", "9123", "--uploads-dir", str(uploads)]
    )

    assert result.exit_code == 0, result.output
    assert calls[0]["host"] == "0.0.0.0"
    assert calls[0]["port"] == 9123
    app = calls[0]["app"]
    assert app.state.config.storage.uploads_dir == uploads
    assert uploads.is_dir()

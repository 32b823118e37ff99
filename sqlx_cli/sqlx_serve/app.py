"""FastAPI application factory for the transfer layer."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from sqlx_cli.shared.config import AppConfig, load_config
from sqlx_cli.shared.database import run_migrations
from sqlx_cli.shared.storage import FileStore

from .routes import create_sqlite_router

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or load_config()
    applied = run_migrations(config)
    store = FileStore(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        logger.info("Uploads stored in %s", config.storage.uploads_dir)
        logger.info("File records tracked in %s", config.storage.metadata_db)
        if applied:
            logger.info("Applied metadata migrations: %s", ", ".join(map(str, applied)))
        yield

    app = FastAPI(title="sqlx-serve", lifespan=lifespan)
    app.state.config = config
    app.state.store = store

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(
        create_sqlite_router(
            store,
            max_upload_bytes=config.storage.max_upload_bytes,
            max_upload_mb=config.storage.max_upload_mb,
        )
    )
    return app

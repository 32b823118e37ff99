"""HTTP endpoints moving database bytes in and out of the file store."""

from __future__ import annotations

import logging
import sqlite3
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from sqlx_cli.shared.exceptions import (
    BlobNotFoundError,
    RecordNotFoundError,
    StorageError,
    UploadRejectedError,
)
from sqlx_cli.shared.models import FileRecord
from sqlx_cli.shared.storage import FileStore

from .sample import SAMPLE_ORIGINAL_NAME, build_sample_database, sample_storage_key

logger = logging.getLogger(__name__)

SQLITE_MEDIA_TYPE = "application/x-sqlite3"
READ_CHUNK_SIZE = 1024 * 1024


def create_sqlite_router(store: FileStore, *, max_upload_bytes: int, max_upload_mb: int) -> APIRouter:
    router = APIRouter(prefix="/api/sqlite", tags=["sqlite"])

    @router.post("/upload")
    def upload_file(file: UploadFile | None = File(None)):
        if file is None or not file.filename:
            logger.info("Upload failed: no file received")
            raise HTTPException(400, "No file uploaded")

        original_name = file.filename
        try:
            # Extension check happens before any bytes are read.
            store.validate_upload(original_name, 0)
        except UploadRejectedError as exc:
            raise HTTPException(400, str(exc)) from exc

        content = _read_capped(file, max_upload_bytes)
        if content is None:
            raise HTTPException(413, f"File too large (max {max_upload_mb}MB)")

        try:
            record = store.store_upload(original_name, content)
        except UploadRejectedError as exc:
            raise HTTPException(400, str(exc)) from exc
        except StorageError as exc:
            logger.error("Upload error: %s", exc)
            raise HTTPException(500, str(exc)) from exc

        logger.info(
            "File upload: %s -> %s, size: %d bytes", original_name, record.filename, record.file_size
        )
        return {"success": True, "file": record.to_dict()}

    @router.post("/sample")
    def create_sample():
        try:
            buffer = build_sample_database()
            record = store.store_named(sample_storage_key(), SAMPLE_ORIGINAL_NAME, buffer)
        except (sqlite3.Error, StorageError) as exc:
            logger.error("Sample database creation error: %s", exc)
            raise HTTPException(500, str(exc) or "Failed to create sample database") from exc

        logger.info("Sample database created: %s, %d bytes", record.filename, record.file_size)
        return {"success": True, "file": record.to_dict()}

    @router.get("/{file_id}")
    def get_file(file_id: str):
        return _get_record(store, file_id).to_dict()

    @router.get("/{file_id}/buffer")
    def get_buffer(file_id: str) -> Response:
        record, data = _read_file(store, file_id)
        logger.debug("Serving buffer for %s, size: %d bytes", record.filename, len(data))
        return Response(content=data, media_type="application/octet-stream")

    @router.get("/{file_id}/download")
    def download_file(file_id: str) -> Response:
        record, data = _read_file(store, file_id)
        return Response(
            content=data,
            media_type=SQLITE_MEDIA_TYPE,
            headers={"Content-Disposition": _attachment_header(record.original_name)},
        )

    @router.delete("/{file_id}")
    def delete_file(file_id: str):
        try:
            store.delete_file(file_id)
        except StorageError as exc:
            logger.error("Delete error: %s", exc)
            raise HTTPException(500, str(exc) or "Delete failed") from exc
        return {"success": True}

    return router


def _read_capped(file: UploadFile, limit: int) -> bytes | None:
    """Read the upload, returning None as soon as it exceeds ``limit`` bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = file.file.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def _get_record(store: FileStore, file_id: str) -> FileRecord:
    try:
        return store.get_record(file_id)
    except RecordNotFoundError as exc:
        raise HTTPException(404, "File not found") from exc


def _read_file(store: FileStore, file_id: str) -> tuple[FileRecord, bytes]:
    try:
        return store.read_file(file_id)
    except RecordNotFoundError as exc:
        raise HTTPException(404, "File not found") from exc
    except BlobNotFoundError as exc:
        logger.warning("Stored bytes missing for record %s", file_id)
        raise HTTPException(404, "File not found") from exc
    except StorageError as exc:
        raise HTTPException(500, str(exc)) from exc


def _attachment_header(original_name: str) -> str:
    ascii_name = original_name.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(original_name)}"

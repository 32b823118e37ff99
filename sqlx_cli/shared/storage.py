"""Byte-buffer store: uploaded database blobs on disk plus their metadata records."""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
import threading
import uuid
from pathlib import Path, PurePath

from .config import AppConfig
from .database import connect
from .exceptions import (
    BlobNotFoundError,
    DatabaseError,
    RecordNotFoundError,
    StorageError,
    UploadRejectedError,
)
from .models import FileRecord, delete_file_record, fetch_file_record, insert_file_record

logger = logging.getLogger(__name__)


def generate_storage_key(original_name: str) -> str:
    """Return a collision-free storage filename that keeps the original basename."""
    basename = PurePath(original_name.replace("\\", "/")).name or "database.db"
    return f"{uuid.uuid4()}_{basename}"


def has_allowed_extension(filename: str, allowed: tuple[str, ...]) -> bool:
    suffix = PurePath(filename).suffix.lower()
    return suffix in allowed


class FileStore:
    """Persist uploaded buffers keyed by filename and their records keyed by id.

    Blobs are written atomically into ``storage.uploads_dir`` and optionally
    mirrored in an in-memory cache keyed by filename. Records live in the
    metadata SQLite database managed by :mod:`sqlx_cli.shared.database`.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._uploads_dir = config.storage.uploads_dir
        self._cache_enabled = config.storage.cache_enabled
        self._cache: dict[str, bytes] = {}
        self._cache_lock = threading.Lock()
        self._uploads_dir.mkdir(parents=True, exist_ok=True)

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    # ------------------------------------------------------------------
    # Validation

    def validate_upload(self, original_name: str | None, size: int) -> None:
        """Reject missing names, disallowed extensions, and oversize payloads."""
        storage = self._config.storage
        if not original_name:
            raise UploadRejectedError("No file uploaded")
        if not has_allowed_extension(original_name, storage.allowed_extensions):
            allowed = ", ".join(storage.allowed_extensions)
            raise UploadRejectedError(f"Only SQLite files ({allowed}) are allowed")
        if size > storage.max_upload_bytes:
            raise UploadRejectedError(f"File too large (max {storage.max_upload_mb}MB)")

    # ------------------------------------------------------------------
    # Blobs

    def save_buffer(self, filename: str, data: bytes) -> None:
        path = self._blob_path(filename)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._uploads_dir, prefix=".upload-")
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            raise StorageError(f"Failed to write {filename}: {exc}") from exc
        if self._cache_enabled:
            with self._cache_lock:
                self._cache[filename] = bytes(data)
        logger.debug("Stored %s (%d bytes)", filename, len(data))

    def load_buffer(self, filename: str) -> bytes:
        if self._cache_enabled:
            with self._cache_lock:
                cached = self._cache.get(filename)
            if cached is not None:
                return cached

        path = self._blob_path(filename)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFoundError("File not found") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {filename}: {exc}") from exc

        if self._cache_enabled:
            with self._cache_lock:
                self._cache[filename] = data
        return data

    def delete_buffer(self, filename: str) -> None:
        path = self._blob_path(filename)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {filename}: {exc}") from exc
        with self._cache_lock:
            self._cache.pop(filename, None)

    # ------------------------------------------------------------------
    # Records

    def create_record(self, *, filename: str, original_name: str, file_size: int) -> FileRecord:
        try:
            with connect(self._config) as connection:
                return insert_file_record(
                    connection,
                    filename=filename,
                    original_name=original_name,
                    file_size=file_size,
                )
        except (sqlite3.Error, DatabaseError) as exc:
            raise StorageError(f"Failed to record {filename}: {exc}") from exc

    def get_record(self, record_id: str) -> FileRecord:
        with connect(self._config) as connection:
            record = fetch_file_record(connection, record_id)
        if record is None:
            raise RecordNotFoundError("File not found")
        return record

    def delete_record(self, record_id: str) -> bool:
        with connect(self._config) as connection:
            return delete_file_record(connection, record_id)

    # ------------------------------------------------------------------
    # Composite operations used by the transfer layer

    def store_upload(self, original_name: str, data: bytes) -> FileRecord:
        """Validate, persist bytes, then create the record."""
        self.validate_upload(original_name, len(data))
        filename = generate_storage_key(original_name)
        return self.store_named(filename, original_name, data)

    def store_named(self, filename: str, original_name: str, data: bytes) -> FileRecord:
        self.save_buffer(filename, data)
        try:
            return self.create_record(filename=filename, original_name=original_name, file_size=len(data))
        except StorageError:
            # No record points at the blob; drop it.
            self.delete_buffer(filename)
            raise

    def read_file(self, record_id: str) -> tuple[FileRecord, bytes]:
        record = self.get_record(record_id)
        return record, self.load_buffer(record.filename)

    def delete_file(self, record_id: str) -> None:
        """Remove the stored bytes and the record; unknown ids are a no-op."""
        with connect(self._config) as connection:
            record = fetch_file_record(connection, record_id)
        if record is None:
            return
        self.delete_buffer(record.filename)
        self.delete_record(record_id)

    def _blob_path(self, filename: str) -> Path:
        # Storage keys are generated server-side; refuse anything that escapes the directory.
        if PurePath(filename).name != filename or filename in {"", ".", ".."}:
            raise StorageError(f"Invalid storage key '{filename}'")
        return self._uploads_dir / filename

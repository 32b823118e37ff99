"""Data models and helper functions for the file-record metadata store."""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class FileRecord:
    id: str
    # Internal storage key; never shown to users.
    filename: str
    original_name: str
    file_size: int
    uploaded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """JSON payload shape used by the HTTP API."""
        return {
            "id": self.id,
            "filename": self.filename,
            "originalName": self.original_name,
            "fileSize": self.file_size,
            "uploadedAt": self.uploaded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> FileRecord:
        return cls(
            id=str(payload["id"]),
            filename=str(payload["filename"]),
            original_name=str(payload["originalName"]),
            file_size=int(payload["fileSize"]),
            uploaded_at=datetime.fromisoformat(str(payload["uploadedAt"])),
        )


def _row_to_record(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        id=row["id"],
        filename=row["filename"],
        original_name=row["original_name"],
        file_size=int(row["file_size"]),
        uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
    )


def insert_file_record(
    connection: sqlite3.Connection,
    *,
    filename: str,
    original_name: str,
    file_size: int,
) -> FileRecord:
    """Create a record with a generated id and the current UTC timestamp."""
    record = FileRecord(
        id=str(uuid.uuid4()),
        filename=filename,
        original_name=original_name,
        file_size=file_size,
        uploaded_at=datetime.now(timezone.utc),
    )
    connection.execute(
        """
        INSERT INTO file_records (id, filename, original_name, file_size, uploaded_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            record.id,
            record.filename,
            record.original_name,
            record.file_size,
            record.uploaded_at.isoformat(),
        ),
    )
    return record


def fetch_file_record(connection: sqlite3.Connection, record_id: str) -> FileRecord | None:
    row = connection.execute(
        """
        SELECT id, filename, original_name, file_size, uploaded_at
        FROM file_records
        WHERE id = ?
        """,
        (record_id,),
    ).fetchone()
    return _row_to_record(row) if row else None


def delete_file_record(connection: sqlite3.Connection, record_id: str) -> bool:
    """Remove a record; returns False when the id was unknown."""
    cursor = connection.execute("DELETE FROM file_records WHERE id = ?", (record_id,))
    return cursor.rowcount > 0

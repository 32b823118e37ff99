"""Project-wide custom exceptions."""

from __future__ import annotations


class SqlxError(Exception):
    """Base exception for the sqlx tool suite."""


class ConfigurationError(SqlxError):
    """Raised when configuration loading or validation fails."""


class DatabaseError(SqlxError):
    """Raised for database-related issues."""


class NoDatabaseLoadedError(DatabaseError):
    """Raised when an operation needs a live handle and none is loaded."""

    def __init__(self, message: str = "No database loaded") -> None:
        super().__init__(message)


class InvalidHandleError(DatabaseError):
    """Raised when an operation targets a handle that has been closed."""

    def __init__(self, message: str = "Invalid database handle (already closed)") -> None:
        super().__init__(message)


class CorruptDatabaseError(DatabaseError):
    """Raised when a byte buffer is not a valid SQLite database image."""


class QueryError(DatabaseError):
    """Raised when SQL execution fails.

    ``engine_message`` carries SQLite's diagnostic text verbatim so callers can
    show it without any prefix.
    """

    def __init__(self, engine_message: str) -> None:
        super().__init__(engine_message)
        self.engine_message = engine_message


class StorageError(SqlxError):
    """Raised when the byte-buffer store cannot complete an operation."""


class RecordNotFoundError(StorageError):
    """Raised when no file record exists for an id."""


class BlobNotFoundError(StorageError):
    """Raised when a record exists but its stored bytes are missing."""


class UploadRejectedError(StorageError):
    """Raised when an upload fails validation (extension or size)."""


class TransferError(SqlxError):
    """Raised when talking to the sqlx HTTP API fails."""

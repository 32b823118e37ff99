"""In-memory SQLite engine binding: open a byte image, serialize it back, close it."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass

from sqlx_cli.shared.exceptions import CorruptDatabaseError, DatabaseError, InvalidHandleError

logger = logging.getLogger(__name__)

HEADER_MAGIC = b"SQLite format 3\x00"
HEADER_SIZE = 100

# Offsets into the 100-byte database header (https://sqlite.org/fileformat.html).
_PAGE_SIZE_OFFSET = 16
_WRITE_VERSION_OFFSET = 18
_READ_VERSION_OFFSET = 19
_CHANGE_COUNTER_OFFSET = 24
_PAGE_COUNT_OFFSET = 28
_VERSION_VALID_FOR_OFFSET = 92

_WAL_FORMAT = 2
_LEGACY_FORMAT = 1


@dataclass(frozen=True, slots=True)
class Engine:
    """Process-wide facts about the linked SQLite library."""

    sqlite_version: str

    def connect(self) -> sqlite3.Connection:
        # Autocommit: every statement applies immediately, no implicit BEGIN.
        return sqlite3.connect(":memory:", isolation_level=None, check_same_thread=False)


_engine: Engine | None = None
_engine_lock = threading.Lock()


def get_engine() -> Engine:
    """Initialise the engine on first use and reuse it for the process lifetime."""
    global _engine
    if _engine is not None:
        return _engine
    with _engine_lock:
        if _engine is None:
            probe = sqlite3.connect(":memory:")
            try:
                if not hasattr(probe, "deserialize") or not hasattr(probe, "serialize"):
                    raise DatabaseError(
                        "The linked SQLite library does not support serialize/deserialize."
                    )
                version = probe.execute("SELECT sqlite_version()").fetchone()[0]
            finally:
                probe.close()
            _engine = Engine(sqlite_version=str(version))
            logger.debug("SQLite engine initialised (version %s)", version)
    return _engine


class DatabaseHandle:
    """A live, process-local reference to one opened database image."""

    __slots__ = ("_connection", "name")

    def __init__(self, connection: sqlite3.Connection, name: str | None = None) -> None:
        self._connection: sqlite3.Connection | None = connection
        self.name = name

    @property
    def closed(self) -> bool:
        return self._connection is None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise InvalidHandleError()
        return self._connection

    def close(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        connection.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<DatabaseHandle {self.name or '(unnamed)'} {state}>"


def open_database(buffer: bytes, *, name: str | None = None) -> DatabaseHandle:
    """Parse ``buffer`` as a SQLite file image and return a live handle.

    An empty buffer opens a fresh, empty database. Anything else must be a
    complete database image or ``CorruptDatabaseError`` is raised.
    """
    engine = get_engine()
    image = _prepare_image(bytes(buffer))
    connection = engine.connect()
    try:
        if image:
            connection.deserialize(image)
        # Force SQLite to parse the schema so bad images fail here, not later.
        connection.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.DatabaseError as exc:
        connection.close()
        raise CorruptDatabaseError(f"Failed to parse SQLite database: {exc}") from exc
    except BaseException:
        connection.close()
        raise
    return DatabaseHandle(connection, name=name)


def serialize(handle: DatabaseHandle) -> bytes:
    """Return the handle's full current state as a SQLite file image."""
    try:
        return bytes(handle.connection.serialize())
    except sqlite3.Error as exc:
        raise DatabaseError(f"Failed to serialize database: {exc}") from exc


def close(handle: DatabaseHandle) -> None:
    """Release the handle; closing twice is a no-op."""
    handle.close()


def _prepare_image(buffer: bytes) -> bytes:
    if not buffer:
        return buffer
    if len(buffer) < HEADER_SIZE or not buffer.startswith(HEADER_MAGIC):
        raise CorruptDatabaseError("Failed to parse SQLite database: file is not a database")

    page_size = int.from_bytes(buffer[_PAGE_SIZE_OFFSET:_PAGE_SIZE_OFFSET + 2], "big")
    if page_size == 1:
        page_size = 65536
    change_counter = buffer[_CHANGE_COUNTER_OFFSET:_CHANGE_COUNTER_OFFSET + 4]
    valid_for = buffer[_VERSION_VALID_FOR_OFFSET:_VERSION_VALID_FOR_OFFSET + 4]
    page_count = int.from_bytes(buffer[_PAGE_COUNT_OFFSET:_PAGE_COUNT_OFFSET + 4], "big")
    if change_counter == valid_for and page_count and len(buffer) < page_size * page_count:
        raise CorruptDatabaseError(
            "Failed to parse SQLite database: image is truncated "
            f"({len(buffer)} of {page_size * page_count} bytes)"
        )

    # An in-memory copy cannot use a WAL file; switch the copy to rollback journaling.
    if buffer[_WRITE_VERSION_OFFSET] == _WAL_FORMAT or buffer[_READ_VERSION_OFFSET] == _WAL_FORMAT:
        patched = bytearray(buffer)
        patched[_WRITE_VERSION_OFFSET] = _LEGACY_FORMAT
        patched[_READ_VERSION_OFFSET] = _LEGACY_FORMAT
        return bytes(patched)
    return buffer

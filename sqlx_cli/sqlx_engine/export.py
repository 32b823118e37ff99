"""Result export: quoted CSV text, a JSON-safe payload, and the raw database image."""

from __future__ import annotations

import csv
import io
from typing import Any

from .engine import DatabaseHandle, serialize
from .types import CellKind, QueryResult


def to_csv(result: QueryResult) -> str:
    """Render ``result`` as CSV with every field double-quoted.

    Rows are joined with ``\\n`` and there is no trailing newline. ``None``
    becomes an empty field. A result without columns renders as ``""``.
    """
    if not result.columns:
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(result.columns)
    for row in result.rows:
        writer.writerow(cell_text(cell) for cell in row)
    return buffer.getvalue().removesuffix("\n")


def to_bytes(handle: DatabaseHandle) -> bytes:
    """Full current database image, independent of any query result."""
    return serialize(handle)


def to_payload(result: QueryResult) -> dict[str, Any]:
    """JSON-safe columns/rows payload; blobs are tagged with their kind.

    Rows stay positional lists because column names may repeat.
    """
    return {
        "columns": list(result.columns),
        "rows": [[json_value(value) for value in row] for row in result.rows],
    }


def cell_text(value: Any) -> str:
    kind = CellKind.of(value)
    if kind is CellKind.NULL:
        return ""
    if kind is CellKind.BLOB:
        return bytes(value).hex()
    return str(value)


def json_value(value: Any) -> Any:
    if CellKind.of(value) is CellKind.BLOB:
        return {"kind": CellKind.BLOB.value, "hex": bytes(value).hex()}
    return value

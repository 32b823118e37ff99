"""Execute ad-hoc SQL text against a live handle."""

from __future__ import annotations

import re
import sqlite3
from typing import Iterator

from sqlx_cli.shared.exceptions import QueryError

from .engine import DatabaseHandle
from .types import QueryResult

SCHEMA_CHANGE_KEYWORDS = ("create", "drop", "alter")

# Whitespace, semicolons and comments with no statement behind them.
_LEADING_NOISE = re.compile(r"\A(?:\s+|;|--[^\n]*(?:\n|\Z)|/\*.*?(?:\*/|\Z))*", re.DOTALL)


def execute(handle: DatabaseHandle, sql: str) -> QueryResult:
    """Run ``sql`` verbatim and return the first result set it produces.

    The text may hold several statements. All of them run in order, in
    autocommit mode; only the first statement that yields result columns is
    reported and later result sets are discarded. Text that produces no
    result set returns an empty ``QueryResult``. The first failing statement
    raises ``QueryError`` with SQLite's message; statements before it stay
    applied and statements after it do not run.
    """
    connection = handle.connection
    result: QueryResult | None = None

    for statement in split_statements(sql):
        cursor = connection.cursor()
        try:
            cursor.execute(statement)
            description = cursor.description
            # Always drain so the statement runs to completion (RETURNING, DML).
            rows = cursor.fetchall()
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        except (OverflowError, ValueError) as exc:
            # Values Python cannot represent, e.g. text that is not valid UTF-8.
            raise QueryError(str(exc)) from exc
        finally:
            cursor.close()

        if result is None and description:
            result = QueryResult(
                columns=tuple(col[0] for col in description),
                rows=[tuple(row) for row in rows],
            )

    return result or QueryResult()


def split_statements(sql: str) -> Iterator[str]:
    """Yield the complete statements in ``sql``.

    ``sqlite3.complete_statement`` understands string literals, comments and
    trigger bodies, so semicolons inside them do not end a statement. A
    trailing fragment without a semicolon is yielded as the last statement.
    """
    pending = ""
    pieces = sql.split(";")
    for index, piece in enumerate(pieces):
        pending += piece
        if index < len(pieces) - 1:
            pending += ";"
            if not sqlite3.complete_statement(pending):
                continue
        statement = pending.strip()
        pending = ""
        if _LEADING_NOISE.sub("", statement):
            yield statement


def requires_schema_refresh(sql: str) -> bool:
    """Crude check for structural statements: substring match, not a parser."""
    lowered = sql.lower()
    return any(keyword in lowered for keyword in SCHEMA_CHANGE_KEYWORDS)

"""Output rendering helpers for sqlx-query."""

from __future__ import annotations

import csv
import json
import sys
from typing import IO

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from sqlx_cli.shared.logging import Logger
from sqlx_cli.sqlx_engine.export import cell_text, to_csv, to_payload
from sqlx_cli.sqlx_engine.types import DatabaseSchema, QueryResult


def render_query_result(
    result: QueryResult,
    *,
    output_format: str,
    logger: Logger,
    stream=None,
    limit: int | None = None,
) -> None:
    """Render a query result set to the desired format.

    ``limit`` only caps the interactive table view; csv/tsv/json always emit
    every row.
    """
    output_stream = stream or sys.stdout
    fmt = (output_format or "table").lower()

    if fmt == "table":
        _render_table(result, logger=logger, stream=output_stream, limit=limit)
    elif fmt == "csv":
        text = to_csv(result)
        if text:
            output_stream.write(text + "\n")
    elif fmt == "tsv":
        _render_delimited(result, stream=output_stream, delimiter="\t")
    elif fmt == "json":
        json.dump(to_payload(result), output_stream, indent=2)
        output_stream.write("\n")
    else:  # pragma: no cover - Click validation should prevent this
        raise ValueError(f"Unsupported output format '{output_format}'.")


def timing_summary(result: QueryResult, elapsed: float) -> str:
    """One-line summary shown after a query, e.g. ``3 rows in 0.004s``."""
    if not result.columns:
        return f"Statement executed in {elapsed:.3f}s"
    noun = "row" if len(result.rows) == 1 else "rows"
    return f"{len(result.rows)} {noun} in {elapsed:.3f}s"


def render_schema(
    schema: DatabaseSchema,
    *,
    output_format: str,
    logger: Logger,
    stream=None,
    title: str | None = None,
) -> None:
    """Write the schema as a Rich tree or as the JSON payload."""
    output_stream = stream or sys.stdout
    fmt = (output_format or "table").lower()

    if fmt == "json":
        json.dump(schema_payload(schema), output_stream, indent=2)
        output_stream.write("\n")
        return

    if not schema.tables:
        logger.info("No tables found in database.")
        return

    console = Console(file=output_stream, highlight=False, force_terminal=False)
    tree = Tree(f"[bold]{escape(title or 'database')}[/bold] ({len(schema.tables)} tables)")
    for table in schema.tables:
        branch = tree.add(f"[bold]{escape(table.name)}[/bold] [dim]{table.row_count} rows[/dim]")
        for column in table.columns:
            flags = []
            if column.is_primary_key:
                flags.append("PK")
            if column.not_null:
                flags.append("NOT NULL")
            if column.default is not None:
                flags.append(f"DEFAULT {escape(str(column.default))}")
            suffix = f" [dim]{' '.join(flags)}[/dim]" if flags else ""
            column_type = escape(column.type or "ANY")
            branch.add(f"{escape(column.name)} [cyan]{column_type}[/cyan]{suffix}")
    console.print(tree)


def schema_payload(schema: DatabaseSchema) -> dict[str, object]:
    return {
        "tables": [
            {
                "name": table.name,
                "rowCount": table.row_count,
                "columns": [
                    {
                        "cid": column.cid,
                        "name": column.name,
                        "type": column.type,
                        "notnull": int(column.not_null),
                        "dflt_value": column.default,
                        "pk": column.primary_key,
                    }
                    for column in table.columns
                ],
            }
            for table in schema.tables
        ]
    }


def _render_table(result: QueryResult, *, logger: Logger, stream: IO[str], limit: int | None) -> None:
    if result.is_empty:
        logger.info("Statement executed; no result set returned.")
        return

    rows = list(result.rows)
    truncated = limit is not None and limit > 0 and len(rows) > limit
    if truncated:
        rows = rows[:limit]

    console = Console(file=stream, highlight=False, force_terminal=False)
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold")
    for column in result.columns:
        table.add_column(escape(column or ""), overflow="fold")
    for row in rows:
        table.add_row(*[_display_cell(cell) for cell in row])
    console.print(table)

    if not result.rows:
        logger.info("Query returned zero rows.")
    elif truncated:
        logger.warning(
            f"Showing {limit} of {len(result.rows)} rows. Re-run with --limit 0 or --format csv/json for full output."
        )


def _render_delimited(result: QueryResult, *, stream: IO[str], delimiter: str) -> None:
    writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
    if result.columns:
        writer.writerow(result.columns)
    for row in result.rows:
        writer.writerow(cell_text(cell) for cell in row)


def _display_cell(value: object) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<blob {len(bytes(value))} bytes>"
    return escape(str(value))

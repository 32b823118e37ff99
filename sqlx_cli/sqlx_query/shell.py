"""Interactive SQL shell over a single session."""

from __future__ import annotations

import shlex
import sqlite3
from pathlib import Path
from typing import IO, Callable

import click

from sqlx_cli.shared.exceptions import QueryError, SqlxError
from sqlx_cli.shared.logging import Logger
from sqlx_cli.sqlx_engine.session import Session
from sqlx_cli.sqlx_engine.types import DatabaseSchema

from . import render

PROMPT = "sqlx> "
CONTINUATION_PROMPT = "  ...> "

HELP_TEXT = """\
.tables               List tables with row counts
.schema [TABLE]       Show columns for all tables or one table
.browse TABLE [N]     Show the first N rows of TABLE
.insert TABLE K=V...  Insert a row (empty values use column defaults)
.csv PATH             Write the last result as quoted CSV
.save PATH            Write the current database image to PATH
.help                 Show this message
.quit                 Leave the shell
SQL ending with ';' runs against the loaded database."""


class Shell:
    """Read statements and dot-commands, run them through a session.

    Query errors are reported and the loop continues; the previous result
    stays available to ``.csv``.
    """

    def __init__(
        self,
        session: Session,
        *,
        logger: Logger,
        stdin: IO[str],
        stdout: IO[str],
        row_limit: int | None = None,
        prompt: Callable[[str], None] | None = None,
    ) -> None:
        self.session = session
        self.logger = logger
        self.stdin = stdin
        self.stdout = stdout
        self.row_limit = row_limit
        self._prompt = prompt or (lambda text: click.echo(text, nl=False, err=True))
        self._running = False

    def run(self) -> None:
        self._running = True
        pending = ""
        while self._running:
            self._prompt(CONTINUATION_PROMPT if pending else PROMPT)
            line = self.stdin.readline()
            if not line:
                break
            if not pending and line.strip().startswith("."):
                self.dispatch_command(line.strip())
                continue
            pending += line
            if sqlite3.complete_statement(pending):
                self.run_sql(pending)
                pending = ""
        if pending.strip():
            self.run_sql(pending)

    def run_sql(self, sql: str) -> None:
        tables_before = self.session.schema.table_names if self.session.schema else ()
        try:
            result = self.session.run(sql)
        except QueryError as exc:
            self.logger.error(exc.engine_message)
            return
        render.render_query_result(
            result, output_format="table", logger=self.logger, stream=self.stdout, limit=self.row_limit
        )
        self.logger.info(render.timing_summary(result, self.session.last_elapsed or 0.0))
        tables_after = self.session.schema.table_names if self.session.schema else ()
        if tables_after != tables_before:
            self.logger.info(f"Schema refreshed ({len(tables_after)} tables).")

    def dispatch_command(self, line: str) -> None:
        try:
            parts = shlex.split(line)
        except ValueError as exc:
            self.logger.error(f"Cannot parse command: {exc}")
            return
        command, args = parts[0].lower(), parts[1:]
        handler = {
            ".tables": self._cmd_tables,
            ".schema": self._cmd_schema,
            ".browse": self._cmd_browse,
            ".insert": self._cmd_insert,
            ".csv": self._cmd_csv,
            ".save": self._cmd_save,
            ".help": self._cmd_help,
            ".quit": self._cmd_quit,
            ".exit": self._cmd_quit,
        }.get(command)
        if handler is None:
            self.logger.error(f"Unknown command {command}. Try .help")
            return
        try:
            handler(args)
        except QueryError as exc:
            self.logger.error(exc.engine_message)
        except SqlxError as exc:
            self.logger.error(str(exc))

    def _cmd_tables(self, args: list[str]) -> None:
        schema = self.session.refresh_schema()
        for table in schema.tables:
            self.stdout.write(f"{table.name}\t{table.row_count}\n")

    def _cmd_schema(self, args: list[str]) -> None:
        schema = self.session.refresh_schema()
        if args:
            table = schema.table(args[0])
            if table is None:
                self.logger.error(f"no such table: {args[0]}")
                return
            schema = DatabaseSchema(tables=(table,))
        render.render_schema(
            schema, output_format="table", logger=self.logger, stream=self.stdout, title=self.session.name
        )

    def _cmd_browse(self, args: list[str]) -> None:
        if not args:
            self.logger.error("Usage: .browse TABLE [LIMIT]")
            return
        limit = int(args[1]) if len(args) > 1 and args[1].isdigit() else None
        result = self.session.browse(args[0], limit)
        render.render_query_result(result, output_format="table", logger=self.logger, stream=self.stdout)

    def _cmd_insert(self, args: list[str]) -> None:
        if not args:
            self.logger.error("Usage: .insert TABLE column=value ...")
            return
        try:
            values = parse_assignments(args[1:])
        except ValueError as exc:
            self.logger.error(str(exc))
            return
        self.session.insert_record(args[0], values)
        self.logger.success(f"Record inserted into {args[0]}.")

    def _cmd_csv(self, args: list[str]) -> None:
        if not args:
            self.logger.error("Usage: .csv PATH")
            return
        if self.session.last_result is None:
            self.logger.warning("No query result to export yet.")
            return
        path = Path(args[0]).expanduser()
        path.write_text(self.session.export_csv(), encoding="utf-8")
        self.logger.success(f"Wrote {len(self.session.last_result.rows)} rows to {path}")

    def _cmd_save(self, args: list[str]) -> None:
        if not args:
            self.logger.error("Usage: .save PATH")
            return
        path = Path(args[0]).expanduser()
        data = self.session.export_database()
        path.write_bytes(data)
        self.logger.success(f"Saved database image ({len(data)} bytes) to {path}")

    def _cmd_help(self, args: list[str]) -> None:
        self.stdout.write(HELP_TEXT + "\n")

    def _cmd_quit(self, args: list[str]) -> None:
        self._running = False


def parse_assignments(raw_pairs: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Parse ``column=value`` pairs, keeping the given order."""
    values: dict[str, str] = {}
    for raw in raw_pairs:
        if "=" not in raw:
            raise ValueError(f"Expected COLUMN=VALUE, got '{raw}'.")
        key, value = raw.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"Missing column name in '{raw}'.")
        values[key] = value
    return values

"""sqlx-query CLI entrypoint."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import click

from sqlx_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context
from sqlx_cli.shared.exceptions import CorruptDatabaseError, QueryError
from sqlx_cli.sqlx_engine.session import Session
from sqlx_cli.sqlx_engine.types import DatabaseSchema

from . import render
from .client import TransferClient
from .shell import Shell, parse_assignments

OUTPUT_FORMAT_CHOICES = ("table", "tsv", "csv", "json")
SCHEMA_FORMAT_CHOICES = ("table", "json")
REMOTE_PREFIX = "remote:"


@click.group(help="Inspect, query and export SQLite databases.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for sqlx-query commands."""
    cli_ctx.logger.debug(f"sqlx-query using server {cli_ctx.config.server.url}")


@cli.command("schema")
@click.argument("source", type=str)
@click.option("--table", "table_filter", type=str, help="Only show this table.")
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(SCHEMA_FORMAT_CHOICES),
)
@pass_cli_context
@handle_cli_errors
def show_schema(cli_ctx: CLIContext, source: str, table_filter: str | None, output_format: str) -> None:
    """Show tables, columns and row counts."""
    with _open_session(cli_ctx, source) as session:
        schema = session.schema or DatabaseSchema()
        if table_filter:
            table = schema.table(table_filter)
            if table is None:
                raise click.ClickException(f"Table '{table_filter}' does not exist in the database.")
            schema = DatabaseSchema(tables=(table,))
        render.render_schema(
            schema, output_format=output_format, logger=cli_ctx.logger, title=session.name
        )


@cli.command("sql")
@click.argument("source", type=str)
@click.argument("query", type=str)
@click.option("--limit", type=int, help="Rows shown in table output (0 shows all).")
@click.option(
    "--format",
    "output_format",
    default="table",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)
@click.option(
    "--save",
    "save_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write the database image after the query runs.",
)
@pass_cli_context
@handle_cli_errors
def run_sql(
    cli_ctx: CLIContext,
    source: str,
    query: str,
    limit: int | None,
    output_format: str,
    save_path: Path | None,
) -> None:
    """Execute ad-hoc SQL against the database."""
    if not query.strip():
        raise click.ClickException("Query text must not be empty.")

    with _open_session(cli_ctx, source) as session:
        result = session.run(query)
        render.render_query_result(
            result,
            output_format=output_format,
            logger=cli_ctx.logger,
            limit=cli_ctx.config.query.row_limit if limit is None else limit,
        )
        summary = render.timing_summary(result, session.last_elapsed or 0.0)
        if output_format == "table":
            cli_ctx.logger.info(summary)
        else:
            cli_ctx.logger.debug(summary)
        if save_path is not None:
            _save_image(cli_ctx, session, save_path)


@cli.command("export")
@click.argument("source", type=str)
@click.argument("query", type=str)
@click.option(
    "--output",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Output file path (default stdout).",
)
@pass_cli_context
@handle_cli_errors
def export_csv(cli_ctx: CLIContext, source: str, query: str, output: Path | None) -> None:
    """Export a query result as quoted CSV."""
    with _open_session(cli_ctx, source) as session:
        session.run(query)
        content = session.export_csv()

    if output is None:
        click.echo(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    cli_ctx.logger.info(f"Exported CSV → {output}")


@cli.command("insert")
@click.argument("source", type=str)
@click.argument("table", type=str)
@click.option(
    "-v",
    "--value",
    "values",
    multiple=True,
    metavar="COLUMN=VALUE",
    help="Column value for the new row (repeatable).",
)
@click.option(
    "--save",
    "save_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write the updated database image here.",
)
@pass_cli_context
@handle_cli_errors
def insert_record(
    cli_ctx: CLIContext,
    source: str,
    table: str,
    values: Iterable[str],
    save_path: Path | None,
) -> None:
    """Insert one row, leaving the auto-increment key to SQLite."""
    try:
        assignments = parse_assignments(tuple(values))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    with _open_session(cli_ctx, source) as session:
        try:
            session.insert_record(table, assignments)
        except QueryError as exc:
            raise click.ClickException(f"Failed to insert record: {exc.engine_message}") from exc
        table_info = session.schema.table(table) if session.schema else None
        count = table_info.row_count if table_info else "?"
        cli_ctx.logger.success(f"Record inserted into {table} ({count} rows).")
        if save_path is None:
            cli_ctx.logger.warning("No --save path given; the change was not written anywhere.")
        else:
            _save_image(cli_ctx, session, save_path)


@cli.command("dump")
@click.argument("source", type=str)
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@pass_cli_context
@handle_cli_errors
def dump_database(cli_ctx: CLIContext, source: str, output: Path) -> None:
    """Write the full database image to OUTPUT."""
    with _open_session(cli_ctx, source) as session:
        _save_image(cli_ctx, session, output)


@cli.command("shell")
@click.argument("source", type=str)
@pass_cli_context
@handle_cli_errors
def run_shell(cli_ctx: CLIContext, source: str) -> None:
    """Interactive session: SQL statements plus .commands (see .help)."""
    with _open_session(cli_ctx, source) as session:
        schema = session.schema
        table_count = len(schema.tables) if schema else 0
        cli_ctx.logger.info(f"Loaded {session.name} ({session.size} bytes, {table_count} tables). Type .help")
        shell = Shell(
            session,
            logger=cli_ctx.logger,
            stdin=click.get_text_stream("stdin"),
            stdout=click.get_text_stream("stdout"),
            row_limit=cli_ctx.config.query.row_limit,
        )
        shell.run()


@cli.command("upload")
@click.argument("path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@pass_cli_context
@handle_cli_errors
def upload_file(cli_ctx: CLIContext, path: Path) -> None:
    """Upload a database file to the server and print its id."""
    with TransferClient(cli_ctx.config.server.url) as client:
        record = client.upload(path)
    cli_ctx.logger.success(f"Uploaded {record.original_name} ({record.file_size} bytes)")
    click.echo(record.id)


@cli.command("sample")
@pass_cli_context
@handle_cli_errors
def create_sample(cli_ctx: CLIContext) -> None:
    """Ask the server to create the demo database and print its id."""
    with TransferClient(cli_ctx.config.server.url) as client:
        record = client.create_sample()
    cli_ctx.logger.success(f"Created {record.original_name} ({record.file_size} bytes)")
    click.echo(record.id)


@cli.command("pull")
@click.argument("file_id", type=str)
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@pass_cli_context
@handle_cli_errors
def pull_file(cli_ctx: CLIContext, file_id: str, output: Path) -> None:
    """Download a stored database file."""
    with TransferClient(cli_ctx.config.server.url) as client:
        data = client.download(file_id)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    cli_ctx.logger.success(f"Downloaded {len(data)} bytes → {output}")


@cli.command("delete")
@click.argument("file_id", type=str)
@pass_cli_context
@handle_cli_errors
def delete_file(cli_ctx: CLIContext, file_id: str) -> None:
    """Remove a stored database file from the server."""
    with TransferClient(cli_ctx.config.server.url) as client:
        client.delete(file_id)
    cli_ctx.logger.success(f"Deleted {file_id}")


def load_source(cli_ctx: CLIContext, source: str) -> tuple[bytes, str]:
    """Return the bytes and display name for a local path or ``remote:<id>``."""
    if source.startswith(REMOTE_PREFIX):
        file_id = source[len(REMOTE_PREFIX):]
        if not file_id:
            raise click.ClickException("Remote source needs an id, e.g. remote:<id>.")
        with TransferClient(cli_ctx.config.server.url) as client:
            record = client.get_record(file_id)
            data = client.fetch_buffer(file_id)
        cli_ctx.logger.debug(f"Fetched {record.original_name} ({len(data)} bytes) from server")
        return data, record.original_name

    path = Path(source).expanduser()
    if not path.is_file():
        raise click.ClickException(f"Database file '{path}' does not exist.")
    return path.read_bytes(), path.name


def _open_session(cli_ctx: CLIContext, source: str) -> Session:
    data, name = load_source(cli_ctx, source)
    session = Session(browse_limit=cli_ctx.config.query.browse_limit)
    try:
        session.load(data, name=name)
    except CorruptDatabaseError as exc:
        raise click.ClickException(f"{name}: {exc}") from exc
    cli_ctx.logger.debug(f"Loaded {name} ({len(data)} bytes)")
    return session


def _save_image(cli_ctx: CLIContext, session: Session, path: Path) -> None:
    data = session.export_database()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    cli_ctx.logger.success(f"Saved database image ({len(data)} bytes) → {path}")


def main() -> None:
    """Entry point for console_scripts."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()

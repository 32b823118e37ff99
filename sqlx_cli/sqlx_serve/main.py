"""sqlx-serve CLI entrypoint."""

from __future__ import annotations

import click

from sqlx_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors
from sqlx_cli.shared.logging import configure_logging


@click.command(help="Serve the sqlx file store over HTTP.")
@click.option("--host", type=str, help="Host to bind to (defaults to server.host).")
@click.option("--port", type=int, help="Port to bind to (defaults to server.port).")
@click.option("--uploads-dir", type=click.Path(path_type=str), help="Override the uploads directory.")
@common_cli_options
@handle_cli_errors
def cli(
    host: str | None,
    port: int | None,
    uploads_dir: str | None,
    cli_ctx: CLIContext,
) -> None:
    """Run the transfer layer with uvicorn."""
    configure_logging(verbose=cli_ctx.verbose)
    config = cli_ctx.config
    if uploads_dir:
        config = config.with_uploads_dir(uploads_dir)

    from sqlx_cli.sqlx_serve.app import create_app

    app = create_app(config)

    import uvicorn

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    cli_ctx.logger.info(f"Serving sqlx file store on http://{bind_host}:{bind_port}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)


def main() -> None:
    """Entry point for console_scripts."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()

"""Click plumbing shared by sqlx-query and sqlx-serve."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import click

from .config import AppConfig, load_config
from .exceptions import ConfigurationError, QueryError, SqlxError, TransferError
from .logging import Logger, get_logger

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(slots=True)
class CLIContext:
    """Config and logger resolved once per invocation."""

    config: AppConfig
    verbose: bool
    logger: Logger

    @classmethod
    def create(
        cls,
        *,
        config_path: str | None = None,
        server_url: str | None = None,
        verbose: bool = False,
        quiet: bool = False,
    ) -> CLIContext:
        config = load_config(config_path)
        if server_url:
            config = config.with_server_url(server_url)
        return cls(config=config, verbose=verbose, logger=get_logger(verbose=verbose, quiet=quiet))


pass_cli_context = click.make_pass_decorator(CLIContext)


def common_cli_options(func: F) -> F:
    """Add --config/--server/--verbose/--quiet and inject ``cli_ctx``."""

    @click.option("--config", "config_path", type=click.Path(path_type=str), help="Path to config file.")
    @click.option("--server", "server_url", type=str, help="Base URL of a running sqlx-serve.")
    @click.option("--verbose", is_flag=True, help="Show debug output.")
    @click.option("--quiet", is_flag=True, help="Only print warnings and errors to stderr.")
    @click.pass_context
    @functools.wraps(func)
    def wrapper(
        ctx: click.Context,
        *args: Any,
        config_path: str | None = None,
        server_url: str | None = None,
        verbose: bool = False,
        quiet: bool = False,
        **kwargs: Any,
    ) -> Any:
        try:
            cli_ctx = CLIContext.create(
                config_path=config_path, server_url=server_url, verbose=verbose, quiet=quiet
            )
        except ConfigurationError as exc:
            raise click.ClickException(str(exc)) from exc

        ctx.obj = cli_ctx
        kwargs["cli_ctx"] = cli_ctx
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def handle_cli_errors(func: F) -> F:
    """Turn sqlx errors into one-line Click failures."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except ConfigurationError as exc:
            raise click.ClickException(f"Configuration error: {exc}") from exc
        except QueryError as exc:
            raise click.ClickException(f"SQL error: {exc.engine_message}") from exc
        except TransferError as exc:
            raise click.ClickException(f"Server request failed: {exc}") from exc
        except SqlxError as exc:
            raise click.ClickException(str(exc)) from exc
        except Exception as exc:  # pragma: no cover
            raise click.ClickException(f"Unexpected error: {exc}") from exc

    return wrapper  # type: ignore[return-value]

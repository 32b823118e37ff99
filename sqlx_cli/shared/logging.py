"""Rich-based logging for the CLIs and the server.

Payloads (result grids, CSV, JSON, database ids) go to stdout through the
renderers; everything a human reads while waiting goes to stderr here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.traceback import install

install(show_locals=False)

_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "debug": "dim",
    }
)

# No highlighting: numbers and paths inside messages would otherwise pick up ANSI styles.
_stderr_console = Console(stderr=True, theme=_THEME, highlight=False)


@dataclass(slots=True)
class Logger:
    """Leveled messages on stderr.

    ``quiet`` drops info/success chatter so piped output stays clean;
    warnings and errors always print. ``debug`` needs ``verbose``.
    """

    verbose: bool = False
    quiet: bool = False

    def info(self, message: str) -> None:
        self._emit(message, "info", always=False)

    def success(self, message: str) -> None:
        self._emit(message, "success", always=False)

    def warning(self, message: str) -> None:
        self._emit(message, "warning", always=True)

    def error(self, message: str) -> None:
        self._emit(message, "error", always=True)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._emit(message, "debug", always=True)

    def _emit(self, message: str, style: str, *, always: bool) -> None:
        if self.quiet and not always:
            return
        # Engine messages may contain [brackets]; never parse them as markup.
        _stderr_console.print(message, style=style, markup=False)


def get_logger(verbose: bool = False, quiet: bool = False) -> Logger:
    return Logger(verbose=verbose, quiet=quiet)


def configure_logging(verbose: bool = False) -> None:
    """Send stdlib ``logging`` records (server modules, uvicorn) through Rich on stderr."""
    handler = RichHandler(console=_stderr_console, show_path=False, markup=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

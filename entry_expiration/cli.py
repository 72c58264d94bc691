from __future__ import annotations

import logging
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .cleaner import LogReporter, run
from .errors import InvalidArgument, StoreError
from .logging import setup_logging
from .settings import load_settings
from .store import open_store
from .timeparse import parse_duration


logger = logging.getLogger("entry_expiration")

app = typer.Typer(
    add_completion=False,
    help="entry-expiration: delete expired form entries",
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)


class ConsoleReporter(LogReporter):
    """Log status messages and print them to the terminal."""

    def __init__(self, out: Console):
        self.out = out

    def log(self, message: str) -> None:
        super().log(message)
        self.out.print(escape(message))

    def warning(self, message: str) -> None:
        super().warning(message)
        self.out.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")

    def success(self, message: str) -> None:
        super().success(message)
        self.out.print(f"[bold green]Success:[/bold green] {escape(message)}")


def _fail(message: str) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


@app.callback()
def _root() -> None:
    """Maintenance commands for stored form entries."""


@app.command("clean-entries", help="Delete entries older than a relative time (e.g. 6months)")
def clean_entries(
    duration: Annotated[
        str,
        typer.Argument(help='How long entries must be kept, e.g. "6months", "1year", "90days"'),
    ] = "",
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Only report how many entries would be deleted."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Mirror diagnostic log records to stderr."),
    ] = False,
) -> None:
    """Clean form entries regarding a given expiration time.

    Examples:

        clean-entries 6months

        clean-entries 6months --dry-run
    """

    # Reject bad durations before touching settings, log files or the store.
    try:
        parse_duration(duration)
    except InvalidArgument as e:
        _fail(str(e))

    try:
        s = load_settings()
        setup_logging(s, console=verbose)
    except ValidationError as e:
        _fail(f"Invalid configuration: {e}")
    except OSError as e:
        _fail(f"Could not prepare data or log directories: {e}")

    reporter = ConsoleReporter(console)
    try:
        with open_store(s) as store:
            run(duration, dry_run, store, reporter=reporter)
    except InvalidArgument as e:
        logger.error("%s", e)
        _fail(str(e))
    except StoreError as e:
        logger.exception("record store failure")
        _fail(str(e))


def main() -> None:
    app()


# Single-command app behind the standalone `clean-entries` console script.
clean_entries_app = typer.Typer(add_completion=False, rich_markup_mode="rich")
clean_entries_app.command()(clean_entries)


def clean_entries_main() -> None:
    clean_entries_app()

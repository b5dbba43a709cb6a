"""Main CLI application."""

import sys

import typer
from loguru import logger

from persistent_events.cli.commands import bindings

app = typer.Typer(
    name="persistent-events",
    help="Persistent events CLI - Manage persisted event bindings",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Global options for all commands."""
    if verbose:
        logger.remove()
        logger.add(sys.stderr, format="<level>{level: <8}</level> | <level>{message}</level>", level="DEBUG")


# Register command groups
app.add_typer(bindings.app, name="bindings")

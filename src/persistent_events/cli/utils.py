"""CLI utility functions shared across commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from persistent_events.event_bus import EventBus, EventBusError
from persistent_events.exceptions import KeyStoreError
from persistent_events.keystore import get_key_store
from persistent_events.settings import get_settings

console = Console()


def build_bus() -> EventBus:
    """Create a bus on the configured store, warning when the store is process-local."""
    settings = get_settings()
    if settings.store_backend == "memory":
        console.print(
            "[yellow]Warning: memory store backend, bindings will not outlive this command. "
            "Set PERSISTENT_EVENTS_STORE_BACKEND=redis to use a shared store.[/yellow]"
        )
    return EventBus(get_key_store())


@contextmanager
def exit_on_error(action: str) -> Iterator[None]:
    """Turn event bus and store failures into a red message and exit code 1.

    Args:
        action: Human-readable description of what was attempted

    Raises:
        typer.Exit: If an EventBusError or KeyStoreError is raised
    """
    try:
        yield
    except (EventBusError, KeyStoreError) as e:
        console.print(f"[red]Error: cannot {action}: {e}[/red]")
        raise typer.Exit(1) from None

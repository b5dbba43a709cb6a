"""Persisted binding commands."""

import json

import typer
from rich.table import Table

from persistent_events.cli.utils import build_bus, console, exit_on_error
from persistent_events.event_bus import BindingResolutionError
from persistent_events.event_bus.bindings import binding_for, deserialize_binding, storage_key, storage_pattern
from persistent_events.event_bus.scope import EventKey, validate_event_name

app = typer.Typer(help="Persisted binding operations")


@app.command("list")
def list_bindings(event: str = typer.Argument(..., help="Event name")):
    """List the bindings persisted for an event.

    Examples:
        persistent-events bindings list user.created
    """
    bus = build_bus()
    with exit_on_error(f"list bindings of {event!r}"):
        validate_event_name(event)
        forms = bus.key_store.multi_get(storage_pattern(event))

    if not forms:
        console.print(f"[dim]No persisted bindings for {event}[/dim]")
        return

    table = Table(title=f"Persisted bindings: {event}")
    table.add_column("Reference")
    table.add_column("Store key", style="dim")
    table.add_column("Resolves")

    for form in forms:
        try:
            deserialize_binding(form).resolve()
            status = "[green]yes[/green]"
        except BindingResolutionError as e:
            status = f"[red]no[/red] [dim]({e})[/dim]"
        table.add_row(form, storage_key(event, form), status)

    console.print(table)


@app.command("add")
def add_binding(
    event: str = typer.Argument(..., help="Event name"),
    reference: str = typer.Argument(..., help="Handler reference, e.g. myapp.hooks:on_login or myapp.hooks:Hooks::on_login"),
):
    """Persist a binding of a module-level function or class method.

    The reference is imported first so that typos are rejected before
    anything is written, and stored in canonical form: ``myapp.hooks.on_login``
    and ``myapp.hooks:on_login`` end up as the same record.

    Examples:
        persistent-events bindings add user.created myapp.hooks:send_welcome_email
    """
    bus = build_bus()
    with exit_on_error(f"persist {reference!r} for {event!r}"):
        binding = binding_for(reference)
        binding.resolve()
        record_key = bus.registry.bind_persisted(EventKey(event), binding)

    console.print(f"[green]Persisted {binding.serialize()} for {event}[/green]")
    console.print(f"[dim]Store key: {record_key}[/dim]")


@app.command("remove")
def remove_binding(
    event: str = typer.Argument(..., help="Event name"),
    reference: str = typer.Argument(..., help="Handler reference as shown by 'bindings list'"),
):
    """Delete a persisted binding.

    Examples:
        persistent-events bindings remove user.created myapp.hooks:send_welcome_email
    """
    bus = build_bus()
    with exit_on_error(f"remove {reference!r} from {event!r}"):
        bus.unbind(event, reference)

    console.print(f"[green]Removed {reference} from {event}[/green]")


@app.command("trigger")
def trigger_event(
    event: str = typer.Argument(..., help="Event name"),
    data: str | None = typer.Option(None, "--data", "-d", help="Payload; parsed as JSON when possible"),
):
    """Trigger an event with its persisted bindings and report the outcome.

    Examples:
        persistent-events bindings trigger cache.clear
        persistent-events bindings trigger user.created --data '{"email": "user@example.com"}'
    """
    payload = data
    if data is not None:
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            payload = data

    bus = build_bus()
    with exit_on_error(f"trigger {event!r}"):
        count = bus.get_handler_count(event)
        context = bus.trigger(event, payload)

    console.print(f"[bold]Triggered {event} on {count} handlers[/bold]")
    console.print(f"Propagation stopped: {context.is_propagation_stopped()}")
    console.print(f"Default prevented: {context.is_default_prevented()}")

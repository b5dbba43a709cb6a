"""Tests for the persisted binding CLI."""

import pytest
from typer.testing import CliRunner

from persistent_events.cli import app
from persistent_events.event_bus import EventContext
from persistent_events.event_bus.bindings import storage_pattern
from persistent_events.keystore import get_key_store
from persistent_events.settings import get_settings

runner = CliRunner()

HANDLER = f"{__name__}:cli_handler"
CALLS: list[object] = []


def cli_handler(event: EventContext) -> bool:
    CALLS.append(event.data)
    return False


@pytest.fixture(autouse=True)
def memory_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PERSISTENT_EVENTS_STORE_BACKEND", "memory")
    get_settings.cache_clear()
    get_key_store.cache_clear()
    CALLS.clear()
    yield
    get_settings.cache_clear()
    get_key_store.cache_clear()


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "bindings" in result.output


def test_add_persists_binding():
    result = runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    assert result.exit_code == 0, result.output
    assert "Persisted" in result.output
    assert get_key_store().multi_get(storage_pattern("user.created")) == [HANDLER]


def test_add_rejects_unresolvable_reference():
    result = runner.invoke(app, ["bindings", "add", "user.created", "no_such_module_for_tests:handler"])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert get_key_store().multi_get(storage_pattern("user.created")) == []


def test_add_stores_dotted_reference_in_canonical_form():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])
    result = runner.invoke(app, ["bindings", "add", "user.created", f"{__name__}.cli_handler"])

    assert result.exit_code == 0, result.output
    assert get_key_store().multi_get(storage_pattern("user.created")) == [HANDLER]


@pytest.mark.parametrize("event", ["user,created", "user.*", "user.created?"])
def test_add_rejects_invalid_event_name(event):
    result = runner.invoke(app, ["bindings", "add", event, HANDLER])
    assert result.exit_code == 1
    assert get_key_store().multi_get("*") == []


def test_list_bindings():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    result = runner.invoke(app, ["bindings", "list", "user.created"])

    assert result.exit_code == 0, result.output
    assert "Persisted bindings" in result.output


def test_list_without_bindings():
    result = runner.invoke(app, ["bindings", "list", "user.created"])
    assert result.exit_code == 0
    assert "No persisted bindings" in result.output


def test_remove_binding():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    result = runner.invoke(app, ["bindings", "remove", "user.created", HANDLER])

    assert result.exit_code == 0, result.output
    assert get_key_store().multi_get(storage_pattern("user.created")) == []


def test_remove_dotted_reference():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    result = runner.invoke(app, ["bindings", "remove", "user.created", f"{__name__}.cli_handler"])

    assert result.exit_code == 0, result.output
    assert get_key_store().multi_get(storage_pattern("user.created")) == []


def test_trigger_with_json_data():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    result = runner.invoke(app, ["bindings", "trigger", "user.created", "--data", '{"id": 1}'])

    assert result.exit_code == 0, result.output
    assert CALLS == [{"id": 1}]
    assert "Default prevented: True" in result.output


def test_trigger_with_plain_text_data():
    runner.invoke(app, ["bindings", "add", "user.created", HANDLER])

    result = runner.invoke(app, ["bindings", "trigger", "user.created", "-d", "hello"])

    assert result.exit_code == 0, result.output
    assert CALLS == ["hello"]

"""Tests for persistent_events.settings.Settings behavior."""

from typing import Any

import pytest
from pydantic import ValidationError

from persistent_events.settings import Settings, get_settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    """Defaults should be stable even if external env or .env sets values.

    We explicitly delete both upper & lower case variants and bypass .env loading
    by passing `_env_file=None`.
    """
    for var in [
        "PERSISTENT_EVENTS_LOG_LEVEL",
        "PERSISTENT_EVENTS_STORE_BACKEND",
        "PERSISTENT_EVENTS_REDIS_URL",
        "PERSISTENT_EVENTS_KEY_PREFIX",
        "PERSISTENT_EVENTS_ISOLATE_HANDLER_ERRORS",
        "persistent_events_store_backend",
    ]:
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None)
    assert s.log_level == "INFO"
    assert s.store_backend == "memory"
    assert s.redis_url == "redis://localhost:6379/0"
    assert s.key_prefix == ""
    assert s.lock_key_prefix is False
    assert s.store_retry_attempts == 3
    assert s.isolate_handler_errors is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PERSISTENT_EVENTS_STORE_BACKEND", "REDIS")
    monkeypatch.setenv("PERSISTENT_EVENTS_REDIS_URL", "redis://cache:6379/1")
    monkeypatch.setenv("PERSISTENT_EVENTS_ISOLATE_HANDLER_ERRORS", "true")
    monkeypatch.setenv("PERSISTENT_EVENTS_LOG_LEVEL", "debug")
    s = Settings()
    assert s.store_backend == "redis"
    assert s.redis_url == "redis://cache:6379/1"
    assert s.isolate_handler_errors is True
    assert s.log_level == "DEBUG"


def test_case_insensitive_env_name(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("persistent_events_key_prefix", "tenant:")
    s = Settings()
    assert s.key_prefix == "tenant:"


def test_invalid_values():
    with pytest.raises(ValidationError):
        Settings(log_level="verbose")
    with pytest.raises(ValidationError):
        Settings(store_backend="memcached")
    with pytest.raises(ValidationError):
        Settings(store_retry_attempts=0)
    with pytest.raises(ValidationError):
        Settings(key_prefix="app*:")


def test_get_settings_singleton():
    a = get_settings()
    b = get_settings()
    assert a is b


@pytest.mark.parametrize(
    "override,expected",
    [
        ({"key_prefix": "app:"}, "app:"),
        ({"store_retry_attempts": 5}, 5),
    ],
)
def test_direct_instantiation_with_overrides(override: dict[str, Any], expected: Any):
    s = Settings(**override)
    key = next(iter(override.keys()))
    assert getattr(s, key) == expected

"""Tests for the in-memory key store."""

import pytest

from persistent_events.exceptions import KeyStoreError, KeyStoreKeyError
from persistent_events.keystore import InMemoryKeyStore


@pytest.fixture
def store() -> InMemoryKeyStore:
    return InMemoryKeyStore()


class TestBasicOperations:
    def test_set_get_exists_delete(self, store):
        assert store.set("a", "1") is True
        assert store.get("a") == "1"
        assert store.exists("a") is True

        assert store.delete("a") is True
        assert store.exists("a") is False

    def test_get_missing_key(self, store):
        with pytest.raises(KeyStoreKeyError) as exc_info:
            store.get("missing")
        assert isinstance(exc_info.value, KeyError)
        assert str(exc_info.value) == "Key not found: missing"

    def test_delete_missing_key_is_noop(self, store):
        assert store.delete("missing") is True

    def test_set_overwrites(self, store):
        store.set("a", "1")
        store.set("a", "2")
        assert store.get("a") == "2"
        assert len(store) == 1


class TestPatternOperations:
    def test_multi_get_in_insertion_order(self, store):
        store.multi_set({"ev,b": "second", "ev,a": "first", "other,a": "x"})
        assert store.multi_get("ev,*") == ["second", "first"]

    def test_multi_get_no_match(self, store):
        assert store.multi_get("nothing*") == []

    def test_multi_delete(self, store):
        store.multi_set({"ev,1": "a", "ev,2": "b", "keep": "c"})
        assert store.multi_delete("ev,*") == 2
        assert store.keys() == ["keep"]


class TestCounters:
    def test_increment_missing_key_starts_at_zero(self, store):
        assert store.increment("hits") == 1
        assert store.increment("hits", 5) == 6
        assert store.get("hits") == "6"

    def test_decrement(self, store):
        store.set("hits", "10")
        assert store.decrement("hits") == 9
        assert store.decrement("hits", 4) == 5

    def test_increment_non_integer(self, store):
        store.set("name", "abc")
        with pytest.raises(KeyStoreError):
            store.increment("name")

    def test_append(self, store):
        assert store.append("log", "ab") == 2
        assert store.append("log", "cd") == 4
        assert store.get("log") == "abcd"


class TestPrefix:
    def test_prefix_applies_to_keys_and_patterns(self):
        store = InMemoryKeyStore(prefix="app:")
        store.set("a", "1")

        assert store.keys() == ["app:a"]
        assert store.get("a") == "1"
        assert store.multi_get("*") == ["1"]

    def test_get_and_change_prefix(self, store):
        assert store.prefix() == ""
        assert store.prefix("tenant1:") is True
        assert store.prefix() == "tenant1:"

    def test_prefixes_isolate_keys(self, store):
        store.prefix("one:")
        store.set("a", "1")
        store.prefix("two:")
        assert store.exists("a") is False
        assert store.multi_get("*") == []

    def test_locked_prefix(self, store):
        store.prefix("app:")
        store.lock_prefix()

        assert store.prefix("other:") is False
        assert store.prefix() == "app:"

    @pytest.mark.parametrize("prefix", ["app*:", "app?:", "[app]:", "app\\:"])
    def test_glob_characters_rejected_in_prefix(self, store, prefix):
        with pytest.raises(ValueError):
            InMemoryKeyStore(prefix=prefix)
        with pytest.raises(ValueError):
            store.prefix(prefix)
        assert store.prefix() == ""

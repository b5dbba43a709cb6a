"""Unit tests for the Redis key store, no running Redis required."""

import sys
from unittest.mock import MagicMock, patch

import pytest
import redis

from persistent_events.exceptions import KeyStoreError, KeyStoreKeyError
from persistent_events.keystore.redis import RedisKeyStore, _require_redis


def _make_store(prefix: str = "", retry_attempts: int = 3) -> tuple[RedisKeyStore, MagicMock]:
    """Return (RedisKeyStore, mock_client) with retries that don't sleep."""
    client = MagicMock()
    store = RedisKeyStore(prefix=prefix, retry_attempts=retry_attempts, retry_wait=0, client=client)
    return store, client


class TestRedisKeyStore:
    def test_set_applies_prefix(self):
        store, client = _make_store(prefix="app:")
        assert store.set("key", "value") is True
        client.set.assert_called_once_with("app:key", "value")

    def test_get_hit(self):
        store, client = _make_store()
        client.get.return_value = "value"
        assert store.get("key") == "value"

    def test_get_miss(self):
        store, client = _make_store()
        client.get.return_value = None
        with pytest.raises(KeyStoreKeyError):
            store.get("missing")

    def test_exists(self):
        store, client = _make_store()
        client.exists.return_value = 1
        assert store.exists("key") is True
        client.exists.return_value = 0
        assert store.exists("key") is False

    def test_delete(self):
        store, client = _make_store()
        store.delete("key")
        client.delete.assert_called_once_with("key")

    def test_multi_set(self):
        store, client = _make_store(prefix="p:")
        store.multi_set({"a": "1", "b": "2"})
        client.mset.assert_called_once_with({"p:a": "1", "p:b": "2"})

    def test_multi_get_sorts_keys_and_skips_vanished(self):
        store, client = _make_store(prefix="p:")
        client.scan_iter.return_value = iter(["p:ev,b", "p:ev,a", "p:ev,c"])
        client.mget.return_value = ["first", None, "third"]

        assert store.multi_get("ev,*") == ["first", "third"]
        client.scan_iter.assert_called_once_with(match="p:ev,*", count=500)
        client.mget.assert_called_once_with(["p:ev,a", "p:ev,b", "p:ev,c"])

    def test_multi_get_no_match(self):
        store, client = _make_store()
        client.scan_iter.return_value = iter([])
        assert store.multi_get("ev,*") == []
        client.mget.assert_not_called()

    def test_multi_delete(self):
        store, client = _make_store()
        client.scan_iter.return_value = iter(["ev,1", "ev,2"])
        client.delete.return_value = 2
        assert store.multi_delete("ev,*") == 2
        client.delete.assert_called_once_with("ev,1", "ev,2")

    def test_increment_and_decrement(self):
        store, client = _make_store()
        client.incrby.return_value = 3
        assert store.increment("hits", 3) == 3
        client.incrby.assert_called_with("hits", 3)

        client.incrby.return_value = 1
        assert store.decrement("hits", 2) == 1
        client.incrby.assert_called_with("hits", -2)

    def test_append(self):
        store, client = _make_store()
        client.append.return_value = 5
        assert store.append("log", "hello") == 5


class TestRedisErrors:
    def test_connection_error_is_retried(self):
        store, client = _make_store()
        client.set.side_effect = [redis.ConnectionError("down"), True]

        store.set("key", "value")

        assert client.set.call_count == 2

    def test_retries_exhausted(self):
        store, client = _make_store(retry_attempts=3)
        client.get.side_effect = redis.ConnectionError("down")

        with pytest.raises(KeyStoreError) as exc_info:
            store.get("key")

        assert client.get.call_count == 3
        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)

    def test_other_errors_are_not_retried(self):
        store, client = _make_store()
        client.set.side_effect = redis.ResponseError("WRONGTYPE")

        with pytest.raises(KeyStoreError):
            store.set("key", "value")

        assert client.set.call_count == 1

    def test_missing_redis_package(self):
        with patch.dict(sys.modules, {"redis": None}):
            with pytest.raises(ImportError, match="persistent-events\\[redis\\]"):
                _require_redis()

    def test_client_built_from_url(self):
        with patch.object(redis.Redis, "from_url") as from_url:
            RedisKeyStore("redis://example:6379/1")
        from_url.assert_called_once_with("redis://example:6379/1", decode_responses=True)

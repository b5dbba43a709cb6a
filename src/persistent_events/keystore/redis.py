"""Redis key-value store adapter.

Persisted bindings are only useful when the store outlives the process, and
Redis is the usual choice for that. Connection and timeout errors are
retried with exponential backoff; any other client error, or the last failed
retry, surfaces as ``KeyStoreError`` with the client exception chained.
"""

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from loguru import logger
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from persistent_events.exceptions import KeyStoreError, KeyStoreKeyError

from .base import KeyStore

T = TypeVar("T")


def _require_redis() -> Any:
    try:
        import redis

        return redis
    except ImportError as exc:
        raise ImportError("Install 'persistent-events[redis]' to use the Redis key store") from exc


class RedisKeyStore(KeyStore):
    """Key store backed by a synchronous Redis client.

    Example:
        ```python
        store = RedisKeyStore("redis://localhost:6379/0", prefix="myapp:")
        bus = EventBus(store)
        ```
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "",
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        client: Any = None,
        scan_count: int = 500,
    ) -> None:
        """Create the adapter.

        Args:
            url: Redis connection URL, ignored when ``client`` is given
            prefix: Key prefix applied to every operation
            retry_attempts: Attempts for calls failing with connection/timeout errors
            retry_wait: Backoff multiplier in seconds between attempts
            client: Pre-built client (must decode responses to ``str``)
            scan_count: ``COUNT`` hint used for SCAN during pattern operations
        """
        super().__init__(prefix)
        self._redis = _require_redis()
        self._client = client if client is not None else self._redis.Redis.from_url(url, decode_responses=True)
        self._scan_count = scan_count
        self._retrying = Retrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_wait, min=0, max=10 * retry_wait),
            reraise=True,
            retry=retry_if_exception_type((self._redis.ConnectionError, self._redis.TimeoutError)),
            before_sleep=before_sleep_log(logger, "DEBUG"),
        )
        logger.debug(f"RedisKeyStore initialized (prefix={prefix!r}, retry_attempts={retry_attempts})")

    def _call(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return self._retrying(fn, *args)
        except self._redis.RedisError as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise KeyStoreError(f"Redis {operation} failed: {e}") from e

    def _scan(self, pattern: str) -> list[str]:
        # SCAN order is arbitrary; sort so every process sees the same order
        return sorted(self._call("scan", lambda: list(self._client.scan_iter(match=pattern, count=self._scan_count))))

    def _set(self, key: str, value: str) -> None:
        self._call("set", self._client.set, key, value)

    def _get(self, key: str) -> str:
        value = self._call("get", self._client.get, key)
        if value is None:
            raise KeyStoreKeyError(key)
        return value

    def _exists(self, key: str) -> bool:
        return bool(self._call("exists", self._client.exists, key))

    def _delete(self, key: str) -> None:
        self._call("delete", self._client.delete, key)

    def _multi_set(self, key_values: Mapping[str, str]) -> None:
        if key_values:
            self._call("mset", self._client.mset, dict(key_values))

    def _multi_get(self, pattern: str) -> list[str]:
        keys = self._scan(pattern)
        if not keys:
            return []
        values = self._call("mget", self._client.mget, keys)
        # A key may expire or be deleted between SCAN and MGET
        return [value for value in values if value is not None]

    def _multi_delete(self, pattern: str) -> int:
        keys = self._scan(pattern)
        if not keys:
            return 0
        return int(self._call("delete", self._client.delete, *keys))

    def _increment(self, key: str, value: int) -> int:
        return int(self._call("incrby", self._client.incrby, key, value))

    def _append(self, key: str, value: str) -> int:
        return int(self._call("append", self._client.append, key, value))

    def close(self) -> None:
        """Release the client's connection pool."""
        self._client.close()

"""In-memory key-value store.

Process-local, so persisted bindings only survive as long as the store
object does. Used as the default backend and as the test double for a
shared store: hand the same ``InMemoryKeyStore`` to two buses to simulate
two process runs sharing a database.
"""

from collections.abc import Mapping
from fnmatch import fnmatchcase

from loguru import logger

from persistent_events.exceptions import KeyStoreError, KeyStoreKeyError

from .base import KeyStore


class InMemoryKeyStore(KeyStore):
    """Dict-backed store; pattern operations return keys in insertion order."""

    def __init__(self, prefix: str = "") -> None:
        super().__init__(prefix)
        self._data: dict[str, str] = {}

    def _set(self, key: str, value: str) -> None:
        self._data[key] = value

    def _get(self, key: str) -> str:
        try:
            return self._data[key]
        except KeyError:
            raise KeyStoreKeyError(key) from None

    def _exists(self, key: str) -> bool:
        return key in self._data

    def _delete(self, key: str) -> None:
        self._data.pop(key, None)

    def _multi_set(self, key_values: Mapping[str, str]) -> None:
        self._data.update(key_values)

    def _matching(self, pattern: str) -> list[str]:
        return [key for key in self._data if fnmatchcase(key, pattern)]

    def _multi_get(self, pattern: str) -> list[str]:
        keys = self._matching(pattern)
        logger.trace(f"Pattern {pattern!r} matched {len(keys)} keys")
        return [self._data[key] for key in keys]

    def _multi_delete(self, pattern: str) -> int:
        keys = self._matching(pattern)
        for key in keys:
            del self._data[key]
        return len(keys)

    def _increment(self, key: str, value: int) -> int:
        current = self._data.get(key, "0")
        try:
            number = int(current) + value
        except ValueError:
            raise KeyStoreError(f"Value at {key} is not an integer: {current!r}") from None
        self._data[key] = str(number)
        return number

    def _append(self, key: str, value: str) -> int:
        self._data[key] = self._data.get(key, "") + value
        return len(self._data[key])

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        """Return every fully qualified key currently stored."""
        return list(self._data)

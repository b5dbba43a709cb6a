"""Key-value store contract.

The event bus only needs ``set``, ``delete`` and pattern ``multi_get``; the
rest of the interface is what a general purpose namespaced store offers and
what the adapters in this package implement.

Every key passed to an operation is relative: the store prepends its current
prefix before touching the backend, and patterns are matched after the
prefix is applied. The prefix can be locked to protect it from being changed
by code that shares the store.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from loguru import logger

from persistent_events.constants import GLOB_CHARACTERS


def check_prefix(prefix: str) -> str:
    """Reject prefixes that would turn pattern lookups into wider globs."""
    bad = sorted({char for char in prefix if char in GLOB_CHARACTERS})
    if bad:
        raise ValueError(f"Key prefix {prefix!r} must not contain glob characters {''.join(bad)!r}")
    return prefix


class KeyStore(ABC):
    """Namespaced string-to-string store.

    Subclasses implement the ``_``-prefixed primitives on fully qualified
    keys; the public methods take care of the prefix.
    """

    def __init__(self, prefix: str = "") -> None:
        self._prefix = check_prefix(prefix)
        self._prefix_locked = False

    def prefix(self, prefix: str | None = None) -> str | bool:
        """Get or set the key prefix.

        Args:
            prefix: New prefix. When omitted, the current prefix is returned.

        Returns:
            The current prefix when called without arguments, otherwise True if
            the prefix was changed or False if it is locked.

        Raises:
            ValueError: If the prefix contains glob metacharacters
        """
        if prefix is None:
            return self._prefix
        if self._prefix_locked:
            logger.warning(f"Key prefix is locked, ignoring change to {prefix!r}")
            return False
        self._prefix = check_prefix(prefix)
        return True

    def lock_prefix(self) -> None:
        """Lock the prefix to its current value."""
        self._prefix_locked = True

    def _key(self, key: str) -> str:
        return self._prefix + key

    def set(self, key: str, value: str) -> bool:
        self._set(self._key(key), value)
        return True

    def get(self, key: str) -> str:
        """Return the value stored at ``key``.

        Raises:
            KeyStoreKeyError: If the key does not exist
        """
        return self._get(self._key(key))

    def exists(self, key: str) -> bool:
        return self._exists(self._key(key))

    def delete(self, key: str) -> bool:
        self._delete(self._key(key))
        return True

    def multi_set(self, key_values: Mapping[str, str]) -> bool:
        self._multi_set({self._key(key): value for key, value in key_values.items()})
        return True

    def multi_get(self, pattern: str) -> list[str]:
        """Return the values of every key matching a glob-style ``pattern``."""
        return self._multi_get(self._key(pattern))

    def multi_delete(self, pattern: str) -> int:
        """Delete every key matching ``pattern`` and return how many went."""
        return self._multi_delete(self._key(pattern))

    def increment(self, key: str, value: int = 1) -> int:
        return self._increment(self._key(key), value)

    def decrement(self, key: str, value: int = 1) -> int:
        return self._increment(self._key(key), -value)

    def append(self, key: str, value: str) -> int:
        """Append to the value at ``key`` (created if missing), returning the new length."""
        return self._append(self._key(key), value)

    @abstractmethod
    def _set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _get(self, key: str) -> str: ...

    @abstractmethod
    def _exists(self, key: str) -> bool: ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    @abstractmethod
    def _multi_set(self, key_values: Mapping[str, str]) -> None: ...

    @abstractmethod
    def _multi_get(self, pattern: str) -> list[str]: ...

    @abstractmethod
    def _multi_delete(self, pattern: str) -> int: ...

    @abstractmethod
    def _increment(self, key: str, value: int) -> int: ...

    @abstractmethod
    def _append(self, key: str, value: str) -> int: ...

"""Key-value store capability used to persist event bindings.

``InMemoryKeyStore`` keeps everything in the current process; ``RedisKeyStore``
(importable from ``persistent_events.keystore.redis``) shares bindings between
unrelated process runs.
"""

from .base import KeyStore
from .factory import build_key_store, get_key_store
from .memory import InMemoryKeyStore

__all__ = [
    "InMemoryKeyStore",
    "KeyStore",
    "build_key_store",
    "get_key_store",
]

"""Key store construction from settings."""

from functools import lru_cache

from loguru import logger

from persistent_events.constants import STORE_BACKEND_REDIS
from persistent_events.settings import Settings, get_settings

from .base import KeyStore
from .memory import InMemoryKeyStore


def build_key_store(settings: Settings) -> KeyStore:
    """Create a new key store for the configured backend.

    Args:
        settings: Settings selecting the backend, prefix and retry policy

    Returns:
        A fresh, unshared key store
    """
    if settings.store_backend == STORE_BACKEND_REDIS:
        from .redis import RedisKeyStore

        store: KeyStore = RedisKeyStore(
            settings.redis_url,
            prefix=settings.key_prefix,
            retry_attempts=settings.store_retry_attempts,
        )
    else:
        store = InMemoryKeyStore(prefix=settings.key_prefix)

    if settings.lock_key_prefix:
        store.lock_prefix()

    logger.debug(f"Built {type(store).__name__} (prefix={settings.key_prefix!r}, locked={settings.lock_key_prefix})")
    return store


@lru_cache
def get_key_store() -> KeyStore:
    """Get or create the process-wide key store from the cached settings.

    Returns:
        The shared key store instance
    """
    return build_key_store(get_settings())

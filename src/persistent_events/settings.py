"""Application configuration using Pydantic Settings.

This module centralizes runtime configuration for the event bus and its
key-value store. Values can be provided via environment variables (preferred)
or fall back to the defaults below. A ``Settings`` instance is intended to be
retrieved via ``get_settings`` which caches the object for reuse across the
process.

Environment variable prefix: ``PERSISTENT_EVENTS_`` (e.g. ``PERSISTENT_EVENTS_STORE_BACKEND``).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from persistent_events.constants import GLOB_CHARACTERS


class Settings(BaseSettings):
    """Runtime settings.

    Attributes map directly to environment variables using the ``PERSISTENT_EVENTS_``
    prefix (case-insensitive). For example, ``redis_url`` <- ``PERSISTENT_EVENTS_REDIS_URL``.
    """

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )

    # Key-value store settings
    # These settings control where persisted bindings are kept.
    store_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Key-value store backend for persisted bindings",
    )  # fmt: skip
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (redis backend only)",
    )  # fmt: skip
    key_prefix: str = Field(
        default="",
        description="Prefix applied to every key written to the store",
    )  # fmt: skip
    lock_key_prefix: bool = Field(
        default=False,
        description="Lock the key prefix after configuring the store",
    )  # fmt: skip
    store_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for store calls failing with connection errors",
    )  # fmt: skip

    # Dispatch settings
    isolate_handler_errors: bool = Field(
        default=False,
        description="Log handler exceptions and keep dispatching instead of propagating",
    )  # fmt: skip

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("store_backend", mode="before")
    @classmethod
    def validate_store_backend(cls, v: str | None) -> str:
        """Accept backend names in any case."""
        if v is None:
            return "memory"
        return str(v).strip().lower()

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Keep the prefix usable inside store glob patterns."""
        if any(char in GLOB_CHARACTERS for char in v):
            raise ValueError(f"key_prefix must not contain any of {GLOB_CHARACTERS!r}")
        return v

    model_config = SettingsConfigDict(
        env_prefix="PERSISTENT_EVENTS_",  # Prefix for env vars
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars
        env_file=".env",  # Optional .env loading (if present)
        env_file_encoding="utf-8",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings"]

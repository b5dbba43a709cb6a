"""Event keys and instance scoping.

Global events are keyed by their name alone. Instance-scoped events are
keyed by ``"<scope token>#<name>"`` where the token identifies one live
object for the lifetime of this process. Tokens mean nothing to another
process, which is why scoped keys never reach the key-value store.
"""

import secrets
import string
import time
from typing import Any, NamedTuple

from persistent_events.constants import GLOB_CHARACTERS, KEY_DELIMITER, SCOPE_SEPARATOR

from .core import InvalidEventNameError

_TOKEN_ALPHABET = string.ascii_letters + string.digits


def _to_base36(number: int) -> str:
    alphabet = string.digits + string.ascii_lowercase
    base36 = ""
    while number:
        number, i = divmod(number, 36)
        base36 = alphabet[i] + base36
    return base36 or "0"


class ScopeHandle:
    """Explicit, caller-owned scope for instance events.

    Use a handle instead of an arbitrary object when the scope should not be
    tied to an object's identity, or when several objects should share one
    scope.

    Example:
        ```python
        session_scope = ScopeHandle()
        bus.bind_scoped(session_scope, "closed", on_closed)
        bus.trigger_scoped(session_scope, "closed")
        ```
    """

    __slots__ = ("token",)

    def __init__(self, token: str | None = None) -> None:
        self.token = token or self.generate_token()

    @staticmethod
    def generate_token(length: int = 16) -> str:
        """Return a base36 millisecond timestamp followed by random characters."""
        timestamp = _to_base36(int(time.time() * 1000))
        random_part = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))
        return (timestamp + random_part)[:length]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScopeHandle):
            return NotImplemented
        return self.token == other.token

    def __hash__(self) -> int:
        return hash((ScopeHandle, self.token))

    def __repr__(self) -> str:
        return f"ScopeHandle({self.token!r})"


def scope_token(target: Any) -> str:
    """Return the scope token of a handle or live object.

    Objects are identified by type and ``id()``, which is unique among
    objects alive at the same time. The event bus drops a weak-referenceable
    object's scoped bindings when it is collected, so a later object reusing
    the id starts with no bindings.
    """
    if isinstance(target, ScopeHandle):
        return target.token
    return f"{type(target).__qualname__}@{id(target):x}"


class EventKey(NamedTuple):
    """Registry key of an event, optionally scoped to one object."""

    name: str
    scope: str | None = None

    @classmethod
    def scoped(cls, target: Any, name: str) -> "EventKey":
        return cls(name, scope_token(target))

    @property
    def is_scoped(self) -> bool:
        return self.scope is not None

    def __str__(self) -> str:
        if self.scope is None:
            return self.name
        return f"{self.scope}{SCOPE_SEPARATOR}{self.name}"


_RESERVED_CHARACTERS = KEY_DELIMITER + SCOPE_SEPARATOR + GLOB_CHARACTERS


def is_storable_event_name(name: Any) -> bool:
    """Return True if ``name`` can be embedded in a store key and load pattern."""
    return isinstance(name, str) and bool(name) and not any(char in _RESERVED_CHARACTERS for char in name)


def validate_event_name(name: str) -> str:
    """Check that a global event name can be embedded in a store key.

    Glob characters are rejected too, since the name also ends up in the
    pattern that loads the event's persisted bindings.

    Raises:
        InvalidEventNameError: If the name is empty or contains ``,``, ``#``
            or one of ``*?[]\\``
    """
    if not isinstance(name, str) or not name:
        raise InvalidEventNameError(f"Event name must be a non-empty string, got: {name!r}")
    if not is_storable_event_name(name):
        raise InvalidEventNameError(
            f"Event name {name!r} must not contain any of {_RESERVED_CHARACTERS!r}"
        )
    return name

"""Binding registry.

The registry owns the in-memory mapping from event key to the ordered list of
bindings, plus the set of global events whose persisted bindings have already
been merged in during this process run.

Persisted bindings are loaded lazily, once per event and process run, the
first time the event is bound or triggered. Loading before a same-run bind
keeps trigger order as "persisted bindings first, then this run's bindings
in registration order".

The registry does no locking. Hosts that share one registry between threads
must serialize ``bind``, ``unbind`` and ``load`` themselves.
"""

import weakref
from typing import Any

from loguru import logger

from persistent_events.keystore import KeyStore

from .bindings import Binding, CallableBinding, deserialize_binding, storage_key, storage_pattern
from .core import (
    CannotPersistClosureBinding,
    CannotPersistInstanceBinding,
    CannotPersistInstanceEvent,
    NotPersistableError,
)
from .scope import EventKey, ScopeHandle, is_storable_event_name, validate_event_name


def _drop_collected_scope(registry_ref: "weakref.ref[BindingRegistry]", token: str) -> None:
    registry = registry_ref()
    if registry is not None:
        registry.drop_scope(token)


class BindingRegistry:
    """In-memory bindings backed by a key-value store for the persistable ones."""

    def __init__(self, key_store: KeyStore) -> None:
        self._key_store = key_store
        self._bindings: dict[EventKey, list[Binding]] = {}
        self._loaded: set[EventKey] = set()
        self._watched_scopes: set[str] = set()

    @property
    def key_store(self) -> KeyStore:
        return self._key_store

    def is_loaded(self, key: EventKey) -> bool:
        return key in self._loaded

    def load(self, key: EventKey) -> None:
        """Merge the persisted bindings of a global event, at most once per run.

        Instance-scoped keys are never persisted, so loading them is a no-op.
        So is loading a name that cannot be part of a store key: nothing can
        have been persisted under it.

        Raises:
            KeyStoreError: If the store query fails; the event stays unloaded
        """
        if key.is_scoped or key in self._loaded:
            return

        if not is_storable_event_name(key.name):
            self._loaded.add(key)
            logger.trace(f"Event name {key.name!r} cannot be stored, skipping load")
            return

        forms = self._key_store.multi_get(storage_pattern(key.name))

        if forms:
            handlers = self._bindings.setdefault(key, [])
            handlers.extend(deserialize_binding(form) for form in forms)

        self._loaded.add(key)
        logger.debug(f"Loaded {len(forms)} persisted bindings for event {key}")

    def bind(self, key: EventKey, binding: Binding) -> None:
        """Append a binding; binding the same handler twice runs it twice."""
        self.load(key)
        self._bindings.setdefault(key, []).append(binding)
        logger.debug(f"Bound {binding!r} to event {key}")

    def unbind(self, key: EventKey, binding: Binding) -> int:
        """Remove every binding equal to ``binding``.

        Returns:
            Number of bindings removed (0 if the event or binding is unknown)
        """
        handlers = self._bindings.get(key)
        if not handlers:
            return 0

        remaining = [handler for handler in handlers if handler != binding]
        removed = len(handlers) - len(remaining)
        if remaining:
            self._bindings[key] = remaining
        else:
            del self._bindings[key]

        if removed:
            logger.debug(f"Unbound {removed} x {binding!r} from event {key}")
        return removed

    def persist_blocker(self, key: EventKey, binding: Binding) -> NotPersistableError | None:
        """Return the error that keeps ``binding`` on ``key`` out of the store, if any."""
        if isinstance(binding, CallableBinding) and not binding.instance_bound:
            return CannotPersistClosureBinding(binding.callback)
        if key.is_scoped:
            return CannotPersistInstanceEvent(str(key))
        if not binding.persistable:
            return CannotPersistInstanceBinding(getattr(binding, "callback", binding))
        return None

    def bind_persisted(self, key: EventKey, binding: Binding) -> str:
        """Bind in memory and write the binding to the store.

        The in-memory binding is appended exactly as ``bind`` does, even when
        persisting is refused. Persisting a handler that was already bound,
        or already loaded from the store, makes it run twice in this run.

        Returns:
            The store key of the persisted record

        Raises:
            CannotPersistClosureBinding: If the binding is a closure
            CannotPersistInstanceEvent: If the key is instance-scoped
            CannotPersistInstanceBinding: If the binding is tied to a live object
            InvalidEventNameError: If the event name cannot be used in a store key
            KeyStoreError: If the store write fails
        """
        self.bind(key, binding)

        blocker = self.persist_blocker(key, binding)
        if blocker is not None:
            raise blocker

        validate_event_name(key.name)
        form = binding.serialize()
        record_key = storage_key(key.name, form)
        self._key_store.set(record_key, form)
        logger.debug(f"Persisted {form!r} for event {key} at {record_key}")
        return record_key

    def unbind_persisted(self, key: EventKey, binding: Binding) -> int:
        """Unbind in memory and delete the persisted record, if one can exist.

        Returns:
            Number of in-memory bindings removed
        """
        removed = self.unbind(key, binding)

        if self.persist_blocker(key, binding) is not None:
            logger.trace(f"{binding!r} on {key} cannot be persisted, skipping store delete")
            return removed
        if not is_storable_event_name(key.name):
            return removed

        record_key = storage_key(key.name, binding.serialize())
        self._key_store.delete(record_key)
        logger.debug(f"Deleted persisted binding {record_key}")
        return removed

    def get_bindings(self, key: EventKey) -> tuple[Binding, ...]:
        """Return a snapshot of the bindings for ``key`` in trigger order."""
        return tuple(self._bindings.get(key, ()))

    def registered_keys(self) -> list[EventKey]:
        return list(self._bindings)

    def watch_scope(self, target: Any, token: str) -> None:
        """Drop the scoped bindings of ``target`` once it is garbage collected.

        Objects that do not support weak references keep their bindings until
        they are unbound or the registry is flushed.
        """
        if isinstance(target, ScopeHandle) or token in self._watched_scopes:
            return
        try:
            weakref.finalize(target, _drop_collected_scope, weakref.ref(self), token)
        except TypeError:
            logger.trace(f"{type(target).__qualname__} is not weak-referenceable, scope {token} is not watched")
            return
        self._watched_scopes.add(token)

    def drop_scope(self, token: str) -> int:
        """Remove every binding scoped to ``token``.

        Returns:
            Number of scoped events dropped
        """
        self._watched_scopes.discard(token)
        dropped = [key for key in self._bindings if key.scope == token]
        for key in dropped:
            del self._bindings[key]
        if dropped:
            logger.debug(f"Dropped {len(dropped)} scoped events of collected scope {token}")
        return len(dropped)

    def flush(self) -> None:
        """Drop every in-memory binding and the loaded markers.

        Persisted bindings are left alone and get loaded again on next use,
        which is how tests simulate a fresh process run.
        """
        self._bindings.clear()
        self._loaded.clear()
        self._watched_scopes.clear()
        logger.debug("Flushed in-memory bindings")

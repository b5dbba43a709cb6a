"""Event Bus Implementation.

This module provides the ``EventBus`` class, which binds handlers to named
events and triggers them synchronously, in order, with DOM-style
propagation control.

## Key Features

- **Global and Instance Events**: ``bind``/``trigger`` for global events,
  ``bind_scoped``/``trigger_scoped`` for events of one object
- **Persisted Bindings**: module-level functions and class-level methods can
  be stored in a key-value store and are bound automatically in later runs
- **Propagation Control**: a handler returning ``False`` stops propagation and
  prevents the default; ``stop_propagation()`` alone only stops propagation
- **Optional Error Isolation**: log handler failures and keep dispatching

## Advanced Usage

```python
from persistent_events.event_bus import EventBus
from persistent_events.keystore.redis import RedisKeyStore

bus = EventBus(RedisKeyStore("redis://localhost:6379/0"))

# Persisted once, e.g. by an install script
bus.bind("order.created", "shop.hooks:send_confirmation", persist=True)

# Any later process run
event = bus.trigger("order.created", {"order_id": "123"})
if event.is_default_prevented():
    ...

# Instance events
cart = Cart()
bus.bind_scoped(cart, "emptied", lambda event: print("cart emptied"))
bus.trigger_scoped(cart, "emptied")
```

"""

from typing import Any

from loguru import logger

from persistent_events.keystore import KeyStore, get_key_store
from persistent_events.settings import get_settings

from .bindings import Binding, binding_for
from .core import EventContext
from .registry import BindingRegistry
from .scope import EventKey


class EventBus:
    """Synchronous event bus with optionally persisted bindings.

    Example:
        ```python
        bus = EventBus(InMemoryKeyStore())
        bus.bind("user.created", send_welcome_email)
        event = bus.trigger("user.created", {"email": "user@example.com"})
        ```
    """

    def __init__(
        self,
        key_store: KeyStore | None = None,
        name: str | None = None,
        isolate_handler_errors: bool | None = None,
    ) -> None:
        """Initialize a new EventBus instance.

        Args:
            key_store: Store for persisted bindings. Defaults to the store
                       configured in settings.
            name: Optional name, used when the bus is managed by name
            isolate_handler_errors: If True, a failing handler is logged and
                       dispatch continues with the next one. Defaults to the
                       ``isolate_handler_errors`` setting.
        """
        if key_store is None:
            key_store = get_key_store()
        if isolate_handler_errors is None:
            isolate_handler_errors = get_settings().isolate_handler_errors

        self._registry = BindingRegistry(key_store)
        self._name = name
        self._isolate_handler_errors = isolate_handler_errors
        logger.debug(f"EventBus initialized (name={name!r}, isolate_handler_errors={isolate_handler_errors})")

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def registry(self) -> BindingRegistry:
        return self._registry

    @property
    def key_store(self) -> KeyStore:
        return self._registry.key_store

    def bind(self, event: str, handler: Any, persist: bool = False) -> Binding:
        """Bind a handler to a global event.

        Args:
            event: Event name
            handler: Callable taking the ``EventContext``, a ``(Class, "method")``
                     pair or a canonical reference such as ``"pkg.mod:func"``
            persist: If True, the binding is also written to the key-value
                     store and will be present in later process runs

        Returns:
            The binding that was registered

        Raises:
            HandlerRegistrationError: If the handler is not callable
            CannotPersistClosureBinding: If persisting a closure
            CannotPersistInstanceBinding: If persisting a handler bound to an object
        """
        binding = binding_for(handler)
        key = EventKey(event)
        if persist:
            self._registry.bind_persisted(key, binding)
        else:
            self._registry.bind(key, binding)
        return binding

    def bind_scoped(self, target: Any, event: str, handler: Any, persist: bool = False) -> Binding:
        """Bind a handler to an event of one object or ``ScopeHandle``.

        Raises:
            CannotPersistInstanceEvent: If ``persist`` is True; the binding is
                still registered in memory
        """
        binding = binding_for(handler)
        key = EventKey.scoped(target, event)
        self._registry.watch_scope(target, key.scope)
        if persist:
            self._registry.bind_persisted(key, binding)
        else:
            self._registry.bind(key, binding)
        return binding

    def unbind(self, event: str, handler: Any) -> None:
        """Unbind every matching handler from a global event, including its persisted record."""
        self._registry.unbind_persisted(EventKey(event), binding_for(handler))

    def unbind_scoped(self, target: Any, event: str, handler: Any) -> None:
        """Unbind every matching handler from an event of one object."""
        self._registry.unbind(EventKey.scoped(target, event), binding_for(handler))

    def trigger(self, event: str, data: Any = None) -> EventContext:
        """Trigger a global event.

        Persisted bindings for the event are loaded first if this is the first
        use of the event in this process run.

        Args:
            event: Event name
            data: Payload exposed to handlers as ``EventContext.data``

        Returns:
            The event context after all handlers ran or propagation stopped
        """
        key = EventKey(event)
        self._registry.load(key)
        return self._dispatch(key, event, data)

    def trigger_scoped(self, target: Any, event: str, data: Any = None) -> EventContext:
        """Trigger an event of one object or ``ScopeHandle``."""
        return self._dispatch(EventKey.scoped(target, event), event, data)

    def _dispatch(self, key: EventKey, event: str, data: Any) -> EventContext:
        context = EventContext(data=data).type(event)

        bindings = self._registry.get_bindings(key)
        if not bindings:
            logger.trace(f"No handlers registered for {key}")
            return context

        logger.debug(f"Triggering {key} on {len(bindings)} handlers")

        for i, binding in enumerate(bindings):
            result = self._invoke(binding, context, key)

            if result is False:
                context.stop_propagation()
                context.prevent_default()
                logger.trace(f"Handler {i + 1}/{len(bindings)} {binding!r} returned False, stopping {key}")
                break

            if context.is_propagation_stopped():
                logger.trace(f"Handler {i + 1}/{len(bindings)} {binding!r} stopped propagation of {key}")
                break

        return context

    def _invoke(self, binding: Binding, context: EventContext, key: EventKey) -> Any:
        if not self._isolate_handler_errors:
            return binding.invoke(context)

        try:
            return binding.invoke(context)
        except Exception as e:  # noqa: BLE001
            logger.opt(exception=e).error(f"Handler {binding!r} failed on {key}: {e}")
            return None

    def get_handler_count(self, event: str) -> int:
        """Get the number of handlers bound to a global event, persisted ones included."""
        key = EventKey(event)
        self._registry.load(key)
        return len(self._registry.get_bindings(key))

    def get_handler_count_scoped(self, target: Any, event: str) -> int:
        return len(self._registry.get_bindings(EventKey.scoped(target, event)))

    def get_registered_events(self) -> list[str]:
        """Get the keys of all events that currently have bindings in memory.

        Scoped events are listed as ``"<scope token>#<event>"``.
        """
        return [str(key) for key in self._registry.registered_keys()]

    def flush(self) -> None:
        """Clear in-memory bindings; persisted bindings are loaded again on next use."""
        self._registry.flush()

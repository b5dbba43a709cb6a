"""Default and named event bus instances.

Unrelated subsystems either share the default bus or ask for a named one to
keep their in-memory bindings apart. Named buses may share a key-value
store; persisted records are keyed by event name only, so subsystems that
need isolation in the store must also use distinct event names.

Prefer building an ``EventBusManager`` at the composition root and handing
buses to the code that needs them; ``get_event_bus`` is the process-wide
shortcut.
"""

from functools import lru_cache

from loguru import logger

from persistent_events.keystore import KeyStore

from .bus import EventBus


class EventBusManager:
    """Creates each bus once: a default one plus one per distinct name."""

    def __init__(self) -> None:
        self._default: EventBus | None = None
        self._named: dict[str, EventBus] = {}

    def get(self, key_store: KeyStore | None = None, name: str | None = None) -> EventBus:
        """Get or create a bus.

        Args:
            key_store: Store used if the bus has to be created; ignored for a
                       bus that already exists
            name: Bus name, or None for the default bus

        Returns:
            The same instance for every call with the same name
        """
        if name is None:
            if self._default is None:
                self._default = EventBus(key_store)
                logger.debug("Created default event bus")
            return self._default

        if name not in self._named:
            self._named[name] = EventBus(key_store, name=name)
            logger.debug(f"Created event bus {name!r}")
        return self._named[name]

    def names(self) -> list[str]:
        return list(self._named)

    def flush_all(self) -> None:
        """Flush the in-memory bindings of every bus created so far."""
        if self._default is not None:
            self._default.flush()
        for bus in self._named.values():
            bus.flush()


@lru_cache
def get_event_bus_manager() -> EventBusManager:
    """Get the singleton event bus manager.

    Returns:
        The process-wide manager
    """
    return EventBusManager()


def get_event_bus(key_store: KeyStore | None = None, name: str | None = None) -> EventBus:
    """Get or create the default bus, or the bus called ``name``.

    Example:
        ```python
        bus = get_event_bus()
        bus.bind("app.started", warm_cache)
        audit_bus = get_event_bus(name="audit")
        ```
    """
    return get_event_bus_manager().get(key_store, name)

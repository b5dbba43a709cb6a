"""Core Event Bus Components.

This module contains the fundamental abstractions shared by the binding
codec, the registry and the dispatcher.

## Key Components

- **EventContext**: Value handed to every handler and returned from trigger
- **EventBusError**: Base exception for all event bus related errors
- **NotPersistableError**: Raised when a binding cannot go to the store

## Propagation Control

```python
def validate(event: EventContext) -> bool | None:
    if not event.data.get("email"):
        return False  # same as stop_propagation() + prevent_default()

def audit(event: EventContext) -> None:
    event.stop_propagation()  # later handlers are skipped, default action still runs

event = bus.trigger("user.register", {"email": ""})
if not event.is_default_prevented():
    register_user(event.data)
```

"""

from typing import Any

_UNSET: Any = object()


class EventContext:
    """State of a single trigger call.

    A context is created fresh for every trigger, mutated by the handlers of
    that trigger only, and handed back to the caller afterwards. Both flags
    start out False and can only ever be switched on.

    Attributes:
        data: Arbitrary payload provided by the triggering code. Handlers may
              replace or mutate it to pass results back to the caller.
    """

    def __init__(self, type: str | None = None, data: Any = None) -> None:
        self._type = type
        self._propagation_stopped = False
        self._default_prevented = False
        self.data = data

    def type(self, value: Any = _UNSET) -> Any:
        """Get or set the event type.

        Called without arguments this returns the current type. Called with a
        value it sets the type and returns the context itself, so it can be
        chained right after construction.
        """
        if value is _UNSET:
            return self._type
        self._type = value
        return self

    def is_propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def stop_propagation(self) -> None:
        """Skip the handlers bound after the current one."""
        self._propagation_stopped = True

    def is_default_prevented(self) -> bool:
        return self._default_prevented

    def prevent_default(self) -> None:
        """Tell the triggering code not to carry out its default action."""
        self._default_prevented = True

    def __repr__(self) -> str:
        return (
            f"EventContext(type={self._type!r}, data={self.data!r}, "
            f"propagation_stopped={self._propagation_stopped}, default_prevented={self._default_prevented})"
        )


class EventBusError(Exception):
    """Base exception for all event bus related errors.

    This is the root of the event bus exception hierarchy. Use it for catching
    any event bus related error:
        ```python
        try:
            bus.bind("user.created", on_user_created, persist=True)
        except EventBusError as e:
            logger.error(f"Event bus error: {e}")
        ```
    """


class HandlerRegistrationError(EventBusError):
    """Raised when a handler is not callable."""


class InvalidEventNameError(EventBusError):
    """Raised when an event name cannot be used as part of a store key.

    Names used with persisted bindings must not contain the key delimiter
    ``,`` (pattern loads would match the wrong events) or the scope
    separator ``#``.
    """


class BindingResolutionError(EventBusError):
    """Raised when a persisted reference no longer resolves to a callable.

    This happens when a function or class recorded by an earlier process run
    was renamed or removed since.
    """

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        super().__init__(f"Cannot resolve binding {reference!r}: {reason}")


class NotPersistableError(EventBusError):
    """Raised when a binding cannot be written to the key-value store.

    The binding is still registered in memory when this is raised from a
    persisted bind; only the store write is refused.
    """


class CannotPersistClosureBinding(NotPersistableError):
    """Raised on an attempt to persist a closure, lambda or partial."""

    def __init__(self, handler: Any = None):
        self.handler = handler
        super().__init__(f"Closures cannot be persisted: {handler!r}")


class CannotPersistInstanceEvent(NotPersistableError):
    """Raised on an attempt to persist a binding to an instance-scoped event."""

    def __init__(self, event: str = ""):
        self.event = event
        super().__init__(f"Bindings to instance-scoped events cannot be persisted: {event!r}")


class CannotPersistInstanceBinding(NotPersistableError):
    """Raised on an attempt to persist a handler bound to a live object."""

    def __init__(self, handler: Any = None):
        self.handler = handler
        super().__init__(f"Instance-bound handlers cannot be persisted: {handler!r}")

"""Event Bus System with Persistable Bindings.

This package provides a synchronous, in-process event bus. Handlers are bound
to named events and run in order when the event is triggered; each handler
receives an ``EventContext`` it can use to stop propagation or prevent the
default action. It supports:

- **Global Events**: keyed by name, shared by all code using the same bus
- **Instance Events**: scoped to one live object or ``ScopeHandle``
- **Persisted Bindings**: module-level functions and class-level methods
  stored in a key-value store and loaded lazily in later process runs
- **Named Buses**: independent buses via ``get_event_bus(name=...)``

## Quick Start

```python
from persistent_events.event_bus import EventBus
from persistent_events.keystore import InMemoryKeyStore

def send_welcome_email(event):
    print(f"Sending welcome email to {event.data['email']}")

bus = EventBus(InMemoryKeyStore())
bus.bind("user.created", send_welcome_email, persist=True)
event = bus.trigger("user.created", {"email": "user@example.com"})
```

## Architecture

- **Codec** (``bindings.py``): handler variants and their canonical, storable form
- **Registry** (``registry.py``): in-memory bindings and the lazy load protocol
- **Dispatcher** (``bus.py``): trigger and propagation control
- **Instances** (``instances.py``): default and named buses

"""

from .bindings import Binding, CallableBinding, FunctionBinding, StaticMethodBinding, binding_for, canonical_binding
from .bus import EventBus
from .core import (
    BindingResolutionError,
    CannotPersistClosureBinding,
    CannotPersistInstanceBinding,
    CannotPersistInstanceEvent,
    EventBusError,
    EventContext,
    HandlerRegistrationError,
    InvalidEventNameError,
    NotPersistableError,
)
from .instances import EventBusManager, get_event_bus, get_event_bus_manager
from .registry import BindingRegistry
from .scope import EventKey, ScopeHandle

__all__ = [
    "Binding",
    "BindingRegistry",
    "BindingResolutionError",
    "CallableBinding",
    "CannotPersistClosureBinding",
    "CannotPersistInstanceBinding",
    "CannotPersistInstanceEvent",
    "EventBus",
    "EventBusError",
    "EventBusManager",
    "EventContext",
    "EventKey",
    "FunctionBinding",
    "HandlerRegistrationError",
    "InvalidEventNameError",
    "NotPersistableError",
    "ScopeHandle",
    "StaticMethodBinding",
    "binding_for",
    "canonical_binding",
    "get_event_bus",
    "get_event_bus_manager",
]

"""The persistent events package."""

from .event_bus import EventBus, EventContext, get_event_bus  # noqa: F401
from .settings import Settings, get_settings  # noqa: F401

__all__ = ["EventBus", "EventContext", "get_event_bus", "get_settings", "Settings"]

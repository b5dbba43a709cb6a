"""CLI module for persistent-events.

Provides a command-line interface for inspecting and editing persisted bindings.
"""

from persistent_events.cli.app import app

__all__ = ["app"]

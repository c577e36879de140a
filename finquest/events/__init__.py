"""Domain event bus package."""

from finquest.events.bus import EventBus

__all__ = ["EventBus"]

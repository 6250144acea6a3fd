"""
Event Bus for Tonearm.

This module provides a small synchronous pub/sub system. The player manager
owns one EventBus instance and publishes on it whenever a name or a player
appears or vanishes.

Event types:
- name.appeared: A player service name was acquired on the bus
- name.vanished: A tracked player service name lost its owner
- player.appeared: A player handle was promoted into the managed collection
- player.vanished: A managed player handle was removed from the collection

Usage:
    manager = PlayerManager()

    def on_player_appeared(event: PlayerAppearedEvent) -> None:
        print(f"Player {event.player.player_id} is now managed")

    manager.events.subscribe("player.appeared", on_player_appeared)

Handlers run in the publishing call stack, in registration order. A handler
that raises aborts the publish and the exception reaches the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from tonearm.player.client import PlayerHandle
    from tonearm.protocol.bus import BusType

logger = logging.getLogger(__name__)

NAME_APPEARED = "name.appeared"
NAME_VANISHED = "name.vanished"
PLAYER_APPEARED = "player.appeared"
PLAYER_VANISHED = "player.vanished"

# Type alias for event handlers
EventHandler = Callable[["Event"], None]


@dataclass(frozen=True)
class Event:
    """Base class for all events."""

    event_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {"type": self.event_type}


@dataclass(frozen=True)
class NameEvent(Event):
    """A service identifier appeared on or vanished from the bus."""

    name: str = ""
    source: BusType | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.event_type,
            "name": self.name,
        }
        if self.source is not None:
            result["source"] = self.source.value
        return result


@dataclass(frozen=True)
class NameAppearedEvent(NameEvent):
    """Fired when a player name is acquired on the bus."""

    event_type: str = field(default=NAME_APPEARED, init=False)


@dataclass(frozen=True)
class NameVanishedEvent(NameEvent):
    """Fired when a tracked player name loses its owner."""

    event_type: str = field(default=NAME_VANISHED, init=False)


@dataclass(frozen=True)
class PlayerEvent(Event):
    """A player handle entered or left the managed collection."""

    player: PlayerHandle | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "player_id": self.player.player_id if self.player is not None else "",
        }


@dataclass(frozen=True)
class PlayerAppearedEvent(PlayerEvent):
    """Fired when a player handle is managed for the first time."""

    event_type: str = field(default=PLAYER_APPEARED, init=False)


@dataclass(frozen=True)
class PlayerVanishedEvent(PlayerEvent):
    """Fired when a managed player is dropped because its name vanished."""

    event_type: str = field(default=PLAYER_VANISHED, init=False)


class EventBus:
    """
    Simple synchronous pub/sub event bus.

    Supports:
    - Multiple handlers per event type, called in registration order
    - Wildcard subscriptions (e.g., "player.*" or "*")
    - Exceptions from handlers propagate to the publisher

    Not thread-safe; all calls are expected on the bus dispatch thread.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> EventHandler:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event type to subscribe to. Use "*" suffix for wildcards.
            handler: Function to call when an event is published.

        Returns:
            The handler, so this can be used as a decorator.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed to %s: %s", event_type, handler)
        return handler

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler from an event type.

        Returns True if handler was found and removed.
        """
        handlers = self._handlers.get(event_type)
        if not handlers:
            return False
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        logger.debug("Unsubscribed from %s: %s", event_type, handler)
        return True

    def publish(self, event: Event) -> int:
        """
        Publish an event to all subscribed handlers.

        Args:
            event: The event to publish.

        Returns:
            Number of handlers that received the event.
        """
        event_type = event.event_type

        # Snapshot so handlers may (un)subscribe while we iterate
        matching_handlers: list[EventHandler] = list(self._handlers.get(event_type, ()))

        # Wildcard matches (e.g., "player.*" matches "player.appeared")
        for pattern, handlers in self._handlers.items():
            if pattern.endswith(".*"):
                prefix = pattern[:-2]
                if event_type.startswith(prefix + "."):
                    matching_handlers.extend(handlers)
            elif pattern == "*":
                matching_handlers.extend(handlers)

        for handler in matching_handlers:
            handler(event)

        if matching_handlers:
            logger.debug("Published %s to %d handlers", event_type, len(matching_handlers))

        return len(matching_handlers)

    def handler_count(self, event_type: str | None = None) -> int:
        """Number of handlers registered for one pattern, or in total."""
        if event_type is not None:
            return len(self._handlers.get(event_type, ()))
        return sum(len(handlers) for handlers in self._handlers.values())

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
        logger.debug("Cleared all event subscriptions")

"""
Message bus capability for Tonearm.

The player manager only needs two things from the bus:
- a synchronous listing of the currently owned names (used once at startup)
- a subscription to ``org.freedesktop.DBus.NameOwnerChanged``

BusConnection describes that capability. The dbus-python implementation lives
in ``tonearm.protocol.dbus_connection``; tests use in-memory fakes.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol

DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
DBUS_INTERFACE = "org.freedesktop.DBus"
NAME_OWNER_CHANGED = "NameOwnerChanged"

# Raw signal arguments, nominally (name, old_owner, new_owner)
OwnerChangedHandler = Callable[..., None]


class BusType(Enum):
    """Which message bus a connection talks to."""

    SESSION = "session"
    SYSTEM = "system"


class Subscription(Protocol):
    """Handle returned by a signal subscription."""

    def remove(self) -> None: ...


class BusConnection(Protocol):
    """What the player manager consumes from the message bus."""

    source: BusType

    def enumerate_owned_names(self) -> list[str]: ...

    def subscribe_ownership_changes(self, handler: OwnerChangedHandler) -> Subscription: ...

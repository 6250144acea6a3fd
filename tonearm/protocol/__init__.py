"""
Message bus handling for Tonearm.

This package contains the bus-facing pieces:
- bus: The BusConnection capability and bus constants
- names: MPRIS naming convention, notification filter and name registry
- dbus_connection: The dbus-python BusConnection (imported on demand)
"""

from tonearm.protocol.bus import BusConnection, BusType
from tonearm.protocol.names import MPRIS_PREFIX, NameRegistry

__all__ = ["BusConnection", "BusType", "MPRIS_PREFIX", "NameRegistry"]

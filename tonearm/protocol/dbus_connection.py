"""
dbus-python implementation of BusConnection.

Signals are dispatched by the GLib main loop, so whoever owns the process
must run one (see ``tonearm.__main__``).
"""

from __future__ import annotations

import logging

import dbus
from dbus.mainloop.glib import DBusGMainLoop

from tonearm.core import InitializationError
from tonearm.protocol.bus import (
    DBUS_INTERFACE,
    DBUS_PATH,
    DBUS_SERVICE,
    NAME_OWNER_CHANGED,
    BusType,
    OwnerChangedHandler,
    Subscription,
)

logger = logging.getLogger(__name__)


class DBusConnection:
    """
    BusConnection backed by dbus-python.

    Connecting happens in the constructor; a failure there is an
    InitializationError since nothing else can work without the bus.
    """

    def __init__(self, bus_type: BusType = BusType.SESSION) -> None:
        """
        Connect to the session or system bus.

        Args:
            bus_type: Which bus to connect to.

        Raises:
            InitializationError: If the bus cannot be reached.
        """
        self.source = bus_type
        mainloop = DBusGMainLoop()

        try:
            if bus_type is BusType.SYSTEM:
                self._bus = dbus.SystemBus(mainloop=mainloop)
            else:
                self._bus = dbus.SessionBus(mainloop=mainloop)
        except dbus.exceptions.DBusException as e:
            raise InitializationError(f"Cannot connect to the {bus_type.value} bus: {e}") from e

        logger.debug("Connected to the %s bus", bus_type.value)

    def enumerate_owned_names(self) -> list[str]:
        """
        List every name currently owned on the bus.

        Raises:
            InitializationError: If the ListNames call fails.
        """
        try:
            names = self._bus.list_names()
        except dbus.exceptions.DBusException as e:
            raise InitializationError(
                f"Cannot list names on the {self.source.value} bus: {e}"
            ) from e
        return [str(name) for name in names]

    def subscribe_ownership_changes(self, handler: OwnerChangedHandler) -> Subscription:
        """
        Call ``handler(name, old_owner, new_owner)`` for every NameOwnerChanged.

        Returns:
            A match object; call ``remove()`` on it to unsubscribe.
        """
        match = self._bus.add_signal_receiver(
            handler,
            signal_name=NAME_OWNER_CHANGED,
            dbus_interface=DBUS_INTERFACE,
            bus_name=DBUS_SERVICE,
            path=DBUS_PATH,
        )
        logger.debug("Subscribed to %s on the %s bus", NAME_OWNER_CHANGED, self.source.value)
        return match

    def __repr__(self) -> str:
        return f"DBusConnection({self.source.value})"

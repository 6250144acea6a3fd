"""
Bus name tracking for Tonearm.

MPRIS players announce themselves by owning a well-known bus name of the form
``org.mpris.MediaPlayer2.<identifier>``. The message bus tells everyone about
ownership changes with a ``NameOwnerChanged(name, old_owner, new_owner)``
signal, where an empty owner string means "no owner".

This module turns those raw notifications into "appeared" / "vanished"
transitions and keeps the ordered set of currently known identifiers.

Classification rules:
- Names outside the naming convention are irrelevant.
- old owner set, new owner empty: the name vanished.
- old owner empty, new owner set: the name appeared.
- Anything else (both empty, or an owner hand-off) is irrelevant. Hand-offs
  are not reported as vanish + appear.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Sequence

from tonearm.core import MalformedNotificationError

logger = logging.getLogger(__name__)

MPRIS_PREFIX = "org.mpris.MediaPlayer2."

# Players that allow several instances append ".instance<pid>" to their name
INSTANCE_MARKER = ".instance"


class OwnerChange(Enum):
    """Semantic meaning of one ownership-change notification."""

    APPEARED = "appeared"
    VANISHED = "vanished"
    IRRELEVANT = "irrelevant"


@dataclass(frozen=True, slots=True)
class NameOwnerChanged:
    """A parsed ``NameOwnerChanged`` notification."""

    bus_name: str
    old_owner: str
    new_owner: str

    @classmethod
    def from_args(cls, args: Sequence[object]) -> NameOwnerChanged:
        """
        Build a notification from raw signal arguments.

        Raises:
            MalformedNotificationError: If the arguments are not three strings.
        """
        if len(args) != 3 or not all(isinstance(arg, str) for arg in args):
            shape = ", ".join(type(arg).__name__ for arg in args)
            raise MalformedNotificationError(
                f"Expected NameOwnerChanged(str, str, str), got ({shape})"
            )
        bus_name, old_owner, new_owner = args
        # dbus.String subclasses str; normalise so identifiers compare cleanly
        return cls(str(bus_name), str(old_owner), str(new_owner))


def player_id_from_bus_name(bus_name: str | None, prefix: str = MPRIS_PREFIX) -> str | None:
    """
    Strip the naming-convention prefix from a bus name.

    Returns:
        The bare service identifier, or None if the name does not follow the
        convention (wrong prefix or nothing after it).
    """
    if not bus_name or not bus_name.startswith(prefix) or len(bus_name) <= len(prefix):
        return None
    return bus_name[len(prefix):]


def base_name(player_id: str) -> str:
    """Identifier without any instance suffix ("vlc" for "vlc.instance1234")."""
    return player_id.split(INSTANCE_MARKER, 1)[0]


def classify(notification: NameOwnerChanged) -> OwnerChange:
    """Classify an ownership change by its owner fields alone."""
    if not notification.new_owner and notification.old_owner:
        return OwnerChange.VANISHED
    if not notification.old_owner and notification.new_owner:
        return OwnerChange.APPEARED
    return OwnerChange.IRRELEVANT


def filter_notification(
    notification: NameOwnerChanged,
    prefix: str = MPRIS_PREFIX,
) -> tuple[OwnerChange, str | None]:
    """
    Run the full notification filter.

    Returns:
        The classification and the bare identifier. The identifier is None
        (and the classification IRRELEVANT) for names outside the convention.
    """
    player_id = player_id_from_bus_name(notification.bus_name, prefix)
    if player_id is None:
        return OwnerChange.IRRELEVANT, None
    return classify(notification), player_id


class NameRegistry:
    """
    Ordered set of known service identifiers.

    The most recently appeared identifier comes first. Seeding from an
    enumeration keeps the enumeration order. Identifiers are unique.
    """

    def __init__(self) -> None:
        self._names: list[str] = []

    def seed(self, names: Iterable[str]) -> int:
        """
        Replace the contents with an initial enumeration.

        Duplicates are dropped, keeping the first occurrence.

        Returns:
            Number of identifiers stored.
        """
        self._names = list(dict.fromkeys(names))
        logger.debug("Name registry seeded with %d names", len(self._names))
        return len(self._names)

    def add(self, name: str) -> bool:
        """
        Insert a name at the front.

        Returns:
            False if the name was already tracked (nothing changes).
        """
        if name in self._names:
            return False
        self._names.insert(0, name)
        logger.debug("Name added: %s", name)
        return True

    def remove(self, name: str) -> bool:
        """
        Remove a name.

        Returns:
            False if the name was not tracked.
        """
        try:
            self._names.remove(name)
        except ValueError:
            return False
        logger.debug("Name removed: %s", name)
        return True

    def clear(self) -> None:
        self._names.clear()

    @property
    def names(self) -> list[str]:
        """Snapshot of the tracked identifiers, in registry order."""
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

"""
Player handle representation for Tonearm.

The manager never drives playback itself; it only stores, ranks and forwards
player handles. Anything that exposes a ``player_id`` can be managed.
MprisPlayer is the handle the command line tool builds for each discovered
MPRIS service.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tonearm.protocol.bus import BusType
from tonearm.protocol.names import MPRIS_PREFIX, base_name


@runtime_checkable
class PlayerHandle(Protocol):
    """Minimal capability the manager needs from a player handle."""

    @property
    def player_id(self) -> str:
        """Service identifier this handle controls (bus name minus prefix)."""
        ...


class MprisPlayer:
    """
    Handle for one MPRIS player service.

    Handles compare by identity: two MprisPlayer objects for the same
    identifier are different handles as far as the manager is concerned.

    Attributes:
        player_id: Full service identifier, e.g. "vlc.instance1234".
        source: Bus the player lives on.
    """

    def __init__(
        self,
        player_id: str,
        *,
        source: BusType = BusType.SESSION,
        prefix: str = MPRIS_PREFIX,
    ) -> None:
        """
        Create a handle for a discovered player.

        Args:
            player_id: Bare service identifier.
            source: Bus type the identifier was discovered on.
            prefix: Naming convention prefix used to rebuild the bus name.
        """
        if not player_id:
            raise ValueError("player_id must not be empty")

        self._player_id = player_id
        self._prefix = prefix
        self.source = source

    @property
    def player_id(self) -> str:
        return self._player_id

    @property
    def name(self) -> str:
        """Player name without the instance suffix ("vlc" for "vlc.instance1234")."""
        return base_name(self._player_id)

    @property
    def instance(self) -> str:
        """Full identifier including any instance suffix."""
        return self._player_id

    @property
    def bus_name(self) -> str:
        """Well-known bus name owned by the player."""
        return self._prefix + self._player_id

    def __repr__(self) -> str:
        return f"MprisPlayer({self._player_id!r}, source={self.source.value})"

"""
Player management for Tonearm.

This package holds the player handle interface, the MPRIS handle used by
the command line tool, and the ordered collection of managed players.
"""

from tonearm.player.client import MprisPlayer, PlayerHandle
from tonearm.player.registry import PlayerCollection, SortConfig, compare_by_priority

__all__ = [
    "MprisPlayer",
    "PlayerCollection",
    "PlayerHandle",
    "SortConfig",
    "compare_by_priority",
]

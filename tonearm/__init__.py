"""
Tonearm - MPRIS player tracking for the message bus.

Tonearm watches the D-Bus session (or system) bus for media players that
implement MPRIS, keeps an ordered list of the players being controlled, and
tells subscribers whenever a player appears or goes away.
"""

__version__ = "0.1.0"
__author__ = "Tonearm Contributors"
__license__ = "LGPL-3.0-or-later"

from tonearm.manager import ManagerState, PlayerManager

__all__ = ["ManagerState", "PlayerManager", "__version__"]

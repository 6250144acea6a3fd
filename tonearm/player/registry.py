"""
Player Collection - Ordered set of managed player handles.

The collection holds the handles that have been promoted into active
management. Handles are compared by identity, never by value. Ordering is
either most-recently-managed-first, or driven by a three-way comparator
installed with set_sort().
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Sequence

from tonearm.player.client import PlayerHandle
from tonearm.protocol.names import base_name

logger = logging.getLogger(__name__)

# comparator(a, b, context) -> negative, zero or positive
PlayerComparator = Callable[[PlayerHandle, PlayerHandle, Any], int]
ContextDestructor = Callable[[Any], None]


@dataclass(frozen=True)
class SortConfig:
    """Active comparator plus the context it was installed with."""

    comparator: PlayerComparator
    context: Any = None
    destructor: ContextDestructor | None = None

    def compare(self, a: PlayerHandle, b: PlayerHandle) -> int:
        return self.comparator(a, b, self.context)

    def release(self) -> None:
        """Hand the context to its destructor, if any."""
        if self.destructor is not None:
            self.destructor(self.context)


def priority_rank(player_id: str, priority: Sequence[str]) -> int:
    """
    Position of a player in a priority list.

    Exact identifiers win over base names ("vlc.instance42" before "vlc").
    Unlisted players rank after every listed one.
    """
    for candidate in (player_id, base_name(player_id)):
        if candidate in priority:
            return priority.index(candidate)
    return len(priority)


def compare_by_priority(a: PlayerHandle, b: PlayerHandle, priority: Sequence[str]) -> int:
    """Comparator for set_sort() ordering players by a priority list."""
    return priority_rank(a.player_id, priority) - priority_rank(b.player_id, priority)


class PlayerCollection:
    """
    Ordered, duplicate-free collection of player handles.

    The collection only keeps references. It never inspects a handle beyond
    its ``player_id``, which is used to locate the handle when its name
    vanishes from the bus.
    """

    def __init__(self) -> None:
        """Initialize an empty collection."""
        self._players: list[PlayerHandle] = []
        self._sort: SortConfig | None = None

    @property
    def sort_config(self) -> SortConfig | None:
        return self._sort

    def _index_of(self, player: PlayerHandle) -> int | None:
        for index, current in enumerate(self._players):
            if current is player:
                return index
        return None

    def _resort(self) -> None:
        if self._sort is None:
            return
        # list.sort is stable, so equal players keep their current order
        self._players.sort(key=functools.cmp_to_key(self._sort.compare))

    def add(self, player: PlayerHandle) -> bool:
        """
        Insert a handle honoring the active sort order.

        With a comparator, the handle goes before the first element it does
        not compare greater than. Without one, it goes to the front.

        Returns:
            False if this exact handle is already in the collection.
        """
        if self._index_of(player) is not None:
            return False

        if self._sort is None:
            self._players.insert(0, player)
        else:
            position = len(self._players)
            for index, current in enumerate(self._players):
                if self._sort.compare(player, current) <= 0:
                    position = index
                    break
            self._players.insert(position, player)

        logger.debug("Player managed: %s", player.player_id)
        return True

    def move_to_top(self, player: PlayerHandle) -> bool:
        """
        Move a handle to the front, then re-sort if a comparator is active.

        With a comparator the handle may not end up first; moving it only
        wins ties against players the comparator considers equal.

        Returns:
            False if the handle is not in the collection.
        """
        index = self._index_of(player)
        if index is None:
            return False

        self._players.insert(0, self._players.pop(index))
        self._resort()
        logger.debug("Player moved to top: %s", player.player_id)
        return True

    def remove_by_id(self, player_id: str) -> PlayerHandle | None:
        """
        Remove the first handle reporting the given identifier.

        Returns:
            The removed handle, or None if no managed handle matches.
        """
        for index, current in enumerate(self._players):
            if current.player_id == player_id:
                del self._players[index]
                logger.debug("Player removed: %s", player_id)
                return current
        return None

    def set_sort(self, sort: SortConfig | None) -> SortConfig | None:
        """
        Install a new sort configuration and re-sort immediately.

        Passing None removes the comparator; the current order is kept.

        Returns:
            The previous configuration. Releasing its context is up to the
            caller.
        """
        previous = self._sort
        self._sort = sort
        self._resort()
        return previous

    def clear(self) -> list[PlayerHandle]:
        """
        Drop every handle.

        Returns:
            The handles that were held, in collection order.
        """
        players = self._players
        self._players = []
        return players

    @property
    def players(self) -> list[PlayerHandle]:
        """Snapshot of the managed handles, in collection order."""
        return list(self._players)

    def get_by_id(self, player_id: str) -> PlayerHandle | None:
        for player in self._players:
            if player.player_id == player_id:
                return player
        return None

    def __len__(self) -> int:
        """Return the number of managed players."""
        return len(self._players)

    def __contains__(self, player: object) -> bool:
        """Identity membership test."""
        return any(current is player for current in self._players)

    def __iter__(self) -> Iterator[PlayerHandle]:
        return iter(list(self._players))

    def __bool__(self) -> bool:
        """A collection instance is always truthy, even when empty."""
        return True

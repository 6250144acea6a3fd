"""
Shared fixtures: an in-memory bus connection and simple player handles.
"""

from __future__ import annotations

from typing import Callable, Iterator

import pytest

from tonearm.config import ManagerConfig
from tonearm.manager import PlayerManager
from tonearm.protocol.bus import BusType
from tonearm.protocol.names import MPRIS_PREFIX


class FakeSubscription:
    """Subscription handle returned by FakeConnection."""

    def __init__(self, connection: FakeConnection, handler: Callable[..., None]) -> None:
        self._connection = connection
        self._handler = handler
        self.removed = False

    def remove(self) -> None:
        self._connection.handlers.remove(self._handler)
        self.removed = True


class FakeConnection:
    """BusConnection that lives in memory and emits signals on demand."""

    def __init__(
        self,
        names: list[str] | None = None,
        *,
        source: BusType = BusType.SESSION,
        error: Exception | None = None,
    ) -> None:
        self.source = source
        self.names = list(names or [])
        self.error = error
        self.handlers: list[Callable[..., None]] = []
        self.subscriptions: list[FakeSubscription] = []
        self.enumerate_calls = 0

    def enumerate_owned_names(self) -> list[str]:
        self.enumerate_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.names)

    def subscribe_ownership_changes(self, handler: Callable[..., None]) -> FakeSubscription:
        self.handlers.append(handler)
        subscription = FakeSubscription(self, handler)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, *args: object) -> None:
        """Deliver one raw NameOwnerChanged signal."""
        for handler in list(self.handlers):
            handler(*args)

    def appear(self, player_id: str, owner: str = ":1.42") -> None:
        self.emit(MPRIS_PREFIX + player_id, "", owner)

    def vanish(self, player_id: str, owner: str = ":1.42") -> None:
        self.emit(MPRIS_PREFIX + player_id, owner, "")


class FakePlayer:
    """Player handle with an optional numeric priority for comparators."""

    def __init__(self, player_id: str, priority: int = 0) -> None:
        self._player_id = player_id
        self.priority = priority

    @property
    def player_id(self) -> str:
        return self._player_id

    def __repr__(self) -> str:
        return f"FakePlayer({self._player_id!r})"


def by_priority(a: FakePlayer, b: FakePlayer, context: object) -> int:
    """Comparator ordering FakePlayers by their priority attribute."""
    return a.priority - b.priority


@pytest.fixture
def config() -> ManagerConfig:
    return ManagerConfig()


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def manager(connection: FakeConnection, config: ManagerConfig) -> Iterator[PlayerManager]:
    manager = PlayerManager(connection, config=config)
    yield manager
    manager.close()

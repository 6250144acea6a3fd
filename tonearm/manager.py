"""
Tonearm Player Manager

This module contains the PlayerManager class which ties together the name
registry, the player collection and the event bus, and keeps them in step
with the message bus.

Flow:
    NameOwnerChanged -> notification filter -> name registry
        -> "name.appeared" / "name.vanished"
    subscriber builds a player handle -> manage() -> player collection
        -> "player.appeared"
    name vanishes -> matching managed player is dropped -> "player.vanished"

A name appearing never creates a player by itself. Subscribers decide which
names to manage.

NOTE ON RE-ENTRANCY:
- Events are delivered synchronously while a mutation is in progress.
- A handler calling back into manage()/move_to_top()/set_sort() (the usual
  reaction to "name.appeared") would otherwise mutate the collection half way
  through another mutation.
- Such nested calls are queued and run in order once the current mutation has
  finished, before the outermost call returns.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any, Callable

from tonearm.config import ManagerConfig, get_config
from tonearm.core import InitializationError, MalformedNotificationError
from tonearm.core.events import (
    NAME_APPEARED,
    NAME_VANISHED,
    PLAYER_APPEARED,
    PLAYER_VANISHED,
    EventBus,
    EventHandler,
    NameAppearedEvent,
    NameVanishedEvent,
    PlayerAppearedEvent,
    PlayerVanishedEvent,
)
from tonearm.player.registry import (
    ContextDestructor,
    PlayerCollection,
    PlayerComparator,
    SortConfig,
)
from tonearm.protocol.names import (
    NameOwnerChanged,
    NameRegistry,
    OwnerChange,
    filter_notification,
    player_id_from_bus_name,
)

if TYPE_CHECKING:
    from tonearm.player.client import PlayerHandle
    from tonearm.protocol.bus import BusConnection, BusType, Subscription

logger = logging.getLogger(__name__)


class ManagerState(Enum):
    """Initialization state of a PlayerManager."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class PlayerManager:
    """
    Tracks MPRIS players on a message bus.

    Construction connects to the bus, lists the players that are already
    running and subscribes to ownership changes. If any of that fails the
    constructor raises InitializationError.

    Attributes:
        events: Event bus carrying name/player appeared/vanished events.
        config: Configuration the manager was built with.
    """

    def __init__(
        self,
        connection: BusConnection | None = None,
        *,
        config: ManagerConfig | None = None,
    ) -> None:
        """
        Initialize the player manager.

        Args:
            connection: Bus connection to use. If None, a dbus-python
                connection to the configured bus is opened.
            config: Configuration. If None, the global configuration is used.

        Raises:
            InitializationError: If connecting or listing names fails.
        """
        self.config = config if config is not None else get_config()
        self.events = EventBus()

        self._connection = connection
        self._subscription: Subscription | None = None
        self._names = NameRegistry()
        self._players = PlayerCollection()

        self._state = ManagerState.UNINITIALIZED
        self._init_error: InitializationError | None = None
        self._closed = False

        self._pending: deque[Callable[[], None]] = deque()
        self._dispatching = False

        self.initialize()

    # -- lifecycle ---------------------------------------------------------

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def connection(self) -> BusConnection | None:
        return self._connection

    @property
    def source(self) -> BusType:
        """Bus the tracked names live on."""
        if self._connection is not None:
            return self._connection.source
        return self.config.bus_type

    def initialize(self) -> None:
        """
        Enumerate current players and subscribe to ownership changes.

        Calling this again once ready does nothing. After a failure the
        original error is raised again; a failed manager stays failed.

        Raises:
            InitializationError: If connecting or listing names fails.
        """
        if self._state is ManagerState.READY:
            return
        if self._init_error is not None:
            raise self._init_error

        self._state = ManagerState.INITIALIZING

        try:
            if self._connection is None:
                from tonearm.protocol.dbus_connection import DBusConnection

                self._connection = DBusConnection(self.config.bus_type)

            owned = self._connection.enumerate_owned_names()
            player_ids = [
                player_id
                for player_id in (
                    player_id_from_bus_name(name, self.config.name_prefix) for name in owned
                )
                if player_id is not None
            ]
            self._names.seed(player_ids)

            self._subscription = self._connection.subscribe_ownership_changes(
                self._on_name_owner_changed
            )
        except InitializationError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = InitializationError(f"Player manager initialization failed: {e}")
            self._fail(error)
            raise error from e

        self._state = ManagerState.READY
        logger.info(
            "Player manager ready on the %s bus (%d players found)",
            self.source.value,
            len(self._names),
        )

    def _fail(self, error: InitializationError) -> None:
        self._state = ManagerState.FAILED
        self._init_error = error
        logger.debug("Player manager initialization failed: %s", error)

    def close(self) -> None:
        """
        Release everything the manager holds.

        Removes the bus subscription, drops every managed player, releases
        the sort context and forgets all event subscribers. Safe to call more
        than once.
        """
        if self._closed:
            return

        self._closed = True
        self._pending.clear()

        if self._subscription is not None:
            self._subscription.remove()
            self._subscription = None

        players = self._players.clear()
        previous = self._players.set_sort(None)
        if previous is not None:
            previous.release()

        self._names.clear()
        self.events.clear()
        logger.info("Player manager closed (%d players released)", len(players))

    def __enter__(self) -> PlayerManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- read access -------------------------------------------------------

    @property
    def player_names(self) -> list[str]:
        """Known player identifiers, most recently appeared first."""
        return self._names.names

    @property
    def players(self) -> list[PlayerHandle]:
        """Managed player handles in collection order."""
        return self._players.players

    @property
    def sort_config(self) -> SortConfig | None:
        return self._players.sort_config

    def get_player(self, player_id: str) -> PlayerHandle | None:
        """Look up a managed player by its identifier."""
        return self._players.get_by_id(player_id)

    # -- subscriptions -----------------------------------------------------

    def on_name_appeared(self, handler: EventHandler) -> EventHandler:
        """Subscribe to NameAppearedEvent."""
        return self.events.subscribe(NAME_APPEARED, handler)

    def on_name_vanished(self, handler: EventHandler) -> EventHandler:
        """Subscribe to NameVanishedEvent."""
        return self.events.subscribe(NAME_VANISHED, handler)

    def on_player_appeared(self, handler: EventHandler) -> EventHandler:
        """Subscribe to PlayerAppearedEvent."""
        return self.events.subscribe(PLAYER_APPEARED, handler)

    def on_player_vanished(self, handler: EventHandler) -> EventHandler:
        """Subscribe to PlayerVanishedEvent."""
        return self.events.subscribe(PLAYER_VANISHED, handler)

    # -- mutation ----------------------------------------------------------

    def _mutate(self, action: Callable[[], None]) -> None:
        """Run a mutation, or queue it if another one is dispatching."""
        if self._closed:
            logger.debug("Ignoring mutation on a closed player manager")
            return

        self._pending.append(action)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                self._pending.popleft()()
        except BaseException:
            self._pending.clear()
            raise
        finally:
            self._dispatching = False

    def manage(self, player: PlayerHandle | None) -> None:
        """
        Start managing a player handle.

        None and handles that are already managed are ignored. Otherwise the
        handle is inserted according to the sort order and "player.appeared"
        is published.
        """
        if player is None:
            return
        self._mutate(partial(self._manage, player))

    def _manage(self, player: PlayerHandle) -> None:
        if self._players.add(player):
            self.events.publish(PlayerAppearedEvent(player=player))

    def move_to_top(self, player: PlayerHandle) -> None:
        """
        Give a managed player priority.

        Without a comparator the player ends up first. With one, the
        collection is re-sorted afterwards, so the move only breaks ties.
        Unmanaged players are ignored.
        """
        self._mutate(partial(self._players.move_to_top, player))

    def set_sort(
        self,
        comparator: PlayerComparator | None,
        context: Any = None,
        destructor: ContextDestructor | None = None,
    ) -> None:
        """
        Replace the sort order and re-sort the managed players.

        The manager owns ``context`` from now on: ``destructor(context)`` is
        called when the sort order is replaced again or the manager is
        closed. Passing None as comparator removes the sort order.

        Args:
            comparator: ``comparator(a, b, context)`` returning <0, 0 or >0.
            context: Extra data handed to the comparator.
            destructor: Called with ``context`` once it is no longer used.
        """
        sort = SortConfig(comparator, context, destructor) if comparator is not None else None
        self._mutate(partial(self._set_sort, sort))

    def _set_sort(self, sort: SortConfig | None) -> None:
        previous = self._players.sort_config
        # Re-installing the same context with the same destructor must not destroy it
        if previous is not None and not (
            sort is not None
            and previous.context is sort.context
            and previous.destructor == sort.destructor
        ):
            previous.release()
        self._players.set_sort(sort)
        logger.debug("Sort order replaced (%s)", "comparator" if sort else "insertion order")

    # -- bus notifications ---------------------------------------------------

    def _on_name_owner_changed(self, *args: object) -> None:
        """Entry point for raw NameOwnerChanged signals."""
        try:
            notification = NameOwnerChanged.from_args(args)
        except MalformedNotificationError as e:
            logger.warning("Dropping ownership notification: %s", e)
            return

        self._mutate(partial(self._handle_owner_changed, notification))

    def _handle_owner_changed(self, notification: NameOwnerChanged) -> None:
        change, player_id = filter_notification(notification, self.config.name_prefix)
        if player_id is None:
            return

        if change is OwnerChange.VANISHED:
            self._name_vanished(player_id)
        elif change is OwnerChange.APPEARED:
            self._name_appeared(player_id)

    def _name_vanished(self, player_id: str) -> None:
        if not self._names.remove(player_id):
            return

        player = self._players.remove_by_id(player_id)
        if player is not None:
            self.events.publish(PlayerVanishedEvent(player=player))

        self.events.publish(NameVanishedEvent(name=player_id, source=self.source))

    def _name_appeared(self, player_id: str) -> None:
        if not self._names.add(player_id):
            return

        self.events.publish(NameAppearedEvent(name=player_id, source=self.source))

    def __repr__(self) -> str:
        return (
            f"PlayerManager(state={self._state.value}, "
            f"names={len(self._names)}, players={len(self._players)})"
        )

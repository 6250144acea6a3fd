"""
Tonearm - Entry Point

Run with: python -m tonearm [list|follow]
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from tonearm import __version__
from tonearm.config import ManagerConfig, load_config
from tonearm.core import TonearmError
from tonearm.core.events import Event, NameEvent, PlayerEvent
from tonearm.manager import PlayerManager
from tonearm.player.client import MprisPlayer
from tonearm.player.registry import compare_by_priority, priority_rank
from tonearm.protocol.bus import BusType


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("dbus").setLevel(logging.WARNING)


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tonearm",
        description="Tonearm - track MPRIS media players on the message bus",
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=["list", "follow"],
        default="list",
        help="list: print known players and exit; follow: print player events (default: list)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to a tonearm.toml (default: bundled config)",
    )

    parser.add_argument(
        "--system",
        action="store_true",
        help="Watch the system bus instead of the session bus",
    )

    parser.add_argument(
        "-p",
        "--player",
        type=_split_names,
        default=None,
        help="Comma separated player names, highest priority first",
    )

    parser.add_argument(
        "-i",
        "--ignore-player",
        type=_split_names,
        default=None,
        help="Comma separated player names to ignore",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ManagerConfig:
    """Load the config file and apply command line overrides."""
    config = load_config(args.config)
    if args.system:
        config.bus_type = BusType.SYSTEM
    if args.player is not None:
        config.priority = args.player
    if args.ignore_player is not None:
        config.ignore = args.ignore_player
    return config


def format_event(event: Event) -> str:
    """One output line per event: "<type>\\t<identifier>"."""
    if isinstance(event, NameEvent):
        return f"{event.event_type}\t{event.name}"
    if isinstance(event, PlayerEvent) and event.player is not None:
        return f"{event.event_type}\t{event.player.player_id}"
    return event.event_type


def list_players(manager: PlayerManager) -> int:
    """Print the known, non-ignored players in priority order."""
    names = [name for name in manager.player_names if not manager.config.is_ignored(name)]
    if not names:
        print("No players found", file=sys.stderr)
        return 1

    priority = manager.config.priority
    for name in sorted(names, key=lambda name: priority_rank(name, priority)):
        print(name)
    return 0


def attach_players(manager: PlayerManager) -> None:
    """
    Manage every non-ignored player, now and as they appear.

    Players are ordered by the configured priority list.
    """
    config = manager.config

    def manage_name(name: str) -> None:
        if config.is_ignored(name):
            return
        manager.manage(MprisPlayer(name, source=manager.source, prefix=config.name_prefix))

    manager.set_sort(compare_by_priority, list(config.priority))
    for name in reversed(manager.player_names):
        manage_name(name)
    manager.on_name_appeared(lambda event: manage_name(event.name))


def follow_players(manager: PlayerManager) -> int:
    """Print events until interrupted, driving the GLib main loop."""
    from gi.repository import GLib

    attach_players(manager)
    manager.events.subscribe("*", lambda event: print(format_event(event), flush=True))

    for player in manager.players:
        print(f"player.appeared\t{player.player_id}", flush=True)

    loop = GLib.MainLoop()
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, loop.quit)
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, loop.quit)
    loop.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
        with PlayerManager(config=config) as manager:
            if args.command == "follow":
                return follow_players(manager)
            return list_players(manager)
    except TonearmError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())

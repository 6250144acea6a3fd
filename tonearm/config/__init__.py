"""
Configuration management for Tonearm.

This module loads which bus to watch, the MPRIS naming convention, and the
player priority / ignore lists from TOML files.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from tonearm.core import ConfigError
from tonearm.protocol.bus import BusType
from tonearm.protocol.names import MPRIS_PREFIX, base_name

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent


@dataclass
class ManagerConfig:
    """Loaded Tonearm configuration."""

    bus_type: BusType = BusType.SESSION
    name_prefix: str = MPRIS_PREFIX
    priority: list[str] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)

    def is_ignored(self, player_name: str) -> bool:
        """Check a player name (with or without instance suffix) against the ignore list."""
        return player_name in self.ignore or base_name(player_name) in self.ignore


def _table(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a table")
    return value


def _string_list(data: dict[str, object], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"players.{key} must be a list of strings")
    return list(value)


def load_config(config_path: Path | None = None) -> ManagerConfig:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to a tonearm.toml. If None, uses the default location.

    Returns:
        Loaded ManagerConfig instance.

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML or holds
            invalid values.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "tonearm.toml"

    logger.debug("Loading config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    bus = _table(data, "bus")
    players = _table(data, "players")

    bus_type_str = bus.get("type", BusType.SESSION.value)
    try:
        bus_type = BusType(bus_type_str)
    except ValueError:
        raise ConfigError(
            f"bus.type must be 'session' or 'system', got {bus_type_str!r}"
        ) from None

    name_prefix = bus.get("name_prefix", MPRIS_PREFIX)
    if not isinstance(name_prefix, str) or not name_prefix:
        raise ConfigError("bus.name_prefix must be a non-empty string")

    return ManagerConfig(
        bus_type=bus_type,
        name_prefix=name_prefix,
        priority=_string_list(players, "priority"),
        ignore=_string_list(players, "ignore"),
    )


# Global singleton instance (lazy loaded)
_config: ManagerConfig | None = None


def get_config() -> ManagerConfig:
    """
    Get the global configuration (lazy loaded singleton).

    Returns:
        The ManagerConfig instance.
    """
    global _config

    if _config is None:
        _config = load_config()

    return _config


def reload_config(config_path: Path | None = None) -> ManagerConfig:
    """
    Force reload of the configuration.

    Returns:
        The newly loaded ManagerConfig instance.
    """
    global _config
    _config = load_config(config_path)
    return _config

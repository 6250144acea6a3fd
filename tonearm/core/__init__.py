"""
Core domain package.

This package contains the pieces of Tonearm that do not talk to the message
bus directly: the error hierarchy and the in-process event bus.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `tonearm.core.events`).
"""

from __future__ import annotations

__all__: list[str] = [
    "ConfigError",
    "InitializationError",
    "MalformedNotificationError",
    "TonearmError",
]


class TonearmError(Exception):
    """Base class for Tonearm exceptions."""


class InitializationError(TonearmError):
    """Raised when the bus connection or the initial name enumeration fails."""


class MalformedNotificationError(TonearmError):
    """Raised when an ownership-change notification has an unexpected shape."""


class ConfigError(TonearmError):
    """Raised when the configuration file cannot be parsed or is invalid."""

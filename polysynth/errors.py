from __future__ import annotations


class PolySynthError(Exception):
    """Base error for the polysynth library."""


class InvalidArgumentError(PolySynthError, ValueError):
    """Raised when a pattern spec, setting, or argument is out of its domain."""


class UnknownInstrumentError(PolySynthError, LookupError):
    """Raised when an instrument name is not present in a registry."""


class PlaybackError(PolySynthError):
    """Raised when audio playback cannot start or fails mid-stream."""

"""Ready-made polyrhythms, one or more specs per preset."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .config import PolyrhythmSpec
from .errors import InvalidArgumentError
from .patterns import VoicePattern, build_polyrhythms
from .tuning import just_frequency_fn

PRESETS: Mapping[str, tuple[PolyrhythmSpec, ...]] = MappingProxyType(
    {
        "five_against_nine": (PolyrhythmSpec(subdivisions=(5, 9), instrument="sine"),),
        "accented_sines": (
            PolyrhythmSpec(subdivisions=(3, 4, 5), instrument="sine", first_note_multiplier=2.0),
        ),
        "drum_circle": (
            PolyrhythmSpec(subdivisions=3, instrument="kick", amplitude=0.5, sustain=0.2, pan=0.0),
            PolyrhythmSpec(subdivisions=4, instrument="snare", amplitude=0.2, sustain=0.1, pan=-0.4),
            PolyrhythmSpec(subdivisions=7, instrument="hihat", amplitude=0.1, sustain=0.04, pan=0.4),
        ),
        "just_saw_cluster": (
            PolyrhythmSpec(
                subdivisions=(4, 5, 6, 7),
                instrument="saw",
                amplitude=0.08,
                sustain=0.08,
                frequency_fn=just_frequency_fn((0, 4, 7, 10)),
            ),
        ),
    }
)


def preset_names() -> tuple[str, ...]:
    return tuple(PRESETS)


def get_preset(name: str) -> tuple[PolyrhythmSpec, ...]:
    try:
        return PRESETS[name]
    except KeyError as exc:
        raise InvalidArgumentError(f"Unknown preset: {name!r}. Valid: {list(PRESETS)}") from exc


def build_preset(name: str) -> list[VoicePattern]:
    """Build every spec of a preset and return the voices in order."""
    return [pattern for spec in get_preset(name) for pattern in build_polyrhythms(spec)]

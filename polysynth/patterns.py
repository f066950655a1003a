"""Polyrhythm pattern builder.

Each requested subdivision becomes one independent :class:`VoicePattern`:
``subdivision`` notes per beat, the first note of every cycle optionally
accented in pitch, and the voices fanned out across the stereo field::

    >>> [p.pan for p in build_polyrhythms(subdivisions=[5, 9])]
    [-1.0, 1.0]

The patterns are inert descriptors. Hand them to
:func:`polysynth.scheduler.render_patterns` (or any other player) to hear
them.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import PolyrhythmSpec, parse_spec
from .errors import InvalidArgumentError
from .logging_utils import get_logger

_LOGGER = get_logger("patterns")


@dataclass(frozen=True, slots=True)
class NoteEvent:
    """A single trigger produced by a voice pattern."""

    beat: float
    frequency: float
    duration: float
    amplitude: float
    sustain: float
    pan: float
    instrument: str


class VoicePattern(BaseModel):
    """One voice of a polyrhythm: a repeating frequency cycle at a fixed rate."""

    instrument: str
    frequencies: tuple[float, ...] = Field(min_length=1)
    duration: float = Field(gt=0.0)
    amplitude: float
    sustain: float
    pan: float
    subdivision: float

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def cycle_length(self) -> int:
        return len(self.frequencies)

    @property
    def cycle_beats(self) -> float:
        return self.cycle_length * self.duration

    def iter_frequencies(self) -> Iterator[float]:
        return itertools.cycle(self.frequencies)

    def iter_events(self, start_beat: float = 0.0) -> Iterator[NoteEvent]:
        """Yield note events forever, starting at ``start_beat``."""
        for step, frequency in enumerate(self.iter_frequencies()):
            yield NoteEvent(
                beat=start_beat + step * self.duration,
                frequency=frequency,
                duration=self.duration,
                amplitude=self.amplitude,
                sustain=self.sustain,
                pan=self.pan,
                instrument=self.instrument,
            )


def frequency_cycle(base: float, subdivision: float, first_note_multiplier: float) -> tuple[float, ...]:
    """Return one cycle: the accented first note followed by plain repeats.

    Non-integer subdivisions truncate the repeat count toward zero, so 2.5
    gives one accented note plus one repeat.
    """
    repeats = max(0, math.trunc(subdivision - 1))
    return (base * first_note_multiplier,) + (base,) * repeats


def resolve_pan(pan: Optional[Sequence[float]], index: int, count: int) -> float:
    """Pick the pan position for voice ``index`` of ``count``."""
    if pan is not None:
        if not pan:
            raise InvalidArgumentError("pan sequence must not be empty")
        return float(pan[index % len(pan)])
    if count == 1:
        return 0.0
    return -1.0 + (2.0 / (count - 1)) * index


def _coerce_spec(spec: PolyrhythmSpec | Mapping[str, Any] | None, fields: Mapping[str, Any]) -> PolyrhythmSpec:
    match spec:
        case PolyrhythmSpec() if not fields:
            return spec
        case PolyrhythmSpec():
            return parse_spec({**_spec_fields(spec), **fields})
        case None:
            return parse_spec(fields)
        case Mapping():
            return parse_spec({**spec, **fields})
        case _:
            raise InvalidArgumentError(f"Unsupported spec type: {type(spec).__name__}")


def _spec_fields(spec: PolyrhythmSpec) -> dict[str, Any]:
    return {name: getattr(spec, name) for name in PolyrhythmSpec.model_fields}


def build_polyrhythms(
    spec: PolyrhythmSpec | Mapping[str, Any] | None = None,
    /,
    **fields: Any,
) -> list[VoicePattern]:
    """Build one :class:`VoicePattern` per subdivision.

    Accepts a :class:`PolyrhythmSpec`, a mapping of its fields, keyword
    fields, or a spec plus keyword overrides. Invalid input raises
    :class:`InvalidArgumentError`.
    """

    resolved = _coerce_spec(spec, fields)
    count = resolved.voice_count
    patterns: list[VoicePattern] = []
    for index, subdivision in enumerate(resolved.subdivisions):
        base = float(resolved.frequency_fn(resolved.root, index))
        if not math.isfinite(base) or base <= 0:
            raise InvalidArgumentError(
                f"frequency_fn returned {base!r} for voice {index}; frequencies must be positive"
            )
        patterns.append(
            VoicePattern(
                instrument=resolved.instrument,
                frequencies=frequency_cycle(base, subdivision, resolved.first_note_multiplier),
                duration=1.0 / subdivision,
                amplitude=resolved.amplitude,
                sustain=resolved.sustain,
                pan=resolve_pan(resolved.pan, index, count),
                subdivision=subdivision,
            )
        )
    _LOGGER.debug(
        "Built %d voice(s) for %s on %r",
        len(patterns),
        " against ".join(f"{value:g}" for value in resolved.subdivisions),
        resolved.instrument,
    )
    return patterns

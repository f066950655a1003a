"""Offline playback host for voice patterns.

Every pattern is an independent event stream. Streams start together on the
next ``quant`` boundary, are merged in beat order, and are rendered into one
stereo buffer through an :class:`~polysynth.synth.InstrumentRegistry`.
"""

from __future__ import annotations

import heapq
import itertools
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from .audio import FloatArray, ensure_audio_contract
from .config import RenderSettings
from .errors import InvalidArgumentError
from .logging_utils import get_logger
from .patterns import NoteEvent, VoicePattern
from .synth import Instrument, InstrumentRegistry, add_note, default_registry

_LOGGER = get_logger("scheduler")

# Tolerance when snapping a start beat onto a quant boundary
_QUANT_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class ScheduledEvent:
    voice: int
    event: NoteEvent

    @property
    def beat(self) -> float:
        return self.event.beat


def quantize_start(now: float, quant: float) -> float:
    """Return the first multiple of ``quant`` at or after ``now``."""
    if now < 0:
        raise InvalidArgumentError(f"now must not be negative, got {now}")
    if quant < 0:
        raise InvalidArgumentError(f"quant must not be negative, got {quant}")
    if quant == 0:
        return now
    boundary = math.ceil(now / quant - _QUANT_EPSILON) * quant
    return max(boundary, now)


def _bounded(voice: int, pattern: VoicePattern, start: float, end: float) -> Iterator[ScheduledEvent]:
    for event in itertools.takewhile(lambda item: item.beat < end, pattern.iter_events(start)):
        yield ScheduledEvent(voice=voice, event=event)


def schedule(
    patterns: Sequence[VoicePattern],
    *,
    beats: float,
    now: float = 0.0,
    quant: float = 0.0,
) -> list[ScheduledEvent]:
    """Merge the patterns' events that fall inside ``[now, now + beats)``."""
    if beats <= 0:
        raise InvalidArgumentError(f"beats must be positive, got {beats}")
    start = quantize_start(now, quant)
    end = now + beats
    streams = [_bounded(voice, pattern, start, end) for voice, pattern in enumerate(patterns)]
    merged = list(heapq.merge(*streams, key=lambda item: (item.beat, item.voice)))
    _LOGGER.debug(
        "Scheduled %d event(s) from %d voice(s), start beat %.3f", len(merged), len(patterns), start
    )
    return merged


def _resolve_instruments(names: Iterable[str], registry: InstrumentRegistry) -> dict[str, Instrument]:
    return {name: registry.get(name) for name in dict.fromkeys(names)}


def render_events(
    events: Iterable[ScheduledEvent],
    *,
    now: float = 0.0,
    settings: RenderSettings | None = None,
    registry: InstrumentRegistry | None = None,
) -> FloatArray:
    """Render scheduled events into a stereo buffer covering ``settings.beats``."""
    settings = settings or RenderSettings()
    registry = registry or default_registry()
    items = list(events)
    instruments = _resolve_instruments((item.event.instrument for item in items), registry)

    sr = settings.sample_rate
    rng = np.random.default_rng(settings.seed)
    buffer = np.zeros((settings.frames, 2), dtype=np.float64)
    for item in items:
        note_event = item.event
        voice = instruments[note_event.instrument]
        note = voice.render(
            note_event.frequency,
            note_event.amplitude,
            note_event.sustain,
            note_event.pan,
            sr=sr,
            rng=rng,
        )
        start_index = int(round((note_event.beat - now) / settings.tempo * sr))
        add_note(buffer, note, start_index, sr)
    return ensure_audio_contract(buffer)


def render_patterns(
    patterns: Sequence[VoicePattern],
    *,
    settings: RenderSettings | None = None,
    registry: InstrumentRegistry | None = None,
    now: float = 0.0,
) -> FloatArray:
    """Play the patterns for ``settings.beats`` beats and return stereo audio."""
    settings = settings or RenderSettings()
    registry = registry or default_registry()
    # Unknown instruments fail before any audio is rendered.
    _resolve_instruments((pattern.instrument for pattern in patterns), registry)
    events = schedule(patterns, beats=settings.beats, now=now, quant=settings.quant)
    _LOGGER.info(
        "Rendering %d voice(s), %d event(s), %.2f s at %d Hz",
        len(patterns),
        len(events),
        settings.seconds,
        settings.sample_rate,
    )
    return render_events(events, now=now, settings=settings, registry=registry)

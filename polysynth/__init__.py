from __future__ import annotations

from .audio import write_wav
from .config import SAMPLE_RATE, PolyrhythmSpec, RenderSettings, parse_spec
from .errors import InvalidArgumentError, PlaybackError, PolySynthError, UnknownInstrumentError
from .logging_utils import configure_logging as _configure_logging
from .patterns import NoteEvent, VoicePattern, build_polyrhythms
from .presets import build_preset, get_preset
from .scheduler import quantize_start, render_patterns, schedule
from .synth import Instrument, InstrumentRegistry, default_registry
from .tuning import RATIO_TABLE, default_frequency_fn, interval_frequency, just_frequency_fn, ratio

__all__ = [
    "SAMPLE_RATE",
    "RATIO_TABLE",
    "Instrument",
    "InstrumentRegistry",
    "InvalidArgumentError",
    "NoteEvent",
    "PlaybackError",
    "PolySynthError",
    "PolyrhythmSpec",
    "RenderSettings",
    "UnknownInstrumentError",
    "VoicePattern",
    "build_polyrhythms",
    "build_preset",
    "default_frequency_fn",
    "default_registry",
    "get_preset",
    "interval_frequency",
    "just_frequency_fn",
    "parse_spec",
    "quantize_start",
    "ratio",
    "render_patterns",
    "schedule",
    "write_wav",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging

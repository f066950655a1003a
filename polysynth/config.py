from __future__ import annotations

import math
import numbers
import os
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidArgumentError
from .logging_utils import get_logger
from .tuning import ROOT_FREQUENCY, default_frequency_fn

_LOGGER = get_logger("config")

SAMPLE_RATE = 44_100
DEFAULT_INSTRUMENT = "default"
# Notes per beat; one cycle is materialized as a tuple of this many frequencies
MAX_SUBDIVISION = 1024
SAMPLE_RATE_ENV = "POLYSYNTH_SAMPLE_RATE"
TEMPO_ENV = "POLYSYNTH_TEMPO"


def _as_tuple(value: object, field_name: str) -> object:
    match value:
        case bool():
            raise ValueError(f"{field_name} must be numeric, got {value!r}")
        case numbers.Real():
            return (float(value),)
        case str() | bytes():
            raise ValueError(f"{field_name} must be a number or a sequence of numbers")
        case Iterable():
            items = tuple(value)
            if any(isinstance(item, bool) for item in items):
                raise ValueError(f"{field_name} must be numeric, got {items!r}")
            return items
        case _:
            return value


class PolyrhythmSpec(BaseModel):
    """Input descriptor for :func:`polysynth.patterns.build_polyrhythms`.

    ``subdivisions`` and ``pan`` accept a bare number or a sequence; both are
    normalized to tuples here so nothing downstream has to care. Subdivision
    counts are capped at ``MAX_SUBDIVISION`` notes per beat.
    """

    subdivisions: tuple[float, ...] = (5, 9)
    instrument: str = DEFAULT_INSTRUMENT
    amplitude: float = Field(default=0.1, ge=0.0)
    sustain: float = Field(default=0.02, gt=0.0)
    pan: Optional[tuple[float, ...]] = None
    first_note_multiplier: float = Field(default=1.0, gt=0.0)
    frequency_fn: Callable[[float, int], float] = default_frequency_fn
    root: float = Field(default=ROOT_FREQUENCY, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("subdivisions", mode="before")
    @classmethod
    def _normalize_subdivisions(cls, value: object) -> object:
        return _as_tuple(value, "subdivisions")

    @field_validator("subdivisions")
    @classmethod
    def _check_subdivisions(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if not value:
            raise ValueError("subdivisions must contain at least one count")
        for count in value:
            if not math.isfinite(count) or count <= 0:
                raise ValueError(f"subdivision counts must be positive, got {count!r}")
            if count > MAX_SUBDIVISION:
                raise ValueError(
                    f"subdivision counts must not exceed {MAX_SUBDIVISION}, got {count!r}"
                )
        return value

    @field_validator("pan", mode="before")
    @classmethod
    def _normalize_pan(cls, value: object) -> object:
        if value is None:
            return None
        return _as_tuple(value, "pan")

    @field_validator("pan")
    @classmethod
    def _check_pan(cls, value: Optional[tuple[float, ...]]) -> Optional[tuple[float, ...]]:
        if value is None:
            return None
        if not value:
            raise ValueError("pan sequence must not be empty")
        for position in value:
            if not -1.0 <= position <= 1.0:
                raise ValueError(f"pan positions must lie in [-1, 1], got {position!r}")
        return value

    @field_validator("instrument")
    @classmethod
    def _check_instrument(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("instrument must be a non-empty name")
        return value

    @property
    def voice_count(self) -> int:
        return len(self.subdivisions)


class RenderSettings(BaseModel):
    """Clock and output settings for the offline renderer."""

    sample_rate: int = Field(default=SAMPLE_RATE, gt=0)
    tempo: float = Field(default=1.0, gt=0.0)  # beats per second
    beats: float = Field(default=8.0, gt=0.0)
    quant: float = Field(default=0.0, ge=0.0)
    seed: int = 0

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def seconds(self) -> float:
        return self.beats / self.tempo

    @property
    def frames(self) -> int:
        return int(round(self.seconds * self.sample_rate))

    @classmethod
    def from_env(cls, **overrides: Any) -> "RenderSettings":
        """Build settings, taking sample rate and tempo from the environment."""
        payload: dict[str, Any] = {}
        sample_rate = os.environ.get(SAMPLE_RATE_ENV)
        if sample_rate:
            payload["sample_rate"] = sample_rate
        tempo = os.environ.get(TEMPO_ENV)
        if tempo:
            payload["tempo"] = tempo
        payload.update({key: value for key, value in overrides.items() if value is not None})
        return parse_settings(payload)


def parse_spec(payload: Mapping[str, Any]) -> PolyrhythmSpec:
    """Parse a spec payload, raising InvalidArgumentError on failure."""

    try:
        return PolyrhythmSpec.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse polyrhythm spec: %s", exc, exc_info=True)
        raise InvalidArgumentError(str(exc)) from exc


def parse_settings(payload: Mapping[str, Any]) -> RenderSettings:
    """Parse render settings, raising InvalidArgumentError on failure."""

    try:
        return RenderSettings.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse render settings: %s", exc, exc_info=True)
        raise InvalidArgumentError(str(exc)) from exc

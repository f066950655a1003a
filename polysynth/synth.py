# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false
# pyright: reportUnknownArgumentType=false

"""
Architecture:

1. Primitives: oscillators, envelopes, filters, panning
2. Voices: oscillator -> envelope -> pan, one render function per instrument
3. Registry: instrument name -> voice, looked up by the scheduler
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol, TypeAlias, cast

import numpy as np
from numpy.typing import NDArray
from scipy.signal import butter, decimate, lfilter  # type: ignore[import]

from .config import DEFAULT_INSTRUMENT, SAMPLE_RATE
from .errors import InvalidArgumentError, UnknownInstrumentError
from .logging_utils import get_logger

_LOGGER = get_logger("synth")

FloatArray: TypeAlias = NDArray[np.float64]

# Attack shared by the pitched voices, seconds
PERC_ATTACK = 0.005
# Curvature of the release segment; negative bends it toward a fast decay
PERC_CURVE = -4.0


class VoiceFn(Protocol):
    def __call__(
        self,
        freq: float,
        amp: float,
        sustain: float,
        pan: float,
        *,
        sr: int,
        rng: np.random.Generator,
    ) -> FloatArray: ...


# =============================================================================
# PART 1: SYNTHESIS PRIMITIVES
# =============================================================================


def _num_samples(duration: float, sr: int) -> int:
    return max(1, int(sr * duration))


def generate_sine(freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 1.0) -> FloatArray:
    """Generate sine wave."""
    t = np.arange(_num_samples(duration, sr)) / sr
    return amp * np.sin(2 * np.pi * freq * t)


def generate_sawtooth(
    freq: float, duration: float, sr: int = SAMPLE_RATE, amp: float = 1.0, oversample: int = 2
) -> FloatArray:
    """Generate anti-aliased sawtooth using 4-point PolyBLEP + oversampling."""

    num_samples = _num_samples(duration, sr)
    sr_high = sr * oversample
    num_samples_high = num_samples * oversample
    dt = freq / sr_high

    t = (np.arange(num_samples_high) * dt) % 1.0
    naive = 2.0 * t - 1.0
    correction = np.zeros(num_samples_high)

    # Region 1: 0 <= t < dt
    m1 = t < dt
    t1 = t[m1] / dt
    correction[m1] = t1 * t1 * (2 * t1 - 3) + 1

    # Region 2: dt <= t < 2*dt
    m2 = (t >= dt) & (t < 2 * dt)
    t2 = t[m2] / dt - 1
    correction[m2] = t2 * t2 * (2 * t2 - 3)

    # Region 3: 1-2*dt < t <= 1-dt
    m3 = (t > 1 - 2 * dt) & (t <= 1 - dt)
    t3 = (t[m3] - 1) / dt + 1
    correction[m3] = t3 * t3 * (2 * t3 + 3)

    # Region 4: 1-dt < t < 1
    m4 = t > 1 - dt
    t4 = (t[m4] - 1) / dt
    correction[m4] = t4 * t4 * (2 * t4 + 3) + 1

    signal_high = naive - correction
    if num_samples_high > 3 * (20 * oversample + 1):
        signal = decimate(signal_high, oversample, ftype="fir", zero_phase=True)
    else:
        # decimate's FIR needs more input than a handful of samples
        signal = signal_high[::oversample]

    if len(signal) > num_samples:
        signal = signal[:num_samples]
    elif len(signal) < num_samples:
        signal = np.pad(signal, (0, num_samples - len(signal)))

    return cast(FloatArray, np.asarray(amp * signal, dtype=np.float64))


def generate_noise(
    duration: float, rng: np.random.Generator, sr: int = SAMPLE_RATE, amp: float = 1.0
) -> FloatArray:
    """Generate white noise."""
    return amp * rng.uniform(-1.0, 1.0, _num_samples(duration, sr))


def generate_sweep(
    start_freq: float, end_freq: float, sweep_time: float, duration: float, sr: int = SAMPLE_RATE
) -> FloatArray:
    """Sine whose pitch falls exponentially from ``start_freq`` to ``end_freq``."""
    n = _num_samples(duration, sr)
    t = np.arange(n) / sr
    sweep_time = max(sweep_time, 1.0 / sr)
    progress = np.clip(t / sweep_time, 0.0, 1.0)
    inst_freq = start_freq * (end_freq / start_freq) ** progress
    phase = 2 * np.pi * np.cumsum(inst_freq) / sr
    return np.sin(phase - phase[0])


def perc_envelope(
    attack: float, release: float, sr: int = SAMPLE_RATE, curve: float = PERC_CURVE
) -> FloatArray:
    """Linear attack followed by a curved release to silence."""
    a_samples = max(1, int(attack * sr))
    r_samples = max(1, int(release * sr))
    rise = np.linspace(0.0, 1.0, a_samples, endpoint=False)
    x = np.linspace(0.0, 1.0, r_samples)
    if abs(curve) < 1e-6:
        fall = 1.0 - x
    else:
        fall = 1.0 - (1.0 - np.exp(curve * x)) / (1.0 - np.exp(curve))
    return np.concatenate((rise, fall))


def _quantize(value: float, step: float = 0.001) -> float:
    return round(value / step) * step


@lru_cache(maxsize=128)
def _butter_cached(kind: str, normalized_cutoff: float) -> tuple[FloatArray, FloatArray]:
    coeffs = butter(2, normalized_cutoff, btype=kind, output="ba")
    assert isinstance(coeffs, tuple)
    b_raw, a_raw = coeffs
    return np.asarray(b_raw), np.asarray(a_raw)


def apply_lowpass(signal: FloatArray, cutoff: float, sr: int = SAMPLE_RATE) -> FloatArray:
    """Apply lowpass filter (causal, analog-style)."""
    nyquist = sr / 2
    normalized = min(max(cutoff / nyquist, 0.001), 0.99)
    b, a = _butter_cached("low", _quantize(normalized))
    return np.asarray(lfilter(b, a, signal), dtype=np.float64)


def apply_highpass(signal: FloatArray, cutoff: float, sr: int = SAMPLE_RATE) -> FloatArray:
    """Apply highpass filter (causal, analog-style)."""
    nyquist = sr / 2
    normalized = min(max(cutoff / nyquist, 0.001), 0.99)
    b, a = _butter_cached("high", _quantize(normalized))
    return np.asarray(lfilter(b, a, signal), dtype=np.float64)


def pan2(signal: FloatArray, pan: float) -> FloatArray:
    """Equal-power pan of a mono signal into ``(n, 2)`` stereo."""
    position = float(np.clip(pan, -1.0, 1.0))
    angle = (position + 1.0) * np.pi / 4
    return np.column_stack((signal * np.cos(angle), signal * np.sin(angle)))


def add_note(buffer: FloatArray, note: FloatArray, start_index: int, sr: int = SAMPLE_RATE) -> None:
    """Mix a stereo note into ``buffer`` at ``start_index``, fading out if cut off."""
    if start_index >= len(buffer) or start_index < 0:
        return

    end_index = start_index + len(note)
    if end_index <= len(buffer):
        buffer[start_index:end_index] += note
        return

    available = len(buffer) - start_index
    clipped = note[:available].copy()
    fade_samples = min(int(sr * 0.01), available // 4)
    if fade_samples > 1:
        clipped[-fade_samples:] *= np.linspace(1, 0, fade_samples)[:, np.newaxis]
    buffer[start_index:] += clipped


def _fit(signal: FloatArray, n: int) -> FloatArray:
    if len(signal) >= n:
        return signal[:n]
    return np.pad(signal, (0, n - len(signal)))


def _shape(signal: FloatArray, envelope: FloatArray) -> FloatArray:
    n = min(len(signal), len(envelope))
    return signal[:n] * envelope[:n]


# =============================================================================
# PART 2: VOICES
# =============================================================================


def voice_sine(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Plain sine blip."""
    _ = rng
    env = perc_envelope(PERC_ATTACK, sustain, sr)
    tone = generate_sine(freq, len(env) / sr, sr)
    return pan2(_shape(tone, env) * amp, pan)


def voice_saw(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Band-limited sawtooth, softened by a lowpass a few octaves up."""
    _ = rng
    env = perc_envelope(PERC_ATTACK, sustain, sr)
    tone = generate_sawtooth(freq, len(env) / sr, sr)
    tone = apply_lowpass(tone, freq * 8, sr)
    return pan2(_shape(tone, env) * amp, pan)


def voice_default(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Generic voice: two slightly detuned saws through a gentle lowpass."""
    _ = rng
    env = perc_envelope(0.01, sustain + 0.05, sr)
    duration = len(env) / sr
    tone = 0.5 * (generate_sawtooth(freq * 0.997, duration, sr) + generate_sawtooth(freq * 1.003, duration, sr))
    tone = apply_lowpass(tone, min(freq * 4, 8000.0), sr)
    return pan2(_shape(tone, env) * amp, pan)


def voice_kick(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Sine kick whose pitch drops two octaves onto ``freq / 4``."""
    _ = rng
    release = max(sustain, 0.12)
    env = perc_envelope(0.001, release, sr)
    body = generate_sweep(freq, freq / 4, release * 0.3, len(env) / sr, sr)
    body = apply_lowpass(body, max(freq * 2, 200.0), sr)
    return pan2(_shape(body, env) * amp, pan)


def voice_snare(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Highpassed noise burst over a short tonal body at ``freq``."""
    release = max(sustain, 0.08)
    env = perc_envelope(0.001, release, sr)
    n = len(env)
    noise = _fit(apply_highpass(generate_noise(n / sr, rng, sr), 1200.0, sr), n)
    body_env = _fit(perc_envelope(0.001, release * 0.4, sr, curve=-8.0), n)
    body = _fit(generate_sine(freq, n / sr, sr), n) * body_env
    tone = 0.7 * noise + 0.3 * body
    return pan2(_shape(tone, env) * amp, pan)


def voice_hihat(
    freq: float, amp: float, sustain: float, pan: float, *, sr: int, rng: np.random.Generator
) -> FloatArray:
    """Short highpassed noise; ``freq`` has no effect."""
    _ = freq
    env = perc_envelope(0.001, max(sustain, 0.03), sr, curve=-6.0)
    noise = apply_highpass(generate_noise(len(env) / sr, rng, sr), 7000.0, sr)
    return pan2(_shape(noise, env) * amp, pan)


# =============================================================================
# PART 3: REGISTRY
# =============================================================================


@dataclass(frozen=True, slots=True)
class Instrument:
    """A named voice the scheduler can trigger."""

    name: str
    render: VoiceFn
    description: str = ""


class InstrumentRegistry:
    """Name -> :class:`Instrument` lookup shared by the scheduler and the CLI."""

    def __init__(self, instruments: Iterable[Instrument] = ()) -> None:
        self._instruments: dict[str, Instrument] = {}
        for instrument in instruments:
            self.register(instrument)

    def register(self, instrument: Instrument, *, replace: bool = False) -> Instrument:
        if not instrument.name:
            raise InvalidArgumentError("instrument name must not be empty")
        if instrument.name in self._instruments and not replace:
            raise InvalidArgumentError(f"Instrument already registered: {instrument.name!r}")
        self._instruments[instrument.name] = instrument
        _LOGGER.debug("Registered instrument %r", instrument.name)
        return instrument

    def get(self, name: str) -> Instrument:
        try:
            return self._instruments[name]
        except KeyError as exc:
            raise UnknownInstrumentError(
                f"Unknown instrument: {name!r}. Valid: {list(self._instruments)}"
            ) from exc

    def names(self) -> tuple[str, ...]:
        return tuple(self._instruments)

    def __contains__(self, name: object) -> bool:
        return name in self._instruments

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)


BUILTIN_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(DEFAULT_INSTRUMENT, voice_default, "detuned saw pair, lowpassed"),
    Instrument("sine", voice_sine, "sine blip"),
    Instrument("saw", voice_saw, "band-limited sawtooth"),
    Instrument("kick", voice_kick, "pitch-swept sine kick"),
    Instrument("snare", voice_snare, "noise snare with tonal body"),
    Instrument("hihat", voice_hihat, "highpassed noise tick"),
)


def default_registry() -> InstrumentRegistry:
    """Return a fresh registry holding the built-in voices."""
    return InstrumentRegistry(BUILTIN_INSTRUMENTS)

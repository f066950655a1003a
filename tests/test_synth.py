from __future__ import annotations

import numpy as np
import pytest

from polysynth.errors import InvalidArgumentError, UnknownInstrumentError
from polysynth.synth import (
    BUILTIN_INSTRUMENTS,
    Instrument,
    InstrumentRegistry,
    _butter_cached,
    add_note,
    default_registry,
    generate_sawtooth,
    generate_sine,
    generate_sweep,
    pan2,
    perc_envelope,
    voice_sine,
)

SR = 8000


def test_butter_cache_key_stability() -> None:
    b1, a1 = _butter_cached("low", 0.5)
    b2, a2 = _butter_cached("low", 0.5)
    assert b1 is b2
    assert a1 is a2


def test_sine_length_and_peak() -> None:
    tone = generate_sine(440.0, 0.5, sr=SR, amp=0.5)
    assert tone.shape == (SR // 2,)
    assert float(np.max(np.abs(tone))) <= 0.5 + 1e-9


def test_sawtooth_length_matches_request() -> None:
    saw = generate_sawtooth(220.0, 0.25, sr=SR)
    assert saw.shape == (SR // 4,)
    short = generate_sawtooth(220.0, 0.001, sr=SR)
    assert short.shape == (int(SR * 0.001),)


def test_sweep_starts_at_zero_phase() -> None:
    sweep = generate_sweep(200.0, 50.0, 0.05, 0.1, sr=SR)
    assert sweep[0] == pytest.approx(0.0)
    assert sweep.shape == (int(SR * 0.1),)


class TestPercEnvelope:
    def test_rises_to_one_then_falls_to_zero(self) -> None:
        env = perc_envelope(0.01, 0.1, sr=SR)
        assert env[0] == pytest.approx(0.0)
        assert float(env.max()) == pytest.approx(1.0)
        assert env[-1] == pytest.approx(0.0, abs=1e-9)
        assert len(env) == int(0.01 * SR) + int(0.1 * SR)

    def test_linear_curve(self) -> None:
        env = perc_envelope(0.0, 0.01, sr=SR, curve=0.0)
        release = env[1:]
        assert np.allclose(np.diff(release), np.diff(release)[0])


class TestPan2:
    def test_hard_left_and_right(self) -> None:
        mono = np.ones(4)
        left = pan2(mono, -1.0)
        right = pan2(mono, 1.0)
        assert np.allclose(left[:, 0], 1.0) and np.allclose(left[:, 1], 0.0, atol=1e-12)
        assert np.allclose(right[:, 1], 1.0) and np.allclose(right[:, 0], 0.0, atol=1e-12)

    def test_center_is_equal_power(self) -> None:
        stereo = pan2(np.ones(2), 0.0)
        assert np.allclose(stereo[:, 0], stereo[:, 1])
        assert np.allclose(stereo[:, 0] ** 2 + stereo[:, 1] ** 2, 1.0)


class TestAddNote:
    def test_mixes_inside_buffer(self) -> None:
        buffer = np.zeros((10, 2))
        add_note(buffer, np.ones((3, 2)), 2, sr=SR)
        assert buffer[2:5].sum() == pytest.approx(6.0)
        assert buffer[:2].sum() == 0.0

    def test_clips_past_end(self) -> None:
        buffer = np.zeros((10, 2))
        add_note(buffer, np.ones((8, 2)), 5, sr=SR)
        assert buffer[5:].shape == (5, 2)
        assert buffer[:5].sum() == 0.0

    def test_ignores_out_of_range_start(self) -> None:
        buffer = np.zeros((4, 2))
        add_note(buffer, np.ones((2, 2)), 10, sr=SR)
        add_note(buffer, np.ones((2, 2)), -1, sr=SR)
        assert buffer.sum() == 0.0


@pytest.mark.parametrize("instrument", BUILTIN_INSTRUMENTS, ids=lambda item: item.name)
def test_every_voice_renders_finite_stereo(instrument: Instrument) -> None:
    rng = np.random.default_rng(0)
    note = instrument.render(220.0, 0.5, 0.05, 0.3, sr=SR, rng=rng)
    assert note.ndim == 2 and note.shape[1] == 2
    assert note.shape[0] > 0
    assert np.all(np.isfinite(note))
    assert float(np.max(np.abs(note))) > 0.0


def test_voice_pan_moves_energy() -> None:
    rng = np.random.default_rng(0)
    left = voice_sine(440.0, 0.5, 0.05, -1.0, sr=SR, rng=rng)
    assert float(np.abs(left[:, 0]).sum()) > 0.0
    assert float(np.abs(left[:, 1]).sum()) == pytest.approx(0.0, abs=1e-9)


def test_noise_voices_are_seeded() -> None:
    registry = default_registry()
    hat = registry.get("hihat")
    first = hat.render(220.0, 0.5, 0.05, 0.0, sr=SR, rng=np.random.default_rng(7))
    second = hat.render(220.0, 0.5, 0.05, 0.0, sr=SR, rng=np.random.default_rng(7))
    assert np.allclose(first, second)


class TestInstrumentRegistry:
    def test_default_registry_contents(self) -> None:
        registry = default_registry()
        assert registry.names() == ("default", "sine", "saw", "kick", "snare", "hihat")
        assert "kick" in registry
        assert len(registry) == 6

    def test_default_registry_is_fresh(self) -> None:
        registry = default_registry()
        registry.register(Instrument("extra", voice_sine))
        assert "extra" not in default_registry()

    def test_unknown_instrument(self) -> None:
        with pytest.raises(UnknownInstrumentError, match="cowbell"):
            default_registry().get("cowbell")

    def test_unknown_instrument_is_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            InstrumentRegistry().get("sine")

    def test_duplicate_registration(self) -> None:
        registry = default_registry()
        with pytest.raises(InvalidArgumentError):
            registry.register(Instrument("sine", voice_sine))
        replaced = registry.register(Instrument("sine", voice_sine, "replacement"), replace=True)
        assert registry.get("sine") is replaced

from __future__ import annotations

import pytest

from polysynth.errors import InvalidArgumentError
from polysynth.presets import build_preset, get_preset, preset_names
from polysynth.synth import default_registry


def test_preset_names() -> None:
    assert "five_against_nine" in preset_names()
    assert "drum_circle" in preset_names()


def test_five_against_nine_preset() -> None:
    patterns = build_preset("five_against_nine")
    assert [p.subdivision for p in patterns] == [5.0, 9.0]
    assert [p.pan for p in patterns] == pytest.approx([-1.0, 1.0])


def test_drum_circle_keeps_each_spec_pan() -> None:
    patterns = build_preset("drum_circle")
    assert [p.instrument for p in patterns] == ["kick", "snare", "hihat"]
    assert [p.pan for p in patterns] == pytest.approx([0.0, -0.4, 0.4])


def test_just_saw_cluster_uses_just_intervals() -> None:
    patterns = build_preset("just_saw_cluster")
    assert [p.frequencies[0] for p in patterns] == pytest.approx([220.0, 275.0, 330.0, 385.0])


@pytest.mark.parametrize("name", preset_names())
def test_every_preset_uses_registered_instruments(name: str) -> None:
    registry = default_registry()
    for spec in get_preset(name):
        assert spec.instrument in registry


def test_unknown_preset() -> None:
    with pytest.raises(InvalidArgumentError):
        get_preset("nope")

from __future__ import annotations

from fractions import Fraction

import pytest

from polysynth.errors import InvalidArgumentError
from polysynth.tuning import (
    RATIO_TABLE,
    default_frequency_fn,
    interval_frequency,
    just_frequency_fn,
    ratio,
)


def test_ratio_of_unison_is_one() -> None:
    assert ratio(0) == 1


def test_ratio_table_has_twelve_ascending_entries() -> None:
    assert len(RATIO_TABLE) == 12
    assert list(RATIO_TABLE) == sorted(RATIO_TABLE)
    assert RATIO_TABLE[7] == Fraction(3, 2)


@pytest.mark.parametrize("semitones", [-25, -13, -12, -1, 0, 1, 5, 11, 12, 30])
def test_ratio_doubles_every_octave(semitones: int) -> None:
    assert ratio(semitones + 12) == ratio(semitones) * 2


def test_negative_offsets_wrap_into_lower_octave() -> None:
    assert ratio(-1) == Fraction(15, 16)
    assert ratio(-5) == Fraction(3, 4)
    assert ratio(-12) == Fraction(1, 2)


@pytest.mark.parametrize("semitones", range(-40, 0))
def test_negative_offsets_use_floor_division(semitones: int) -> None:
    assert ratio(semitones) == RATIO_TABLE[semitones % 12] * Fraction(2) ** (semitones // 12)


def test_ratio_above_octave() -> None:
    assert ratio(19) == Fraction(3)
    assert ratio(24) == Fraction(4)


def test_ratio_rejects_non_integers() -> None:
    with pytest.raises(InvalidArgumentError):
        ratio(1.5)  # type: ignore[arg-type]
    with pytest.raises(InvalidArgumentError):
        ratio(True)


def test_interval_frequency_scales_root() -> None:
    assert interval_frequency(220.0, 7) == pytest.approx(330.0)
    assert interval_frequency(220.0, -12) == pytest.approx(110.0)


def test_default_frequency_fn_spaces_voices_by_half_root() -> None:
    assert [default_frequency_fn(220.0, i) for i in range(3)] == [220.0, 330.0, 440.0]


class TestJustFrequencyFn:
    def test_walks_intervals_with_wraparound(self) -> None:
        fn = just_frequency_fn((0, 4, 7))
        assert fn(200.0, 0) == pytest.approx(200.0)
        assert fn(200.0, 1) == pytest.approx(250.0)
        assert fn(200.0, 2) == pytest.approx(300.0)
        assert fn(200.0, 3) == pytest.approx(200.0)

    def test_rejects_empty_intervals(self) -> None:
        with pytest.raises(InvalidArgumentError):
            just_frequency_fn(())

"""Just-intonation interval ratios and frequency strategies.

A semitone offset maps onto one of twelve small-integer ratios inside an
octave, scaled by a power of two for the octave it falls in::

    ratio(7)   -> 3/2
    ratio(19)  -> 3
    ratio(-5)  -> 3/4
"""

from __future__ import annotations

import numbers
from collections.abc import Sequence
from fractions import Fraction
from typing import Callable, TypeAlias

from .errors import InvalidArgumentError

FrequencyFn: TypeAlias = Callable[[float, int], float]

# Unison through major seventh
RATIO_TABLE: tuple[Fraction, ...] = (
    Fraction(1, 1),
    Fraction(16, 15),
    Fraction(9, 8),
    Fraction(6, 5),
    Fraction(5, 4),
    Fraction(4, 3),
    Fraction(7, 5),
    Fraction(3, 2),
    Fraction(8, 5),
    Fraction(5, 3),
    Fraction(7, 4),
    Fraction(15, 8),
)

SEMITONES_PER_OCTAVE = len(RATIO_TABLE)
ROOT_FREQUENCY = 220.0


def ratio(semitones: int) -> Fraction:
    """Return the just-intonation multiplier for a semitone offset."""
    if isinstance(semitones, bool) or not isinstance(semitones, numbers.Integral):
        raise InvalidArgumentError(f"semitones must be an integer, got {semitones!r}")
    octave, index = divmod(int(semitones), SEMITONES_PER_OCTAVE)
    return RATIO_TABLE[index] * Fraction(2) ** octave


def interval_frequency(root: float, semitones: int) -> float:
    return float(root * ratio(semitones))


def default_frequency_fn(root: float, index: int) -> float:
    """Stack voices half a root apart: 220, 330, 440, ..."""
    return root + (root / 2 * index)


def just_frequency_fn(intervals: Sequence[int]) -> FrequencyFn:
    """Build a frequency strategy that walks ``intervals`` above the root.

    Voice ``index`` sounds ``intervals[index % len(intervals)]`` semitones
    above the root, tuned with :func:`ratio`.
    """
    steps = tuple(intervals)
    if not steps:
        raise InvalidArgumentError("intervals must not be empty")
    for step in steps:
        ratio(step)

    def _frequency(root: float, index: int) -> float:
        return interval_frequency(root, steps[index % len(steps)])

    _frequency.__name__ = f"just_frequency_fn{steps}"
    return _frequency

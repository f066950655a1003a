from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Callable, cast

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .config import SAMPLE_RATE
from .errors import InvalidArgumentError

FloatArray = NDArray[np.float32]
AudioNumbers = NDArray[np.floating[Any]] | Sequence[float] | FloatArray


def ensure_audio_contract(audio: AudioNumbers, *, check_peak: bool = True) -> FloatArray:
    """Normalize dtype/range/shape: float32, mono ``(n,)`` or stereo ``(n, 2)``."""

    array: FloatArray = np.asarray(audio, dtype=np.float32)
    match array.ndim:
        case 1:
            pass
        case 2 if array.shape[1] in (1, 2):
            if array.shape[1] == 1:
                array = array.reshape(-1)
        case _:
            raise InvalidArgumentError(f"audio must be mono or stereo, got shape {array.shape}")
    if array.size == 0 or not check_peak:
        return array
    peak = float(np.max(np.abs(array)))
    if peak > 1.0:
        array = array / peak
    return array


def write_wav(path: str | Path, audio: AudioNumbers, *, sample_rate: int = SAMPLE_RATE) -> Path:
    """Write mono or stereo samples to a wav file."""

    target = Path(path)
    audio_obj: object = audio
    match audio_obj:
        case str() | bytes():
            raise InvalidArgumentError("audio must be samples, not a string")
        case np.ndarray() | Sequence():
            normalized = ensure_audio_contract(cast(AudioNumbers, audio_obj))
        case _:
            raise InvalidArgumentError(f"audio must be samples, got {type(audio_obj).__name__}")
    if sample_rate <= 0:
        raise InvalidArgumentError(f"sample_rate must be positive, got {sample_rate}")

    target.parent.mkdir(parents=True, exist_ok=True)
    write_fn = getattr(sf, "write", None)
    assert callable(write_fn)
    write_audio = cast(Callable[..., None], write_fn)
    write_audio(target, normalized, sample_rate, subtype="FLOAT")
    return target

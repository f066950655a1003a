from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

from .audio import FloatArray, ensure_audio_contract
from .errors import PlaybackError
from .logging_utils import get_logger
from .spinner import Spinner

_LOGGER = get_logger("playback")


class PlaybackBackend(BaseModel):
    name: str
    play_audio: Callable[[FloatArray, int], None]

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


def _load_sounddevice() -> PlaybackBackend | None:
    try:
        import sounddevice as sd_module  # type: ignore[import]
    except (ImportError, OSError) as exc:
        # sounddevice raises OSError when PortAudio itself is missing
        _LOGGER.info("sounddevice not available: %s", exc, exc_info=True)
        return None
    sd: Any = sd_module

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        sd.play(samples, sample_rate)
        sd.wait()

    return PlaybackBackend(name="sounddevice", play_audio=_play_audio)


def _resolve_backend() -> PlaybackBackend:
    backend = _load_sounddevice()
    if backend is None:
        raise PlaybackError(
            "Playback requires sounddevice (pip install 'polysynth[playback]'); "
            "use `polysynth render` to write a wav file instead."
        )
    return backend


def play_audio(samples: FloatArray, *, sample_rate: int) -> None:
    backend = _resolve_backend()
    normalized = ensure_audio_contract(samples)
    duration = len(normalized) / sample_rate if sample_rate > 0 else 0.0
    _LOGGER.info("Playing %.2f s through %s", duration, backend.name)
    with Spinner(f"Playing {duration:.1f} s ..."):
        try:
            backend.play_audio(normalized, sample_rate)
        except PlaybackError:
            raise
        except Exception as exc:
            raise PlaybackError(f"{backend.name} playback failed: {exc}") from exc

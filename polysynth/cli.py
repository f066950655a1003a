from __future__ import annotations

import argparse
from typing import Any

from rich.console import Console
from rich.table import Table

from .audio import write_wav
from .config import DEFAULT_INSTRUMENT, RenderSettings
from .logging_utils import configure_logging, debug_enabled, get_logger, log_exception
from .patterns import VoicePattern, build_polyrhythms
from .playback import play_audio
from .presets import build_preset, preset_names
from .scheduler import render_patterns
from .spinner import Spinner, render_error
from .synth import default_registry
from .tuning import ratio

_LOGGER = get_logger("cli")
_CONSOLE = Console()


def _add_pattern_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--preset", choices=preset_names(), default=None)
    parser.add_argument("--subdivisions", type=float, nargs="+", default=[5.0, 9.0])
    parser.add_argument("--instrument", type=str, default=DEFAULT_INSTRUMENT)
    parser.add_argument("--amplitude", type=float, default=0.1)
    parser.add_argument("--sustain", type=float, default=0.02)
    parser.add_argument("--pan", type=float, nargs="+", default=None)
    parser.add_argument("--first-note-multiplier", type=float, default=1.0)
    parser.add_argument("--beats", type=float, default=8.0)
    parser.add_argument("--tempo", type=float, default=None, help="Beats per second.")
    parser.add_argument("--quant", type=float, default=0.0)
    parser.add_argument("--sample-rate", type=int, default=None)
    parser.add_argument("--seed", type=int, default=0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="polysynth")
    sub = parser.add_subparsers(dest="command", required=True)

    ratios = sub.add_parser("ratios", help="Print the just-intonation ratio table.")
    ratios.add_argument("--start", type=int, default=0)
    ratios.add_argument("--count", type=int, default=13)

    sub.add_parser("instruments", help="List the built-in voices.")

    render = sub.add_parser("render", help="Render a polyrhythm to a wav file.")
    _add_pattern_arguments(render)
    render.add_argument("--output", type=str, default="polyrhythm.wav")

    play = sub.add_parser("play", help="Render a polyrhythm and play it.")
    _add_pattern_arguments(play)
    return parser


def patterns_from_args(args: argparse.Namespace) -> list[VoicePattern]:
    if args.preset:
        return build_preset(args.preset)
    fields: dict[str, Any] = {
        "subdivisions": args.subdivisions,
        "instrument": args.instrument,
        "amplitude": args.amplitude,
        "sustain": args.sustain,
        "pan": args.pan,
        "first_note_multiplier": args.first_note_multiplier,
    }
    return build_polyrhythms(**fields)


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    return RenderSettings.from_env(
        beats=args.beats,
        tempo=args.tempo,
        quant=args.quant,
        sample_rate=args.sample_rate,
        seed=args.seed,
    )


def _print_ratios(start: int, count: int) -> None:
    table = Table(title="Just-intonation ratios")
    table.add_column("semitones", justify="right")
    table.add_column("ratio", justify="right")
    table.add_column("multiplier", justify="right")
    for semitones in range(start, start + max(count, 0)):
        value = ratio(semitones)
        table.add_row(str(semitones), str(value), f"{float(value):.4f}")
    _CONSOLE.print(table)


def _print_instruments() -> None:
    table = Table(title="Instruments")
    table.add_column("name")
    table.add_column("description")
    for instrument in default_registry():
        table.add_row(instrument.name, instrument.description)
    _CONSOLE.print(table)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "ratios":
            _print_ratios(args.start, args.count)
            return 0

        if args.command == "instruments":
            _print_instruments()
            return 0

        if args.command in ("render", "play"):
            patterns = patterns_from_args(args)
            settings = settings_from_args(args)
            with Spinner(f"Rendering {len(patterns)} voice(s)"):
                audio = render_patterns(patterns, settings=settings)
            if args.command == "render":
                path = write_wav(args.output, audio, sample_rate=settings.sample_rate)
                _CONSOLE.print(f"Wrote {settings.seconds:.2f} s to {path} (sr={settings.sample_rate})")
                return 0
            play_audio(audio, sample_rate=settings.sample_rate)
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("polysynth CLI failed: %s", exc, exc_info=debug_enabled())
        log_exception("polysynth CLI", exc)
        render_error("polysynth CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

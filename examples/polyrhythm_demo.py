"""Render a few polyrhythms to wav files: 5 against 9, a drum circle, and a just-tuned saw cluster."""

from pathlib import Path

import polysynth as ps

out_dir = Path("renders")
settings = ps.RenderSettings(beats=8, tempo=0.75)

# 5 against 9 on sines, fanned hard left/right, first note of each cycle an octave up
five_nine = ps.build_polyrhythms(subdivisions=[5, 9], instrument="sine", first_note_multiplier=2)
ps.write_wav(out_dir / "five_against_nine.wav", ps.render_patterns(five_nine, settings=settings))

# Three kit pieces, each its own stream
drums = ps.build_preset("drum_circle")
ps.write_wav(out_dir / "drum_circle.wav", ps.render_patterns(drums, settings=settings))

# Dominant seventh in just intonation, one voice per chord tone
cluster = ps.build_polyrhythms(
    subdivisions=[4, 5, 6, 7],
    instrument="saw",
    sustain=0.1,
    frequency_fn=ps.just_frequency_fn((0, 4, 7, 10)),
)
ps.write_wav(
    out_dir / "just_saw_cluster.wav",
    ps.render_patterns(cluster, settings=settings.model_copy(update={"quant": 1.0})),
)

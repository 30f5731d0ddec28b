#!/usr/bin/env python3
"""Generate a synthetic tagged stereo FLAC for waveview end-to-end runs.

Produces a ~12-second file:
  0-4s    440 Hz tone (left), 660 Hz tone (right)
  4-6s    silence
  6-12s   880 Hz tone, fading out
"""

import subprocess
import sys
from pathlib import Path


def generate_test_tone(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    audio_filter = (
        "sine=f=440:d=4[l0];"
        "sine=f=660:d=4[r0];"
        "[l0][r0]join=inputs=2:channel_layout=stereo[a0];"
        "anullsrc=r=44100:cl=stereo:d=2[s0];"
        "sine=f=880:d=6,afade=t=out:st=2:d=4,aformat=channel_layouts=stereo[a1];"
        "[a0][s0][a1]concat=n=3:v=0:a=1[aout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", audio_filter,
        "-map", "[aout]",
        "-ar", "44100",
        "-metadata", "title=Test Tone",
        "-metadata", "artist=waveview",
        "-metadata", "album=Fixtures",
        "-metadata", "track=1",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/synthetic.flac")
    generate_test_tone(out)

"""FFmpeg/ffprobe subprocess helpers."""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Callable

from waveview.errors import NoAudioStreamError, ToolNotFoundError
from waveview.models import AudioInfo, Selection

logger = logging.getLogger(__name__)

STREAM = "streams_stream_0_"

# flat writer escapes: backslash, quote, backtick, dollar, newline, CR
FLAT_ESCAPES = {"n": "\n", "r": "\r"}


def check_ffmpeg() -> None:
    """Raise ToolNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise ToolNotFoundError(f"{cmd} not found on PATH")


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, check=True)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = re.sub(r"\\(.)", lambda m: FLAT_ESCAPES.get(m.group(1), m.group(1)), value[1:-1])
    return value


def parse_key_values(output: str) -> dict[str, str]:
    """Parse ffprobe ``key=value`` lines. The first occurrence of a key wins."""
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        fields.setdefault(key.strip(), _unquote(value))
    return fields


def first_valid(
    fields: dict[str, str],
    keys: list[str],
    parse: Callable[[str], float] = int,
):
    """Return the first value among ``keys`` that parses to a positive number.

    ffprobe reports unknown values as ``N/A`` (or 0 for bit depths), so each
    candidate is tried in order and the first well-formed one wins.
    """
    for key in keys:
        raw = fields.get(key)
        if raw is None:
            continue
        try:
            value = parse(raw)
        except ValueError:
            continue
        if value > 0:
            return value
    return None


def probe(input_path: Path) -> AudioInfo:
    """Extract audio stream metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries",
        "stream=codec_name,sample_rate,channels,bits_per_sample,"
        "bits_per_raw_sample,duration,duration_ts,time_base:format=duration",
        "-of", "flat=s=_",
        str(input_path),
    ]
    fields = parse_key_values(_run(cmd).stdout)

    if f"{STREAM}codec_name" not in fields:
        raise NoAudioStreamError(f"No audio stream found in {input_path}")

    sample_rate = first_valid(fields, [f"{STREAM}sample_rate"])
    channels = first_valid(fields, [f"{STREAM}channels"])
    duration = first_valid(fields, [f"{STREAM}duration", "format_duration"], float)
    if sample_rate is None or channels is None or duration is None:
        raise NoAudioStreamError(
            f"Incomplete audio stream metadata in {input_path}: {fields}"
        )

    # duration_ts only counts samples when the time base is 1/sample_rate
    sample_count = None
    if fields.get(f"{STREAM}time_base") == f"1/{sample_rate}":
        sample_count = first_valid(fields, [f"{STREAM}duration_ts"])
    if sample_count is None:
        sample_count = int(duration * sample_rate)

    return AudioInfo(
        codec=fields[f"{STREAM}codec_name"],
        sample_rate=sample_rate,
        bit_depth=first_valid(
            fields, [f"{STREAM}bits_per_raw_sample", f"{STREAM}bits_per_sample"]
        ),
        channels=channels,
        duration=duration,
        sample_count=sample_count,
    )


def read_tags(input_path: Path) -> dict[str, str]:
    """Return container and audio stream tags; container tags take precedence."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries", "format_tags:stream_tags",
        "-of", "flat=s=_",
        str(input_path),
    ]
    fields = parse_key_values(_run(cmd).stdout)

    tags: dict[str, str] = {}
    for prefix in ("format_tags_", f"{STREAM}tags_"):
        for key, value in fields.items():
            if key.startswith(prefix):
                tags.setdefault(key[len(prefix):].lower(), value)
    return tags


def waveform_filter(
    selection: Selection,
    width: int,
    height: int,
    channels: int,
    peak_color: str,
    rms_color: str,
) -> str:
    """Filter graph drawing the RMS envelope over the peak envelope."""
    end_sample = selection.start_sample + selection.sample_count
    peak_colors = "|".join([peak_color] * channels)
    rms_colors = "|".join([rms_color] * channels)
    size = f"{width}x{height}"
    return ";".join([
        f"[0:a]atrim=start_sample={selection.start_sample}:end_sample={end_sample},"
        f"asetpts=PTS-STARTPTS,asplit=2[p][r]",
        f"[p]showwavespic=s={size}:split_channels=1:filter=peak:colors={peak_colors}[peak]",
        f"[r]showwavespic=s={size}:split_channels=1:filter=average:colors={rms_colors}[rms]",
        "[peak][rms]overlay=format=auto[out]",
    ])


def render_waveform(
    input_path: Path,
    output_path: Path,
    selection: Selection,
    width: int,
    height: int,
    channels: int,
    peak_color: str,
    rms_color: str,
) -> Path:
    """Render the trimmed selection as a transparent peak+RMS PNG."""
    filter_complex = waveform_filter(
        selection, width, height, channels, peak_color, rms_color
    )
    cmd = [
        "ffmpeg", "-y",
        "-v", "error",
        "-i", str(input_path),
        "-filter_complex", filter_complex,
        "-map", "[out]",
        "-frames:v", "1",
        str(output_path),
    ]
    _run(cmd)
    return output_path

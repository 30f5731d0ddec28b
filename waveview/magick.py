"""ImageMagick subprocess helpers: bars, grid and final composition."""

import logging
import shutil
import subprocess
from pathlib import Path

from waveview.errors import ToolNotFoundError
from waveview.manifest import StyleConfig
from waveview.models import AxisMarks

logger = logging.getLogger(__name__)

MINOR_TICK_LEN = 4
DOT_Y = 4
DOT_RADIUS = 2
LABEL_Y = 10
DASH = "4 4"


def find_magick() -> list[str]:
    """Return the ImageMagick command: ``magick`` (v7) or ``convert`` (v6)."""
    for cmd in ("magick", "convert"):
        if shutil.which(cmd) is not None:
            return [cmd]
    raise ToolNotFoundError("ImageMagick (magick or convert) not found on PATH")


def check_magick() -> None:
    find_magick()


def escape_text(text: str) -> str:
    """Keep -annotate from expanding %-escapes, backslash escapes or ``@file``."""
    text = text.replace("\\", "\\\\").replace("%", "%%")
    if text.startswith("@"):
        text = "\\" + text
    return text


def _run(args: list[str]) -> None:
    cmd = find_magick() + args
    logger.debug("Running: %s", " ".join(cmd))
    subprocess.run(cmd, capture_output=True, text=True, check=True)


def _font_args(style: StyleConfig) -> list[str]:
    return ["-font", style.font] if style.font else []


def render_title_bar(title: str, width: int, style: StyleConfig, output_path: Path) -> Path:
    _run([
        "-size", f"{width}x{style.title_height}",
        f"xc:{style.bar_background}",
        *_font_args(style),
        "-fill", style.text_color,
        "-pointsize", str(style.title_pointsize),
        "-gravity", "West",
        "-annotate", "+8+0", escape_text(title),
        str(output_path),
    ])
    return output_path


def timebar_args(axis: AxisMarks, width: int, style: StyleConfig) -> list[str]:
    """Drawing arguments for minor ticks, major dots and centered labels."""
    args = ["-stroke", style.text_color, "-strokewidth", "1"]
    for x in axis.minor:
        args += ["-draw", f"line {x},0 {x},{MINOR_TICK_LEN}"]

    args += ["-fill", style.text_color]
    for tick in axis.major:
        args += ["-draw", f"circle {tick.x},{DOT_Y} {tick.x + DOT_RADIUS},{DOT_Y}"]

    args += [
        "-stroke", "none",
        *_font_args(style),
        "-pointsize", str(style.label_pointsize),
        "-gravity", "North",
    ]
    # With North gravity the x offset is relative to the horizontal center
    for tick in axis.major:
        args += ["-annotate", f"{tick.x - width // 2:+d}+{LABEL_Y}", escape_text(tick.label)]
    return args


def render_time_bar(axis: AxisMarks, width: int, style: StyleConfig, output_path: Path) -> Path:
    _run([
        "-size", f"{width}x{style.timebar_height}",
        f"xc:{style.bar_background}",
        *timebar_args(axis, width, style),
        str(output_path),
    ])
    return output_path


def grid_args(channels: int, width: int, height: int, style: StyleConfig) -> list[str]:
    """Reference lines: a dashed zero line per channel, solid channel dividers."""
    band = height / channels
    right = width - 1
    args = ["-stroke", style.grid_color, "-strokewidth", "1", "-fill", "none"]
    for c in range(1, channels):
        y = int(c * band)
        args += ["-draw", f"line 0,{y} {right},{y}"]
    for c in range(channels):
        y = int((c + 0.5) * band)
        args += ["-draw", f"stroke-dasharray {DASH} line 0,{y} {right},{y}"]
    return args


def render_background(
    channels: int, width: int, height: int, style: StyleConfig, output_path: Path
) -> Path:
    _run([
        "-size", f"{width}x{height}",
        f"xc:{style.background}",
        *grid_args(channels, width, height, style),
        str(output_path),
    ])
    return output_path


def compose(
    title_path: Path,
    timebar_path: Path,
    background_path: Path,
    waveform_path: Path,
    output_path: Path,
    quality: int = 95,
) -> Path:
    """Flatten the waveform onto the grid and stack the bars on top of it."""
    _run([
        str(title_path),
        str(timebar_path),
        "(", str(background_path), str(waveform_path), "-flatten", ")",
        "-append",
        "-quality", str(quality),
        str(output_path),
    ])
    return output_path

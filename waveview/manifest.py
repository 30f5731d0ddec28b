"""Render request schema: the contract between CLI/API and engine."""

import json
import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path

from waveview.errors import (
    InputNotFoundError,
    InvalidRequestError,
    OutputExistsError,
    UsageError,
)
from waveview.models import AudioInfo, Selection

logger = logging.getLogger(__name__)

SIZE_RE = re.compile(r"^(\d+)x(\d+)$")
SECONDS_RE = re.compile(r"^\d+(\.\d+)?$")

DEFAULT_SIZE = "1000x500"


@dataclass
class StyleConfig:
    """Colors, fonts and bar sizes of the rendered image."""

    title_height: int = 30
    timebar_height: int = 30
    font: str | None = None
    title_pointsize: int = 14
    label_pointsize: int = 10
    bar_background: str = "#d4d0c8"
    text_color: str = "#000000"
    background: str = "#ffffff"
    grid_color: str = "#9a9a9a"
    peak_color: str = "#3232c8"
    rms_color: str = "#6464dc"
    quality: int = 95


@dataclass
class RenderRequest:
    """Everything needed for one rendering run."""

    input: Path
    output: Path
    width: int = 1000
    height: int = 500
    start: float = 0.0
    duration: float | None = None
    title: str | None = None
    force: bool = False
    style: StyleConfig = field(default_factory=StyleConfig)
    source_name: str | None = None

    @property
    def wave_height(self) -> int:
        return self.height - self.style.title_height - self.style.timebar_height


def load_style(path: str | Path) -> StyleConfig:
    """Load style overrides from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if not isinstance(data, dict):
        raise ValueError(f"Style file {path} must contain a JSON object")
    known = {f.name for f in fields(StyleConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown style keys in {path}: {', '.join(unknown)}")

    return StyleConfig(**data)


def parse_size(text: str) -> tuple[int, int]:
    """Parse ``WIDTHxHEIGHT`` into two positive integers."""
    m = SIZE_RE.match(text)
    if not m or int(m.group(1)) == 0 or int(m.group(2)) == 0:
        raise UsageError(f"Invalid size {text!r}: expected WIDTHxHEIGHT, e.g. {DEFAULT_SIZE}")
    return int(m.group(1)), int(m.group(2))


def parse_seconds(text: str, name: str = "seconds") -> float:
    """Parse a non-negative decimal number of seconds (``12`` or ``12.5``)."""
    if not SECONDS_RE.match(text):
        raise UsageError(f"Invalid {name} {text!r}: expected seconds, e.g. 12.5")
    return float(text)


def default_output(input_path: Path) -> Path:
    return input_path.with_suffix(".png")


def validate_request(request: RenderRequest) -> None:
    """Checks that need no probing: paths, collisions and bar sizes."""
    if not request.input.is_file():
        raise InputNotFoundError(f"Input file not found: {request.input}")
    if request.output.exists() and not request.force:
        raise OutputExistsError(
            f"Output file {request.output} already exists (use --force to overwrite)"
        )
    if request.width <= 0 or request.wave_height <= 0:
        raise UsageError(
            f"Image size {request.width}x{request.height} leaves no room for the "
            f"waveform below the title and time bars"
        )


def resolve_selection(request: RenderRequest, info: AudioInfo) -> Selection:
    """Apply start/duration to the probed file.

    A start at or past the end of the file is an error; a duration running
    past the end is clamped with a notice.
    """
    if request.start >= info.duration:
        raise InvalidRequestError(
            f"Start {request.start}s is not before the end of the file ({info.duration}s)"
        )

    available = info.duration - request.start
    duration = request.duration
    clamped = False
    if duration is None:
        duration = available
    elif duration > available:
        logger.info(
            "Requested duration %gs exceeds the %gs left after start %gs; using %gs",
            duration, available, request.start, available,
        )
        duration = available
        clamped = True

    if duration <= 0:
        raise InvalidRequestError(f"Duration must be positive, got {duration}s")

    return Selection(
        start=request.start,
        duration=duration,
        start_sample=int(request.start * info.sample_rate),
        sample_count=int(duration * info.sample_rate),
        duration_ms=int(duration * 1000),
        clamped=clamped,
    )

"""Shared data types used across waveview."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AudioInfo:
    """Stream metadata extracted from an audio file via ffprobe."""

    codec: str
    sample_rate: int
    bit_depth: int | None
    channels: int
    duration: float
    sample_count: int


@dataclass
class Selection:
    """The part of the file that gets rendered, in samples and milliseconds."""

    start: float
    duration: float
    start_sample: int
    sample_count: int
    duration_ms: int
    clamped: bool = False


@dataclass
class TickLayout:
    """Major/minor tick spacing for the time axis."""

    width: int
    interval_ms: int
    interval_samples: int
    subdivisions: int
    num_ticks: int
    tick_px: int
    minor_px: int
    show_ms: bool
    positions: list[int] = field(default_factory=list)


@dataclass
class MajorTick:
    x: int
    label: str


@dataclass
class AxisMarks:
    """Draw instructions for the time bar."""

    minor: list[int] = field(default_factory=list)
    major: list[MajorTick] = field(default_factory=list)

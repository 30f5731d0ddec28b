"""Time-axis layout: nice tick intervals and sample-accurate pixel positions.

Major tick positions are derived from sample counts for every tick
(``width * n * interval_samples // duration_samples``) rather than by adding
a fixed pixel step, so long images do not accumulate rounding drift.
"""

import logging
from dataclasses import dataclass

from waveview.models import AxisMarks, MajorTick, TickLayout

logger = logging.getLogger(__name__)

TARGET_TICK_PX = 100


@dataclass(frozen=True)
class NiceInterval:
    """Raw intervals strictly below ``upper_bound_ms`` snap to ``interval_ms``."""

    upper_bound_ms: int | None
    interval_ms: int
    subdivisions: int


NICE_INTERVALS: list[NiceInterval] = [
    NiceInterval(10, 10, 2),
    NiceInterval(50, 50, 5),
    NiceInterval(100, 100, 2),
    NiceInterval(500, 500, 5),
    NiceInterval(1000, 1000, 2),
    NiceInterval(5000, 5000, 5),
    NiceInterval(15000, 15000, 3),
    NiceInterval(30000, 30000, 3),
    NiceInterval(60000, 60000, 2),
    NiceInterval(300000, 300000, 5),
    NiceInterval(None, 900000, 3),
]


def snap_interval(raw_interval_ms: float) -> NiceInterval:
    """Snap a raw interval up to the first palette entry it is below."""
    for nice in NICE_INTERVALS:
        if nice.upper_bound_ms is None or raw_interval_ms < nice.upper_bound_ms:
            return nice
    # unreachable: the last entry has no bound
    return NICE_INTERVALS[-1]


def tick_position(width: int, n: int, interval_samples: int, duration_samples: int) -> int:
    return width * n * interval_samples // duration_samples


def tick_time_ms(n: int, interval_samples: int, sample_rate: int, start_sample: int = 0) -> int:
    """Absolute file time of the n-th major tick, in milliseconds."""
    return (start_sample + n * interval_samples) * 1000 // sample_rate


def needs_ms_labels(
    num_ticks: int, interval_samples: int, sample_rate: int, start_sample: int = 0
) -> bool:
    """True if two consecutive ticks (1..num_ticks) share a whole-second label."""
    previous = None
    for n in range(1, num_ticks + 1):
        second = tick_time_ms(n, interval_samples, sample_rate, start_sample) // 1000
        if second == previous:
            return True
        previous = second
    return False


def compute_layout(
    width: int,
    duration_ms: int,
    duration_samples: int,
    sample_rate: int,
    start_sample: int = 0,
) -> TickLayout:
    """Choose a nice tick interval and place the ticks for ``width`` pixels.

    Raises ZeroDivisionError when the width is too narrow (or the selection
    too short) to place a single tick.
    """
    num_ticks_estimate = width // TARGET_TICK_PX
    raw_interval_ms = duration_ms // num_ticks_estimate
    nice = snap_interval(raw_interval_ms)

    interval_samples = sample_rate * nice.interval_ms // 1000
    tick_px = tick_position(width, 1, interval_samples, duration_samples)

    # Re-derived from the real spacing of tick 1, not the width/100 estimate.
    num_ticks = width // tick_px
    minor_px = tick_px // nice.subdivisions

    positions = []
    for n in range(1, num_ticks + 1):
        x = tick_position(width, n, interval_samples, duration_samples)
        if x > width:
            break
        positions.append(x)

    show_ms = needs_ms_labels(num_ticks, interval_samples, sample_rate, start_sample)

    logger.debug(
        "Tick layout: raw=%dms nice=%dms/%d ticks=%d tick_px=%d minor_px=%d ms=%s",
        raw_interval_ms, nice.interval_ms, nice.subdivisions,
        num_ticks, tick_px, minor_px, show_ms,
    )

    return TickLayout(
        width=width,
        interval_ms=nice.interval_ms,
        interval_samples=interval_samples,
        subdivisions=nice.subdivisions,
        num_ticks=num_ticks,
        tick_px=tick_px,
        minor_px=minor_px,
        show_ms=show_ms,
        positions=positions,
    )


def format_time(ms: int, show_ms: bool = False) -> str:
    """Format milliseconds as ``H:MM:SS``, ``M:SS`` or ``S``.

    With ``show_ms`` a fractional part is appended with trailing zeros
    trimmed, keeping at least one digit (``.5``, ``.25``, ``.0``).
    """
    total_seconds = ms // 1000
    h = total_seconds // 3600
    m = (total_seconds % 3600) // 60
    s = total_seconds % 60

    if h:
        text = f"{h}:{m:02d}:{s:02d}"
    elif m:
        text = f"{m}:{s:02d}"
    else:
        text = f"{s}"

    if show_ms:
        fraction = f"{ms % 1000:03d}".rstrip("0") or "0"
        text += f".{fraction}"
    return text


def build_axis(layout: TickLayout, sample_rate: int, start_sample: int = 0) -> AxisMarks:
    """Turn a TickLayout into minor tick positions and labeled major ticks."""
    axis = AxisMarks()
    previous = 0
    minors = range(1, layout.subdivisions) if layout.minor_px > 0 else range(0)

    for n, x in enumerate(layout.positions, 1):
        for k in minors:
            axis.minor.append(previous + k * layout.minor_px)
        ms = tick_time_ms(n, layout.interval_samples, sample_rate, start_sample)
        axis.major.append(MajorTick(x=x, label=format_time(ms, layout.show_ms)))
        previous = x

    # Trailing partial interval after the last major tick
    for k in minors:
        x = previous + k * layout.minor_px
        if x >= layout.width:
            break
        axis.minor.append(x)

    return axis

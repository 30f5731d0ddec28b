"""Orchestrator: runs the rendering pipeline for a RenderRequest."""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from waveview import ffutil, magick
from waveview.layout import build_axis, compute_layout
from waveview.manifest import RenderRequest, resolve_selection, validate_request
from waveview.models import AudioInfo, Selection, TickLayout
from waveview.title import synthesize_title

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    output_path: Path
    title: str
    info: AudioInfo
    selection: Selection
    layout: TickLayout


def process(
    request: RenderRequest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the full rendering pipeline.

    Args:
        request: Render parameters, already parsed.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        logger.debug("[%3.0f%%] %s", frac * 100, stage)
        if on_progress:
            on_progress(stage, frac)

    ffutil.check_ffmpeg()
    magick.check_magick()
    validate_request(request)

    _progress("Probing audio metadata", 0.0)
    info = ffutil.probe(request.input)
    logger.info(
        "%s: %s, %d Hz, %s bit, %d channel(s), %.3fs",
        request.input.name, info.codec, info.sample_rate,
        info.bit_depth or "?", info.channels, info.duration,
    )
    selection = resolve_selection(request, info)

    _progress("Reading tags", 0.1)
    title = request.title
    if title is None:
        title = synthesize_title(
            ffutil.read_tags(request.input), request.source_name or request.input
        )

    _progress("Laying out time axis", 0.2)
    layout = compute_layout(
        request.width,
        selection.duration_ms,
        selection.sample_count,
        info.sample_rate,
        start_sample=selection.start_sample,
    )
    axis = build_axis(layout, info.sample_rate, selection.start_sample)

    style = request.style
    with tempfile.TemporaryDirectory(prefix="waveview_") as tmpdir:
        tmp = Path(tmpdir)

        _progress("Drawing title bar", 0.3)
        title_png = magick.render_title_bar(title, request.width, style, tmp / "title.png")

        _progress("Drawing time bar", 0.4)
        timebar_png = magick.render_time_bar(axis, request.width, style, tmp / "timebar.png")

        _progress("Drawing background", 0.5)
        background_png = magick.render_background(
            info.channels, request.width, request.wave_height, style, tmp / "background.png"
        )

        _progress("Rendering waveform", 0.6)
        waveform_png = ffutil.render_waveform(
            request.input,
            tmp / "waveform.png",
            selection,
            request.width,
            request.wave_height,
            info.channels,
            style.peak_color,
            style.rms_color,
        )

        _progress("Composing image", 0.9)
        magick.compose(
            title_png, timebar_png, background_png, waveform_png,
            request.output, quality=style.quality,
        )

    _progress("Done", 1.0)
    return EngineResult(
        output_path=request.output,
        title=title,
        info=info,
        selection=selection,
        layout=layout,
    )

"""Thin CLI entry point: builds a RenderRequest and calls the engine."""

import argparse
import logging
import subprocess
import sys
from pathlib import Path

from waveview.engine import process
from waveview.errors import UsageError, WaveviewError
from waveview.manifest import (
    DEFAULT_SIZE,
    RenderRequest,
    StyleConfig,
    default_output,
    load_style,
    parse_seconds,
    parse_size,
)

logger = logging.getLogger("waveview")


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit code 1."""

    def error(self, message: str) -> None:
        self.print_help(sys.stderr)
        self.exit(1, f"\nError: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="waveview",
        description="Render an audio editor style waveform image (peaks + RMS, time axis, title).",
    )
    parser.add_argument("-i", "--input", type=Path, required=True, help="Input audio file")
    parser.add_argument("-o", "--output", type=Path, help="Output image (default: input with .png)")
    parser.add_argument("-F", "--force", action="store_true", help="Overwrite an existing output file")
    parser.add_argument("-t", "--title", type=str, help="Title text (default: built from tags)")
    parser.add_argument("-s", "--size", default=DEFAULT_SIZE, help=f"Image size WIDTHxHEIGHT (default: {DEFAULT_SIZE})")
    parser.add_argument("-S", "--start", default="0", help="Start offset in seconds")
    parser.add_argument("-d", "--duration", help="Duration in seconds (default: until end of file)")
    parser.add_argument("-c", "--config", type=Path, help="JSON file with style overrides")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log external commands")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        width, height = parse_size(args.size)
        start = parse_seconds(args.start, "start")
        duration = parse_seconds(args.duration, "duration") if args.duration is not None else None
    except UsageError as e:
        parser.error(str(e))

    style = StyleConfig()
    if args.config:
        try:
            style = load_style(args.config)
        except (OSError, ValueError) as e:
            _fail(f"cannot load style config {args.config}: {e}")

    request = RenderRequest(
        input=args.input,
        output=args.output or default_output(args.input),
        width=width,
        height=height,
        start=start,
        duration=duration,
        title=args.title,
        force=args.force,
        style=style,
    )

    try:
        result = process(request)
    except WaveviewError as e:
        _fail(str(e))
    except ZeroDivisionError:
        _fail(
            f"image width {width}px is too narrow for the selected audio: "
            f"no time axis tick fits"
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        _fail(f"{e.cmd[0]} failed (rc={e.returncode}): {stderr[-500:]}")

    logger.info("Done! Output: %s", result.output_path)


if __name__ == "__main__":
    main()

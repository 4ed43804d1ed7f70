# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""sobel3d command line.

Usage:
    sobel3d pictures/test.jpg -o output/
    sobel3d pictures/silk_song.gif --mode volume_3d --loop --display
    sobel3d clip.mp4 --mode stream_2d --workers 8 --codec avc1:.mp4 --codec MJPG:.avi
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import cv2

from sobel.errors import SobelError
from sobel.partition import grid_for_workers

from .config import MODE_PRESETS, RunConfig
from .loop import ProcessingLoop, RunStatus, process_still
from .sink import OutputSink, write_still_outputs
from .source import IMAGE_SUFFIXES, open_source

logging.basicConfig(
    level=logging.INFO,
    format='%(message)s'
)
logger = logging.getLogger(__name__)


def _parse_grid(text: str) -> Tuple[int, int]:
    try:
        rows, cols = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"grid must look like 2x2, got {text!r}")
    if rows < 1 or cols < 1:
        raise argparse.ArgumentTypeError(f"grid dimensions must be >= 1, got {text!r}")
    return rows, cols


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {text!r}")
    return value


def _worker_count(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"worker count must be >= 0, got {text!r}")
    return value


def _parse_codec(text: str) -> Tuple[str, str]:
    tag, sep, ext = text.partition(":")
    if not sep or len(tag) != 4 or not ext:
        raise argparse.ArgumentTypeError(f"codec must look like mp4v:.mp4, got {text!r}")
    if not ext.startswith("."):
        ext = "." + ext
    return tag, ext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sobel3d",
        description="Manual multi-threaded Sobel edge detection for images, videos and GIFs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s pictures/test.jpg -o output/
  %(prog)s pictures/silk_song.gif --mode volume_3d --loop --display
  %(prog)s clip.mp4 --mode stream_2d --workers 8
        """
    )
    parser.add_argument("input", type=Path, help="Image, video or animated GIF")
    parser.add_argument("-o", "--output", type=Path, default=Path("output"),
                        help="Output directory (default: output)")
    parser.add_argument("--mode", choices=sorted(MODE_PRESETS), default=None,
                        help="Processing mode (default: still_2d for images, volume_3d otherwise)")
    grid = parser.add_mutually_exclusive_group()
    grid.add_argument("--grid", type=_parse_grid, default=None,
                      help="Region grid ROWSxCOLS (default: 2x2)")
    grid.add_argument("--workers", type=_worker_count, default=None,
                      help="Worker count; 0 = one per CPU")
    parser.add_argument("--fps", type=float, default=None,
                        help="Output frame rate when the input does not report one")
    parser.add_argument("--loop", action="store_true",
                        help="Restart from the first frame at end of stream")
    parser.add_argument("--max-steps", type=_positive_int, default=None,
                        help="Stop after this many processed frames")
    parser.add_argument("--codec", type=_parse_codec, action="append", default=None,
                        help="Codec candidate FOURCC:EXT, repeatable, tried in order")
    parser.add_argument("--display", action="store_true",
                        help="Show results in OpenCV windows; any key stops")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    return parser


def _config_from_args(args) -> RunConfig:
    mode = args.mode
    if mode is None:
        mode = "still_2d" if args.input.suffix.lower() in IMAGE_SUFFIXES else "volume_3d"

    grid = args.grid
    if args.workers is not None:
        grid = grid_for_workers(args.workers or os.cpu_count() or 1)

    return RunConfig.from_preset(
        mode,
        grid=grid,
        fps=args.fps,
        loop=args.loop or None,
        max_steps=args.max_steps,
        codecs=args.codec,
        out_dir=args.output,
    )


def run_still(path: Path, cfg: RunConfig, display: bool = False) -> int:
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        logger.error(f"Could not read image: {path}")
        return 1
    channels = process_still(image, grid=cfg.grid)
    write_still_outputs(cfg.out_dir, channels)
    if display:
        from .display import WindowDisplay
        viewer = WindowDisplay()
        viewer.show(channels)
        viewer.wait()
        viewer.close()
    return 0


def run_stream(path: Path, cfg: RunConfig, display: bool = False) -> int:
    if cfg.loop and cfg.max_steps is None and not display:
        logger.error("--loop without --display needs --max-steps to terminate")
        return 2

    viewer = None
    stop = None
    if display:
        from .display import WindowDisplay
        viewer = WindowDisplay()
        stop = viewer.token

    source = open_source(path)
    sink = OutputSink(cfg.out_dir, cfg.valid_channels(), prefix=cfg.prefix)
    loop = ProcessingLoop(source, sink, cfg, stop=stop, display=viewer)
    try:
        result = loop.run()
    finally:
        if viewer is not None:
            viewer.close()

    if result.status is RunStatus.FAILED:
        logger.error(f"Failed: {result.error}")
        return 1
    for channel, out in result.outputs.items():
        logger.info(f"  {channel:10s} -> {out}")
    return 0


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    if not args.input.exists():
        logger.error(f"Input path does not exist: {args.input}")
        sys.exit(1)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    cfg = _config_from_args(args)
    logger.info(f"{MODE_PRESETS[cfg.mode]['name']}: {args.input}")

    try:
        if cfg.streaming:
            code = run_stream(args.input, cfg, display=args.display)
        else:
            code = run_still(args.input, cfg, display=args.display)
    except SobelError as exc:
        logger.error(f"Failed: {exc}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()

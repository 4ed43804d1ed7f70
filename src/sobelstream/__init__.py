# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Streaming front-end for sobel3d.

Modules:
    - source: decode collaborators and the grayscale FrameSource
    - window: 2- and 3-frame sliding windows
    - sink: multi-channel encoders with codec fallback
    - loop: the per-frame state machine
    - display: OpenCV windows and keypress stop
    - config: mode presets
"""

from .config import MODE_PRESETS, RunConfig
from .loop import CancellationToken, LoopState, ProcessingLoop, RunResult, RunStatus, process_still
from .sink import DEFAULT_CODECS, OutputSink, write_still_outputs
from .source import ArrayDecoder, Frame, FrameSource, ImageDecoder, VideoDecoder, open_source
from .window import TemporalWindow

__version__ = "0.1.0"
__all__ = [
    "MODE_PRESETS",
    "RunConfig",
    "CancellationToken",
    "LoopState",
    "ProcessingLoop",
    "RunResult",
    "RunStatus",
    "process_still",
    "DEFAULT_CODECS",
    "OutputSink",
    "write_still_outputs",
    "ArrayDecoder",
    "Frame",
    "FrameSource",
    "ImageDecoder",
    "VideoDecoder",
    "open_source",
    "TemporalWindow",
]

# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Synchronized multi-channel video output with codec fallback.

One encoder per channel (original, |gx|, |gy|, |gt| or direction,
magnitude). ``open`` walks an ordered list of (fourcc, extension)
candidates and keeps the first one for which every channel encoder opens.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from sobel.errors import SinkOpenError

logger = logging.getLogger(__name__)

Candidate = Tuple[str, str]

DEFAULT_CODECS: List[Candidate] = [
    ("mp4v", ".mp4"),
    ("avc1", ".mp4"),
    ("XVID", ".avi"),
    ("MJPG", ".avi"),
]


def fourcc_code(tag: str) -> int:
    """Integer code of a 4-character codec tag."""
    if len(tag) != 4 or not tag.isascii():
        raise ValueError(f"codec tag must be 4 ASCII characters, got {tag!r}")
    return cv2.VideoWriter_fourcc(*tag)


def _as_bgr(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame


class OutputSink:
    """Lock-step writers for a fixed set of channels.

    Args:
        out_dir: Directory receiving one file per channel.
        channels: Channel names; files are named ``{prefix}{channel}{ext}``.
        prefix: File name prefix, e.g. "sobel3d_".
        writer_factory: Encoder constructor with the cv2.VideoWriter
            signature (path, fourcc, fps, (w, h), is_color).
    """

    def __init__(self, out_dir: Union[str, Path], channels: Sequence[str],
                 prefix: str = "", writer_factory: Optional[Callable] = None):
        if not channels:
            raise ValueError("at least one output channel is required")
        self.out_dir = Path(out_dir)
        self.channels = tuple(channels)
        self.prefix = prefix
        self.writer_factory = writer_factory or cv2.VideoWriter
        self.codec: Optional[Candidate] = None
        self.frame_size: Optional[Tuple[int, int]] = None
        self.frames_written = 0
        self.paths: Dict[str, Path] = {}
        self._writers: Dict[str, object] = {}

    @property
    def is_open(self) -> bool:
        return bool(self._writers)

    def _try_candidate(self, tag: str, ext: str, fps: float,
                       frame_size: Tuple[int, int]) -> bool:
        try:
            code = fourcc_code(tag)
        except ValueError as exc:
            logger.warning("Skipping codec candidate %s%s: %s", tag, ext, exc)
            return False

        opened: Dict[str, Tuple[object, Path]] = {}
        for channel in self.channels:
            path = self.out_dir / f"{self.prefix}{channel}{ext}"
            writer = self.writer_factory(str(path), code, float(fps), tuple(frame_size), True)
            if not writer.isOpened():
                writer.release()
                path.unlink(missing_ok=True)
                logger.warning("Codec %s%s failed for channel %s", tag, ext, channel)
                for w, p in opened.values():
                    w.release()
                    p.unlink(missing_ok=True)
                return False
            opened[channel] = (writer, path)

        self._writers = {c: w for c, (w, _) in opened.items()}
        self.paths = {c: p for c, (_, p) in opened.items()}
        return True

    def open(self, candidates: Sequence[Candidate], fps: float,
             frame_size: Tuple[int, int]) -> "OutputSink":
        """Open every channel with the first candidate that works for all.

        Args:
            candidates: Ordered (fourcc tag, container extension) pairs.
            fps: Frame rate shared by all channels.
            frame_size: (width, height) shared by all channels.

        Raises:
            SinkOpenError: every candidate failed for at least one channel.
        """
        if self.is_open:
            raise RuntimeError("sink is already open")
        self.out_dir.mkdir(parents=True, exist_ok=True)
        for tag, ext in candidates:
            if self._try_candidate(tag, ext, fps, frame_size):
                self.codec = (tag, ext)
                self.frame_size = tuple(frame_size)
                self.frames_written = 0
                logger.info("Opened %d output channels with %s (%s) at %.1f fps",
                            len(self.channels), tag, ext, fps)
                return self
        tried = ", ".join(f"{t}{e}" for t, e in candidates) or "none"
        raise SinkOpenError(f"no codec candidate could open all outputs in {self.out_dir} "
                            f"(tried: {tried})")

    def write(self, channel_frames: Dict[str, np.ndarray]):
        """Append one frame to every channel.

        All channels advance together: a missing or unexpected channel, or a
        frame of the wrong size, is rejected before any encoder is touched.
        """
        if not self.is_open:
            raise RuntimeError("sink is not open")
        missing = [c for c in self.channels if c not in channel_frames]
        extra = [c for c in channel_frames if c not in self.channels]
        if missing or extra:
            raise ValueError(f"channel mismatch: missing={missing} unexpected={extra}")

        w, h = self.frame_size
        prepared = {}
        for channel in self.channels:
            frame = _as_bgr(channel_frames[channel])
            if frame.shape[:2] != (h, w):
                raise ValueError(f"channel {channel} frame is {frame.shape[1]}x{frame.shape[0]}, "
                                 f"sink expects {w}x{h}")
            prepared[channel] = frame

        for channel in self.channels:
            self._writers[channel].write(prepared[channel])
        self.frames_written += 1

    def close(self):
        """Finalize every encoder. Safe to call more than once."""
        for writer in self._writers.values():
            writer.release()
        if self._writers:
            logger.info("Closed %d outputs after %d frames", len(self._writers), self.frames_written)
        self._writers = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def write_still_outputs(out_dir: Union[str, Path], channels: Dict[str, np.ndarray],
                        ext: str = ".png") -> Dict[str, Path]:
    """Save one image file per channel for still-image runs.

    Raises:
        SinkOpenError: an image could not be written.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = {}
    for name, img in channels.items():
        path = out_dir / f"{name}{ext}"
        if not cv2.imwrite(str(path), img):
            raise SinkOpenError(f"could not write {path}")
        paths[name] = path
    logger.info("Wrote %d images to %s", len(paths), out_dir)
    return paths

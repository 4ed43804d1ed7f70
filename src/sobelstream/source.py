# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Pull-based grayscale frame supply.

FrameSource wraps a decode collaborator (anything with open/read/rewind/
release) and turns its images into 8-bit grayscale Frames of a fixed
size. Decoders for video/GIF files, still images and in-memory arrays are
provided.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from sobel.errors import InsufficientFramesError, SourceError

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp"}


@dataclass
class Frame:
    """One decoded step of the stream.

    Attributes:
        gray: (H, W) uint8 plane the gradients are computed on.
        image: The decoded image as delivered (BGR or gray), used for the
            "original" output channel.
        index: Position in the stream since the last rewind.
    """

    gray: np.ndarray
    image: np.ndarray
    index: int

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)."""
        h, w = self.gray.shape
        return w, h


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert a decoded uint8 image (gray, BGR or BGRA) to a gray plane."""
    if image is None or image.dtype != np.uint8:
        raise SourceError(f"unsupported frame dtype {getattr(image, 'dtype', None)}")
    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise SourceError(f"unsupported frame shape {image.shape}")


# ---------------------------------------------------------------------------
# Decode collaborators
# ---------------------------------------------------------------------------

class VideoDecoder:
    """cv2.VideoCapture over a video or animated GIF.

    Rewinding re-opens the capture; seeking to frame 0 is not reliable for
    every container (GIF in particular).
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._cap = None

    def open(self) -> bool:
        self.release()
        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            cap.release()
            return False
        self._cap = cap
        return True

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return frame

    def rewind(self) -> bool:
        return self.open()

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    @property
    def fps(self) -> Optional[float]:
        if self._cap is None:
            return None
        fps = float(self._cap.get(cv2.CAP_PROP_FPS))
        return fps if fps > 0 else None


class ImageDecoder:
    """A still image as a one-frame stream, decoded to 8-bit BGR."""

    fps = None

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._image = None
        self._pos = 0

    def open(self) -> bool:
        self._image = cv2.imread(str(self.path), cv2.IMREAD_COLOR)
        self._pos = 0
        return self._image is not None

    def read(self) -> Optional[np.ndarray]:
        if self._image is None or self._pos > 0:
            return None
        self._pos += 1
        return self._image

    def rewind(self) -> bool:
        self._pos = 0
        return self._image is not None

    def release(self):
        self._image = None


class ArrayDecoder:
    """In-memory frames, e.g. synthetic sequences."""

    def __init__(self, frames: Sequence[np.ndarray], fps: Optional[float] = None):
        self._frames: List[np.ndarray] = list(frames)
        self.fps = fps
        self._pos = 0
        self.opened = False

    def open(self) -> bool:
        self._pos = 0
        self.opened = True
        return True

    def read(self) -> Optional[np.ndarray]:
        if not self.opened or self._pos >= len(self._frames):
            return None
        frame = self._frames[self._pos]
        self._pos += 1
        return frame

    def rewind(self) -> bool:
        self._pos = 0
        return self.opened

    def release(self):
        self.opened = False


# ---------------------------------------------------------------------------
# FrameSource
# ---------------------------------------------------------------------------

class FrameSource:
    """Ordered grayscale frames from a decoder, with rewind.

    ``next`` returns None at end of stream. Every frame must have the size
    of the first one; a change raises SourceError.
    """

    def __init__(self, decoder, name: str = ""):
        self.decoder = decoder
        self.name = name or str(getattr(decoder, "path", type(decoder).__name__))
        self.frame_size: Optional[Tuple[int, int]] = None
        self._index = 0
        self._open = False

    def open(self) -> "FrameSource":
        if not self.decoder.open():
            raise SourceError(f"could not open input: {self.name}")
        self._open = True
        self._index = 0
        logger.debug("Opened source %s", self.name)
        return self

    def next(self) -> Optional[Frame]:
        if not self._open:
            raise SourceError(f"source not open: {self.name}")
        image = self.decoder.read()
        if image is None:
            return None
        gray = to_gray(image)
        h, w = gray.shape
        if self.frame_size is None:
            self.frame_size = (w, h)
        elif (w, h) != self.frame_size:
            raise SourceError(
                f"frame {self._index} of {self.name} is {w}x{h}, "
                f"expected {self.frame_size[0]}x{self.frame_size[1]}"
            )
        frame = Frame(gray=gray, image=image, index=self._index)
        self._index += 1
        return frame

    def reset(self):
        """Rewind to the first frame."""
        if not self.decoder.rewind():
            raise SourceError(f"could not rewind input: {self.name}")
        self._index = 0
        logger.debug("Rewound source %s", self.name)

    def probe_size(self) -> Tuple[int, int]:
        """Decode the first frame to learn (width, height), then rewind."""
        first = self.next()
        if first is None:
            raise InsufficientFramesError(1, 0)
        self.reset()
        return first.size

    def release(self):
        if self._open:
            self.decoder.release()
            self._open = False

    @property
    def fps(self) -> Optional[float]:
        return getattr(self.decoder, "fps", None)


def open_source(path: Union[str, Path]) -> FrameSource:
    """FrameSource for a file: still images by suffix, everything else as video."""
    path = Path(path)
    if path.suffix.lower() in IMAGE_SUFFIXES:
        decoder = ImageDecoder(path)
    else:
        decoder = VideoDecoder(path)
    return FrameSource(decoder, name=str(path))

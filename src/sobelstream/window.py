# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Sliding window of consecutive frames.

Depth 3 holds (prev, curr, next) for the centered time derivative; the
gradient is computed for ``curr``. Depth 2 is the 2D streaming window
(curr, next): only ``curr`` is convolved and ``next`` is lookahead, so when
the stream ends the last frame is still processed once before the window
reports exhaustion.
"""

from typing import List, Optional, Tuple

import numpy as np

from sobel.errors import InsufficientFramesError

from .source import Frame, FrameSource


class TemporalWindow:
    def __init__(self, depth: int = 3):
        if depth not in (2, 3):
            raise ValueError(f"window depth must be 2 or 3, got {depth}")
        self.depth = depth
        self.frames: List[Frame] = []
        self._draining = False

    @property
    def temporal(self) -> bool:
        return self.depth == 3

    @property
    def ready(self) -> bool:
        return len(self.frames) == self.depth or (self._draining and len(self.frames) == 1)

    @property
    def target(self) -> Frame:
        """The frame whose gradients the current step produces."""
        if not self.ready:
            raise RuntimeError("window is not primed")
        return self.frames[1] if self.temporal else self.frames[0]

    def prime(self, source: FrameSource):
        """Fill the window from the source's current position."""
        self.clear()
        pulled = []
        while len(pulled) < self.depth:
            frame = source.next()
            if frame is None:
                raise InsufficientFramesError(self.depth, len(pulled))
            pulled.append(frame)
        self.frames = pulled

    def planes(self) -> Tuple[np.ndarray, ...]:
        """Gray planes handed to the coordinator: (prev, curr, next) or (curr,)."""
        if self.temporal:
            return tuple(f.gray for f in self.frames)
        return (self.target.gray,)

    def advance(self, source: FrameSource) -> bool:
        """Shift by one frame.

        Returns:
            True if the window holds a new target, False once the stream is
            exhausted.
        """
        if not self.ready:
            return False
        if self._draining:
            self.frames = []
            return False

        new = source.next()
        if new is None:
            if self.temporal:
                return False
            self.frames = self.frames[1:]
            self._draining = True
            return True

        self.frames = self.frames[1:] + [new]
        return True

    def clear(self):
        self.frames = []
        self._draining = False

    def snapshot(self) -> Tuple[Optional[Frame], ...]:
        """(prev, curr, next) for 3D, (curr, next) for 2D."""
        return tuple(self.frames)

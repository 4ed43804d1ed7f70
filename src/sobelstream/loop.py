# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Frame-stepping state machine: source -> gradients -> normalize -> encode.

    INIT -> PRIME -> PROCESSING -> LOOP -> PRIME ...
                                -> TERMINATE -> FINALIZE

The stop signal is sampled once per frame boundary, after the step's
frames have been written; a frame in flight always completes. Any
SobelError ends the run in FINALIZE with a FAILED result.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from sobel.coordinator import ThreadCoordinator, compute_gradients
from sobel.errors import SobelError
from sobel.fields import GradientField
from sobel.normalize import visualize
from sobel.partition import DEFAULT_GRID, check_partition, partition_interior

from .config import CHANNELS_2D, CHANNELS_3D, RunConfig
from .sink import OutputSink
from .source import FrameSource, to_gray
from .window import TemporalWindow

logger = logging.getLogger(__name__)


class LoopState(Enum):
    INIT = "init"
    PRIME = "prime"
    PROCESSING = "processing"
    LOOP = "loop"
    TERMINATE = "terminate"
    FINALIZE = "finalize"


class RunStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RunResult:
    status: RunStatus
    steps: int = 0
    loops: int = 0
    error: Optional[SobelError] = None
    codec: Optional[Tuple[str, str]] = None
    outputs: Dict[str, Path] = field(default_factory=dict)
    states: List[LoopState] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is not RunStatus.FAILED


class CancellationToken:
    """Thread-safe stop flag; calling the token returns whether it is set."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


class ProcessingLoop:
    """Drives one run over a FrameSource into an OutputSink.

    Args:
        source: Unopened frame source.
        sink: Unopened sink whose channels are a subset of what the mode
            produces ("original" plus the gradient planes).
        config: Mode, grid, fps, looping and codec candidates.
        stop: Callable sampled at every frame boundary; True ends the run.
        display: Optional collaborator with ``show(channels)``, called once
            per step with every produced 8-bit plane.

    Raises:
        ValueError: A sink channel the mode does not produce.
    """

    def __init__(self, source: FrameSource, sink: OutputSink, config: RunConfig,
                 stop: Optional[Callable[[], bool]] = None, display=None):
        produced = CHANNELS_3D if config.temporal else CHANNELS_2D
        unknown = [c for c in sink.channels if c not in produced]
        if unknown:
            raise ValueError(f"{config.mode} does not produce channels {unknown}")
        self.source = source
        self.sink = sink
        self.config = config
        self.stop = stop or CancellationToken()
        self.display = display
        self.window = TemporalWindow(config.window_depth)
        self.coordinator = ThreadCoordinator()
        self.state = LoopState.INIT
        self._result = RunResult(status=RunStatus.COMPLETED)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _init(self) -> LoopState:
        self.source.open()
        frame_size = self.source.probe_size()
        fps = self.source.fps or self.config.fps
        self.sink.open(self.config.codecs, fps, frame_size)
        self._result.codec = self.sink.codec
        self._result.outputs = dict(self.sink.paths)
        logger.info("Input %s: %dx%d, %s mode, grid %dx%d",
                    self.source.name, frame_size[0], frame_size[1],
                    "3D" if self.config.temporal else "2D", *self.config.grid)
        return LoopState.PRIME

    def _prime(self) -> LoopState:
        self.window.prime(self.source)
        return LoopState.PROCESSING

    def _process(self) -> LoopState:
        self._step()
        self._result.steps += 1

        if self.stop():
            logger.info("Stop requested after %d steps", self._result.steps)
            self._result.status = RunStatus.CANCELLED
            return LoopState.TERMINATE
        max_steps = self.config.max_steps
        if max_steps is not None and self._result.steps >= max_steps:
            return LoopState.TERMINATE
        if self.window.advance(self.source):
            return LoopState.PROCESSING
        return LoopState.LOOP if self.config.loop else LoopState.TERMINATE

    def _loop(self) -> LoopState:
        self.source.reset()
        self._result.loops += 1
        logger.debug("End of stream, restarting (loop %d)", self._result.loops)
        return LoopState.PRIME

    def _finalize(self):
        try:
            self.sink.close()
        finally:
            self.source.release()
            self.coordinator.shutdown()

    # ------------------------------------------------------------------
    # One step
    # ------------------------------------------------------------------

    def _step(self):
        planes = self.window.planes()
        h, w = planes[0].shape
        regions = partition_interior(w, h, self.config.grid)
        check_partition(regions, w, h)
        field_ = GradientField.allocate((h, w), temporal=self.window.temporal)
        self.coordinator.dispatch(planes, regions, field_)

        channels = {"original": self.window.target.image}
        channels.update(visualize(field_))
        self.sink.write({c: channels[c] for c in self.sink.channels})
        if self.display is not None:
            self.display.show(channels)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        """Run until end of stream (without looping), stop, or failure."""
        handlers = {
            LoopState.INIT: self._init,
            LoopState.PRIME: self._prime,
            LoopState.PROCESSING: self._process,
            LoopState.LOOP: self._loop,
        }
        t0 = time.perf_counter()
        self.state = LoopState.INIT
        try:
            while self.state not in (LoopState.TERMINATE, LoopState.FINALIZE):
                if not self._result.states or self._result.states[-1] is not self.state:
                    self._result.states.append(self.state)
                try:
                    self.state = handlers[self.state]()
                except SobelError as exc:
                    logger.error("Run failed in %s: %s", self.state.value, exc)
                    self._result.status = RunStatus.FAILED
                    self._result.error = exc
                    self.state = LoopState.FINALIZE
            if self.state is LoopState.TERMINATE:
                self._result.states.append(LoopState.TERMINATE)
        finally:
            self.state = LoopState.FINALIZE
            self._result.states.append(LoopState.FINALIZE)
            self._finalize()

        self._result.elapsed_s = time.perf_counter() - t0
        logger.info("Run %s: %d steps, %d loops, %.2f s",
                    self._result.status.value, self._result.steps,
                    self._result.loops, self._result.elapsed_s)
        return self._result


def process_still(image: np.ndarray, grid: Tuple[int, int] = DEFAULT_GRID,
                  coordinator: Optional[ThreadCoordinator] = None) -> Dict[str, np.ndarray]:
    """2D gradients of one image as 8-bit display channels.

    Returns:
        {"original", "gray", "gx", "gy", "magnitude", "direction"}.
    """
    gray = to_gray(image)
    field_ = compute_gradients((gray,), grid=grid, coordinator=coordinator)
    channels = {"original": image, "gray": gray}
    channels.update(visualize(field_))
    return channels

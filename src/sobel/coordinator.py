# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Per-frame fan-out of region workers with a join barrier.

One Task is built per Region and submitted to a thread pool sized to the
region count. ``dispatch`` waits for every future before returning, so a
caller never sees a partially written GradientField. The pool is reused
across frames; the barrier semantics are those of spawning and joining N
threads per frame.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import WorkerFailure
from .fields import GradientField, Task
from .kernels import SOBEL, GradientKernel
from .partition import DEFAULT_GRID, Region, check_partition, interior_bounds, partition_interior
from .worker import run_task


def _readonly(frames: Sequence[np.ndarray]) -> Tuple[np.ndarray, ...]:
    """Validate frames and hand out non-writeable views."""
    if len(frames) not in (1, 3):
        raise ValueError(f"expected 1 (2D) or 3 (3D) frames, got {len(frames)}")
    shape = frames[0].shape
    views = []
    for f in frames:
        if f.ndim != 2 or f.dtype != np.uint8:
            raise ValueError(f"frames must be 2D uint8, got {f.dtype} {f.shape}")
        if f.shape != shape:
            raise ValueError(f"frame shapes differ: {f.shape} vs {shape}")
        v = f.view()
        v.flags.writeable = False
        views.append(v)
    return tuple(views)


class ThreadCoordinator:
    """Runs one ConvolutionWorker per region and joins them all.

    Use as a context manager or call ``shutdown`` when done.
    """

    def __init__(self, kernel: GradientKernel = SOBEL):
        self.kernel = kernel
        self._pool: Optional[ThreadPoolExecutor] = None
        self._pool_size = 0

    def _ensure_pool(self, n: int) -> ThreadPoolExecutor:
        if self._pool is None or self._pool_size < n:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
            self._pool = ThreadPoolExecutor(max_workers=n, thread_name_prefix="sobel-region")
            self._pool_size = n
        return self._pool

    def dispatch(self, frames: Sequence[np.ndarray], regions: Sequence[Region],
                 field: GradientField) -> GradientField:
        """Fill ``field`` from ``frames`` using one worker per region.

        Args:
            frames: (curr,) for 2D or (prev, curr, next) for 3D, uint8.
            regions: Disjoint regions covering the interior.
            field: Zeroed output planes of the frame's shape.

        Raises:
            WorkerFailure: a worker could not be started or raised. Workers
                that did start are still joined before this is raised.
        """
        views = _readonly(frames)
        tasks = [Task(region, self.kernel, views, field) for region in regions]
        if not tasks:
            return field

        pool = self._ensure_pool(len(tasks))
        futures = []
        try:
            for task in tasks:
                futures.append(pool.submit(run_task, task))
        except RuntimeError as exc:
            wait(futures)
            raise WorkerFailure(
                f"could not start worker {len(futures) + 1} of {len(tasks)}: {exc}"
            ) from exc

        wait(futures)
        for task, future in zip(tasks, futures):
            exc = future.exception()
            if exc is not None:
                raise WorkerFailure(f"worker for {task.region} failed: {exc}") from exc
        return field

    def shutdown(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
            self._pool_size = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
        return False


def compute_gradients(frames: Sequence[np.ndarray],
                      grid: Tuple[int, int] = DEFAULT_GRID,
                      coordinator: Optional[ThreadCoordinator] = None) -> GradientField:
    """Partition, dispatch and join for one frame (2D) or window (3D).

    Args:
        frames: (curr,) or (prev, curr, next) uint8 planes.
        grid: (rows, cols) region grid.
        coordinator: Reused coordinator; a temporary one is created if None.

    Returns:
        Completed GradientField.
    """
    h, w = frames[0].shape
    field = GradientField.allocate((h, w), temporal=len(frames) == 3)
    regions = partition_interior(w, h, grid)
    check_partition(regions, w, h)

    if coordinator is not None:
        return coordinator.dispatch(frames, regions, field)
    with ThreadCoordinator() as c:
        return c.dispatch(frames, regions, field)


def reference_gradients(frames: Sequence[np.ndarray],
                        kernel: GradientKernel = SOBEL) -> GradientField:
    """Single-threaded evaluation over the whole interior as one region."""
    views = _readonly(frames)
    h, w = views[0].shape
    field = GradientField.allocate((h, w), temporal=len(views) == 3)
    inner = interior_bounds(w, h)
    if not inner.empty:
        run_task(Task(inner, kernel, views, field))
    return field

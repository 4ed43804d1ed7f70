# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Region convolution worker.

Evaluates the separable Sobel sums for every interior coordinate of one
Region. The loop runs over neighborhood offsets (9 in 2D, 27 in 3D) and
is vectorized over the region, so each output sample receives exactly the
weighted sum of its 3x3 or 3x3x3 neighborhood.
"""

import numpy as np

from .fields import Task
from .kernels import AXES_2D, AXES_3D
from .partition import Region


def run_task(task: Task) -> Region:
    """Compute gx, gy, [gt], magnitude and [direction] inside ``task.region``.

    Writes nothing outside the region. Direction (2D only) is
    atan2(gy, gx) in radians, mapped into (-pi, pi].

    Returns:
        The region that was written.
    """
    region = task.region
    if region.empty:
        return region

    temporal = task.temporal
    axes = AXES_3D if temporal else AXES_2D
    sums = {c: np.zeros((region.height, region.width), dtype=np.float32) for c in axes}

    for offset, weights in task.kernel.taps(axes):
        dx, dy = offset[0], offset[1]
        plane = task.frames[offset[2] + 1] if temporal else task.frames[0]
        window = plane[region.y0 + dy:region.y1 + dy,
                       region.x0 + dx:region.x1 + dx].astype(np.float32)
        for component, w in weights.items():
            sums[component] += window * np.float32(w)

    gx, gy = sums["x"], sums["y"]
    sq = gx * gx + gy * gy
    if temporal:
        gt = sums["t"]
        sq += gt * gt

    rows, cols = region.slices()
    field = task.field
    field.gx[rows, cols] = gx
    field.gy[rows, cols] = gy
    field.magnitude[rows, cols] = np.sqrt(sq)
    if temporal:
        field.gt[rows, cols] = gt
    else:
        theta = np.arctan2(gy, gx)
        field.direction[rows, cols] = np.where(theta <= -np.pi, np.float32(np.pi), theta)
    return region

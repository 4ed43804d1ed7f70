# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Region decomposition of a frame interior.

The interior is every coordinate at least one sample away from the frame
boundary. Workers write gradient planes without locks, so the regions
returned here must cover the interior exactly once; ``check_partition``
verifies that before anything is dispatched.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .errors import PartitionError

DEFAULT_GRID = (2, 2)


@dataclass(frozen=True)
class Region:
    """Half-open rectangle [x0, x1) x [y0, y1)."""

    x0: int
    x1: int
    y0: int
    y1: int

    @property
    def width(self) -> int:
        return max(0, self.x1 - self.x0)

    @property
    def height(self) -> int:
        return max(0, self.y1 - self.y0)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def empty(self) -> bool:
        return self.area == 0

    def slices(self) -> Tuple[slice, slice]:
        """(row, column) slices for indexing a (H, W) array."""
        return slice(self.y0, self.y1), slice(self.x0, self.x1)


def interior_bounds(width: int, height: int) -> Region:
    """Interior of a width x height frame (empty below 3 samples per axis)."""
    return Region(1, max(1, width - 1), 1, max(1, height - 1))


def split_axis(lo: int, hi: int, parts: int) -> List[Tuple[int, int]]:
    """Split [lo, hi) into ``parts`` contiguous, non-empty pieces.

    For parts=2 the cut is the midpoint of the full frame, the quadrant
    split. An extent below 2 collapses to a single piece, and parts is
    capped at the extent so no piece is ever empty.

    Returns:
        List of (start, stop) pairs, empty when hi <= lo.
    """
    if parts < 1:
        raise ValueError(f"parts must be >= 1, got {parts}")
    extent = hi - lo
    if extent <= 0:
        return []
    if extent < 2:
        parts = 1
    parts = min(parts, extent)
    return [(lo + extent * k // parts, lo + extent * (k + 1) // parts)
            for k in range(parts)]


def partition_interior(width: int, height: int,
                       grid: Tuple[int, int] = DEFAULT_GRID) -> List[Region]:
    """Cut the interior of a frame into a rows x cols grid of regions.

    Regions are returned row-major: top-left, top-right, ..., bottom-right.

    Args:
        width: Frame width W.
        height: Frame height H.
        grid: (rows, cols). (2, 2) gives quadrants, (n, 1) horizontal strips.

    Returns:
        List of Regions; empty if the frame has no interior.
    """
    rows, cols = grid
    inner = interior_bounds(width, height)
    row_bands = split_axis(inner.y0, inner.y1, rows)
    col_bands = split_axis(inner.x0, inner.x1, cols)
    return [Region(x0, x1, y0, y1)
            for y0, y1 in row_bands
            for x0, x1 in col_bands]


def strips(width: int, height: int, n: int) -> List[Region]:
    """n horizontal strips spanning the interior width."""
    return partition_interior(width, height, (n, 1))


def grid_for_workers(n: int) -> Tuple[int, int]:
    """Squarest (rows, cols) grid with n cells, rows >= cols.

    4 -> (2, 2), 6 -> (3, 2), 8 -> (4, 2), primes fall back to strips.
    """
    if n < 1:
        raise ValueError(f"worker count must be >= 1, got {n}")
    cols = 1
    for c in range(1, math.isqrt(n) + 1):
        if n % c == 0:
            cols = c
    return n // cols, cols


def check_partition(regions: Sequence[Region], width: int, height: int) -> None:
    """Raise PartitionError unless regions tile the interior exactly once."""
    inner = interior_bounds(width, height)
    if inner.empty:
        if any(not r.empty for r in regions):
            raise PartitionError(f"{width}x{height} frame has no interior to cover")
        return

    cover = np.zeros((inner.height, inner.width), dtype=np.int32)
    for r in regions:
        if r.empty:
            raise PartitionError(f"empty region {r}")
        if r.x0 < inner.x0 or r.x1 > inner.x1 or r.y0 < inner.y0 or r.y1 > inner.y1:
            raise PartitionError(f"region {r} leaves the interior {inner}")
        cover[r.y0 - inner.y0:r.y1 - inner.y0, r.x0 - inner.x0:r.x1 - inner.x0] += 1

    gaps = int((cover == 0).sum())
    overlaps = int((cover > 1).sum())
    if gaps or overlaps:
        raise PartitionError(
            f"{len(regions)} regions leave {gaps} interior samples uncovered "
            f"and {overlaps} covered more than once"
        )

# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Separable Sobel coefficients for 2D images and 3D (x, y, t) volumes.

A gradient component along one axis is the derivative filter on that axis
times the smoothing filter on every other axis. The per-offset weight is
always formed as the product of 1D weights; no dense 3x3 or 3x3x3 mask is
stored anywhere.
"""

import itertools
from dataclasses import dataclass
from typing import Dict, Iterator, Sequence, Tuple

import numpy as np

SMOOTH = (1, 2, 1)
DERIV = (-1, 0, 1)

AXES_2D = ("x", "y")
AXES_3D = ("x", "y", "t")


@dataclass(frozen=True)
class GradientKernel:
    """Per-axis smoothing/derivative pair.

    Attributes:
        smooth: 3-tap smoothing filter, {1, 2, 1} for Sobel.
        deriv: 3-tap central difference, {-1, 0, 1} for Sobel.
    """

    smooth: Tuple[int, int, int] = SMOOTH
    deriv: Tuple[int, int, int] = DERIV

    def __post_init__(self):
        if len(self.smooth) != 3 or len(self.deriv) != 3:
            raise ValueError("smooth and deriv must both have 3 taps")

    def axis_weights(self, component: str,
                     axes: Sequence[str]) -> Dict[str, np.ndarray]:
        """1D weights per axis for one gradient component.

        Args:
            component: Axis the derivative is taken along ("x", "y" or "t").
            axes: All axes of the neighborhood, AXES_2D or AXES_3D.

        Returns:
            Mapping axis -> int32 array of 3 weights.
        """
        if component not in axes:
            raise ValueError(f"component {component!r} not in axes {tuple(axes)}")
        return {
            axis: np.asarray(self.deriv if axis == component else self.smooth,
                             dtype=np.int32)
            for axis in axes
        }

    def weight(self, component: str, axes: Sequence[str],
               offset: Sequence[int]) -> int:
        """Weight of one neighborhood offset: product of the 1D weights.

        ``offset`` holds one value in {-1, 0, 1} per axis, in ``axes`` order.
        """
        w = 1
        for axis, d in zip(axes, offset):
            taps = self.deriv if axis == component else self.smooth
            w *= taps[d + 1]
        return w

    def taps(self, axes: Sequence[str]) -> Iterator[Tuple[Tuple[int, ...], Dict[str, int]]]:
        """Walk the 3^n neighborhood once, yielding the weights of every component.

        Yields:
            (offset, weights) where offset is (dx, dy[, dt]) and weights maps
            each component to its non-zero weight at that offset. Offsets at
            which every component weight is zero are skipped.
        """
        for rev in itertools.product((-1, 0, 1), repeat=len(axes)):
            offset = tuple(reversed(rev))
            weights = {}
            for component in axes:
                w = self.weight(component, axes, offset)
                if w != 0:
                    weights[component] = w
            if weights:
                yield offset, weights

    def dense(self, component: str, axes: Sequence[str]) -> np.ndarray:
        """Expand a component into its dense mask, indexed [t][y][x] or [y][x].

        Only used to inspect the kernel (e.g. compare against the textbook
        Sobel masks); the convolution never reads it.
        """
        w = self.axis_weights(component, axes)
        mask = np.outer(w["y"], w["x"])
        if "t" in axes:
            mask = np.multiply.outer(w["t"], mask)
        return mask.astype(np.int32)


SOBEL = GradientKernel()

# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Gradient output buffers and the per-region work unit."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .kernels import GradientKernel
from .partition import Region


@dataclass
class GradientField:
    """Float32 gradient planes for one frame, all shaped (H, W).

    ``gt`` exists only for temporal (3D) fields and ``direction`` only for
    spatial (2D) ones. The one-sample border ring is never written and
    stays zero.
    """

    gx: np.ndarray
    gy: np.ndarray
    magnitude: np.ndarray
    gt: Optional[np.ndarray] = None
    direction: Optional[np.ndarray] = None

    @classmethod
    def allocate(cls, shape: Tuple[int, int], temporal: bool = False) -> "GradientField":
        def plane():
            return np.zeros(shape, dtype=np.float32)

        return cls(
            gx=plane(),
            gy=plane(),
            magnitude=plane(),
            gt=plane() if temporal else None,
            direction=None if temporal else plane(),
        )

    @property
    def temporal(self) -> bool:
        return self.gt is not None

    @property
    def shape(self) -> Tuple[int, int]:
        return self.gx.shape

    def planes(self) -> Dict[str, np.ndarray]:
        """Existing planes by name, in output order."""
        out = {"gx": self.gx, "gy": self.gy}
        if self.gt is not None:
            out["gt"] = self.gt
        out["magnitude"] = self.magnitude
        if self.direction is not None:
            out["direction"] = self.direction
        return out


@dataclass(frozen=True)
class Task:
    """One worker's share of a frame.

    Attributes:
        region: The only part of ``field`` this task may write.
        kernel: Separable coefficients.
        frames: (curr,) for 2D or (prev, curr, next) for 3D, read-only.
        field: Output planes shared by all tasks of the frame.
    """

    region: Region
    kernel: GradientKernel
    frames: Tuple[np.ndarray, ...]
    field: GradientField

    @property
    def temporal(self) -> bool:
        return len(self.frames) == 3

# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Min-max rescaling of gradient planes to 8-bit display range."""

from typing import Dict

import numpy as np

from .fields import GradientField


def normalize_to_u8(field: np.ndarray, absolute: bool = False) -> np.ndarray:
    """Linearly map a float plane onto [0, 255].

    out = round((v - min) / (max - min) * 255). A constant plane (including
    all zeros) maps to 0 everywhere instead of dividing by zero.

    Args:
        field: Float plane of any shape.
        absolute: Take |v| first (used for the signed gx/gy/gt planes).

    Returns:
        uint8 array of the same shape.
    """
    values = np.abs(field) if absolute else np.asarray(field)
    values = values.astype(np.float64)
    if values.size == 0:
        return np.zeros(values.shape, dtype=np.uint8)

    lo = float(values.min())
    hi = float(values.max())
    if hi == lo:
        return np.zeros(values.shape, dtype=np.uint8)

    scaled = (values - lo) / (hi - lo) * 255.0
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def visualize(field: GradientField) -> Dict[str, np.ndarray]:
    """8-bit display planes for every component of a field.

    Signed components are shown as magnitudes (|gx|, |gy|, |gt|); magnitude
    and direction are rescaled as they are.
    """
    out = {}
    for name, plane in field.planes().items():
        out[name] = normalize_to_u8(plane, absolute=name in ("gx", "gy", "gt"))
    return out

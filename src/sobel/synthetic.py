# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Synthetic grayscale frames and sequences for validation.

Still patterns with analytically known Sobel responses (uniform, steps,
disc) and short sequences with known temporal behavior (static, moving
square, flicker).
"""

from typing import List

import numpy as np
from scipy.ndimage import gaussian_filter


# ============================================================
# STILL FRAMES
# ============================================================

def uniform(width: int = 64, height: int = 64, value: int = 128) -> np.ndarray:
    """Constant frame: every gradient is zero."""
    return np.full((height, width), value, dtype=np.uint8)


def vertical_step(width: int = 64, height: int = 64,
                  low: int = 0, high: int = 255) -> np.ndarray:
    """Columns [0, W/2) = low, [W/2, W) = high."""
    img = np.full((height, width), low, dtype=np.uint8)
    img[:, width // 2:] = high
    return img


def horizontal_step(width: int = 64, height: int = 64,
                    low: int = 0, high: int = 255) -> np.ndarray:
    """Rows [0, H/2) = low, [H/2, H) = high."""
    img = np.full((height, width), low, dtype=np.uint8)
    img[height // 2:, :] = high
    return img


def disc(width: int = 64, height: int = 64, radius: int = 16,
         value: int = 255) -> np.ndarray:
    """Filled centered disc on black."""
    yy, xx = np.indices((height, width))
    cx, cy = width // 2, height // 2
    img = np.zeros((height, width), dtype=np.uint8)
    img[(xx - cx) ** 2 + (yy - cy) ** 2 <= radius * radius] = value
    return img


def smooth_noise(width: int = 64, height: int = 64, sigma: float = 2.0,
                 seed: int = 0) -> np.ndarray:
    """Low-pass filtered noise stretched to the full 8-bit range."""
    rng = np.random.default_rng(seed)
    field = gaussian_filter(rng.normal(0.0, 1.0, (height, width)), sigma)
    field = (field - field.min()) / (field.max() - field.min() + 1e-12)
    return np.rint(field * 255).astype(np.uint8)


# ============================================================
# SEQUENCES
# ============================================================

def static_sequence(frame: np.ndarray, n_frames: int = 5) -> List[np.ndarray]:
    """n identical copies of ``frame``: zero temporal derivative."""
    return [frame.copy() for _ in range(n_frames)]


def moving_square(width: int = 64, height: int = 64, n_frames: int = 8,
                  size: int = 12, step: int = 3, value: int = 255) -> List[np.ndarray]:
    """A bright square translating to the right by ``step`` px per frame."""
    frames = []
    y0 = (height - size) // 2
    for i in range(n_frames):
        img = np.zeros((height, width), dtype=np.uint8)
        x0 = (2 + i * step) % max(1, width - size)
        img[y0:y0 + size, x0:x0 + size] = value
        frames.append(img)
    return frames


def flicker(width: int = 64, height: int = 64, n_frames: int = 6,
            levels: tuple = (40, 200)) -> List[np.ndarray]:
    """Uniform frames alternating between two gray levels."""
    return [uniform(width, height, levels[i % len(levels)]) for i in range(n_frames)]


STILLS = {
    "uniform": uniform,
    "vertical_step": vertical_step,
    "horizontal_step": horizontal_step,
    "disc": disc,
    "smooth_noise": smooth_noise,
}

SEQUENCES = {
    "moving_square": moving_square,
    "flicker": flicker,
}

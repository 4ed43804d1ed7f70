# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Run presets and configuration.

Presets are plain dicts; ``RunConfig.from_preset`` copies one and applies
overrides, ignoring keys it does not know.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sobel.partition import DEFAULT_GRID

from .sink import DEFAULT_CODECS

CHANNELS_2D = ("original", "gx", "gy", "magnitude", "direction")
CHANNELS_3D = ("original", "gx", "gy", "gt", "magnitude")

# ---------------------------------------------------------------------------
# Mode presets
# ---------------------------------------------------------------------------

MODE_PRESETS: Dict[str, dict] = {
    "still_2d": {
        "name": "Still Image",
        "description": "2D Sobel on a single image, one PNG per channel",
        "temporal": False,
        "streaming": False,
        "grid": DEFAULT_GRID,
        "fps": 30.0,
        "loop": False,
        "channels": CHANNELS_2D,
    },
    "stream_2d": {
        "name": "Frame-wise 2D",
        "description": "2D Sobel applied to every frame of a video or GIF",
        "temporal": False,
        "streaming": True,
        "grid": DEFAULT_GRID,
        "fps": 30.0,
        "loop": False,
        "channels": CHANNELS_2D,
    },
    "volume_3d": {
        "name": "Spatiotemporal 3D",
        "description": "3D Sobel over the (x, y, t) volume with a 3-frame window",
        "temporal": True,
        "streaming": True,
        "grid": DEFAULT_GRID,
        "fps": 30.0,
        "loop": False,
        "channels": CHANNELS_3D,
    },
}

DEFAULT_MODE = "stream_2d"


@dataclass
class RunConfig:
    mode: str = DEFAULT_MODE
    temporal: bool = False
    streaming: bool = True
    grid: Tuple[int, int] = DEFAULT_GRID
    fps: float = 30.0
    loop: bool = False
    max_steps: Optional[int] = None
    channels: Tuple[str, ...] = CHANNELS_2D
    codecs: List[Tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_CODECS))
    out_dir: Path = Path("output")
    prefix: str = ""

    @classmethod
    def from_preset(cls, mode: str = DEFAULT_MODE, **overrides) -> "RunConfig":
        if mode not in MODE_PRESETS:
            mode = DEFAULT_MODE
        cfg = cls(mode=mode)
        cfg.update(**{k: v for k, v in MODE_PRESETS[mode].items()})
        cfg.update(**overrides)
        return cfg

    def update(self, **kwargs):
        known = {f.name for f in fields(self)}
        for k, v in kwargs.items():
            if k in known and v is not None:
                setattr(self, k, v)
        self.grid = tuple(self.grid)
        self.channels = tuple(self.channels)
        self.out_dir = Path(self.out_dir)
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")

    @property
    def window_depth(self) -> int:
        return 3 if self.temporal else 2

    def valid_channels(self) -> Tuple[str, ...]:
        """Configured channels restricted to what the mode produces."""
        allowed = CHANNELS_3D if self.temporal else CHANNELS_2D
        return tuple(c for c in self.channels if c in allowed)

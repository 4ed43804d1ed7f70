# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""OpenCV window display; any key press requests a stop."""

from typing import Dict, Optional

import cv2
import numpy as np

from .loop import CancellationToken

WINDOW_TITLES = {
    "original": "Original",
    "gx": "Sobel |Gx|",
    "gy": "Sobel |Gy|",
    "gt": "Sobel3D |Gt| (temporal)",
    "magnitude": "Sobel Magnitude",
    "direction": "Theta (Direction)",
}


class WindowDisplay:
    """Shows each channel in its own window and polls the keyboard.

    Pass ``display.token`` as the loop's stop signal.
    """

    def __init__(self, delay_ms: int = 30, token: Optional[CancellationToken] = None):
        self.delay_ms = delay_ms
        self.token = token or CancellationToken()
        self._opened = set()

    def show(self, channels: Dict[str, np.ndarray]):
        for name, img in channels.items():
            title = WINDOW_TITLES.get(name, name)
            cv2.imshow(title, img)
            self._opened.add(title)
        if cv2.waitKey(self.delay_ms) != -1:
            self.token.cancel()

    def wait(self):
        """Block until a key is pressed (still-image mode)."""
        cv2.waitKey(0)

    def close(self):
        if self._opened:
            cv2.destroyAllWindows()
            self._opened.clear()

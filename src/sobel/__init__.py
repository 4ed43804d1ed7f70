# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""sobel3d: separable Sobel gradients for images and (x, y, t) volumes.

Manual 3x3 / 3x3x3 Sobel evaluation over a region grid, fanned out to a
thread pool per frame and joined before the planes are read.
"""

__version__ = "0.1.0"
__author__ = "Vasile Lucian Borbeleac"
__copyright__ = "© 2024-2026 FRAGMERGENT TECHNOLOGY S.R.L."

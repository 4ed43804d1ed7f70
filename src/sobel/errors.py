# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Error taxonomy for the sobel3d engine.

Every condition listed here is fatal for the run that raised it. End of
stream is not an error and has no exception.
"""


class SobelError(Exception):
    """Base class for all sobel3d failures."""


class SourceError(SobelError):
    """Input could not be opened, decoded, or converted to grayscale."""


class InsufficientFramesError(SobelError):
    """The stream holds fewer frames than the window needs to prime."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"need at least {required} frames to prime, stream has {available}"
        )


class SinkOpenError(SobelError):
    """No codec/container candidate could open every output channel."""


class WorkerFailure(SobelError):
    """A region worker could not be launched or did not complete."""


class PartitionError(SobelError):
    """Regions do not cover the interior exactly once."""

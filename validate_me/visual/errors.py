"""Error types raised by the visual regression components."""

from __future__ import annotations


class VisualRegressionError(Exception):
    """Base class for visual regression failures."""


class NotFoundError(VisualRegressionError):
    """A referenced baseline or capture file does not exist."""


class DimensionMismatchError(VisualRegressionError):
    def __init__(self, baseline_size: tuple[int, int], current_size: tuple[int, int]):
        self.baseline_size = baseline_size
        self.current_size = current_size
        super().__init__(
            "Dimension mismatch: baseline %dx%d, current %dx%d"
            % (*baseline_size, *current_size)
        )


class DecodeError(VisualRegressionError):
    """Image data could not be read or decoded."""


class StorageError(VisualRegressionError):
    """Baseline, diff or report storage could not be created or written."""

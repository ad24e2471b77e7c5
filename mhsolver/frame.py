"""
Frame Data Structures

Immutable pixel buffers handed to the core by the capture collaborator,
and the ephemeral per-cell views derived from them.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class DisplayGeometry:
    """Size of the active screen in pixels."""
    width: int
    height: int

    @property
    def key(self) -> str:
        """Resolution profile key, e.g. '1920x1080'."""
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Frame:
    """
    Read-only RGB(A) pixel buffer.

    Attributes:
        pixels: HxWxC uint8 array, channel order R, G, B[, A]
    """
    pixels: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Frame':
        """
        Wrap an array as an immutable frame.

        Args:
            array: HxWx3 or HxWx4 uint8 array in RGB(A) order

        Returns:
            Frame backed by a non-writeable copy of the array
        """
        if array.ndim != 3 or array.shape[2] < 3:
            raise ValueError(f"Expected HxWx3 or HxWx4 pixel array, got shape {array.shape}")
        pixels = np.array(array, dtype=np.uint8, copy=True)
        pixels.setflags(write=False)
        return cls(pixels=pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)


@dataclass(frozen=True)
class Cell:
    """One grid cell's pixels; discarded after classification."""
    row: int
    col: int
    rect: Tuple[int, int, int, int]  # (x, y, width, height) in frame coordinates
    pixels: np.ndarray

    @property
    def index(self) -> int:
        """Row-major position 0-8."""
        return self.row * 3 + self.col

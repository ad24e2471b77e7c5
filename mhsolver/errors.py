"""
Solver Errors

Exception taxonomy for the detection/execution pipeline.

Only geometry/config problems and an exhausted unknown budget escalate to
session failure. Signature extraction and classification never raise on
pixel content; they degrade to Unknown instead.
"""

from typing import Optional, Tuple


class SolverError(Exception):
    """Base class for all solver errors."""


class NotPresent(SolverError):
    """The puzzle overlay is not on screen (nothing to solve yet)."""

    def __init__(self, reasons: Optional[list] = None):
        self.reasons = list(reasons or [])
        super().__init__(
            "Minigame not detected. Make sure the game is visible and the 3x3 grid is on screen."
        )


class OutOfBounds(SolverError):
    """Grid geometry exceeds the captured frame (misconfiguration)."""

    def __init__(self, rect: Tuple[int, int, int, int], frame_size: Tuple[int, int]):
        self.rect = rect
        self.frame_size = frame_size
        x, y, w, h = rect
        fw, fh = frame_size
        super().__init__(
            f"Grid geometry out of bounds: rect ({x}, {y}, {w}x{h}) exceeds frame {fw}x{fh}"
        )


class DetectionFailure(SolverError):
    """Too many cells could not be classified."""

    def __init__(self, unknown_count: int, total: int = 9):
        self.unknown_count = unknown_count
        self.total = total
        super().__init__(f"Detection failed: {unknown_count} of {total} cells unknown")


class InjectionFailure(SolverError):
    """A single synthetic key press could not be delivered."""

    def __init__(self, symbol, position: int = -1, cause: Optional[BaseException] = None):
        self.symbol = symbol
        self.position = position
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to press key {symbol} (position {position + 1}/9){detail}")


class SessionBusy(SolverError):
    """A session is already active."""

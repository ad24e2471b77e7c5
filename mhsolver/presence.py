"""
Presence Validation

Checks that the puzzle overlay is actually on screen before spending
time on cell detection.

Three color classes are measured over the grid rectangle: cyan glyph
pixels, dark-blue background and mid-blue grid lines. The puzzle is
present only when all three are within their expected ranges; any one
signal alone matches too much unrelated screen content.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .frame import Frame
from .geometry import GridRect, grid_pixels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresenceThresholds:
    """Minimum (and for glyphs, maximum) class fractions."""
    min_foreground_fraction: float = 0.002
    max_foreground_fraction: float = 0.30
    min_foreground_pixels: int = 150
    min_background_fraction: float = 0.25
    min_border_fraction: float = 0.01


DEFAULT_THRESHOLDS = PresenceThresholds()


@dataclass
class PresenceResult:
    """Outcome of a presence check."""
    present: bool
    foreground_fraction: float
    background_fraction: float
    border_fraction: float
    foreground_pixels: int
    total_pixels: int
    reasons: List[str] = field(default_factory=list)


def classify_pixels(pixels: np.ndarray):
    """
    Split pixels into the three disjoint color classes.

    Args:
        pixels: HxWxC uint8 array in RGB(A) order

    Returns:
        Tuple of boolean masks (foreground, background, border)
    """
    r = pixels[..., 0].astype(np.int16)
    g = pixels[..., 1].astype(np.int16)
    b = pixels[..., 2].astype(np.int16)

    brightness = r + g + b
    deviation = np.abs(r - g) + np.abs(r - b) + np.abs(g - b)

    foreground = (b > 100) & (g > 70) & (r < 140) & (brightness > 230) & (deviation > 80)
    background = (b > 20) & (b < 80) & (r < 50) & (g < 70)
    border = (b > 90) & (b < 220) & (g > 70) & (g < 180) & (r < 140) & ~foreground

    return foreground, background, border


def measure_presence(pixels: np.ndarray,
                     thresholds: PresenceThresholds = DEFAULT_THRESHOLDS) -> PresenceResult:
    """
    Evaluate the three-way presence gate over a pixel region.

    Args:
        pixels: Grid region pixels
        thresholds: Class fraction limits

    Returns:
        PresenceResult with fractions and failure reasons
    """
    total = int(pixels.shape[0] * pixels.shape[1])
    if total == 0:
        return PresenceResult(False, 0.0, 0.0, 0.0, 0, 0, ["Empty grid region"])

    foreground, background, border = classify_pixels(pixels)
    fg_count = int(np.count_nonzero(foreground))
    fg_fraction = fg_count / total
    bg_fraction = np.count_nonzero(background) / total
    border_fraction = np.count_nonzero(border) / total

    has_letters = (
        thresholds.min_foreground_fraction < fg_fraction < thresholds.max_foreground_fraction
        and fg_count > thresholds.min_foreground_pixels
    )
    has_background = bg_fraction > thresholds.min_background_fraction
    has_grid_lines = border_fraction > thresholds.min_border_fraction

    reasons = []
    if not has_letters:
        if fg_fraction >= thresholds.max_foreground_fraction:
            reasons.append("Too many cyan pixels (oversaturated)")
        else:
            reasons.append("Not enough cyan letter pixels")
    if not has_background:
        reasons.append("Wrong background color")
    if not has_grid_lines:
        reasons.append("No grid borders detected")

    return PresenceResult(
        present=has_letters and has_background and has_grid_lines,
        foreground_fraction=fg_fraction,
        background_fraction=bg_fraction,
        border_fraction=border_fraction,
        foreground_pixels=fg_count,
        total_pixels=total,
        reasons=reasons,
    )


def validate_presence(frame: Frame, rect: GridRect,
                      thresholds: PresenceThresholds = DEFAULT_THRESHOLDS) -> PresenceResult:
    """
    Check whether the puzzle is on screen at the grid rectangle.

    Args:
        frame: Captured frame
        rect: Grid placement
        thresholds: Class fraction limits

    Returns:
        PresenceResult

    Raises:
        OutOfBounds: If the grid exceeds the frame
    """
    result = measure_presence(grid_pixels(frame, rect), thresholds)

    logger.debug(
        f"Presence: cyan {result.foreground_fraction * 100:.1f}% ({result.foreground_pixels} px), "
        f"background {result.background_fraction * 100:.1f}%, "
        f"borders {result.border_fraction * 100:.1f}% -> {result.present}"
    )
    if not result.present:
        logger.info(f"Minigame not present: {'; '.join(result.reasons)}")

    return result

"""
Grid Geometry

Locates the 3x3 puzzle grid on screen and slices frames into cells.

The grid position depends only on display geometry and configuration,
never on frame content, so it is computed before anything is captured.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from .errors import OutOfBounds
from .frame import Cell, DisplayGeometry, Frame
from .settings import GridConfig

logger = logging.getLogger(__name__)


GRID_ROWS = 3
GRID_COLS = 3

# Preset geometry per display resolution.
# Top-left cell = centred cell position + offset.
# Cells are 5px (1080p) and 6px (1440p) smaller than the 100px and 133px
# windows the game layout suggests, so that neighbours never overlap. In
# exchange the last row and column lose that many pixels at their far edge.
# Glyphs sit well inside their cells, so only border margin is lost.
RESOLUTION_PROFILES: Dict[str, Dict[str, int]] = {
    "1920x1080": {
        "cell_size": 95,
        "cell_spacing": 0,
        "offset_x": -110,
        "offset_y": -90,
    },
    "2560x1440": {
        "cell_size": 127,
        "cell_spacing": 0,
        "offset_x": -147,
        "offset_y": -120,
    },
}

# Reference profile scaled for displays without a preset
REFERENCE_PROFILE = "1920x1080"
REFERENCE_WIDTH = 1920
REFERENCE_HEIGHT = 1080

# Margin around the grid in the diagnostic capture
DEBUG_CAPTURE_MARGIN = 10


@dataclass(frozen=True)
class GridRect:
    """Grid placement in frame coordinates."""
    x: int
    y: int
    cell_size: int
    cell_spacing: int

    @property
    def stride(self) -> int:
        """Distance between the origins of adjacent cells."""
        return self.cell_size + self.cell_spacing

    @property
    def extent(self) -> int:
        """Grid edge length: 3 cells plus 2 gaps."""
        return GRID_COLS * self.cell_size + (GRID_COLS - 1) * self.cell_spacing

    @property
    def width(self) -> int:
        return self.extent

    @property
    def height(self) -> int:
        return self.extent

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        """(x, y, width, height)"""
        return (self.x, self.y, self.width, self.height)


def resolve_profile(display: DisplayGeometry, config: GridConfig) -> Dict[str, int]:
    """
    Pick the geometry profile for a display, with config overrides applied.

    Args:
        display: Active screen size
        config: Solver configuration

    Returns:
        Dict with cell_size, cell_spacing, offset_x, offset_y
    """
    key = display.key if config.resolution_profile == "auto" else config.resolution_profile

    if key in RESOLUTION_PROFILES:
        profile = dict(RESOLUTION_PROFILES[key])
    else:
        # No preset - scale the reference profile to the display
        reference = RESOLUTION_PROFILES[REFERENCE_PROFILE]
        scale_x = display.width / REFERENCE_WIDTH
        scale_y = display.height / REFERENCE_HEIGHT
        scale_min = min(scale_x, scale_y)
        profile = {
            "cell_size": max(1, int(round(reference["cell_size"] * scale_min))),
            "cell_spacing": int(round(reference["cell_spacing"] * scale_min)),
            "offset_x": int(round(reference["offset_x"] * scale_x)),
            "offset_y": int(round(reference["offset_y"] * scale_y)),
        }
        logger.debug(f"No preset for {key}, using proportional geometry: {profile}")

    for name in ("cell_size", "cell_spacing", "offset_x", "offset_y"):
        override = getattr(config, name)
        if override is not None:
            profile[name] = int(override)

    return profile


def locate_grid(display: DisplayGeometry, config: GridConfig) -> GridRect:
    """
    Compute the grid rectangle for a display.

    Args:
        display: Active screen size
        config: Solver configuration

    Returns:
        GridRect with top-left clamped to >= 0
    """
    profile = resolve_profile(display, config)
    cell_size = profile["cell_size"]
    if cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")
    if profile["cell_spacing"] < 0:
        raise ValueError(f"cell_spacing must be >= 0, got {profile['cell_spacing']}")

    top_left_x = (display.width - cell_size) // 2 + profile["offset_x"]
    top_left_y = (display.height - cell_size) // 2 + profile["offset_y"]

    return GridRect(
        x=max(0, top_left_x),
        y=max(0, top_left_y),
        cell_size=cell_size,
        cell_spacing=profile["cell_spacing"],
    )


def cell_rects(rect: GridRect, padding: int = 0) -> List[List[Tuple[int, int, int, int]]]:
    """
    Rectangles of the 9 cells, inset by padding.

    Args:
        rect: Grid placement
        padding: Pixels trimmed from every edge of each cell

    Returns:
        [row][col] = (x, y, width, height)

    Raises:
        ValueError: If padding leaves no pixels
    """
    inner = rect.cell_size - 2 * padding
    if inner <= 0:
        raise ValueError(f"Edge padding {padding} leaves no pixels in a {rect.cell_size}px cell")

    rects = []
    for row in range(GRID_ROWS):
        row_rects = []
        for col in range(GRID_COLS):
            x = rect.x + col * rect.stride + padding
            y = rect.y + row * rect.stride + padding
            row_rects.append((x, y, inner, inner))
        rects.append(row_rects)
    return rects


def check_bounds(frame: Frame, rect: GridRect) -> None:
    """
    Ensure the grid lies inside the frame.

    Raises:
        OutOfBounds: If any part of the grid is outside the frame
    """
    if rect.x + rect.width > frame.width or rect.y + rect.height > frame.height:
        raise OutOfBounds(rect.bounds, frame.size)


def grid_pixels(frame: Frame, rect: GridRect) -> np.ndarray:
    """Pixels of the whole grid rectangle (read-only view)."""
    check_bounds(frame, rect)
    return frame.pixels[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width]


def extract_cells(frame: Frame, rect: GridRect, padding: int = 0) -> List[Cell]:
    """
    Slice a frame into the 9 grid cells.

    Args:
        frame: Captured frame
        rect: Grid placement from locate_grid()
        padding: Pixels trimmed from every cell edge

    Returns:
        9 Cells in row-major order

    Raises:
        OutOfBounds: If the grid exceeds the frame
    """
    check_bounds(frame, rect)

    cells = []
    for row, row_rects in enumerate(cell_rects(rect, padding)):
        for col, (x, y, w, h) in enumerate(row_rects):
            cells.append(Cell(
                row=row,
                col=col,
                rect=(x, y, w, h),
                pixels=frame.pixels[y:y + h, x:x + w],
            ))
    return cells


def crop_bounds(frame: Frame, rect: GridRect,
                margin: int = DEBUG_CAPTURE_MARGIN) -> Tuple[int, int, int, int]:
    """(x1, y1, x2, y2) of the grid plus a margin, clamped to the frame."""
    x1 = max(0, rect.x - margin)
    y1 = max(0, rect.y - margin)
    x2 = min(frame.width, rect.x + rect.width + margin)
    y2 = min(frame.height, rect.y + rect.height + margin)
    return (x1, y1, x2, y2)


def crop_region(frame: Frame, rect: GridRect, margin: int = DEBUG_CAPTURE_MARGIN) -> np.ndarray:
    """
    Grid pixels plus a margin, clamped to the frame.

    Used for the diagnostic full-grid capture.
    """
    x1, y1, x2, y2 = crop_bounds(frame, rect, margin)
    return frame.pixels[y1:y2, x1:x2]

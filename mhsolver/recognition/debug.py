"""
Detection Debug Utilities

Functions for writing the diagnostic artifacts of a detection: the
captured grid, each cell, and an annotated copy of the grid.
"""

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .result import DetectionReport

logger = logging.getLogger(__name__)


# Debug settings
DEBUG_DIR = Path.home() / "Documents" / "MHSolver_Debug"
MAX_ANNOTATED_IMAGES = 10

# Confidence thresholds for coloring
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5


def _to_image(pixels: np.ndarray) -> Image.Image:
    """Convert an RGB(A) array to a PIL image."""
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))


def save_detection_artifacts(report: DetectionReport, directory: Optional[Path] = None) -> List[Path]:
    """
    Save the full-grid capture and the 9 cell images.

    Files: debug_capture.png, debug_cell_<row>_<col>.png

    Args:
        report: Detection report with intermediate buffers
        directory: Output directory (default DEBUG_DIR)

    Returns:
        Paths written
    """
    directory = Path(directory or DEBUG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    if report.grid_image is not None and report.grid_image.size:
        path = directory / "debug_capture.png"
        _to_image(report.grid_image).save(path, "PNG")
        written.append(path)

    for index, pixels in enumerate(report.cell_images):
        if pixels.size == 0:
            continue
        row, col = divmod(index, 3)
        path = directory / f"debug_cell_{row}_{col}.png"
        _to_image(pixels).save(path, "PNG")
        written.append(path)

    logger.info(f"Debug images saved to: {directory}")
    return written


def save_annotated_grid(report: DetectionReport, path: Path) -> None:
    """
    Save the grid capture with detected letters drawn over each cell.

    Annotations include:
    - Corrected letter per cell, colored by confidence
    - Raw classifier letter in brackets when the correction changed it
    - Summary line with unknown count and processing time

    Args:
        report: Detection report
        path: Output file path
    """
    if report.grid_image is None:
        logger.warning("No grid image in report, skipping annotation")
        return

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    debug_img = _to_image(report.grid_image).convert("RGB")
    draw = ImageDraw.Draw(debug_img)

    # Try to load a font, fall back to default
    try:
        font = ImageFont.truetype("arial.ttf", 14)
    except OSError:
        font = ImageFont.load_default()

    _, _, grid_w, _ = report.grid_rect
    cell_w = grid_w / 3
    margin_x, margin_y = report.grid_image_origin
    image_h = debug_img.size[1]

    for diag in report.diagnostics:
        x = margin_x + diag.col * cell_w + 4
        y = margin_y + diag.row * cell_w + 4
        color = get_confidence_color(diag.corrected.confidence)
        text = diag.corrected.symbol.value
        if diag.raw.symbol is not diag.corrected.symbol:
            text += f" [{diag.raw.symbol.value}]"
        draw.text((x, y), text, fill=color, font=font)

    summary = f"Unknown: {report.grid.unknown_count}/9, Time: {report.processing_time_ms:.1f}ms"
    draw.text((2, image_h - 16), summary, fill="#ffffff", font=font)

    debug_img.save(path, "PNG")
    _cleanup_annotated_images(path.parent)


def _cleanup_annotated_images(directory: Path) -> None:
    """Remove old annotated images, keeping only the most recent MAX_ANNOTATED_IMAGES."""
    annotated = sorted(
        directory.glob("annotated_*.png"),
        key=lambda p: p.stat().st_mtime,
        reverse=True
    )

    for old_file in annotated[MAX_ANNOTATED_IMAGES:]:
        try:
            old_file.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {old_file}: {e}")


def get_confidence_color(confidence: float) -> str:
    """
    Get color code for confidence level.

    Args:
        confidence: Confidence value 0.0-1.0

    Returns:
        Hex color code string
    """
    if confidence >= HIGH_CONFIDENCE:
        return "#4CAF50"  # Green
    elif confidence >= MEDIUM_CONFIDENCE:
        return "#FFC107"  # Yellow
    else:
        return "#d32f2f"  # Red

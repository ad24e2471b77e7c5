"""
Signature Extraction

Reduces one cell's pixels to a compact geometric signature: foreground
pixel count, bounding-box aspect ratio, mass balance around the box
centre, and whether the glyph has an empty centre.
"""

import numpy as np

from .result import Signature


# Foreground (cyan glyph) color rule
MAX_RED = 120
MIN_GREEN = 100
MIN_BLUE = 120
MIN_GREEN_PLUS_BLUE = 230
MIN_CHANNEL_DEVIATION = 60  # rejects grey anti-aliased border pixels

# Below this many foreground pixels the signature is neutral
MIN_EVIDENCE_PIXELS = 80

# Hole test: share of pixels within min(w, h) / 4 of the box centre
HOLE_RADIUS_FACTOR = 0.25
HOLE_FRACTION = 0.15


def foreground_mask(pixels: np.ndarray) -> np.ndarray:
    """
    Mark glyph pixels in a cell.

    Args:
        pixels: HxWxC uint8 array in RGB(A) order

    Returns:
        HxW boolean mask
    """
    r = pixels[..., 0].astype(np.int16)
    g = pixels[..., 1].astype(np.int16)
    b = pixels[..., 2].astype(np.int16)
    deviation = np.abs(r - g) + np.abs(r - b) + np.abs(g - b)

    return (
        (r < MAX_RED)
        & (g > MIN_GREEN)
        & (b > MIN_BLUE)
        & ((g + b) > MIN_GREEN_PLUS_BLUE)
        & (deviation > MIN_CHANNEL_DEVIATION)
    )


def neutral_signature(count: int) -> Signature:
    """Signature for a cell without enough glyph pixels."""
    return Signature(cyan_pixel_count=count)


def signature_from_mask(mask: np.ndarray, min_evidence: int = MIN_EVIDENCE_PIXELS) -> Signature:
    """
    Compute a signature from a foreground mask.

    Args:
        mask: HxW boolean mask of glyph pixels
        min_evidence: Minimum foreground pixels for a real signature

    Returns:
        Signature (neutral when count < min_evidence)
    """
    ys, xs = np.nonzero(mask)
    total = int(xs.size)
    if total < min_evidence or total == 0:
        return neutral_signature(total)

    min_x, max_x = int(xs.min()), int(xs.max())
    min_y, max_y = int(ys.min()), int(ys.max())
    box_width = max_x - min_x + 1
    box_height = max_y - min_y + 1

    # Balance is measured around the glyph's own centre, not the cell's
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2

    top = int(np.count_nonzero(ys < center_y))
    left = int(np.count_nonzero(xs < center_x))

    radius = min(box_width, box_height) * HOLE_RADIUS_FACTOR
    # Square window around the box centre
    in_window = (np.abs(xs - center_x) < radius) & (np.abs(ys - center_y) < radius)
    center_pixels = int(np.count_nonzero(in_window))

    return Signature(
        cyan_pixel_count=total,
        aspect_ratio=box_width / box_height,
        top_heavy=top / total,
        bottom_heavy=(total - top) / total,
        left_heavy=left / total,
        right_heavy=(total - left) / total,
        center_hole=center_pixels < total * HOLE_FRACTION,
        bbox=(min_x, min_y, box_width, box_height),
    )


def extract_signature(pixels: np.ndarray, min_evidence: int = MIN_EVIDENCE_PIXELS) -> Signature:
    """
    Compute the signature of one cell.

    Never raises on pixel content; empty or non-glyph cells give a
    neutral signature.

    Args:
        pixels: HxWxC uint8 array in RGB(A) order
        min_evidence: Minimum foreground pixels for a real signature

    Returns:
        Signature
    """
    if pixels.size == 0:
        return neutral_signature(0)
    return signature_from_mask(foreground_mask(pixels), min_evidence)

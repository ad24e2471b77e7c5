"""
Test script for presence validation

Tests:
1. Puzzle frame is detected as present
2. Dark, saturated and desktop frames are rejected with reasons
3. Grid-line pixels never count as glyph pixels

Usage:
    python test_presence.py
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from mhsolver.frame import Frame
from mhsolver.geometry import locate_grid
from mhsolver.presence import PresenceThresholds, classify_pixels, measure_presence, validate_presence
from mhsolver.settings import GridConfig
from synthetic import (
    BACKGROUND,
    BORDER,
    DISPLAY,
    GLYPH,
    GREY,
    blank_frame,
    dark_frame,
    draw_grid,
    puzzle_frame,
)


RECT = locate_grid(DISPLAY, GridConfig())


def test_puzzle_present():
    """A drawn puzzle passes all three checks."""
    print("\n" + "="*60)
    print("TEST: Puzzle Present")
    print("="*60)

    result = validate_presence(puzzle_frame(), RECT)
    print(f"  fg={result.foreground_fraction:.3f} bg={result.background_fraction:.3f} "
          f"border={result.border_fraction:.3f}")

    assert result.present
    assert result.reasons == []
    assert result.total_pixels == RECT.extent * RECT.extent
    print("  [PASS] Puzzle present")


def test_dark_frame_absent():
    """An all-dark frame is never present."""
    result = validate_presence(dark_frame(), RECT)
    assert not result.present
    assert "Not enough cyan letter pixels" in result.reasons
    assert "Wrong background color" in result.reasons


def test_desktop_frame_absent():
    canvas = blank_frame()
    result = validate_presence(Frame.from_array(canvas), RECT)
    assert not result.present


def test_oversaturated_absent():
    """A grid flooded with cyan is rejected."""
    canvas = blank_frame()
    draw_grid(canvas, RECT)
    canvas[RECT.y:RECT.y + RECT.extent, RECT.x:RECT.x + RECT.extent // 2] = GLYPH
    result = validate_presence(Frame.from_array(canvas), RECT)

    assert not result.present
    assert "Too many cyan pixels (oversaturated)" in result.reasons


def test_no_glyphs_absent():
    result = validate_presence(puzzle_frame(glyphs=[False] * 9), RECT)
    assert not result.present
    assert result.foreground_pixels == 0


def test_no_grid_lines_absent():
    canvas = blank_frame()
    draw_grid(canvas, RECT)
    region = canvas[RECT.y:RECT.y + RECT.extent, RECT.x:RECT.x + RECT.extent]
    region[np.all(region == BORDER, axis=-1)] = BACKGROUND
    result = validate_presence(Frame.from_array(canvas), RECT)

    assert not result.present
    assert result.reasons == ["No grid borders detected"]


def test_color_classes_disjoint():
    """Grid-line and grey pixels are not glyph pixels; classes never overlap."""
    pixels = np.array([[GLYPH, BORDER, BACKGROUND, GREY]], dtype=np.uint8)
    foreground, background, border = classify_pixels(pixels)

    assert foreground.tolist() == [[True, False, False, False]]
    assert background.tolist() == [[False, False, True, False]]
    assert border[0, 1]
    assert not np.any(foreground & border)
    assert not np.any(foreground & background)


def test_custom_thresholds():
    pixels = np.asarray(puzzle_frame().pixels[RECT.y:RECT.y + RECT.extent, RECT.x:RECT.x + RECT.extent])
    strict = PresenceThresholds(min_background_fraction=0.99)
    assert measure_presence(pixels).present
    assert not measure_presence(pixels, strict).present


def test_empty_region():
    result = measure_presence(np.zeros((0, 0, 3), dtype=np.uint8))
    assert not result.present
    assert result.total_pixels == 0


def main():
    """Run all tests."""
    print("\n" + "#"*60)
    print("# PRESENCE TESTS")
    print("#"*60)
    return pytest.main([__file__, "-v"])


if __name__ == "__main__":
    sys.exit(main())

"""
Test script for signature extraction

Tests:
1. Aspect ratio and mass balance of drawn glyphs
2. Centre-hole detection
3. Neutral signature below the evidence floor
4. Foreground colour rule

Usage:
    python test_signature.py
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from mhsolver.recognition import MIN_EVIDENCE_PIXELS, extract_signature, foreground_mask, signature_from_mask
from synthetic import BORDER, GLYPH, GREY, cell_canvas, draw_block, draw_ring


def test_solid_block_signature():
    """Solid block: aspect from its box, balanced, no hole."""
    print("\n" + "="*60)
    print("TEST: Solid Block")
    print("="*60)

    canvas = draw_block(cell_canvas(), 20, 10, 30, 40)
    sig = extract_signature(canvas)
    print(f"  {sig}")

    assert sig.cyan_pixel_count == 1200
    assert sig.bbox == (20, 10, 30, 40)
    assert sig.aspect_ratio == pytest.approx(30 / 40)
    assert sig.left_heavy == pytest.approx(0.5)
    assert sig.top_heavy == pytest.approx(0.5)
    assert sig.left_heavy + sig.right_heavy == pytest.approx(1.0)
    assert sig.top_heavy + sig.bottom_heavy == pytest.approx(1.0)
    assert not sig.center_hole
    print("  [PASS] Solid block")


def test_aspect_matches_bbox():
    """aspect_ratio is always bbox width / bbox height."""
    for w, h in [(10, 40), (40, 10), (25, 25), (60, 20)]:
        canvas = draw_block(cell_canvas(), 5, 5, w, h)
        sig = extract_signature(canvas)
        _, _, box_w, box_h = sig.bbox
        assert (box_w, box_h) == (w, h)
        assert sig.aspect_ratio == pytest.approx(box_w / box_h)


def test_ring_has_hole():
    canvas = draw_ring(cell_canvas(), 43, 43, 25, thickness=6)
    sig = extract_signature(canvas)
    assert sig.center_hole
    assert sig.aspect_ratio == pytest.approx(1.0, abs=0.05)


def test_hole_window_is_square():
    """Mass in the corners of the centre window fills the hole."""
    mask = np.zeros((40, 40), dtype=bool)
    mask[0, :] = mask[-1, :] = True
    mask[:, 0] = mask[:, -1] = True
    for y, x in [(10, 10), (10, 27), (27, 10), (27, 27)]:
        mask[y:y + 3, x:x + 3] = True

    sig = signature_from_mask(mask)
    assert sig.cyan_pixel_count == 192
    assert not sig.center_hole

    outline_only = mask.copy()
    outline_only[1:-1, 1:-1] = False
    assert signature_from_mask(outline_only).center_hole


def test_left_heavy_glyph():
    """Stem plus a thin arm is left-heavy."""
    canvas = cell_canvas()
    draw_block(canvas, 20, 10, 12, 50)   # stem
    draw_block(canvas, 32, 10, 18, 4)    # top arm
    sig = extract_signature(canvas)
    assert sig.left_heavy > 0.6
    assert sig.right_heavy < 0.4


def test_neutral_below_evidence_floor():
    """Fewer than MIN_EVIDENCE_PIXELS gives neutral values."""
    canvas = draw_block(cell_canvas(), 10, 10, 5, 5)
    sig = extract_signature(canvas)

    assert sig.cyan_pixel_count == 25 < MIN_EVIDENCE_PIXELS
    assert sig.aspect_ratio == 1.0
    assert sig.left_heavy == sig.right_heavy == 0.5
    assert sig.top_heavy == sig.bottom_heavy == 0.5
    assert not sig.center_hole
    assert sig.bbox is None


def test_empty_cell():
    assert extract_signature(cell_canvas()).cyan_pixel_count == 0
    assert extract_signature(np.zeros((0, 0, 3), dtype=np.uint8)).cyan_pixel_count == 0


def test_foreground_rule():
    """Cyan is foreground; grid-line and grey pixels are not."""
    pixels = np.array([[GLYPH, BORDER, GREY, (255, 255, 255), (0, 0, 0)]], dtype=np.uint8)
    assert foreground_mask(pixels).tolist() == [[True, False, False, False, False]]


def test_rgba_input():
    canvas = draw_block(cell_canvas(), 20, 10, 30, 40)
    rgba = np.dstack([canvas, np.full(canvas.shape[:2], 255, dtype=np.uint8)])
    assert extract_signature(rgba) == extract_signature(canvas)


def test_custom_evidence_floor():
    mask = np.zeros((20, 20), dtype=bool)
    mask[5:10, 5:10] = True
    assert signature_from_mask(mask, min_evidence=10).bbox == (5, 5, 5, 5)
    assert signature_from_mask(mask, min_evidence=100).bbox is None


def main():
    """Run all tests."""
    print("\n" + "#"*60)
    print("# SIGNATURE TESTS")
    print("#"*60)
    return pytest.main([__file__, "-v"])


if __name__ == "__main__":
    sys.exit(main())

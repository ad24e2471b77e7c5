"""
Test script for grid geometry

Tests:
1. Resolution profile lookup and proportional fallback
2. Cell rectangles (non-overlapping, row-major, exact coverage)
3. Bounds checking
4. Cell extraction from frames

Usage:
    python test_geometry.py
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from mhsolver.errors import OutOfBounds
from mhsolver.frame import DisplayGeometry, Frame
from mhsolver.geometry import (
    GridRect,
    cell_rects,
    check_bounds,
    crop_bounds,
    extract_cells,
    locate_grid,
    resolve_profile,
)
from mhsolver.settings import GridConfig
from synthetic import DISPLAY, blank_frame


def _overlaps(a, b) -> bool:
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah


def test_reference_profile():
    """1920x1080 preset places the grid left of and above centre."""
    print("\n" + "="*60)
    print("TEST: Reference Profile")
    print("="*60)

    rect = locate_grid(DISPLAY, GridConfig())
    print(f"  Grid: ({rect.x}, {rect.y}) size {rect.cell_size} extent {rect.extent}")

    assert rect.cell_size == 95
    assert rect.cell_spacing == 0
    assert (rect.x, rect.y) == (802, 402)
    assert rect.extent == 285
    print("  [PASS] Reference profile")


def test_1440p_profile():
    rect = locate_grid(DisplayGeometry(2560, 1440), GridConfig())
    assert rect.cell_size == 127
    assert (rect.x, rect.y) == ((2560 - 127) // 2 - 147, (1440 - 127) // 2 - 120)


def test_unknown_display_scales_reference():
    """Displays without a preset use the reference profile scaled."""
    display = DisplayGeometry(3840, 2160)
    profile = resolve_profile(display, GridConfig())
    print(f"  4K profile: {profile}")

    assert profile["cell_size"] == 190
    assert profile["offset_x"] == -220
    assert profile["offset_y"] == -180


def test_explicit_profile_and_overrides():
    config = GridConfig(resolution_profile="2560x1440", offset_x=0, offset_y=0)
    rect = locate_grid(DISPLAY, config)
    assert rect.cell_size == 127
    assert (rect.x, rect.y) == ((1920 - 127) // 2, (1080 - 127) // 2)


def test_top_left_clamped():
    config = GridConfig(offset_x=-5000, offset_y=-5000)
    rect = locate_grid(DISPLAY, config)
    assert (rect.x, rect.y) == (0, 0)


def test_invalid_cell_size_rejected():
    with pytest.raises(ValueError):
        locate_grid(DISPLAY, GridConfig(cell_size=0))
    with pytest.raises(ValueError):
        locate_grid(DISPLAY, GridConfig(cell_spacing=-1))


def test_cell_rects_disjoint_and_cover_grid():
    """9 rectangles never overlap and their union is the grid rectangle."""
    print("\n" + "="*60)
    print("TEST: Cell Rectangles")
    print("="*60)

    for spacing in (0, 6):
        rect = GridRect(x=100, y=50, cell_size=40, cell_spacing=spacing)
        flat = [r for row in cell_rects(rect) for r in row]
        assert len(flat) == 9

        for i in range(9):
            for j in range(i + 1, 9):
                assert not _overlaps(flat[i], flat[j]), f"cells {i} and {j} overlap"

        min_x = min(r[0] for r in flat)
        min_y = min(r[1] for r in flat)
        max_x = max(r[0] + r[2] for r in flat)
        max_y = max(r[1] + r[3] for r in flat)
        assert (min_x, min_y, max_x - min_x, max_y - min_y) == rect.bounds

        area = sum(r[2] * r[3] for r in flat)
        if spacing == 0:
            assert area == rect.width * rect.height
        else:
            assert area < rect.width * rect.height
        print(f"  spacing={spacing}: union {rect.bounds}, area {area}")

    print("  [PASS] Cell rectangles")


@pytest.mark.parametrize("width, height, pitch, window, origin", [
    (1920, 1080, 95, 100, (802, 402)),
    (2560, 1440, 127, 133, (1069, 536)),
])
def test_presets_follow_game_layout(width, height, pitch, window, origin):
    """Presets keep the game's cell origins and pitch; only the far edge is shorter."""
    rect = locate_grid(DisplayGeometry(width, height), GridConfig())
    assert (rect.x, rect.y) == origin
    assert rect.stride == pitch

    flat = [r for row in cell_rects(rect) for r in row]
    for i in range(9):
        for j in range(i + 1, 9):
            assert not _overlaps(flat[i], flat[j])

    layout_extent = 2 * pitch + window
    assert layout_extent - rect.extent == window - pitch


def test_cell_rects_row_major():
    rect = GridRect(x=0, y=0, cell_size=10, cell_spacing=2)
    rects = cell_rects(rect)
    assert rects[0][1] == (12, 0, 10, 10)
    assert rects[1][0] == (0, 12, 10, 10)
    assert rects[2][2] == (24, 24, 10, 10)


def test_padding_shrinks_cells():
    rect = GridRect(x=0, y=0, cell_size=20, cell_spacing=0)
    assert cell_rects(rect, padding=4)[0][0] == (4, 4, 12, 12)
    with pytest.raises(ValueError):
        cell_rects(rect, padding=10)


def test_check_bounds():
    frame = Frame.from_array(np.zeros((100, 100, 3), dtype=np.uint8))
    check_bounds(frame, GridRect(x=10, y=10, cell_size=30, cell_spacing=0))

    with pytest.raises(OutOfBounds) as info:
        check_bounds(frame, GridRect(x=20, y=0, cell_size=30, cell_spacing=0))
    assert info.value.frame_size == (100, 100)
    assert "out of bounds" in str(info.value)


def test_extract_cells_row_major():
    """Cells are returned row-major with the right pixels."""
    canvas = blank_frame(DisplayGeometry(60, 60), color=(0, 0, 0))
    for index in range(9):
        row, col = divmod(index, 3)
        canvas[row * 20:(row + 1) * 20, col * 20:(col + 1) * 20] = index * 10
    frame = Frame.from_array(canvas)

    cells = extract_cells(frame, GridRect(x=0, y=0, cell_size=20, cell_spacing=0), padding=2)
    assert [c.index for c in cells] == list(range(9))
    for cell in cells:
        assert cell.pixels.shape == (16, 16, 3)
        assert np.all(cell.pixels == cell.index * 10)


def test_frame_is_read_only():
    frame = Frame.from_array(np.zeros((10, 10, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        frame.pixels[0, 0, 0] = 1


def test_crop_bounds_clamped():
    frame = Frame.from_array(np.zeros((100, 100, 3), dtype=np.uint8))
    rect = GridRect(x=5, y=5, cell_size=30, cell_spacing=0)
    assert crop_bounds(frame, rect, margin=10) == (0, 0, 100, 100)


def main():
    """Run all tests."""
    print("\n" + "#"*60)
    print("# GEOMETRY TESTS")
    print("#"*60)
    return pytest.main([__file__, "-v"])


if __name__ == "__main__":
    sys.exit(main())

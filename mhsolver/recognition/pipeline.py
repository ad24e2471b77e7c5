"""
Detection Pipeline

Runs signature extraction, classification and correction for all 9
cells and assembles the Grid. Cells are independent, so they run on a
thread pool and are joined before row-major assembly.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..frame import Cell, Frame
from ..geometry import GridRect, crop_bounds, crop_region, extract_cells
from .base import LetterClassifier
from .correction import CorrectionMap, IDENTITY
from .result import CellDiagnostic, DetectionReport, Grid
from .signature import extract_signature

logger = logging.getLogger(__name__)


MAX_WORKERS = 9


def classify_cell(cell: Cell, classifier: LetterClassifier,
                  correction: CorrectionMap = IDENTITY) -> CellDiagnostic:
    """
    Run the per-cell pipeline.

    Args:
        cell: Cell to classify
        classifier: Glyph classifier
        correction: Post-classification relabeling

    Returns:
        CellDiagnostic with the signature, raw and corrected results
    """
    start = time.perf_counter()

    signature = extract_signature(cell.pixels)
    raw = classifier.classify(cell.pixels, signature)
    corrected = correction.apply(raw)
    scores = classifier.scores(cell.pixels, signature)

    return CellDiagnostic(
        row=cell.row,
        col=cell.col,
        signature=signature,
        raw=raw,
        corrected=corrected,
        strategy=classifier.name,
        elapsed_ms=(time.perf_counter() - start) * 1000,
        scores=scores,
    )


def classify_cells(cells: List[Cell], classifier: LetterClassifier,
                   correction: CorrectionMap = IDENTITY,
                   pool: Optional[ThreadPoolExecutor] = None) -> List[CellDiagnostic]:
    """
    Classify cells concurrently.

    Args:
        cells: Cells in row-major order
        classifier: Glyph classifier
        correction: Post-classification relabeling
        pool: Optional executor to reuse; a temporary one is created otherwise

    Returns:
        Diagnostics in the same order as cells
    """
    if pool is not None:
        return list(pool.map(lambda c: classify_cell(c, classifier, correction), cells))

    with ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="cell") as executor:
        return list(executor.map(lambda c: classify_cell(c, classifier, correction), cells))


def detect_grid(frame: Frame, rect: GridRect, classifier: LetterClassifier,
                correction: CorrectionMap = IDENTITY, padding: int = 0,
                pool: Optional[ThreadPoolExecutor] = None) -> DetectionReport:
    """
    Detect all 9 glyphs of the grid.

    Args:
        frame: Captured frame
        rect: Grid placement
        classifier: Glyph classifier
        correction: Post-classification relabeling
        padding: Pixels trimmed from every cell edge
        pool: Optional executor to reuse

    Returns:
        DetectionReport with grid, diagnostics and intermediate buffers

    Raises:
        OutOfBounds: If the grid exceeds the frame
    """
    start = time.perf_counter()

    cells = extract_cells(frame, rect, padding)
    diagnostics = classify_cells(cells, classifier, correction, pool)

    # Row-major assembly regardless of completion order
    diagnostics.sort(key=lambda d: (d.row, d.col))
    grid = Grid.from_classifications([d.corrected for d in diagnostics])

    for diag in diagnostics:
        sig = diag.signature
        logger.debug(
            f"Cell [{diag.row},{diag.col}]: pixels={sig.cyan_pixel_count} "
            f"aspect={sig.aspect_ratio:.2f} hole={sig.center_hole} "
            f"L/R={sig.left_heavy:.2f}/{sig.right_heavy:.2f} "
            f"T/B={sig.top_heavy:.2f}/{sig.bottom_heavy:.2f} "
            f"detected={diag.raw.symbol} corrected={diag.corrected.symbol}"
        )

    processing_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Grid order: {grid} ({processing_ms:.1f}ms, {grid.unknown_count} unknown)")

    x1, y1, _, _ = crop_bounds(frame, rect)

    return DetectionReport(
        grid=grid,
        diagnostics=diagnostics,
        grid_rect=rect.bounds,
        grid_image=crop_region(frame, rect),
        grid_image_origin=(rect.x - x1, rect.y - y1),
        cell_images=[cell.pixels for cell in cells],
        processing_time_ms=processing_ms,
    )

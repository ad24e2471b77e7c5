"""
Test script for glyph classification

Tests:
1. Heuristic decision tree (wide glyph, holed glyphs, evidence floor)
2. Classifier purity under both strategies
3. Template loading and overlap scoring
4. Correction map and classifier factory

Usage:
    python test_classifier.py
"""

import sys
from pathlib import Path

import cv2
import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from mhsolver.recognition import (
    ALPHABET,
    DEFAULT_CORRECTION,
    IDENTITY,
    UNKNOWN,
    Classification,
    CorrectionMap,
    GlyphTemplates,
    HeuristicClassifier,
    LetterClassifier,
    Signature,
    Symbol,
    TemplateClassifier,
    available_classifiers,
    correction_for,
    create_classifier,
    extract_signature,
    register_classifier,
)
from synthetic import GLYPH, cell_canvas, draw_block


CELL = 87


def _sig(**kwargs) -> Signature:
    values = dict(cyan_pixel_count=500)
    values.update(kwargs)
    if "left_heavy" in values and "right_heavy" not in values:
        values["right_heavy"] = 1.0 - values["left_heavy"]
    return Signature(**values)


def _block_mask(x: int, y: int, w: int, h: int) -> np.ndarray:
    mask = np.zeros((CELL, CELL), dtype=bool)
    mask[y:y + h, x:x + w] = True
    return mask


def _distinct_templates() -> GlyphTemplates:
    """One non-overlapping 20x20 block per glyph."""
    templates = GlyphTemplates()
    for i, symbol in enumerate(ALPHABET):
        row, col = divmod(i, 4)
        templates.add(symbol, _block_mask(col * 21, row * 40, 20, 20))
    return templates


# =============================================================================
# Heuristic strategy
# =============================================================================

def test_wide_glyph_is_w():
    """Aspect 1.4, balanced, no hole -> W."""
    print("\n" + "="*60)
    print("TEST: Heuristic W")
    print("="*60)

    result = HeuristicClassifier().classify_signature(_sig(aspect_ratio=1.4, left_heavy=0.5))
    print(f"  {result}")
    assert result.symbol is Symbol.W
    assert result.confidence == pytest.approx(0.9)
    print("  [PASS] Heuristic W")


def test_narrow_holed_left_heavy_is_d():
    """Aspect 0.8 with a hole, left 0.62, right 0.38 -> D."""
    sig = _sig(aspect_ratio=0.8, center_hole=True, left_heavy=0.62, right_heavy=0.38)
    result = HeuristicClassifier().classify_signature(sig)
    assert result.symbol is Symbol.D
    assert result.confidence == pytest.approx(0.8)


@pytest.mark.parametrize("kwargs, expected", [
    (dict(aspect_ratio=0.8, center_hole=True, left_heavy=0.5), Symbol.Q),
    (dict(aspect_ratio=1.0, center_hole=True, left_heavy=0.5), Symbol.A),
    (dict(aspect_ratio=0.7, left_heavy=0.7), Symbol.E),
    (dict(aspect_ratio=0.7, left_heavy=0.57), Symbol.R),
    (dict(aspect_ratio=0.9, left_heavy=0.5), Symbol.S),
    (dict(aspect_ratio=1.28, left_heavy=0.35), Symbol.W),
    (dict(aspect_ratio=2.5, left_heavy=0.7), Symbol.E),
    (dict(aspect_ratio=0.1, left_heavy=0.6), Symbol.D),
    (dict(aspect_ratio=0.1, left_heavy=0.4), Symbol.S),
])
def test_heuristic_branches(kwargs, expected):
    assert HeuristicClassifier().classify_signature(_sig(**kwargs)).symbol is expected


def test_unreliable_aspect_low_confidence():
    result = HeuristicClassifier().classify_signature(_sig(aspect_ratio=3.0, left_heavy=0.5))
    assert result.confidence == pytest.approx(0.3)


def test_below_evidence_is_unknown():
    """Neutral signature always maps to Unknown."""
    result = HeuristicClassifier().classify_signature(Signature(cyan_pixel_count=10))
    assert result.is_unknown
    assert result == UNKNOWN
    assert result.confidence == 0.0


def test_heuristic_on_pixels():
    canvas = draw_block(cell_canvas(), 10, 30, 45, 30)
    classifier = HeuristicClassifier()
    assert classifier.classify(canvas, extract_signature(canvas)).symbol is Symbol.W


# =============================================================================
# Purity
# =============================================================================

@pytest.mark.parametrize("strategy", ["heuristic", "template"])
def test_classifier_is_pure(strategy):
    """Same input gives the same output, repeatedly."""
    if strategy == "template":
        classifier = TemplateClassifier(templates=_distinct_templates())
    else:
        classifier = HeuristicClassifier()

    canvas = draw_block(cell_canvas(), 21, 0, 20, 20)
    before = canvas.copy()
    signature = extract_signature(canvas)
    results = {classifier.classify(canvas, signature) for _ in range(5)}

    assert len(results) == 1
    assert np.array_equal(canvas, before)


# =============================================================================
# Template strategy
# =============================================================================

def test_template_exact_match():
    """A cell matching one template's block scores 1.0 for it."""
    print("\n" + "="*60)
    print("TEST: Template Match")
    print("="*60)

    classifier = TemplateClassifier(templates=_distinct_templates())
    canvas = draw_block(cell_canvas(), 21, 0, 20, 20)  # W's block
    signature = extract_signature(canvas)

    result = classifier.classify(canvas, signature)
    scores = classifier.scores(canvas, signature)
    print(f"  {result}, scores={scores}")

    assert result.symbol is Symbol.W
    assert result.confidence == pytest.approx(1.0)
    assert scores["W"] == pytest.approx(1.0)
    assert scores["Q"] == 0.0
    print("  [PASS] Template match")


def test_template_low_score_unknown():
    """Best overlap under the minimum score gives Unknown."""
    classifier = TemplateClassifier(templates=_distinct_templates())
    canvas = cell_canvas()
    draw_block(canvas, 0, 0, 5, 20)       # 25% of Q's block
    draw_block(canvas, 50, 60, 30, 20)    # evidence outside every template
    result = classifier.classify(canvas, extract_signature(canvas))
    assert result.is_unknown


def test_template_tie_prefers_alphabet_order():
    templates = GlyphTemplates()
    templates.add(Symbol.S, _block_mask(0, 0, 20, 20))
    templates.add(Symbol.E, _block_mask(0, 0, 20, 20))
    symbol, score, _ = templates.match(_block_mask(0, 0, 20, 20))
    assert symbol is Symbol.E
    assert score == pytest.approx(1.0)


def test_template_resized_to_cell():
    templates = GlyphTemplates()
    small = np.zeros((CELL // 2, CELL // 2), dtype=bool)
    small[:, :small.shape[1] // 2] = True
    templates.add(Symbol.R, small)
    symbol, score, _ = templates.match(_block_mask(0, 0, CELL // 2, CELL))
    assert symbol is Symbol.R
    assert score > 0.9


def test_template_without_templates_unknown():
    classifier = TemplateClassifier(templates=GlyphTemplates())
    canvas = draw_block(cell_canvas(), 10, 10, 30, 40)
    assert classifier.classify(canvas, extract_signature(canvas)).is_unknown
    assert classifier.scores(canvas, extract_signature(canvas)) == {}


def test_load_templates(tmp_path):
    """Grayscale masks and colour captures both load; missing files are skipped."""
    mask = np.zeros((CELL, CELL), dtype=np.uint8)
    mask[10:40, 10:40] = 255
    cv2.imwrite(str(tmp_path / "Q.png"), mask)

    capture = np.zeros((CELL, CELL, 3), dtype=np.uint8)
    capture[50:80, 50:80] = GLYPH[::-1]  # BGR on disk
    cv2.imwrite(str(tmp_path / "W.png"), capture)

    cv2.imwrite(str(tmp_path / "E.png"), np.zeros((CELL, CELL), dtype=np.uint8))

    templates = GlyphTemplates()
    count = templates.load_templates(tmp_path)

    assert count == 2
    assert not templates.is_loaded()
    assert templates.templates[Symbol.Q].sum() == 900
    assert templates.templates[Symbol.W][60, 60]
    assert Symbol.E not in templates.templates


def test_load_templates_missing_dir(tmp_path):
    assert GlyphTemplates().load_templates(tmp_path / "missing") == 0


def test_add_unknown_template_rejected():
    with pytest.raises(ValueError):
        GlyphTemplates().add(Symbol.UNKNOWN, _block_mask(0, 0, 5, 5))


# =============================================================================
# Correction map
# =============================================================================

def test_default_correction():
    assert DEFAULT_CORRECTION(Symbol.A) is Symbol.D
    assert DEFAULT_CORRECTION(Symbol.S) is Symbol.A
    assert DEFAULT_CORRECTION(Symbol.D) is Symbol.E
    assert DEFAULT_CORRECTION(Symbol.Q) is Symbol.R
    assert DEFAULT_CORRECTION(Symbol.W) is Symbol.W
    assert DEFAULT_CORRECTION(Symbol.E) is Symbol.E
    assert DEFAULT_CORRECTION(Symbol.UNKNOWN) is Symbol.UNKNOWN


def test_correction_keeps_confidence():
    corrected = DEFAULT_CORRECTION.apply(Classification(Symbol.S, 0.7))
    assert corrected == Classification(Symbol.A, 0.7)
    assert DEFAULT_CORRECTION.apply(UNKNOWN) is UNKNOWN


def test_correction_per_strategy():
    assert correction_for("heuristic") == DEFAULT_CORRECTION
    assert correction_for("template") is IDENTITY
    assert IDENTITY.is_identity
    assert not DEFAULT_CORRECTION.is_identity


def test_correction_rejects_unknown():
    with pytest.raises(ValueError):
        CorrectionMap({Symbol.UNKNOWN: Symbol.Q})
    assert CorrectionMap.from_letters({"a": "d"})(Symbol.A) is Symbol.D


# =============================================================================
# Factory
# =============================================================================

def test_factory():
    assert isinstance(create_classifier("heuristic"), HeuristicClassifier)
    assert {"heuristic", "template"} <= set(available_classifiers())
    with pytest.raises(ValueError):
        create_classifier("ocr")


def test_factory_template_dir(tmp_path):
    classifier = create_classifier("template", template_dir=str(tmp_path))
    assert isinstance(classifier, TemplateClassifier)
    assert classifier.templates.count == 0


def test_register_classifier():
    class AlwaysQ(LetterClassifier):
        @property
        def name(self) -> str:
            return "always_q"

        def classify(self, pixels, signature):
            return Classification(Symbol.Q, 1.0)

    register_classifier("always_q", AlwaysQ)
    assert create_classifier("always_q").classify(None, _sig()).symbol is Symbol.Q

    with pytest.raises(TypeError):
        register_classifier("bad", dict)


def main():
    """Run all tests."""
    print("\n" + "#"*60)
    print("# CLASSIFIER TESTS")
    print("#"*60)
    return pytest.main([__file__, "-v"])


if __name__ == "__main__":
    sys.exit(main())

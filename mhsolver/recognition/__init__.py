"""
Recognition Module for MH Grid Solver

Pluggable glyph classification for the 3x3 puzzle grid.

Usage:
    from mhsolver.recognition import create_classifier, detect_grid, correction_for

    classifier = create_classifier("heuristic")
    report = detect_grid(frame, rect, classifier, correction_for(classifier.name))

    # Row-major symbols, Symbol.UNKNOWN for unreadable cells
    letters = report.grid.letters

Example with reference templates:
    classifier = create_classifier("template", template_dir="./assets/templates")
"""

# Public API - Result types
from .result import (
    ALPHABET,
    UNKNOWN,
    CellDiagnostic,
    Classification,
    DetectionReport,
    Grid,
    Signature,
    Symbol,
)

# Public API - Base class for custom classifiers
from .base import LetterClassifier

# Public API - Factory functions
from .factory import (
    create_classifier,
    register_classifier,
    available_classifiers,
)

# Public API - Strategies
from .heuristic import HeuristicClassifier
from .template import GlyphTemplates, TemplateClassifier, DEFAULT_TEMPLATE_DIR

# Signature extraction
from .signature import (
    MIN_EVIDENCE_PIXELS,
    extract_signature,
    foreground_mask,
    signature_from_mask,
)

# Post-processing
from .correction import CorrectionMap, DEFAULT_CORRECTION, IDENTITY, correction_for

# Pipeline
from .pipeline import classify_cell, classify_cells, detect_grid

# Debug utilities
from .debug import DEBUG_DIR, save_annotated_grid, save_detection_artifacts

__all__ = [
    # Result types
    "ALPHABET",
    "UNKNOWN",
    "CellDiagnostic",
    "Classification",
    "DetectionReport",
    "Grid",
    "Signature",
    "Symbol",
    # Base class
    "LetterClassifier",
    # Factory
    "create_classifier",
    "register_classifier",
    "available_classifiers",
    # Strategies
    "HeuristicClassifier",
    "GlyphTemplates",
    "TemplateClassifier",
    "DEFAULT_TEMPLATE_DIR",
    # Signatures
    "MIN_EVIDENCE_PIXELS",
    "extract_signature",
    "foreground_mask",
    "signature_from_mask",
    # Correction
    "CorrectionMap",
    "DEFAULT_CORRECTION",
    "IDENTITY",
    "correction_for",
    # Pipeline
    "classify_cell",
    "classify_cells",
    "detect_grid",
    # Debug
    "DEBUG_DIR",
    "save_annotated_grid",
    "save_detection_artifacts",
]

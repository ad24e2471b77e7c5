"""
Heuristic Glyph Classifier

Fixed decision tree over signature features. Branches are evaluated in
priority order and the first match wins; thresholds are tuned per
distinguishing visual feature of each glyph.
"""

import logging

import numpy as np

from .base import LetterClassifier
from .result import Classification, Signature, Symbol, UNKNOWN
from .signature import MIN_EVIDENCE_PIXELS

logger = logging.getLogger(__name__)


# Sane aspect ratio range; outside it only left-mass is trusted
MIN_SANE_ASPECT = 0.15
MAX_SANE_ASPECT = 2.0

# W is the only glyph this wide
WIDE_ASPECT = 1.30

# Confidence per branch
CONFIDENCE_UNRELIABLE = 0.3
CONFIDENCE_WIDE = 0.9
CONFIDENCE_PRIMARY = 0.8
CONFIDENCE_SECONDARY = 0.7
CONFIDENCE_FALLBACK = 0.5
CONFIDENCE_DEFAULT = 0.4


class HeuristicClassifier(LetterClassifier):
    """
    Decision-tree classifier over Signature features.

    Holed glyphs: A, D, Q. Holeless glyphs: E, R, S. W is caught by
    width alone before the hole test.
    """

    def __init__(self, min_evidence: int = MIN_EVIDENCE_PIXELS):
        self._min_evidence = min_evidence

    @property
    def name(self) -> str:
        return "heuristic"

    def configure(self, **kwargs) -> None:
        """
        Configure classifier parameters.

        Args:
            min_evidence: Foreground pixels required for a real answer
        """
        if 'min_evidence' in kwargs:
            self._min_evidence = int(kwargs['min_evidence'])

    def classify(self, pixels: np.ndarray, signature: Signature) -> Classification:
        return self.classify_signature(signature)

    def classify_signature(self, signature: Signature) -> Classification:
        """
        Map a signature to a glyph.

        Args:
            signature: Cell signature

        Returns:
            Classification
        """
        if signature.cyan_pixel_count < self._min_evidence:
            return UNKNOWN

        aspect = signature.aspect_ratio
        left = signature.left_heavy
        right = signature.right_heavy
        balance = abs(left - right)

        if aspect > MAX_SANE_ASPECT or aspect < MIN_SANE_ASPECT:
            logger.debug(f"Unusual aspect ratio {aspect:.2f} - detection may be unreliable")
            if left > 0.65:
                return Classification(Symbol.E, CONFIDENCE_UNRELIABLE)
            if left > 0.55:
                return Classification(Symbol.D, CONFIDENCE_UNRELIABLE)
            return Classification(Symbol.S, CONFIDENCE_UNRELIABLE)

        if aspect > WIDE_ASPECT:
            return Classification(Symbol.W, CONFIDENCE_WIDE)

        if signature.center_hole:
            # D: narrow and left-heavy (bowl on the right, stem on the left)
            if aspect < 0.85 and left > 0.60:
                return Classification(Symbol.D, CONFIDENCE_PRIMARY)
            # Q: round with balanced sides
            if 0.65 < aspect < 0.90 and balance < 0.15:
                return Classification(Symbol.Q, CONFIDENCE_SECONDARY)
            # A: triangle with the hole near the top
            return Classification(Symbol.A, CONFIDENCE_FALLBACK)

        # E: stem plus three arms, strongly left-heavy
        if aspect < 1.1 and left > 0.60:
            return Classification(Symbol.E, CONFIDENCE_PRIMARY)

        # R: left-heavy, less than E
        if aspect < 1.1 and 0.54 < left <= 0.60:
            return Classification(Symbol.R, CONFIDENCE_SECONDARY)

        # S: curvy and balanced
        if 0.70 < aspect < 1.25 and balance < 0.18:
            return Classification(Symbol.S, CONFIDENCE_SECONDARY)

        if aspect > 1.25:
            return Classification(Symbol.W, CONFIDENCE_FALLBACK)

        if left > 0.58:
            return Classification(Symbol.E, CONFIDENCE_FALLBACK)

        if left > 0.52:
            return Classification(Symbol.R, CONFIDENCE_DEFAULT)

        return Classification(Symbol.S, CONFIDENCE_DEFAULT)

"""
Template Matching Glyph Classifier

Compares a cell's foreground mask against one reference mask per glyph.
The score of a template is the fraction of its foreground pixels that
are also foreground in the cell at the same coordinates.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from .base import LetterClassifier
from .result import ALPHABET, Classification, Signature, Symbol, UNKNOWN
from .signature import MIN_EVIDENCE_PIXELS, foreground_mask

logger = logging.getLogger(__name__)


DEFAULT_TEMPLATE_DIR = Path("./assets/templates")

# Best score below this is reported as UNKNOWN
MIN_MATCH_SCORE = 0.35

# Grayscale template pixels above this are foreground
MASK_THRESHOLD = 127


class GlyphTemplates:
    """Manages reference glyph masks for template matching."""

    def __init__(self):
        self.templates: Dict[Symbol, np.ndarray] = {}

    def load_templates(self, template_dir: Path) -> int:
        """
        Load glyph templates from directory.

        Expected files: Q.png, W.png, E.png, R.png, A.png, S.png, D.png.
        Grayscale images are treated as masks; color images are captures
        and go through the foreground color rule.

        Args:
            template_dir: Path to directory containing template images

        Returns:
            Number of templates loaded (0-7)
        """
        self.templates.clear()

        if not template_dir.exists():
            logger.warning(f"Template directory not found: {template_dir}")
            return 0

        for symbol in ALPHABET:
            template_path = template_dir / f"{symbol.value}.png"
            if not template_path.exists():
                continue

            img = cv2.imread(str(template_path), cv2.IMREAD_UNCHANGED)
            if img is None:
                logger.warning(f"Could not read template: {template_path}")
                continue

            mask = self._to_mask(img)
            if not mask.any():
                logger.warning(f"Template has no foreground pixels: {template_path}")
                continue
            self.templates[symbol] = mask

        missing = [s.value for s in ALPHABET if s not in self.templates]
        if missing:
            logger.warning(f"Templates missing for: {', '.join(missing)}")
        logger.info(f"Loaded {len(self.templates)}/{len(ALPHABET)} glyph templates from {template_dir}")
        return len(self.templates)

    @staticmethod
    def _to_mask(img: np.ndarray) -> np.ndarray:
        """Convert a loaded template image into a boolean mask."""
        if img.ndim == 2:
            return img > MASK_THRESHOLD
        if img.shape[2] == 4:
            rgb = cv2.cvtColor(img, cv2.COLOR_BGRA2RGB)
        else:
            rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
        return foreground_mask(rgb)

    def add(self, symbol: Symbol, mask: np.ndarray) -> None:
        """Register a template mask directly (e.g. built in memory)."""
        if symbol is Symbol.UNKNOWN:
            raise ValueError("Cannot register a template for UNKNOWN")
        self.templates[symbol] = np.asarray(mask, dtype=bool)

    @property
    def count(self) -> int:
        return len(self.templates)

    def is_loaded(self) -> bool:
        """Check if every glyph has a template."""
        return len(self.templates) == len(ALPHABET)

    def match(self, cell_mask: np.ndarray) -> Tuple[Optional[Symbol], float, Dict[str, float]]:
        """
        Match a cell mask against all templates.

        Args:
            cell_mask: HxW boolean foreground mask of the cell

        Returns:
            Tuple of (best_symbol, best_score, all_scores)
        """
        scores: Dict[str, float] = {}
        best_symbol = None
        best_score = -1.0

        height, width = cell_mask.shape[:2]
        for symbol in ALPHABET:
            template = self.templates.get(symbol)
            if template is None:
                continue

            if template.shape != cell_mask.shape:
                template = cv2.resize(
                    template.astype(np.uint8), (width, height), interpolation=cv2.INTER_NEAREST
                ).astype(bool)

            template_pixels = int(np.count_nonzero(template))
            if template_pixels == 0:
                continue

            overlap = int(np.count_nonzero(template & cell_mask))
            score = overlap / template_pixels
            scores[symbol.value] = score

            # Strictly greater: ties go to the earlier glyph
            if score > best_score:
                best_symbol = symbol
                best_score = score

        return best_symbol, max(best_score, 0.0), scores


class TemplateClassifier(LetterClassifier):
    """
    Classifier using reference glyph masks.

    A glyph without a loaded template can never be produced.
    """

    def __init__(self, template_dir: Optional[Path] = None,
                 templates: Optional[GlyphTemplates] = None,
                 min_score: float = MIN_MATCH_SCORE,
                 min_evidence: int = MIN_EVIDENCE_PIXELS):
        """
        Initialize the template classifier.

        Args:
            template_dir: Directory with <SYMBOL>.png files. If None, uses ./assets/templates.
            templates: Preloaded templates (skips loading from disk)
            min_score: Best score required for a non-UNKNOWN answer
            min_evidence: Foreground pixels required in the cell
        """
        self._template_dir = template_dir
        self._min_score = min_score
        self._min_evidence = min_evidence
        if templates is not None:
            self._templates = templates
        else:
            self._templates = GlyphTemplates()
            self._templates.load_templates(template_dir or DEFAULT_TEMPLATE_DIR)

    @property
    def name(self) -> str:
        return "template"

    @property
    def templates(self) -> GlyphTemplates:
        """Access to glyph templates for external tools."""
        return self._templates

    def configure(self, **kwargs) -> None:
        """
        Configure classifier parameters.

        Args:
            template_dir: Reload templates from this directory
            min_score: Best score required for a non-UNKNOWN answer
        """
        if 'template_dir' in kwargs:
            self._template_dir = Path(kwargs['template_dir'])
            self._templates.load_templates(self._template_dir)
        if 'min_score' in kwargs:
            self._min_score = float(kwargs['min_score'])

    def classify(self, pixels: np.ndarray, signature: Signature) -> Classification:
        if signature.cyan_pixel_count < self._min_evidence or self._templates.count == 0:
            return UNKNOWN

        symbol, score, _ = self._templates.match(foreground_mask(pixels))
        if symbol is None or score < self._min_score:
            return UNKNOWN

        return Classification(symbol, min(1.0, score))

    def scores(self, pixels: np.ndarray, signature: Signature) -> Dict[str, float]:
        if self._templates.count == 0:
            return {}
        _, _, scores = self._templates.match(foreground_mask(pixels))
        return scores

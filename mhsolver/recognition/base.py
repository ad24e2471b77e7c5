"""
Letter Classifier Base Interface

Abstract base class defining the glyph classifier contract.
"""

from abc import ABC, abstractmethod
from typing import Dict

import numpy as np

from .result import Classification, Signature


class LetterClassifier(ABC):
    """
    Abstract base class for glyph classifiers.

    Implementations receive both the cell pixels and its signature and
    use whichever they need. They must be deterministic for identical
    input and return UNKNOWN rather than raise when there is no signal.
    """

    @abstractmethod
    def classify(self, pixels: np.ndarray, signature: Signature) -> Classification:
        """
        Classify one cell.

        Args:
            pixels: HxWxC uint8 cell pixels in RGB(A) order
            signature: Signature extracted from the same pixels

        Returns:
            Classification (UNKNOWN with confidence 0 on no signal)
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Classifier identifier.

        Returns:
            String name identifying this strategy (e.g., "heuristic", "template")
        """
        pass

    def scores(self, pixels: np.ndarray, signature: Signature) -> Dict[str, float]:
        """
        Per-symbol scores for diagnostics.

        Default implementation returns nothing.
        """
        return {}

    def configure(self, **kwargs) -> None:
        """
        Configure classifier parameters.

        Override in subclasses to support runtime configuration.
        Default implementation does nothing.

        Args:
            **kwargs: Classifier-specific configuration options
        """
        pass

"""
Correction Map

Static symbol relabeling applied after classification.

The heuristic classifier's raw output is consistently shifted to a
different glyph on real captures; this table maps it back. It is a
compensating control for that bias, not a source for re-deriving
classifier thresholds.
"""

from typing import Dict, Mapping, Optional

from .result import Classification, Symbol


class CorrectionMap:
    """
    Partial symbol -> symbol map. Missing entries are identity and
    UNKNOWN always stays UNKNOWN.
    """

    def __init__(self, mapping: Optional[Mapping[Symbol, Symbol]] = None):
        mapping = dict(mapping or {})
        if Symbol.UNKNOWN in mapping or Symbol.UNKNOWN in mapping.values():
            raise ValueError("UNKNOWN cannot be remapped")
        self._mapping: Dict[Symbol, Symbol] = mapping

    @classmethod
    def from_letters(cls, mapping: Mapping[str, str]) -> 'CorrectionMap':
        """Build from a letter table such as {"A": "D"}."""
        return cls({Symbol.parse(k): Symbol.parse(v) for k, v in mapping.items()})

    def __call__(self, symbol: Symbol) -> Symbol:
        return self._mapping.get(symbol, symbol)

    def apply(self, classification: Classification) -> Classification:
        """Relabel a classification, keeping its confidence."""
        corrected = self(classification.symbol)
        if corrected is classification.symbol:
            return classification
        return Classification(corrected, classification.confidence)

    @property
    def is_identity(self) -> bool:
        return all(k is v for k, v in self._mapping.items())

    def as_dict(self) -> Dict[str, str]:
        return {k.value: v.value for k, v in self._mapping.items()}

    def __eq__(self, other) -> bool:
        if not isinstance(other, CorrectionMap):
            return NotImplemented
        return self._mapping == other._mapping

    def __repr__(self) -> str:
        return f"CorrectionMap({self.as_dict()})"


IDENTITY = CorrectionMap()

# Detected -> actual for the heuristic classifier
DEFAULT_CORRECTION = CorrectionMap({
    Symbol.A: Symbol.D,
    Symbol.S: Symbol.A,
    Symbol.D: Symbol.E,
    Symbol.Q: Symbol.R,
    Symbol.W: Symbol.W,
})

_STRATEGY_CORRECTIONS: Dict[str, CorrectionMap] = {
    "heuristic": DEFAULT_CORRECTION,
    "template": IDENTITY,
}


def correction_for(strategy: str) -> CorrectionMap:
    """
    Correction map used with a classifier strategy.

    Template matching is labelled by its reference images and needs none.
    """
    return _STRATEGY_CORRECTIONS.get(strategy, IDENTITY)

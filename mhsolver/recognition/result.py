"""
Recognition Result Dataclasses

Shared data structures for glyph classification results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


class Symbol(Enum):
    """Glyph alphabet. UNKNOWN is never pressed."""
    Q = "Q"
    W = "W"
    E = "E"
    R = "R"
    A = "A"
    S = "S"
    D = "D"
    UNKNOWN = "?"

    @property
    def key(self) -> Optional[str]:
        """Key name sent to the injector, or None for UNKNOWN."""
        if self is Symbol.UNKNOWN:
            return None
        return self.value.lower()

    @classmethod
    def parse(cls, text: str) -> 'Symbol':
        """Parse a letter ('q', 'Q', '?') into a Symbol."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            raise ValueError(f"Not a glyph symbol: {text!r}") from None

    def __str__(self) -> str:
        return self.value


# The seven real glyphs, in evaluation order
ALPHABET: Tuple[Symbol, ...] = tuple(s for s in Symbol if s is not Symbol.UNKNOWN)


@dataclass(frozen=True)
class Signature:
    """
    Geometric/color features of one cell's foreground pixels.

    Mass fractions are relative to the bounding box centre. With too
    little evidence all values are neutral (aspect 1.0, fractions 0.5).
    """
    cyan_pixel_count: int
    aspect_ratio: float = 1.0
    top_heavy: float = 0.5
    bottom_heavy: float = 0.5
    left_heavy: float = 0.5
    right_heavy: float = 0.5
    center_hole: bool = False
    bbox: Optional[Tuple[int, int, int, int]] = None  # (x, y, width, height)


@dataclass(frozen=True)
class Classification:
    """Classifier output for one cell."""
    symbol: Symbol
    confidence: float

    @property
    def is_unknown(self) -> bool:
        return self.symbol is Symbol.UNKNOWN


UNKNOWN = Classification(Symbol.UNKNOWN, 0.0)


@dataclass(frozen=True)
class CellDiagnostic:
    """Structured per-cell record for an external diagnostics sink."""
    row: int
    col: int
    signature: Signature
    raw: Classification        # classifier output
    corrected: Classification  # after CorrectionMap
    strategy: str
    elapsed_ms: float
    scores: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Grid:
    """
    Exactly 9 classifications in row-major order.

    Index with grid[row, col] or grid[index].
    """
    cells: Tuple[Classification, ...]

    def __post_init__(self):
        if len(self.cells) != 9:
            raise ValueError(f"Grid requires exactly 9 cells, got {len(self.cells)}")

    @classmethod
    def from_classifications(cls, cells: Sequence[Classification]) -> 'Grid':
        return cls(cells=tuple(cells))

    @classmethod
    def from_letters(cls, letters: str, confidence: float = 1.0) -> 'Grid':
        """
        Build a grid from a 9-letter string such as "QWEASD?RW".

        Whitespace is ignored; '?' means UNKNOWN.
        """
        symbols = [Symbol.parse(ch) for ch in letters if not ch.isspace()]
        return cls.from_classifications([
            UNKNOWN if s is Symbol.UNKNOWN else Classification(s, confidence)
            for s in symbols
        ])

    def __getitem__(self, key) -> Classification:
        if isinstance(key, tuple):
            row, col = key
            if not (0 <= row < 3 and 0 <= col < 3):
                raise IndexError(f"Cell ({row}, {col}) outside 3x3 grid")
            return self.cells[row * 3 + col]
        return self.cells[key]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)

    @property
    def symbols(self) -> List[Symbol]:
        return [c.symbol for c in self.cells]

    @property
    def letters(self) -> List[str]:
        """Display letters, '?' for unknown cells."""
        return [c.symbol.value for c in self.cells]

    @property
    def unknown_count(self) -> int:
        return sum(1 for c in self.cells if c.is_unknown)

    @property
    def confidence(self) -> float:
        """Average confidence across all cells."""
        return sum(c.confidence for c in self.cells) / len(self.cells)

    def rows(self) -> List[List[Symbol]]:
        return [self.symbols[r * 3:(r + 1) * 3] for r in range(3)]

    def __str__(self) -> str:
        return " ".join(self.letters)


@dataclass
class DetectionReport:
    """Complete detection result for a frame."""
    grid: Grid
    diagnostics: List[CellDiagnostic]
    grid_rect: Tuple[int, int, int, int]       # (x, y, width, height)
    grid_image: Optional[np.ndarray] = None    # grid + margin, RGB(A)
    grid_image_origin: Tuple[int, int] = (0, 0)  # grid top-left inside grid_image
    cell_images: List[np.ndarray] = field(default_factory=list)  # row-major
    processing_time_ms: float = 0.0

"""
Flat-top hex geometry in odd-q offset layout.

Odd columns (zero-based) sit half a row lower than even ones. The same
layout is fitted once for the screen and scaled for export, so both
resolutions agree on which cell sits where.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

SQRT3 = math.sqrt(3)

Point = Tuple[float, float]


@dataclass(frozen=True)
class HexLayout:
    """Geometry of a ``cols`` x ``rows`` hex grid with a given side length."""

    cols: int
    rows: int
    side: float

    @classmethod
    def fit(cls, cols: int, rows: int, max_width: float, max_height: float) -> "HexLayout":
        """Largest side length that fits the grid (with the half-row offset) in the box."""
        side_for_width = max_width / (1.5 * cols + 0.5)
        side_for_height = max_height / ((rows + 0.5) * SQRT3)
        return cls(cols, rows, min(side_for_width, side_for_height))

    def scaled(self, factor: float) -> "HexLayout":
        """Same grid at ``factor`` times the resolution (used for export)."""
        return HexLayout(self.cols, self.rows, self.side * factor)

    @property
    def hex_width(self) -> float:
        return 2 * self.side

    @property
    def hex_height(self) -> float:
        return SQRT3 * self.side

    @property
    def horizontal_spacing(self) -> float:
        return 1.5 * self.side

    @property
    def canvas_size(self) -> Tuple[float, float]:
        return (1.5 * self.cols + 0.5) * self.side, (self.rows + 0.5) * self.hex_height

    def center(self, row: int, col: int) -> Point:
        offset_rows = (col % 2) * 0.5
        x = col * self.horizontal_spacing + self.side
        y = (row + offset_rows) * self.hex_height + self.hex_height / 2
        return x, y

    def vertices(self, row: int, col: int) -> List[Point]:
        """Six corners at 0, 60, ... 300 degrees, starting east."""
        cx, cy = self.center(row, col)
        return [
            (cx + self.side * math.cos(math.radians(60 * k)), cy + self.side * math.sin(math.radians(60 * k)))
            for k in range(6)
        ]

    def cell_at(self, px: float, py: float) -> Optional[Tuple[int, int]]:
        """Approximate (row, col) under a canvas point, or None outside the grid."""
        col = math.floor((px - self.side) / self.horizontal_spacing)
        if col < 0 or col >= self.cols:
            return None
        offset_rows = (col % 2) * 0.5
        row = math.floor((py - offset_rows * self.hex_height - self.hex_height / 2) / self.hex_height)
        if row < 0 or row >= self.rows:
            return None
        return row, col


def coordinate_label(row: int, col: int, sub_cols: int, sub_rows: int) -> str:
    """Subsector-local ``CCRR`` label, 1-indexed (``0101`` .. ``0810``)."""
    return f"{col % sub_cols + 1:02d}{row % sub_rows + 1:02d}"

"""
Sector composition: per-subsector simulations assembled into one grid.

Each subsector is simulated independently with the shared PRNG, which is
seeded once per pass. Subsectors run row-major (``sy`` outer, ``sx``
inner); changing that order changes every result after the first
subsector.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
import structlog

from .cell_aggregation import accumulate_to_cells
from .lcg_prng import LcgPRNG
from .trail_simulation import DepositField, TrailParameters, TrailSimulation

logger = structlog.get_logger()

MAP_MODES = {
    "single": (4, 4),
    "vastness": (8, 8),
}


@dataclass(frozen=True)
class SectorShape:
    """Hex dimensions of a subsector and the subsector layout of a sector."""

    sub_cols: int = 8
    sub_rows: int = 10
    subsector_cols: int = 4
    subsector_rows: int = 4

    def __post_init__(self):
        if min(self.sub_cols, self.sub_rows, self.subsector_cols, self.subsector_rows) < 1:
            raise ValueError("Sector dimensions must all be at least 1")

    @classmethod
    def for_map_mode(cls, map_mode: str, sub_cols: int = 8, sub_rows: int = 10) -> "SectorShape":
        """Shape for a named map mode (``single`` or ``vastness``)."""
        try:
            subsector_cols, subsector_rows = MAP_MODES[map_mode]
        except KeyError:
            raise ValueError(f"Unknown map mode: {map_mode}") from None
        return cls(sub_cols, sub_rows, subsector_cols, subsector_rows)

    @property
    def cols(self) -> int:
        return self.sub_cols * self.subsector_cols

    @property
    def rows(self) -> int:
        return self.sub_rows * self.subsector_rows

    @property
    def cell_count(self) -> int:
        return self.cols * self.rows

    @property
    def subsector_count(self) -> int:
        return self.subsector_cols * self.subsector_rows

    def subsector_slice(self, sx: int, sy: int) -> Tuple[slice, slice]:
        """Row and column slices of subsector (sx, sy) in the sector grid."""
        if not (0 <= sx < self.subsector_cols and 0 <= sy < self.subsector_rows):
            raise IndexError(f"Subsector ({sx}, {sy}) outside sector")
        rows = slice(sy * self.sub_rows, (sy + 1) * self.sub_rows)
        cols = slice(sx * self.sub_cols, (sx + 1) * self.sub_cols)
        return rows, cols

    def subsector_of(self, row: int, col: int) -> Tuple[int, int]:
        """(sx, sy) of the subsector containing a sector cell."""
        return col // self.sub_cols, row // self.sub_rows


@dataclass(frozen=True)
class GenerationContext:
    """
    Immutable result of one generation pass.

    ``intensities`` is the sector intensity grid in row-major (rows, cols)
    order and is marked read-only so consumers always see a complete pass.
    """

    seed: int
    params: TrailParameters
    shape: SectorShape
    intensities: np.ndarray = field(compare=False)
    generation_id: int = 0
    prng_calls: int = field(default=0, compare=False)

    def subsector_intensities(self, sx: int, sy: int) -> np.ndarray:
        rows, cols = self.shape.subsector_slice(sx, sy)
        return self.intensities[rows, cols]


def simulate_subsector(
    rng, params: TrailParameters, shape: SectorShape
) -> Tuple[DepositField, np.ndarray]:
    """Run one subsector simulation and aggregate it to hex intensities."""
    deposit = TrailSimulation(params, rng).run(shape.sub_cols, shape.sub_rows)
    return deposit, accumulate_to_cells(deposit, shape.sub_cols, shape.sub_rows)


def compose_sector(
    seed: int,
    params: Optional[TrailParameters] = None,
    shape: Optional[SectorShape] = None,
    rng: Optional[LcgPRNG] = None,
    generation_id: int = 0,
) -> GenerationContext:
    """
    Generate the full sector intensity grid.

    Args:
        seed: 32-bit seed; the PRNG is reset to it once for the whole pass
        params: Simulation parameters (defaults if omitted)
        shape: Sector layout (default 4x4 subsectors of 8x10 hexes)
        rng: PRNG to use; world generation continues from its final state
        generation_id: Identifier stamped on the returned context

    Returns:
        GenerationContext holding the read-only intensity grid
    """
    params = params or TrailParameters()
    shape = shape or SectorShape()
    rng = rng or LcgPRNG()
    rng.set_seed(seed)

    logger.info(
        "Composing sector",
        seed=seed,
        cols=shape.cols,
        rows=shape.rows,
        subsectors=shape.subsector_count,
        generation_id=generation_id,
    )

    intensities = np.zeros((shape.rows, shape.cols), dtype=np.float64)
    for sy in range(shape.subsector_rows):
        for sx in range(shape.subsector_cols):
            _, sub_intensities = simulate_subsector(rng, params, shape)
            rows, cols = shape.subsector_slice(sx, sy)
            intensities[rows, cols] = sub_intensities

    intensities.setflags(write=False)
    logger.info("Sector composed", generation_id=generation_id, prng_calls=rng.call_count)

    return GenerationContext(
        seed=seed & 0xFFFFFFFF,
        params=params,
        shape=shape,
        intensities=intensities,
        generation_id=generation_id,
        prng_calls=rng.call_count,
    )

"""
Top-level sector map state.

``SectorMap`` is the only object holding mutable state across calls: the
shared PRNG, the current :class:`GenerationContext` and the world cache.
A regeneration builds the new context completely before swapping it in,
so readers see either the previous pass or the next one, never a mix.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np
import structlog

from ..utils.random import random_seed
from .hex_layout import coordinate_label
from .lcg_prng import LcgPRNG
from .quantization import (
    QuantizationSettings,
    dm_modifier,
    gray_value,
    presence_mask,
    quantize_grid,
)
from .sector_composer import GenerationContext, SectorShape, compose_sector
from .seed_codec import SeedSettings
from .trail_simulation import TrailParameters
from .world_cache import WorldCache
from .world_generator import World, WorldGenerator

logger = structlog.get_logger()


@dataclass(frozen=True)
class CellView:
    """Everything a renderer needs for one hex."""

    row: int
    col: int
    index: int
    subsector: Tuple[int, int]
    level: int
    present: bool
    gray: int
    dm: int
    label: str
    world: Optional[World] = None


class SectorMap:
    """Owns the generation state for one interactive sector map."""

    def __init__(
        self,
        params: Optional[TrailParameters] = None,
        shape: Optional[SectorShape] = None,
        rng: Optional[LcgPRNG] = None,
    ):
        self.params = params or TrailParameters()
        self.shape = shape or SectorShape()
        self.rng = rng or LcgPRNG()
        self.worlds = WorldCache()
        self._world_generator = WorldGenerator(self.rng)
        self._context: Optional[GenerationContext] = None
        self._generation_id = 0

    @classmethod
    def from_seed_settings(
        cls,
        settings: SeedSettings,
        params: Optional[TrailParameters] = None,
        sub_cols: int = 8,
        sub_rows: int = 10,
    ) -> "SectorMap":
        """Map configured from decoded seed settings (scale and map mode)."""
        params = replace(params or TrailParameters(), simulation_scale=settings.simulation_scale)
        return cls(params=params, shape=settings.shape(sub_cols, sub_rows))

    @property
    def generation_id(self) -> int:
        return self._generation_id

    @property
    def is_generated(self) -> bool:
        return self._context is not None

    def snapshot(self) -> GenerationContext:
        """The current complete generation pass."""
        if self._context is None:
            raise RuntimeError("Sector has not been generated yet")
        return self._context

    def regenerate(
        self,
        seed: Optional[int] = None,
        params: Optional[TrailParameters] = None,
        shape: Optional[SectorShape] = None,
    ) -> GenerationContext:
        """
        Run a full generation pass and swap it in.

        Args:
            seed: 32-bit seed; a random one is chosen when omitted
            params: Replacement simulation parameters
            shape: Replacement sector layout

        Returns:
            The new GenerationContext
        """
        if seed is None:
            seed = random_seed()
        params = params if params is not None else self.params
        shape = shape if shape is not None else self.shape

        next_id = self._generation_id + 1
        context = compose_sector(seed, params, shape, rng=self.rng, generation_id=next_id)

        self.worlds.invalidate()
        self.params = params
        self.shape = shape
        self._context = context
        self._generation_id = next_id
        logger.info("Sector regenerated", seed=context.seed, generation_id=next_id)
        return context

    def levels(self, quantization: QuantizationSettings, per_subsector: bool = True) -> np.ndarray:
        """Quantized (rows, cols) levels of the current pass."""
        context = self.snapshot()
        return quantize_grid(
            context.intensities,
            context.shape.sub_cols,
            context.shape.sub_rows,
            quantization,
            per_subsector=per_subsector,
        )

    def present_count(self, quantization: QuantizationSettings) -> int:
        mask = presence_mask(self.levels(quantization), quantization.presence_threshold)
        return int(np.count_nonzero(mask))

    def world_at(self, row: int, col: int) -> Optional[World]:
        """Cached world of a cell in the current pass, if one was rolled."""
        context = self.snapshot()
        return self.worlds.get(context.generation_id, row * context.shape.cols + col)

    def cells(
        self,
        quantization: QuantizationSettings,
        generate_worlds: bool = True,
        per_subsector: bool = True,
    ) -> List[CellView]:
        """Renderer input for every cell in row-major order."""
        context = self.snapshot()
        shape = context.shape
        return self._views(
            context, quantization, range(shape.rows), range(shape.cols), generate_worlds, per_subsector
        )

    def subsector_cells(
        self,
        sx: int,
        sy: int,
        quantization: QuantizationSettings,
        generate_worlds: bool = True,
    ) -> List[CellView]:
        """Renderer input for one subsector, with sector-wide indices."""
        context = self.snapshot()
        rows, cols = context.shape.subsector_slice(sx, sy)
        return self._views(
            context,
            quantization,
            range(rows.start, rows.stop),
            range(cols.start, cols.stop),
            generate_worlds,
            per_subsector=True,
        )

    def _views(
        self,
        context: GenerationContext,
        quantization: QuantizationSettings,
        rows,
        cols,
        generate_worlds: bool,
        per_subsector: bool,
    ) -> List[CellView]:
        shape = context.shape
        levels = quantize_grid(
            context.intensities, shape.sub_cols, shape.sub_rows, quantization, per_subsector
        )
        present = presence_mask(levels, quantization.presence_threshold)
        n_levels = quantization.levels

        views = []
        for row in rows:
            for col in cols:
                index = row * shape.cols + col
                level = int(levels[row, col])
                is_present = bool(present[row, col])
                world = None
                if generate_worlds and is_present:
                    world = self.worlds.get_or_create(
                        context.generation_id, index, self._world_generator.generate
                    )
                views.append(
                    CellView(
                        row=row,
                        col=col,
                        index=index,
                        subsector=shape.subsector_of(row, col),
                        level=level,
                        present=is_present,
                        gray=gray_value(level, n_levels),
                        dm=dm_modifier(level, n_levels),
                        label=coordinate_label(row, col, shape.sub_cols, shape.sub_rows),
                        world=world,
                    )
                )
        return views

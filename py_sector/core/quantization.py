"""
Normalization and quantization of hex intensities into display levels.

Raw intensities are min-max normalised per subsector so that contrast stays
local when the sector grows, optionally reshaped by a saturation bias and
then bucketed into a fixed number of grey levels.
"""

import math
from typing import Tuple

import numpy as np
from pydantic import BaseModel, Field, model_validator

MIN_LEVELS = 2
MAX_LEVELS = 16

# Trade-code style DM bands used by the "world occurrence" display mode
DM_BANDS = 4
DM_OFFSET = -2


class QuantizationSettings(BaseModel):
    """Display-side settings that can change without re-simulating."""

    levels: int = Field(4, ge=MIN_LEVELS, le=MAX_LEVELS, description="Number of grey levels")
    saturate_factor: float = Field(1.0, gt=0, description="Brightness bias; >1 brightens, <1 darkens")
    presence_threshold: int = Field(1, ge=1, description="Minimum 1-indexed level for a world")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _threshold_within_levels(self):
        if self.presence_threshold > self.levels:
            raise ValueError(
                f"presence_threshold {self.presence_threshold} exceeds levels {self.levels}"
            )
        return self


def clamp(value, low, high):
    """Clamp a numeric value to the inclusive range [low, high]."""
    return max(low, min(high, value))


def normalize(value: float, min_val: float, max_val: float) -> float:
    """Min-max normalise; a flat range normalises to 0."""
    if max_val > min_val:
        return (value - min_val) / (max_val - min_val)
    return 0.0


def apply_saturation(norm: float, saturate_factor: float) -> float:
    """Reshape a normalised value by ``norm ** (1 / saturate_factor)``."""
    if saturate_factor <= 0:
        raise ValueError("saturate_factor must be positive")
    if saturate_factor == 1:
        return norm
    return clamp(math.pow(norm, 1 / saturate_factor), 0.0, 1.0)


def quantize(norm: float, levels: int) -> int:
    """Bucket a normalised value into ``levels`` discrete levels."""
    level = math.floor(norm * (levels - 1))
    return int(clamp(level, 0, levels - 1))


def is_present(level: int, presence_threshold: int) -> bool:
    """A world is present when the 1-indexed level meets the threshold."""
    return (level + 1) >= presence_threshold


def dm_modifier(level: int, levels: int) -> int:
    """World occurrence DM (-2..+1) for a quantized level."""
    band_size = levels / DM_BANDS
    region = clamp(math.floor(level / band_size), 0, DM_BANDS - 1)
    return region + DM_OFFSET


def format_dm(dm: int) -> str:
    """Signed DM label, e.g. ``+1``, ``+0``, ``-2``."""
    return f"{dm:+d}"


def gray_value(level: int, levels: int) -> int:
    """Grey shade 0 (black) to 255 (white) for a level."""
    if levels <= 1:
        return 0
    return math.floor((level / (levels - 1)) * 255)


def _split_subsectors(intensities: np.ndarray, sub_cols: int, sub_rows: int) -> np.ndarray:
    rows, cols = intensities.shape
    if rows % sub_rows or cols % sub_cols:
        raise ValueError(
            f"Grid {rows}x{cols} is not divisible into {sub_rows}x{sub_cols} subsectors"
        )
    return intensities.reshape(rows // sub_rows, sub_rows, cols // sub_cols, sub_cols)


def subsector_ranges(intensities: np.ndarray, sub_cols: int, sub_rows: int) -> np.ndarray:
    """
    Min and max intensity of every subsector.

    Returns:
        Array of shape (subsector_rows, subsector_cols, 2) holding (min, max)
    """
    blocks = _split_subsectors(np.asarray(intensities, dtype=np.float64), sub_cols, sub_rows)
    mins = blocks.min(axis=(1, 3))
    maxs = blocks.max(axis=(1, 3))
    return np.stack([mins, maxs], axis=-1)


def _expand_ranges(ranges: np.ndarray, sub_cols: int, sub_rows: int) -> Tuple[np.ndarray, np.ndarray]:
    mins = np.repeat(np.repeat(ranges[..., 0], sub_rows, axis=0), sub_cols, axis=1)
    maxs = np.repeat(np.repeat(ranges[..., 1], sub_rows, axis=0), sub_cols, axis=1)
    return mins, maxs


def quantize_grid(
    intensities: np.ndarray,
    sub_cols: int,
    sub_rows: int,
    settings: QuantizationSettings,
    per_subsector: bool = True,
) -> np.ndarray:
    """
    Quantize a whole sector intensity grid.

    Args:
        intensities: (rows, cols) raw intensities
        sub_cols: Hex columns per subsector
        sub_rows: Hex rows per subsector
        settings: Levels and saturation to apply
        per_subsector: Normalise per subsector (default) or over the whole grid

    Returns:
        (rows, cols) integer array of levels in [0, levels-1]
    """
    values = np.asarray(intensities, dtype=np.float64)
    if per_subsector:
        mins, maxs = _expand_ranges(subsector_ranges(values, sub_cols, sub_rows), sub_cols, sub_rows)
    else:
        mins = np.full_like(values, values.min() if values.size else 0.0)
        maxs = np.full_like(values, values.max() if values.size else 0.0)

    span = maxs - mins
    norm = np.zeros_like(values)
    np.divide(values - mins, span, out=norm, where=span > 0)

    factor = settings.saturate_factor
    if factor != 1:
        norm = np.clip(np.power(norm, 1 / factor), 0.0, 1.0)

    levels = settings.levels
    quantized = np.floor(norm * (levels - 1)).astype(np.int64)
    return np.clip(quantized, 0, levels - 1)


def presence_mask(levels_grid: np.ndarray, presence_threshold: int) -> np.ndarray:
    """Boolean mask of cells holding a world."""
    return (np.asarray(levels_grid) + 1) >= presence_threshold

"""
Encoding of sector settings and seed into a shareable string.

Current format (9 or more fields, joined by ``-``)::

    levels-scale-saturate-threshold-mode-map-boundary-printable-seed

Two legacy layouts are still accepted:

- 6+ fields: ``levels-scale-saturate-mode-printable-seed``
- 5 fields:  ``levels-scale-saturate-mode-seed``

Anything shorter is read as a bare numeric seed. Malformed fields fall back
to defaults instead of failing, and a missing or unreadable seed is
replaced with a fresh random one.
"""

import re
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

import structlog

from ..utils.random import random_seed
from .quantization import MAX_LEVELS, MIN_LEVELS, QuantizationSettings, clamp
from .sector_composer import MAP_MODES, SectorShape

logger = structlog.get_logger()

SEPARATOR = "-"
CURRENT_FIELDS = 9
LEGACY_FIELDS = 6
OLDEST_FIELDS = 5

DISPLAY_MODES = ("density", "dm")

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class SeedSettings:
    """Everything needed to reproduce and redisplay a sector."""

    levels: int = 4
    simulation_scale: float = 1.0
    saturate_factor: float = 1.0
    presence_threshold: int = 3
    display_mode: str = "density"
    map_mode: str = "single"
    show_boundaries: bool = True
    printable: bool = False
    seed: int = 0

    def __post_init__(self):
        if self.display_mode not in DISPLAY_MODES:
            raise ValueError(f"Unknown display mode: {self.display_mode}")
        if self.map_mode not in MAP_MODES:
            raise ValueError(f"Unknown map mode: {self.map_mode}")

    @property
    def generate_worlds(self) -> bool:
        """Whole worlds are only rolled in density display mode."""
        return self.display_mode == "density"

    def quantization(self) -> QuantizationSettings:
        return QuantizationSettings(
            levels=self.levels,
            saturate_factor=self.saturate_factor,
            presence_threshold=self.presence_threshold,
        )

    def shape(self, sub_cols: int = 8, sub_rows: int = 10) -> SectorShape:
        return SectorShape.for_map_mode(self.map_mode, sub_cols, sub_rows)


def parse_int_prefix(text: str) -> Optional[int]:
    """Leading integer of ``text`` (``"12abc"`` gives 12), or None."""
    match = _INT_PREFIX.match(text or "")
    return int(match.group(1)) if match else None


def parse_float_prefix(text: str) -> Optional[float]:
    """Leading float of ``text``, or None."""
    match = _FLOAT_PREFIX.match(text or "")
    return float(match.group(1)) if match else None


def parse_seed(text: str) -> Optional[int]:
    """Numeric seed wrapped into unsigned 32-bit range, or None."""
    value = parse_int_prefix(text)
    if value is None:
        return None
    return value & 0xFFFFFFFF


def encode_seed(settings: SeedSettings) -> str:
    """Encode settings and seed in the current field order."""
    fields = [
        str(settings.levels),
        f"{settings.simulation_scale:.1f}",
        f"{settings.saturate_factor:.1f}",
        str(settings.presence_threshold),
        "o" if settings.display_mode == "dm" else "g",
        "v" if settings.map_mode == "vastness" else "s",
        "b" if settings.show_boundaries else "n",
        "p" if settings.printable else "n",
        str(settings.seed & 0xFFFFFFFF),
    ]
    return SEPARATOR.join(fields)


def _apply_fields(
    settings: SeedSettings,
    levels: str,
    scale: str,
    saturate: str,
    mode: str,
    threshold: Optional[str] = None,
    map_code: Optional[str] = None,
    boundary: Optional[str] = None,
    printable: Optional[str] = None,
) -> SeedSettings:
    updates = {}

    parsed_levels = parse_int_prefix(levels)
    if parsed_levels is None:
        logger.warning("Ignoring malformed level count", value=levels)
    else:
        clamped = clamp(parsed_levels, MIN_LEVELS, MAX_LEVELS)
        if clamped != parsed_levels:
            logger.warning("Level count clamped", value=parsed_levels, clamped=clamped)
        updates["levels"] = clamped

    parsed_scale = parse_float_prefix(scale)
    if parsed_scale is None or parsed_scale <= 0:
        logger.warning("Ignoring invalid simulation scale", value=scale)
    else:
        updates["simulation_scale"] = parsed_scale

    parsed_saturate = parse_float_prefix(saturate)
    if parsed_saturate is None or parsed_saturate <= 0:
        logger.warning("Ignoring invalid saturate factor", value=saturate)
    else:
        updates["saturate_factor"] = parsed_saturate

    if threshold is not None:
        parsed_threshold = parse_int_prefix(threshold)
        if parsed_threshold is None:
            logger.warning("Ignoring malformed presence threshold", value=threshold)
        else:
            updates["presence_threshold"] = parsed_threshold

    updates["display_mode"] = "dm" if mode in ("o", "d") else "density"

    if map_code is not None:
        updates["map_mode"] = "vastness" if map_code == "v" else "single"
    if boundary is not None:
        updates["show_boundaries"] = boundary == "b"
    if printable is not None:
        updates["printable"] = printable == "p"

    result = replace(settings, **updates)
    threshold_clamped = clamp(result.presence_threshold, 1, result.levels)
    if threshold_clamped != result.presence_threshold:
        logger.warning(
            "Presence threshold clamped",
            value=result.presence_threshold,
            clamped=threshold_clamped,
        )
        result = replace(result, presence_threshold=threshold_clamped)
    return result


def decode_seed(
    text: Optional[str],
    defaults: Optional[SeedSettings] = None,
    seed_factory: Callable[[], int] = random_seed,
) -> SeedSettings:
    """
    Decode a seed string produced by :func:`encode_seed` or a legacy layout.

    Args:
        text: Encoded string, bare numeric seed, or empty
        defaults: Settings used for fields the string does not carry
        seed_factory: Source of a replacement seed when none can be parsed

    Returns:
        SeedSettings with every field populated
    """
    settings = defaults or SeedSettings()
    text = (text or "").strip()
    seed_part = text
    parts: List[str] = text.split(SEPARATOR) if text else []

    if len(parts) >= CURRENT_FIELDS:
        levels, scale, saturate, threshold, mode, map_code, boundary, printable = parts[:8]
        seed_part = SEPARATOR.join(parts[8:])
        settings = _apply_fields(
            settings, levels, scale, saturate, mode,
            threshold=threshold, map_code=map_code, boundary=boundary, printable=printable,
        )
    elif len(parts) >= LEGACY_FIELDS:
        levels, scale, saturate, mode, printable = parts[:5]
        seed_part = SEPARATOR.join(parts[5:])
        settings = _apply_fields(settings, levels, scale, saturate, mode, printable=printable)
    elif len(parts) >= OLDEST_FIELDS:
        levels, scale, saturate, mode = parts[:4]
        seed_part = SEPARATOR.join(parts[4:])
        settings = _apply_fields(settings, levels, scale, saturate, mode)

    seed = parse_seed(seed_part)
    if seed is None:
        seed = seed_factory() & 0xFFFFFFFF
        if text:
            logger.warning("Unreadable seed replaced", value=seed_part, seed=seed)
    return replace(settings, seed=seed)

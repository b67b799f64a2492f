"""
Core sector generation functionality.
"""

from .lcg_prng import LcgPRNG
from .trail_simulation import TrailParameters, TrailSimulation, DepositField, run_simulation
from .cell_aggregation import accumulate_to_cells
from .quantization import QuantizationSettings, quantize_grid, presence_mask
from .sector_composer import SectorShape, GenerationContext, compose_sector
from .world_generator import World, WorldGenerator, Starport, generate_world
from .seed_codec import SeedSettings, encode_seed, decode_seed
from .sector_map import SectorMap, CellView

__all__ = ['LcgPRNG', 'TrailParameters', 'TrailSimulation', 'DepositField', 'run_simulation',
           'accumulate_to_cells', 'QuantizationSettings', 'quantize_grid', 'presence_mask',
           'SectorShape', 'GenerationContext', 'compose_sector',
           'World', 'WorldGenerator', 'Starport', 'generate_world',
           'SeedSettings', 'encode_seed', 'decode_seed', 'SectorMap', 'CellView']

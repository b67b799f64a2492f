#!/usr/bin/env python3
"""
Simple demo script showing sector density generation.
"""

import numpy as np
from py_sector.core import SectorMap, TrailParameters, decode_seed, encode_seed
from py_sector.core.quantization import format_dm


def main():
    """Demonstrate sector generation from a seed string."""
    print("Py-Sector Density Map Demo")
    print("=" * 40)

    seed_settings = decode_seed("4-1.0-1.0-3-g-s-b-n-12345")
    print(f"\nSeed string: {encode_seed(seed_settings)}")

    # Fewer agents and steps than the defaults keep the demo quick
    params = TrailParameters(agent_count=100, iterations=60)
    sector_map = SectorMap.from_seed_settings(seed_settings, params=params)

    print(f"Simulating {sector_map.shape.subsector_count} subsectors...")
    context = sector_map.regenerate(seed_settings.seed)
    print(f"PRNG draws: {context.prng_calls}")

    quantization = seed_settings.quantization()
    levels = sector_map.levels(quantization)

    print("\nLevel distribution:")
    for level in range(quantization.levels):
        count = int(np.sum(levels == level))
        print(f"  Level {level}: {count:4d} cells")

    cells = sector_map.cells(quantization)
    present = [cell for cell in cells if cell.present]
    print(f"\nWorlds present: {len(present)} / {len(cells)}")

    print("\nFirst subsector worlds:")
    print("-" * 30)
    for cell in sector_map.subsector_cells(0, 0, quantization):
        if cell.world is None:
            continue
        codes = " ".join(cell.world.codes)
        print(f"  {cell.label}  {cell.world.uwp():<9}  DM{format_dm(cell.dm)}  {codes}")


if __name__ == "__main__":
    main()

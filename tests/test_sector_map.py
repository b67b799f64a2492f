"""Tests for the sector map orchestrator."""

from unittest.mock import patch

import numpy as np
import pytest

from py_sector.core.quantization import QuantizationSettings
from py_sector.core.sector_composer import SectorShape
from py_sector.core.sector_map import SectorMap
from py_sector.core.seed_codec import SeedSettings
from py_sector.core.trail_simulation import TrailParameters


@pytest.fixture
def sector_map():
    params = TrailParameters(agent_count=15, iterations=5)
    shape = SectorShape(sub_cols=4, sub_rows=5, subsector_cols=2, subsector_rows=2)
    return SectorMap(params=params, shape=shape)


@pytest.fixture
def quantization():
    return QuantizationSettings(levels=4, presence_threshold=3)


class TestRegeneration:
    """Test generation ids and atomic swaps."""

    def test_not_generated(self, sector_map, quantization):
        assert not sector_map.is_generated
        with pytest.raises(RuntimeError):
            sector_map.snapshot()
        with pytest.raises(RuntimeError):
            sector_map.cells(quantization)

    def test_generation_id_increments(self, sector_map):
        first = sector_map.regenerate(seed=10)
        second = sector_map.regenerate(seed=10)

        assert first.generation_id == 1
        assert second.generation_id == 2
        assert sector_map.generation_id == 2
        assert sector_map.snapshot() is second

    def test_random_seed_when_omitted(self, sector_map):
        context = sector_map.regenerate()
        assert 0 <= context.seed <= 0xFFFFFFFF

    def test_same_seed_same_intensities(self, sector_map):
        a = sector_map.regenerate(seed=31).intensities.copy()
        b = sector_map.regenerate(seed=31).intensities
        np.testing.assert_array_equal(a, b)

    def test_replacement_shape(self, sector_map):
        shape = SectorShape(sub_cols=2, sub_rows=2, subsector_cols=1, subsector_rows=1)
        context = sector_map.regenerate(seed=3, shape=shape)
        assert context.intensities.shape == (2, 2)
        assert sector_map.shape == shape

    def test_failed_regeneration_keeps_previous_pass(self, sector_map, quantization):
        previous = sector_map.regenerate(seed=8)
        params, shape = sector_map.params, sector_map.shape
        sector_map.cells(quantization)
        cached = len(sector_map.worlds)

        with patch(
            "py_sector.core.sector_map.compose_sector",
            side_effect=RuntimeError("simulation exploded"),
        ):
            with pytest.raises(RuntimeError):
                sector_map.regenerate(
                    seed=9,
                    params=TrailParameters(agent_count=1, iterations=1),
                    shape=SectorShape(sub_cols=2, sub_rows=2, subsector_cols=1, subsector_rows=1),
                )

        assert sector_map.params is params
        assert sector_map.shape is shape
        assert sector_map.generation_id == 1
        assert sector_map.snapshot() is previous
        assert len(sector_map.worlds) == cached


class TestCells:
    """Test renderer-facing cell views."""

    def test_row_major_views(self, sector_map, quantization):
        sector_map.regenerate(seed=5)
        cells = sector_map.cells(quantization)

        assert len(cells) == 80
        assert [cell.index for cell in cells] == list(range(80))
        assert cells[9].row == 1 and cells[9].col == 1

    def test_levels_and_presence(self, sector_map, quantization):
        sector_map.regenerate(seed=5)
        cells = sector_map.cells(quantization)

        for cell in cells:
            assert 0 <= cell.level <= 3
            assert cell.present == (cell.level + 1 >= 3)
            assert (cell.world is not None) == cell.present
            assert -2 <= cell.dm <= 1
            assert 0 <= cell.gray <= 255

        assert sector_map.present_count(quantization) == sum(cell.present for cell in cells)

    def test_labels_are_subsector_local(self, sector_map, quantization):
        sector_map.regenerate(seed=5)
        cells = sector_map.cells(quantization, generate_worlds=False)
        assert cells[0].label == "0101"
        # First cell of subsector (1, 0)
        assert cells[4].label == "0101"
        assert cells[4].subsector == (1, 0)

    def test_worlds_cached_within_generation(self, sector_map, quantization):
        sector_map.regenerate(seed=12)
        first = sector_map.cells(quantization)
        second = sector_map.cells(quantization)

        for a, b in zip(first, second):
            assert a.world is b.world
        present = [cell for cell in first if cell.present]
        assert len(sector_map.worlds) == len(present)
        if present:
            cell = present[0]
            assert sector_map.world_at(cell.row, cell.col) is cell.world

    def test_regeneration_invalidates_worlds(self, sector_map, quantization):
        sector_map.regenerate(seed=12)
        sector_map.cells(quantization)

        sector_map.regenerate(seed=12)

        assert len(sector_map.worlds) == 0
        assert sector_map.world_at(0, 0) is None

    def test_worlds_reproducible_from_seed(self, sector_map, quantization):
        sector_map.regenerate(seed=12)
        before = [cell.world for cell in sector_map.cells(quantization)]

        sector_map.regenerate(seed=12)
        after = [cell.world for cell in sector_map.cells(quantization)]

        assert before == after

    def test_no_worlds_when_disabled(self, sector_map, quantization):
        sector_map.regenerate(seed=12)
        cells = sector_map.cells(quantization, generate_worlds=False)
        assert all(cell.world is None for cell in cells)
        assert len(sector_map.worlds) == 0

    def test_subsector_matches_full_view(self, sector_map, quantization):
        """Screen and export views of the same pass agree cell by cell."""
        sector_map.regenerate(seed=44)
        full = {cell.index: cell for cell in sector_map.cells(quantization)}

        for cell in sector_map.subsector_cells(1, 1, quantization):
            match = full[cell.index]
            assert cell.level == match.level
            assert cell.present == match.present
            assert cell.world is match.world

    def test_subsector_view_size(self, sector_map, quantization):
        sector_map.regenerate(seed=44)
        cells = sector_map.subsector_cells(0, 1, quantization, generate_worlds=False)
        assert len(cells) == 20
        assert {cell.subsector for cell in cells} == {(0, 1)}
        with pytest.raises(IndexError):
            sector_map.subsector_cells(2, 0, quantization)

    def test_levels_depend_on_quantization_only(self, sector_map):
        sector_map.regenerate(seed=9)
        calls = sector_map.rng.call_count
        coarse = sector_map.levels(QuantizationSettings(levels=2))
        fine = sector_map.levels(QuantizationSettings(levels=16))

        assert coarse.max() <= 1
        assert fine.max() == 15
        assert sector_map.rng.call_count == calls


class TestFromSeedSettings:
    """Test construction from decoded seed strings."""

    def test_vastness(self):
        settings = SeedSettings(map_mode="vastness", simulation_scale=1.5, seed=1)
        sector_map = SectorMap.from_seed_settings(
            settings, params=TrailParameters(agent_count=5, iterations=2)
        )
        assert sector_map.shape.subsector_count == 64
        assert sector_map.params.simulation_scale == 1.5
        assert sector_map.params.agent_count == 5

    def test_custom_subsector_size(self):
        sector_map = SectorMap.from_seed_settings(SeedSettings(), sub_cols=4, sub_rows=5)
        assert (sector_map.shape.cols, sector_map.shape.rows) == (16, 20)

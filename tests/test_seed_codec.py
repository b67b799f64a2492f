"""Tests for seed string encoding and decoding."""

import pytest

from py_sector.core.seed_codec import (
    SeedSettings,
    decode_seed,
    encode_seed,
    parse_float_prefix,
    parse_int_prefix,
    parse_seed,
)


def fixed_seed():
    return 7


class TestParsing:
    """Test lenient numeric prefix parsing."""

    def test_int_prefix(self):
        assert parse_int_prefix("12abc") == 12
        assert parse_int_prefix("-3") == -3
        assert parse_int_prefix("abc") is None
        assert parse_int_prefix("") is None

    def test_float_prefix(self):
        assert parse_float_prefix("1.5x") == 1.5
        assert parse_float_prefix(".5") == 0.5
        assert parse_float_prefix("2") == 2.0
        assert parse_float_prefix("x") is None

    def test_seed_wraps_to_32_bits(self):
        assert parse_seed("-1") == 4294967295
        assert parse_seed("4294967297") == 1
        assert parse_seed("nope") is None


class TestEncode:
    """Test the current encoding layout."""

    def test_defaults(self):
        assert encode_seed(SeedSettings(seed=42)) == "4-1.0-1.0-3-g-s-b-n-42"

    def test_all_flags(self):
        settings = SeedSettings(
            levels=12,
            simulation_scale=1.25,
            saturate_factor=0.5,
            presence_threshold=6,
            display_mode="dm",
            map_mode="vastness",
            show_boundaries=False,
            printable=True,
            seed=3000000000,
        )
        assert encode_seed(settings) == "12-1.2-0.5-6-o-v-n-p-3000000000"

    def test_round_trip(self):
        settings = SeedSettings(
            levels=8,
            simulation_scale=1.5,
            saturate_factor=2.0,
            presence_threshold=5,
            display_mode="dm",
            map_mode="vastness",
            show_boundaries=False,
            printable=True,
            seed=123456789,
        )
        assert decode_seed(encode_seed(settings)) == settings


class TestDecode:
    """Test decoding of current, legacy and malformed strings."""

    def test_current_format(self):
        settings = decode_seed("6-2.0-1.5-4-o-v-n-p-987")
        assert settings.levels == 6
        assert settings.simulation_scale == 2.0
        assert settings.saturate_factor == 1.5
        assert settings.presence_threshold == 4
        assert settings.display_mode == "dm"
        assert settings.map_mode == "vastness"
        assert settings.show_boundaries is False
        assert settings.printable is True
        assert settings.seed == 987

    def test_legacy_six_fields(self):
        settings = decode_seed("8-1.5-2.0-o-p-777")
        assert settings.levels == 8
        assert settings.simulation_scale == 1.5
        assert settings.saturate_factor == 2.0
        assert settings.display_mode == "dm"
        assert settings.printable is True
        assert settings.seed == 777
        # Fields the layout lacks keep their defaults
        assert settings.presence_threshold == 3
        assert settings.map_mode == "single"
        assert settings.show_boundaries is True

    def test_legacy_five_fields(self):
        settings = decode_seed("6-0.5-1.0-g-99")
        assert settings.levels == 6
        assert settings.simulation_scale == 0.5
        assert settings.display_mode == "density"
        assert settings.printable is False
        assert settings.seed == 99

    def test_bare_seed(self):
        settings = decode_seed("12345")
        assert settings == SeedSettings(seed=12345)

    def test_negative_seed(self):
        assert decode_seed("4-1.0-1.0-3-g-s-b-n--1").seed == 4294967295
        assert decode_seed("-5").seed == 4294967291

    def test_non_numeric_seed_uses_factory(self):
        settings = decode_seed("4-1.0-1.0-3-g-s-b-n-abc", seed_factory=fixed_seed)
        assert settings.seed == 7
        assert settings.levels == 4

    def test_empty_uses_factory(self):
        assert decode_seed("", seed_factory=fixed_seed).seed == 7
        assert decode_seed(None, seed_factory=fixed_seed).seed == 7

    def test_random_seed_in_range(self):
        seed = decode_seed("").seed
        assert 0 <= seed <= 0xFFFFFFFF

    def test_levels_clamped(self):
        assert decode_seed("40-1.0-1.0-3-g-s-b-n-1").levels == 16
        low = decode_seed("1-1.0-1.0-3-g-s-b-n-1")
        assert low.levels == 2
        assert low.presence_threshold == 2

    def test_threshold_clamped(self):
        assert decode_seed("4-1.0-1.0-9-g-s-b-n-1").presence_threshold == 4
        assert decode_seed("4-1.0-1.0-0-g-s-b-n-1").presence_threshold == 1

    @pytest.mark.parametrize("scale", ["x", "0.0", "0"])
    def test_invalid_scale_keeps_default(self, scale):
        settings = decode_seed(f"4-{scale}-1.0-3-g-s-b-n-1")
        assert settings.simulation_scale == 1.0
        assert settings.seed == 1

    def test_invalid_saturate_keeps_default(self):
        assert decode_seed("4-1.0-0-3-g-s-b-n-1").saturate_factor == 1.0

    def test_malformed_levels_keep_default(self):
        assert decode_seed("xx-1.0-1.0-3-g-s-b-n-1").levels == 4

    def test_d_means_dm_mode(self):
        assert decode_seed("4-1.0-1.0-3-d-s-b-n-1").display_mode == "dm"

    def test_custom_defaults(self):
        defaults = SeedSettings(levels=10, presence_threshold=8)
        settings = decode_seed("555", defaults=defaults)
        assert settings.levels == 10
        assert settings.seed == 555


class TestSeedSettings:
    """Test derived settings."""

    def test_quantization(self):
        quantization = SeedSettings(levels=6, saturate_factor=2.0, presence_threshold=4).quantization()
        assert quantization.levels == 6
        assert quantization.saturate_factor == 2.0
        assert quantization.presence_threshold == 4

    def test_shape(self):
        assert SeedSettings().shape().subsector_cols == 4
        vast = SeedSettings(map_mode="vastness").shape()
        assert (vast.subsector_cols, vast.subsector_rows) == (8, 8)
        assert (vast.cols, vast.rows) == (64, 80)

    def test_generate_worlds(self):
        assert SeedSettings().generate_worlds is True
        assert SeedSettings(display_mode="dm").generate_worlds is False

    def test_invalid_modes(self):
        with pytest.raises(ValueError):
            SeedSettings(display_mode="heat")
        with pytest.raises(ValueError):
            SeedSettings(map_mode="galaxy")

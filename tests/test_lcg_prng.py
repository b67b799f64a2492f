"""Tests for the seeded LCG PRNG."""

from py_sector.core.lcg_prng import LcgPRNG
from py_sector.utils.random import roll_2d, roll_die


class ConstantRandom:
    """Random source that always returns the same value."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


class TestLcgPRNG:
    """Test the linear congruential generator."""

    def test_first_draw_from_zero_seed(self):
        """State advances by the LCG recurrence."""
        prng = LcgPRNG(0)
        value = prng.random()

        assert prng.state == 1013904223
        assert value == 1013904223 / 2**32

    def test_recurrence(self):
        """Each draw applies state * 1664525 + 1013904223 mod 2^32."""
        prng = LcgPRNG(12345)
        expected_state = 12345
        for _ in range(5):
            expected_state = (expected_state * 1664525 + 1013904223) % 2**32
            assert prng.random() == expected_state / 2**32
        assert prng.state == expected_state

    def test_values_in_unit_interval(self):
        prng = LcgPRNG(987654321)
        values = [prng.random() for _ in range(1000)]
        assert all(0.0 <= v < 1.0 for v in values)

    def test_seed_masked_to_32_bits(self):
        """Seeds wrap into unsigned 32-bit range."""
        assert LcgPRNG(2**32 + 7).state == 7
        assert LcgPRNG(-1).state == 0xFFFFFFFF

    def test_set_seed_restarts_stream(self):
        prng = LcgPRNG(42)
        first = [prng.random() for _ in range(10)]
        prng.set_seed(42)
        second = [prng.random() for _ in range(10)]

        assert first == second
        assert prng.call_count == 10

    def test_different_seeds(self):
        a = [LcgPRNG(1).random() for _ in range(3)]
        b = [LcgPRNG(2).random() for _ in range(3)]
        assert a != b

    def test_next_alias(self):
        a = LcgPRNG(99)
        b = LcgPRNG(99)
        assert a.next() == b.random()

    def test_call_count(self):
        prng = LcgPRNG(5)
        for _ in range(7):
            prng.random()
        assert prng.call_count == 7


class TestDice:
    """Test dice helpers."""

    def test_roll_die_range(self):
        assert roll_die(ConstantRandom(0.0)) == 1
        assert roll_die(ConstantRandom(0.9999)) == 6
        assert roll_die(ConstantRandom(0.5), sides=20) == 11

    def test_roll_2d_uses_two_draws(self):
        rng = ConstantRandom(0.0)
        assert roll_2d(rng) == 2
        assert rng.calls == 2

    def test_roll_2d_distribution_bounds(self):
        prng = LcgPRNG(2024)
        rolls = [roll_2d(prng) for _ in range(2000)]
        assert min(rolls) >= 2
        assert max(rolls) <= 12

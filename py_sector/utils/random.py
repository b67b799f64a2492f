"""
Random number helpers shared by the simulation and world generation.

All sector randomness flows through a single ``RandomSource`` so that one
seed reproduces both the density field and the worlds rolled on it.
Python's random and NumPy's random must not be used for generated content.
"""

import secrets
from typing import Protocol


class RandomSource(Protocol):
    """Anything exposing ``random() -> float`` in [0, 1)."""

    def random(self) -> float:
        ...


def random_seed() -> int:
    """
    Pick a fresh 32-bit seed.

    Only used when the caller supplied no usable seed; everything after
    this point is deterministic.
    """
    return secrets.randbits(32)


def roll_die(rng: RandomSource, sides: int = 6) -> int:
    """Roll one die with the given number of sides (1..sides)."""
    return int(rng.random() * sides) + 1


def roll_2d(rng: RandomSource) -> int:
    """Roll two six-sided dice and return the sum (2..12)."""
    return roll_die(rng) + roll_die(rng)

"""
Seeded linear congruential PRNG for reproducible sector generation.

Uses the glibc/Numerical Recipes constants so a 32-bit seed fully
determines the density simulation and every world rolled afterwards.
"""


_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 0x100000000  # 2^32


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class LcgPRNG:
    """
    Linear congruential generator with a single 32-bit state word.

    Every draw advances ``state = (state * 1664525 + 1013904223) mod 2^32``
    and returns ``state / 2^32``.
    """

    def __init__(self, seed=0):
        """Initialize with a numeric seed (masked to 32 bits)."""
        self.call_count = 0
        self._state = 0
        self.set_seed(seed)

    @property
    def state(self) -> int:
        """Current internal state."""
        return self._state

    def set_seed(self, seed) -> None:
        """Reset the internal state to ``seed`` and restart the stream."""
        self._state = _uint32(seed)
        self.call_count = 0

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    next = random

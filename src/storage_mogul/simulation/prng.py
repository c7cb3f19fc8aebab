"""
Deterministic pseudo-random numbers for the simulation.

Park-Miller linear congruential generator. The integer seed is the whole
generator state, so a game is replayable from (and serializable as) that
one number. Every draw advances the seed stored on the holder object.
"""

from typing import Protocol


PRNG_MULTIPLIER = 48271
PRNG_MODULUS = 2_147_483_647  # 2**31 - 1
FALLBACK_SEED = 112358


class SeedHolder(Protocol):
    seed: int


def next_random(holder: SeedHolder) -> float:
    """Advance holder.seed and return a value in [0, 1)."""
    seed = (holder.seed * PRNG_MULTIPLIER) % PRNG_MODULUS
    holder.seed = seed
    return seed / PRNG_MODULUS


def random_between(holder: SeedHolder, low: float, high: float) -> float:
    return low + (high - low) * next_random(holder)


def normalize_seed(value, fallback: int = FALLBACK_SEED) -> int:
    """
    Fold an arbitrary value into a valid live seed.

    Used at restore boundaries where a bad seed must not raise. Anything
    that is not an integer, or folds to the fixed point 0, becomes the
    fallback.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            return fallback
    folded = value % PRNG_MODULUS
    return folded if folded != 0 else fallback


class LcgRandom:
    """
    Standalone generator with the same recurrence as next_random.

    Rejects seeds that fold to 0 at construction, since 0 maps to itself
    forever.
    """

    def __init__(self, seed: int):
        if seed % PRNG_MODULUS == 0:
            raise ValueError(f"Invalid seed {seed}: folds to the LCG fixed point 0")
        self.seed = seed % PRNG_MODULUS

    def random(self) -> float:
        return next_random(self)

    def uniform(self, low: float, high: float) -> float:
        return random_between(self, low, high)

    def choice_index(self, count: int) -> int:
        """Uniform index in [0, count)."""
        return int(self.random() * count)

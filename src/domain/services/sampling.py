"""Deterministic pseudo-random sampling for the portfolio search.

A 32-bit linear congruential generator (Numerical Recipes constants)
seeded from the candidate keys.  The same keys always yield the same
sequence, and therefore the same portfolio.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")

_MODULUS = 2**32
_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_SEED_BASE = 31
_KEY_SEPARATOR = "|"


def seed_from_keys(keys: Iterable[str]) -> int:
    """Fold the '|'-joined keys into a 32-bit seed: s = (31·s + ord(c)) mod 2³²."""
    seed = 0
    for char in _KEY_SEPARATOR.join(keys):
        seed = (seed * _SEED_BASE + ord(char)) % _MODULUS
    return seed


class SeededRandom:
    """LCG yielding floats in [0, 1); state is local to the instance."""

    def __init__(self, seed: int) -> None:
        self._state = seed % _MODULUS

    @classmethod
    def from_keys(cls, keys: Iterable[str]) -> SeededRandom:
        return cls(seed_from_keys(keys))

    @property
    def state(self) -> int:
        return self._state

    def random(self) -> float:
        self._state = (_MULTIPLIER * self._state + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def randint_below(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        return int(self.random() * n)

    def shuffled(self, values: Sequence[T]) -> list[T]:
        """Fisher–Yates shuffle of a copy of values."""
        out = list(values)
        for i in range(len(out) - 1, 0, -1):
            j = self.randint_below(i + 1)
            out[i], out[j] = out[j], out[i]
        return out

"""Seeded pseudo-random sequence used to derive watermark positions.

A 32-bit linear congruential generator (Numerical Recipes constants).  All
arithmetic is reduced modulo ``2**32`` explicitly so the sequence for a given
seed is identical on every interpreter and machine.
"""

from __future__ import annotations

_MASK_32 = 0xFFFFFFFF
_MODULUS = 2**32
_MULTIPLIER = 1664525
_INCREMENT = 1013904223


def seed_from_string(seed: str) -> int:
    """Fold *seed* into a non-zero 32-bit state (``h = h * 31 + ord(ch)``)."""
    h = 0
    for ch in seed:
        h = (h * 31 + ord(ch)) & _MASK_32
    return h or 1


class SequenceGenerator:
    """Deterministic generator constructed from a string seed."""

    def __init__(self, seed: str) -> None:
        self._state = seed_from_string(seed)

    def next(self) -> float:
        """Return the next value in ``[0, 1)``."""
        self._state = (_MULTIPLIER * self._state + _INCREMENT) & _MASK_32
        return self._state / _MODULUS

    def next_int(self, lo: int, hi: int) -> int:
        """Return the next integer in ``[lo, hi]`` (inclusive)."""
        if hi < lo:
            raise ValueError(f"empty range [{lo}, {hi}]")
        return lo + int(self.next() * (hi - lo + 1))

"""Bit encoding rule shared by the embedder and extractor.

A carrier value (the mean luma of a cell, see :mod:`.cells`) holds one bit
by sitting on a lattice with step ``Q = 4 * strength``::

    bit 1 -> baseline + strength      (value mod Q == strength)
    bit 0 -> baseline - strength      (value mod Q == 3 * strength)

where ``baseline`` is the multiple of ``Q`` closest to the original value,
restricted to ``[Q, 255 - strength]`` so neither write can leave the 0-255
range.  Reading needs no reference image: the phase ``value mod Q`` alone
says which side of the lattice the value sits on, and any drift smaller
than ``strength`` still reads back correctly.
"""

from __future__ import annotations

import numpy as np


def _step(strength: int) -> int:
    return 4 * strength


def lattice_targets(values: np.ndarray, bits: np.ndarray, strength: int) -> np.ndarray:
    """Carrier values encoding *bits*, as close to *values* as the lattice allows."""
    step = _step(strength)
    lo = step
    hi = step * ((255 - strength) // step)

    baseline = np.rint(np.asarray(values, dtype=np.float64) / step) * step
    baseline = np.clip(baseline, lo, hi)
    return np.where(np.asarray(bits).astype(bool), baseline + strength, baseline - strength)


def read_bits(values: np.ndarray, strength: int) -> np.ndarray:
    """Recover bits from carrier values: 1 when the phase is below ``2 * strength``."""
    phase = np.mod(np.asarray(values, dtype=np.float64), _step(strength))
    return (phase < 2 * strength).astype(np.uint8)

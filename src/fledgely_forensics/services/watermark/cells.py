"""Pixel cells: the unit that carries one watermark bit.

The image is tiled into ``CELL_SIZE x CELL_SIZE`` cells from the top-left
corner; a trailing odd row or column is never used.  A bit lives in the
mean luma of its cell rather than in any single sample.  JPEG quantisation
error is mostly high-frequency, and averaging four pixels cancels most of
it, so the cell mean survives the embedder's own re-encode.  Cells never
straddle an 8x8 JPEG block because 8 is a multiple of ``CELL_SIZE``.

Cells are addressed by flat index ``cell_row * columns + cell_col``.
"""

from __future__ import annotations

import numpy as np

CELL_SIZE = 2
CELL_AREA = CELL_SIZE * CELL_SIZE

# ITU-R BT.601, the same weights JPEG uses for its Y plane.
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

_ROW_OFFSETS = np.array([0, 0, 1, 1])
_COL_OFFSETS = np.array([0, 1, 0, 1])

# A round that falls short pins at least one more of the 12 channels in a cell.
_SHIFT_ROUNDS = 16
_SHIFT_TOLERANCE = 0.05


def cell_grid(width: int, height: int) -> tuple[int, int]:
    """``(columns, rows)`` of whole cells in a ``width x height`` image."""
    return width // CELL_SIZE, height // CELL_SIZE


def cell_count(width: int, height: int) -> int:
    columns, rows = cell_grid(width, height)
    return columns * rows


def cell_pixels(cells, columns: int) -> tuple[np.ndarray, np.ndarray]:
    """Pixel rows and columns of every cell, each shaped ``(len(cells), CELL_AREA)``."""
    cells = np.asarray(cells, dtype=np.int64)
    cell_rows, cell_cols = np.divmod(cells, columns)
    rows = cell_rows[:, None] * CELL_SIZE + _ROW_OFFSETS
    cols = cell_cols[:, None] * CELL_SIZE + _COL_OFFSETS
    return rows, cols


def luma(rgb: np.ndarray) -> np.ndarray:
    """Luma of an array whose last axis is R, G, B."""
    return rgb.astype(np.float64) @ LUMA_WEIGHTS


def cell_luma(shaped: np.ndarray, cells) -> np.ndarray:
    """Mean luma of *cells* in a ``(height, width, channels)`` pixel array."""
    rows, cols = cell_pixels(cells, shaped.shape[1] // CELL_SIZE)
    return luma(shaped[rows, cols, :3]).mean(axis=1)


def shift_cell_luma(rgb: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """Move each cell's mean luma onto *targets* with a grey shift.

    *rgb* is ``(cells, CELL_AREA, 3)``.  R, G and B move together, so
    chroma is left alone.  Channels pinned at 0 or 255 cannot follow; the
    remaining channels are pushed further until the cell mean reaches its
    target.  Every target in ``[0, 255]`` is reachable.
    """
    shifted = rgb.astype(np.float64)
    for _ in range(_SHIFT_ROUNDS):
        residual = targets - luma(shifted).mean(axis=1)
        if np.all(np.abs(residual) < _SHIFT_TOLERANCE):
            break
        rising = (residual > 0)[:, None, None]
        free = np.where(rising, shifted < 255, shifted > 0)
        gain = (free * LUMA_WEIGHTS).sum(axis=2).mean(axis=1)
        step = residual / np.maximum(gain, 1e-6)
        shifted = np.clip(shifted + np.where(free, step[:, None, None], 0.0), 0, 255)
    return np.rint(shifted).astype(np.uint8)

"""Tests for the 2x2 cell geometry and the luma carrier."""

import numpy as np
import pytest

from fledgely_forensics.services.watermark.cells import (
    CELL_AREA,
    cell_count,
    cell_grid,
    cell_luma,
    cell_pixels,
    luma,
    shift_cell_luma,
)


class TestGeometry:
    def test_grid_ignores_trailing_odd_pixels(self):
        assert cell_grid(101, 81) == (50, 40)
        assert cell_count(101, 81) == 2000
        assert cell_count(1, 500) == 0

    def test_cell_pixels(self):
        rows, cols = cell_pixels([0, 1, 5], columns=4)
        assert rows.tolist() == [[0, 0, 1, 1], [0, 0, 1, 1], [2, 2, 3, 3]]
        assert cols.tolist() == [[0, 1, 0, 1], [2, 3, 2, 3], [2, 3, 2, 3]]

    def test_cell_luma(self):
        shaped = np.zeros((4, 4, 4), dtype=np.uint8)
        shaped[0:2, 2:4, :3] = 100
        shaped[2, 0, :3] = (255, 0, 0)
        means = cell_luma(shaped, [0, 1, 2])
        assert means[0] == pytest.approx(0.0)
        assert means[1] == pytest.approx(100.0)
        assert means[2] == pytest.approx(0.299 * 255 / 4)


class TestShiftCellLuma:
    def test_reaches_targets_on_random_cells(self):
        rng = np.random.default_rng(3)
        rgb = rng.integers(0, 256, size=(500, CELL_AREA, 3), dtype=np.uint8)
        targets = rng.uniform(0, 255, size=500)
        shifted = shift_cell_luma(rgb, targets)
        assert shifted.dtype == np.uint8
        assert np.abs(luma(shifted).mean(axis=1) - targets).max() <= 0.55

    def test_pinned_channels_are_compensated(self):
        rgb = np.zeros((2, CELL_AREA, 3), dtype=np.uint8)
        rgb[0, :, 0] = 255  # pure red: R cannot rise further
        rgb[1, :, :] = 255  # white: only falling is possible
        shifted = shift_cell_luma(rgb, np.array([200.0, 249.0]))
        means = luma(shifted).mean(axis=1)
        assert means[0] == pytest.approx(200.0, abs=0.55)
        assert means[1] == pytest.approx(249.0, abs=0.55)
        assert np.all(shifted[0, :, 0] == 255)

    @pytest.mark.parametrize("target", [0.0, 255.0])
    def test_extremes_reachable(self, target):
        rng = np.random.default_rng(4)
        rgb = rng.integers(0, 256, size=(50, CELL_AREA, 3), dtype=np.uint8)
        shifted = shift_cell_luma(rgb, np.full(50, target))
        assert np.abs(luma(shifted).mean(axis=1) - target).max() <= 0.55

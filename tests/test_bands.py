"""Tests for row-band partitioning."""

import unittest

import numpy as np

from TextureBrew.core import run_banded, split_row_bands


class TestSplitRowBands(unittest.TestCase):
    def test_single_worker_single_band(self):
        self.assertEqual(split_row_bands(10, workers=1), [(0, 10)])

    def test_min_band_rows_limits_band_count(self):
        bands = split_row_bands(1000, workers=8, min_band_rows=256)
        self.assertEqual(len(bands), 3)

    def test_bands_are_contiguous_and_cover_all_rows(self):
        bands = split_row_bands(2048, workers=7, min_band_rows=16)
        self.assertEqual(bands[0][0], 0)
        self.assertEqual(bands[-1][1], 2048)
        for (_, stop), (start, _) in zip(bands, bands[1:]):
            self.assertEqual(stop, start)

    def test_small_image_is_one_band(self):
        self.assertEqual(split_row_bands(3, workers=4, min_band_rows=256), [(0, 3)])

    def test_empty_height(self):
        self.assertEqual(split_row_bands(0, workers=4), [])


class TestRunBanded(unittest.TestCase):
    def test_pointwise_matches_unbanded(self):
        src = np.arange(50 * 7, dtype=np.int64).reshape(50, 7)
        out = np.empty_like(src)
        run_banded(lambda band: band * 3, src, out, workers=4, min_band_rows=5)
        np.testing.assert_array_equal(out, src * 3)

    def test_halo_rows_are_visible_to_neighbourhood_functions(self):
        src = np.arange(40, dtype=np.float64).reshape(40, 1) ** 2

        def _vertical_diff(band):
            padded = np.pad(band, ((1, 1), (0, 0)), mode="edge")
            return padded[2:] - padded[:-2]

        expected = _vertical_diff(src)
        out = np.empty_like(src)
        run_banded(_vertical_diff, src, out, workers=4, min_band_rows=3, halo=1)
        np.testing.assert_array_equal(out, expected)

    def test_worker_exception_propagates(self):
        src = np.zeros((64, 2))
        out = np.empty_like(src)

        def _boom(band):
            raise RuntimeError("band failed")

        with self.assertRaises(RuntimeError):
            run_banded(_boom, src, out, workers=4, min_band_rows=8)


if __name__ == "__main__":
    unittest.main(verbosity=2)

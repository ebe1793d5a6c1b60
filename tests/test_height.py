"""Tests for luminance extraction and the height stretch."""

import unittest

import numpy as np

from TextureBrew.core import RasterBuffer
from TextureBrew.phases.height import generate_height, height_thresholds, to_luminance

from conftest import gray_buffer, random_source


class TestLuminance(unittest.TestCase):
    def test_primary_colors(self):
        arr = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        lum = to_luminance(RasterBuffer.from_array(arr))
        np.testing.assert_array_equal(lum.values[0], [76, 150, 29])
        self.assertTrue(lum.is_grayscale())
        self.assertTrue(lum.is_opaque())

    def test_gray_is_preserved(self):
        lum = to_luminance(RasterBuffer.filled(3, 3, (128, 128, 128)))
        np.testing.assert_array_equal(lum.values, 128)

    def test_banded_matches_single_band(self):
        src = random_source(11, 37, seed=5)
        np.testing.assert_array_equal(
            to_luminance(src, workers=4, min_band_rows=3).pixels,
            to_luminance(src).pixels,
        )


class TestHeightThresholds(unittest.TestCase):
    def test_window_in_byte_units(self):
        min_v, max_v, value_range = height_thresholds(20, 80)
        self.assertAlmostEqual(min_v, 51.0)
        self.assertAlmostEqual(max_v, 204.0)
        self.assertAlmostEqual(value_range, 153.0)

    def test_degenerate_range_is_one(self):
        self.assertEqual(height_thresholds(50, 50)[2], 1.0)


class TestGenerateHeight(unittest.TestCase):
    def test_stretch_window(self):
        lum = gray_buffer([[51, 128, 204], [0, 40, 255]])
        out = generate_height(lum, 20, 80)
        np.testing.assert_array_equal(out.values, [[0, 128, 255], [0, 0, 255]])

    def test_full_window_is_identity(self):
        values = np.arange(256, dtype=np.uint8).reshape(16, 16)
        out = generate_height(RasterBuffer.from_gray(values), 0, 100)
        np.testing.assert_array_equal(out.values, values)

    def test_degenerate_window_is_all_zero(self):
        lum = gray_buffer([[0, 100, 127], [128, 200, 255]])
        out = generate_height(lum, 50, 50)
        np.testing.assert_array_equal(out.values, 0)

    def test_output_is_replicated_gray(self):
        out = generate_height(gray_buffer([[10, 200]]), 0, 100)
        self.assertTrue(out.is_grayscale())
        self.assertTrue(out.is_opaque())

    def test_banded_matches_single_band(self):
        lum = to_luminance(random_source(13, 41, seed=8))
        np.testing.assert_array_equal(
            generate_height(lum, 20, 80, workers=4, min_band_rows=2).pixels,
            generate_height(lum, 20, 80).pixels,
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)

"""Tests for image decoding, map encoding and atomic writes."""

import io
import os
import tempfile
import unittest

import numpy as np
from PIL import Image

from TextureBrew.core import (
    RasterBuffer,
    decode_raster,
    encode_raster,
    load_source_image,
    luminance_bt601,
    write_bytes_atomic,
)
from TextureBrew.errors import EncodingFailure

from conftest import random_source


class TestEncodeRaster(unittest.TestCase):
    def test_png_is_lossless(self):
        src = random_source(9, 5, seed=3)
        decoded = decode_raster(encode_raster(src, "png"))
        np.testing.assert_array_equal(decoded.rgb, src.rgb)

    def test_webp_is_lossless(self):
        src = random_source(6, 6, seed=4)
        decoded = decode_raster(encode_raster(src, "webp"))
        np.testing.assert_array_equal(decoded.rgb, src.rgb)

    def test_grayscale_collapse_writes_single_channel(self):
        buf = RasterBuffer.from_gray(np.arange(16, dtype=np.uint8).reshape(4, 4))
        data = encode_raster(buf, "png", grayscale=True)
        with Image.open(io.BytesIO(data)) as img:
            self.assertEqual(img.mode, "L")
        np.testing.assert_array_equal(decode_raster(data).values, buf.values)

    def test_jpeg_is_close_and_jpg_alias_accepted(self):
        src = RasterBuffer.filled(16, 16, (120, 60, 30))
        for fmt in ("jpeg", "jpg", "JPEG"):
            data = encode_raster(src, fmt, quality=95)
            self.assertEqual(data[:2], b"\xff\xd8")
            decoded = decode_raster(data)
            diff = np.abs(decoded.rgb.astype(int) - src.rgb.astype(int))
            self.assertLessEqual(int(diff.max()), 3)

    def test_unsupported_format_raises(self):
        with self.assertRaises(EncodingFailure):
            encode_raster(RasterBuffer.filled(2, 2, (0, 0, 0)), "bmp")

    def test_encoded_output_is_opaque(self):
        arr = np.zeros((2, 2, 4), dtype=np.uint8)
        arr[:, :, 3] = 0
        decoded = decode_raster(encode_raster(RasterBuffer.from_array(arr), "png"))
        self.assertTrue(decoded.is_opaque())


class TestLoadSourceImage(unittest.TestCase):
    def test_rgb_file_is_loaded_as_rgba(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "src.png")
            Image.new("RGB", (5, 3), (10, 20, 30)).save(path)
            buf = load_source_image(path)
            self.assertEqual((buf.width, buf.height), (5, 3))
            np.testing.assert_array_equal(buf.pixels[0, 0], [10, 20, 30, 255])

    def test_grayscale_file_is_expanded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "src.png")
            Image.new("L", (2, 2), 77).save(path)
            buf = load_source_image(path)
            self.assertTrue(buf.is_grayscale())
            self.assertEqual(int(buf.values[0, 0]), 77)

    def test_max_pixels_is_enforced(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "big.png")
            Image.new("RGB", (10, 10)).save(path)
            with self.assertRaises(ValueError):
                load_source_image(path, max_pixels=50)

    def test_missing_file_raises_ioerror(self):
        with self.assertRaises(IOError):
            load_source_image("/nonexistent/texture.png")


class TestWriteBytesAtomic(unittest.TestCase):
    def test_writes_and_leaves_no_temp_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nested", "map.png")
            write_bytes_atomic(path, b"payload")
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"payload")
            self.assertEqual(os.listdir(os.path.dirname(path)), ["map.png"])


class TestLuminance(unittest.TestCase):
    def test_bt601_weights(self):
        rgb = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        luma = luminance_bt601(rgb)
        np.testing.assert_allclose(luma[0], [76.245, 149.685, 29.07])

    def test_gray_input_passthrough(self):
        gray = np.full((2, 2), 42, dtype=np.uint8)
        np.testing.assert_array_equal(luminance_bt601(gray), 42.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)

"""Luminance extraction and height-field contrast stretch."""

import logging

import numpy as np

from ..core import RasterBuffer, luminance_bt601, run_banded

logger = logging.getLogger("texture_brew.height")


def _to_byte(values: np.ndarray) -> np.ndarray:
    """Round half-to-even and clamp into uint8."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def to_luminance(albedo: RasterBuffer, workers: int = 1,
                 min_band_rows: int = 256) -> RasterBuffer:
    """Convert RGB to BT.601 luma replicated into R, G, B (alpha 255)."""
    out = np.empty((albedo.height, albedo.width), dtype=np.uint8)
    run_banded(
        lambda band: _to_byte(luminance_bt601(band)),
        albedo.rgb, out, workers=workers, min_band_rows=min_band_rows,
    )
    return RasterBuffer.from_gray(out)


def height_thresholds(height_min: float, height_max: float):
    """Return ``(min_v, max_v, range)`` in 8-bit units.

    A zero range (``height_min == height_max``) is treated as 1 so the
    stretch never divides by zero.
    """
    min_v = height_min / 100.0 * 255.0
    max_v = height_max / 100.0 * 255.0
    value_range = max_v - min_v
    if value_range == 0:
        logger.debug("Degenerate height range at %.3f; using range=1", min_v)
        value_range = 1.0
    return min_v, max_v, value_range


def generate_height(luminance: RasterBuffer, height_min: float, height_max: float,
                    workers: int = 1, min_band_rows: int = 256) -> RasterBuffer:
    """Clamp luminance to the percentile window and stretch it to [0, 255]."""
    min_v, max_v, value_range = height_thresholds(height_min, height_max)

    def _stretch(band: np.ndarray) -> np.ndarray:
        v = np.maximum(min_v, np.minimum(max_v, band.astype(np.float64)))
        return _to_byte((v - min_v) / value_range * 255.0)

    out = np.empty((luminance.height, luminance.width), dtype=np.uint8)
    run_banded(_stretch, luminance.values, out, workers=workers,
               min_band_rows=min_band_rows)
    return RasterBuffer.from_gray(out)

"""Derive displacement, roughness, metallic and AO maps.

Every map except metallic is a per-pixel function of the height field;
metallic is a single scalar broadcast over the canvas.
"""

import logging
import math

import numpy as np

from ..core import RasterBuffer, run_banded

logger = logging.getLogger("texture_brew.pbr")


def _to_byte(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _map_height(height: RasterBuffer, fn, workers: int,
                min_band_rows: int) -> RasterBuffer:
    out = np.empty((height.height, height.width), dtype=np.uint8)
    run_banded(lambda band: _to_byte(fn(band.astype(np.float64))),
               height.values, out, workers=workers, min_band_rows=min_band_rows)
    return RasterBuffer.from_gray(out)


def generate_displacement(height: RasterBuffer, strength: float,
                          workers: int = 1, min_band_rows: int = 256) -> RasterBuffer:
    """Scale height around mid-gray (128); strength 1 is the identity."""
    strength = float(strength)
    return _map_height(height, lambda v: (v - 128.0) * strength + 128.0,
                       workers, min_band_rows)


def generate_roughness(height: RasterBuffer, offset: float,
                       workers: int = 1, min_band_rows: int = 256) -> RasterBuffer:
    """Invert height (raised reads smoother) and shift by ``offset * 1.5``."""
    shift = float(offset) * 1.5
    return _map_height(height, lambda v: (255.0 - v) + shift,
                       workers, min_band_rows)


def metallic_level(metallic: float) -> int:
    """8-bit level for a metallic scalar: ``floor(metallic * 255)``."""
    return int(min(max(math.floor(float(metallic) * 255.0), 0), 255))


def generate_metallic(width: int, height: int, metallic: float) -> RasterBuffer:
    """Uniform metallic map."""
    level = metallic_level(metallic)
    return RasterBuffer.filled(width, height, (level, level, level))


def generate_ao(height: RasterBuffer, strength: float,
                workers: int = 1, min_band_rows: int = 256) -> RasterBuffer:
    """Gamma-shape height into occlusion: ``255 * (h / 255) ** strength``."""
    strength = float(strength)
    if strength == 1.0:
        return _map_height(height, lambda v: v, workers, min_band_rows)
    return _map_height(height, lambda v: 255.0 * np.power(v / 255.0, strength),
                       workers, min_band_rows)

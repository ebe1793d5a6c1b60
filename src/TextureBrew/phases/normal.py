"""Synthesize tangent-space normal maps from a height field.

Gradients come from a 3x3 Sobel operator whose edge pixels replicate the
nearest valid row/column (no wraparound). The Z component is
``255 / strength``: raising the strength shrinks Z relative to the
gradient, tilting normals further from vertical.
"""

import logging

import cv2
import numpy as np

from ..config import NormalConvention
from ..core import RasterBuffer, run_banded

logger = logging.getLogger("texture_brew.normal")

# Lower bound on strength before it divides the Z component.
_MIN_STRENGTH = 0.1


def sobel_gradients(height: np.ndarray):
    """Return ``(dx, dy)`` float64 Sobel responses of a 2-D height array.

    ``dx = (tr + 2r + br) - (tl + 2l + bl)`` and
    ``dy = (bl + 2b + br) - (tl + 2t + tr)``.
    """
    h = np.ascontiguousarray(height, dtype=np.float64)
    dx = cv2.Sobel(h, cv2.CV_64F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    dy = cv2.Sobel(h, cv2.CV_64F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)
    return dx, dy


def encode_normals(dx: np.ndarray, dy: np.ndarray, strength: float,
                   convention: NormalConvention) -> np.ndarray:
    """Normalize ``(dx, dy, dz)`` and pack it into HxWx3 uint8."""
    dz = 255.0 / max(_MIN_STRENGTH, float(strength))
    length = np.sqrt(dx * dx + dy * dy + dz * dz)

    nx = dx / length * 0.5 + 0.5
    ny = dy / length * 0.5 + 0.5
    nz = dz / length * 0.5 + 0.5
    if convention is NormalConvention.GL:
        ny = 1.0 - ny

    encoded = np.stack([nx, ny, nz], axis=-1) * 255.0
    return np.clip(np.rint(encoded), 0, 255).astype(np.uint8)


def generate_normal(height: RasterBuffer, strength: float,
                    convention: NormalConvention = NormalConvention.DX,
                    workers: int = 1, min_band_rows: int = 256) -> RasterBuffer:
    """Build an opaque normal map from the height buffer's first channel."""
    if not isinstance(convention, NormalConvention):
        convention = NormalConvention(str(convention).strip().upper())

    def _band(rows: np.ndarray) -> np.ndarray:
        dx, dy = sobel_gradients(rows)
        return encode_normals(dx, dy, strength, convention)

    out = np.empty((height.height, height.width, 3), dtype=np.uint8)
    # One halo row on each side feeds the 3x3 neighbourhood across band seams.
    run_banded(_band, height.values, out, workers=workers,
               min_band_rows=min_band_rows, halo=1)
    logger.debug(
        "Normal map %dx%d generated (strength=%.2f, convention=%s)",
        height.width, height.height, strength, convention.value,
    )
    return RasterBuffer.from_array(out)

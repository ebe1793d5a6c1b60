"""Paint edge bands into rasters.

Two flavours share one geometry:

- the *visual* border paints the user colour into the albedo;
- the *data* border forces a derived map's edge pixels to the value that is
  safe for that map's semantics, so tiled materials show no seam artifacts.

Both return a new buffer and leave their input untouched.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from ..core import RasterBuffer

logger = logging.getLogger("texture_brew.border")

# Forced edge value per map. ``None`` means the map keeps its own values.
SAFE_BORDER_VALUES: Dict[str, Optional[Tuple[int, int, int]]] = {
    "luminance": (0, 0, 0),
    "height": (0, 0, 0),
    "displacement": (0, 0, 0),
    "roughness": (255, 255, 255),
    "metallic": (0, 0, 0),
    "ao": None,
}


def border_mask(width: int, height: int, top: int, right: int,
                bottom: int, left: int) -> np.ndarray:
    """Boolean HxW mask of the pixels covered by the four edge bands."""
    mask = np.zeros((height, width), dtype=bool)
    if top > 0:
        mask[:top, :] = True
    if bottom > 0:
        mask[max(height - bottom, 0):, :] = True
    if left > 0:
        mask[:, :left] = True
    if right > 0:
        mask[:, max(width - right, 0):] = True
    return mask


def _paint(buffer: RasterBuffer, top: int, right: int, bottom: int, left: int,
           rgba: Sequence[int]) -> RasterBuffer:
    if top <= 0 and right <= 0 and bottom <= 0 and left <= 0:
        return buffer
    out = buffer.pixels.copy()
    value = np.asarray(rgba, dtype=np.uint8)
    h, w = buffer.height, buffer.width
    # Top, bottom, left, right; corners take the last write.
    if top > 0:
        out[:top, :] = value
    if bottom > 0:
        out[max(h - bottom, 0):, :] = value
    if left > 0:
        out[:, :left] = value
    if right > 0:
        out[:, max(w - right, 0):] = value
    return RasterBuffer(w, h, out)


def apply_visual_border(buffer: RasterBuffer, top: int, right: int, bottom: int,
                        left: int, color: Sequence[int]) -> RasterBuffer:
    """Paint an opaque RGB border into an albedo-like buffer."""
    r, g, b = (int(c) for c in color)
    return _paint(buffer, top, right, bottom, left, (r, g, b, 255))


def apply_data_border(buffer: RasterBuffer, top: int, right: int, bottom: int,
                      left: int, value: Sequence[int] = (0, 0, 0),
                      alpha: int = 255) -> RasterBuffer:
    """Force the border band of a derived map to a constant RGB triple."""
    r, g, b = (int(c) for c in value)
    return _paint(buffer, top, right, bottom, left, (r, g, b, int(alpha)))


def apply_map_border(buffer: RasterBuffer, map_name: str,
                     thicknesses: Tuple[int, int, int, int]) -> RasterBuffer:
    """Apply the safe-value policy registered for ``map_name``.

    ``thicknesses`` is ``(top, right, bottom, left)``.
    """
    if map_name not in SAFE_BORDER_VALUES:
        raise KeyError(f"No border policy for map '{map_name}'")
    value = SAFE_BORDER_VALUES[map_name]
    if value is None:
        return buffer
    top, right, bottom, left = thicknesses
    return apply_data_border(buffer, top, right, bottom, left, value)

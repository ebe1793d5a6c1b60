"""Fit a decoded source photograph onto the output canvas (cover-fit).

Only the part of the source that survives the crop is ever resampled, so
the working set is bounded by the target canvas (plus a few margin pixels)
whatever the source aspect ratio.
"""

import logging
import math
from typing import Tuple

import cv2
import numpy as np

from ..core import RasterBuffer

logger = logging.getLogger("texture_brew.compose")

# Extra source pixels kept around the window for the bicubic kernel.
_CUBIC_MARGIN = 2


def cover_scale(src_w: int, src_h: int, target_w: int, target_h: int) -> float:
    """Scale factor that makes the source cover the whole target canvas."""
    return max(target_w / float(src_w), target_h / float(src_h))


def _scaled_offset(src_len: int, target_len: int, scale: float) -> int:
    """Left/top crop offset in scaled-image pixels (symmetric crop)."""
    scaled_len = max(target_len, int(math.ceil(src_len * scale - 1e-6)))
    return (scaled_len - target_len) // 2


def _upscale_window(offset: int, target_len: int, scale: float,
                    src_len: int) -> Tuple[int, int]:
    """Source index range sampled by ``target_len`` output pixels."""
    first = (offset + 0.5) / scale - 0.5
    last = (offset + target_len - 0.5) / scale - 0.5
    lo = max(0, int(math.floor(first)) - _CUBIC_MARGIN)
    hi = min(src_len, int(math.ceil(last)) + _CUBIC_MARGIN + 1)
    return lo, hi


def _downscale_window(offset: int, target_len: int, scale: float,
                      src_len: int) -> Tuple[int, int]:
    """Source index range that area-averages onto ``target_len`` pixels."""
    lo = min(max(0, int(round(offset / scale))), src_len - 1)
    hi = min(src_len, int(round((offset + target_len) / scale)))
    return lo, max(hi, lo + 1)


def _premultiply(rgba: np.ndarray) -> np.ndarray:
    rgba = rgba.astype(np.float32)
    return rgba[:, :, :3] * (rgba[:, :, 3:4] / 255.0)


def cover_fit(source: RasterBuffer, target_w: int, target_h: int) -> RasterBuffer:
    """Scale ``source`` to cover ``target_w x target_h`` and crop the overflow.

    The overflow is cropped symmetrically. Transparent source pixels are
    composited over opaque black, so the result is always fully opaque.
    """
    src_w, src_h = source.width, source.height
    scale = cover_scale(src_w, src_h, target_w, target_h)
    x0 = _scaled_offset(src_w, target_w, scale)
    y0 = _scaled_offset(src_h, target_h, scale)

    if scale == 1.0:
        # Plain crop; no resampling.
        fitted = _premultiply(source.pixels[y0:y0 + target_h, x0:x0 + target_w])
    elif scale < 1.0:
        sx0, sx1 = _downscale_window(x0, target_w, scale, src_w)
        sy0, sy1 = _downscale_window(y0, target_h, scale, src_h)
        window = _premultiply(source.pixels[sy0:sy1, sx0:sx1])
        fitted = cv2.resize(window, (target_w, target_h), interpolation=cv2.INTER_AREA)
    else:
        sx0, sx1 = _upscale_window(x0, target_w, scale, src_w)
        sy0, sy1 = _upscale_window(y0, target_h, scale, src_h)
        window = _premultiply(source.pixels[sy0:sy1, sx0:sx1])
        # Destination -> window mapping with pixel-centre alignment, the
        # same convention cv2.resize uses.
        inverse = np.array([
            [1.0 / scale, 0.0, (x0 + 0.5) / scale - 0.5 - sx0],
            [0.0, 1.0 / scale, (y0 + 0.5) / scale - 0.5 - sy0],
        ], dtype=np.float64)
        fitted = cv2.warpAffine(
            window, inverse, (target_w, target_h),
            flags=cv2.INTER_CUBIC | cv2.WARP_INVERSE_MAP,
            borderMode=cv2.BORDER_REPLICATE,
        )
    if scale != 1.0:
        logger.debug(
            "Cover-fit %dx%d -> %dx%d (scale=%.4f, window %dx%d)",
            src_w, src_h, target_w, target_h, scale,
            window.shape[1], window.shape[0],
        )

    if fitted.ndim == 2:
        fitted = fitted[:, :, None]
    canvas = np.zeros((target_h, target_w, 4), dtype=np.uint8)
    canvas[:, :, 3] = 255
    fh, fw = fitted.shape[:2]
    canvas[:fh, :fw, :3] = np.clip(np.rint(fitted), 0, 255).astype(np.uint8)
    return RasterBuffer(target_w, target_h, canvas)

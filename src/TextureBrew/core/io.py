"""Image I/O utilities -- decode sources, encode map buffers, atomic writes."""

import io
import logging
import os
import threading
from pathlib import Path

import numpy as np
from PIL import Image

from ..errors import EmptySource, EncodingFailure
from .raster import RasterBuffer

# Disable Pillow's global decompression bomb check; load_source_image()
# validates the pixel count per call instead.
Image.MAX_IMAGE_PIXELS = None

logger = logging.getLogger("texture_brew")

# ITU-R BT.601 luma weights.
_BT601 = (0.299, 0.587, 0.114)

_PIL_FORMATS = {"png": "PNG", "jpeg": "JPEG", "webp": "WEBP"}

FORMAT_EXTENSIONS = {"png": ".png", "jpeg": ".jpg", "webp": ".webp"}


def load_source_image(path: str, max_pixels: int = 0) -> RasterBuffer:
    """Decode an image file into an RGBA raster.

    Decoding is a caller concern; the synthesis core only ever receives the
    resulting RasterBuffer.
    """
    ext = Path(path).suffix.lower()
    try:
        with Image.open(path) as img:
            if img.width <= 0 or img.height <= 0:
                raise EmptySource(f"Image {path} has no pixels ({img.width}x{img.height})")
            if max_pixels > 0 and img.width * img.height > max_pixels:
                logger.warning(
                    "Image %s exceeds max_pixels: %d > %d",
                    path,
                    img.width * img.height,
                    max_pixels,
                )
                raise ValueError(
                    f"Image too large: {img.width}x{img.height} = {img.width * img.height:,} "
                    f"pixels (max {max_pixels:,}). Resize input or increase max_source_pixels."
                )

            if img.mode in ("I;16", "I;16B", "I;16L", "I;16N", "I"):
                logger.debug("Loading %s as integer mode %s", path, img.mode)
                arr = np.asarray(img, dtype=np.float64)
                peak = 65535.0 if img.mode.startswith("I;16") or arr.max() > 255 else 255.0
                return RasterBuffer.from_array(np.clip(arr / peak, 0.0, 1.0))
            if img.mode == "F":
                logger.debug("Loading %s as float mode", path)
                arr = np.asarray(img, dtype=np.float64)
                return RasterBuffer.from_array(np.clip(arr, 0.0, 1.0))

            if img.mode != "RGBA":
                logger.debug("Converting image '%s' from %s->RGBA", path, img.mode)
            with img.convert("RGBA") as converted:
                arr = np.asarray(converted, dtype=np.uint8)
            logger.debug("Loaded %s (%dx%d, ext=%s)", path, img.width, img.height, ext)
            return RasterBuffer.from_array(arr)
    except (ValueError, EmptySource):
        raise
    except Exception as e:
        logger.error("Failed to open image '%s' (ext=%s): %s", path, ext, e)
        raise IOError(
            f"Failed to open image: {path}\n"
            f"  Format: {ext}, Error: {e}"
        ) from e


def encode_raster(buffer: RasterBuffer, fmt: str = "png", quality: int = 95,
                  compress_level: int = 6, grayscale: bool = False) -> bytes:
    """Serialize a raster to compressed bytes.

    Args:
        buffer: Raster to encode. Alpha is dropped; every map is opaque.
        fmt: ``png`` and ``webp`` are lossless, ``jpeg`` is lossy.
        quality: JPEG quality (1-100).
        compress_level: PNG zlib level (0-9).
        grayscale: Store channel 0 only (single-value maps).

    Raises:
        EncodingFailure: unsupported format or a codec error.

    """
    key = str(fmt).strip().lower()
    if key == "jpg":
        key = "jpeg"
    pil_format = _PIL_FORMATS.get(key)
    if pil_format is None:
        raise EncodingFailure(
            f"Unsupported output format '{fmt}' (supported: {sorted(_PIL_FORMATS)})"
        )

    arr = buffer.values if grayscale else buffer.rgb
    options = {}
    if key == "jpeg":
        options = {"quality": int(quality), "subsampling": 0, "optimize": True}
    elif key == "png":
        options = {"compress_level": int(compress_level)}
    elif key == "webp":
        options = {"lossless": True}

    out = io.BytesIO()
    try:
        with Image.fromarray(np.ascontiguousarray(arr)) as img:
            img.save(out, format=pil_format, **options)
    except Exception as exc:
        raise EncodingFailure(
            f"Failed to encode {buffer.width}x{buffer.height} raster as {key}: {exc}"
        ) from exc
    data = out.getvalue()
    logger.debug(
        "Encoded %dx%d raster as %s (%d bytes, grayscale=%s)",
        buffer.width, buffer.height, key, len(data), grayscale,
    )
    return data


def decode_raster(data: bytes) -> RasterBuffer:
    """Decode bytes produced by encode_raster() back into a raster."""
    with Image.open(io.BytesIO(data)) as img:
        with img.convert("RGBA") as converted:
            return RasterBuffer.from_array(np.asarray(converted, dtype=np.uint8))


def write_bytes_atomic(path: str, data: bytes):
    """Write bytes via temp file + ``os.replace`` to avoid truncated output."""
    parent_dir = os.path.dirname(path) or "."
    os.makedirs(parent_dir, exist_ok=True)
    ext = Path(path).suffix
    tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}{ext}"
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
        logger.debug("Saved: %s (%d bytes)", path, len(data))
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def luminance_bt601(rgb: np.ndarray) -> np.ndarray:
    """Compute BT.601 luma from an HxWx3 (or HxWx4) array as float64."""
    if rgb.ndim == 2:
        return rgb.astype(np.float64)
    rgb = rgb[:, :, :3].astype(np.float64)
    return (
        _BT601[0] * rgb[:, :, 0] +
        _BT601[1] * rgb[:, :, 1] +
        _BT601[2] * rgb[:, :, 2]
    )

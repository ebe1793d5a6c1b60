"""Core utilities -- re-exports all public symbols for convenience."""

from .raster import RasterBuffer
from .io import (
    FORMAT_EXTENSIONS,
    load_source_image,
    encode_raster,
    decode_raster,
    write_bytes_atomic,
    luminance_bt601,
)
from .bands import split_row_bands, run_banded
from .logging import setup_logging

__all__ = [
    "RasterBuffer",
    "FORMAT_EXTENSIONS",
    "load_source_image", "encode_raster", "decode_raster",
    "write_bytes_atomic", "luminance_bt601",
    "split_row_bands", "run_banded",
    "setup_logging",
]

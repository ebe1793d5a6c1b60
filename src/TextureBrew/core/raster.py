"""RGBA8 raster buffer shared by every synthesis stage."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import EmptySource


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """Opaque-by-convention RGBA8 image.

    ``pixels`` is a read-only uint8 array of shape ``(height, width, 4)``.
    Stages never mutate a buffer they receive; they build a new array and
    wrap it in a new RasterBuffer.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        """Validate dimensions and freeze the pixel storage."""
        if self.width <= 0 or self.height <= 0:
            raise EmptySource(
                f"Raster must have positive dimensions, got {self.width}x{self.height}"
            )
        arr = self.pixels
        if not isinstance(arr, np.ndarray) or arr.dtype != np.uint8:
            raise TypeError("RasterBuffer.pixels must be a uint8 numpy array")
        if arr.shape != (self.height, self.width, 4):
            raise ValueError(
                f"RasterBuffer.pixels shape {arr.shape} does not match "
                f"({self.height}, {self.width}, 4)"
            )
        arr = np.ascontiguousarray(arr)
        arr.flags.writeable = False
        object.__setattr__(self, "pixels", arr)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterBuffer":
        """Build a buffer from HxW, HxWx1, HxWx3 or HxWx4 data.

        Float input is treated as [0, 1]; integer input as 0-255. Missing
        alpha becomes fully opaque.
        """
        arr = np.asarray(arr)
        if arr.ndim not in (2, 3) or arr.shape[0] == 0 or arr.shape[1] == 0:
            raise EmptySource(f"Cannot build a raster from array of shape {arr.shape}")
        if np.issubdtype(arr.dtype, np.floating):
            arr = np.rint(np.clip(arr, 0.0, 1.0) * 255.0)
        arr = np.clip(arr, 0, 255).astype(np.uint8)

        if arr.ndim == 2:
            arr = arr[:, :, None]
        channels = arr.shape[2]
        h, w = arr.shape[:2]
        out = np.empty((h, w, 4), dtype=np.uint8)
        if channels == 1:
            out[:, :, :3] = arr
            out[:, :, 3] = 255
        elif channels == 3:
            out[:, :, :3] = arr
            out[:, :, 3] = 255
        elif channels == 4:
            out[:] = arr
        else:
            raise ValueError(f"Unsupported channel count: {channels}")
        return cls(w, h, out)

    @classmethod
    def from_gray(cls, values: np.ndarray) -> "RasterBuffer":
        """Wrap a single-value map, replicating it into R, G and B."""
        values = np.asarray(values)
        if values.ndim != 2:
            raise ValueError(f"Single-value map must be 2-D, got shape {values.shape}")
        return cls.from_array(values)

    @classmethod
    def filled(cls, width: int, height: int, rgb: Sequence[int]) -> "RasterBuffer":
        """Create a uniform opaque buffer."""
        if width <= 0 or height <= 0:
            raise EmptySource(f"Cannot fill a {width}x{height} raster")
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[:, :, :3] = np.asarray(rgb, dtype=np.uint8)
        out[:, :, 3] = 255
        return cls(width, height, out)

    @property
    def values(self) -> np.ndarray:
        """Red channel as a 2-D view; the source of truth for single-value maps."""
        return self.pixels[:, :, 0]

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.width, self.height, self.pixels.copy())

    def is_opaque(self) -> bool:
        return bool(np.all(self.alpha == 255))

    def is_grayscale(self) -> bool:
        p = self.pixels
        return bool(np.array_equal(p[:, :, 0], p[:, :, 1])
                    and np.array_equal(p[:, :, 0], p[:, :, 2]))

    def __eq__(self, other) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return (self.width == other.width and self.height == other.height
                and np.array_equal(self.pixels, other.pixels))

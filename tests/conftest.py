"""Shared test fixtures."""

import shutil
import tempfile

import numpy as np
import pytest

from TextureBrew.config import BorderSettings, PipelineConfig, SynthesisParams
from TextureBrew.core import RasterBuffer


def small_config(workers: int = 1, min_band_rows: int = 256) -> PipelineConfig:
    """Config that accepts tiny canvases so tests stay fast."""
    config = PipelineConfig()
    config.strict_resolution = False
    config.max_workers = workers
    config.min_band_rows = min_band_rows
    return config


def make_params(resolution: str = "4x4", border=(0, 0, 0, 0),
                color="#000000", **overrides) -> SynthesisParams:
    """Build params with identity-like defaults; ``border`` is (t, r, b, l)."""
    top, right, bottom, left = border
    values = dict(
        resolution=resolution,
        normal_strength=1.0,
        normal_convention="DX",
        displacement_strength=1.0,
        height_min=0.0,
        height_max=100.0,
        roughness_offset=0.0,
        metallic=0.0,
        ao_strength=1.0,
        border=BorderSettings(top=top, right=right, bottom=bottom,
                              left=left, color=color),
    )
    values.update(overrides)
    return SynthesisParams(**values)


def gray_source(width: int = 4, height: int = 4, value: int = 128) -> RasterBuffer:
    return RasterBuffer.filled(width, height, (value, value, value))


def random_source(width: int, height: int, seed: int = 0) -> RasterBuffer:
    rng = np.random.default_rng(seed)
    return RasterBuffer.from_array(
        rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    )


def gray_buffer(values) -> RasterBuffer:
    return RasterBuffer.from_gray(np.asarray(values, dtype=np.uint8))


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def default_config():
    return PipelineConfig()

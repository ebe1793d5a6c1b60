"""Turn one decoded photograph into a seven-map PBR texture set.

`synthesize()` is the single entry point. It validates its inputs once,
runs the stages in dependency order and encodes every map; stages below it
assume validated input. Data flows strictly forward::

    cover-fit -> visual border -> luminance -> data border -> height
      -> data border -> {normal, displacement, roughness, metallic, ao}
      -> encoder
"""

import copy
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional, Tuple, Union

import numpy as np

from .config import MAP_NAMES, SINGLE_VALUE_MAPS, PipelineConfig, SynthesisParams
from .core import RasterBuffer, encode_raster
from .errors import EmptySource, EncodingFailure
from .phases.border import apply_map_border, apply_visual_border
from .phases.compose import cover_fit
from .phases.height import generate_height, to_luminance
from .phases.normal import generate_normal
from .phases.pbr import (
    generate_ao,
    generate_displacement,
    generate_metallic,
    generate_roughness,
)

logger = logging.getLogger("texture_brew.pipeline")

# Renderer material slot -> map name.
MATERIAL_SLOTS = {
    "base_color": "albedo",
    "normal": "normal",
    "roughness": "roughness",
    "metalness": "metallic",
    "displacement": "height",
    "ao": "ao",
}


@dataclass(frozen=True)
class SynthesisMaps:
    """Raw rasters produced by one synthesis call, before encoding."""

    albedo: RasterBuffer
    normal: RasterBuffer
    roughness: RasterBuffer
    metallic: RasterBuffer
    height: RasterBuffer
    displacement: RasterBuffer
    ao: RasterBuffer

    def __getitem__(self, name: str) -> RasterBuffer:
        if name not in MAP_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def items(self) -> Iterator[Tuple[str, RasterBuffer]]:
        for name in MAP_NAMES:
            yield name, getattr(self, name)


@dataclass(frozen=True)
class TextureSet:
    """Seven encoded map streams created atomically by one synthesis call."""

    albedo: bytes
    normal: bytes
    roughness: bytes
    metallic: bytes
    height: bytes
    displacement: bytes
    ao: bytes
    formats: Dict[str, str] = field(default_factory=dict)

    def __getitem__(self, name: str) -> bytes:
        if name not in MAP_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def items(self) -> Iterator[Tuple[str, bytes]]:
        for name in MAP_NAMES:
            yield name, getattr(self, name)

    def material_slots(self) -> Dict[str, bytes]:
        """Map renderer material slots to their encoded streams."""
        return {slot: getattr(self, name) for slot, name in MATERIAL_SLOTS.items()}


class TextureSynthesizer:
    """Run the synthesis stages with the settings of a `PipelineConfig`."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        """Store configuration; the synthesizer keeps no per-call state."""
        self.config = config or PipelineConfig()

    def _timed(self, label: str, fn: Callable, *args, **kwargs):
        start = time.perf_counter()
        result = fn(*args, **kwargs)
        logger.debug("%s finished in %.1f ms", label, (time.perf_counter() - start) * 1000.0)
        return result

    def _prepare(self, source, params: Optional[SynthesisParams]):
        """Validate inputs once and snapshot the parameters."""
        if isinstance(source, RasterBuffer):
            raster = source
        elif source is None:
            raise EmptySource("No source image supplied")
        else:
            arr = np.asarray(source)
            if arr.ndim < 2 or arr.shape[0] == 0 or arr.shape[1] == 0:
                raise EmptySource(f"Source raster has no pixels (shape={arr.shape})")
            raster = RasterBuffer.from_array(arr)

        snapshot = copy.deepcopy(params if params is not None else self.config.params)
        snapshot.validate(strict_resolution=self.config.strict_resolution)
        return raster, snapshot

    def render(self, source: Union[RasterBuffer, np.ndarray],
               params: Optional[SynthesisParams] = None) -> SynthesisMaps:
        """Produce the seven raw rasters without encoding them."""
        raster, p = self._prepare(source, params)
        target_w, target_h = p.target_size
        thick = p.border.thicknesses
        top, right, bottom, left = thick
        workers = self.config.max_workers
        rows = self.config.min_band_rows

        started = time.perf_counter()
        albedo = self._timed("cover-fit", cover_fit, raster, target_w, target_h)
        albedo = apply_visual_border(albedo, top, right, bottom, left, p.border.rgb)

        luminance = self._timed("luminance", to_luminance, albedo, workers, rows)
        luminance = apply_map_border(luminance, "luminance", thick)

        height = self._timed("height", generate_height, luminance,
                             p.height_min, p.height_max, workers, rows)
        height = apply_map_border(height, "height", thick)

        derived = self._derive(height, p, workers, rows)

        logger.debug(
            "Rendered %dx%d maps from %dx%d source in %.1f ms",
            target_w, target_h, raster.width, raster.height,
            (time.perf_counter() - started) * 1000.0,
        )
        return SynthesisMaps(albedo=albedo, height=height, **derived)

    def _derive(self, height: RasterBuffer, p: SynthesisParams,
                workers: int, rows: int) -> Dict[str, RasterBuffer]:
        """Run the height-dependent maps and metallic, concurrently if allowed."""
        thick = p.border.thicknesses

        # Each derived map re-applies its own safe border after its transform.
        tasks = {
            "normal": lambda w: generate_normal(
                height, p.normal_strength, p.convention, w, rows),
            "displacement": lambda w: apply_map_border(
                generate_displacement(height, p.displacement_strength, w, rows),
                "displacement", thick),
            "roughness": lambda w: apply_map_border(
                generate_roughness(height, p.roughness_offset, w, rows),
                "roughness", thick),
            "metallic": lambda w: apply_map_border(
                generate_metallic(height.width, height.height, p.metallic),
                "metallic", thick),
            "ao": lambda w: apply_map_border(
                generate_ao(height, p.ao_strength, w, rows), "ao", thick),
        }

        if workers <= 1:
            return {name: self._timed(name, task, 1) for name, task in tasks.items()}

        stage_workers = min(workers, len(tasks))
        band_workers = max(1, workers // stage_workers)
        with ThreadPoolExecutor(max_workers=stage_workers) as executor:
            futures = {
                name: executor.submit(self._timed, name, task, band_workers)
                for name, task in tasks.items()
            }
            return {name: future.result() for name, future in futures.items()}

    def encode(self, maps: SynthesisMaps) -> TextureSet:
        """Encode every map; any failure aborts the whole set."""
        enc = self.config.encoding
        streams = {}
        formats = {}
        for name, buffer in maps.items():
            fmt = enc.format_for(name)
            grayscale = enc.collapse_grayscale and name in SINGLE_VALUE_MAPS
            try:
                streams[name] = encode_raster(
                    buffer, fmt,
                    quality=enc.jpeg_quality,
                    compress_level=enc.png_compress_level,
                    grayscale=grayscale,
                )
            except EncodingFailure as exc:
                logger.error("Encoding %s map failed: %s", name, exc)
                raise
            formats[name] = "jpeg" if fmt == "jpg" else fmt
        return TextureSet(formats=formats, **streams)

    def synthesize(self, source: Union[RasterBuffer, np.ndarray],
                   params: Optional[SynthesisParams] = None) -> TextureSet:
        """Render and encode a full texture set."""
        started = time.perf_counter()
        maps = self.render(source, params)
        texture_set = self._timed("encode", self.encode, maps)
        logger.info(
            "Texture set synthesized (%dx%d) in %.2f s",
            maps.albedo.width, maps.albedo.height, time.perf_counter() - started,
        )
        return texture_set


def synthesize(source: Union[RasterBuffer, np.ndarray],
               params: Optional[SynthesisParams] = None,
               config: Optional[PipelineConfig] = None) -> TextureSet:
    """Convert a decoded photograph into an encoded PBR `TextureSet`.

    Raises:
        InvalidParameters: a parameter is outside its range.
        EmptySource: the source raster has no pixels.
        EncodingFailure: a map could not be serialized.

    """
    return TextureSynthesizer(config).synthesize(source, params)

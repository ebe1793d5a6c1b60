"""Define typed configuration models for texture synthesis.

Use `PipelineConfig` to load, validate, and persist runtime settings, and
`SynthesisParams` for the per-call material parameters.
"""

import math
import numbers
import os
import logging
import yaml
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Dict, List, Tuple, Union
from enum import Enum

import numpy as np
from PIL import ImageColor

from .core.io import write_bytes_atomic
from .errors import InvalidParameters

logger = logging.getLogger("texture_brew.config")


class Resolution(Enum):
    """Enumerate the output canvas presets."""

    SQUARE_2K = "2048x2048"
    WIDE_2K = "2048x1080"


class NormalConvention(Enum):
    """Tangent-space normal Y orientation."""

    DX = "DX"
    GL = "GL"


class MapName(Enum):
    """Enumerate the seven maps of a texture set, in output order."""

    ALBEDO = "albedo"
    NORMAL = "normal"
    ROUGHNESS = "roughness"
    METALLIC = "metallic"
    HEIGHT = "height"
    DISPLACEMENT = "displacement"
    AO = "ao"


MAP_NAMES: List[str] = [m.value for m in MapName]

# Maps that carry one value per pixel (replicated into R, G and B).
SINGLE_VALUE_MAPS = frozenset({"roughness", "metallic", "height", "displacement", "ao"})

SUPPORTED_FORMATS = ("png", "jpeg", "webp")

RGB = Tuple[int, int, int]


def parse_resolution(value: str) -> Tuple[int, int]:
    """Parse ``"WxH"`` into ``(width, height)``. Raises ValueError."""
    if isinstance(value, Resolution):
        value = value.value
    text = str(value).strip().lower()
    parts = text.split("x")
    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise ValueError(f"resolution must look like 'WxH', got '{value}'")
    width, height = (int(p) for p in parts)
    if width < 1 or height < 1:
        raise ValueError(f"resolution dimensions must be >= 1, got '{value}'")
    return width, height


def parse_color(value: Union[str, List[int], Tuple[int, ...]]) -> RGB:
    """Parse a CSS-style color string or an RGB triple into 8-bit RGB."""
    if isinstance(value, str):
        try:
            rgb = ImageColor.getrgb(value.strip())
        except ValueError as exc:
            raise ValueError(f"unrecognized color '{value}'") from exc
        return int(rgb[0]), int(rgb[1]), int(rgb[2])
    try:
        components = [int(c) for c in value]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"color must be a string or RGB triple, got {value!r}") from exc
    if len(components) != 3 or any(c < 0 or c > 255 for c in components):
        raise ValueError(f"color triple must have 3 components in [0, 255], got {value!r}")
    return components[0], components[1], components[2]


def _is_bool(value) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not _is_bool(value)


def _is_number(value) -> bool:
    """Finite real scalar; numpy scalars count, booleans do not."""
    return (
        isinstance(value, numbers.Real)
        and not _is_bool(value)
        and math.isfinite(value)
    )


def _check_range(errors: List[str], name: str, value, lo: float, hi: float):
    if not _is_number(value):
        errors.append(f"{name} must be a finite number, got {value!r}")
    elif not (lo <= value <= hi):
        errors.append(f"{name} must be in [{lo:g}, {hi:g}], got {value:g}")


@dataclass
class BorderSettings:
    """Four independent edge thicknesses plus the albedo border color."""

    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0
    color: Union[str, List[int]] = "#808080"

    @property
    def thicknesses(self) -> Tuple[int, int, int, int]:
        """Return ``(top, right, bottom, left)``."""
        return int(self.top), int(self.right), int(self.bottom), int(self.left)

    @property
    def is_empty(self) -> bool:
        return all(t <= 0 for t in self.thicknesses)

    @property
    def rgb(self) -> RGB:
        return parse_color(self.color)


@dataclass
class SynthesisParams:
    """Parameter set for one synthesis call."""

    resolution: str = Resolution.SQUARE_2K.value
    normal_strength: float = 1.5
    normal_convention: str = NormalConvention.DX.value
    displacement_strength: float = 2.2
    height_min: float = 20.0
    height_max: float = 80.0
    roughness_offset: float = 0.0
    metallic: float = 0.0
    ao_strength: float = 1.0
    border: BorderSettings = field(default_factory=BorderSettings)

    @property
    def target_size(self) -> Tuple[int, int]:
        return parse_resolution(self.resolution)

    @property
    def convention(self) -> NormalConvention:
        return NormalConvention(str(self.normal_convention).strip().upper())

    def collect_errors(self, strict_resolution: bool = True) -> List[str]:
        """Return every range violation as a human-readable message."""
        errors = []

        size = None
        try:
            size = self.target_size
        except ValueError as exc:
            errors.append(str(exc))
        if size is not None and strict_resolution:
            presets = {r.value for r in Resolution}
            if f"{size[0]}x{size[1]}" not in presets:
                errors.append(
                    f"resolution must be one of {sorted(presets)}, got '{self.resolution}'"
                )

        _check_range(errors, "normal_strength", self.normal_strength, 0.5, 6.0)
        try:
            self.convention
        except ValueError:
            errors.append(
                "normal_convention must be one of "
                f"{[c.value for c in NormalConvention]}, got '{self.normal_convention}'"
            )
        _check_range(errors, "displacement_strength", self.displacement_strength, 0.0, 5.0)
        _check_range(errors, "height_min", self.height_min, 0.0, 100.0)
        _check_range(errors, "height_max", self.height_max, 0.0, 100.0)
        if (_is_number(self.height_min) and _is_number(self.height_max)
                and self.height_min >= self.height_max):
            errors.append(
                f"height_min ({self.height_min:g}) must be < height_max ({self.height_max:g})"
            )
        _check_range(errors, "roughness_offset", self.roughness_offset, -100.0, 100.0)
        _check_range(errors, "metallic", self.metallic, 0.0, 1.0)
        _check_range(errors, "ao_strength", self.ao_strength, 0.0, 2.0)

        b = self.border
        sides = {"top": b.top, "bottom": b.bottom, "left": b.left, "right": b.right}
        for side, value in sides.items():
            if not _is_integer(value):
                errors.append(f"border.{side} must be an integer, got {value!r}")
            elif value < 0:
                errors.append(f"border.{side} must be >= 0, got {value}")
            elif size is not None:
                vertical = side in ("top", "bottom")
                dim = size[1] if vertical else size[0]
                # Each side is bounded by its own axis: top/bottom by the
                # height, left/right by the width. A band may reach the
                # centre line but not cross it.
                if 2 * int(value) > dim:
                    errors.append(
                        f"border.{side} ({value}) must be <= half the canvas "
                        f"{'height' if vertical else 'width'} ({dim // 2})"
                    )
        try:
            b.rgb
        except ValueError as exc:
            errors.append(f"border.color: {exc}")

        return errors

    def validate(self, strict_resolution: bool = True):
        """Raise InvalidParameters listing every violation."""
        errors = self.collect_errors(strict_resolution)
        if errors:
            raise InvalidParameters(
                "Invalid synthesis parameters:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


@dataclass
class EncodingConfig:
    """Per-map serialization settings."""

    format_map: Dict[str, str] = field(default_factory=lambda: {
        "albedo": "jpeg",
        "normal": "png",
        "roughness": "png",
        "metallic": "png",
        "height": "png",
        "displacement": "png",
        "ao": "png",
    })
    jpeg_quality: int = 95
    png_compress_level: int = 6
    collapse_grayscale: bool = True

    def format_for(self, map_name: str) -> str:
        return str(self.format_map.get(map_name, "png")).strip().lower()


_SUPPORTED_CONFIG_VERSION = 1


@dataclass
class PipelineConfig:
    """Master configuration."""

    config_version: int = 1
    log_level: str = "INFO"
    max_workers: int = 4
    min_band_rows: int = 256
    strict_resolution: bool = True
    max_source_pixels: int = 67108864  # 8192x8192
    output_dir: str = "./output"
    archive: bool = False

    params: SynthesisParams = field(default_factory=SynthesisParams)
    encoding: EncodingConfig = field(default_factory=EncodingConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "PipelineConfig":
        """Load configuration from YAML; a missing file yields the defaults."""
        config = cls()
        if not os.path.exists(path):
            logger.info("No config at '%s'; using built-in defaults.", path)
            return config

        data = _read_yaml_mapping(path)
        version = data.get("config_version", _SUPPORTED_CONFIG_VERSION)
        if isinstance(version, int) and version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "'%s' declares config_version %d; settings newer than "
                "version %d are ignored.", path, version, _SUPPORTED_CONFIG_VERSION,
            )
        _merge_dict_to_dataclass(config, data)
        try:
            config.validate()
        except InvalidParameters as exc:
            raise InvalidParameters(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Persist the configuration atomically as YAML."""
        text = yaml.safe_dump(asdict(self), default_flow_style=False, sort_keys=False)
        write_bytes_atomic(path, text.encode("utf-8"))

    def validate(self):
        """Validate configuration values. Raises InvalidParameters."""
        errors = []

        if str(self.log_level).upper() not in _LOG_LEVELS:
            errors.append(f"log_level must be one of {_LOG_LEVELS}, got '{self.log_level}'")
        if not (1 <= self.max_workers <= 128):
            errors.append(f"max_workers must be in [1, 128], got {self.max_workers}")
        if self.min_band_rows < 1:
            errors.append("min_band_rows must be >= 1")
        if self.max_source_pixels < 0:
            errors.append("max_source_pixels must be >= 0 (0 = unlimited)")

        errors.extend(
            f"params.{e}" for e in self.params.collect_errors(self.strict_resolution)
        )

        enc = self.encoding
        unknown = sorted(set(enc.format_map) - set(MAP_NAMES))
        if unknown:
            errors.append(f"encoding.format_map has unknown maps {unknown} (valid: {MAP_NAMES})")
        if not (1 <= enc.jpeg_quality <= 100):
            errors.append("encoding.jpeg_quality must be in [1, 100]")
        if not (0 <= enc.png_compress_level <= 9):
            errors.append("encoding.png_compress_level must be in [0, 9]")
        for map_name in MAP_NAMES:
            if map_name != "albedo" and enc.format_for(map_name) in ("jpeg", "jpg"):
                logger.warning(
                    "encoding.format_map['%s'] is lossy; JPEG quantizes data maps.",
                    map_name,
                )

        if errors:
            raise InvalidParameters(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


_LOG_LEVELS = ["CRITICAL", "DEBUG", "ERROR", "INFO", "WARNING"]


def _read_yaml_mapping(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise InvalidParameters(f"Cannot parse YAML in '{path}': {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidParameters(
            f"'{path}' must hold a YAML mapping at the top level, "
            f"not {type(data).__name__}"
        )
    return data


def _coerce(key: str, current, value):
    """Return ``(accepted, value)`` for a YAML scalar replacing ``current``."""
    if value is None:
        logger.warning("Config key '%s' is null; keeping default %r.", key, current)
        return False, current
    if key.endswith("color") and isinstance(value, (str, list)):
        return True, value
    kind = type(current)
    if isinstance(value, kind) and not (kind is int and isinstance(value, bool)):
        return True, value
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return True, float(value)
    if kind is int and isinstance(value, float) and value.is_integer():
        return True, int(value)
    logger.warning(
        "Config key '%s' expects %s, got %s (%r); keeping default.",
        key, kind.__name__, type(value).__name__, value,
    )
    return False, current


def _merge_dict_to_dataclass(obj, data: dict, _path: str = ""):
    for key, value in data.items():
        full_key = f"{_path}{key}"
        if not hasattr(obj, key):
            logger.warning("Unknown config key ignored: '%s'", full_key)
            continue
        current = getattr(obj, key)
        if is_dataclass(current) and isinstance(value, dict):
            _merge_dict_to_dataclass(current, value, f"{full_key}.")
        elif isinstance(current, dict) and isinstance(value, dict):
            current.update(value)
        else:
            accepted, value = _coerce(full_key, current, value)
            if accepted:
                setattr(obj, key, value)

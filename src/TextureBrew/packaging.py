"""Name, write and archive the maps of a `TextureSet`."""

import io
import logging
import os
import re
import zipfile
from typing import Dict, List

from .core import FORMAT_EXTENSIONS, write_bytes_atomic
from .pipeline import TextureSet

logger = logging.getLogger("texture_brew.packaging")

MAP_FILE_SUFFIXES: Dict[str, str] = {
    "albedo": "Albedo",
    "normal": "Normal",
    "roughness": "Roughness",
    "metallic": "Metallic",
    "height": "Height",
    "displacement": "Displacement",
    "ao": "AO",
}

ARCHIVE_SUFFIX = "_PBR.zip"


def sanitize_material_name(name: str) -> str:
    """Reduce a material name to ``[A-Za-z0-9_-]``. Raises ValueError if empty."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", str(name or "").strip()).strip("_")
    if not cleaned:
        raise ValueError(f"Material name is empty after sanitizing: {name!r}")
    return cleaned


def map_filenames(texture_set: TextureSet, name: str) -> Dict[str, str]:
    """Return ``{map_name: "<name>_<Suffix>.<ext>"}``."""
    base = sanitize_material_name(name)
    names = {}
    for map_name, _ in texture_set.items():
        fmt = texture_set.formats.get(map_name, "png")
        ext = FORMAT_EXTENSIONS.get(fmt, ".png")
        names[map_name] = f"{base}_{MAP_FILE_SUFFIXES[map_name]}{ext}"
    return names


def export_texture_set(texture_set: TextureSet, output_dir: str, name: str) -> List[str]:
    """Write each map into ``output_dir``; returns the written paths."""
    written = []
    for map_name, filename in map_filenames(texture_set, name).items():
        path = os.path.join(output_dir, filename)
        write_bytes_atomic(path, texture_set[map_name])
        written.append(path)
    logger.info("Exported %d maps to %s", len(written), output_dir)
    return written


def build_archive(texture_set: TextureSet, name: str) -> bytes:
    """Bundle every map into an in-memory ZIP archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for map_name, filename in map_filenames(texture_set, name).items():
            info = zipfile.ZipInfo(filename)
            # Image payloads are already compressed.
            info.compress_type = zipfile.ZIP_STORED
            archive.writestr(info, texture_set[map_name])
    return buffer.getvalue()


def write_archive(texture_set: TextureSet, output_dir: str, name: str) -> str:
    """Write ``<name>_PBR.zip`` into ``output_dir``; returns its path."""
    path = os.path.join(output_dir, sanitize_material_name(name) + ARCHIVE_SUFFIX)
    write_bytes_atomic(path, build_archive(texture_set, name))
    logger.info("Wrote archive %s", path)
    return path

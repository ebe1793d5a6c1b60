"""Tests for map naming, export, archiving and pyproject.toml correctness."""

import io
import os
import tempfile
import unittest
import zipfile

from TextureBrew.config import MAP_NAMES
from TextureBrew.packaging import (
    build_archive,
    export_texture_set,
    map_filenames,
    sanitize_material_name,
    write_archive,
)
from TextureBrew.pipeline import TextureSet


def _fake_set():
    streams = {name: f"{name}-bytes".encode() for name in MAP_NAMES}
    formats = {name: "png" for name in MAP_NAMES}
    formats["albedo"] = "jpeg"
    return TextureSet(formats=formats, **streams)


class TestNaming(unittest.TestCase):
    def test_sanitize(self):
        self.assertEqual(sanitize_material_name("Red Brick"), "Red_Brick")
        self.assertEqual(sanitize_material_name("../wall*01"), "wall_01")
        self.assertEqual(sanitize_material_name("oak-floor_2"), "oak-floor_2")
        for bad in ("", "   ", "***"):
            with self.assertRaises(ValueError):
                sanitize_material_name(bad)

    def test_map_filenames(self):
        names = map_filenames(_fake_set(), "Brick")
        self.assertEqual(names["albedo"], "Brick_Albedo.jpg")
        self.assertEqual(names["normal"], "Brick_Normal.png")
        self.assertEqual(names["ao"], "Brick_AO.png")
        self.assertEqual(len(set(names.values())), 7)


class TestExport(unittest.TestCase):
    def test_export_writes_every_map(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            written = export_texture_set(_fake_set(), tmpdir, "Brick")
            self.assertEqual(len(written), 7)
            with open(os.path.join(tmpdir, "Brick_Height.png"), "rb") as f:
                self.assertEqual(f.read(), b"height-bytes")

    def test_archive_is_stored_and_complete(self):
        data = build_archive(_fake_set(), "Brick")
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            infos = archive.infolist()
            self.assertEqual(len(infos), 7)
            self.assertTrue(all(i.compress_type == zipfile.ZIP_STORED for i in infos))
            self.assertEqual(archive.read("Brick_Roughness.png"), b"roughness-bytes")

    def test_write_archive_name(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_archive(_fake_set(), tmpdir, "Red Brick")
            self.assertEqual(os.path.basename(path), "Red_Brick_PBR.zip")
            self.assertTrue(zipfile.is_zipfile(path))


class TestPyproject(unittest.TestCase):
    def _load(self):
        import tomllib
        toml_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "pyproject.toml"
        )
        with open(toml_path, "rb") as f:
            return tomllib.load(f)

    def test_runtime_dependencies(self):
        deps = " ".join(self._load()["project"]["dependencies"])
        for name in ("numpy", "Pillow", "opencv-python-headless", "PyYAML", "tqdm"):
            self.assertIn(name, deps)
        self.assertNotIn("scipy", deps)

    def test_test_extra_has_pytest(self):
        test_deps = self._load()["project"]["optional-dependencies"]["test"]
        self.assertTrue(any(d.startswith("pytest") for d in test_deps))

    def test_console_script(self):
        scripts = self._load()["project"]["scripts"]
        self.assertEqual(scripts["TextureBrew"], "TextureBrew.cli:main")


if __name__ == "__main__":
    unittest.main(verbosity=2)

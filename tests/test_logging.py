"""Tests for logging setup in embedded mode."""

import logging
import os
import tempfile
import unittest

from TextureBrew.core import setup_logging


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.package = logging.getLogger("texture_brew")
        self._root_handlers = list(self.root.handlers)
        self._package_handlers = list(self.package.handlers)
        self._package_level = self.package.level
        self._sentinel = logging.NullHandler()
        self.root.addHandler(self._sentinel)

    def tearDown(self):
        for handler in self.package.handlers:
            if handler not in self._package_handlers:
                handler.close()
        self.package.handlers = self._package_handlers
        self.package.setLevel(self._package_level)
        self.root.handlers = self._root_handlers

    def test_embedded_mode_keeps_root_handlers(self):
        setup_logging("DEBUG")
        self.assertIn(self._sentinel, self.root.handlers)
        self.assertEqual(self.package.level, logging.DEBUG)

    def test_file_handler_is_added_once(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "logs", "texture_brew.log")
            setup_logging("INFO", log_file)
            setup_logging("INFO", log_file)
            files = [h for h in self.package.handlers
                     if getattr(h, "baseFilename", None) == os.path.abspath(log_file)]
            self.assertEqual(len(files), 1)
            self.assertTrue(os.path.isdir(os.path.dirname(log_file)))
            for handler in files:
                self.package.removeHandler(handler)
                handler.close()

    def test_invalid_level_falls_back_to_info(self):
        setup_logging("LOUD")
        self.assertEqual(self.package.level, logging.INFO)


if __name__ == "__main__":
    unittest.main(verbosity=2)

"""
Tests for output naming and the calculator directory exporter.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

from ..output import (
    DatasetExporter, ExportError, dataset_name, sprite_sheet_name, valid_calc_dir,
)
from ..pipeline import FactorioData


def make_data(sprite_hash="d41d8cd98f00b204e9800998ecf8427e") -> FactorioData:
    return FactorioData(
        normal='{"recipes": "normal"}',
        expensive='{"recipes": "expensive"}',
        sprite_sheet=b"\x89PNG fake",
        sprite_hash=sprite_hash,
        version="1.1.0",
    )


class TestNaming(unittest.TestCase):
    """Test output file names."""

    def test_sprite_sheet_name(self):
        self.assertEqual(sprite_sheet_name("abc"), "sprite-sheet-abc.png")

    def test_dataset_names(self):
        self.assertEqual(dataset_name("vanilla", "1.1.0"), "vanilla-1.1.0.json")
        self.assertEqual(dataset_name("vanilla", "1.1.0", expensive=True),
                         "vanilla-1.1.0-expensive.json")


class TestDatasetExporter(unittest.TestCase):
    """Test writing outputs into a calculator directory."""

    def setUp(self):
        self.calc_dir = Path(tempfile.mkdtemp())
        (self.calc_dir / "calc.html").write_text("<html></html>")

    def tearDown(self):
        shutil.rmtree(self.calc_dir, ignore_errors=True)

    def test_requires_calc_html(self):
        (self.calc_dir / "calc.html").unlink()

        self.assertFalse(valid_calc_dir(self.calc_dir))
        with self.assertRaises(ExportError) as ctx:
            DatasetExporter(self.calc_dir)
        self.assertIn("Invalid calculator directory", str(ctx.exception))

    def test_export(self):
        data = make_data()
        paths = DatasetExporter(self.calc_dir, prefix="modded").export(data)

        self.assertEqual(paths.sprite_sheet,
                         self.calc_dir / "images" / f"sprite-sheet-{data.sprite_hash}.png")
        self.assertEqual(paths.normal, self.calc_dir / "data" / "modded-1.1.0.json")
        self.assertEqual(paths.expensive, self.calc_dir / "data" / "modded-1.1.0-expensive.json")

        self.assertEqual(paths.sprite_sheet.read_bytes(), data.sprite_sheet)
        self.assertEqual(paths.normal.read_text(encoding="utf-8"), data.normal)
        self.assertEqual(paths.expensive.read_text(encoding="utf-8"), data.expensive)

    def test_refuses_to_overwrite(self):
        data = make_data()
        DatasetExporter(self.calc_dir).export(data)

        with self.assertRaises(ExportError) as ctx:
            DatasetExporter(self.calc_dir).export(data)
        self.assertIn("already exists (use --force to overwrite)", str(ctx.exception))

    def test_existing_dataset_blocks_new_sprite_sheet(self):
        DatasetExporter(self.calc_dir).export(make_data())
        exporter = DatasetExporter(self.calc_dir)

        with self.assertRaises(ExportError) as ctx:
            exporter.export(make_data(sprite_hash="ffff"))
        self.assertIn("Data set", str(ctx.exception))
        self.assertFalse((self.calc_dir / "images" / "sprite-sheet-ffff.png").exists())

    def test_force_overwrites(self):
        DatasetExporter(self.calc_dir).export(make_data())
        changed = FactorioData(
            normal="{}", expensive="{}", sprite_sheet=b"new",
            sprite_hash="d41d8cd98f00b204e9800998ecf8427e", version="1.1.0",
        )

        paths = DatasetExporter(self.calc_dir, force=True).export(changed)
        self.assertEqual(paths.normal.read_text(encoding="utf-8"), "{}")
        self.assertEqual(paths.sprite_sheet.read_bytes(), b"new")


if __name__ == '__main__':
    unittest.main()

"""
Tests for sprite sheet geometry and icon sizing rules.
"""

import unittest

from ..processing.atlas import (
    AtlasGeometry, AtlasGenerationError, IconSizing, Rectangle, choose_sizing,
)
from .helpers import rects_overlap


class TestOverlapHelper(unittest.TestCase):
    """Test the overlap check used by the layout tests."""

    def test_overlap(self):
        rect1 = Rectangle(0, 0, 32, 32)
        rect2 = Rectangle(32, 0, 32, 32)  # Touching edge
        rect3 = Rectangle(16, 16, 32, 32)  # Overlapping

        self.assertFalse(rects_overlap(rect1, rect2))
        self.assertTrue(rects_overlap(rect1, rect3))
        self.assertTrue(rects_overlap(rect3, rect2))


class TestAtlasGeometry(unittest.TestCase):
    """Test grid dimensions and cell placement."""

    def test_dimensions(self):
        geometry = AtlasGeometry(columns=3, count=5)

        self.assertEqual(geometry.rows, 2)
        self.assertEqual(geometry.size, (96, 64))

    def test_full_last_row(self):
        geometry = AtlasGeometry(columns=4, count=8)
        self.assertEqual(geometry.rows, 2)
        self.assertEqual(geometry.pixel_height, 64)

    def test_single_column(self):
        geometry = AtlasGeometry(columns=1, count=3)
        self.assertEqual(geometry.size, (32, 96))
        self.assertEqual(geometry.cell(2), (0, 2))

    def test_empty(self):
        geometry = AtlasGeometry(columns=10, count=0)
        self.assertEqual(geometry.rows, 0)
        self.assertEqual(geometry.size, (320, 0))

    def test_cells_follow_list_order(self):
        geometry = AtlasGeometry(columns=3, count=5)

        self.assertEqual(geometry.cell(0), (0, 0))
        self.assertEqual(geometry.cell(2), (2, 0))
        self.assertEqual(geometry.cell(3), (0, 1))
        self.assertEqual(geometry.cell(4), (1, 1))
        self.assertEqual(geometry.cell_rect(4), Rectangle(32, 32, 32, 32))

    def test_cells_are_disjoint_and_in_bounds(self):
        geometry = AtlasGeometry(columns=7, count=30)
        rects = [geometry.cell_rect(i) for i in range(geometry.count)]

        for i, rect in enumerate(rects):
            self.assertGreaterEqual(rect.x, 0)
            self.assertGreaterEqual(rect.y, 0)
            self.assertLessEqual(rect.x + rect.width, geometry.pixel_width)
            self.assertLessEqual(rect.y + rect.height, geometry.pixel_height)
            for other in rects[i + 1:]:
                self.assertFalse(rects_overlap(rect, other))

    def test_cell_out_of_range(self):
        geometry = AtlasGeometry(columns=3, count=5)
        with self.assertRaises(IndexError):
            geometry.cell(5)

    def test_invalid_columns(self):
        for columns in (0, -1):
            with self.assertRaises(AtlasGenerationError):
                AtlasGeometry(columns=columns, count=5)


class TestSizingRules(unittest.TestCase):
    """Test the choice between copy, mipmap crop and scaling."""

    def test_exact_cell_is_copied(self):
        self.assertIs(choose_sizing(32, 32), IconSizing.COPY)

    def test_mipmap_strip_is_cropped(self):
        self.assertIs(choose_sizing(120, 64), IconSizing.MIPMAP_CROP)
        self.assertIs(choose_sizing(65, 64), IconSizing.MIPMAP_CROP)

    def test_square_64_is_scaled(self):
        self.assertIs(choose_sizing(64, 64), IconSizing.SCALE)

    def test_other_sizes_are_scaled(self):
        for size in ((65, 65), (120, 63), (16, 16), (32, 64), (64, 32)):
            self.assertIs(choose_sizing(*size), IconSizing.SCALE, size)


if __name__ == '__main__':
    unittest.main()

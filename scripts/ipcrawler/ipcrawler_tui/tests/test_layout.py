from __future__ import annotations

import itertools
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from ipcrawler_tui.layout import (  # noqa: E402
    REGIONS,
    TOO_SMALL,
    Breakpoints,
    LayoutConfig,
    LayoutMode,
    Rect,
    classify,
    compute_geometry,
    minimum_size,
)

SIZES = [(40, 10), (60, 20), (80, 24), (100, 30), (119, 33), (120, 40), (160, 48), (250, 70)]


class ClassifyTests(unittest.TestCase):
    def test_breakpoint_boundaries(self):
        self.assertEqual(classify(79), LayoutMode.SMALL)
        self.assertEqual(classify(80), LayoutMode.MEDIUM)
        self.assertEqual(classify(119), LayoutMode.MEDIUM)
        self.assertEqual(classify(120), LayoutMode.LARGE)

    def test_custom_breakpoints(self):
        points = Breakpoints(large=150, medium=100)
        self.assertEqual(classify(99, points), LayoutMode.SMALL)
        self.assertEqual(classify(120, points), LayoutMode.MEDIUM)
        self.assertEqual(classify(150, points), LayoutMode.LARGE)

    def test_degenerate_width_is_small(self):
        self.assertEqual(classify(0), LayoutMode.SMALL)
        self.assertEqual(classify(-10), LayoutMode.SMALL)


class GeometryTests(unittest.TestCase):
    def test_region_names_per_mode(self):
        for mode in LayoutMode:
            geometry = compute_geometry(mode, 160, 48)
            self.assertEqual(set(geometry), set(REGIONS[mode]))

    def test_regions_never_overlap_or_exceed_terminal(self):
        for width, height in SIZES:
            mode = classify(width)
            geometry = compute_geometry(mode, width, height)
            for rect in geometry.values():
                self.assertGreaterEqual(rect.width, 1)
                self.assertGreaterEqual(rect.height, 1)
                self.assertGreaterEqual(rect.x, 0)
                self.assertGreaterEqual(rect.y, 0)
                self.assertLessEqual(rect.right, width)
                self.assertLessEqual(rect.bottom, height)
            for (name_a, a), (name_b, b) in itertools.combinations(geometry.items(), 2):
                self.assertFalse(a.overlaps(b), f"{name_a} overlaps {name_b} at {width}x{height}")

    def test_regions_cover_terminal_area(self):
        for width, height in SIZES:
            geometry = compute_geometry(classify(width), width, height)
            area = sum(rect.width * rect.height for rect in geometry.values())
            self.assertEqual(area, width * height)

    def test_large_columns_sum_to_width(self):
        geometry = compute_geometry(LayoutMode.LARGE, 120, 40)
        self.assertEqual(geometry["nav"].width, 30)
        self.assertEqual(geometry["status"].width, 30)
        self.assertEqual(geometry["table"].width, 60)
        self.assertEqual(
            geometry["nav"].width + geometry["table"].width + geometry["status"].width, 120
        )
        self.assertEqual(geometry["table"].width, geometry["logs"].width)

    def test_large_remainder_goes_to_main(self):
        geometry = compute_geometry(LayoutMode.LARGE, 123, 40)
        self.assertEqual(geometry["nav"].width, 30)
        self.assertEqual(geometry["status"].width, 30)
        self.assertEqual(geometry["table"].width, 63)

    def test_medium_has_fixed_footer(self):
        geometry = compute_geometry(LayoutMode.MEDIUM, 100, 30)
        footer = geometry["footer"]
        self.assertEqual(footer.height, 3)
        self.assertEqual(footer.width, 100)
        self.assertEqual(footer.bottom, 30)
        self.assertEqual(geometry["nav"].width + geometry["table"].width, 100)

    def test_small_stacks_full_width(self):
        geometry = compute_geometry(LayoutMode.SMALL, 60, 20)
        self.assertEqual(geometry["header"], Rect(0, 0, 60, 1))
        self.assertEqual(geometry["tabs"], Rect(0, 1, 60, 1))
        self.assertEqual(geometry["body"], Rect(0, 2, 60, 18))

    def test_too_small_width(self):
        geometry = compute_geometry(LayoutMode.SMALL, 30, 20)
        self.assertEqual(geometry, {TOO_SMALL: Rect(0, 0, 30, 20)})

    def test_too_small_height(self):
        geometry = compute_geometry(LayoutMode.LARGE, 160, 8)
        self.assertEqual(list(geometry), [TOO_SMALL])

    def test_degenerate_dimensions_are_clamped(self):
        geometry = compute_geometry(LayoutMode.SMALL, 0, -5)
        self.assertEqual(geometry, {TOO_SMALL: Rect(0, 0, 1, 1)})

    def test_configured_footer_and_split(self):
        config = LayoutConfig(footer_height=5, main_split=0.25)
        geometry = compute_geometry(LayoutMode.MEDIUM, 100, 41, config)
        self.assertEqual(geometry["footer"].height, 5)
        self.assertEqual(geometry["table"].height, 9)
        self.assertEqual(geometry["logs"].height, 26)

    def test_geometry_is_deterministic(self):
        first = compute_geometry(LayoutMode.LARGE, 140, 45)
        second = compute_geometry(LayoutMode.LARGE, 140, 45)
        self.assertEqual(first, second)

    def test_minimum_size(self):
        self.assertEqual(minimum_size(), (40, 10))
        self.assertEqual(minimum_size(mode=LayoutMode.MEDIUM), (40, 12))
        self.assertEqual(minimum_size(mode=LayoutMode.LARGE), (40, 9))


if __name__ == "__main__":
    unittest.main()

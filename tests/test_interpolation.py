from __future__ import annotations

import sys
import unittest
from pathlib import Path

APP_DIR = Path(__file__).resolve().parents[1] / "app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from errors import DomainError  # noqa: E402
from interpolation import ABOVE, BELOW, WITHIN, interpolate, interpolate_strict, range_position  # noqa: E402


class InterpolateTests(unittest.TestCase):
    def test_boundaries_come_back_exactly(self) -> None:
        self.assertEqual(interpolate(4000, 4000, 8000, 60, 80), 60)
        self.assertEqual(interpolate(8000, 4000, 8000, 60, 80), 80)

    def test_midpoint(self) -> None:
        self.assertEqual(interpolate(6000, 4000, 8000, 60, 80), 70.0)

    def test_clamps_outside_source_range(self) -> None:
        self.assertEqual(interpolate(1000, 4000, 8000, 60, 80), 60)
        self.assertEqual(interpolate(9500, 4000, 8000, 60, 80), 80)

    def test_monotonic_non_decreasing(self) -> None:
        values = [interpolate(sales, 4000, 8000, 60, 80) for sales in range(3500, 8600, 250)]
        self.assertEqual(values, sorted(values))

    def test_monotonic_non_increasing_when_reversed(self) -> None:
        values = [interpolate(sales, 4000, 8000, 80, 60) for sales in range(3500, 8600, 250)]
        self.assertEqual(values, sorted(values, reverse=True))

    def test_degenerate_range_raises(self) -> None:
        with self.assertRaises(DomainError):
            interpolate(5, 10, 10, 0, 1)


class InterpolateStrictTests(unittest.TestCase):
    def test_inside_range_matches_interpolate(self) -> None:
        self.assertEqual(interpolate_strict(6000, 4000, 8000, 60, 80), 70.0)
        self.assertEqual(interpolate_strict(8000, 4000, 8000, 60, 80), 80)

    def test_outside_range_is_not_applicable(self) -> None:
        self.assertIsNone(interpolate_strict(3999, 4000, 8000, 60, 80))
        self.assertIsNone(interpolate_strict(8001, 4000, 8000, 60, 80))

    def test_missing_value_is_not_applicable(self) -> None:
        self.assertIsNone(interpolate_strict(None, 4000, 8000, 60, 80))

    def test_degenerate_range_raises_even_without_value(self) -> None:
        with self.assertRaises(DomainError):
            interpolate_strict(None, 4000, 4000, 60, 80)

    def test_range_position(self) -> None:
        self.assertEqual(range_position(100, 4000, 8000), BELOW)
        self.assertEqual(range_position(4000, 4000, 8000), WITHIN)
        self.assertEqual(range_position(9000, 4000, 8000), ABOVE)


if __name__ == "__main__":
    unittest.main()

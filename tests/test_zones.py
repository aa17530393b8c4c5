from __future__ import annotations

import sys
import unittest
from pathlib import Path

APP_DIR = Path(__file__).resolve().parents[1] / "app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from errors import ConfigurationError  # noqa: E402
from zones import (  # noqa: E402
    INVEST,
    RECOVERY,
    STABILIZE,
    SUSTAIN,
    ZONE_ACTIONS,
    ZoneBands,
    classify,
    labor_delta,
    zone_boundaries,
)


class ClassifyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bands = ZoneBands(inner=3.0, outer=8.0)

    def test_stabilize_scenario(self) -> None:
        reading = classify(66, 70, self.bands)
        self.assertEqual(reading.zone, STABILIZE)
        self.assertEqual(reading.action, "Hold, coach, no adds")
        self.assertEqual(reading.diff, -4)

    def test_equal_values_are_sustain(self) -> None:
        for value in (1.0, 70.0, 114.07):
            self.assertEqual(classify(value, value, self.bands).zone, SUSTAIN)

    def test_band_edges(self) -> None:
        self.assertEqual(classify(62, 70, self.bands).zone, RECOVERY)
        self.assertEqual(classify(62.5, 70, self.bands).zone, STABILIZE)
        self.assertEqual(classify(67, 70, self.bands).zone, STABILIZE)
        self.assertEqual(classify(67.5, 70, self.bands).zone, SUSTAIN)
        self.assertEqual(classify(73, 70, self.bands).zone, SUSTAIN)
        self.assertEqual(classify(73.5, 70, self.bands).zone, INVEST)
        self.assertEqual(classify(90, 70, self.bands).action, ZONE_ACTIONS[INVEST])

    def test_missing_or_zero_is_unclassified(self) -> None:
        self.assertIsNone(classify(None, 70, self.bands))
        self.assertIsNone(classify(66, None, self.bands))
        self.assertIsNone(classify(0, 70, self.bands))
        self.assertIsNone(classify(66, 0, self.bands))

    def test_bands_must_nest(self) -> None:
        with self.assertRaises(ConfigurationError):
            ZoneBands(inner=8.0, outer=3.0)
        with self.assertRaises(ConfigurationError):
            ZoneBands(inner=0, outer=3.0)

    def test_boundaries(self) -> None:
        self.assertEqual(zone_boundaries(70, self.bands), (62, 67, 73, 78))


class LaborDeltaTests(unittest.TestCase):
    def test_overstaffed_scenario(self) -> None:
        self.assertAlmostEqual(labor_delta(6000, 66, 70), 6000 / 66 - 6000 / 70)
        self.assertAlmostEqual(labor_delta(6000, 66, 70), 5.19, places=2)

    def test_zero_divisors_are_not_applicable(self) -> None:
        self.assertIsNone(labor_delta(6000, 0, 70))
        self.assertIsNone(labor_delta(6000, 66, 0))
        self.assertIsNone(labor_delta(None, 66, 70))
        self.assertIsNone(labor_delta(6000, 66, None))


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import sys
import unittest
from pathlib import Path

APP_DIR = Path(__file__).resolve().parents[1] / "app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from parsing import format_currency, parse_currency, parse_productivity  # noqa: E402


class ParsingTests(unittest.TestCase):
    def test_currency_strips_formatting(self) -> None:
        self.assertEqual(parse_currency("$6,000"), 6000.0)
        self.assertEqual(parse_currency(" 12,345.50 "), 12345.5)

    def test_blank_is_not_zero(self) -> None:
        self.assertIsNone(parse_currency(""))
        self.assertIsNone(parse_currency(None))
        self.assertIsNone(parse_currency("$"))
        self.assertEqual(parse_currency("0"), 0.0)

    def test_unreadable_input(self) -> None:
        self.assertIsNone(parse_currency("1.2.3"))

    def test_productivity(self) -> None:
        self.assertEqual(parse_productivity("66"), 66.0)
        self.assertEqual(parse_productivity("66.5%"), 66.5)
        self.assertIsNone(parse_productivity("  "))

    def test_format_currency(self) -> None:
        self.assertEqual(format_currency(6000), "$6,000")
        self.assertEqual(format_currency(None), "")


if __name__ == "__main__":
    unittest.main()

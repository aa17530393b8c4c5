from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_DIR = Path(__file__).resolve().parents[1] / "app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from errors import ConfigurationError  # noqa: E402
from tiers import TierPoint, TierTable  # noqa: E402


def _table() -> TierTable:
    return TierTable(
        [
            TierPoint(sales=28337, values={"top50": 86.28, "top20": 91.41}),
            TierPoint(sales=31100, values={"top50": 87.32, "top20": 92.58}),
            TierPoint(sales=33938, values={"top50": 88.22, "top20": 93.60}),
        ],
        baseline={"top20": 92.99},
        labels={"top20": "Top fifth"},
    )


def test_value_at_midpoint_interpolates() -> None:
    assert _table().value_at(29718.5, "top20") == pytest.approx(91.995)


def test_value_at_breakpoint_returns_stored_value() -> None:
    table = _table()
    assert table.value_at(31100, "top20") == 92.58
    assert table.value_at(33938, "top50") == 88.22


def test_value_at_clamps_outside_table() -> None:
    table = _table()
    assert table.value_at(1000, "top20") == 91.41
    assert table.value_at(50000, "top20") == 93.60


def test_unknown_tier_raises() -> None:
    with pytest.raises(ConfigurationError):
        _table().value_at(30000, "top5")


def test_empty_table_raises() -> None:
    with pytest.raises(ConfigurationError):
        TierTable([])


def test_unsorted_sales_raise() -> None:
    with pytest.raises(ConfigurationError):
        TierTable(
            [
                TierPoint(sales=31100, values={"top50": 87.32}),
                TierPoint(sales=28337, values={"top50": 86.28}),
            ]
        )


def test_missing_tier_at_point_raises() -> None:
    with pytest.raises(ConfigurationError):
        TierTable(
            [
                TierPoint(sales=28337, values={"top50": 86.28, "top20": 91.41}),
                TierPoint(sales=31100, values={"top50": 87.32}),
            ]
        )


def test_baseline_and_labels() -> None:
    table = _table()
    assert table.baseline_for("top20") == 92.99
    assert table.baseline_for("top50") is None
    assert table.label_for("top20") == "Top fifth"
    assert table.label_for("top50") == "Top 50%"
    assert table.tiers == ("top50", "top20")

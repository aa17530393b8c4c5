from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_DIR = Path(__file__).resolve().parents[1] / "app"
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from errors import ConfigurationError  # noqa: E402
from interpolation import ABOVE, BELOW, WITHIN  # noqa: E402
from profile_defaults import build_default_profiles  # noqa: E402
from profiles import build_profile  # noqa: E402
from targets import (  # noqa: E402
    RangeMappedStrategy,
    TierWeightedStrategy,
    build_strategy,
    combined_target,
)


@pytest.fixture()
def range_strategy() -> RangeMappedStrategy:
    return build_strategy(build_profile(build_default_profiles()["tuskawilla"]))


@pytest.fixture()
def tier_strategy() -> TierWeightedStrategy:
    return build_strategy(build_profile(build_default_profiles()["simplified"]))


def test_build_strategy_picks_kind(range_strategy, tier_strategy) -> None:
    assert isinstance(range_strategy, RangeMappedStrategy)
    assert isinstance(tier_strategy, TierWeightedStrategy)
    assert range_strategy.kind == "range"
    assert tier_strategy.kind == "tier"


def test_range_target_breakfast_midpoint(range_strategy) -> None:
    assert range_strategy.target("breakfast", 6000) == 70.0


def test_range_target_off_range_is_not_applicable(range_strategy) -> None:
    assert range_strategy.target("breakfast", 9000) is None
    assert range_strategy.target("breakfast", 3000) is None
    assert range_strategy.target("breakfast", None) is None
    assert range_strategy.sales_position("breakfast", 9000) == ABOVE
    assert range_strategy.sales_position("breakfast", 3000) == BELOW
    assert range_strategy.sales_position("breakfast", 6000) == WITHIN


def test_zone_targets_clamp_off_range(range_strategy) -> None:
    sales = {"breakfast": 9000, "lunch": 7000, "afternoon": None, "dinner": 10000}
    assert range_strategy.targets(sales) == {
        "breakfast": None,
        "lunch": None,
        "afternoon": None,
        "dinner": 85.0,
    }
    assert range_strategy.zone_targets(sales) == {
        "breakfast": 80,
        "lunch": 100,
        "afternoon": None,
        "dinner": 85.0,
    }


def test_unknown_daypart_raises(range_strategy) -> None:
    with pytest.raises(ConfigurationError):
        range_strategy.target("brunch", 5000)


def test_tier_lunch_target_at_midpoint(tier_strategy) -> None:
    tier_strategy.select_tier("top20")
    sales = {"breakfast": 5000, "lunch": 10000, "afternoon": 6000, "dinner": 8718.5}
    targets = tier_strategy.targets(sales)
    assert tier_strategy.daily_target(29718.5) == pytest.approx(91.995)
    assert targets["lunch"] == pytest.approx(114.07, abs=0.01)
    assert targets["breakfast"] == pytest.approx(91.995 * 0.76)


def test_tier_targets_need_every_daypart(tier_strategy) -> None:
    sales = {"breakfast": 5000, "lunch": 10000, "afternoon": None, "dinner": 8000}
    assert tier_strategy.targets(sales) == {
        "breakfast": None,
        "lunch": None,
        "afternoon": None,
        "dinner": None,
    }


def test_tier_targets_fall_back_to_baseline_without_sales(tier_strategy) -> None:
    targets = tier_strategy.targets({})
    assert targets["breakfast"] == pytest.approx(87.68 * 0.76)
    assert targets["lunch"] == pytest.approx(87.68 * 1.24)


def test_weights_clamp_and_apply_to_next_calculation(tier_strategy) -> None:
    sales = {"breakfast": 7000, "lunch": 9000, "afternoon": 7000, "dinner": 8000}
    before = tier_strategy.targets(sales)["lunch"]
    assert tier_strategy.set_weight("lunch", 2.0) == 1.5
    assert tier_strategy.set_weight("dinner", 0.1) == 0.5
    after = tier_strategy.targets(sales)["lunch"]
    assert after == pytest.approx(before / 1.24 * 1.5)
    assert tier_strategy.profile.weights["lunch"] == 1.24


def test_select_unknown_tier_raises(tier_strategy) -> None:
    with pytest.raises(ConfigurationError):
        tier_strategy.select_tier("top5")


@pytest.mark.parametrize(
    "sales_a,target_a,sales_b,target_b,expected",
    [
        (4000, 60.0, 6000, 100.0, 84.0),
        (0, 60.0, 0, 100.0, 0.0),
        (None, None, None, None, 0.0),
        (0, None, 5000, 80.0, 80.0),
        (5000, None, 5000, 80.0, None),
    ],
)
def test_combined_target(sales_a, target_a, sales_b, target_b, expected) -> None:
    assert combined_target(sales_a, target_a, sales_b, target_b) == expected


def test_period_summary(range_strategy) -> None:
    summary = range_strategy.period_summary(
        "day",
        {"breakfast": 6000, "lunch": 10000},
        {"breakfast": 66, "lunch": 100},
    )
    assert summary.dayparts == ("breakfast", "lunch")
    assert summary.combined_sales == 16000
    assert summary.combined_target == pytest.approx(95.0)
    assert summary.average_actual == 83


def test_period_summaries_cover_profile_periods(range_strategy) -> None:
    summaries = range_strategy.period_summaries({})
    assert set(summaries) == {"day", "night"}
    assert summaries["night"].combined_target == 0.0
    assert summaries["night"].average_actual is None


def test_unknown_period_raises(range_strategy) -> None:
    with pytest.raises(ConfigurationError):
        range_strategy.period_summary("brunch", {})


@pytest.fixture()
def forsyth_strategy() -> RangeMappedStrategy:
    return build_strategy(build_profile(build_default_profiles()["forsyth"]))


def test_period_target_maps_combined_sales(forsyth_strategy) -> None:
    assert forsyth_strategy.period_target("day", 14000) == 90.0
    assert forsyth_strategy.period_target("night", 19000) == 100
    assert forsyth_strategy.period_target("day", 9000) is None
    assert forsyth_strategy.period_target("night", None) is None


def test_period_target_needs_a_period_range(range_strategy) -> None:
    assert range_strategy.period_target("day", 14000) is None
    assert range_strategy.period_gauge("day", {"breakfast": 6000, "lunch": 8000}) is None
    assert range_strategy.period_summary("day", {"breakfast": 6000}).period_target is None
    with pytest.raises(ConfigurationError):
        range_strategy.period_target("brunch", 14000)


def test_period_gauge_needle_and_band(forsyth_strategy) -> None:
    dial = forsyth_strategy.period_gauge("day", {"breakfast": 5000, "lunch": 9000})
    assert dial.combined_sales == 14000
    assert dial.productivity == 90.0
    assert dial.needle == pytest.approx(270)
    arcs = dict(dial.arcs)
    assert arcs["progress"].end == pytest.approx(270)
    assert arcs["band"].end == pytest.approx(292.5)

    summary = forsyth_strategy.period_summary("day", {"breakfast": 5000, "lunch": 9000})
    assert summary.period_target == 90.0


def test_period_gauge_suppressed_off_range(forsyth_strategy) -> None:
    assert forsyth_strategy.period_gauge("night", {"afternoon": 3000, "dinner": 4000}) is None
    assert forsyth_strategy.period_gauge("night", {}) is None

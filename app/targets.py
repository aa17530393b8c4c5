from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from errors import ConfigurationError
from gauge import Arc, angle, period_arcs
from interpolation import interpolate, interpolate_strict, range_position
from profiles import DaypartRange, StoreProfile
from tiers import TierTable


SalesByDaypart = Mapping[str, Optional[float]]


@dataclass(frozen=True)
class PeriodSummary:
    name: str
    dayparts: Tuple[str, str]
    combined_sales: float
    combined_target: Optional[float]
    average_actual: Optional[float]
    period_target: Optional[float] = None


@dataclass(frozen=True)
class PeriodGauge:
    """Condensed dial for a period: productivity implied by combined sales."""

    period: str
    combined_sales: float
    productivity: float
    needle: float
    arcs: Tuple[Tuple[str, Arc], ...]


def combined_target(
    sales_a: Optional[float],
    target_a: Optional[float],
    sales_b: Optional[float],
    target_b: Optional[float],
) -> Optional[float]:
    """Sales-weighted average of two daypart targets.

    Missing sales count as zero. Both sales at zero gives ``0.0``; a daypart
    with sales but no target makes the combination undefined.
    """
    weight_a = sales_a or 0.0
    weight_b = sales_b or 0.0
    total = weight_a + weight_b
    if total == 0:
        return 0.0
    if (weight_a and target_a is None) or (weight_b and target_b is None):
        return None
    return (weight_a * (target_a or 0.0) + weight_b * (target_b or 0.0)) / total


def _average_actual(actual_a: Optional[float], actual_b: Optional[float]) -> Optional[float]:
    if not actual_a or not actual_b:
        return None
    return (actual_a + actual_b) / 2


class TargetStrategy:
    kind = ""

    def __init__(self, profile: StoreProfile) -> None:
        self.profile = profile

    @property
    def dayparts(self) -> Tuple[str, ...]:
        return self.profile.dayparts

    def _require_daypart(self, daypart: str) -> None:
        if daypart not in self.profile.dayparts:
            raise ConfigurationError(f"Unknown daypart '{daypart}' for profile '{self.profile.name}'.")

    def targets(self, sales_by_daypart: SalesByDaypart) -> Dict[str, Optional[float]]:
        raise NotImplementedError

    def zone_targets(self, sales_by_daypart: SalesByDaypart) -> Dict[str, Optional[float]]:
        """Targets used for zone and labor math; off-range sales clamp here."""
        return self.targets(sales_by_daypart)

    def period_summary(
        self,
        period: str,
        sales_by_daypart: SalesByDaypart,
        actual_by_daypart: Optional[Mapping[str, Optional[float]]] = None,
    ) -> PeriodSummary:
        first, second = self._period_members(period)
        targets = self.targets(sales_by_daypart)
        sales_a = sales_by_daypart.get(first)
        sales_b = sales_by_daypart.get(second)
        actuals = actual_by_daypart or {}
        return PeriodSummary(
            name=period,
            dayparts=(first, second),
            combined_sales=(sales_a or 0.0) + (sales_b or 0.0),
            combined_target=combined_target(sales_a, targets.get(first), sales_b, targets.get(second)),
            average_actual=_average_actual(actuals.get(first), actuals.get(second)),
            period_target=self.period_target(period, (sales_a or 0.0) + (sales_b or 0.0)),
        )

    def _period_members(self, period: str) -> Tuple[str, str]:
        try:
            return self.profile.periods[period]
        except KeyError as exc:
            raise ConfigurationError(f"Profile '{self.profile.name}' has no period '{period}'.") from exc

    def period_target(self, period: str, combined_sales: Optional[float]) -> Optional[float]:
        """Productivity for combined period sales, when the profile gives the period a range.

        Off-range or missing sales give ``None``.
        """
        self._period_members(period)
        bounds = self.profile.period_ranges.get(period)
        if bounds is None:
            return None
        return interpolate_strict(combined_sales, bounds.sales_min, bounds.sales_max, bounds.prod_min, bounds.prod_max)

    def period_gauge(self, period: str, sales_by_daypart: SalesByDaypart) -> Optional[PeriodGauge]:
        first, second = self._period_members(period)
        combined = (sales_by_daypart.get(first) or 0.0) + (sales_by_daypart.get(second) or 0.0)
        productivity = self.period_target(period, combined)
        if productivity is None:
            return None
        bounds = self.profile.period_ranges[period]
        dial = self.profile.gauge
        return PeriodGauge(
            period=period,
            combined_sales=combined,
            productivity=productivity,
            needle=angle(productivity, bounds.prod_min, bounds.prod_max, dial.start_angle, dial.angular_span),
            arcs=tuple(period_arcs(productivity, bounds.prod_min, bounds.prod_max, dial)),
        )

    def period_summaries(
        self,
        sales_by_daypart: SalesByDaypart,
        actual_by_daypart: Optional[Mapping[str, Optional[float]]] = None,
    ) -> Dict[str, PeriodSummary]:
        return {
            period: self.period_summary(period, sales_by_daypart, actual_by_daypart)
            for period in self.profile.periods
        }


class RangeMappedStrategy(TargetStrategy):
    """Each daypart maps its own sales range linearly onto a productivity range."""

    kind = "range"

    def range_for(self, daypart: str) -> DaypartRange:
        self._require_daypart(daypart)
        return self.profile.ranges[daypart]

    def target(self, daypart: str, sales: Optional[float]) -> Optional[float]:
        """Target productivity, or ``None`` when sales are missing or off the range."""
        bounds = self.range_for(daypart)
        return interpolate_strict(sales, bounds.sales_min, bounds.sales_max, bounds.prod_min, bounds.prod_max)

    def clamped_target(self, daypart: str, sales: Optional[float]) -> Optional[float]:
        bounds = self.range_for(daypart)
        if sales is None:
            return None
        return interpolate(sales, bounds.sales_min, bounds.sales_max, bounds.prod_min, bounds.prod_max)

    def sales_position(self, daypart: str, sales: Optional[float]) -> Optional[str]:
        bounds = self.range_for(daypart)
        if sales is None:
            return None
        return range_position(sales, bounds.sales_min, bounds.sales_max)

    def targets(self, sales_by_daypart: SalesByDaypart) -> Dict[str, Optional[float]]:
        return {daypart: self.target(daypart, sales_by_daypart.get(daypart)) for daypart in self.dayparts}

    def zone_targets(self, sales_by_daypart: SalesByDaypart) -> Dict[str, Optional[float]]:
        return {
            daypart: self.clamped_target(daypart, sales_by_daypart.get(daypart))
            for daypart in self.dayparts
        }


class TierWeightedStrategy(TargetStrategy):
    """Daily tier productivity at total sales, scaled by a per-daypart weight."""

    kind = "tier"

    def __init__(self, profile: StoreProfile) -> None:
        super().__init__(profile)
        if profile.tier_table is None or profile.selected_tier is None:
            raise ConfigurationError(f"Profile '{profile.name}' has no tier table.")
        self.table: TierTable = profile.tier_table
        self.selected_tier: str = profile.selected_tier
        self._weights: Dict[str, float] = dict(profile.weights)

    @property
    def weights(self) -> Dict[str, float]:
        return dict(self._weights)

    @property
    def tier_label(self) -> str:
        return self.table.label_for(self.selected_tier)

    def weight(self, daypart: str) -> float:
        self._require_daypart(daypart)
        return self._weights[daypart]

    def set_weight(self, daypart: str, weight: float) -> float:
        """Adjust a weight for the next calculation; clamps into the profile's bounds."""
        self._require_daypart(daypart)
        low, high = self.profile.weight_bounds
        applied = max(low, min(float(weight), high))
        self._weights[daypart] = applied
        return applied

    def select_tier(self, tier: str) -> None:
        if not self.table.has_tier(tier):
            raise ConfigurationError(f"Unknown tier '{tier}'.")
        self.selected_tier = tier

    def daily_target(self, total_daily_sales: float) -> float:
        return self.table.value_at(total_daily_sales, self.selected_tier)

    def target(self, daypart: str, total_daily_sales: float) -> float:
        return self.daily_target(total_daily_sales) * self.weight(daypart)

    def targets(self, sales_by_daypart: SalesByDaypart) -> Dict[str, Optional[float]]:
        entered = [sales_by_daypart.get(daypart) for daypart in self.dayparts]
        if all(value is not None for value in entered):
            total = sum(entered)
            return {daypart: self.target(daypart, total) for daypart in self.dayparts}
        baseline = self.table.baseline_for(self.selected_tier)
        if baseline is not None and all(value is None for value in entered):
            return {daypart: baseline * self.weight(daypart) for daypart in self.dayparts}
        return {daypart: None for daypart in self.dayparts}


def build_strategy(profile: StoreProfile) -> TargetStrategy:
    if profile.strategy == "range":
        return RangeMappedStrategy(profile)
    if profile.strategy == "tier":
        return TierWeightedStrategy(profile)
    raise ConfigurationError(f"Unsupported strategy '{profile.strategy}'.")

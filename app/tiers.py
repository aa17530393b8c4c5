from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from errors import ConfigurationError
from interpolation import interpolate


DEFAULT_TIER_LABELS: Dict[str, str] = {
    "top50": "Top 50%",
    "top33": "Top 33%",
    "top20": "Top 20%",
    "top10": "Top 10%",
}


@dataclass(frozen=True)
class TierPoint:
    sales: float
    values: Mapping[str, float]

    def value(self, tier: str) -> float:
        try:
            return float(self.values[tier])
        except KeyError as exc:
            raise ConfigurationError(f"Tier '{tier}' missing at sales point {self.sales}.") from exc


class TierTable:
    """Piecewise-linear lookup of a daily productivity tier against total sales.

    Points must be strictly increasing by sales. Values per tier are expected
    to rise with sales but that is left to the configuration data.
    """

    def __init__(
        self,
        points: Iterable[TierPoint],
        *,
        baseline: Optional[Mapping[str, float]] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        ordered: List[TierPoint] = list(points)
        if not ordered:
            raise ConfigurationError("Tier table needs at least one sales point.")
        for lower, upper in zip(ordered, ordered[1:]):
            if upper.sales <= lower.sales:
                raise ConfigurationError(
                    f"Tier table sales must be strictly increasing ({lower.sales} then {upper.sales})."
                )
        tiers = tuple(ordered[0].values.keys())
        if not tiers:
            raise ConfigurationError("Tier table points carry no tier values.")
        for point in ordered:
            missing = [tier for tier in tiers if tier not in point.values]
            if missing:
                raise ConfigurationError(
                    f"Sales point {point.sales} is missing tiers: {', '.join(missing)}."
                )
        self._points: Tuple[TierPoint, ...] = tuple(ordered)
        self._sales: List[float] = [point.sales for point in ordered]
        self._tiers: Tuple[str, ...] = tiers
        self._baseline: Dict[str, float] = {key: float(value) for key, value in (baseline or {}).items()}
        self._labels: Dict[str, str] = dict(DEFAULT_TIER_LABELS)
        self._labels.update(labels or {})

    @property
    def tiers(self) -> Tuple[str, ...]:
        return self._tiers

    @property
    def points(self) -> Sequence[TierPoint]:
        return self._points

    def has_tier(self, tier: str) -> bool:
        return tier in self._tiers

    def _require_tier(self, tier: str) -> None:
        if tier not in self._tiers:
            raise ConfigurationError(f"Unknown tier '{tier}'. Expected one of: {', '.join(self._tiers)}.")

    def value_at(self, sales: float, tier: str) -> float:
        self._require_tier(tier)
        first, last = self._points[0], self._points[-1]
        if sales <= first.sales:
            return first.value(tier)
        if sales >= last.sales:
            return last.value(tier)
        index = bisect.bisect_left(self._sales, sales)
        upper = self._points[index]
        if upper.sales == sales:
            return upper.value(tier)
        lower = self._points[index - 1]
        return interpolate(sales, lower.sales, upper.sales, lower.value(tier), upper.value(tier))

    def baseline_for(self, tier: str) -> Optional[float]:
        self._require_tier(tier)
        return self._baseline.get(tier)

    def label_for(self, tier: str) -> str:
        return self._labels.get(tier, tier)

from __future__ import annotations

import copy
from typing import Any, Dict, List


DAYPARTS: List[str] = ["breakfast", "lunch", "afternoon", "dinner"]


def _range(sales_min: float, sales_max: float, prod_min: float, prod_max: float) -> Dict[str, float]:
    return {
        "sales_min": sales_min,
        "sales_max": sales_max,
        "prod_min": prod_min,
        "prod_max": prod_max,
    }


def _tier_point(sales: float, top50: float, top33: float, top20: float, top10: float) -> Dict[str, float]:
    return {"sales": sales, "top50": top50, "top33": top33, "top20": top20, "top10": top10}


def _common(name: str, display_name: str, report_prefix: str) -> Dict[str, Any]:
    return {
        "name": name,
        "display_name": display_name,
        "dayparts": list(DAYPARTS),
        "zone_bands": {"inner": 3.0, "outer": 8.0},
        "gauge": {"start_angle": 135.0, "angular_span": 270.0},
        "periods": {
            "day": ["breakfast", "lunch"],
            "night": ["afternoon", "dinner"],
        },
        "storage": {"log_id": name, "autosave_hour": 23},
        "report_prefix": report_prefix,
    }


TUSKAWILLA_PROFILE: Dict[str, Any] = {
    **_common("tuskawilla", "Tuskawilla", "productivity-report"),
    "strategy": "range",
    "ranges": {
        "breakfast": _range(4000, 8000, 60, 80),
        "lunch": _range(8000, 12000, 100, 120),
        "afternoon": _range(5000, 9000, 90, 100),
        "dinner": _range(8000, 12000, 80, 90),
    },
}

FORSYTH_PROFILE: Dict[str, Any] = {
    **_common("forsyth", "Forsyth", "productivity-report-forsyth"),
    "strategy": "range",
    "ranges": {
        "breakfast": _range(3000, 7000, 60, 80),
        "lunch": _range(7000, 11000, 100, 120),
        "afternoon": _range(4000, 8000, 90, 100),
        "dinner": _range(7000, 11000, 80, 90),
    },
    # Condensed Day/Night dials map combined sales through their own ranges.
    "period_ranges": {
        "day": _range(10000, 18000, 60, 120),
        "night": _range(11000, 19000, 80, 100),
    },
}

SIMPLIFIED_PROFILE: Dict[str, Any] = {
    **_common("simplified", "Simplified (tier targets)", "productivity-report-simplified"),
    "strategy": "tier",
    "tier_table": {
        "points": [
            _tier_point(28337, 86.28, 88.69, 91.41, 94.45),
            _tier_point(31100, 87.32, 89.75, 92.58, 95.78),
            _tier_point(33938, 88.22, 90.68, 93.60, 96.94),
            _tier_point(36370, 88.90, 91.38, 94.37, 97.81),
        ],
        # Daily productivity shown before any sales are entered.
        "baseline": {"top50": 87.68, "top33": 90.13, "top20": 92.99, "top10": 96.25},
        "labels": {
            "top50": "Top 50%",
            "top33": "Top 33%",
            "top20": "Top 20%",
            "top10": "Top 10%",
        },
    },
    "selected_tier": "top50",
    "weights": {
        "breakfast": 0.76,
        "lunch": 1.24,
        "afternoon": 1.06,
        "dinner": 0.94,
    },
    "weight_bounds": [0.5, 1.5],
}

DEFAULT_PROFILE_NAME = "tuskawilla"


def build_default_profiles() -> Dict[str, Dict[str, Any]]:
    return {
        payload["name"]: copy.deepcopy(payload)
        for payload in (TUSKAWILLA_PROFILE, FORSYTH_PROFILE, SIMPLIFIED_PROFILE)
    }

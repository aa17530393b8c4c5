from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from errors import ConfigurationError, DomainError
from gauge import DEFAULT_ANGULAR_SPAN, DEFAULT_START_ANGLE, GaugeSpec
from profile_defaults import DAYPARTS, DEFAULT_PROFILE_NAME, build_default_profiles
from tiers import TierPoint, TierTable
from zones import ZoneBands


DATA_DIR = Path(__file__).resolve().parent / "data"
DATA_DIR.mkdir(parents=True, exist_ok=True)
PROFILES_FILE = DATA_DIR / "profiles.json"
PROFILE_ENV_VAR = "PRODUCTIVITY_STORE"
STRATEGIES = {"range", "tier"}


@dataclass(frozen=True)
class DaypartRange:
    key: str
    sales_min: float
    sales_max: float
    prod_min: float
    prod_max: float

    def __post_init__(self) -> None:
        if self.sales_min == self.sales_max:
            raise DomainError(f"{self.key}: sales range is degenerate ({self.sales_min}).")
        if self.prod_min == self.prod_max:
            raise DomainError(f"{self.key}: productivity range is degenerate ({self.prod_min}).")
        if self.sales_min > self.sales_max:
            raise ConfigurationError(f"{self.key}: sales_min must be below sales_max.")
        if self.prod_min > self.prod_max:
            raise ConfigurationError(f"{self.key}: prod_min must be below prod_max.")


@dataclass(frozen=True)
class StoreProfile:
    name: str
    display_name: str
    strategy: str
    dayparts: Tuple[str, ...]
    zone_bands: ZoneBands
    gauge: GaugeSpec
    periods: Mapping[str, Tuple[str, str]]
    log_id: str
    autosave_hour: int
    report_prefix: str
    ranges: Mapping[str, DaypartRange] = field(default_factory=dict)
    tier_table: Optional[TierTable] = None
    selected_tier: Optional[str] = None
    weights: Mapping[str, float] = field(default_factory=dict)
    weight_bounds: Tuple[float, float] = (0.5, 1.5)
    period_ranges: Mapping[str, DaypartRange] = field(default_factory=dict)


def profile_key(name: Any) -> str:
    """Profile names are matched case-insensitively; stored lowercase."""
    return str(name or "").strip().lower()


def _deep_update(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _number(payload: Mapping[str, Any], key: str, context: str) -> float:
    try:
        return float(payload[key])
    except KeyError as exc:
        raise ConfigurationError(f"{context}: '{key}' is required.") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{context}: '{key}' must be a number.") from exc


def _optional_number(payload: Mapping[str, Any], key: str, default: float, context: str) -> float:
    if payload.get(key) is None:
        return default
    return _number(payload, key, context)


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{key}' must be an object.")
    return value


def _build_ranges(payload: Mapping[str, Any], dayparts: Tuple[str, ...]) -> Dict[str, DaypartRange]:
    ranges_cfg = payload.get("ranges")
    if not isinstance(ranges_cfg, dict) or not ranges_cfg:
        raise ConfigurationError("Range strategy needs a 'ranges' mapping.")
    ranges: Dict[str, DaypartRange] = {}
    for daypart in dayparts:
        bounds = ranges_cfg.get(daypart)
        if not isinstance(bounds, dict):
            raise ConfigurationError(f"No sales/productivity range configured for '{daypart}'.")
        ranges[daypart] = DaypartRange(
            key=daypart,
            sales_min=_number(bounds, "sales_min", daypart),
            sales_max=_number(bounds, "sales_max", daypart),
            prod_min=_number(bounds, "prod_min", daypart),
            prod_max=_number(bounds, "prod_max", daypart),
        )
    return ranges


def _build_tier_table(payload: Mapping[str, Any]) -> TierTable:
    table_cfg = payload.get("tier_table")
    if not isinstance(table_cfg, dict):
        raise ConfigurationError("Tier strategy needs a 'tier_table' mapping.")
    points = []
    for entry in table_cfg.get("points") or []:
        if not isinstance(entry, dict):
            raise ConfigurationError("Tier table points must be objects.")
        sales = _number(entry, "sales", "tier point")
        values = {key: _number(entry, key, f"tier point {sales}") for key in entry if key != "sales"}
        points.append(TierPoint(sales=sales, values=values))
    baseline = table_cfg.get("baseline") or {}
    if not isinstance(baseline, dict):
        raise ConfigurationError("Tier table baseline must be an object.")
    return TierTable(
        points,
        baseline={key: _number(baseline, key, "tier baseline") for key in baseline},
        labels=table_cfg.get("labels") or {},
    )


def _build_weights(payload: Mapping[str, Any], dayparts: Tuple[str, ...]) -> Dict[str, float]:
    weights_cfg = payload.get("weights") or {}
    weights: Dict[str, float] = {}
    for daypart in dayparts:
        weight = _number(weights_cfg, daypart, "weights")
        if weight <= 0:
            raise ConfigurationError(f"Weight for '{daypart}' must be positive.")
        weights[daypart] = weight
    return weights


def _build_period_ranges(
    payload: Mapping[str, Any], periods: Mapping[str, Tuple[str, str]]
) -> Dict[str, DaypartRange]:
    ranges: Dict[str, DaypartRange] = {}
    for period, bounds in _section(payload, "period_ranges").items():
        if period not in periods:
            raise ConfigurationError(f"Range given for unknown period '{period}'.")
        if not isinstance(bounds, Mapping):
            raise ConfigurationError(f"Range for period '{period}' must be an object.")
        ranges[period] = DaypartRange(
            key=period,
            sales_min=_number(bounds, "sales_min", period),
            sales_max=_number(bounds, "sales_max", period),
            prod_min=_number(bounds, "prod_min", period),
            prod_max=_number(bounds, "prod_max", period),
        )
    return ranges


def build_profile(payload: Mapping[str, Any]) -> StoreProfile:
    """Validate a profile payload and return the immutable profile record."""
    if not isinstance(payload, Mapping):
        raise ConfigurationError("Profile payload must be a mapping.")
    name = str(payload.get("name") or "").strip()
    if not name:
        raise ConfigurationError("Profile needs a name.")
    strategy = payload.get("strategy")
    if strategy not in STRATEGIES:
        raise ConfigurationError(f"Profile '{name}': strategy must be one of {sorted(STRATEGIES)}.")
    dayparts = tuple(payload.get("dayparts") or DAYPARTS)
    if len(set(dayparts)) != len(dayparts):
        raise ConfigurationError(f"Profile '{name}': duplicate dayparts.")

    bands_cfg = _section(payload, "zone_bands")
    zone_bands = ZoneBands(
        inner=_number(bands_cfg, "inner", "zone_bands"),
        outer=_number(bands_cfg, "outer", "zone_bands"),
    )
    gauge_cfg = _section(payload, "gauge")
    gauge = GaugeSpec(
        start_angle=_optional_number(gauge_cfg, "start_angle", DEFAULT_START_ANGLE, "gauge"),
        angular_span=_optional_number(gauge_cfg, "angular_span", DEFAULT_ANGULAR_SPAN, "gauge"),
    )

    periods: Dict[str, Tuple[str, str]] = {}
    for period, members in _section(payload, "periods").items():
        if not isinstance(members, (list, tuple)) or len(members) != 2:
            raise ConfigurationError(f"Period '{period}' must combine exactly two dayparts.")
        unknown = [member for member in members if member not in dayparts]
        if unknown:
            raise ConfigurationError(f"Period '{period}' names unknown dayparts: {', '.join(unknown)}.")
        periods[period] = (members[0], members[1])

    storage = _section(payload, "storage")
    hour = _optional_number(storage, "autosave_hour", 23, "storage")
    if not 0 <= hour <= 23 or hour != int(hour):
        raise ConfigurationError(f"Profile '{name}': autosave_hour must be a whole hour between 0 and 23.")
    autosave_hour = int(hour)

    period_ranges = _build_period_ranges(payload, periods)

    ranges: Dict[str, DaypartRange] = {}
    tier_table: Optional[TierTable] = None
    selected_tier: Optional[str] = None
    weights: Dict[str, float] = {}
    weight_bounds: Tuple[float, float] = (0.5, 1.5)
    if strategy == "range":
        ranges = _build_ranges(payload, dayparts)
    else:
        tier_table = _build_tier_table(payload)
        selected_tier = payload.get("selected_tier") or tier_table.tiers[0]
        if not tier_table.has_tier(selected_tier):
            raise ConfigurationError(f"Profile '{name}': unknown selected tier '{selected_tier}'.")
        weights = _build_weights(payload, dayparts)
        bounds = payload.get("weight_bounds") or [0.5, 1.5]
        try:
            low, high = (float(bounds[0]), float(bounds[1]))
        except (TypeError, ValueError, IndexError) as exc:
            raise ConfigurationError(f"Profile '{name}': weight_bounds must be two numbers.") from exc
        if not 0 < low < high:
            raise ConfigurationError(f"Profile '{name}': weight_bounds must satisfy 0 < low < high.")
        weight_bounds = (low, high)

    return StoreProfile(
        name=name,
        display_name=str(payload.get("display_name") or name),
        strategy=strategy,
        dayparts=dayparts,
        zone_bands=zone_bands,
        gauge=gauge,
        periods=periods,
        log_id=str(storage.get("log_id") or name),
        autosave_hour=autosave_hour,
        report_prefix=str(payload.get("report_prefix") or f"productivity-report-{name}"),
        ranges=ranges,
        tier_table=tier_table,
        selected_tier=selected_tier,
        weights=weights,
        weight_bounds=weight_bounds,
        period_ranges=period_ranges,
    )


def load_overrides(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    source = path or PROFILES_FILE
    if not source.exists():
        return {}
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Profile overrides in {source} are not valid JSON.") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Profile overrides must be a JSON object keyed by profile name.")
    return {profile_key(name): entry for name, entry in data.items() if isinstance(entry, dict)}


def _merge_override(
    payloads: Mapping[str, Dict[str, Any]], name: str, override: Dict[str, Any]
) -> Dict[str, Any]:
    name = profile_key(name)
    if name in payloads:
        merged = _deep_update(payloads[name], override)
    elif override.get("extends"):
        parent = profile_key(override["extends"])
        if parent not in payloads:
            raise ConfigurationError(f"Profile '{name}' extends unknown profile '{parent}'.")
        # A derived store keeps its own log unless the override says otherwise.
        base = _deep_update(payloads[parent], {"storage": {"log_id": name}})
        merged = _deep_update(base, override)
    else:
        merged = copy.deepcopy(override)
    merged.pop("extends", None)
    merged["name"] = name
    return merged


def profile_payloads(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Built-in profiles merged with the JSON overrides file."""
    payloads = build_default_profiles()
    for name, override in load_overrides(path).items():
        payloads[name] = _merge_override(payloads, name, override)
    return payloads


def available_profiles(path: Optional[Path] = None) -> list[str]:
    return sorted(profile_payloads(path))


def selected_profile_name(explicit: Optional[str] = None) -> str:
    return profile_key(explicit or os.environ.get(PROFILE_ENV_VAR) or DEFAULT_PROFILE_NAME)


def load_profile(name: Optional[str] = None, *, path: Optional[Path] = None) -> StoreProfile:
    profile_name = selected_profile_name(name)
    payloads = profile_payloads(path)
    if profile_name not in payloads:
        raise ConfigurationError(
            f"Unknown store profile '{profile_name}'. Available: {', '.join(sorted(payloads))}."
        )
    return build_profile(payloads[profile_name])


def export_profiles(target: Path, *, path: Optional[Path] = None) -> Path:
    target.write_text(json.dumps(profile_payloads(path), indent=2, sort_keys=True), encoding="utf-8")
    return target


def import_profiles(source: Path, *, path: Optional[Path] = None) -> int:
    """Validate every profile in ``source`` and store them as overrides."""
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{source} is not valid JSON.") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Profiles file must be a JSON object.")
    destination = path or PROFILES_FILE
    overrides = load_overrides(destination)
    payloads = profile_payloads(destination)
    count = 0
    for name, entry in data.items():
        if not isinstance(entry, dict):
            continue
        key = profile_key(name)
        build_profile(_merge_override(payloads, key, entry))
        overrides[key] = entry
        count += 1
    destination.write_text(json.dumps(overrides, indent=2, sort_keys=True), encoding="utf-8")
    return count

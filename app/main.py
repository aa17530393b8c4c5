from __future__ import annotations

import argparse
import datetime
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

APP_DIR = Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from audit import AUDIT_FILE, EVENTS, REPORT_EXPORTED, AuditLogger  # noqa: E402
import database as db  # noqa: E402
from database import init_database, list_profiles  # noqa: E402
from errors import ConfigurationError, DomainError, EncodingError  # noqa: E402
from exporter import export_report  # noqa: E402
from gauge import angle, dial_window  # noqa: E402
from observations import (  # noqa: E402
    AUTO,
    MANUAL,
    DaypartInput,
    ObservationLog,
    build_observation,
    has_entries,
)
from parsing import format_currency, parse_currency, parse_productivity  # noqa: E402
from profiles import (  # noqa: E402
    StoreProfile,
    profile_payloads,
    export_profiles,
    import_profiles,
    load_profile,
)
from report import report_filename, to_delimited_text, weekly_range  # noqa: E402
from targets import RangeMappedStrategy, TargetStrategy, TierWeightedStrategy, build_strategy  # noqa: E402
from zones import classify, labor_delta  # noqa: E402


def _pairs(values: Optional[Sequence[str]], option: str) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for item in values or []:
        daypart, sep, raw = item.partition("=")
        if not sep or not daypart.strip():
            raise SystemExit(f"Invalid {option} value '{item}'; expected DAYPART=VALUE.")
        mapping[daypart.strip().lower()] = raw
    return mapping


def collect_inputs(args: argparse.Namespace, profile: StoreProfile) -> Dict[str, DaypartInput]:
    sales = _pairs(args.sales, "--sales")
    actual = _pairs(args.actual, "--actual")
    pics = _pairs(args.pic, "--pic")
    unknown = sorted((set(sales) | set(actual) | set(pics)) - set(profile.dayparts))
    if unknown:
        raise SystemExit(f"Unknown dayparts for {profile.display_name}: {', '.join(unknown)}.")
    return {
        daypart: DaypartInput(
            sales=parse_currency(sales.get(daypart)),
            actual_productivity=parse_productivity(actual.get(daypart)),
            person_in_charge=(pics.get(daypart) or "").strip(),
        )
        for daypart in profile.dayparts
    }


def apply_tier_options(args: argparse.Namespace, strategy: TargetStrategy) -> None:
    if not isinstance(strategy, TierWeightedStrategy):
        if getattr(args, "tier", None) or getattr(args, "weight", None):
            raise SystemExit("--tier and --weight only apply to tier-based profiles.")
        return
    if args.tier:
        strategy.select_tier(args.tier)
    for daypart, raw in _pairs(args.weight, "--weight").items():
        try:
            weight = float(raw)
        except ValueError as exc:
            raise SystemExit(f"Invalid weight for {daypart}: {raw}") from exc
        applied = strategy.set_weight(daypart, weight)
        if applied != weight:
            print(f"[productivity] Weight for {daypart} clamped to {applied:.2f}.")


def _fmt(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return "--"
    return f"{value:.1f}{suffix}"


def _needle(strategy: TargetStrategy, daypart: str, target: Optional[float], actual: Optional[float]) -> Optional[float]:
    dial = strategy.profile.gauge
    if isinstance(strategy, RangeMappedStrategy):
        bounds = strategy.range_for(daypart)
        if target is None:
            return None
        return angle(target, bounds.prod_min, bounds.prod_max, dial.start_angle, dial.angular_span)
    if target is None or actual is None:
        return None
    low, high = dial_window(target)
    return angle(actual, low, high, dial.start_angle, dial.angular_span)


def describe(strategy: TargetStrategy, inputs: Dict[str, DaypartInput]) -> List[str]:
    profile = strategy.profile
    sales = {daypart: item.sales for daypart, item in inputs.items()}
    actuals = {daypart: item.actual_productivity for daypart, item in inputs.items()}
    targets = strategy.targets(sales)
    working = strategy.zone_targets(sales)
    lines = [f"Profile: {profile.display_name} ({strategy.kind} targets)"]
    if isinstance(strategy, TierWeightedStrategy):
        lines.append(f"Tier: {strategy.tier_label}")
    for daypart in profile.dayparts:
        item = inputs[daypart]
        parts = [
            f"{daypart.capitalize():<10}",
            f"sales {format_currency(item.sales) or '--':>9}",
            f"target {_fmt(targets[daypart])}",
            f"actual {_fmt(item.actual_productivity)}",
        ]
        if isinstance(strategy, RangeMappedStrategy) and item.sales is not None and targets[daypart] is None:
            parts.append(f"({strategy.sales_position(daypart, item.sales)} range)")
        reading = classify(item.actual_productivity, working[daypart], profile.zone_bands)
        if reading:
            parts.append(f"zone {reading.zone}: {reading.action}")
        delta = labor_delta(item.sales, item.actual_productivity, working[daypart])
        if delta is not None:
            parts.append(f"labor {delta:+.1f} hrs")
        needle = _needle(strategy, daypart, targets[daypart], item.actual_productivity)
        if needle is not None:
            parts.append(f"needle {needle:.1f} deg")
        lines.append("  ".join(parts))
    for summary in strategy.period_summaries(sales, actuals).values():
        line = (
            f"{summary.name.capitalize():<10}  sales {format_currency(summary.combined_sales):>9}  "
            f"target {_fmt(summary.combined_target)}  avg actual {_fmt(summary.average_actual)}"
        )
        dial = strategy.period_gauge(summary.name, sales)
        if dial is not None:
            line += f"  dial {_fmt(dial.productivity)} (needle {dial.needle:.1f} deg)"
        lines.append(line)
    return lines


def _parse_date(raw: Optional[str], option: str) -> Optional[datetime.date]:
    if not raw:
        return None
    try:
        return datetime.date.fromisoformat(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid {option} value: {exc}") from exc


def _open_log(profile: StoreProfile, actor: str) -> ObservationLog:
    init_database()
    return ObservationLog.for_profile(profile, audit=AuditLogger(AUDIT_FILE), actor=actor)


def cmd_profiles(args: argparse.Namespace) -> int:
    init_database()
    with db.StoreSessionLocal() as session:
        stored = list_profiles(session)
    payloads = profile_payloads()
    log_ids = set()
    for name in sorted(payloads):
        log_id = str((payloads[name].get("storage") or {}).get("log_id") or name)
        log_ids.add(log_id)
        print(f"{name:<14} {payloads[name].get('display_name') or name:<28} log {log_id} ({stored.get(log_id, 0)} stored keys)")
    for log_id in sorted(set(stored) - log_ids):
        print(f"{'-':<14} {'(no profile)':<28} log {log_id} ({stored[log_id]} stored keys)")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile).log_id if args.profile else None
    for entry in AuditLogger(AUDIT_FILE).entries(args.event, profile=profile, limit=args.limit):
        extra = " ".join(f"{key}={value}" for key, value in sorted((entry.get("details") or {}).items()))
        print(f"{entry.get('timestamp')}  {entry.get('event'):<22} {entry.get('username') or '-'}  {entry.get('profile') or '-'}  {extra}".rstrip())
    return 0


def cmd_targets(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile)
    strategy = build_strategy(profile)
    apply_tier_options(args, strategy)
    for line in describe(strategy, collect_inputs(args, profile)):
        print(line)
    return 0


def cmd_save(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile)
    strategy = build_strategy(profile)
    apply_tier_options(args, strategy)
    inputs = collect_inputs(args, profile)
    if not has_entries(inputs):
        raise SystemExit("Nothing to save: enter sales, actual productivity or a PIC.")
    log = _open_log(profile, args.actor)
    observation = build_observation(
        strategy,
        inputs,
        when=datetime.datetime.now(),
        saved_by=MANUAL,
        date=_parse_date(args.date, "--date"),
    )
    log.append(observation)
    print(f"[productivity] Saved {observation.date} for {profile.display_name} ({len(log)} records).")
    return 0


def cmd_autosave(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile)
    strategy = build_strategy(profile)
    apply_tier_options(args, strategy)
    inputs = collect_inputs(args, profile)
    try:
        now = datetime.datetime.fromisoformat(args.now) if args.now else datetime.datetime.now()
    except ValueError as exc:
        raise SystemExit(f"Invalid --now value: {exc}") from exc
    log = _open_log(profile, args.actor)
    fired = log.maybe_auto_save(
        now,
        has_entries(inputs),
        lambda moment: build_observation(strategy, inputs, when=moment, saved_by=AUTO),
    )
    if fired:
        print(f"[productivity] Auto-saved {now.date()} for {profile.display_name}.")
    else:
        print(f"[productivity] No autosave (last autosave: {log.last_auto_save_date or 'never'}).")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    profile = load_profile(args.profile)
    log = _open_log(profile, args.actor)
    if args.weekly:
        start, end = weekly_range(datetime.date.today())
        filename = report_filename(profile.report_prefix, end)
    else:
        default_start, default_end = weekly_range(datetime.date.today())
        start = _parse_date(args.start, "--start") or default_start
        end = _parse_date(args.end, "--end") or default_end
        filename = report_filename(profile.report_prefix, start, end)
    rows = log.filter_by_date_range(start, end)
    try:
        text = to_delimited_text(rows, dayparts=profile.dayparts, quoting=args.quoting)
    except EncodingError as exc:
        print(f"[productivity] Report export failed: {exc}", file=sys.stderr)
        return 1
    output_dir = Path(args.output_dir) if args.output_dir else None
    path = export_report(text, filename, directory=output_dir)
    AuditLogger(AUDIT_FILE).log(
        REPORT_EXPORTED,
        args.actor,
        profile=profile.log_id,
        details={"start": start.isoformat(), "end": end.isoformat(), "rows": len(rows), "file": path.name},
    )
    print(f"[productivity] Exported {len(rows)} records -> {path}")
    return 0


def cmd_export_profiles(args: argparse.Namespace) -> int:
    path = export_profiles(Path(args.path))
    print(f"[productivity] Profiles written to {path}")
    return 0


def cmd_import_profiles(args: argparse.Namespace) -> int:
    count = import_profiles(Path(args.path))
    print(f"[productivity] Imported {count} profiles.")
    return 0


def _add_input_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sales", action="append", metavar="DAYPART=AMOUNT", help="Daypart sales, e.g. breakfast=$6,000.")
    parser.add_argument("--actual", action="append", metavar="DAYPART=VALUE", help="Actual productivity per daypart.")
    parser.add_argument("--pic", action="append", metavar="DAYPART=NAME", help="Person in charge per daypart.")
    parser.add_argument("--tier", help="Tier to target (tier-based profiles only).")
    parser.add_argument("--weight", action="append", metavar="DAYPART=WEIGHT", help="Daypart weight override.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Daypart productivity targets, zones, saved observations and reports."
    )
    parser.add_argument("--profile", help="Store profile name (defaults to $PRODUCTIVITY_STORE or tuskawilla).")
    parser.add_argument("--actor", default="manager", help="Audit trail actor name.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("profiles", help="List store profiles.").set_defaults(func=cmd_profiles)

    targets = subparsers.add_parser("targets", help="Show targets, zones and labor delta.")
    _add_input_options(targets)
    targets.set_defaults(func=cmd_targets)

    save = subparsers.add_parser("save", help="Save today's entries to the log.")
    _add_input_options(save)
    save.add_argument("--date", help="ISO date to record (defaults to today).")
    save.set_defaults(func=cmd_save)

    autosave = subparsers.add_parser("autosave", help="Run the hourly autosave check once.")
    _add_input_options(autosave)
    autosave.add_argument("--now", help="ISO timestamp to evaluate instead of the clock.")
    autosave.set_defaults(func=cmd_autosave)

    report = subparsers.add_parser("report", help="Export saved observations as CSV.")
    report.add_argument("--start", help="First date (ISO), inclusive.")
    report.add_argument("--end", help="Last date (ISO), inclusive.")
    report.add_argument("--weekly", action="store_true", help="Export the trailing week.")
    report.add_argument("--quoting", choices=["minimal", "none"], default="minimal")
    report.add_argument("--output-dir", help="Directory for the CSV (defaults to app/data/exports).")
    report.set_defaults(func=cmd_report)

    export_cmd = subparsers.add_parser("export-profiles", help="Write all profiles to a JSON file.")
    export_cmd.add_argument("path")
    export_cmd.set_defaults(func=cmd_export_profiles)

    import_cmd = subparsers.add_parser("import-profiles", help="Validate and store profiles from a JSON file.")
    import_cmd.add_argument("path")
    import_cmd.set_defaults(func=cmd_import_profiles)

    audit = subparsers.add_parser("audit", help="Show recent saves, autosaves and exports.")
    audit.add_argument("--event", choices=EVENTS, help="Only show this event type.")
    audit.add_argument("--limit", type=int, default=20, help="Number of most recent events to show.")
    audit.set_defaults(func=cmd_audit)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (ConfigurationError, DomainError) as exc:
        raise SystemExit(f"[productivity] Configuration problem: {exc}") from exc


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

import database as db
from audit import OBSERVATION_AUTOSAVED, OBSERVATION_SAVED, AuditLogger
from database import get_value, put_value
from errors import ConfigurationError
from profiles import StoreProfile
from targets import TargetStrategy


MANUAL = "Manual"
AUTO = "Auto"
SAVED_BY_CHOICES = {MANUAL, AUTO}
LOG_KEY = "observations"
AUTOSAVE_KEY = "last_auto_save"
DEFAULT_AUTOSAVE_HOUR = 23
TARGET_PRECISION = 1

_LEGACY_SAVED_BY = {"auto-save": AUTO, "auto": AUTO, "manual": MANUAL}
_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")


@dataclass(frozen=True)
class DaypartInput:
    """What a manager typed for one daypart, already normalized."""

    sales: Optional[float] = None
    actual_productivity: Optional[float] = None
    person_in_charge: str = ""


@dataclass(frozen=True)
class DaypartEntry:
    sales: Optional[float] = None
    target_productivity: Optional[float] = None
    actual_productivity: Optional[float] = None
    person_in_charge: str = ""

    def is_empty(self) -> bool:
        return (
            self.sales is None
            and self.target_productivity is None
            and self.actual_productivity is None
            and not self.person_in_charge
        )


@dataclass(frozen=True)
class Observation:
    date: Optional[datetime.date]
    time: Optional[datetime.time]
    saved_by: str
    entries: Mapping[str, DaypartEntry]

    def __post_init__(self) -> None:
        if self.saved_by not in SAVED_BY_CHOICES:
            raise ValueError(f"saved_by must be one of {sorted(SAVED_BY_CHOICES)}.")
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def entry(self, daypart: str) -> DaypartEntry:
        return self.entries.get(daypart) or DaypartEntry()

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "date": self.date.isoformat() if self.date else None,
            "time": self.time.isoformat(timespec="seconds") if self.time else None,
            "savedBy": self.saved_by,
        }
        for daypart, entry in self.entries.items():
            record[daypart] = {
                "sales": entry.sales,
                "targetProductivity": entry.target_productivity,
                "actualProductivity": entry.actual_productivity,
                "pic": entry.person_in_charge,
            }
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any], dayparts: Optional[List[str]] = None) -> "Observation":
        """Rebuild an observation from a stored record, tolerating legacy shapes."""
        saved_by = _LEGACY_SAVED_BY.get(str(record.get("savedBy") or "").strip().lower(), MANUAL)
        keys = dayparts or [key for key, value in record.items() if isinstance(value, dict)]
        entries: Dict[str, DaypartEntry] = {}
        for daypart in keys:
            payload = record.get(daypart)
            if not isinstance(payload, dict):
                continue
            entries[daypart] = DaypartEntry(
                sales=coerce_number(payload.get("sales")),
                target_productivity=coerce_number(payload.get("targetProductivity")),
                actual_productivity=coerce_number(payload.get("actualProductivity")),
                person_in_charge=str(payload.get("pic") or "").strip(),
            )
        return cls(
            date=parse_record_date(record.get("date")),
            time=parse_record_time(record.get("time")),
            saved_by=saved_by,
            entries=entries,
        )


def coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_record_date(value: Any) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def parse_record_time(value: Any) -> Optional[datetime.time]:
    if isinstance(value, datetime.time):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    for fmt in _TIME_FORMATS:
        try:
            return datetime.datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


def has_entries(inputs: Mapping[str, DaypartInput]) -> bool:
    """True when anything has been typed for any daypart."""
    for item in inputs.values():
        if item.sales is not None or item.actual_productivity is not None:
            return True
        if item.person_in_charge.strip():
            return True
    return False


def build_observation(
    strategy: TargetStrategy,
    inputs: Mapping[str, DaypartInput],
    *,
    when: datetime.datetime,
    saved_by: str = MANUAL,
    date: Optional[datetime.date] = None,
) -> Observation:
    """Snapshot the inputs with the targets calculated right now baked in."""
    blank = DaypartInput()
    sales = {daypart: inputs.get(daypart, blank).sales for daypart in strategy.dayparts}
    targets = strategy.targets(sales)
    entries: Dict[str, DaypartEntry] = {}
    for daypart in strategy.dayparts:
        item = inputs.get(daypart, blank)
        target = targets.get(daypart)
        entries[daypart] = DaypartEntry(
            sales=item.sales,
            target_productivity=round(target, TARGET_PRECISION) if target is not None else None,
            actual_productivity=item.actual_productivity,
            person_in_charge=item.person_in_charge.strip(),
        )
    return Observation(
        date=date or when.date(),
        time=when.time().replace(microsecond=0),
        saved_by=saved_by,
        entries=entries,
    )


class ObservationLog:
    """Newest-first log of saved observations for one store profile.

    The list lives in memory and mirrors a single JSON entry in the key-value
    store. Every change is written and committed before memory is updated, so a
    failed write leaves the log as it was.
    """

    def __init__(
        self,
        profile_id: str,
        session_factory: Optional[Callable] = None,
        *,
        autosave_hour: int = DEFAULT_AUTOSAVE_HOUR,
        audit: Optional[AuditLogger] = None,
        actor: str = "system",
    ) -> None:
        self.profile_id = profile_id
        self.autosave_hour = autosave_hour
        self.audit = audit
        self.actor = actor
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._observations: List[Observation] = []
        self._last_auto_save: Optional[datetime.date] = None
        self.reload()

    @classmethod
    def for_profile(cls, profile: StoreProfile, session_factory: Optional[Callable] = None, **kwargs) -> "ObservationLog":
        kwargs.setdefault("autosave_hour", profile.autosave_hour)
        return cls(profile.log_id, session_factory, **kwargs)

    def _session(self):
        factory = self._session_factory or db.StoreSessionLocal
        return factory()

    def reload(self) -> None:
        with self._lock, self._session() as session:
            raw_log = get_value(session, self.profile_id, LOG_KEY)
            raw_date = get_value(session, self.profile_id, AUTOSAVE_KEY)
        observations: List[Observation] = []
        if raw_log:
            try:
                records = json.loads(raw_log)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(
                    f"Stored observation log for '{self.profile_id}' is not valid JSON."
                ) from exc
            if not isinstance(records, list):
                raise ConfigurationError(f"Stored observation log for '{self.profile_id}' is not a list.")
            for record in records:
                if isinstance(record, dict):
                    observations.append(Observation.from_record(record))
        self._observations = observations
        self._last_auto_save = parse_record_date(raw_date)

    @property
    def last_auto_save_date(self) -> Optional[datetime.date]:
        return self._last_auto_save

    def __len__(self) -> int:
        return len(self._observations)

    def load_all(self) -> List[Observation]:
        return list(self._observations)

    def _write(self, observations: List[Observation], autosave_date: Optional[datetime.date] = None) -> None:
        payload = json.dumps([item.to_record() for item in observations])
        with self._session() as session:
            put_value(session, self.profile_id, LOG_KEY, payload)
            if autosave_date is not None:
                put_value(session, self.profile_id, AUTOSAVE_KEY, autosave_date.isoformat())
            session.commit()

    def append(self, observation: Observation) -> None:
        with self._lock:
            updated = [observation] + self._observations
            self._write(updated)
            self._observations = updated
        self._audit(OBSERVATION_SAVED, observation)

    def maybe_auto_save(
        self,
        now: datetime.datetime,
        has_unsaved_data: bool,
        build: Callable[[datetime.datetime], Observation],
    ) -> bool:
        """Append an Auto observation if ``now`` is in the autosave hour and none ran today.

        ``build`` receives ``now`` and returns the observation to store. Safe to
        call on every tick; at most one autosave lands per calendar day.
        """
        with self._lock:
            today = now.date()
            if now.hour != self.autosave_hour:
                return False
            if self._last_auto_save == today:
                return False
            if not has_unsaved_data:
                return False
            observation = build(now)
            updated = [observation] + self._observations
            self._write(updated, autosave_date=today)
            self._observations = updated
            self._last_auto_save = today
        self._audit(OBSERVATION_AUTOSAVED, observation)
        return True

    def filter_by_date_range(self, start: datetime.date, end: datetime.date) -> List[Observation]:
        """Observations dated within ``[start, end]``; undated records are skipped."""
        return [
            item
            for item in self._observations
            if item.date is not None and start <= item.date <= end
        ]

    def _audit(self, event: str, observation: Observation) -> None:
        if self.audit is None:
            return
        self.audit.log(
            event,
            self.actor,
            profile=self.profile_id,
            details={
                "date": observation.date.isoformat() if observation.date else None,
                "saved_by": observation.saved_by,
                "count": len(self._observations),
            },
        )

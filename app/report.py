from __future__ import annotations

import csv
import datetime
import io
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from errors import EncodingError
from observations import (
    MANUAL,
    SAVED_BY_CHOICES,
    DaypartEntry,
    Observation,
    coerce_number,
    parse_record_date,
    parse_record_time,
)
from profile_defaults import DAYPARTS


LEADING_COLUMNS: Tuple[str, ...] = ("Date", "Time", "Saved By")
DAYPART_COLUMNS: Tuple[str, ...] = ("Sales", "Target Productivity", "Actual Productivity", "PIC")
QUOTING_MODES = {"minimal": csv.QUOTE_MINIMAL, "none": csv.QUOTE_NONE}
WEEKLY_REPORT_DAYS = 7


def report_header(dayparts: Sequence[str] = DAYPARTS) -> List[str]:
    header = list(LEADING_COLUMNS)
    for daypart in dayparts:
        label = daypart.capitalize()
        header.extend(f"{label} {column}" for column in DAYPART_COLUMNS)
    return header


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _row(observation: Observation, dayparts: Sequence[str]) -> List[str]:
    row = [
        observation.date.isoformat() if observation.date else "",
        observation.time.isoformat(timespec="seconds") if observation.time else "",
        observation.saved_by or "",
    ]
    for daypart in dayparts:
        entry = observation.entry(daypart)
        row.extend(
            [
                _format_number(entry.sales),
                _format_number(entry.target_productivity),
                _format_number(entry.actual_productivity),
                entry.person_in_charge or "",
            ]
        )
    return row


def to_delimited_text(
    observations: Iterable[Observation],
    *,
    dayparts: Sequence[str] = DAYPARTS,
    delimiter: str = ",",
    quoting: str = "minimal",
) -> str:
    """Render observations as a report with one header row, in the order given.

    Missing values become empty fields. With ``quoting="none"`` a value that
    contains the delimiter, a quote or a line break cannot be written and
    raises :class:`EncodingError`.
    """
    if quoting not in QUOTING_MODES:
        raise ValueError(f"quoting must be one of {sorted(QUOTING_MODES)}")
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=delimiter,
        quoting=QUOTING_MODES[quoting],
        escapechar=None,
        lineterminator="\n",
    )
    try:
        writer.writerow(report_header(dayparts))
    except csv.Error as exc:
        raise EncodingError(f"Header: {exc}", row=0) from exc
    for index, observation in enumerate(observations, start=1):
        row = _row(observation, dayparts)
        if quoting == "none":
            for value in row:
                if delimiter in value or '"' in value or "\n" in value or "\r" in value:
                    raise EncodingError(
                        f"Row {index}: value {value!r} contains a reserved character.",
                        row=index,
                        value=value,
                    )
        try:
            writer.writerow(row)
        except csv.Error as exc:
            raise EncodingError(f"Row {index}: {exc}", row=index) from exc
    return buffer.getvalue()


def parse_delimited_text(
    text: str,
    *,
    delimiter: str = ",",
) -> List[Observation]:
    """Read a report produced by :func:`to_delimited_text` back into observations."""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    try:
        header = next(reader)
    except StopIteration:
        return []
    if tuple(header[: len(LEADING_COLUMNS)]) != LEADING_COLUMNS:
        raise ValueError("Report does not start with Date, Time, Saved By columns.")
    daypart_labels = header[len(LEADING_COLUMNS) :]
    if len(daypart_labels) % len(DAYPART_COLUMNS):
        raise ValueError("Report has an incomplete daypart column group.")
    dayparts: List[str] = []
    for offset in range(0, len(daypart_labels), len(DAYPART_COLUMNS)):
        label = daypart_labels[offset]
        dayparts.append(label[: -len(" Sales")].lower() if label.endswith(" Sales") else label.lower())

    observations: List[Observation] = []
    for row in reader:
        if not row:
            continue
        row = row + [""] * (len(header) - len(row))
        entries: Dict[str, DaypartEntry] = {}
        for index, daypart in enumerate(dayparts):
            base = len(LEADING_COLUMNS) + index * len(DAYPART_COLUMNS)
            sales, target, actual, pic = row[base : base + len(DAYPART_COLUMNS)]
            entries[daypart] = DaypartEntry(
                sales=coerce_number(sales),
                target_productivity=coerce_number(target),
                actual_productivity=coerce_number(actual),
                person_in_charge=pic,
            )
        saved_by = row[2] if row[2] in SAVED_BY_CHOICES else MANUAL
        observations.append(
            Observation(
                date=parse_record_date(row[0]),
                time=parse_record_time(row[1]),
                saved_by=saved_by,
                entries=entries,
            )
        )
    return observations


def report_filename(prefix: str, start: datetime.date, end: Optional[datetime.date] = None) -> str:
    if end is None:
        return f"{prefix}-{start.isoformat()}.csv"
    return f"{prefix}-{start.isoformat()}-to-{end.isoformat()}.csv"


def weekly_range(today: datetime.date) -> Tuple[datetime.date, datetime.date]:
    """Seven days back through today, both ends included."""
    return today - datetime.timedelta(days=WEEKLY_REPORT_DAYS), today

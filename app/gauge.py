from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from errors import ConfigurationError, DomainError
from zones import ZONE_ORDER, ZoneBands, zone_boundaries


DEFAULT_START_ANGLE = 135.0
DEFAULT_ANGULAR_SPAN = 270.0
MIN_ARC_DEGREES = 1.0


@dataclass(frozen=True)
class GaugeSpec:
    start_angle: float = DEFAULT_START_ANGLE
    angular_span: float = DEFAULT_ANGULAR_SPAN

    def __post_init__(self) -> None:
        if not 0 < self.angular_span <= 360:
            raise ConfigurationError(f"Gauge span must be within (0, 360], got {self.angular_span}.")
        # Arc edges come back from angle() in [0, 360); the start has to match.
        object.__setattr__(self, "start_angle", self.start_angle % 360)

    @property
    def end_angle(self) -> float:
        return (self.start_angle + self.angular_span) % 360


@dataclass(frozen=True)
class Arc:
    start: float
    end: float

    @property
    def sweep(self) -> float:
        return self.end - self.start

    @property
    def large_arc(self) -> bool:
        return self.sweep > 180


def angle(
    value: float,
    value_min: float,
    value_max: float,
    start_angle: float = DEFAULT_START_ANGLE,
    angular_span: float = DEFAULT_ANGULAR_SPAN,
) -> float:
    """Map ``value`` onto the dial; the result is always in ``[0, 360)``."""
    if value_min == value_max:
        raise DomainError(f"Degenerate gauge range: min and max are both {value_min}.")
    ratio = (value - value_min) / (value_max - value_min)
    ratio = max(0.0, min(1.0, ratio))
    return (start_angle + ratio * angular_span) % 360


def arc(start_angle: float, end_angle: float) -> Optional[Arc]:
    """Sweep clockwise from start to end; ``None`` when the sweep is under one degree."""
    end = end_angle
    if end < start_angle:
        end += 360
    if abs(end - start_angle) < MIN_ARC_DEGREES:
        return None
    return Arc(start=start_angle, end=end)


def tick_marks(
    value_min: float,
    value_max: float,
    count: int = 17,
    dial: GaugeSpec = GaugeSpec(),
) -> List[Tuple[float, float]]:
    if count < 2:
        raise ValueError("A dial needs at least two tick marks.")
    step = (value_max - value_min) / (count - 1)
    values = [value_min + index * step for index in range(count)]
    return [(value, angle(value, value_min, value_max, dial.start_angle, dial.angular_span)) for value in values]


def dial_window(target: float, width: float = 40.0, floor: float = 1.0) -> Tuple[float, float]:
    """Productivity range of a dial centred on ``target``."""
    return max(floor, target - width / 2), target + width / 2


def zone_arcs(
    target: float,
    bands: ZoneBands,
    value_min: float,
    value_max: float,
    dial: GaugeSpec = GaugeSpec(),
) -> List[Tuple[str, Arc]]:
    """Arcs for the four zones on a dial spanning ``value_min`` to ``value_max``.

    Zones that collapse to under a degree after clamping are left out.
    """

    def to_angle(value: float) -> float:
        return angle(value, value_min, value_max, dial.start_angle, dial.angular_span)

    edges = [to_angle(value_min)] + [to_angle(value) for value in zone_boundaries(target, bands)]
    arcs: List[Tuple[str, Arc]] = []
    for zone, start, end in zip(ZONE_ORDER, edges, edges[1:]):
        segment = arc(start, end)
        if segment is not None:
            arcs.append((zone, segment))
    return arcs


PERIOD_PROGRESS = "progress"
PERIOD_BAND = "band"
PERIOD_BAND_WIDTH = 5.0


def period_arcs(
    productivity: float,
    value_min: float,
    value_max: float,
    dial: GaugeSpec = GaugeSpec(),
    band: float = PERIOD_BAND_WIDTH,
) -> List[Tuple[str, Arc]]:
    """Arcs for a condensed period dial.

    ``progress`` runs from the dial start to the needle; ``band`` runs from the
    needle up to ``productivity + band``, capped at ``value_max``.
    """

    def to_angle(value: float) -> float:
        return angle(value, value_min, value_max, dial.start_angle, dial.angular_span)

    needle = to_angle(productivity)
    arcs: List[Tuple[str, Arc]] = []
    progress = arc(to_angle(value_min), needle)
    if progress is not None:
        arcs.append((PERIOD_PROGRESS, progress))
    headroom = arc(needle, to_angle(min(productivity + band, value_max)))
    if headroom is not None:
        arcs.append((PERIOD_BAND, headroom))
    return arcs

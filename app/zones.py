from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from errors import ConfigurationError


RECOVERY = "Recovery"
STABILIZE = "Stabilize"
SUSTAIN = "Sustain"
INVEST = "Invest"
ZONE_ORDER: Tuple[str, ...] = (RECOVERY, STABILIZE, SUSTAIN, INVEST)

ZONE_ACTIONS: Dict[str, str] = {
    RECOVERY: "Reduce labor / tighten deployment",
    STABILIZE: "Hold, coach, no adds",
    SUSTAIN: "Maintain deployment",
    INVEST: "Prep, train, clean",
}


@dataclass(frozen=True)
class ZoneBands:
    """Half-widths of the symmetric bands around target productivity."""

    inner: float = 3.0
    outer: float = 8.0

    def __post_init__(self) -> None:
        if self.inner <= 0 or self.outer <= 0:
            raise ConfigurationError("Zone band widths must be positive.")
        if self.inner >= self.outer:
            raise ConfigurationError(
                f"Inner zone band ({self.inner}) must be narrower than the outer band ({self.outer})."
            )


@dataclass(frozen=True)
class ZoneReading:
    zone: str
    action: str
    diff: float


def _entered(value: Optional[float]) -> bool:
    return value is not None and value != 0


def classify(actual: Optional[float], target: Optional[float], bands: ZoneBands) -> Optional[ZoneReading]:
    """Return the zone for ``actual - target`` or ``None`` until both are entered."""
    if not (_entered(actual) and _entered(target)):
        return None
    diff = actual - target
    if diff <= -bands.outer:
        zone = RECOVERY
    elif diff <= -bands.inner:
        zone = STABILIZE
    elif diff <= bands.inner:
        zone = SUSTAIN
    else:
        zone = INVEST
    return ZoneReading(zone=zone, action=ZONE_ACTIONS[zone], diff=diff)


def labor_delta(sales: Optional[float], actual: Optional[float], target: Optional[float]) -> Optional[float]:
    """Labor hours used beyond (positive) or under (negative) what target implies."""
    if not (_entered(sales) and _entered(actual) and _entered(target)):
        return None
    return sales / actual - sales / target


def zone_boundaries(target: float, bands: ZoneBands) -> Tuple[float, float, float, float]:
    return (
        target - bands.outer,
        target - bands.inner,
        target + bands.inner,
        target + bands.outer,
    )

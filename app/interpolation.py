from __future__ import annotations

from typing import Optional

from errors import DomainError


BELOW = "below"
WITHIN = "within"
ABOVE = "above"


def _check_range(src_min: float, src_max: float) -> None:
    if src_min == src_max:
        raise DomainError(f"Degenerate range: min and max are both {src_min}.")


def interpolate(
    value: float,
    src_min: float,
    src_max: float,
    dst_min: float,
    dst_max: float,
) -> float:
    """Map ``value`` from the source range onto the destination range.

    Values at or beyond either end of the source range clamp to the matching
    destination end, so the boundaries come back exactly.
    """
    _check_range(src_min, src_max)
    if value <= src_min:
        return dst_min
    if value >= src_max:
        return dst_max
    ratio = (value - src_min) / (src_max - src_min)
    return dst_min + ratio * (dst_max - dst_min)


def interpolate_strict(
    value: Optional[float],
    src_min: float,
    src_max: float,
    dst_min: float,
    dst_max: float,
) -> Optional[float]:
    """Like :func:`interpolate` but returns ``None`` outside ``[src_min, src_max]``."""
    _check_range(src_min, src_max)
    if value is None or value < src_min or value > src_max:
        return None
    return interpolate(value, src_min, src_max, dst_min, dst_max)


def range_position(value: float, low: float, high: float) -> str:
    if value < low:
        return BELOW
    if value > high:
        return ABOVE
    return WITHIN

from __future__ import annotations

import re
from typing import Optional


_NUMBER_CHARS = re.compile(r"[^0-9.]")


def _parse(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    cleaned = _NUMBER_CHARS.sub("", str(raw))
    if not cleaned or cleaned.count(".") > 1:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_currency(raw: Optional[str]) -> Optional[float]:
    """'$6,000' -> 6000.0; blank or unreadable input -> None."""
    return _parse(raw)


def parse_productivity(raw: Optional[str]) -> Optional[float]:
    """'66' or '66.5%' -> float; blank -> None."""
    return _parse(raw)


def format_currency(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"${value:,.0f}"

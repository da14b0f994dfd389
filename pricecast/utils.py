"""Shared numeric and formatting helpers."""

from __future__ import annotations

import math
from typing import Sequence


def sign(value: float) -> int:
    """Return -1, 0 or 1 (NaN counts as 0)."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]. NaN collapses to 0.0."""
    if math.isnan(value):
        return 0.0
    return max(lo, min(hi, value))


def slope(series: Sequence[float]) -> float:
    """Relative change from the first to the last point of a series.

    Returns 0.0 for fewer than 2 points.
    """
    if len(series) < 2:
        return 0.0
    first = series[0]
    last = series[-1]
    return (last - first) / max(first, 1e-8)


def trend_label(current: float, predicted: float) -> str:
    """Label a forecast as "up" or "down" relative to the current price."""
    if predicted >= current:
        return "up"
    return "down"


def format_usd(value: float) -> str:
    """Format a price as US dollars.

    Prices >= 1000 get 2 decimals; smaller prices keep up to 4 decimals
    (never fewer than 2).

    Examples:
        1234.5   -> "$1,234.50"
        0.123456 -> "$0.1235"
        12.3     -> "$12.30"
    """
    digits = 2 if abs(value) >= 1000 else 4
    text = f"{abs(value):,.{digits}f}"
    if digits > 2:
        whole, frac = text.split(".")
        frac = frac.rstrip("0").ljust(2, "0")
        text = f"{whole}.{frac}"
    prefix = "-$" if value < 0 else "$"
    return prefix + text

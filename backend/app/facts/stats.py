"""
Small numeric helpers shared by the aggregator, detectors and the predictor.

Every helper returns a finite float: empty inputs and zero denominators map to
0.0 instead of raising, so callers never have to guard against NaN.
"""

from __future__ import annotations

import math
import statistics
from typing import Iterable, List, Optional


def finite(x: float, default: float = 0.0) -> float:
    try:
        value = float(x)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, finite(x, lo)))


def safe_div(num: float, den: float) -> float:
    if not den:
        return 0.0
    return finite(num / den)


def mean(xs: Iterable[float]) -> float:
    values: List[float] = list(xs)
    return statistics.fmean(values) if values else 0.0


def pstdev(xs: Iterable[float]) -> float:
    values: List[float] = list(xs)
    return statistics.pstdev(values) if len(values) > 1 else 0.0


def coefficient_of_variation(xs: Iterable[float]) -> float:
    """Population stddev / mean; 0.0 when the mean is not positive."""
    values = list(xs)
    m = mean(values)
    if m <= 0:
        return 0.0
    return safe_div(pstdev(values), m)


def pct_change(current: float, previous: float) -> Optional[float]:
    """Percentage growth from previous to current, or None when previous <= 0."""
    if previous <= 0:
        return None
    return (current - previous) / previous * 100.0


def round2(x: float) -> float:
    return round(finite(x), 2)

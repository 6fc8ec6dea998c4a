"""
Roster Statistics
Combine Metrics Engine - HS Testing Program

Implements:
- Mean and sample standard deviation (Bessel-corrected)
- Mid-rank percentile of a value
- Linear-interpolation percentile-to-value for reference tables
- Percentile tier breakpoints
- Inversion-aware z-scores

Percentile functions expect values already sorted ascending. Sorting happens
once per metric across the roster, not once per athlete.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np
from scipy import stats

from combine_engine.utils.physics import round_half_away


PERCENTILE_TIERS = ["elite", "strong", "solid", "competitive", "developing"]


def _present(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None]


def sorted_non_null(values: Iterable[Optional[float]]) -> List[float]:
    return sorted(_present(values))


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    """Arithmetic mean over non-null entries, None if there are none."""
    vals = _present(values)
    if not vals:
        return None
    return float(np.mean(vals))


def stddev(values: Iterable[Optional[float]]) -> Optional[float]:
    """Sample standard deviation (n - 1). None with fewer than 2 values."""
    vals = _present(values)
    if len(vals) < 2:
        return None
    return float(np.std(vals, ddof=1))


def percentile_of(value: Optional[float], sorted_values: Sequence[float]) -> Optional[int]:
    """
    Mid-rank percentile of value within sorted_values.

    rank = below + (equal - 1) / 2, scaled so the lowest value is 0 and the
    highest is 100. Ties share the averaged rank. A single data point returns
    50: it has no meaningful rank.
    """
    if value is None or not sorted_values:
        return None
    n = len(sorted_values)
    if n == 1:
        return 50
    below = 0
    equal = 0
    for v in sorted_values:
        if v < value:
            below += 1
        elif v == value:
            equal += 1
    rank = below + (equal - 1) / 2
    pct = round_half_away(rank / (n - 1) * 100, 0)
    return int(min(100, max(0, pct)))


def percentile_value(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """
    Value at percentile p using linear interpolation between closest ranks.

    Exact elements are returned as-is; interpolated values are rounded to 1 dp.
    """
    if not sorted_values:
        return None
    idx = (p / 100) * (len(sorted_values) - 1)
    if float(idx).is_integer():
        return sorted_values[int(idx)]
    interpolated = float(np.percentile(np.asarray(sorted_values, dtype=float), p,
                                       method="linear"))
    return round_half_away(interpolated, 1)


def tier_from_percentile(pct: Optional[float]) -> Optional[str]:
    """Team-relative tier: elite/strong/solid/competitive/developing."""
    if pct is None:
        return None
    if pct >= 90:
        return "elite"
    if pct >= 75:
        return "strong"
    if pct >= 50:
        return "solid"
    if pct >= 25:
        return "competitive"
    return "developing"


def percentile_to_grade_tier(pct: Optional[float]) -> str:
    """
    Map a percentile onto the grade-tier vocabulary (elite/excellent/good/average/below)
    for places that show a percentile alongside absolute grades, e.g. cohort rank.
    """
    if pct is None:
        return "below"
    if pct >= 90:
        return "elite"
    if pct >= 75:
        return "excellent"
    if pct >= 50:
        return "good"
    if pct >= 25:
        return "average"
    return "below"


def zscores(values: Sequence[float], invert: bool = False) -> List[float]:
    """
    Sample z-scores for a list of present values, sign-flipped when lower is better.

    Returns an empty list when the sample has no spread.
    """
    if len(values) < 2:
        return []
    arr = np.asarray(values, dtype=float)
    if float(np.std(arr, ddof=1)) <= 0:
        return []
    z = stats.zscore(arr, ddof=1)
    if invert:
        z = -z
    return [float(v) for v in z]

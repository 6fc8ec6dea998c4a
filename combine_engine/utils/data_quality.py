"""
Data Quality Audit
Combine Metrics Engine - HS Testing Program

Advisory checks over a finished roster:
- Sample-size warnings for metrics too sparse for reliable statistics
- Per-athlete plausibility flags (likely data-entry errors)

Nothing here blocks processing or edits values; an implausible squat may be a
real anomaly worth a coach's attention.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from combine_engine.utils.athlete_builder import AthleteRecord


@dataclass(frozen=True)
class QualityWarning:
    metric: str
    n: int
    message: str


@dataclass(frozen=True)
class QualityFlag:
    athlete: str
    athlete_id: Any
    rule: str
    message: str


# (metric key, display name, caution message)
SAMPLE_CHECKS = [
    ('vert', 'Vertical Jump',
     'Vert, Peak Power, and related z-scores are based on very few data points.'),
    ('broad', 'Broad Jump',
     'Broad jump data is too sparse for reliable percentiles.'),
    ('forty', 'Sprint / 40-yd',
     'Sprint data is limited - velocity and force metrics should be interpreted cautiously.'),
    ('medball', 'Med Ball Throw',
     'Med ball data is too sparse for reliable team and group percentiles.'),
]

# Plausibility limits
MIN_SQUAT_RATIO = 0.4
MAX_BENCH_RATIO = 2.5
MAX_SQUAT_RATIO = 3.5
WEIGHT_RANGE_LB = (70, 400)
HEIGHT_RANGE_IN = (48, 90)
FORTY_RANGE_S = (3.8, 9.0)
MAX_VERT_IN = 46


def _fmt(value: float) -> str:
    return f"{value:g}"


def _bench_over_squat(a: AthleteRecord) -> Optional[str]:
    if a.bench is not None and a.squat is not None and a.bench > a.squat:
        return f"Bench ({_fmt(a.bench)}) > Squat ({_fmt(a.squat)}) - verify data."
    return None


def _squat_too_light(a: AthleteRecord) -> Optional[str]:
    if a.squat is not None and a.weight and a.squat / a.weight < MIN_SQUAT_RATIO:
        return (f"Squat ({_fmt(a.squat)} lb) is very low relative to body weight "
                f"({_fmt(a.weight)} lb) - possible data entry error.")
    return None


def _weight_out_of_range(a: AthleteRecord) -> Optional[str]:
    low, high = WEIGHT_RANGE_LB
    if a.weight is not None and not low <= a.weight <= high:
        return f"Weight ({_fmt(a.weight)} lb) is outside the plausible range {low}-{high} lb."
    return None


def _height_out_of_range(a: AthleteRecord) -> Optional[str]:
    low, high = HEIGHT_RANGE_IN
    if a.height is not None and not low <= a.height <= high:
        return f"Height ({_fmt(a.height)} in) is outside the plausible range {low}-{high} in."
    return None


def _forty_out_of_range(a: AthleteRecord) -> Optional[str]:
    low, high = FORTY_RANGE_S
    if a.forty is not None and not low <= a.forty <= high:
        return f"40-yd time ({_fmt(a.forty)} s) is outside the plausible range {low}-{high} s - check splits."
    return None


def _bench_ceiling(a: AthleteRecord) -> Optional[str]:
    if a.bench is not None and a.weight and a.bench / a.weight > MAX_BENCH_RATIO:
        return (f"Bench ({_fmt(a.bench)} lb) exceeds {MAX_BENCH_RATIO}x body weight "
                f"({_fmt(a.weight)} lb) - verify data.")
    return None


def _squat_ceiling(a: AthleteRecord) -> Optional[str]:
    if a.squat is not None and a.weight and a.squat / a.weight > MAX_SQUAT_RATIO:
        return (f"Squat ({_fmt(a.squat)} lb) exceeds {MAX_SQUAT_RATIO}x body weight "
                f"({_fmt(a.weight)} lb) - verify data.")
    return None


def _vert_ceiling(a: AthleteRecord) -> Optional[str]:
    if a.vert is not None and a.vert > MAX_VERT_IN:
        return f"Vertical jump ({_fmt(a.vert)} in) exceeds the world-class ceiling of {MAX_VERT_IN} in."
    return None


PLAUSIBILITY_RULES: List[Tuple[str, Callable[[AthleteRecord], Optional[str]]]] = [
    ('bench_over_squat', _bench_over_squat),
    ('squat_low_vs_bodyweight', _squat_too_light),
    ('weight_out_of_range', _weight_out_of_range),
    ('height_out_of_range', _height_out_of_range),
    ('forty_out_of_range', _forty_out_of_range),
    ('bench_over_ceiling', _bench_ceiling),
    ('squat_over_ceiling', _squat_ceiling),
    ('vert_over_ceiling', _vert_ceiling),
]


def sample_warnings(athletes: Sequence[AthleteRecord],
                    min_sample: int = 5) -> List[QualityWarning]:
    """Warn for each critical metric tested on fewer than min_sample athletes"""
    warnings = []
    for key, label, message in SAMPLE_CHECKS:
        n = sum(1 for a in athletes if a.metric(key) is not None)
        if n < min_sample:
            warnings.append(QualityWarning(metric=label, n=n, message=message))
    return warnings


def plausibility_flags(athletes: Sequence[AthleteRecord]) -> List[QualityFlag]:
    """One flag per triggered rule per athlete, in roster order"""
    flags = []
    for a in athletes:
        for rule, check in PLAUSIBILITY_RULES:
            message = check(a)
            if message:
                flags.append(QualityFlag(athlete=a.name, athlete_id=a.id,
                                         rule=rule, message=message))
    return flags


def audit(athletes: Sequence[AthleteRecord],
          min_sample: int = 5) -> Tuple[List[QualityWarning], List[QualityFlag]]:
    return sample_warnings(athletes, min_sample), plausibility_flags(athletes)

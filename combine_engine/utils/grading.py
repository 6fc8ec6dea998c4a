"""
Absolute Grading Against HS Standards
Combine Metrics Engine - HS Testing Program

Implements:
- Age-adjusted thresholds (grade 6-12, separate strength and speed slopes)
- Body-adjusted thresholds (weight and height bands)
- Five-tier grading with direction-normalized scores (5 = best, always)
- Overall grade averaged from individual tier scores
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from combine_engine.config.standards import (
    DEFAULT_REGISTRY,
    GRADE_LABELS,
    GRADE_SCORES,
    GRADE_TIERS,
    StandardsRegistry,
)
from combine_engine.utils.physics import round_half_away


@dataclass(frozen=True)
class Grade:
    tier: str
    label: str
    score: int


@dataclass(frozen=True)
class OverallGrade:
    score: float
    label: str
    tier: str
    count: int


BELOW_GRADE = Grade(tier='below', label='Below Avg', score=1)


def adjusted_thresholds(metric: str, sport: Optional[str], group: Optional[str],
                        grade: Optional[float] = None,
                        age_adjusted: bool = False,
                        body_adjusted: bool = False,
                        weight_lb: Optional[float] = None,
                        height_in: Optional[float] = None,
                        registry: StandardsRegistry = DEFAULT_REGISTRY) -> Optional[List[float]]:
    """
    Thresholds for a metric after optional age and body scaling.

    Factors compose multiplicatively. Normal metrics multiply the thresholds
    by the combined factor, inverted metrics divide by it. Adjusted values are
    rounded to 2 dp; unadjusted thresholds are returned untouched.

    Example:
        6th grader, 40 yd elite threshold 4.75, speed factor 0.84
        -> 4.75 / 0.84 = 5.65
    """
    thresholds = registry.thresholds(sport, group, metric)
    if thresholds is None:
        return None

    inverted = registry.is_inverted(metric)
    factor = 1.0

    if age_adjusted and grade is not None:
        age_factor = registry.age_factor(grade, inverted)
        if age_factor is not None:
            factor *= age_factor

    if body_adjusted:
        factor *= registry.body_factor(metric, weight_lb, height_in)

    if factor == 1.0:
        return thresholds

    if inverted:
        return [round_half_away(t / factor, 2) for t in thresholds]
    return [round_half_away(t * factor, 2) for t in thresholds]


def grade_value(value: Optional[float], metric: str, sport: Optional[str],
                group: Optional[str], grade: Optional[float] = None,
                age_adjusted: bool = False, body_adjusted: bool = False,
                weight_lb: Optional[float] = None, height_in: Optional[float] = None,
                registry: StandardsRegistry = DEFAULT_REGISTRY) -> Optional[Grade]:
    """
    Grade a single value against absolute standards.

    Returns None when the value is missing or there is no standard for this
    sport/group/metric. Otherwise walks the thresholds best-first and returns
    the first tier reached (>= for normal metrics, <= for inverted ones),
    falling back to Below Avg.
    """
    if value is None:
        return None

    thresholds = adjusted_thresholds(
        metric, sport, group, grade, age_adjusted, body_adjusted,
        weight_lb, height_in, registry,
    )
    if thresholds is None:
        return None

    inverted = registry.is_inverted(metric)
    for i, threshold in enumerate(thresholds):
        reached = value <= threshold if inverted else value >= threshold
        if reached:
            tier = GRADE_TIERS[i]
            return Grade(tier=tier, label=GRADE_LABELS[i], score=GRADE_SCORES[tier])

    return BELOW_GRADE


def overall_grade_tier(score: float) -> str:
    if score >= 4.5:
        return 'elite'
    if score >= 3.5:
        return 'excellent'
    if score >= 2.5:
        return 'good'
    if score >= 1.5:
        return 'average'
    return 'below'


def overall_grade_label(score: float) -> str:
    return GRADE_LABELS[GRADE_TIERS.index(overall_grade_tier(score))]


def overall_grade(scores: Sequence[int], min_metrics: int = 3) -> Optional[OverallGrade]:
    """
    Average tier score across graded metrics.

    Athletes graded on fewer than min_metrics metrics get no overall grade
    rather than a misleading one.
    """
    if len(scores) < min_metrics or not scores:
        return None

    avg = sum(scores) / len(scores)
    return OverallGrade(
        score=round_half_away(avg, 1),
        label=overall_grade_label(avg),
        tier=overall_grade_tier(avg),
        count=len(scores),
    )

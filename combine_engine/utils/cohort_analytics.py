"""
Cohort & Population Analytics
Combine Metrics Engine - HS Testing Program

Implements:
- Roster z-scores for 12 base metrics (sample-size gated)
- Explosive Upper / Total Explosive composite indices
- Med ball team and position-group percentiles
- Percentile scorecard (team-relative)
- Absolute HS grades and overall grade
- Group standards reference tables (n/min/max/p10-p90)
- Cohort percentiles: like-to-like ranking within body/age-matched peers

Every assign_* function takes a roster of AthleteRecords and returns a new
tuple of records; inputs are never modified.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from combine_engine.config.engine_config import ProcessingOptions
from combine_engine.config.standards import DEFAULT_REGISTRY, StandardsRegistry
from combine_engine.utils.athlete_builder import AthleteRecord
from combine_engine.utils.grading import grade_value, overall_grade
from combine_engine.utils.physics import round_half_away as rd
from combine_engine.utils.statistics import (
    mean,
    percentile_of,
    percentile_to_grade_tier,
    percentile_value,
    sorted_non_null,
    stddev,
    tier_from_percentile,
    zscores,
)


logger = logging.getLogger(__name__)

Roster = Tuple[AthleteRecord, ...]


# ============================================================================
# METRIC LISTS
# ============================================================================

# (metric key, z field, lower is better)
Z_METRICS = [
    ('medball', 'z_mb', False),
    ('bench', 'z_bench', False),
    ('squat', 'z_squat', False),
    ('vert', 'z_vert', False),
    ('broad', 'z_broad', False),
    ('forty', 'z_forty', True),
    ('f1', 'z_f1', False),
    ('v_max', 'z_vmax', False),
    ('peak_power', 'z_peak_power', False),
    ('rel_bench', 'z_rel_bench', False),
    ('rel_squat', 'z_rel_squat', False),
    ('mb_rel', 'z_mb_rel', False),
]

SCORECARD_METRICS = [
    {'key': 'bench', 'label': 'Bench 1RM', 'unit': 'lb'},
    {'key': 'squat', 'label': 'Squat 1RM', 'unit': 'lb'},
    {'key': 'rel_bench', 'label': 'Rel Bench', 'unit': 'xBW'},
    {'key': 'rel_squat', 'label': 'Rel Squat', 'unit': 'xBW'},
    {'key': 'medball', 'label': 'Med Ball', 'unit': 'in'},
    {'key': 'mb_rel', 'label': 'MB Relative', 'unit': 'in/lb'},
    {'key': 'vert', 'label': 'Vertical Jump', 'unit': 'in'},
    {'key': 'broad', 'label': 'Broad Jump', 'unit': 'in'},
    {'key': 'forty', 'label': '40 yd Dash', 'unit': 's', 'invert': True},
    {'key': 'v_max', 'label': 'Max Velocity', 'unit': 'm/s'},
    {'key': 'f1', 'label': 'Sprint Force', 'unit': 'N'},
    {'key': 'mom_max', 'label': 'Peak Momentum', 'unit': 'kg·m/s'},
    {'key': 'peak_power', 'label': 'Peak Power', 'unit': 'W'},
]

GROUP_STANDARD_METRICS = [
    'medball', 'bench', 'squat', 'vert', 'broad', 'forty',
    'pro_agility', 'l_drill', 'backpedal', 'w_drill',
]

EXPLOSIVE_UPPER_WEIGHTS = {'z_mb_rel': 0.6, 'z_rel_bench': 0.4}
TOTAL_EXPLOSIVE_WEIGHTS = {'explosive_upper': 0.45, 'z_peak_power': 0.30, 'z_vmax': 0.25}
MIN_TOTAL_EXPLOSIVE_TERMS = 2

# Coarse grade bands for cohort matching
GRADE_BANDS = [
    ('MS', 6, 8),
    ('JV', 9, 10),
    ('Varsity', 11, 12),
]


@dataclass(frozen=True)
class MetricStats:
    mean: Optional[float]
    sd: Optional[float]
    n: int
    low_sample: bool


@dataclass(frozen=True)
class ScorecardEntry:
    value: float
    percentile: int
    tier: str


@dataclass(frozen=True)
class CohortRank:
    key: str
    size: int
    percentiles: Dict[str, int]
    avg_pct: Optional[int]
    metrics_used: int
    tier: Optional[str] = None


def _values(athletes: Sequence[AthleteRecord], key: str) -> List[Optional[float]]:
    return [a.metric(key) for a in athletes]


# ============================================================================
# Z-SCORES
# ============================================================================

def compute_stats_summary(athletes: Sequence[AthleteRecord],
                          min_sample: int = 5) -> Dict[str, MetricStats]:
    """Roster mean / sample SD / n for every z-scored metric"""
    summary = {}
    for key, _, _ in Z_METRICS:
        vals = [v for v in _values(athletes, key) if v is not None]
        summary[key] = MetricStats(
            mean=mean(vals),
            sd=stddev(vals),
            n=len(vals),
            low_sample=len(vals) < min_sample,
        )
    return summary


def assign_zscores(athletes: Sequence[AthleteRecord], min_sample: int = 5) -> Roster:
    """
    Z-score each base metric across the roster.

    Metrics with fewer than min_sample values get no z-scores at all: a
    standard deviation from 3-4 athletes is noise, not a ranking.
    """
    updates: List[Dict[str, float]] = [{} for _ in athletes]

    for key, z_field, invert in Z_METRICS:
        present = [(i, v) for i, v in enumerate(_values(athletes, key)) if v is not None]
        if len(present) < min_sample:
            logger.debug(f"{key}: n={len(present)} < {min_sample}, z-scores withheld")
            continue

        z = zscores([v for _, v in present], invert=invert)
        if not z:
            logger.debug(f"{key}: no spread across roster, z-scores withheld")
            continue

        for (i, _), score in zip(present, z):
            updates[i][z_field] = rd(score, 2)

    return tuple(replace(a, **u) if u else a for a, u in zip(athletes, updates))


# ============================================================================
# COMPOSITES
# ============================================================================

def _explosive_upper(athlete: AthleteRecord) -> Optional[float]:
    """0.6 * z(MB rel) + 0.4 * z(rel bench), or whichever single term exists"""
    z_mb_rel = athlete.z_mb_rel
    z_rel_bench = athlete.z_rel_bench
    if z_mb_rel is not None and z_rel_bench is not None:
        return (EXPLOSIVE_UPPER_WEIGHTS['z_mb_rel'] * z_mb_rel
                + EXPLOSIVE_UPPER_WEIGHTS['z_rel_bench'] * z_rel_bench)
    if z_mb_rel is not None:
        return z_mb_rel
    return z_rel_bench


def _total_explosive(terms: Dict[str, Optional[float]]) -> Optional[float]:
    """
    Weighted average of the present terms, renormalized by their weights.

    Needs at least two of the three terms so a single metric cannot pose as
    a three-metric index.
    """
    present = [(TOTAL_EXPLOSIVE_WEIGHTS[k], v) for k, v in terms.items() if v is not None]
    if len(present) < MIN_TOTAL_EXPLOSIVE_TERMS:
        return None
    weight_sum = sum(w for w, _ in present)
    return sum(w * v for w, v in present) / weight_sum


def assign_composites(athletes: Sequence[AthleteRecord]) -> Roster:
    out = []
    for a in athletes:
        upper = rd(_explosive_upper(a), 2)
        total = _total_explosive({
            'explosive_upper': upper,
            'z_peak_power': a.z_peak_power,
            'z_vmax': a.z_vmax,
        })
        out.append(replace(a, explosive_upper=upper, total_explosive=rd(total, 2)))
    return tuple(out)


# ============================================================================
# MED BALL PERCENTILES
# ============================================================================

def grouped_medball(athletes: Sequence[AthleteRecord]) -> Dict[str, List[float]]:
    """Sorted med ball distances per position group"""
    grouped: Dict[str, List[float]] = {}
    for a in athletes:
        if a.medball is None:
            continue
        grouped.setdefault(a.group, []).append(a.medball)
    return {g: sorted(vals) for g, vals in grouped.items()}


def assign_medball_percentiles(athletes: Sequence[AthleteRecord]) -> Roster:
    team = sorted_non_null(_values(athletes, 'medball'))
    by_group = grouped_medball(athletes)

    out = []
    for a in athletes:
        if a.medball is None:
            out.append(a)
            continue
        team_pct = percentile_of(a.medball, team)
        out.append(replace(
            a,
            mb_pct_team=team_pct,
            mb_pct_group=percentile_of(a.medball, by_group.get(a.group, [])),
            mb_tier=tier_from_percentile(team_pct),
        ))
    return tuple(out)


# ============================================================================
# SCORECARD
# ============================================================================

def assign_scorecards(athletes: Sequence[AthleteRecord]) -> Roster:
    """Team-relative percentile and tier for each scorecard metric"""
    cards: List[Dict[str, ScorecardEntry]] = [{} for _ in athletes]

    for sm in SCORECARD_METRICS:
        key = sm['key']
        vals = sorted_non_null(_values(athletes, key))
        for i, a in enumerate(athletes):
            value = a.metric(key)
            if value is None:
                continue
            pct = percentile_of(value, vals)
            if sm.get('invert'):
                pct = 100 - pct
            cards[i][key] = ScorecardEntry(value=value, percentile=pct,
                                           tier=tier_from_percentile(pct))

    return tuple(replace(a, scorecard=card) for a, card in zip(athletes, cards))


# ============================================================================
# ABSOLUTE GRADES
# ============================================================================

def assign_grades(athletes: Sequence[AthleteRecord], options: ProcessingOptions,
                  registry: StandardsRegistry = DEFAULT_REGISTRY) -> Roster:
    """Grade every gradeable metric and roll the scores into an overall grade"""
    out = []
    for a in athletes:
        grades = {}
        for metric in registry.gradeable_metrics():
            g = grade_value(
                a.metric(metric), metric, a.sport, a.group, a.grade,
                age_adjusted=options.age_adjusted,
                body_adjusted=options.body_adjusted,
                weight_lb=a.weight,
                height_in=a.height,
                registry=registry,
            )
            if g is not None:
                grades[metric] = g

        overall = overall_grade([g.score for g in grades.values()],
                                min_metrics=options.min_overall_metrics)
        out.append(replace(a, grades=grades, overall_grade=overall))
    return tuple(out)


# ============================================================================
# GROUP STANDARDS
# ============================================================================

def compute_group_standards(athletes: Sequence[AthleteRecord],
                            metrics: Sequence[str] = GROUP_STANDARD_METRICS
                            ) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Descriptive reference table per active position group.

    Groups appear in roster order; metrics nobody in the group was tested on
    are left out.
    """
    groups: Dict[str, List[AthleteRecord]] = {}
    for a in athletes:
        groups.setdefault(a.group, []).append(a)

    standards = {}
    for group, members in groups.items():
        stds = {}
        for key in metrics:
            vals = sorted_non_null(_values(members, key))
            if not vals:
                continue
            stds[key] = {
                'n': len(vals),
                'min': vals[0],
                'max': vals[-1],
                'p10': percentile_value(vals, 10),
                'p25': percentile_value(vals, 25),
                'p50': percentile_value(vals, 50),
                'p75': percentile_value(vals, 75),
                'p90': percentile_value(vals, 90),
            }
        standards[group] = stds
    return standards


# ============================================================================
# COHORTS
# ============================================================================

def grade_band(grade: Optional[int]) -> str:
    if grade is None:
        return 'Unknown'
    clamped = max(6, min(12, grade))
    for label, low, high in GRADE_BANDS:
        if low <= clamped <= high:
            return label
    return 'Unknown'


def cohort_key(athlete: AthleteRecord,
               registry: StandardsRegistry = DEFAULT_REGISTRY) -> str:
    """'<group> | <weight band> | <height band> | <grade band>'"""
    weight_tier = registry.weight_tier(athlete.weight)
    height_tier = registry.height_tier(athlete.height)
    return ' | '.join([
        athlete.group,
        weight_tier['label'] if weight_tier else 'Wt ?',
        height_tier['label'] if height_tier else 'Ht ?',
        grade_band(athlete.grade),
    ])


def assign_cohorts(athletes: Sequence[AthleteRecord],
                   registry: StandardsRegistry = DEFAULT_REGISTRY,
                   min_cohort_size: int = 2) -> Roster:
    """
    Rank each athlete against peers with the same position group, weight band,
    height band and grade band.

    Cohorts below min_cohort_size and metrics with a single tested cohort member
    are left unranked: no percentile is invented for a comparison that
    does not exist.
    """
    keys = [cohort_key(a, registry) for a in athletes]
    members: Dict[str, List[int]] = {}
    for i, key in enumerate(keys):
        members.setdefault(key, []).append(i)

    percentiles: List[Dict[str, int]] = [{} for _ in athletes]
    for key, idx in members.items():
        if len(idx) < min_cohort_size:
            continue
        cohort = [athletes[i] for i in idx]
        for sm in SCORECARD_METRICS:
            metric = sm['key']
            vals = sorted_non_null(_values(cohort, metric))
            if len(vals) < 2:
                continue
            for i in idx:
                value = athletes[i].metric(metric)
                if value is None:
                    continue
                pct = percentile_of(value, vals)
                percentiles[i][metric] = 100 - pct if sm.get('invert') else pct

    out = []
    for i, a in enumerate(athletes):
        pcts = percentiles[i]
        avg = rd(sum(pcts.values()) / len(pcts), 0) if pcts else None
        out.append(replace(a, cohort=CohortRank(
            key=keys[i],
            size=len(members[keys[i]]),
            percentiles=pcts,
            avg_pct=int(avg) if avg is not None else None,
            metrics_used=len(pcts),
            tier=percentile_to_grade_tier(avg) if avg is not None else None,
        )))
    return tuple(out)

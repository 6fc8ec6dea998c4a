"""
Data Loading and Export Utilities
Combine Metrics Engine - HS Testing Program

Reads roster and standards documents from disk and flattens engine output
into pandas DataFrames for tables and CSV export.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import pandas as pd

from combine_engine.config.standards import StandardsError, StandardsRegistry


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Scalar AthleteRecord fields exported as columns, in display order
EXPORT_COLUMNS = [
    'id', 'name', 'position', 'sport', 'grade', 'group',
    'height', 'weight', 'mass_kg',
    'bench', 'squat', 'medball', 'vert', 'broad',
    'sprint_020', 'sprint_2030', 'sprint_3040', 'forty',
    'pro_agility', 'l_drill', 'backpedal', 'w_drill',
    'v1', 'v2', 'v3', 'v_max', 'v10_max', 'top_mph',
    'a1', 'a2', 'a3', 'f1', 'f2', 'f3',
    'imp1', 'imp2', 'imp3', 'mom1', 'mom2', 'mom3', 'mom_max',
    'pow1', 'pow2', 'pow3',
    'rel_bench', 'rel_squat', 'mb_rel', 'peak_power', 'rel_peak_power', 'strength_util',
    'z_mb', 'z_bench', 'z_squat', 'z_vert', 'z_broad', 'z_forty',
    'z_f1', 'z_vmax', 'z_peak_power', 'z_rel_bench', 'z_rel_squat', 'z_mb_rel',
    'explosive_upper', 'total_explosive', 'mb_pct_team', 'mb_pct_group', 'mb_tier',
]


def load_roster(path: PathLike) -> Dict[str, Any]:
    """
    Load a roster JSON document.

    Raises OSError / json.JSONDecodeError for unreadable files; structure is
    checked by the pipeline.
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)
    count = len(raw.get('athletes', [])) if isinstance(raw, dict) else 0
    logger.info(f"Loaded roster {path.name} ({count} athlete entries)")
    return raw


def load_standards_override(path: PathLike) -> StandardsRegistry:
    """
    Build a StandardsRegistry with a JSON override deep-merged over the defaults.

    The override uses the same keys as config.standards.default_tables(), e.g.
    {"age_factors_speed": {"6": 0.82}, "standards": {"Football": {...}}}
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise StandardsError(f"{path.name}: standards override must be a JSON object")
    logger.info(f"Applying standards override from {path.name}: {', '.join(overrides.keys())}")
    return StandardsRegistry(overrides)


def athletes_frame(dataset) -> pd.DataFrame:
    """
    One row per athlete: scalar fields, grade_<metric> tiers, pct_<metric>
    scorecard percentiles, overall grade and cohort rank.
    """
    rows = []
    for a in dataset.athletes:
        row = {col: getattr(a, col) for col in EXPORT_COLUMNS}
        for metric, grade in a.grades.items():
            row[f'grade_{metric}'] = grade.tier
        for metric, entry in a.scorecard.items():
            row[f'pct_{metric}'] = entry.percentile
        og = a.overall_grade
        row['overall_score'] = og.score if og else None
        row['overall_tier'] = og.tier if og else None
        if a.cohort is not None:
            row['cohort_key'] = a.cohort.key
            row['cohort_size'] = a.cohort.size
            row['cohort_avg_pct'] = a.cohort.avg_pct
            row['cohort_tier'] = a.cohort.tier
        rows.append(row)

    return pd.DataFrame(rows, columns=_ordered_columns(rows))


def _ordered_columns(rows):
    extra = []
    for row in rows:
        for col in row:
            if col not in EXPORT_COLUMNS and col not in extra:
                extra.append(col)
    return EXPORT_COLUMNS + sorted(extra)


def group_standards_frame(group_standards: Dict[str, Dict[str, Dict[str, Any]]]) -> pd.DataFrame:
    """Long-format reference table: one row per (group, metric)"""
    rows = [
        {'group': group, 'metric': metric, **summary}
        for group, metrics in group_standards.items()
        for metric, summary in metrics.items()
    ]
    columns = ['group', 'metric', 'n', 'min', 'max', 'p10', 'p25', 'p50', 'p75', 'p90']
    return pd.DataFrame(rows, columns=columns)

"""
HS Performance Standards (absolute thresholds)
Combine Metrics Engine - HS Testing Program

Sport- and position-group-specific grading thresholds for 15 metrics,
plus the grade-based age factors and body-profile factors used to scale them.

Key Sources:
- NSCA high-school normative data
- State combine databases
- Published S&C literature (Sayers et al. 1999 for peak power)

Each threshold list = [Elite, Excellent, Good, Average]. Values at/above a
threshold earn that tier; at/below for inverted (lower-is-better) metrics.
Anything past the last threshold is Below Avg.

Base thresholds reflect 12th-grade (senior) expectations. The factor tables are
hand-tuned configuration, not derived constants: override them through a JSON
standards file rather than editing code.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


class StandardsError(ValueError):
    """Raised when a standards table or override is structurally invalid"""


GRADE_TIERS = ['elite', 'excellent', 'good', 'average', 'below']
GRADE_LABELS = ['Elite', 'Excellent', 'Good', 'Average', 'Below Avg']
GRADE_SCORES = {'elite': 5, 'excellent': 4, 'good': 3, 'average': 2, 'below': 1}


@dataclass(frozen=True)
class MetricMeta:
    """Display and grading metadata for a gradeable metric"""
    key: str
    label: str
    unit: str
    invert: bool = False
    category: Optional[str] = None  # abs / rel / jump / accel / topSpeed


# ============================================================================
# GRADEABLE METRICS
# ============================================================================

GRADE_METRICS = [
    MetricMeta('forty', '40-Yard Dash', 's', invert=True, category='accel'),
    MetricMeta('bench', 'Bench 1RM', 'lb', category='abs'),
    MetricMeta('squat', 'Squat 1RM', 'lb', category='abs'),
    MetricMeta('vert', 'Vertical Jump', 'in', category='jump'),
    MetricMeta('broad', 'Broad Jump', 'in', category='jump'),
    MetricMeta('medball', 'Med Ball Throw', 'in', category='abs'),
    MetricMeta('rel_bench', 'Relative Bench', 'xBW', category='rel'),
    MetricMeta('rel_squat', 'Relative Squat', 'xBW', category='rel'),
    MetricMeta('mb_rel', 'MB Relative', 'in/lb', category='rel'),
    MetricMeta('v_max', 'Max Velocity', 'm/s', category='topSpeed'),
    MetricMeta('v10_max', 'Best 10yd Vel', 'm/s', category='topSpeed'),
    MetricMeta('peak_power', 'Peak Power', 'W', category='abs'),
    MetricMeta('rel_peak_power', 'Rel Peak Power', 'W/kg', category='rel'),
    MetricMeta('f1', 'Sprint Force', 'N', category='abs'),
    MetricMeta('mom_max', 'Peak Momentum', 'kg·m/s', category='abs'),
]


# ============================================================================
# AGE FACTORS (grade 6-12)
# ============================================================================

# Strength / absolute metrics: younger athletes are much weaker
AGE_FACTORS_STRENGTH = {
    12: 1.0,
    11: 0.93,
    10: 0.87,
    9: 0.8,
    8: 0.72,
    7: 0.65,
    6: 0.58,
}

# Speed / inverted metrics: speed develops earlier than strength, so the strength
# slope would give implausibly lax sprint marks
AGE_FACTORS_SPEED = {
    12: 1.0,
    11: 0.98,
    10: 0.95,
    9: 0.92,
    8: 0.89,
    7: 0.865,
    6: 0.84,
}


# ============================================================================
# BODY-PROFILE FACTORS
# ============================================================================

# A factor > 1 raises the bar (heavier athletes are expected to move more
# absolute load; lighter athletes more relative load).
# 'max' is the exclusive upper bound of the band in lb; None = open-ended.
WEIGHT_TIERS = [
    {'label': '<140 lb', 'max': 140, 'absF': 0.85, 'relF': 1.12},
    {'label': '140-169 lb', 'max': 170, 'absF': 0.93, 'relF': 1.05},
    {'label': '170-199 lb', 'max': 200, 'absF': 1.0, 'relF': 1.0},
    {'label': '200-239 lb', 'max': 240, 'absF': 1.07, 'relF': 0.95},
    {'label': '240+ lb', 'max': None, 'absF': 1.15, 'relF': 0.9},
]

# Shorter athletes are favoured over 40 yd (accelF), taller athletes at top speed
# and in jumps. 'max' is the exclusive upper bound in inches.
HEIGHT_TIERS = [
    {'label': '<66 in', 'max': 66, 'jumpF': 0.95, 'accelF': 1.02, 'topSpeedF': 0.97},
    {'label': '66-70 in', 'max': 71, 'jumpF': 0.98, 'accelF': 1.0, 'topSpeedF': 0.99},
    {'label': '71-74 in', 'max': 75, 'jumpF': 1.0, 'accelF': 0.99, 'topSpeedF': 1.0},
    {'label': '75+ in', 'max': None, 'jumpF': 1.03, 'accelF': 0.97, 'topSpeedF': 1.02},
]

# Which body factor each category uses
CATEGORY_FACTORS = {
    'abs': 'absF',
    'rel': 'relF',
    'jump': 'jumpF',
    'accel': 'accelF',
    'topSpeed': 'topSpeedF',
}


# ============================================================================
# SPORT STANDARDS
# ============================================================================

HS_STANDARDS = {
    # ------------------------------------------------------------------------
    # FOOTBALL
    # ------------------------------------------------------------------------
    'Football': {
        'Skill': {
            'forty': [4.75, 4.95, 5.15, 5.35],
            'bench': [205, 175, 145, 115],
            'squat': [335, 285, 235, 185],
            'vert': [33, 29, 25, 21],
            'broad': [106, 98, 90, 82],
            'medball': [185, 165, 148, 130],
            'rel_bench': [1.3, 1.1, 0.9, 0.7],
            'rel_squat': [1.9, 1.65, 1.4, 1.15],
            'mb_rel': [1.1, 0.95, 0.8, 0.65],
            'v_max': [9.0, 8.5, 8.0, 7.5],
            'v10_max': [9.0, 8.5, 8.0, 7.5],
            'peak_power': [5200, 4600, 4000, 3500],
            'rel_peak_power': [70, 62, 55, 48],
            'f1': [120, 100, 85, 70],
            'mom_max': [680, 600, 520, 440],
        },
        'Big Skill': {
            'forty': [4.95, 5.15, 5.35, 5.6],
            'bench': [255, 215, 175, 140],
            'squat': [350, 300, 250, 200],
            'vert': [31, 27, 23, 19],
            'broad': [103, 95, 87, 79],
            'medball': [200, 178, 158, 138],
            'rel_bench': [1.4, 1.2, 1.0, 0.8],
            'rel_squat': [1.85, 1.6, 1.35, 1.1],
            'mb_rel': [1.05, 0.9, 0.78, 0.65],
            'v_max': [8.8, 8.3, 7.8, 7.3],
            'v10_max': [8.8, 8.3, 7.8, 7.3],
            'peak_power': [5800, 5100, 4400, 3800],
            'rel_peak_power': [68, 60, 53, 46],
            'f1': [130, 110, 92, 75],
            'mom_max': [770, 680, 590, 500],
        },
        'Linemen': {
            'forty': [5.25, 5.5, 5.75, 6.0],
            'bench': [290, 250, 210, 170],
            'squat': [375, 325, 275, 225],
            'vert': [29, 25, 21, 17],
            'broad': [98, 90, 82, 74],
            'medball': [210, 188, 168, 148],
            'rel_bench': [1.35, 1.15, 0.95, 0.75],
            'rel_squat': [1.7, 1.45, 1.25, 1.05],
            'mb_rel': [0.95, 0.82, 0.72, 0.6],
            'v_max': [8.4, 7.9, 7.4, 6.9],
            'v10_max': [8.4, 7.9, 7.4, 6.9],
            'peak_power': [6300, 5500, 4800, 4100],
            'rel_peak_power': [58, 52, 46, 40],
            'f1': [140, 120, 100, 82],
            'mom_max': [880, 780, 680, 580],
        },
    },

    # ------------------------------------------------------------------------
    # SOCCER
    # ------------------------------------------------------------------------
    'Soccer': {
        'Speed': {
            'forty': [4.85, 5.05, 5.25, 5.45],
            'bench': [155, 135, 115, 95],
            'squat': [275, 235, 200, 165],
            'vert': [30, 26, 22, 18],
            'broad': [102, 94, 86, 78],
            'medball': [170, 152, 136, 120],
            'rel_bench': [1.05, 0.9, 0.75, 0.6],
            'rel_squat': [1.7, 1.45, 1.2, 1.0],
            'mb_rel': [1.1, 0.95, 0.8, 0.65],
            'v_max': [8.9, 8.4, 7.9, 7.4],
            'v10_max': [8.9, 8.4, 7.9, 7.4],
            'peak_power': [4600, 4050, 3500, 3000],
            'rel_peak_power': [68, 60, 53, 46],
            'f1': [110, 92, 78, 64],
            'mom_max': [600, 530, 460, 390],
        },
        'Physical': {
            'forty': [5.0, 5.2, 5.4, 5.65],
            'bench': [175, 150, 125, 100],
            'squat': [295, 255, 215, 175],
            'vert': [28, 24, 20, 16],
            'broad': [98, 90, 82, 74],
            'medball': [180, 162, 145, 128],
            'rel_bench': [1.1, 0.95, 0.8, 0.65],
            'rel_squat': [1.65, 1.4, 1.2, 1.0],
            'mb_rel': [1.0, 0.87, 0.75, 0.62],
            'v_max': [8.6, 8.1, 7.6, 7.1],
            'v10_max': [8.6, 8.1, 7.6, 7.1],
            'peak_power': [5000, 4400, 3800, 3300],
            'rel_peak_power': [64, 57, 50, 43],
            'f1': [118, 100, 84, 68],
            'mom_max': [660, 580, 500, 420],
        },
    },

    # ------------------------------------------------------------------------
    # BASEBALL
    # ------------------------------------------------------------------------
    'Baseball': {
        'Position Player': {
            'forty': [4.85, 5.05, 5.25, 5.45],
            'bench': [185, 160, 135, 110],
            'squat': [295, 255, 215, 175],
            'vert': [30, 26, 22, 18],
            'broad': [102, 94, 86, 78],
            'medball': [185, 166, 148, 130],
            'rel_bench': [1.15, 1.0, 0.85, 0.7],
            'rel_squat': [1.75, 1.5, 1.25, 1.05],
            'mb_rel': [1.1, 0.95, 0.8, 0.65],
            'v_max': [8.8, 8.3, 7.8, 7.3],
            'v10_max': [8.8, 8.3, 7.8, 7.3],
            'peak_power': [4800, 4250, 3700, 3200],
            'rel_peak_power': [67, 59, 52, 45],
            'f1': [112, 95, 80, 65],
            'mom_max': [620, 545, 470, 400],
        },
        'Battery': {
            'forty': [5.1, 5.3, 5.5, 5.75],
            'bench': [200, 170, 145, 120],
            'squat': [310, 268, 225, 185],
            'vert': [28, 24, 20, 16],
            'broad': [98, 90, 82, 74],
            'medball': [195, 175, 155, 138],
            'rel_bench': [1.2, 1.05, 0.88, 0.72],
            'rel_squat': [1.65, 1.4, 1.2, 1.0],
            'mb_rel': [1.0, 0.87, 0.75, 0.62],
            'v_max': [8.4, 7.9, 7.4, 6.9],
            'v10_max': [8.4, 7.9, 7.4, 6.9],
            'peak_power': [5200, 4580, 3960, 3400],
            'rel_peak_power': [62, 55, 48, 42],
            'f1': [122, 103, 87, 72],
            'mom_max': [700, 618, 535, 455],
        },
    },

    # ------------------------------------------------------------------------
    # BASKETBALL
    # ------------------------------------------------------------------------
    'Basketball': {
        'Guard': {
            'forty': [4.7, 4.9, 5.1, 5.3],
            'bench': [165, 140, 118, 95],
            'squat': [275, 238, 200, 165],
            'vert': [34, 30, 26, 22],
            'broad': [106, 98, 90, 82],
            'medball': [168, 150, 134, 118],
            'rel_bench': [1.1, 0.95, 0.8, 0.65],
            'rel_squat': [1.7, 1.45, 1.2, 1.0],
            'mb_rel': [1.1, 0.95, 0.8, 0.65],
            'v_max': [9.0, 8.5, 8.0, 7.5],
            'v10_max': [9.0, 8.5, 8.0, 7.5],
            'peak_power': [4400, 3900, 3400, 2950],
            'rel_peak_power': [70, 62, 55, 48],
            'f1': [108, 90, 76, 62],
            'mom_max': [580, 510, 440, 375],
        },
        'Big': {
            'forty': [5.05, 5.25, 5.5, 5.75],
            'bench': [215, 185, 155, 125],
            'squat': [325, 280, 235, 190],
            'vert': [30, 26, 22, 18],
            'broad': [100, 92, 84, 76],
            'medball': [195, 175, 155, 138],
            'rel_bench': [1.2, 1.05, 0.88, 0.72],
            'rel_squat': [1.65, 1.4, 1.2, 1.0],
            'mb_rel': [0.95, 0.82, 0.72, 0.6],
            'v_max': [8.5, 8.0, 7.5, 7.0],
            'v10_max': [8.5, 8.0, 7.5, 7.0],
            'peak_power': [5600, 4950, 4300, 3700],
            'rel_peak_power': [60, 54, 48, 42],
            'f1': [132, 112, 95, 78],
            'mom_max': [780, 690, 600, 510],
        },
    },
}


def default_tables() -> Dict[str, Any]:
    """Fresh deep copy of every standards table, keyed the way overrides are written"""
    return {
        'standards': copy.deepcopy(HS_STANDARDS),
        'age_factors_strength': dict(AGE_FACTORS_STRENGTH),
        'age_factors_speed': dict(AGE_FACTORS_SPEED),
        'weight_tiers': copy.deepcopy(WEIGHT_TIERS),
        'height_tiers': copy.deepcopy(HEIGHT_TIERS),
    }


def _deep_merge(base: Dict, override: Mapping) -> None:
    """Deep merge override into base dict (modifies base in place)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


def _grade_keys(table: Mapping) -> Dict[int, float]:
    """JSON object keys are strings; factor tables are keyed by int grade."""
    if not isinstance(table, Mapping):
        raise StandardsError(f"Age factors must be a mapping of grade to factor, got {table!r}")
    out = {}
    for grade, factor in table.items():
        try:
            out[int(grade)] = float(factor)
        except (TypeError, ValueError, OverflowError) as e:
            raise StandardsError(f"Bad age factor {grade!r}: {factor!r}") from e
    return out


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_tiers(tiers: List[Dict], factor_keys: List[str], name: str) -> None:
    if not isinstance(tiers, list) or not tiers:
        raise StandardsError(f"{name} must be a non-empty list")
    for tier in tiers:
        if not isinstance(tier, Mapping):
            raise StandardsError(f"{name} entries must be objects, got {tier!r}")
        missing = [k for k in ['label', 'max'] + factor_keys if k not in tier]
        if missing:
            raise StandardsError(f"{name} entry {tier!r} missing: {', '.join(missing)}")
        if tier['max'] is not None and not _is_number(tier['max']):
            raise StandardsError(f"{name} entry {tier!r}: max must be a number or null")
        bad = [k for k in factor_keys if not _is_number(tier[k])]
        if bad:
            raise StandardsError(f"{name} entry {tier!r}: non-numeric {', '.join(bad)}")
    if tiers[-1]['max'] is not None:
        raise StandardsError(f"last {name} entry must be open-ended (max: null)")


class StandardsRegistry:
    """
    Read-only accessor over the standards and factor tables

    Every lookup returns None for an unknown sport/group/metric instead of
    raising, so one missing entry never blocks grading of other metrics.
    """

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None):
        tables = default_tables()
        if overrides:
            if not isinstance(overrides, Mapping):
                raise StandardsError(f"Standards overrides must be an object, got {type(overrides).__name__}")
            _deep_merge(tables, overrides)

        self._standards = tables['standards']
        self._age_strength = _grade_keys(tables['age_factors_strength'])
        self._age_speed = _grade_keys(tables['age_factors_speed'])
        self._weight_tiers = tables['weight_tiers']
        self._height_tiers = tables['height_tiers']
        self._meta = {m.key: m for m in GRADE_METRICS}

        self._validate()

    def _validate(self) -> None:
        if not isinstance(self._standards, Mapping):
            raise StandardsError("standards must be a mapping of sports")
        for sport, groups in self._standards.items():
            if not isinstance(groups, Mapping):
                raise StandardsError(f"Standards for {sport} must be a mapping of groups")
            for group, metrics in groups.items():
                if not isinstance(metrics, Mapping):
                    raise StandardsError(f"Standards for {sport}/{group} must be a mapping of metrics")
                for metric, thresholds in metrics.items():
                    if (not isinstance(thresholds, (list, tuple)) or len(thresholds) != 4
                            or not all(_is_number(t) for t in thresholds)):
                        raise StandardsError(
                            f"{sport}/{group}/{metric}: expected 4 numeric thresholds, got {thresholds!r}"
                        )
        _validate_tiers(self._weight_tiers, ['absF', 'relF'], 'weight_tiers')
        _validate_tiers(self._height_tiers, ['jumpF', 'accelF', 'topSpeedF'], 'height_tiers')

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def sports(self) -> List[str]:
        return list(self._standards.keys())

    def thresholds(self, sport: Optional[str], group: Optional[str],
                   metric: str) -> Optional[List[float]]:
        sport_stds = self._standards.get(sport or 'Football')
        if not sport_stds:
            return None
        group_stds = sport_stds.get(group)
        if not group_stds:
            return None
        thresholds = group_stds.get(metric)
        return list(thresholds) if thresholds else None

    def metric_meta(self, metric: str) -> Optional[MetricMeta]:
        return self._meta.get(metric)

    def gradeable_metrics(self) -> List[str]:
        return [m.key for m in GRADE_METRICS]

    def is_inverted(self, metric: str) -> bool:
        meta = self._meta.get(metric)
        return bool(meta and meta.invert)

    def metric_category(self, metric: str) -> Optional[str]:
        meta = self._meta.get(metric)
        return meta.category if meta else None

    def age_factor(self, grade: Optional[float], inverted: bool) -> Optional[float]:
        """Factor for a grade clamped to 6-12; speed table for inverted metrics."""
        if grade is None:
            return None
        clamped = int(max(6, min(12, grade)))
        table = self._age_speed if inverted else self._age_strength
        return table.get(clamped)

    @staticmethod
    def _band(tiers: List[Dict], value: Optional[float]) -> Optional[Dict]:
        if value is None:
            return None
        for tier in tiers:
            if tier['max'] is None or value < tier['max']:
                return tier
        return None

    def weight_tier(self, weight_lb: Optional[float]) -> Optional[Dict]:
        return self._band(self._weight_tiers, weight_lb)

    def height_tier(self, height_in: Optional[float]) -> Optional[Dict]:
        return self._band(self._height_tiers, height_in)

    def body_factor(self, metric: str, weight_lb: Optional[float],
                    height_in: Optional[float]) -> float:
        """
        Body-profile factor for a metric, 1.0 when the metric has no category
        or the athlete is missing the body measurement its category needs.
        """
        category = self.metric_category(metric)
        factor_key = CATEGORY_FACTORS.get(category)
        if not factor_key:
            return 1.0

        if category in ('abs', 'rel'):
            tier = self.weight_tier(weight_lb)
        else:
            tier = self.height_tier(height_in)

        if tier is None:
            return 1.0
        return float(tier[factor_key])

    def as_dict(self) -> Dict[str, Any]:
        """Deep copy of the registry tables, for reference views"""
        return {
            'tiers': list(GRADE_TIERS),
            'labels': list(GRADE_LABELS),
            'scores': dict(GRADE_SCORES),
            'meta': [
                {'key': m.key, 'label': m.label, 'unit': m.unit,
                 'invert': m.invert, 'category': m.category}
                for m in GRADE_METRICS
            ],
            'standards': copy.deepcopy(self._standards),
            'age_factors_strength': dict(self._age_strength),
            'age_factors_speed': dict(self._age_speed),
            'weight_tiers': copy.deepcopy(self._weight_tiers),
            'height_tiers': copy.deepcopy(self._height_tiers),
        }


DEFAULT_REGISTRY = StandardsRegistry()

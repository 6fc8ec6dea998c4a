"""
Athlete Record Builder
Combine Metrics Engine - HS Testing Program

Turns one raw roster entry into an AthleteRecord with every per-athlete
derived field, in dependency order:

    unit conversions -> segment velocities -> accelerations -> forces
    -> impulses / momenta / powers -> vMax / v10Max / momMax / topMph
    -> strength ratios -> Sayers peak power -> relative peak power
    -> strength utilisation

A step whose inputs are missing stores None; nothing is zero-filled except
the Sayers clamp. Population-relative fields (z-scores, scorecard, grades,
cohort) are left empty here and filled by cohort_analytics.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from combine_engine.config.engine_config import Constants, DEFAULT_CONSTANTS
from combine_engine.config.positions import position_group
from combine_engine.utils import physics
from combine_engine.utils.physics import round_half_away as rd


logger = logging.getLogger(__name__)


# ============================================================================
# INPUT PARSING
# ============================================================================

def parse_number(value: Any) -> Optional[float]:
    """
    Coerce a raw cell to float.

    Blank cells, 'N/A', spreadsheet formulas ('=B2*2'), booleans, non-numeric
    text and non-finite numbers all become None. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text or text.upper() == 'N/A' or text.startswith('='):
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_text(value: Any) -> Optional[str]:
    """Trimmed text, None for blanks and formula strings."""
    if value is None:
        return None
    if isinstance(value, str) and value.startswith('='):
        return None
    text = str(value).strip()
    return text or None


def parse_grade(value: Any) -> Optional[int]:
    number = parse_number(value)
    if number is None:
        return None
    return int(number) if number.is_integer() else None


def initials(name: Optional[str]) -> str:
    if not name:
        return '?'
    parts = name.split()
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


# ============================================================================
# ATHLETE RECORD
# ============================================================================

@dataclass(frozen=True)
class AthleteRecord:
    """One athlete with raw inputs, per-athlete derivations and roster-relative fields"""

    # Identity / categorical
    id: Any
    name: str
    initials: str = '?'
    position: Optional[str] = None
    sport: str = 'Football'
    grade: Optional[int] = None
    training_age: Optional[int] = None
    group: str = 'Other'

    # Anthropometrics
    height: Optional[float] = None          # in
    height_cm: Optional[float] = None
    weight: Optional[float] = None          # lb
    mass_kg: Optional[float] = None

    # Raw tests
    sprint_020: Optional[float] = None
    sprint_2030: Optional[float] = None
    sprint_3040: Optional[float] = None
    sprint_notes: Optional[str] = None
    forty: Optional[float] = None
    vert: Optional[float] = None
    vert_cm: Optional[float] = None
    broad: Optional[float] = None
    broad_cm: Optional[float] = None
    bench: Optional[float] = None
    bench_kg: Optional[float] = None
    squat: Optional[float] = None
    squat_kg: Optional[float] = None
    medball: Optional[float] = None
    pro_agility: Optional[float] = None
    l_drill: Optional[float] = None
    backpedal: Optional[float] = None
    w_drill: Optional[float] = None

    # Sprint kinematics
    v1: Optional[float] = None
    v2: Optional[float] = None
    v3: Optional[float] = None
    v_max: Optional[float] = None
    v10_max: Optional[float] = None
    top_mph: Optional[float] = None
    a1: Optional[float] = None
    a2: Optional[float] = None
    a3: Optional[float] = None
    f1: Optional[float] = None
    f2: Optional[float] = None
    f3: Optional[float] = None
    imp1: Optional[float] = None
    imp2: Optional[float] = None
    imp3: Optional[float] = None
    mom1: Optional[float] = None
    mom2: Optional[float] = None
    mom3: Optional[float] = None
    mom_max: Optional[float] = None
    pow1: Optional[float] = None
    pow2: Optional[float] = None
    pow3: Optional[float] = None

    # Strength & power
    rel_bench: Optional[float] = None
    rel_squat: Optional[float] = None
    mb_rel: Optional[float] = None
    peak_power: Optional[float] = None
    rel_peak_power: Optional[float] = None
    strength_util: Optional[float] = None

    # Roster-relative (filled by cohort_analytics)
    z_mb: Optional[float] = None
    z_bench: Optional[float] = None
    z_squat: Optional[float] = None
    z_vert: Optional[float] = None
    z_broad: Optional[float] = None
    z_forty: Optional[float] = None
    z_f1: Optional[float] = None
    z_vmax: Optional[float] = None
    z_peak_power: Optional[float] = None
    z_rel_bench: Optional[float] = None
    z_rel_squat: Optional[float] = None
    z_mb_rel: Optional[float] = None
    explosive_upper: Optional[float] = None
    total_explosive: Optional[float] = None
    mb_pct_team: Optional[int] = None
    mb_pct_group: Optional[int] = None
    mb_tier: Optional[str] = None
    scorecard: Dict[str, Any] = field(default_factory=dict)
    grades: Dict[str, Any] = field(default_factory=dict)
    overall_grade: Optional[Any] = None
    cohort: Optional[Any] = None

    def metric(self, key: str) -> Optional[float]:
        """Value of a metric by key, None for unknown keys"""
        return getattr(self, key, None)


# ============================================================================
# BUILDER
# ============================================================================

def build_athlete(raw: Mapping[str, Any], constants: Constants = DEFAULT_CONSTANTS,
                  default_sport: str = 'Football') -> Optional[AthleteRecord]:
    """
    Build one AthleteRecord from a raw roster entry.

    Returns None for entries without a usable name; they cannot be shown or
    flagged, so the roster skips them. All other malformed cells become None.
    """
    name = parse_text(raw.get('name'))
    if not name:
        logger.debug(f"Skipping roster entry without a name (id={raw.get('id')!r})")
        return None

    position = parse_text(raw.get('position'))
    sport = parse_text(raw.get('sport')) or default_sport
    grade = parse_grade(raw.get('grade'))
    weight = parse_number(raw.get('weight_lb'))
    height = parse_number(raw.get('height_in'))

    s020 = parse_number(raw.get('sprint_020'))
    s2030 = parse_number(raw.get('sprint_2030'))
    s3040 = parse_number(raw.get('sprint_3040'))

    vert = parse_number(raw.get('vert_in'))
    broad = parse_number(raw.get('broad_in'))
    bench = parse_number(raw.get('bench_1rm'))
    squat = parse_number(raw.get('squat_1rm'))
    medball = parse_number(raw.get('medball_in'))

    # Unit conversions (full precision kept for downstream formulas)
    mass = physics.lb_to_kg(weight, constants)
    height_cm = physics.in_to_cm(height, constants)
    vert_cm = physics.in_to_cm(vert, constants)
    broad_cm = physics.in_to_cm(broad, constants)
    bench_kg = physics.lb_to_kg(bench, constants)
    squat_kg = physics.lb_to_kg(squat, constants)

    # Segment velocities: 0-20 yd, 20-30 yd, 30-40 yd
    v1 = physics.velocity(constants.TWENTY_YD_M, s020)
    v2 = physics.velocity(constants.TEN_YD_M, s2030)
    v3 = physics.velocity(constants.TEN_YD_M, s3040)

    a1 = physics.acceleration_from_rest(v1, s020)
    a2 = physics.acceleration(v1, v2, s2030)
    a3 = physics.acceleration(v2, v3, s3040)

    f1 = physics.force(mass, a1)
    f2 = physics.force(mass, a2)
    f3 = physics.force(mass, a3)

    v_max = physics.best_of(v1, v2, v3)
    v10_max = physics.best_of(v2, v3)

    # Sayers runs on the stored vert_cm (1 dp) and mass_kg (2 dp), and relative
    # power on the stored whole-watt peak power
    mass_kg = rd(mass, 2)
    peak_power = rd(physics.sayers_peak_power(rd(vert_cm, 1), mass_kg, constants), 0)

    return AthleteRecord(
        id=raw.get('id'),
        name=name,
        initials=initials(name),
        position=position,
        sport=sport,
        grade=grade,
        training_age=max(0, grade - 8) if grade is not None else None,
        group=position_group(position, sport),
        height=height,
        height_cm=rd(height_cm, 1),
        weight=weight,
        mass_kg=mass_kg,
        sprint_020=s020,
        sprint_2030=s2030,
        sprint_3040=s3040,
        sprint_notes=parse_text(raw.get('sprint_notes')),
        forty=rd(physics.split_sum(s020, s2030, s3040), 2),
        vert=vert,
        vert_cm=rd(vert_cm, 1),
        broad=broad,
        broad_cm=rd(broad_cm, 1),
        bench=bench,
        bench_kg=rd(bench_kg, 1),
        squat=squat,
        squat_kg=rd(squat_kg, 1),
        medball=medball,
        pro_agility=parse_number(raw.get('pro_agility')),
        l_drill=parse_number(raw.get('l_drill')),
        backpedal=parse_number(raw.get('backpedal')),
        w_drill=parse_number(raw.get('w_drill')),
        v1=rd(v1, 3),
        v2=rd(v2, 3),
        v3=rd(v3, 3),
        v_max=rd(v_max, 3),
        v10_max=rd(v10_max, 3),
        top_mph=rd(physics.ms_to_mph(v_max, constants), 1),
        a1=rd(a1, 3),
        a2=rd(a2, 3),
        a3=rd(a3, 3),
        f1=rd(f1, 1),
        f2=rd(f2, 1),
        f3=rd(f3, 1),
        imp1=rd(physics.impulse(f1, s020), 1),
        imp2=rd(physics.impulse(f2, s2030), 1),
        imp3=rd(physics.impulse(f3, s3040), 1),
        mom1=rd(physics.momentum(mass, v1), 1),
        mom2=rd(physics.momentum(mass, v2), 1),
        mom3=rd(physics.momentum(mass, v3), 1),
        mom_max=rd(physics.momentum(mass, v10_max), 1),
        pow1=rd(physics.power(f1, v1), 1),
        pow2=rd(physics.power(f2, v2), 1),
        pow3=rd(physics.power(f3, v3), 1),
        rel_bench=rd(physics.ratio(bench, weight), 2),
        rel_squat=rd(physics.ratio(squat, weight), 2),
        mb_rel=rd(physics.ratio(medball, weight), 2),
        peak_power=peak_power,
        rel_peak_power=rd(physics.relative_peak_power(peak_power, mass_kg), 1),
        strength_util=rd(physics.strength_utilisation(f1, squat_kg, constants), 3),
    )

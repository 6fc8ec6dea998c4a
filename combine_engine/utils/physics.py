"""
Unit & Sprint Physics Conversions
Combine Metrics Engine - HS Testing Program

Implements:
- Unit conversions (lb <-> kg, in <-> cm, m/s -> mph)
- Split kinematics (velocity, acceleration, force, impulse, momentum, power)
- Sayers peak power estimate from vertical jump and body mass
- Strength ratios and strength utilisation

Every function takes Optional inputs and returns None when a required input is
missing or a denominator is missing/non-positive. Nothing here rounds: callers
round once, at the point a value is stored.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from combine_engine.config.engine_config import Constants


# ============================================================================
# ROUNDING
# ============================================================================

def round_half_away(value: Optional[float], digits: int) -> Optional[float]:
    """
    Round half away from zero to a fixed number of decimals.

    Python's built-in round() is banker's rounding; workbook values were
    produced with half-up rounding, so decimal is used instead.
    """
    if value is None or not math.isfinite(value):
        return None
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


# ============================================================================
# UNIT CONVERSIONS
# ============================================================================

def lb_to_kg(pounds: Optional[float], constants: Constants) -> Optional[float]:
    if pounds is None:
        return None
    return pounds * constants.LB_TO_KG


def kg_to_lb(kilograms: Optional[float], constants: Constants) -> Optional[float]:
    if kilograms is None:
        return None
    return kilograms / constants.LB_TO_KG


def in_to_cm(inches: Optional[float], constants: Constants) -> Optional[float]:
    if inches is None:
        return None
    return inches * constants.IN_TO_CM


def cm_to_in(centimeters: Optional[float], constants: Constants) -> Optional[float]:
    if centimeters is None:
        return None
    return centimeters / constants.IN_TO_CM


def ms_to_mph(speed: Optional[float], constants: Constants) -> Optional[float]:
    if speed is None:
        return None
    return speed * constants.MS_TO_MPH


# ============================================================================
# SPRINT KINEMATICS
# ============================================================================

def velocity(distance_m: Optional[float], time_s: Optional[float]) -> Optional[float]:
    """Average segment velocity v = d / t (m/s)."""
    if distance_m is None or not _positive(time_s):
        return None
    return distance_m / time_s


def acceleration_from_rest(v: Optional[float], time_s: Optional[float]) -> Optional[float]:
    """First-segment acceleration from a standing start, a = v / t."""
    if v is None or not _positive(time_s):
        return None
    return v / time_s


def acceleration(v_prev: Optional[float], v: Optional[float],
                 time_s: Optional[float]) -> Optional[float]:
    """Segment acceleration a = (v - v_prev) / t. Negative means decelerating."""
    if v_prev is None or v is None or not _positive(time_s):
        return None
    return (v - v_prev) / time_s


def force(mass_kg: Optional[float], accel: Optional[float]) -> Optional[float]:
    """F = m * a (N)"""
    if mass_kg is None or accel is None:
        return None
    return mass_kg * accel


def impulse(force_n: Optional[float], time_s: Optional[float]) -> Optional[float]:
    """J = F * t (N*s)"""
    if force_n is None or time_s is None:
        return None
    return force_n * time_s


def momentum(mass_kg: Optional[float], v: Optional[float]) -> Optional[float]:
    """p = m * v (kg*m/s)"""
    if mass_kg is None or v is None:
        return None
    return mass_kg * v


def power(force_n: Optional[float], v: Optional[float]) -> Optional[float]:
    """P = F * v (W)"""
    if force_n is None or v is None:
        return None
    return force_n * v


def best_of(*values: Optional[float]) -> Optional[float]:
    """Max over the non-null values, None if every value is missing."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return max(present)


def split_sum(*splits: Optional[float]) -> Optional[float]:
    """Sum of sprint splits, only when every split was timed."""
    if any(s is None for s in splits):
        return None
    return sum(splits)


# ============================================================================
# STRENGTH & POWER
# ============================================================================

def ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """numerator / denominator, None unless the denominator is positive."""
    if numerator is None or not _positive(denominator):
        return None
    return numerator / denominator


def sayers_peak_power(vert_cm: Optional[float], mass_kg: Optional[float],
                      constants: Constants) -> Optional[float]:
    """
    Sayers et al. (1999) lower-body peak power estimate

    P = A * VJ(cm) + B * mass(kg) + C

    Clamped to 0: the regression goes negative for very light/young athletes.
    """
    if vert_cm is None or mass_kg is None:
        return None
    estimate = constants.SAYERS_A * vert_cm + constants.SAYERS_B * mass_kg + constants.SAYERS_C
    return max(0.0, estimate)


def relative_peak_power(peak_power: Optional[float], mass_kg: Optional[float]) -> Optional[float]:
    """Peak power per kg. A clamped (zero) peak power has no meaningful ratio."""
    if not _positive(peak_power):
        return None
    return ratio(peak_power, mass_kg)


def strength_utilisation(f1: Optional[float], squat_kg: Optional[float],
                         constants: Constants) -> Optional[float]:
    """Sprint drive force as a fraction of squat force, F1 / (squat_kg * g)."""
    if f1 is None or not _positive(squat_kg):
        return None
    return ratio(f1, squat_kg * constants.G)

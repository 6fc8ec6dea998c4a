"""
Centralized Engine Configuration
Settings and physical constants for the Combine Metrics Engine
"""

import logging
import math
import os
from dataclasses import dataclass, fields, replace, asdict
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Constants:
    """Named scalars used by every unit/physics formula (workbook Constants sheet)"""

    LB_TO_KG: float = 0.45359237
    IN_TO_CM: float = 2.54
    TEN_YD_M: float = 9.144
    TWENTY_YD_M: float = 18.288
    G: float = 9.81
    SAYERS_A: float = 60.7
    SAYERS_B: float = 45.3
    SAYERS_C: float = -2055.0
    MS_TO_MPH: float = 2.23694

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "Constants":
        """Return a copy with caller-supplied values; bad entries are skipped."""
        if not overrides:
            return self

        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            if key not in known:
                logger.warning(f"Ignoring unknown constant: {key}")
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning(f"Ignoring non-numeric constant {key}={value!r}")
                continue
            try:
                number = float(value)
            except OverflowError:
                number = math.inf
            if not math.isfinite(number):
                logger.warning(f"Ignoring non-finite constant {key}={value!r}")
                continue
            changes[key] = number

        return replace(self, **changes) if changes else self

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


DEFAULT_CONSTANTS = Constants()


@dataclass(frozen=True)
class ProcessingOptions:
    """Per-run switches and sample thresholds handed to the pipeline"""

    age_adjusted: bool = False
    body_adjusted: bool = False
    cohort_mode: bool = False
    min_z_sample: int = 5
    min_overall_metrics: int = 3
    min_warning_sample: int = 5
    min_cohort_size: int = 2
    default_sport: str = 'Football'


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not an integer, using {default}")
        return default


@dataclass
class EngineConfig:
    """Centralized configuration for the metrics engine and its CLI"""

    # Feature Flags
    AGE_ADJUSTED: bool = False
    BODY_ADJUSTED: bool = False
    COHORT_MODE: bool = False

    # Sample thresholds
    MIN_Z_SAMPLE: int = 5
    MIN_OVERALL_METRICS: int = 3
    MIN_WARNING_SAMPLE: int = 5
    MIN_COHORT_SIZE: int = 2

    DEFAULT_SPORT: str = 'Football'

    # Optional JSON file overriding standards / factor tables
    STANDARDS_FILE: Optional[str] = None

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_DIR: str = 'logs'
    LOG_TO_FILE: bool = False
    LOG_MAX_BYTES: int = 10485760  # 10MB
    LOG_BACKUP_COUNT: int = 5

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "EngineConfig":
        """Load configuration from .env file and environment variables"""
        env_locations = [
            env_path,
            '.env',
            'config/.env',
        ]

        for loc in env_locations:
            if loc and os.path.exists(loc):
                load_dotenv(loc)
                logger.info(f"Loaded config from: {loc}")
                break
        else:
            logger.debug("No .env file found, using environment variables")

        return cls(
            AGE_ADJUSTED=_env_flag('COMBINE_AGE_ADJUSTED'),
            BODY_ADJUSTED=_env_flag('COMBINE_BODY_ADJUSTED'),
            COHORT_MODE=_env_flag('COMBINE_COHORT_MODE'),
            MIN_Z_SAMPLE=_env_int('COMBINE_MIN_Z_SAMPLE', 5),
            MIN_OVERALL_METRICS=_env_int('COMBINE_MIN_OVERALL_METRICS', 3),
            MIN_WARNING_SAMPLE=_env_int('COMBINE_MIN_WARNING_SAMPLE', 5),
            MIN_COHORT_SIZE=_env_int('COMBINE_MIN_COHORT_SIZE', 2),
            DEFAULT_SPORT=os.getenv('COMBINE_DEFAULT_SPORT', 'Football'),
            STANDARDS_FILE=os.getenv('COMBINE_STANDARDS_FILE') or None,
            LOG_LEVEL=os.getenv('COMBINE_LOG_LEVEL', 'INFO').upper(),
            LOG_DIR=os.getenv('COMBINE_LOG_DIR', 'logs'),
            LOG_TO_FILE=_env_flag('COMBINE_LOG_TO_FILE'),
        )

    def validate(self) -> bool:
        """Validate thresholds and logging settings"""
        if self.MIN_Z_SAMPLE < 2:
            raise ValueError("MIN_Z_SAMPLE must be at least 2 (stddev needs two values)")
        if self.MIN_OVERALL_METRICS < 1:
            raise ValueError("MIN_OVERALL_METRICS must be positive")
        if self.MIN_COHORT_SIZE < 2:
            raise ValueError("MIN_COHORT_SIZE must be at least 2")
        if self.LOG_LEVEL not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown LOG_LEVEL: {self.LOG_LEVEL}")
        return True

    def processing_options(self) -> ProcessingOptions:
        return ProcessingOptions(
            age_adjusted=self.AGE_ADJUSTED,
            body_adjusted=self.BODY_ADJUSTED,
            cohort_mode=self.COHORT_MODE,
            min_z_sample=self.MIN_Z_SAMPLE,
            min_overall_metrics=self.MIN_OVERALL_METRICS,
            min_warning_sample=self.MIN_WARNING_SAMPLE,
            min_cohort_size=self.MIN_COHORT_SIZE,
            default_sport=self.DEFAULT_SPORT,
        )

    def ensure_directories(self):
        """Create the log directory when file logging is on"""
        if self.LOG_TO_FILE:
            os.makedirs(self.LOG_DIR, exist_ok=True)

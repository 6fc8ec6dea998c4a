"""
Combine Metrics Pipeline - HS Testing Program
Single-shot processing of a raw athlete roster into the annotated dataset

Stages:
1. Validate roster structure and resolve constants
2. Build per-athlete records (unit conversions, sprint physics, strength ratios)
3. Roster statistics: z-scores, composites, med ball percentiles, scorecard
4. Absolute HS grades (optionally age- and body-adjusted)
5. Cohort percentiles (optional)
6. Group standards, testing log, data-quality audit

The pipeline is a pure function of (raw roster, options, standards): it does
no I/O, never modifies its inputs and recomputes everything on every call.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Mapping, Optional, Tuple

from combine_engine.config.engine_config import (
    Constants,
    DEFAULT_CONSTANTS,
    EngineConfig,
    ProcessingOptions,
)
from combine_engine.config.positions import taxonomy
from combine_engine.config.standards import DEFAULT_REGISTRY, StandardsError, StandardsRegistry
from combine_engine.utils.athlete_builder import (
    AthleteRecord,
    build_athlete,
    parse_number,
    parse_text,
)
from combine_engine.utils.cohort_analytics import (
    SCORECARD_METRICS,
    MetricStats,
    assign_cohorts,
    assign_composites,
    assign_grades,
    assign_medball_percentiles,
    assign_scorecards,
    assign_zscores,
    compute_group_standards,
    compute_stats_summary,
    grouped_medball,
)
from combine_engine.utils.data_quality import QualityFlag, QualityWarning, audit


logger = logging.getLogger(__name__)


class RosterFormatError(ValueError):
    """Top-level roster structure is unusable (not a mapping, no athletes list)"""


# ============================================================================
# LOGGING SETUP
# ============================================================================

class EngineLogger:
    """Console logging, plus a rotating file log when enabled"""

    def __init__(self, name: str = 'combine_engine', config: Optional[EngineConfig] = None):
        config = config or EngineConfig()

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
        self.logger.handlers.clear()

        # Console handler
        console = logging.StreamHandler()
        console.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
        console.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
        self.logger.addHandler(console)

        # File handler with rotation
        if config.LOG_TO_FILE:
            config.ensure_directories()
            file_handler = RotatingFileHandler(
                os.path.join(config.LOG_DIR, f'combine_engine_{datetime.now().strftime("%Y%m%d")}.log'),
                maxBytes=config.LOG_MAX_BYTES,
                backupCount=config.LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
            self.logger.addHandler(file_handler)

    def get_logger(self):
        return self.logger


# ============================================================================
# DATASET
# ============================================================================

@dataclass(frozen=True)
class DerivedDataset:
    """Everything a consumer needs to render the roster"""

    athletes: Tuple[AthleteRecord, ...]
    standards: Dict[str, Any]
    position_taxonomy: Dict[str, Any]
    group_standards: Dict[str, Dict[str, Dict[str, Any]]]
    stats: Dict[str, MetricStats]
    warnings: List[QualityWarning]
    flags: List[QualityFlag]
    constants: Constants
    options: ProcessingOptions
    positions: List[str] = field(default_factory=list)
    grouped_medball: Dict[str, List[float]] = field(default_factory=dict)
    scorecard_metrics: List[Dict[str, Any]] = field(default_factory=list)
    testing_log: List[Dict[str, Any]] = field(default_factory=list)
    testing_week_plan: List[Any] = field(default_factory=list)
    benchmarks: Dict[str, Any] = field(default_factory=dict)
    export_date: str = 'N/A'
    notes: List[Any] = field(default_factory=list)

    def athlete(self, athlete_id: Any) -> Optional[AthleteRecord]:
        for a in self.athletes:
            if a.id == athlete_id:
                return a
        return None


# ============================================================================
# TESTING LOG
# ============================================================================

def parse_testing_log(entries: Optional[List[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    """Normalize raw testing-session log entries; non-list input and non-mapping entries are skipped"""
    if not isinstance(entries, list):
        return []
    log = []
    for e in entries:
        if not isinstance(e, Mapping):
            continue
        log.append({
            'date': parse_text(e.get('date')),
            'athlete_id': e.get('athlete_id'),
            'name': parse_text(e.get('name')),
            'test': parse_text(e.get('test')),
            'sprint_020': parse_number(e.get('split_020')),
            'sprint_2030': parse_number(e.get('split_2030')),
            'sprint_3040': parse_number(e.get('split_3040')),
            'location': parse_text(e.get('location')),
            'vert': parse_number(e.get('vert')),
            'broad': parse_number(e.get('broad')),
            'bench': parse_number(e.get('bench')),
            'squat': parse_number(e.get('squat')),
            'medball': parse_number(e.get('medball')),
        })
    return log


# ============================================================================
# PIPELINE
# ============================================================================

def _validate_roster(raw: Any) -> List[Mapping[str, Any]]:
    if not isinstance(raw, Mapping):
        raise RosterFormatError(f"Roster must be a mapping, got {type(raw).__name__}")
    athletes = raw.get('athletes')
    if not isinstance(athletes, list):
        raise RosterFormatError("Roster must contain an 'athletes' list")
    return athletes


def _mapping_field(source: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Optional object field; a missing or wrongly-typed value reads as empty"""
    value = source.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        logger.warning(f"Ignoring '{key}': expected an object, got {type(value).__name__}")
        return {}
    return value


def _list_field(source: Mapping[str, Any], key: str) -> List[Any]:
    """Optional list field; a missing or wrongly-typed value reads as empty"""
    value = source.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Ignoring '{key}': expected a list, got {type(value).__name__}")
        return []
    return list(value)


def process_data(raw: Mapping[str, Any],
                 options: Optional[ProcessingOptions] = None,
                 registry: Optional[StandardsRegistry] = None) -> DerivedDataset:
    """
    Process a raw roster into the fully annotated dataset.

    Args:
        raw: {'athletes': [...], 'constants'?: {...}, 'meta'?: {...},
              'testing_log'?: [...], 'testing_week_plan'?: [...], 'benchmarks'?: {...}}
        options: age/body adjustment and cohort switches (defaults: all off)
        registry: standards tables (defaults to the built-in HS standards)

    Returns:
        DerivedDataset. Any well-formed roster, including an empty one, yields a
        dataset; only a missing/non-list 'athletes' raises RosterFormatError.
    """
    entries = _validate_roster(raw)
    options = options or ProcessingOptions()
    registry = registry or DEFAULT_REGISTRY

    raw_constants = raw.get('constants')
    constants = DEFAULT_CONSTANTS.with_overrides(
        raw_constants if isinstance(raw_constants, Mapping) else None
    )

    # Stage 1: per-athlete records
    built = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            logger.debug(f"Skipping non-object roster entry: {entry!r}")
            continue
        record = build_athlete(entry, constants, options.default_sport)
        if record is not None:
            built.append(record)
    athletes: Tuple[AthleteRecord, ...] = tuple(built)
    logger.debug(f"Built {len(athletes)} of {len(entries)} roster entries")

    # Stage 2: roster-relative fields
    stats = compute_stats_summary(athletes, options.min_z_sample)
    athletes = assign_zscores(athletes, options.min_z_sample)
    athletes = assign_composites(athletes)
    athletes = assign_medball_percentiles(athletes)
    athletes = assign_scorecards(athletes)
    athletes = assign_grades(athletes, options, registry)
    if options.cohort_mode:
        athletes = assign_cohorts(athletes, registry, options.min_cohort_size)

    # Stage 3: reference tables and audit
    warnings, flags = audit(athletes, options.min_warning_sample)
    meta = _mapping_field(raw, 'meta')

    logger.info(
        f"Processed {len(athletes)} athletes "
        f"({len(warnings)} sample warnings, {len(flags)} data flags)"
    )

    return DerivedDataset(
        athletes=athletes,
        standards=registry.as_dict(),
        position_taxonomy=taxonomy(),
        group_standards=compute_group_standards(athletes),
        stats=stats,
        warnings=warnings,
        flags=flags,
        constants=constants,
        options=options,
        positions=sorted({a.position for a in athletes if a.position}),
        grouped_medball=grouped_medball(athletes),
        scorecard_metrics=[dict(m) for m in SCORECARD_METRICS],
        testing_log=parse_testing_log(raw.get('testing_log')),
        testing_week_plan=_list_field(raw, 'testing_week_plan'),
        benchmarks=dict(_mapping_field(raw, 'benchmarks')),
        export_date=parse_text(meta.get('export_date')) or parse_text(raw.get('exportDate')) or 'N/A',
        notes=_list_field(meta, 'notes'),
    )


# ============================================================================
# CLI INTERFACE
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Process a roster file and print a summary / export a CSV"""
    import argparse

    from combine_engine.utils.data_loader import (
        athletes_frame,
        load_roster,
        load_standards_override,
    )

    parser = argparse.ArgumentParser(description='Combine Metrics Engine - HS Testing Program')

    parser.add_argument('--roster', type=str, required=True,
                        help='Path to roster JSON document')
    parser.add_argument('--age-adjusted', action='store_true',
                        help='Scale standards by grade level')
    parser.add_argument('--body-adjusted', action='store_true',
                        help='Scale standards by weight/height band')
    parser.add_argument('--cohort', action='store_true',
                        help='Compute cohort (like-to-like) percentiles')
    parser.add_argument('--standards', type=str,
                        help='JSON file overriding standards / factor tables')
    parser.add_argument('--config', type=str,
                        help='Path to .env config file')
    parser.add_argument('--csv', type=str,
                        help='Write the annotated roster to this CSV file')
    parser.add_argument('--summary', action='store_true',
                        help='Print warnings, flags and the top overall grades')

    args = parser.parse_args(argv)

    config = EngineConfig.from_env(args.config)
    config.AGE_ADJUSTED = config.AGE_ADJUSTED or args.age_adjusted
    config.BODY_ADJUSTED = config.BODY_ADJUSTED or args.body_adjusted
    config.COHORT_MODE = config.COHORT_MODE or args.cohort
    if args.standards:
        config.STANDARDS_FILE = args.standards

    try:
        log = EngineLogger('combine_engine', config).get_logger()
    except OSError as e:
        logger.error(f"Cannot set up file logging in {config.LOG_DIR}: {e}")
        return 1

    try:
        config.validate()
        raw = load_roster(args.roster)
        registry = load_standards_override(config.STANDARDS_FILE) if config.STANDARDS_FILE else None
        dataset = process_data(raw, config.processing_options(), registry)
    except (RosterFormatError, StandardsError, OSError, json.JSONDecodeError) as e:
        log.error(f"Processing failed: {e}")
        return 1
    except ValueError as e:
        log.error(f"Invalid configuration: {e}")
        return 1

    if args.csv:
        athletes_frame(dataset).to_csv(args.csv, index=False)
        log.info(f"Saved {len(dataset.athletes)} athletes to {args.csv}")

    if args.summary:
        print("=" * 80)
        print(f"ROSTER SUMMARY - {len(dataset.athletes)} athletes")
        print("=" * 80)
        for w in dataset.warnings:
            print(f"WARNING: {w.metric} (n={w.n}): {w.message}")
        for f in dataset.flags:
            print(f"FLAG: {f.athlete}: {f.message}")

        graded = [a for a in dataset.athletes if a.overall_grade is not None]
        graded.sort(key=lambda a: a.overall_grade.score, reverse=True)
        print("\nTop overall grades:")
        for a in graded[:10]:
            og = a.overall_grade
            print(f"  {a.name:<24} {a.group:<16} {og.label:<10} {og.score} ({og.count} metrics)")

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Combine Metrics Engine for the HS Testing Program

Turns a raw athlete roster (anthropometrics, sprint splits, jumps, lifts)
into an annotated dataset: sprint physics, strength ratios, z-scores,
percentile scorecards, absolute HS grades and cohort rankings.

Usage:
    from combine_engine import process_data, ProcessingOptions
    dataset = process_data(raw_roster, ProcessingOptions(age_adjusted=True))
"""

from .config.engine_config import Constants, EngineConfig, ProcessingOptions
from .config.standards import StandardsError, StandardsRegistry
from .pipeline import DerivedDataset, RosterFormatError, process_data

__all__ = [
    'Constants',
    'EngineConfig',
    'ProcessingOptions',
    'StandardsError',
    'StandardsRegistry',
    'DerivedDataset',
    'RosterFormatError',
    'process_data',
]

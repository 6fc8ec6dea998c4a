import copy
import os
import sys

import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


ENV_VARS = [
    'COMBINE_AGE_ADJUSTED',
    'COMBINE_BODY_ADJUSTED',
    'COMBINE_COHORT_MODE',
    'COMBINE_MIN_Z_SAMPLE',
    'COMBINE_MIN_OVERALL_METRICS',
    'COMBINE_MIN_WARNING_SAMPLE',
    'COMBINE_MIN_COHORT_SIZE',
    'COMBINE_DEFAULT_SPORT',
    'COMBINE_STANDARDS_FILE',
    'COMBINE_LOG_LEVEL',
    'COMBINE_LOG_DIR',
    'COMBINE_LOG_TO_FILE',
]


def _entry(id_, name, position, grade, weight, height, splits, vert, broad,
           bench, squat, medball):
    s020, s2030, s3040 = splits
    return {
        'id': id_,
        'name': name,
        'position': position,
        'sport': 'Football',
        'grade': grade,
        'weight_lb': weight,
        'height_in': height,
        'sprint_020': s020,
        'sprint_2030': s2030,
        'sprint_3040': s3040,
        'vert_in': vert,
        'broad_in': broad,
        'bench_1rm': bench,
        'squat_1rm': squat,
        'medball_in': medball,
    }


ROSTER_ENTRIES = [
    _entry(1, 'Marcus Hill', 'WR', 12, 180, 71, (2.85, 1.25, 1.15), 30, 110, 225, 335, 190),
    _entry(2, 'Jaylen Ross', 'RB', 11, 175, 69, (2.90, 1.28, 1.18), 28, 104, 205, 315, 175),
    _entry(3, 'Tyler Grant', 'QB', 12, 195, 74, (2.95, 1.30, 1.20), 27, 100, 215, 305, 180),
    _entry(4, 'Cole Baker', 'OL', 12, 275, 76, (3.30, 1.45, 1.35), 22, 90, 285, 405, 205),
    _entry(5, 'Andre Lewis', 'DL', 10, 250, 73, (3.20, 1.40, 1.30), 24, 94, 255, 375, 195),
    _entry(6, 'Evan Price', 'LB', 9, 190, 72, (3.00, 1.32, 1.22), 26, 98, 195, 295, 170),
]


@pytest.fixture
def raw_roster():
    """Six fully-tested football athletes with no implausible values"""
    return {
        'athletes': copy.deepcopy(ROSTER_ENTRIES),
        'meta': {'export_date': '2024-08-15', 'notes': ['Summer testing']},
        'testing_log': [
            {'date': '2024-08-15', 'athlete_id': 1, 'name': 'Marcus Hill', 'test': 'Sprint',
             'split_020': '2.85', 'split_2030': '1.25', 'split_3040': '1.15',
             'location': 'Turf', 'vert': 'N/A'},
        ],
    }


@pytest.fixture
def make_entry():
    """Factory for a single raw roster entry with overridable fields"""
    def _make(**overrides):
        entry = {'id': 99, 'name': 'Test Athlete', 'position': 'WR', 'sport': 'Football'}
        entry.update(overrides)
        return entry
    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Strip engine env vars, and any a .env file sets during the test"""
    for name in ENV_VARS:
        monkeypatch.setenv(name, 'placeholder')
        monkeypatch.delenv(name)
    return monkeypatch

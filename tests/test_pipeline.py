"""End-to-end tests for :func:`combine_engine.pipeline.process_data` and the CLI."""

import copy
import json

import pandas as pd
import pytest

from combine_engine import ProcessingOptions, RosterFormatError, StandardsRegistry, process_data
from combine_engine.pipeline import main, parse_testing_log


def test_process_roster(raw_roster):
    dataset = process_data(raw_roster)

    assert len(dataset.athletes) == 6
    assert dataset.warnings == []
    assert dataset.flags == []
    assert dataset.positions == ['DL', 'LB', 'OL', 'QB', 'RB', 'WR']
    assert dataset.export_date == '2024-08-15'
    assert dataset.notes == ['Summer testing']
    assert set(dataset.group_standards) == {'Skill', 'Big Skill', 'Linemen'}
    assert 'Football' in dataset.position_taxonomy
    assert len(dataset.scorecard_metrics) == 13


def test_derived_fields_flow_through(raw_roster):
    marcus = process_data(raw_roster).athlete(1)

    assert marcus.v_max == 7.951
    assert marcus.forty == 5.25
    assert marcus.peak_power == 6269
    assert marcus.z_bench is not None
    assert marcus.total_explosive is not None
    assert marcus.mb_pct_team is not None
    assert marcus.scorecard['forty'].percentile == 100
    assert marcus.grades['forty'].tier == 'average'
    assert marcus.overall_grade is not None
    assert marcus.cohort is None


def test_process_data_is_deterministic(raw_roster):
    assert process_data(raw_roster) == process_data(raw_roster)


def test_process_data_does_not_mutate_input(raw_roster):
    before = copy.deepcopy(raw_roster)
    process_data(raw_roster, ProcessingOptions(age_adjusted=True, cohort_mode=True))

    assert raw_roster == before


def test_empty_roster():
    dataset = process_data({'athletes': []})

    assert dataset.athletes == ()
    assert dataset.flags == []
    assert len(dataset.warnings) == 4
    assert dataset.group_standards == {}
    assert dataset.export_date == 'N/A'


@pytest.mark.parametrize("raw", [[], None, "athletes", {}, {'athletes': {'id': 1}}])
def test_bad_top_level_raises(raw):
    with pytest.raises(RosterFormatError):
        process_data(raw)


def test_malformed_entries_skipped(make_entry):
    raw = {'athletes': [None, 'not an athlete', 42, make_entry(name=''), make_entry(bench_1rm='heavy')]}
    dataset = process_data(raw)

    assert len(dataset.athletes) == 1
    assert dataset.athletes[0].bench is None


def test_oversized_cell_reads_as_missing(make_entry):
    dataset = process_data({'athletes': [make_entry(bench_1rm=10 ** 400)]})

    assert dataset.athletes[0].bench is None
    assert dataset.athletes[0].rel_bench is None


@pytest.mark.parametrize(
    "extra",
    [
        {'testing_log': 5},
        {'benchmarks': 'none'},
        {'testing_week_plan': {'day': 1}},
        {'meta': {'notes': 'abc'}},
        {'meta': 'x'},
    ],
)
def test_wrongly_typed_optional_fields_read_as_empty(make_entry, extra):
    dataset = process_data({'athletes': [make_entry()], **extra})

    assert len(dataset.athletes) == 1
    assert dataset.testing_log == []
    assert dataset.benchmarks == {}
    assert dataset.testing_week_plan == []
    assert dataset.notes == []
    assert dataset.export_date == 'N/A'


def test_zscores_gated_by_sample_size(make_entry):
    raw = {'athletes': [make_entry(id=i, bench_1rm=b) for i, b in enumerate([200, 220, 240, None])]}
    dataset = process_data(raw)

    assert [a.z_bench for a in dataset.athletes] == [None, None, None, None]
    assert dataset.stats['bench'].n == 3
    assert dataset.stats['bench'].low_sample is True


def test_constants_override(raw_roster):
    raw_roster['constants'] = {'LB_TO_KG': 0.5, 'NOT_A_CONSTANT': 3, 'G': 'heavy'}
    dataset = process_data(raw_roster)

    assert dataset.constants.LB_TO_KG == 0.5
    assert dataset.constants.G == 9.81
    assert dataset.athlete(1).mass_kg == 90.0


def test_age_adjusted_grades(raw_roster):
    raw_roster['athletes'][5]['grade'] = 6
    plain = process_data(raw_roster).athlete(6)
    adjusted = process_data(raw_roster, ProcessingOptions(age_adjusted=True)).athlete(6)

    assert adjusted.grades['forty'].score >= plain.grades['forty'].score
    assert adjusted.grades['bench'].score >= plain.grades['bench'].score
    assert adjusted.overall_grade.score > plain.overall_grade.score


def test_cohort_mode(raw_roster):
    dataset = process_data(raw_roster, ProcessingOptions(cohort_mode=True))

    assert all(a.cohort is not None for a in dataset.athletes)
    # Every athlete in this roster has a unique group/size/grade profile
    assert all(a.cohort.avg_pct is None for a in dataset.athletes)


def test_custom_registry(raw_roster):
    registry = StandardsRegistry({'standards': {'Football': {'Skill': {'forty': [5.3, 5.4, 5.5, 5.6]}}}})
    dataset = process_data(raw_roster, registry=registry)

    assert dataset.athlete(1).grades['forty'].tier == 'elite'
    assert dataset.standards['standards']['Football']['Skill']['forty'] == [5.3, 5.4, 5.5, 5.6]


def test_flags_surface_in_dataset(make_entry):
    raw = {'athletes': [make_entry(weight_lb=200, bench_1rm=320, squat_1rm=300)]}
    dataset = process_data(raw)

    assert [f.rule for f in dataset.flags] == ['bench_over_squat']


def test_parse_testing_log():
    log = parse_testing_log([
        {'date': '2024-08-15', 'athlete_id': 1, 'name': 'Marcus Hill', 'test': 'Sprint',
         'split_020': '2.85', 'vert': 'N/A'},
        'garbage',
    ])

    assert len(log) == 1
    assert log[0]['sprint_020'] == 2.85
    assert log[0]['sprint_2030'] is None
    assert log[0]['vert'] is None
    assert parse_testing_log(None) == []
    assert parse_testing_log(5) == []
    assert parse_testing_log({"date": "2024-08-15"}) == []


def test_testing_log_in_dataset(raw_roster):
    dataset = process_data(raw_roster)

    assert dataset.testing_log[0]['sprint_3040'] == 1.15
    assert dataset.testing_log[0]['location'] == 'Turf'


# ============================================================================
# CLI
# ============================================================================

@pytest.fixture
def roster_file(tmp_path, raw_roster):
    path = tmp_path / 'roster.json'
    path.write_text(json.dumps(raw_roster), encoding='utf-8')
    return path


def test_cli_exports_csv(clean_env, tmp_path, roster_file, capsys):
    clean_env.chdir(tmp_path)
    out = tmp_path / 'roster.csv'

    assert main(['--roster', str(roster_file), '--csv', str(out), '--cohort', '--summary']) == 0

    frame = pd.read_csv(out)
    assert len(frame) == 6
    assert {'name', 'forty', 'grade_forty', 'overall_score', 'cohort_key'} <= set(frame.columns)
    assert 'ROSTER SUMMARY - 6 athletes' in capsys.readouterr().out


def test_cli_missing_roster(clean_env, tmp_path):
    clean_env.chdir(tmp_path)

    assert main(['--roster', str(tmp_path / 'missing.json')]) == 1


def test_cli_bad_roster_structure(clean_env, tmp_path):
    clean_env.chdir(tmp_path)
    path = tmp_path / 'roster.json'
    path.write_text('[1, 2, 3]', encoding='utf-8')

    assert main(['--roster', str(path)]) == 1


def test_cli_bad_standards_file(clean_env, tmp_path, roster_file):
    clean_env.chdir(tmp_path)
    standards = tmp_path / 'standards.json'
    standards.write_text('["not", "an", "object"]', encoding='utf-8')

    assert main(['--roster', str(roster_file), '--standards', str(standards)]) == 1


def test_cli_standards_override(clean_env, tmp_path, roster_file):
    clean_env.chdir(tmp_path)
    standards = tmp_path / 'standards.json'
    standards.write_text(json.dumps({'age_factors_speed': {'6': 0.8}}), encoding='utf-8')

    assert main(['--roster', str(roster_file), '--standards', str(standards), '--age-adjusted']) == 0


def test_cli_non_mapping_standards_group(clean_env, tmp_path, roster_file):
    clean_env.chdir(tmp_path)
    standards = tmp_path / 'standards.json'
    standards.write_text(json.dumps({'standards': {'Football': {'Skill': [1, 2, 3, 4]}}}), encoding='utf-8')

    assert main(['--roster', str(roster_file), '--standards', str(standards)]) == 1


def test_cli_unwritable_log_dir(clean_env, tmp_path, roster_file):
    clean_env.chdir(tmp_path)
    blocker = tmp_path / 'blocker.txt'
    blocker.write_text('not a directory', encoding='utf-8')
    clean_env.setenv('COMBINE_LOG_TO_FILE', '1')
    clean_env.setenv('COMBINE_LOG_DIR', str(blocker / 'logs'))

    assert main(['--roster', str(roster_file)]) == 1

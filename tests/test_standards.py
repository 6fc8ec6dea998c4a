"""Tests for the standards registry and position taxonomy."""

import pytest

from combine_engine.config import positions
from combine_engine.config.standards import (
    DEFAULT_REGISTRY,
    GRADE_METRICS,
    HS_STANDARDS,
    StandardsError,
    StandardsRegistry,
)


@pytest.mark.parametrize(
    ("position", "sport", "expected"),
    [
        ("WR", "Football", "Skill"),
        ("wr", "Football", "Skill"),
        (" te ", "Football", "Big Skill"),
        ("OL", "Football", "Linemen"),
        ("GK", "Soccer", "Physical"),
        ("ATK", "Soccer", "Speed"),
        ("P", "Baseball", "Battery"),
        ("Guard", "Basketball", "Guard"),
        ("K", "Football", "Other"),
        (None, "Football", "Other"),
        ("WR", "Lacrosse", "Other"),
        ("WR", None, "Skill"),
    ],
)
def test_position_group(position, sport, expected):
    assert positions.position_group(position, sport) == expected


def test_taxonomy_lookups():
    assert positions.sports() == ["Football", "Soccer", "Baseball", "Basketball"]
    assert positions.groups_for_sport("Soccer") == ["Speed", "Physical"]
    assert positions.groups_for_sport("Lacrosse") == []


def test_taxonomy_is_a_copy():
    tax = positions.taxonomy()
    tax["Football"]["groups"]["Skill"].append("K")

    assert "K" not in positions.SPORT_POSITIONS["Football"]["groups"]["Skill"]


def test_every_group_grades_every_metric():
    keys = {m.key for m in GRADE_METRICS}
    for sport, groups in HS_STANDARDS.items():
        assert set(groups) == set(positions.groups_for_sport(sport))
        for group, metrics in groups.items():
            assert set(metrics) == keys, f"{sport}/{group}"


def test_thresholds_ordered_best_first():
    for sport, groups in HS_STANDARDS.items():
        for group, metrics in groups.items():
            for metric, thresholds in metrics.items():
                if DEFAULT_REGISTRY.is_inverted(metric):
                    assert thresholds == sorted(thresholds), f"{sport}/{group}/{metric}"
                else:
                    assert thresholds == sorted(thresholds, reverse=True), f"{sport}/{group}/{metric}"


def test_registry_lookups():
    assert DEFAULT_REGISTRY.thresholds("Football", "Skill", "forty") == [4.75, 4.95, 5.15, 5.35]
    assert DEFAULT_REGISTRY.thresholds(None, "Skill", "forty") == [4.75, 4.95, 5.15, 5.35]
    assert DEFAULT_REGISTRY.thresholds("Football", "Other", "forty") is None
    assert DEFAULT_REGISTRY.thresholds("Curling", "Skill", "forty") is None
    assert DEFAULT_REGISTRY.thresholds("Football", "Skill", "pro_agility") is None
    assert DEFAULT_REGISTRY.is_inverted("forty") is True
    assert DEFAULT_REGISTRY.is_inverted("bench") is False
    assert DEFAULT_REGISTRY.metric_category("v10_max") == "topSpeed"
    assert DEFAULT_REGISTRY.metric_meta("unknown") is None


@pytest.mark.parametrize(
    ("grade", "inverted", "expected"),
    [
        (12, False, 1.0),
        (6, False, 0.58),
        (6, True, 0.84),
        (9, True, 0.92),
        (3, False, 0.58),
        (14, True, 1.0),
        (None, False, None),
    ],
)
def test_age_factor(grade, inverted, expected):
    assert DEFAULT_REGISTRY.age_factor(grade, inverted) == expected


@pytest.mark.parametrize(
    ("weight", "label"),
    [(120, "<140 lb"), (139.9, "<140 lb"), (140, "140-169 lb"), (199, "170-199 lb"),
     (240, "240+ lb"), (320, "240+ lb")],
)
def test_weight_tier_bands(weight, label):
    assert DEFAULT_REGISTRY.weight_tier(weight)["label"] == label


@pytest.mark.parametrize(
    ("height", "label"),
    [(60, "<66 in"), (66, "66-70 in"), (70.5, "66-70 in"), (71, "71-74 in"), (80, "75+ in")],
)
def test_height_tier_bands(height, label):
    assert DEFAULT_REGISTRY.height_tier(height)["label"] == label


@pytest.mark.parametrize(
    ("metric", "weight", "height", "expected"),
    [
        ("bench", 250, None, 1.15),
        ("rel_bench", 130, None, 1.12),
        ("vert", None, 77, 1.03),
        ("forty", None, 60, 1.02),
        ("v_max", None, 60, 0.97),
        ("bench", None, 70, 1.0),
        ("forty", 250, None, 1.0),
        ("unknown", 250, 70, 1.0),
    ],
)
def test_body_factor(metric, weight, height, expected):
    assert DEFAULT_REGISTRY.body_factor(metric, weight, height) == expected


def test_override_deep_merges_over_defaults():
    registry = StandardsRegistry({
        "age_factors_speed": {"6": 0.82},
        "standards": {"Football": {"Skill": {"forty": [4.6, 4.8, 5.0, 5.2]}}},
    })

    assert registry.age_factor(6, True) == 0.82
    assert registry.age_factor(7, True) == 0.865
    assert registry.thresholds("Football", "Skill", "forty") == [4.6, 4.8, 5.0, 5.2]
    assert registry.thresholds("Football", "Skill", "bench") == [205, 175, 145, 115]
    # Defaults are untouched
    assert DEFAULT_REGISTRY.thresholds("Football", "Skill", "forty") == [4.75, 4.95, 5.15, 5.35]


@pytest.mark.parametrize(
    "overrides",
    [
        {"standards": {"Football": {"Skill": {"forty": [4.7, 4.9]}}}},
        {"standards": {"Football": {"Skill": {"forty": ["fast", 4.9, 5.1, 5.3]}}}},
        {"standards": {"Football": 5}},
        {"age_factors_strength": {"six": 0.5}},
        {"weight_tiers": []},
        {"height_tiers": [{"label": "any", "max": 70, "jumpF": 1, "accelF": 1, "topSpeedF": 1}]},
        {"standards": {"Football": {"Skill": [1, 2, 3, 4]}}},
        {"standards": [1]},
        {"age_factors_speed": [0.8]},
        {"age_factors_strength": {"6": 10 ** 400}},
        {"weight_tiers": [
            {"label": "Light", "max": "heavy", "absF": 1, "relF": 1},
            {"label": "Heavy", "max": None, "absF": 1, "relF": 1},
        ]},
        {"weight_tiers": [{"label": "Any", "max": None, "absF": "big", "relF": 1}]},
        {"weight_tiers": ["Light", {"label": "Heavy", "max": None, "absF": 1, "relF": 1}]},
        [{"standards": {}}],
    ],
)
def test_invalid_override_raises(overrides):
    with pytest.raises(StandardsError):
        StandardsRegistry(overrides)


def test_as_dict_is_a_copy():
    tables = DEFAULT_REGISTRY.as_dict()
    tables["standards"]["Football"]["Skill"]["forty"][0] = 1.0

    assert DEFAULT_REGISTRY.thresholds("Football", "Skill", "forty")[0] == 4.75
    assert len(tables["meta"]) == 15

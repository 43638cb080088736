import pytest

from app.services.coaching.level import (
    classify_level,
    depth_range,
    merge_profile,
    parse_depth,
    profile_depth,
)


def test_instructor_is_expert():
    assert classify_level({"isInstructor": True, "pb": 20}) == "expert"


def test_deep_personal_best_is_expert():
    assert classify_level({"pb": 85}) == "expert"
    assert classify_level({"personalBestDepth": "95m"}) == "expert"


def test_eighty_meters_is_not_expert():
    assert classify_level({"pb": 80}) == "beginner"


def test_missing_or_malformed_profile_is_beginner():
    assert classify_level(None) == "beginner"
    assert classify_level({}) == "beginner"
    assert classify_level({"pb": "deep"}) == "beginner"
    assert classify_level({"pb": float("nan")}) == "beginner"


def test_instructor_flag_as_string():
    assert classify_level({"isInstructor": "true"}) == "expert"
    assert classify_level({"isInstructor": "false", "pb": 30}) == "beginner"


@pytest.mark.parametrize(
    "depth, expected",
    [
        (0, "10m"),
        (-5, "10m"),
        (5, "10m"),
        (47, "40m"),
        (100, "100m"),
        (105, "100m"),
        ("63m", "60m"),
        (None, "10m"),
        ("abc", "10m"),
    ],
)
def test_depth_range(depth, expected):
    assert depth_range(depth) == expected


def test_profile_depth_prefers_personal_best():
    assert profile_depth({"pb": 47, "currentDepth": 30}) == 47
    assert profile_depth({"currentDepth": 30}) == 30
    assert profile_depth({}) == 10


def test_merge_profile_supplied_fields_win():
    stored = {"pb": 40, "name": "Ana"}
    merged = merge_profile(stored, {"pb": 55})
    assert merged == {"pb": 55, "name": "Ana"}
    assert stored["pb"] == 40


def test_parse_depth_ignores_booleans():
    assert parse_depth(True) is None
    assert parse_depth("85.5 meters") == 85.5

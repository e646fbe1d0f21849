# tests/parsers/test_fields.py
from __future__ import annotations

import math

import pytest

from allocprep.parsers.fields import (
    is_valid_json_text,
    matches_phase_range,
    normalize_preferred_phases,
    parse_json_array_of_positive_ints,
    parse_leading_int,
    parse_strict_positive_int_array,
    split_tokens,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("{}", True),
        ('{"vip": true}', True),
        ("[1, 2]", True),
        ("42", True),
        ("null", True),
        ("{bad json", False),
        ("", False),
        ("NaN", False),
        ("[Infinity]", False),
        (None, False),
        (5, False),
    ],
)
def test_is_valid_json_text(raw, expected) -> None:
    """
    @brief
    JSON validity is strict and never raises.

    @details
    Non-standard constants are rejected and non-string input is invalid.
    """
    assert is_valid_json_text(raw) is expected


def test_lenient_array_drops_bad_elements() -> None:
    # --- Act ---
    phases = parse_json_array_of_positive_ints('[1, "x", 0, 2.0, 2.5, true, 3]')

    # --- Assert ---
    assert phases == [1, 2, 2.5, 3]
    assert [type(p) for p in phases] == [int, int, float, int]


@pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "3", None])
def test_lenient_array_rejects_non_arrays(raw) -> None:
    assert parse_json_array_of_positive_ints(raw) is None


def test_lenient_array_empty() -> None:
    assert parse_json_array_of_positive_ints("[]") == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("[1,2,3]", [1, 2, 3]),
        ("[]", []),
        ("[4.0]", [4]),
        ('[1,2,"x"]', None),
        ("[1,2,abc]", None),
        ("[0]", None),
        ("[-1]", None),
        ("[true]", None),
        ("[1e400]", [math.inf]),
        ("[1.5, 2]", [1.5, 2]),
        ("[0.5]", None),
        ("1,2", None),
    ],
)
def test_strict_array(raw, expected) -> None:
    """
    @brief
    A single non-phase element invalidates the whole strict parse.
    """
    assert parse_strict_positive_int_array(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1-3", True),
        ("10-2", True),
        ("1-", False),
        (" 1-3", False),
        ("1-3 ", False),
        ("a-b", False),
        ("1-3-5", False),
        ("١-٣", False),  # non-ASCII digits
        (None, False),
    ],
)
def test_matches_phase_range(raw, expected) -> None:
    assert matches_phase_range(raw) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3", 3),
        (" 7 ", 7),
        ("3.7", 3),
        ("-2", -2),
        ("+4", 4),
        ("12abc", 12),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        (5, 5),
        (4.0, 4),
        (float("nan"), None),
    ],
)
def test_parse_leading_int(raw, expected) -> None:
    assert parse_leading_int(raw) == expected


def test_split_tokens_trims_and_drops_empty() -> None:
    assert split_tokens(" a , b,,c , ") == ["a", "b", "c"]
    assert split_tokens("") == []
    assert split_tokens(None) == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("[1,3]", [1, 3]),
        ("[1, 2.0, 2.5, \"x\"]", [1, 2, 2.5]),
        ("2-4", [2, 3, 4]),
        (" 2-4 ", [2]),  # not an exact range: leading integer of the token
        ("4-2", []),
        ("3-3", [3]),
        ("1, 3, x, 5", [1, 3, 5]),
        ("5", []),  # JSON, but not an array
        ("-3", []),
        ('{"a": 1}', []),
        ("", []),
        ("phase one", []),
        (None, []),
    ],
)
def test_normalize_preferred_phases(raw, expected) -> None:
    """
    @brief
    PreferredPhases normalization accepts JSON arrays, ranges and comma lists.

    @details
    Anything unrecognized normalizes to an empty list instead of raising.
    """
    assert normalize_preferred_phases(raw) == expected

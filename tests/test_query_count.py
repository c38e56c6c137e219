"""
Tests for requested result count extraction.
"""

import pytest

from talentrank.ranking.query import (
    CountPolicy,
    extract_requested_count,
    resolve_requested_count,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("show me top 12 candidates", 12),
        ("find candidates", 5),
        ("Give me 7 resumes for a backend role", 7),
        ("I need 3 resumes for a python role", 3),
        ("list the first 4", 4),
        ("", 5),
    ],
)
def test_extracts_count(text, expected):
    assert extract_requested_count(text) == expected


def test_out_of_range_falls_back_to_default():
    assert extract_requested_count("top 500") == 5
    assert extract_requested_count("top 0") == 5


def test_out_of_range_is_clamped_under_clamp_policy():
    assert extract_requested_count("top 500", CountPolicy.CLAMP) == 50
    assert extract_requested_count("top 0", CountPolicy.CLAMP) == 1


def test_out_of_range_match_does_not_hide_later_request():
    assert extract_requested_count("top 500 and show 8") == 8


def test_hint_wins_over_text():
    assert resolve_requested_count(20, "top 3") == 20


def test_hint_goes_through_policy():
    assert resolve_requested_count(80, "top 3") == 5
    assert resolve_requested_count(80, "top 3", CountPolicy.CLAMP) == 50


def test_no_hint_reads_text():
    assert resolve_requested_count(None, "top 3") == 3

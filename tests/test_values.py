"""
Tests for answer-value extraction (core.values).

Coercion never raises: unreadable values count as absent.
"""

from __future__ import annotations

from marketing_engine.core.values import (
    clamp,
    first_present,
    get_bool,
    get_list,
    get_number,
    get_numeric,
    get_scale,
    get_str,
    round_half_up,
    round_int,
    safe_ratio,
)

# --- Booleans ---


def test_get_bool_truthy_tokens():
    for value in ("yes", "YES", " true ", "1", "نعم", True, 1):
        assert get_bool({"k": value}, "k") is True


def test_get_bool_everything_else_is_false():
    for value in ("no", "false", "0", "", None, False, 0, 2, "maybe", ["yes"]):
        assert get_bool({"k": value}, "k") is False
    assert get_bool({}, "k") is False


# --- Numbers ---


def test_get_numeric_accepts_numbers_and_numeric_strings():
    assert get_numeric({"k": 5}, "k") == 5.0
    assert get_numeric({"k": "7.5"}, "k") == 7.5
    assert get_numeric({"k": "1,200"}, "k") == 1200.0


def test_get_numeric_absent_for_garbage():
    for value in ("", "abc", None, True, [1], {"a": 1}, float("nan"), float("inf")):
        assert get_numeric({"k": value}, "k") is None


def test_aliases_first_present_wins():
    answers = {"cac": 100, "customer_acquisition_cost": ""}
    assert get_numeric(answers, "customer_acquisition_cost", "cac") == 100.0
    assert first_present({"a": None, "b": 0}, "a", "b") == 0


def test_get_number_default():
    assert get_number({}, "k", 5.0) == 5.0
    assert get_number({"k": "x"}, "k", 5.0) == 5.0
    assert get_number({"alias": 3}, "k", 5.0, "alias") == 3.0


# --- Scales ---


def test_get_scale_points():
    assert get_scale({"k": 10}, "k", 20) == 20
    assert get_scale({"k": 5}, "k", 15) == 8  # 7.5 rounds half up
    assert get_scale({"k": 15}, "k", 20) == 20
    assert get_scale({"k": -3}, "k", 20) == 0


def test_get_scale_missing_is_zero_even_inverted():
    assert get_scale({}, "k", 30) == 0
    assert get_scale({}, "k", 30, invert=True) == 0


def test_get_scale_inverted():
    assert get_scale({"k": 0}, "k", 3, invert=True) == 3
    assert get_scale({"k": 10}, "k", 3, invert=True) == 0


# --- Strings and lists ---


def test_get_str_normalizes():
    assert get_str({"k": "  Retail "}, "k") == "retail"
    assert get_str({"k": 3.0}, "k") == "3"
    assert get_str({"k": True}, "k") == "yes"
    assert get_str({"k": ["a"]}, "k") is None
    assert get_str({}, "k", default="general") == "general"


def test_get_list():
    assert get_list({"k": ["a", " b ", ""]}, "k") == ["a", "b"]
    assert get_list({"k": "a, b,,c"}, "k") == ["a", "b", "c"]
    assert get_list({"k": 5}, "k") == []
    assert get_list({}, "k") == []


# --- Arithmetic ---


def test_safe_ratio_guards_denominator():
    assert safe_ratio(1, 4) == 0.25
    assert safe_ratio(1, 0) is None
    assert safe_ratio(1, -2) is None
    assert safe_ratio(None, 2) is None
    assert safe_ratio(1, None) is None


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -3
    assert round_half_up(0.125, 2) == 0.13
    assert round_int(13.5) == 14


def test_clamp():
    assert clamp(150) == 100
    assert clamp(-1) == 0
    assert clamp(0.5, 0.0, 1.0) == 0.5

"""
Tests for pattern detection (red flags, green flags, anomalies), rule isolation
and condition matching.
"""

from __future__ import annotations

import pytest

from marketing_engine.analysis.patterns import (
    ACTION_INVESTIGATE,
    ACTION_VERIFY_DATA,
    Condition,
    FlagKind,
    detect_patterns,
    evaluate_condition,
    match_conditions,
    run_rules,
)

# --- Profiles ---


def test_struggling_retail_red_flags(struggling_retail):
    report = detect_patterns(struggling_retail)
    red = {f.code for f in report.red_flags}
    assert "declining_revenue" in red
    assert "no_website" in red
    # Margin of exactly 5% is not below the threshold
    assert "low_profit_margin" not in red
    assert report.green_flags == []


def test_healthy_saas_green_flags(healthy_saas):
    report = detect_patterns(healthy_saas)
    green = {f.code for f in report.green_flags}
    assert {"growing_revenue", "high_satisfaction", "high_nps"} <= green
    assert report.red_flags == []
    assert all(f.kind is FlagKind.GREEN for f in report.green_flags)


def test_empty_answers_only_flag_missing_website(empty_answers):
    report = detect_patterns(empty_answers)
    assert report.codes() == {"no_website"}


# --- Individual rules ---


def test_low_margin_and_high_churn():
    report = detect_patterns({"profit_margin": "3", "churn_rate": 45, "has_website": "yes"})
    red = {f.code: f for f in report.red_flags}
    assert set(red) == {"low_profit_margin", "high_churn"}
    assert red["high_churn"].details["churn_rate"] == 45.0


def test_excessive_budget_percent():
    report = detect_patterns({"marketing_budget_percent": 41, "has_website": True})
    assert [f.code for f in report.red_flags] == ["excessive_budget"]
    report = detect_patterns({"marketing_budget_percent": 40, "has_website": True})
    assert report.red_flags == []


def test_excessive_budget_from_monthly_budget_and_revenue():
    report = detect_patterns({"marketing_budget": 50_000, "annual_revenue": 1_000_000, "has_website": True})
    red = {f.code: f for f in report.red_flags}
    assert "excessive_budget" in red
    assert red["excessive_budget"].details["marketing_budget_percent"] == pytest.approx(60.0)
    report = detect_patterns({"marketing_budget": 1_000, "annual_revenue": 1_000_000, "has_website": True})
    assert "excessive_budget" not in report.codes()


def test_no_differentiation_needs_very_high_competition():
    answers = {"competition_level": "very_high", "differentiation": 2, "has_website": "yes"}
    assert "no_differentiation" in detect_patterns(answers).codes()
    answers["competition_level"] = "high"
    assert "no_differentiation" not in detect_patterns(answers).codes()


def test_data_driven_green_flag():
    assert "data_driven" in detect_patterns({"data_driven_decisions": "always"}).codes()
    assert "data_driven" in detect_patterns({"data_driven_decisions": "yes"}).codes()
    assert "data_driven" not in detect_patterns({"data_driven_decisions": "sometimes"}).codes()


# --- Anomalies ---


def test_revenue_per_employee_needs_headcount():
    report = detect_patterns({"annual_revenue": 50_000_000, "has_website": "yes"})
    assert report.anomalies == []


def test_revenue_per_employee_too_high():
    report = detect_patterns({"annual_revenue": 50_000_000, "employee_count": 5, "has_website": "yes"})
    assert len(report.anomalies) == 1
    anomaly = report.anomalies[0]
    assert anomaly.code == "high_revenue_per_employee"
    assert anomaly.action == ACTION_VERIFY_DATA
    assert anomaly.details["revenue_per_employee"] == 10_000_000


def test_revenue_per_employee_too_low():
    report = detect_patterns({"annual_revenue": 100_000, "employee_count": 10, "has_website": "yes"})
    assert [a.code for a in report.anomalies] == ["low_revenue_per_employee"]
    assert report.anomalies[0].action == ACTION_INVESTIGATE


def test_report_to_dict_shape(struggling_retail):
    data = detect_patterns(struggling_retail).to_dict()
    assert set(data) == {"red_flags", "green_flags", "anomalies"}
    flag = data["red_flags"][0]
    assert {"flag", "kind", "message", "rule_name", "severity"} <= set(flag)
    assert "impact" not in flag


# --- Rule isolation ---


def test_run_rules_skips_failing_rule():
    def boom(answers):
        raise KeyError("missing")

    def ok(answers):
        return "hit"

    def miss(answers):
        return None

    assert run_rules([boom, ok, miss], {}, component="test") == ["hit"]


# --- Conditions ---


def test_condition_operators():
    answers = {"sector": "Retail", "budget": "1,500", "channels": 3}
    assert evaluate_condition(answers, Condition("sector", "==", "retail"))
    assert evaluate_condition(answers, Condition("sector", "!=", "saas"))
    assert evaluate_condition(answers, Condition("sector", "in", ["fnb", "retail"]))
    assert evaluate_condition(answers, Condition("budget", ">", 1000))
    assert evaluate_condition(answers, Condition("channels", "<=", 3))
    assert not evaluate_condition(answers, Condition("channels", "<", 3))


def test_condition_absent_or_non_numeric_never_matches():
    answers = {"sector": "retail"}
    assert not evaluate_condition(answers, Condition("budget", ">", 0))
    assert not evaluate_condition(answers, Condition("sector", ">", 0))
    assert not evaluate_condition(answers, Condition("missing", "==", "x"))
    assert not evaluate_condition(answers, Condition("sector", "~=", "retail"))


def test_match_conditions_is_conjunction():
    answers = {"revenue_trend": "declining", "digital_score": 10}
    conditions = [Condition("revenue_trend", "==", "declining"), Condition("digital_score", "<", 20)]
    assert match_conditions(answers, conditions)
    assert not match_conditions({"revenue_trend": "declining", "digital_score": 30}, conditions)


def test_empty_condition_list_never_matches():
    assert not match_conditions({"anything": 1}, [])

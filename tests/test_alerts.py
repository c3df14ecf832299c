"""
Tests for the alert evaluator: tiers, urgencies, ordering, sector
resolution, threshold overrides and rule isolation.
"""

from __future__ import annotations

from unittest.mock import patch

from marketing_engine.alerts import AlertConfig, alert_summary, evaluate_alerts
from marketing_engine.alerts import engine as alert_engine
from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import AlertTier
from marketing_engine.analysis.scoring import calculate_scores

MID = {"digital": 50, "marketing": 50, "organizational": 50, "risk": 30, "opportunity": 50, "overall": 60}
# Answers that keep every warning and opportunity rule quiet
QUIET = {
    "has_website": "yes",
    "has_marketing_plan": "yes",
    "tracks_kpis": "yes",
    "regular_reporting": "yes",
    "uses_google_ads": "yes",
    "email_campaigns": "yes",
    "active_platforms_count": 4,
}


def _rules(alerts):
    return [a.rule_name for a in alerts]


# --- Profiles ---


def test_struggling_retail_alerts(struggling_retail):
    alerts = evaluate_alerts(struggling_retail, calculate_scores(struggling_retail))
    assert _rules(alerts)[:6] == [
        "crisis",
        "no_digital_presence",
        "revenue_decline",
        "cac_above_ltv",
        "low_retention",
        "no_strategy",
    ]
    assert [a.urgency_score for a in alerts[:4]] == [98, 95, 90, 88]
    summary = alert_summary(alerts)
    assert summary["by_tier"]["critical"] == 4
    assert summary["max_urgency"] == 98


def test_healthy_saas_only_market_gaps(healthy_saas):
    alerts = evaluate_alerts(healthy_saas, calculate_scores(healthy_saas))
    assert _rules(alerts) == ["market_gaps"]
    assert alerts[0].tier is AlertTier.OPPORTUNITY
    assert alerts[0].urgency_score == 58


def test_alerts_sorted_by_urgency(struggling_retail):
    alerts = evaluate_alerts(struggling_retail, calculate_scores(struggling_retail))
    urgencies = [a.urgency_score for a in alerts]
    assert urgencies == sorted(urgencies, reverse=True)
    assert all(0 <= u <= 100 for u in urgencies)


# --- Critical ---


def test_cac_above_ltv_is_critical():
    alerts = evaluate_alerts({**QUIET, "customer_acquisition_cost": 500, "customer_lifetime_value": 300}, MID)
    assert _rules(alerts) == ["cac_above_ltv"]
    assert alerts[0].tier is AlertTier.CRITICAL
    assert "1.7" in alerts[0].description


def test_cac_needs_both_values():
    assert evaluate_alerts({**QUIET, "customer_acquisition_cost": 500}, MID) == []


def test_no_digital_presence_in_dependent_sector():
    answers = {**QUIET, "has_website": "no"}
    scores = {**MID, "digital": 10}
    assert evaluate_alerts(answers, scores) == []
    alerts = evaluate_alerts(answers, scores, AssessmentContext(sector="retail"))
    assert _rules(alerts) == ["no_digital_presence"]
    assert alerts[0].urgency_score == 95
    # An explicit context sector wins over the sector answer
    alerts = evaluate_alerts({**answers, "sector": "saas"}, scores, AssessmentContext(sector="retail"))
    assert _rules(alerts) == ["no_digital_presence"]
    assert evaluate_alerts({**answers, "sector": "retail"}, scores, AssessmentContext()) != []


def test_untracked_spend():
    alerts = evaluate_alerts({**QUIET, "marketing_budget": 15_000}, MID)
    assert _rules(alerts) == ["untracked_spend"]
    assert evaluate_alerts({**QUIET, "marketing_budget": 15_000, "uses_analytics": "yes"}, MID) == []


def test_sharp_revenue_drop_by_growth_rate():
    assert _rules(evaluate_alerts({**QUIET, "revenue_growth_rate": -25}, MID)) == ["revenue_decline"]
    assert evaluate_alerts({**QUIET, "revenue_growth_rate": -10}, MID) == []


# --- High ---


def test_low_retention_by_churn():
    alerts = evaluate_alerts({**QUIET, "churn_rate": 35}, MID)
    assert _rules(alerts) == ["low_retention"]
    assert alerts[0].tier is AlertTier.HIGH


def test_unsustainable_budget():
    alerts = evaluate_alerts({**QUIET, "marketing_budget": 5_000, "annual_revenue": 100_000, "uses_analytics": 1}, MID)
    assert _rules(alerts) == ["unsustainable_budget"]
    assert "60.0%" in alerts[0].description


# --- Warning and opportunity ---


def test_digital_gap():
    alerts = evaluate_alerts(QUIET, {**MID, "digital": 30, "marketing": 70})
    assert _rules(alerts) == ["digital_gap"]


def test_referral_potential():
    alerts = evaluate_alerts({**QUIET, "customer_satisfaction": 9, "referral_rate": 20, "nps_score": 10}, MID)
    assert _rules(alerts) == ["referral_potential"]


def test_hidden_product():
    alerts = evaluate_alerts({**QUIET, "product_quality": 9}, {**MID, "marketing": 30})
    assert _rules(alerts) == ["hidden_product"]


def test_empty_answers_never_raise(empty_answers):
    alerts = evaluate_alerts(empty_answers, {})
    rules = set(_rules(alerts))
    assert {"no_strategy", "limited_analytics", "unused_channels"} <= rules
    assert "crisis" not in rules


# --- Config and isolation ---


def test_config_override():
    answers = {**QUIET, "churn_rate": 35}
    assert evaluate_alerts(answers, MID, config=AlertConfig(churn_high_above=40)) == []


def test_failing_rule_is_skipped(struggling_retail):
    scores = calculate_scores(struggling_retail)
    with patch.object(alert_engine, "get_bool", side_effect=ValueError("bad value")):
        alerts = evaluate_alerts(struggling_retail, scores)
    rules = set(_rules(alerts))
    assert "no_digital_presence" not in rules
    assert {"crisis", "revenue_decline", "cac_above_ltv"} <= rules


def test_summary_counts_every_tier():
    summary = alert_summary([])
    assert summary == {
        "total": 0,
        "by_tier": {"critical": 0, "high": 0, "warning": 0, "opportunity": 0},
        "max_urgency": 0,
    }

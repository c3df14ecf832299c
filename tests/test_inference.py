"""
Tests for the inference step: plan classification, playbook matching,
outcome predictions and scenario projections.
"""

from __future__ import annotations

import pytest

from marketing_engine.analysis.inference import (
    classify_plan_type,
    match_playbooks,
    predict_outcomes,
    project_scenarios,
    run_inference,
)
from marketing_engine.analysis.models import PlanType
from marketing_engine.analysis.scoring import calculate_scores

# --- Plan type ---


@pytest.mark.parametrize(
    "overall,risk,expected",
    [
        (15, 80, PlanType.EMERGENCY),
        (50, 71, PlanType.EMERGENCY),
        (19, 10, PlanType.EMERGENCY),
        (35, 30, PlanType.TREATMENT),
        (60, 30, PlanType.GROWTH),
        (85, 10, PlanType.TRANSFORMATION),
        (70, 70, PlanType.TRANSFORMATION),
    ],
)
def test_classify_plan_type(overall, risk, expected):
    assert classify_plan_type(overall, risk) is expected


# --- Playbooks ---


def test_struggling_retail_is_critical_stage(struggling_retail):
    scores = calculate_scores(struggling_retail).as_map()
    report = run_inference(struggling_retail, scores)
    assert "INF_001" in report.match_ids()
    match = report.matches[0]
    assert match.confidence == 0.90
    assert match.plan_type is PlanType.EMERGENCY
    assert report.plan_type is PlanType.EMERGENCY


def test_explicit_digital_maturity_answer_wins():
    answers = {"revenue_trend": "declining", "competition_level": "high", "digital_maturity_score": 50}
    assert match_playbooks(answers, {"digital": 10}) == []
    del answers["digital_maturity_score"]
    assert [m.pattern_id for m in match_playbooks(answers, {"digital": 10})] == ["INF_001"]


def test_untapped_growth_playbook():
    answers = {"revenue_trend": "growing", "marketing_budget_percent": 3, "customer_satisfaction": 8}
    assert [m.pattern_id for m in match_playbooks(answers, {})] == ["INF_002"]


def test_untapped_growth_playbook_from_derived_budget_share():
    answers = {"revenue_trend": "growing", "marketing_budget": 1_000, "annual_revenue": 600_000, "customer_satisfaction": 8}
    assert "INF_002" in [m.pattern_id for m in match_playbooks(answers, {})]
    answers["marketing_budget"] = 5_000
    assert "INF_002" not in [m.pattern_id for m in match_playbooks(answers, {})]


def test_transformation_playbook_reads_formatted_revenue():
    answers = {"annual_revenue": "2,000,000", "employee_count": 10, "leadership_support": 8}
    matches = match_playbooks(answers, {"digital": 20})
    assert [m.pattern_id for m in matches] == ["INF_003"]
    assert matches[0].experts == ["digital_marketing_expert", "operations_expert", "data_scientist"]


def test_brand_building_playbook():
    answers = {"brand_awareness": 2, "product_quality": 9, "years_in_business": 1}
    assert [m.pattern_id for m in match_playbooks(answers, {})] == ["INF_004"]


def test_empty_answers_match_nothing(empty_answers):
    assert match_playbooks(empty_answers, {}) == []


# --- Predictions and scenarios ---


def test_predictions_default_to_midpoint():
    predictions = predict_outcomes({})
    assert predictions["revenue_forecast"]["6_months_change_pct"] == 0.0
    assert predictions["revenue_forecast"]["confidence"] == 0.7
    assert predictions["risk_without_action"]["6_months"] == "Limited risk"
    assert predictions["improvement_potential"] == {"expected_score_with_plan": 75, "timeline": "3-6 months"}


def test_predictions_flag_serious_risk():
    predictions = predict_outcomes({"overall": 20, "risk": 80, "opportunity": 10})
    assert predictions["risk_without_action"]["12_months"] == "Threat to business continuity"
    assert predictions["revenue_forecast"]["6_months_change_pct"] < 0
    assert predictions["improvement_potential"]["timeline"] == "6-12 months"


def test_scenarios_are_capped_at_100():
    scenarios = {s.key: s for s in project_scenarios({"overall": 90})}
    assert scenarios["conservative"].projections == [90, 93, 95, 97, 100]
    assert scenarios["aggressive"].projections == [90, 98, 100, 100, 100]
    assert all(p <= 100 for s in scenarios.values() for p in s.projections)


def test_report_to_dict(struggling_retail):
    report = run_inference(struggling_retail, calculate_scores(struggling_retail).as_map())
    data = report.to_dict()
    assert data["recommended_plan"] == "emergency"
    assert set(data["scenarios"]) == {"conservative", "moderate", "aggressive"}
    assert data["patterns"][0]["id"] == "INF_001"
    assert data["insights"][-1]["title"] == "Recommended plan type"

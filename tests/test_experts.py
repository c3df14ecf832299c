"""
Tests for the expert helpers, the specialists' output contract, the
financial analyst's red flags and the chief strategist's synthesis.
"""

from __future__ import annotations

import pytest

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.scoring import calculate_scores
from marketing_engine.experts import Expert, calculate_confidence, default_specialists, normalize_score, score_label
from marketing_engine.experts.chief_strategist import (
    ChiefStrategist,
    business_health,
    dimension_scores,
    focus_pillars,
    risk_dimension,
    set_priorities,
)
from marketing_engine.experts.financial_analyst import FinancialAnalyst
from marketing_engine.experts.panel import HEADLINE_SCORES

# --- Helpers ---


def test_confidence_empty_is_zero():
    assert calculate_confidence({}) == 0.0
    assert calculate_confidence({"a": None, "b": ""}) == 0.0


def test_confidence_complete_and_consistent():
    assert calculate_confidence({"a": 5, "b": 5}) == 1.0


def test_confidence_partial():
    # 0.7 x 0.5 completeness + 0.3 x 1.0 consistency
    assert calculate_confidence({"a": 5, "b": None}) == 0.65


def test_confidence_penalises_spread():
    spread = calculate_confidence({"a": 1, "b": 1000})
    assert 0.0 <= spread < 1.0
    assert spread >= 0.7 + 0.3 * 0.5


def test_normalize_score():
    assert normalize_score(5, 0, 10) == 50.0
    assert normalize_score(15, 0, 10) == 100.0
    assert normalize_score(-1, 0, 10) == 0.0
    assert normalize_score(3, 3, 3) == 50.0


@pytest.mark.parametrize(
    "score,label",
    [(95, "excellent"), (75, "very good"), (60, "good"), (40, "average"), (20, "weak"), (19.9, "critical")],
)
def test_score_label(score, label):
    assert score_label(score) == label


# --- Specialist contract ---


@pytest.mark.parametrize("profile", ["healthy_saas", "struggling_retail", "empty_answers"])
def test_specialists_output_contract(profile, request):
    answers = request.getfixturevalue(profile)
    context = AssessmentContext(sector=answers.get("sector", "general"))
    scores = calculate_scores(answers).as_map()
    headline = {expert_id: name for expert_id, name in HEADLINE_SCORES.values()}
    for expert in default_specialists():
        assert isinstance(expert, Expert)
        result = expert.analyze(answers, context, scores)
        assert result.expert_id == expert.expert_id
        assert result.decision_weight == expert.decision_weight
        assert 0.0 <= result.confidence <= 1.0
        assert 0.0 <= result.scores[headline[expert.expert_id]] <= 100.0
        assert all(0.0 <= i.confidence <= 1.0 for i in result.insights)
        assert all(r.source == expert.expert_id for r in result.recommendations)


def test_specialists_do_not_modify_shared_scores(healthy_saas):
    scores = calculate_scores(healthy_saas).as_map()
    before = dict(scores)
    for expert in default_specialists():
        expert.analyze(healthy_saas, AssessmentContext(sector="saas"), scores)
    assert scores == before


def test_empty_answers_give_low_confidence(empty_answers):
    result = FinancialAnalyst().analyze(empty_answers, AssessmentContext(), {})
    assert result.confidence == 0.0


# --- Financial analyst ---


def test_financial_red_flags(struggling_retail):
    result = FinancialAnalyst().analyze(struggling_retail, AssessmentContext(sector="retail"), {})
    titles = [f["title"] for f in result.sections["red_flags"]]
    assert "Acquisition cost exceeds customer value" in titles
    assert "Negative cash flow" in titles
    assert "Declining revenue" in titles
    assert "Excessive marketing spend" not in titles
    assert result.scores["red_flag_count"] == 3
    assert result.recommendations[0].title == "Address critical financial indicators"


def test_financial_excessive_budget_flag():
    answers = {"marketing_budget": 10_000, "annual_revenue": 300_000}
    result = FinancialAnalyst().analyze(answers, AssessmentContext(), {})
    assert [f["title"] for f in result.sections["red_flags"]] == ["Excessive marketing spend"]


def test_financial_healthy_business(healthy_saas):
    result = FinancialAnalyst().analyze(healthy_saas, AssessmentContext(sector="saas"), {})
    assert result.sections["red_flags"] == []
    assert result.scores["financial_health"] >= 70
    assert result.sections["budget_recommendations"]["ideal_percent"] == 15


# --- Chief strategist ---

SHARED = {"financial": 20, "market": 30, "digital": 40, "brand": 50, "operations": 60, "innovation": 70, "risk": 40}


def test_risk_dimension_prefers_published_preparedness():
    assert risk_dimension({"risk": 40}) == 60
    assert risk_dimension({"risk": 40, "risk_preparedness": 75}) == 75
    assert risk_dimension({}) == 50


def test_business_health_weighted():
    assert business_health(dimension_scores(SHARED)) == 40.5


def test_missing_dimensions_default_to_midpoint():
    dims = dimension_scores({})
    assert set(dims.values()) == {50.0}
    assert business_health(dims) == 50.0


def test_focus_pillars_are_three_weakest():
    pillars = focus_pillars(dimension_scores(SHARED))
    assert [p["dimension"] for p in pillars] == ["financial", "market", "digital"]
    assert pillars[0]["target"] == 45


def test_priorities_ranked_with_urgency():
    priorities = set_priorities(dimension_scores(SHARED))
    assert [p["rank"] for p in priorities] == list(range(1, len(priorities) + 1))
    assert priorities[0]["urgency"] == "urgent"
    assert all(p["score"] < 70 for p in priorities)


def test_chief_verdict_sections():
    result = ChiefStrategist().analyze({}, AssessmentContext(sector="retail", company_name="Acme"), SHARED)
    assert result.scores["overall_health"] == 40.5
    assert result.sections["plan_type"]["key"] == "growth"
    assert "Acme" in result.sections["executive_summary"]["summary_text"]
    assert result.recommendations[0].title == "Execute the growth plan"

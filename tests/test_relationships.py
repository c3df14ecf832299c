"""
Tests for cross-field relationship checks: consistency violations,
contradictions, opportunities and the budget-share insight.
"""

from __future__ import annotations

from marketing_engine.analysis.relationships import (
    STATUS_HEALTHY,
    STATUS_LOW_INVESTMENT,
    STATUS_WARNING,
    FindingKind,
    budget_share_insight,
    check_relationships,
)
from marketing_engine.analysis.scoring import calculate_scores

# --- Profiles ---


def test_struggling_retail_findings(struggling_retail):
    scores = calculate_scores(struggling_retail).as_map()
    report = check_relationships(struggling_retail, scores)
    ids = report.rule_ids()
    assert "RULE_002" in ids
    assert "RULE_004" in ids
    # 12k yearly budget on 200k revenue is within bounds
    assert "RULE_001" not in ids
    cac = next(f for f in report.violations if f.rule_id == "RULE_002")
    assert cac.kind is FindingKind.VIOLATION
    assert cac.expert == "financial_analyst"


def test_healthy_saas_is_consistent(healthy_saas):
    report = check_relationships(healthy_saas, calculate_scores(healthy_saas).as_map())
    assert report.rule_ids() == set()
    assert report.insights[0]["status"] == STATUS_HEALTHY
    assert report.insights[0]["budget_percent"] == 12.0


def test_empty_answers_have_no_findings(empty_answers):
    report = check_relationships(empty_answers)
    assert report.rule_ids() == set()
    assert report.insights == []


# --- Consistency ---


def test_budget_above_revenue_share():
    report = check_relationships({"marketing_budget": 10_000, "annual_revenue": 300_000})
    assert [f.rule_id for f in report.violations] == ["RULE_001"]
    assert report.violations[0].details["ratio"] == 0.4


def test_low_revenue_per_head():
    report = check_relationships({"annual_revenue": 300_000, "employee_count": 10})
    assert [f.rule_id for f in report.violations] == ["RULE_003"]
    assert report.violations[0].expert == "operations_expert"


def test_digital_first_sector_uses_scores_then_answer():
    answers = {"sector": "retail"}
    assert "RULE_004" not in check_relationships(answers).rule_ids()
    assert "RULE_004" in check_relationships(answers, {"digital": 10}).rule_ids()
    answers["digital_maturity_score"] = 45
    assert "RULE_004" not in check_relationships(answers, {"digital": 10}).rule_ids()
    assert "RULE_004" not in check_relationships({"sector": "saas"}, {"digital": 10}).rule_ids()


# --- Contradictions ---


def test_claims_growth_while_declining():
    report = check_relationships({"business_growth_assessment": "Growing", "revenue_trend": "declining"})
    assert [f.rule_id for f in report.contradictions] == ["CONTRA_001"]
    assert report.contradictions[0].action == "request_clarification"


def test_low_competition_with_many_competitors():
    report = check_relationships({"competition_level": "low", "competitor_count": 15})
    assert [f.rule_id for f in report.contradictions] == ["CONTRA_002"]
    report = check_relationships({"competition_level": "low", "competitor_count": 10})
    assert report.contradictions == []


def test_satisfied_but_churning():
    report = check_relationships({"customer_satisfaction": 9, "churn_rate": 25})
    assert "CONTRA_003" in report.rule_ids()
    assert "CONTRA_003" not in check_relationships({"customer_satisfaction": 9}).rule_ids()


# --- Opportunities ---


def test_underused_budget_while_growing():
    answers = {"marketing_budget": 1_000, "marketing_budget_spent": 300, "revenue_trend": "growing"}
    assert "OPP_001" in check_relationships(answers).rule_ids()
    answers["marketing_budget_spent"] = 600
    assert "OPP_001" not in check_relationships(answers).rule_ids()


def test_satisfied_customers_low_awareness():
    assert "OPP_002" in check_relationships({"customer_satisfaction": 9, "brand_awareness": 2}).rule_ids()
    # Unknown awareness is treated as average
    assert "OPP_002" not in check_relationships({"customer_satisfaction": 9}).rule_ids()


def test_offline_in_growing_market():
    report = check_relationships({"has_website": "no", "market_trend": "growing"})
    assert [f.rule_id for f in report.opportunities] == ["OPP_003"]
    assert report.opportunities[0].kind is FindingKind.OPPORTUNITY


# --- Budget share ---


def test_budget_share_statuses():
    assert budget_share_insight({"marketing_budget": 5_000, "annual_revenue": 300_000})["status"] == STATUS_WARNING
    assert budget_share_insight({"marketing_budget": 200, "annual_revenue": 300_000})["status"] == STATUS_LOW_INVESTMENT
    assert budget_share_insight({"marketing_budget": 2_000, "annual_revenue": 300_000})["status"] == STATUS_HEALTHY


def test_budget_share_needs_positive_budget_and_revenue():
    assert budget_share_insight({"marketing_budget": 0, "annual_revenue": 300_000}) is None
    assert budget_share_insight({"marketing_budget": 1_000}) is None
    assert budget_share_insight({"marketing_budget": 1_000, "annual_revenue": 0}) is None


def test_report_to_dict_keys(struggling_retail):
    data = check_relationships(struggling_retail).to_dict()
    assert set(data) == {"consistency_violations", "contradictions", "opportunities", "insights"}
    assert data["consistency_violations"][0]["kind"] == "violation"

"""
Tests for the dimension scorer: formulas, ranges, levels and benchmarks.
"""

from __future__ import annotations

import random

from marketing_engine.analysis.models import MaturityLevel, RiskLevel
from marketing_engine.analysis.scoring import (
    budget_adequacy,
    budget_percent,
    calculate_scores,
    compare_to_benchmark,
    composite_overall,
    maturity_level,
    risk_level,
    score_digital,
    score_risk,
)

# --- Known profiles ---


def test_healthy_saas_scores(healthy_saas):
    scores = calculate_scores(healthy_saas)
    assert scores.digital.value == 94
    assert scores.marketing.value == 93
    assert scores.organizational.value == 88
    assert scores.risk.value == 20
    assert scores.opportunity.value == 60
    assert scores.overall == 85
    assert scores.maturity_level is MaturityLevel.EXPERT
    assert scores.risk_level is RiskLevel.LOW


def test_struggling_retail_scores(struggling_retail):
    scores = calculate_scores(struggling_retail)
    assert scores.digital.value < 20
    assert scores.risk.value == 80
    assert scores.risk.components == {"financial": 7, "competitive": 8, "execution": 8, "market": 8}
    assert scores.opportunity.value == 0
    assert scores.overall < 20
    assert scores.risk_level is RiskLevel.CRITICAL
    assert scores.maturity_level is MaturityLevel.BEGINNER


def test_empty_answers_never_raise(empty_answers):
    scores = calculate_scores(empty_answers)
    assert scores.digital.value == 0
    assert scores.marketing.value == 0
    assert scores.organizational.value == 0
    # A missing team size defaults to one person, which is an execution risk
    assert scores.risk.value == 10
    assert scores.opportunity.value == 0
    assert scores.overall < 20


# --- Sub-components ---


def test_website_component_points():
    answers = {"has_website": "yes", "mobile_responsive": "yes", "has_ssl": True}
    digital = score_digital(answers)
    assert digital.components["website_quality"] == 45
    assert digital.components["email_marketing"] == 0


def test_social_platform_points_capped():
    digital = score_digital({"active_platforms_count": 12})
    assert digital.components["social_media_presence"] == 25


def test_risk_defaults_for_missing_margin_and_budget():
    risk = score_risk({"revenue_trend": "stable", "marketing_team_size": 4})
    assert risk.components["financial"] == 1
    assert risk.components["execution"] == 0


def test_budget_percent_explicit_or_derived():
    assert budget_percent({"marketing_budget_percent": 7}) == 7.0
    assert budget_percent({"marketing_budget": 1_000, "annual_revenue": 120_000}) == 10.0
    assert budget_percent({"marketing_budget": 1_000}) is None
    assert budget_percent({"marketing_budget": 1_000, "annual_revenue": 0}) is None


def test_budget_adequacy_steps():
    assert budget_adequacy(None) == 0
    assert budget_adequacy(0) == 0
    assert budget_adequacy(1) == 20
    assert budget_adequacy(2) == 40
    assert budget_adequacy(5) == 70
    assert budget_adequacy(12) == 100


def test_composite_overall_inverts_risk():
    assert composite_overall(100, 100, 100, 0, 100) == 100
    assert composite_overall(0, 0, 0, 100, 0) == 0
    assert composite_overall(50, 50, 50, 50, 50) == 50


# --- Levels ---


def test_maturity_levels():
    assert maturity_level(25) is MaturityLevel.BEGINNER
    assert maturity_level(26) is MaturityLevel.DEVELOPING
    assert maturity_level(51) is MaturityLevel.ADVANCED
    assert maturity_level(76) is MaturityLevel.EXPERT


def test_risk_levels():
    assert risk_level(10) is RiskLevel.LOW
    assert risk_level(30) is RiskLevel.MEDIUM
    assert risk_level(50) is RiskLevel.HIGH
    assert risk_level(70) is RiskLevel.CRITICAL


# --- Ranges ---


def _random_answers(rng: random.Random) -> dict:
    keys = [
        "has_website", "uses_analytics", "seo_efforts", "active_platforms_count", "posting_frequency",
        "uses_google_ads", "tracks_ad_roi", "has_email_list", "tracks_kpis", "has_marketing_plan",
        "consistent_branding", "channels_used", "calculates_roi", "marketing_team_size", "team_skills",
        "leadership_support", "process_maturity", "marketing_budget", "annual_revenue", "revenue_trend",
        "profit_margin", "competition_level", "differentiation", "skill_gaps", "market_trend",
        "market_gaps", "scalability", "brand_strength", "customer_loyalty",
    ]
    pool = [None, "", "yes", "no", "garbage", -5, 0, 3, 7, 10, 25, 1_000_000, "8", True, ["x"],
            "declining", "growing", "high", "low"]
    return {key: rng.choice(pool) for key in keys}


def test_scores_stay_in_range_for_arbitrary_input():
    rng = random.Random(7)
    for _ in range(200):
        scores = calculate_scores(_random_answers(rng))
        for dim in (scores.digital, scores.marketing, scores.organizational, scores.risk, scores.opportunity):
            assert 0 <= dim.value <= 100
            cap = 10 if dim.name.value in ("risk", "opportunity") else 100
            assert all(0 <= v <= cap for v in dim.components.values())
        assert 0 <= scores.overall <= 100


# --- Benchmarks ---


def test_compare_to_benchmark_positions():
    assert compare_to_benchmark(70, "retail", "digital")["position"] == "above_average"
    assert compare_to_benchmark(45, "retail", "digital")["position"] == "average"
    assert compare_to_benchmark(20, "retail", "digital")["position"] == "below_average"
    unknown = compare_to_benchmark(55, "unknown_sector", "digital")
    assert unknown["benchmark"] == 50
    assert unknown["difference"] == 5

"""
Pytest fixtures for marketing engine tests.

Canonical answer maps (struggling retail business, healthy SaaS business,
empty map) and a results store backed by a temporary SQLite database.
"""

from __future__ import annotations

import pytest

STRUGGLING_RETAIL = {
    "sector": "retail",
    "revenue_trend": "declining",
    "has_website": "no",
    "competition_level": "high",
    "competitor_strength": 8,
    "differentiation": 2,
    "customer_acquisition_cost": 500,
    "customer_lifetime_value": 300,
    "marketing_team_size": 1,
    "team_skills": 3,
    "skill_gaps": 7,
    "resource_limitations": 8,
    "market_trend": "declining",
    "regulatory_risk": 5,
    "tech_disruption_risk": 5,
    "profit_margin": 5,
    "active_platforms_count": 1,
    "consistent_branding": 3,
    "customer_retention_rate": 40,
    "annual_revenue": 200_000,
    "marketing_budget": 1_000,
    "cash_flow": "negative",
}

HEALTHY_SAAS = {
    "sector": "saas",
    "revenue_trend": "growing",
    "annual_revenue": 2_000_000,
    "marketing_budget": 20_000,
    "profit_margin": 25,
    "customer_acquisition_cost": 200,
    "customer_lifetime_value": 2_000,
    "marketing_roi": 6,
    "cash_flow": "positive",
    # digital
    "has_website": "yes",
    "mobile_responsive": "yes",
    "uses_analytics": "yes",
    "seo_efforts": 8,
    "has_ssl": "yes",
    "conversion_tracking": "yes",
    "page_speed": 8,
    "active_platforms_count": 5,
    "posting_frequency": 8,
    "engagement_rate": 8,
    "follower_growth": 8,
    "uses_paid_social": "yes",
    "uses_google_ads": "yes",
    "uses_social_ads": "yes",
    "tracks_ad_roi": "yes",
    "campaign_optimization": 8,
    "has_email_list": "yes",
    "email_campaigns": "yes",
    "email_segmentation": "yes",
    "email_automation": "yes",
    "tracks_kpis": "yes",
    "data_driven_decisions": 8,
    "regular_reporting": "yes",
    # marketing
    "has_marketing_plan": "yes",
    "clear_target_audience": "yes",
    "defined_positioning": "yes",
    "measurable_goals": 8,
    "documented_processes": "yes",
    "consistent_branding": 8,
    "regular_campaigns": "yes",
    "channels_used": 5,
    "content_quality": 8,
    "customer_engagement": 8,
    "tracks_metrics": "yes",
    "calculates_roi": "yes",
    "uses_attribution": "yes",
    "data_driven_optimization": 8,
    # organizational
    "marketing_team_size": 3,
    "team_skills": 8,
    "team_training": 8,
    "leadership_support": 8,
    "process_maturity": 8,
    # risk
    "competition_level": "medium",
    "competitor_strength": 5,
    "differentiation": 8,
    "skill_gaps": 2,
    "resource_limitations": 2,
    "market_trend": "growing",
    "regulatory_risk": 2,
    "tech_disruption_risk": 3,
    # opportunity
    "scalability": 8,
    "fundamentals_strength": 8,
    "market_gaps": 6,
    "emerging_trends": 7,
    "unique_offering": 8,
    "brand_strength": 8,
    "customer_loyalty": 8,
    # customers
    "customer_satisfaction": 9,
    "customer_retention_rate": 90,
    "churn_rate": 5,
    "referral_rate": 25,
    "nps_score": 60,
    "product_quality": 9,
}


@pytest.fixture
def struggling_retail() -> dict:
    return dict(STRUGGLING_RETAIL)


@pytest.fixture
def healthy_saas() -> dict:
    return dict(HEALTHY_SAAS)


@pytest.fixture
def empty_answers() -> dict:
    return {}


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep the developer's .env and environment out of test runs."""
    monkeypatch.delenv("MARKETING_ENGINE_TIMEOUT_SEC", raising=False)
    monkeypatch.delenv("MARKETING_ENGINE_DEFAULT_SECTOR", raising=False)

    from marketing_engine.config import reset_settings_cache

    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def results_store(tmp_path, monkeypatch):
    """
    Point the results store at a temporary SQLite DB and create its tables.
    Unset DATABASE_URL so the SQLite path is used.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("MARKETING_ENGINE_DB_URL", raising=False)
    monkeypatch.setenv("MARKETING_ENGINE_DB_PATH", str(tmp_path / "results.db"))

    from marketing_engine.config import reset_settings_cache
    from marketing_engine.storage import get_result_store, reset_engine_for_test

    reset_settings_cache()
    reset_engine_for_test()
    store = get_result_store()
    yield store
    reset_engine_for_test()

"""
Dimension scorer: five 0-100 maturity scores and the composite overall score.

Each dimension is a weighted sum of sub-components built from boolean and
0-10 scale answers. Sub-components are capped at 100 (risk and opportunity
sub-scores at 10 before rescaling) so every value stays in range regardless
of input. Missing answers contribute nothing; the scorer never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from marketing_engine.analysis.models import (
    Dimension,
    DimensionScore,
    DimensionScores,
    MaturityLevel,
    RiskLevel,
)
from marketing_engine.core.values import (
    get_bool,
    get_numeric,
    get_scale,
    get_str,
    round_int,
    safe_ratio,
)
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

# Composite weights; risk contributes inverted (100 - risk)
OVERALL_WEIGHTS = {
    Dimension.DIGITAL: 0.25,
    Dimension.MARKETING: 0.25,
    Dimension.ORGANIZATIONAL: 0.20,
    Dimension.RISK: 0.15,
    Dimension.OPPORTUNITY: 0.15,
}

DIGITAL_WEIGHTS = {
    "website_quality": 0.25,
    "social_media_presence": 0.20,
    "digital_advertising": 0.20,
    "email_marketing": 0.15,
    "analytics_usage": 0.20,
}
MARKETING_WEIGHTS = {
    "strategy_clarity": 0.30,
    "execution_quality": 0.40,
    "measurement_capability": 0.30,
}
ORGANIZATIONAL_WEIGHTS = {
    "team_capability": 0.35,
    "budget_adequacy": 0.30,
    "leadership_support": 0.20,
    "process_maturity": 0.15,
}
RISK_WEIGHTS = {
    "financial": 0.30,
    "competitive": 0.25,
    "execution": 0.25,
    "market": 0.20,
}
OPPORTUNITY_WEIGHTS = {
    "growth_potential": 0.35,
    "market_opportunity": 0.30,
    "competitive_advantage": 0.35,
}

# Budget adequacy step function: (min budget % of revenue, score), first match wins
BUDGET_ADEQUACY_STEPS = ((10.0, 100), (5.0, 70), (2.0, 40))
BUDGET_ADEQUACY_ANY = 20

COMPONENT_CAP = 100
RAW_SUBSCORE_CAP = 10

# Sector averages per dimension; unknown sectors and dimensions use DEFAULT_BENCHMARK
DEFAULT_BENCHMARK = 50
SECTOR_BENCHMARKS: dict[str, dict[str, int]] = {
    "retail": {"digital": 45, "marketing": 50, "organizational": 45, "risk": 45, "opportunity": 55, "overall": 48},
    "ecommerce": {"digital": 65, "marketing": 55, "organizational": 50, "risk": 40, "opportunity": 60, "overall": 58},
    "saas": {"digital": 70, "marketing": 60, "organizational": 55, "risk": 40, "opportunity": 65, "overall": 62},
    "technology": {"digital": 68, "marketing": 55, "organizational": 55, "risk": 40, "opportunity": 62, "overall": 60},
    "services": {"digital": 45, "marketing": 45, "organizational": 50, "risk": 40, "opportunity": 50, "overall": 48},
    "healthcare": {"digital": 40, "marketing": 40, "organizational": 55, "risk": 35, "opportunity": 50, "overall": 48},
    "education": {"digital": 50, "marketing": 45, "organizational": 50, "risk": 35, "opportunity": 55, "overall": 50},
    "fnb": {"digital": 40, "marketing": 45, "organizational": 40, "risk": 50, "opportunity": 50, "overall": 44},
    "fitness": {"digital": 45, "marketing": 45, "organizational": 40, "risk": 45, "opportunity": 55, "overall": 47},
    "real_estate": {"digital": 45, "marketing": 50, "organizational": 50, "risk": 50, "opportunity": 50, "overall": 48},
}

POSITION_ABOVE = "above_average"
POSITION_AVERAGE = "average"
POSITION_BELOW = "below_average"


def _bool_points(answers: Mapping[str, Any], key: str, points: int) -> int:
    return points if get_bool(answers, key) else 0


def _capped(value: float, cap: int = COMPONENT_CAP) -> int:
    return int(min(cap, max(0, value)))


def _weighted(components: Mapping[str, float], weights: Mapping[str, float]) -> float:
    return sum(components[name] * weight for name, weight in weights.items())


def budget_percent(answers: Mapping[str, Any]) -> float | None:
    """Marketing budget as % of revenue: explicit answer, else monthly budget x 12 / annual revenue."""
    explicit = get_numeric(answers, "marketing_budget_percent")
    if explicit is not None:
        return explicit
    ratio = safe_ratio(
        get_numeric(answers, "marketing_budget"),
        get_numeric(answers, "annual_revenue", "revenue"),
    )
    if ratio is None:
        return None
    return ratio * 12 * 100


def maturity_level(score: float) -> MaturityLevel:
    if score >= 76:
        return MaturityLevel.EXPERT
    if score >= 51:
        return MaturityLevel.ADVANCED
    if score >= 26:
        return MaturityLevel.DEVELOPING
    return MaturityLevel.BEGINNER


def risk_level(score: float) -> RiskLevel:
    if score >= 70:
        return RiskLevel.CRITICAL
    if score >= 50:
        return RiskLevel.HIGH
    if score >= 30:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


# --- Dimensions ---


def score_digital(answers: Mapping[str, Any]) -> DimensionScore:
    """Digital maturity: website, social, advertising, email, analytics."""
    website = (
        _bool_points(answers, "has_website", 20)
        + _bool_points(answers, "mobile_responsive", 15)
        + _bool_points(answers, "uses_analytics", 15)
        + get_scale(answers, "seo_efforts", 15)
        + _bool_points(answers, "has_ssl", 10)
        + _bool_points(answers, "conversion_tracking", 15)
        + get_scale(answers, "page_speed", 10)
    )
    platforms = get_numeric(answers, "active_platforms_count") or 0
    social = (
        min(25, max(0, platforms) * 5)
        + get_scale(answers, "posting_frequency", 20)
        + get_scale(answers, "engagement_rate", 25)
        + get_scale(answers, "follower_growth", 15)
        + _bool_points(answers, "uses_paid_social", 15)
    )
    advertising = (
        _bool_points(answers, "uses_google_ads", 25)
        + _bool_points(answers, "uses_social_ads", 25)
        + _bool_points(answers, "tracks_ad_roi", 30)
        + get_scale(answers, "campaign_optimization", 20)
    )
    email = sum(
        _bool_points(answers, key, 25)
        for key in ("has_email_list", "email_campaigns", "email_segmentation", "email_automation")
    )
    analytics = (
        _bool_points(answers, "uses_analytics", 20)
        + _bool_points(answers, "tracks_kpis", 25)
        + get_scale(answers, "data_driven_decisions", 30)
        + _bool_points(answers, "regular_reporting", 25)
    )
    components = {
        "website_quality": _capped(website),
        "social_media_presence": _capped(social),
        "digital_advertising": _capped(advertising),
        "email_marketing": _capped(email),
        "analytics_usage": _capped(analytics),
    }
    value = _capped(round_int(_weighted(components, DIGITAL_WEIGHTS)))
    return DimensionScore(name=Dimension.DIGITAL, value=value, components=components)


def score_marketing(answers: Mapping[str, Any]) -> DimensionScore:
    """Marketing maturity: strategy clarity, execution quality, measurement capability."""
    strategy = (
        _bool_points(answers, "has_marketing_plan", 20)
        + _bool_points(answers, "clear_target_audience", 20)
        + _bool_points(answers, "defined_positioning", 20)
        + get_scale(answers, "measurable_goals", 20)
        + _bool_points(answers, "documented_processes", 20)
    )
    channels = get_numeric(answers, "channels_used") or 0
    execution = (
        get_scale(answers, "consistent_branding", 20)
        + _bool_points(answers, "regular_campaigns", 20)
        + min(20, max(0, channels) * 4)
        + get_scale(answers, "content_quality", 20)
        + get_scale(answers, "customer_engagement", 20)
    )
    measurement = (
        _bool_points(answers, "tracks_metrics", 20)
        + _bool_points(answers, "calculates_roi", 25)
        + _bool_points(answers, "uses_attribution", 20)
        + _bool_points(answers, "regular_reporting", 15)
        + get_scale(answers, "data_driven_optimization", 20)
    )
    components = {
        "strategy_clarity": _capped(strategy),
        "execution_quality": _capped(execution),
        "measurement_capability": _capped(measurement),
    }
    value = _capped(round_int(_weighted(components, MARKETING_WEIGHTS)))
    return DimensionScore(name=Dimension.MARKETING, value=value, components=components)


def budget_adequacy(percent: float | None) -> int:
    if percent is None or percent <= 0:
        return 0
    for threshold, score in BUDGET_ADEQUACY_STEPS:
        if percent >= threshold:
            return score
    return BUDGET_ADEQUACY_ANY


def score_organizational(answers: Mapping[str, Any]) -> DimensionScore:
    """Organizational readiness: team, budget adequacy, leadership, process maturity."""
    team_size = get_numeric(answers, "marketing_team_size") or 0
    team = (
        min(30, max(0, team_size) * 10)
        + get_scale(answers, "team_skills", 35)
        + get_scale(answers, "team_training", 35)
    )
    components = {
        "team_capability": _capped(team),
        "budget_adequacy": budget_adequacy(budget_percent(answers)),
        "leadership_support": get_scale(answers, "leadership_support", 100),
        "process_maturity": get_scale(answers, "process_maturity", 100),
    }
    value = _capped(round_int(_weighted(components, ORGANIZATIONAL_WEIGHTS)))
    return DimensionScore(name=Dimension.ORGANIZATIONAL, value=value, components=components)


def score_risk(answers: Mapping[str, Any]) -> DimensionScore:
    """Risk: four 0-10 sub-scores, weighted, then rescaled x10 to 0-100. Higher is worse."""
    financial = 0
    revenue_trend = get_str(answers, "revenue_trend")
    if revenue_trend == "declining":
        financial += 4
    elif revenue_trend == "stable":
        financial += 1
    profit_margin = get_numeric(answers, "profit_margin")
    if (20.0 if profit_margin is None else profit_margin) < 10:
        financial += 3
    percent = budget_percent(answers)
    if (5.0 if percent is None else percent) > 30:
        financial += 3

    competitive = 0
    if get_str(answers, "competition_level") in ("high", "very_high"):
        competitive += 4
    competitive += get_scale(answers, "competitor_strength", 3)
    competitive += get_scale(answers, "differentiation", 3, invert=True)

    execution = 0
    team_size = get_numeric(answers, "marketing_team_size")
    if (1.0 if team_size is None else team_size) < 2:
        execution += 3
    execution += get_scale(answers, "skill_gaps", 4)
    execution += get_scale(answers, "resource_limitations", 3)

    market = 0
    if get_str(answers, "market_trend") == "declining":
        market += 4
    market += get_scale(answers, "regulatory_risk", 3)
    market += get_scale(answers, "tech_disruption_risk", 3)

    components = {
        "financial": _capped(financial, RAW_SUBSCORE_CAP),
        "competitive": _capped(competitive, RAW_SUBSCORE_CAP),
        "execution": _capped(execution, RAW_SUBSCORE_CAP),
        "market": _capped(market, RAW_SUBSCORE_CAP),
    }
    raw = round_int(_weighted(components, RISK_WEIGHTS))
    value = _capped(raw * 10)
    return DimensionScore(name=Dimension.RISK, value=value, components=components)


def score_opportunity(answers: Mapping[str, Any]) -> DimensionScore:
    """Opportunity: growth potential, market opportunity, competitive advantage (0-10 each), x10."""
    growth = 4 if get_str(answers, "market_trend") == "growing" else 0
    growth += get_scale(answers, "scalability", 3)
    growth += get_scale(answers, "fundamentals_strength", 3)

    market_opportunity = get_scale(answers, "market_gaps", 4) + get_scale(answers, "emerging_trends", 3)
    if get_str(answers, "competition_level") == "low":
        market_opportunity += 3

    advantage = (
        get_scale(answers, "unique_offering", 3)
        + get_scale(answers, "brand_strength", 3)
        + get_scale(answers, "customer_loyalty", 4)
    )
    components = {
        "growth_potential": _capped(growth, RAW_SUBSCORE_CAP),
        "market_opportunity": _capped(market_opportunity, RAW_SUBSCORE_CAP),
        "competitive_advantage": _capped(advantage, RAW_SUBSCORE_CAP),
    }
    raw = round_int(_weighted(components, OPPORTUNITY_WEIGHTS))
    value = _capped(raw * 10)
    return DimensionScore(name=Dimension.OPPORTUNITY, value=value, components=components)


def composite_overall(
    digital: float,
    marketing: float,
    organizational: float,
    risk: float,
    opportunity: float,
) -> int:
    """overall = round(0.25 digital + 0.25 marketing + 0.20 organizational + 0.15 (100 - risk) + 0.15 opportunity)."""
    total = (
        digital * OVERALL_WEIGHTS[Dimension.DIGITAL]
        + marketing * OVERALL_WEIGHTS[Dimension.MARKETING]
        + organizational * OVERALL_WEIGHTS[Dimension.ORGANIZATIONAL]
        + (100 - risk) * OVERALL_WEIGHTS[Dimension.RISK]
        + opportunity * OVERALL_WEIGHTS[Dimension.OPPORTUNITY]
    )
    return _capped(round_int(total))


def calculate_scores(answers: Mapping[str, Any]) -> DimensionScores:
    """Compute all five dimensions and the composite score for one answer snapshot."""
    digital = score_digital(answers)
    marketing = score_marketing(answers)
    organizational = score_organizational(answers)
    risk = score_risk(answers)
    opportunity = score_opportunity(answers)
    overall = composite_overall(
        digital.value, marketing.value, organizational.value, risk.value, opportunity.value
    )
    scores = DimensionScores(
        digital=digital,
        marketing=marketing,
        organizational=organizational,
        risk=risk,
        opportunity=opportunity,
        overall=overall,
        maturity_level=maturity_level(overall),
        risk_level=risk_level(risk.value),
    )
    logger.debug(
        "dimension_scores",
        digital=digital.value,
        marketing=marketing.value,
        organizational=organizational.value,
        risk=risk.value,
        opportunity=opportunity.value,
        overall=overall,
    )
    return scores


def compare_to_benchmark(score: float, sector: str, dimension: str) -> dict[str, Any]:
    """
    Position a score against the sector average for a dimension.

    above_average when score > 1.2x benchmark, below_average when < 0.8x.
    """
    benchmark = SECTOR_BENCHMARKS.get((sector or "").lower(), {}).get(dimension, DEFAULT_BENCHMARK)
    if score > benchmark * 1.2:
        position = POSITION_ABOVE
    elif score < benchmark * 0.8:
        position = POSITION_BELOW
    else:
        position = POSITION_AVERAGE
    return {
        "dimension": dimension,
        "score": score,
        "benchmark": benchmark,
        "difference": round(score - benchmark, 1),
        "position": position,
    }


def benchmark_all(scores: DimensionScores, sector: str) -> list[dict[str, Any]]:
    return [compare_to_benchmark(value, sector, name) for name, value in scores.as_map().items()]

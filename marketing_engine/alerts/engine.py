"""
Alert evaluator.

Four independent rule sets (critical, high, warning, opportunity) evaluate
fixed thresholds over the answers and dimension scores. Every alert carries
an explicit urgency score; the final list holds all tiers sorted by urgency,
highest first.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from marketing_engine.analysis.context import DIGITAL_DEPENDENT_SECTORS, AssessmentContext
from marketing_engine.analysis.models import Alert, AlertTier, DimensionScores
from marketing_engine.analysis.patterns import run_rules
from marketing_engine.core.values import get_bool, get_number, get_numeric, get_str, round_half_up, safe_ratio
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

DEFAULT_SCORE = 50.0
DEFAULT_SCALE = 5.0

# Critical
REVENUE_DECLINE_PCT = 20.0
DECLINING_TRENDS = ("declining", "sharply_declining")
NO_PRESENCE_DIGITAL_BELOW = 20.0
UNTRACKED_BUDGET_ABOVE = 10_000.0
CRISIS_OVERALL_BELOW = 20.0
CRISIS_RISK_ABOVE = 70.0

# High
RETENTION_LOW_BELOW = 50.0
CHURN_HIGH_ABOVE = 30.0
BUDGET_REVENUE_MAX_RATIO = 0.30

# Warning
UNDERPERFORMING_OVERALL_BELOW = 40.0
WEAK_BRAND_BELOW = 4.0
DIGITAL_GAP_DIGITAL_BELOW = 40.0
DIGITAL_GAP_MARKETING_ABOVE = 50.0
WEAK_DIFFERENTIATION_BELOW = 4.0
HIGH_COMPETITION = ("high", "very_high")

# Opportunity
SATISFIED_ABOVE = 7.0
REFERRAL_LOW_BELOW = 10.0
NPS_LOW_BELOW = 30.0
UNUSED_CHANNELS_MIN = 2
ACTIVE_PLATFORMS_MIN = 3
MARKET_GAPS_ABOVE = 6.0
STRONG_PRODUCT_ABOVE = 7.0
WEAK_MARKETING_BELOW = 40.0

# Urgency scores
URGENCY_REVENUE_DECLINE = 90
URGENCY_NO_DIGITAL_PRESENCE = 95
URGENCY_UNTRACKED_SPEND = 92
URGENCY_CAC_ABOVE_LTV = 88
URGENCY_CRISIS = 98
URGENCY_LOW_RETENTION = 75
URGENCY_NO_STRATEGY = 72
URGENCY_UNSUSTAINABLE_BUDGET = 70
URGENCY_UNDERPERFORMING = 50
URGENCY_WEAK_BRAND = 55
URGENCY_LIMITED_ANALYTICS = 52
URGENCY_DIGITAL_GAP = 48
URGENCY_WEAK_DIFFERENTIATION = 58
URGENCY_REFERRALS = 65
URGENCY_UNUSED_CHANNELS = 60
URGENCY_MARKET_GAPS = 58
URGENCY_HIDDEN_PRODUCT = 62


@dataclass
class AlertConfig:
    """
    Thresholds for the alert rules.

    Defaults are the module constants; override per invocation to tune a
    deployment without touching the rules.
    """

    revenue_decline_pct: float = REVENUE_DECLINE_PCT
    no_presence_digital_below: float = NO_PRESENCE_DIGITAL_BELOW
    digital_dependent_sectors: frozenset[str] = field(default_factory=lambda: DIGITAL_DEPENDENT_SECTORS)
    untracked_budget_above: float = UNTRACKED_BUDGET_ABOVE
    crisis_overall_below: float = CRISIS_OVERALL_BELOW
    crisis_risk_above: float = CRISIS_RISK_ABOVE

    retention_low_below: float = RETENTION_LOW_BELOW
    churn_high_above: float = CHURN_HIGH_ABOVE
    budget_revenue_max_ratio: float = BUDGET_REVENUE_MAX_RATIO

    underperforming_overall_below: float = UNDERPERFORMING_OVERALL_BELOW
    weak_brand_below: float = WEAK_BRAND_BELOW
    digital_gap_digital_below: float = DIGITAL_GAP_DIGITAL_BELOW
    digital_gap_marketing_above: float = DIGITAL_GAP_MARKETING_ABOVE
    weak_differentiation_below: float = WEAK_DIFFERENTIATION_BELOW

    satisfied_above: float = SATISFIED_ABOVE
    referral_low_below: float = REFERRAL_LOW_BELOW
    nps_low_below: float = NPS_LOW_BELOW
    unused_channels_min: int = UNUSED_CHANNELS_MIN
    active_platforms_min: int = ACTIVE_PLATFORMS_MIN
    market_gaps_above: float = MARKET_GAPS_ABOVE
    strong_product_above: float = STRONG_PRODUCT_ABOVE
    weak_marketing_below: float = WEAK_MARKETING_BELOW


@dataclass
class AlertInputs:
    """What every alert rule reads: answers, dimension scores and the resolved sector."""

    answers: Mapping[str, Any]
    scores: Mapping[str, Any]
    sector: str
    config: AlertConfig

    def score(self, key: str) -> float:
        return get_number(self.scores, key, DEFAULT_SCORE)


def _alert(tier: AlertTier, title: str, description: str, dimension: str, action: str, urgency: int, rule: str) -> Alert:
    return Alert(
        tier=tier,
        title=title,
        description=description,
        dimension=dimension,
        action=action,
        urgency_score=urgency,
        rule_name=rule,
    )


# --- Critical ---


def _alert_revenue_decline(inputs: AlertInputs) -> Alert | None:
    trend = get_str(inputs.answers, "revenue_trend")
    growth = get_numeric(inputs.answers, "revenue_growth_rate")
    sharp_drop = growth is not None and growth < -inputs.config.revenue_decline_pct
    if trend not in DECLINING_TRENDS and not sharp_drop:
        return None
    return _alert(
        AlertTier.CRITICAL,
        "Sharp revenue decline",
        "Revenue is falling noticeably and threatens business continuity. Act now to stop the losses",
        "financial",
        "Urgently review revenue sources and activate a financial contingency plan",
        URGENCY_REVENUE_DECLINE,
        "revenue_decline",
    )


def _alert_no_digital_presence(inputs: AlertInputs) -> Alert | None:
    if get_bool(inputs.answers, "has_website"):
        return None
    if inputs.score("digital") >= inputs.config.no_presence_digital_below:
        return None
    if inputs.sector not in inputs.config.digital_dependent_sectors:
        return None
    return _alert(
        AlertTier.CRITICAL,
        "No digital presence in a digital-dependent sector",
        f"The {inputs.sector} sector relies heavily on a digital presence; without one a large "
        "share of potential customers is lost",
        "digital_presence",
        "Launch a website and social media accounts within two weeks",
        URGENCY_NO_DIGITAL_PRESENCE,
        "no_digital_presence",
    )


def _alert_untracked_spend(inputs: AlertInputs) -> Alert | None:
    budget = get_number(inputs.answers, "marketing_budget", 0.0)
    if budget <= inputs.config.untracked_budget_above:
        return None
    if get_bool(inputs.answers, "tracks_ad_roi") or get_bool(inputs.answers, "uses_analytics"):
        return None
    return _alert(
        AlertTier.CRITICAL,
        "Large marketing spend with no tracking or measurement",
        "Marketing budget is spent without knowing its actual return, so a large part of it may be wasted",
        "measurement",
        "Install analytics and tracking now and connect every channel to one measurement system",
        URGENCY_UNTRACKED_SPEND,
        "untracked_spend",
    )


def _alert_cac_above_ltv(inputs: AlertInputs) -> Alert | None:
    cac = get_numeric(inputs.answers, "customer_acquisition_cost", "cac")
    ltv = get_numeric(inputs.answers, "customer_lifetime_value", "ltv")
    if cac is None or cac <= 0:
        return None
    ratio = safe_ratio(cac, ltv)
    if ratio is None or ratio <= 1:
        return None
    return _alert(
        AlertTier.CRITICAL,
        "Customer acquisition cost exceeds lifetime value",
        f"The CAC/LTV ratio is {round_half_up(ratio, 1)}; every new customer costs more than they bring in",
        "financial",
        "Make acquisition channels more efficient and raise customer value through loyalty and cross-selling",
        URGENCY_CAC_ABOVE_LTV,
        "cac_above_ltv",
    )


def _alert_crisis(inputs: AlertInputs) -> Alert | None:
    overall = inputs.score("overall")
    risk = inputs.score("risk")
    if overall >= inputs.config.crisis_overall_below or risk <= inputs.config.crisis_risk_above:
        return None
    return _alert(
        AlertTier.CRITICAL,
        "Critical marketing position with high risk",
        f"An overall score of {overall:.0f}/100 with a risk level of {risk:.0f}/100 calls for immediate intervention",
        "overall",
        "Activate a full emergency plan and restructure the marketing effort",
        URGENCY_CRISIS,
        "crisis",
    )


# --- High ---


def _alert_low_retention(inputs: AlertInputs) -> Alert | None:
    retention = get_number(inputs.answers, "customer_retention_rate", 100.0)
    churn = get_number(inputs.answers, "churn_rate", 0.0)
    if retention >= inputs.config.retention_low_below and churn <= inputs.config.churn_high_above:
        return None
    return _alert(
        AlertTier.HIGH,
        "Worryingly low customer retention",
        f"Retention is {retention:g}% with churn at {churn:g}%; losing existing customers costs more "
        "than winning new ones",
        "customers",
        "Launch a loyalty programme and improve the post-purchase experience",
        URGENCY_LOW_RETENTION,
        "low_retention",
    )


def _alert_no_strategy(inputs: AlertInputs) -> Alert | None:
    if get_bool(inputs.answers, "has_marketing_plan") or get_bool(inputs.answers, "clear_target_audience"):
        return None
    return _alert(
        AlertTier.HIGH,
        "No clear marketing strategy",
        "There is no documented marketing plan and no defined target audience, so resources are wasted",
        "strategy",
        "Write a marketing plan covering audience, goals and channels",
        URGENCY_NO_STRATEGY,
        "no_strategy",
    )


def _alert_unsustainable_budget(inputs: AlertInputs) -> Alert | None:
    monthly = get_numeric(inputs.answers, "marketing_budget")
    if monthly is None or monthly <= 0:
        return None
    ratio = safe_ratio(monthly * 12, get_numeric(inputs.answers, "annual_revenue", "revenue"))
    if ratio is None or ratio <= inputs.config.budget_revenue_max_ratio:
        return None
    return _alert(
        AlertTier.HIGH,
        "Unsustainable marketing spend",
        f"The marketing budget is {round_half_up(ratio * 100, 1)}% of revenue, which cannot be sustained",
        "financial",
        "Restructure the marketing budget around the highest-return channels",
        URGENCY_UNSUSTAINABLE_BUDGET,
        "unsustainable_budget",
    )


# --- Warning ---


def _alert_underperforming(inputs: AlertInputs) -> Alert | None:
    overall = inputs.score("overall")
    if overall >= inputs.config.underperforming_overall_below:
        return None
    return _alert(
        AlertTier.WARNING,
        "Marketing performance below the sector average",
        f"An overall score of {overall:.0f}/100 places the business in the lowest band against competitors",
        "overall",
        "Set a staged improvement plan to reach the sector average within 6 months",
        URGENCY_UNDERPERFORMING,
        "underperforming",
    )


def _alert_weak_brand(inputs: AlertInputs) -> Alert | None:
    branding = get_number(inputs.answers, "consistent_branding", DEFAULT_SCALE)
    strength = get_number(inputs.answers, "brand_strength", DEFAULT_SCALE)
    if branding >= inputs.config.weak_brand_below and strength >= inputs.config.weak_brand_below:
        return None
    return _alert(
        AlertTier.WARNING,
        "Inconsistent or weak brand",
        "An inconsistent visual identity and message weakens brand recognition and trust",
        "brand",
        "Unify the visual identity and write brand guidelines",
        URGENCY_WEAK_BRAND,
        "weak_brand",
    )


def _alert_limited_analytics(inputs: AlertInputs) -> Alert | None:
    if get_bool(inputs.answers, "tracks_kpis") and get_bool(inputs.answers, "regular_reporting"):
        return None
    return _alert(
        AlertTier.WARNING,
        "Limited analytics and measurement",
        "Without regular KPI follow-up, decisions cannot be based on data",
        "analytics",
        "Create a KPI dashboard and review it weekly",
        URGENCY_LIMITED_ANALYTICS,
        "limited_analytics",
    )


def _alert_digital_gap(inputs: AlertInputs) -> Alert | None:
    config = inputs.config
    if inputs.score("digital") >= config.digital_gap_digital_below:
        return None
    if inputs.score("marketing") <= config.digital_gap_marketing_above:
        return None
    return _alert(
        AlertTier.WARNING,
        "Gap between marketing and digital maturity",
        "Marketing capability is good but the digital presence lags behind, limiting customer reach",
        "digital_presence",
        "Invest in digital channels to match the level of marketing maturity",
        URGENCY_DIGITAL_GAP,
        "digital_gap",
    )


def _alert_weak_differentiation(inputs: AlertInputs) -> Alert | None:
    differentiation = get_number(inputs.answers, "differentiation", DEFAULT_SCALE)
    if differentiation >= inputs.config.weak_differentiation_below:
        return None
    if get_str(inputs.answers, "competition_level") not in HIGH_COMPETITION:
        return None
    return _alert(
        AlertTier.WARNING,
        "Weak differentiation in a competitive market",
        "Low differentiation under intense competition makes customers hard to win and keep",
        "competition",
        "Define and strengthen unique differentiators and claim a clear market position",
        URGENCY_WEAK_DIFFERENTIATION,
        "weak_differentiation",
    )


# --- Opportunity ---


def _alert_referral_potential(inputs: AlertInputs) -> Alert | None:
    satisfaction = get_numeric(inputs.answers, "customer_satisfaction")
    if satisfaction is None or satisfaction <= inputs.config.satisfied_above:
        return None
    referral = get_number(inputs.answers, "referral_rate", 0.0)
    nps = get_number(inputs.answers, "nps_score", 0.0)
    if referral >= inputs.config.referral_low_below and nps >= inputs.config.nps_low_below:
        return None
    return _alert(
        AlertTier.OPPORTUNITY,
        "Opportunity: turn customer satisfaction into referrals",
        f"Customers rate satisfaction {satisfaction:g}/10 but referrals are low; there is room for organic growth",
        "customers",
        "Launch an incentivised referral programme built on current satisfaction",
        URGENCY_REFERRALS,
        "referral_potential",
    )


def unused_channel_count(answers: Mapping[str, Any], config: AlertConfig | None = None) -> int:
    config = config or AlertConfig()
    unused = 0
    if not get_bool(answers, "uses_google_ads"):
        unused += 1
    if not get_bool(answers, "email_campaigns"):
        unused += 1
    if get_number(answers, "active_platforms_count", 0.0) < config.active_platforms_min:
        unused += 1
    return unused


def _alert_unused_channels(inputs: AlertInputs) -> Alert | None:
    if unused_channel_count(inputs.answers, inputs.config) < inputs.config.unused_channels_min:
        return None
    return _alert(
        AlertTier.OPPORTUNITY,
        "Opportunity: untapped digital channels",
        "Several available digital channels are not used yet and could reach new customer segments",
        "digital_presence",
        "Test the new channels on a trial budget and measure results within 30 days",
        URGENCY_UNUSED_CHANNELS,
        "unused_channels",
    )


def _alert_market_gaps(inputs: AlertInputs) -> Alert | None:
    gaps = get_number(inputs.answers, "market_gaps", 0.0)
    if gaps <= inputs.config.market_gaps_above and get_str(inputs.answers, "market_trend") != "growing":
        return None
    return _alert(
        AlertTier.OPPORTUNITY,
        "Opportunity: promising market gaps",
        "The market is growing or has gaps to fill; moving early gives a competitive edge",
        "market",
        "Study the market gaps and develop offers tailored to them",
        URGENCY_MARKET_GAPS,
        "market_gaps",
    )


def _alert_hidden_product(inputs: AlertInputs) -> Alert | None:
    quality = get_number(inputs.answers, "product_quality", DEFAULT_SCALE)
    if quality <= inputs.config.strong_product_above:
        return None
    if inputs.score("marketing") >= inputs.config.weak_marketing_below:
        return None
    return _alert(
        AlertTier.OPPORTUNITY,
        "Opportunity: a strong product that needs better marketing",
        f"Product quality is high ({quality:g}/10) but marketing does not reflect it; better marketing pays off fast",
        "marketing",
        "Invest in professional marketing that reflects the real product quality",
        URGENCY_HIDDEN_PRODUCT,
        "hidden_product",
    )


CRITICAL_RULES = (
    _alert_revenue_decline,
    _alert_no_digital_presence,
    _alert_untracked_spend,
    _alert_cac_above_ltv,
    _alert_crisis,
)
HIGH_RULES = (_alert_low_retention, _alert_no_strategy, _alert_unsustainable_budget)
WARNING_RULES = (
    _alert_underperforming,
    _alert_weak_brand,
    _alert_limited_analytics,
    _alert_digital_gap,
    _alert_weak_differentiation,
)
OPPORTUNITY_RULES = (
    _alert_referral_potential,
    _alert_unused_channels,
    _alert_market_gaps,
    _alert_hidden_product,
)

TIER_RULES = (
    (AlertTier.CRITICAL, CRITICAL_RULES),
    (AlertTier.HIGH, HIGH_RULES),
    (AlertTier.WARNING, WARNING_RULES),
    (AlertTier.OPPORTUNITY, OPPORTUNITY_RULES),
)


def resolve_sector(answers: Mapping[str, Any], context: AssessmentContext | None) -> str:
    """An explicit context sector wins, then the sector answer."""
    if context is not None and context.sector != "general":
        return context.sector
    return get_str(answers, "sector") or (context.sector if context is not None else "")


def alert_summary(alerts: list[Alert]) -> dict[str, Any]:
    counts = {tier.value: 0 for tier in AlertTier}
    for alert in alerts:
        counts[alert.tier.value] += 1
    return {
        "total": len(alerts),
        "by_tier": counts,
        "max_urgency": max((a.urgency_score for a in alerts), default=0),
    }


def evaluate_alerts(
    answers: Mapping[str, Any],
    scores: DimensionScores | Mapping[str, Any],
    context: AssessmentContext | None = None,
    config: AlertConfig | None = None,
) -> list[Alert]:
    """Run all four tiers and return every alert, most urgent first (stable within equal urgency)."""
    inputs = AlertInputs(
        answers=answers,
        scores=scores.as_map() if isinstance(scores, DimensionScores) else scores,
        sector=resolve_sector(answers, context),
        config=config or AlertConfig(),
    )
    alerts: list[Alert] = []
    for tier, rules in TIER_RULES:
        alerts.extend(run_rules(rules, inputs, component=f"{tier.value}_alert"))
    alerts.sort(key=lambda a: a.urgency_score, reverse=True)
    logger.debug("alerts_evaluated", rules=[a.rule_name for a in alerts])
    return alerts

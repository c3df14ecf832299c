"""
Recommendation synthesizer: strategic, tactical and execution layers.

Strategic items follow the plan type and the weakest dimensions; tactical
items are channel and process specific, gated by dimension thresholds;
execution items slice the first action steps of each tactical item into a
week-by-week schedule. Everything is then ranked by impact over effort.

Each generator is a small rule returning a Recommendation or None and runs
through run_rules, so one failing rule drops only its own item.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from marketing_engine.analysis.inference import classify_plan_type
from marketing_engine.analysis.models import (
    LAYER_ORDER,
    DimensionScores,
    Effort,
    Layer,
    PlanType,
    Priority,
    Recommendation,
)
from marketing_engine.analysis.patterns import run_rules
from marketing_engine.core.values import get_numeric, round_int
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

SOURCE = "recommendation_engine"
DEFAULT_SCORE = 50

# Strategic thresholds
DIRECTION_CRITICAL_BELOW = 30
DIRECTION_HIGH_BELOW = 50
DIRECTION_HIGH_EFFORT_BELOW = 40
FOCUS_AREA_BELOW = 60
FOCUS_AREA_MAX = 3
FOCUS_AREA_UPLIFT = 25
RISK_MITIGATION_ABOVE = 40
RISK_CRITICAL_ABOVE = 70
OPPORTUNITY_CAPTURE_ABOVE = 50
CAPABILITY_BUILDING_BELOW = 40

# Tactical thresholds
WEBSITE_BELOW = 60
WEBSITE_CRITICAL_BELOW = 30
SOCIAL_HIGH_BELOW = 40
CONTENT_BELOW = 60
ANALYTICS_BELOW = 50

# Execution schedule
EXECUTION_STEPS_PER_TACTIC = 2
EXECUTION_MAX_WEEKS = 15

PLAN_HORIZONS = {
    PlanType.EMERGENCY: "30 days",
    PlanType.TREATMENT: "3 months",
    PlanType.GROWTH: "6 months",
    PlanType.TRANSFORMATION: "12 months",
}

PLAN_DIRECTIONS = {
    PlanType.EMERGENCY: (
        "Emergency plan: intervene now to stabilise marketing",
        "An overall score of {overall}/100 signals a critical position that needs urgent action "
        "to protect business continuity and stop the decline",
    ),
    PlanType.TREATMENT: (
        "Treatment plan: fix the core weaknesses",
        "An overall score of {overall}/100 exposes fundamental weaknesses that need systematic "
        "treatment before growth is pursued",
    ),
    PlanType.GROWTH: (
        "Growth plan: accelerate expansion and market share",
        "An overall score of {overall}/100 shows a solid base to build accelerated growth on",
    ),
    PlanType.TRANSFORMATION: (
        "Transformation plan: lead the market through marketing innovation",
        "An overall score of {overall}/100 confirms the business is ready to move into market leadership",
    ),
}

PLAN_ACTIONS = {
    PlanType.EMERGENCY: (
        "Stop every non-essential marketing activity immediately",
        "Concentrate resources on channels with direct returns",
        "Set daily KPIs for close follow-up",
        "Review the full cost structure",
    ),
    PlanType.TREATMENT: (
        "Diagnose the core weaknesses precisely",
        "Write a treatment plan for each weakness",
        "Improve current processes before expanding",
        "Build effective measurement and tracking",
    ),
    PlanType.GROWTH: (
        "Increase investment in the channels that already work",
        "Explore new markets and customer segments",
        "Develop strategic growth partnerships",
        "Invest in differentiation and innovation",
    ),
    PlanType.TRANSFORMATION: (
        "Redesign the marketing operating model",
        "Invest heavily in technology and automation",
        "Build a category-leading brand",
        "Expand geographically or into new categories",
    ),
}

FOCUS_DIMENSIONS = (
    ("digital", "Digital maturity"),
    ("marketing", "Marketing maturity"),
    ("organizational", "Organizational readiness"),
)

IMPACT_BANDS = (
    (30, "Critical: prevent further losses and stabilise the position"),
    (50, "High: expected improvement of 25-40% within 3 months"),
    (70, "Medium to high: expected growth of 15-30%"),
)
IMPACT_TOP_BAND = "Transformational: a step change in marketing performance"


@dataclass
class RecommendationConfig:
    """Thresholds for the recommendation layers; defaults are the module constants."""

    direction_critical_below: float = DIRECTION_CRITICAL_BELOW
    direction_high_below: float = DIRECTION_HIGH_BELOW
    direction_high_effort_below: float = DIRECTION_HIGH_EFFORT_BELOW
    focus_area_below: float = FOCUS_AREA_BELOW
    focus_area_max: int = FOCUS_AREA_MAX
    focus_area_uplift: int = FOCUS_AREA_UPLIFT
    risk_mitigation_above: float = RISK_MITIGATION_ABOVE
    risk_critical_above: float = RISK_CRITICAL_ABOVE
    opportunity_capture_above: float = OPPORTUNITY_CAPTURE_ABOVE
    capability_building_below: float = CAPABILITY_BUILDING_BELOW

    website_below: float = WEBSITE_BELOW
    website_critical_below: float = WEBSITE_CRITICAL_BELOW
    social_high_below: float = SOCIAL_HIGH_BELOW
    content_below: float = CONTENT_BELOW
    analytics_below: float = ANALYTICS_BELOW

    execution_steps_per_tactic: int = EXECUTION_STEPS_PER_TACTIC
    execution_max_weeks: int = EXECUTION_MAX_WEEKS


@dataclass
class ScoreView:
    """The dimension scores a recommendation rule reads, with 50 for anything missing."""

    digital: int
    marketing: int
    organizational: int
    risk: int
    opportunity: int
    overall: int
    plan_type: PlanType

    @classmethod
    def from_scores(
        cls,
        scores: DimensionScores | Mapping[str, Any],
        plan_type: PlanType | None = None,
    ) -> ScoreView:
        values = scores.as_map() if isinstance(scores, DimensionScores) else scores

        def read(key: str) -> int:
            value = get_numeric(values, key)
            return DEFAULT_SCORE if value is None else round_int(value)

        view = cls(
            digital=read("digital"),
            marketing=read("marketing"),
            organizational=read("organizational"),
            risk=read("risk"),
            opportunity=read("opportunity"),
            overall=read("overall"),
            plan_type=PlanType.TREATMENT,
        )
        view.plan_type = plan_type or classify_plan_type(view.overall, view.risk)
        return view


def estimated_impact(overall: float) -> str:
    for below, text in IMPACT_BANDS:
        if overall < below:
            return text
    return IMPACT_TOP_BAND


def plan_horizon(plan_type: PlanType) -> str:
    return PLAN_HORIZONS[plan_type]


def _item(
    title: str,
    description: str,
    priority: Priority,
    layer: Layer,
    actions: Sequence[str],
    timeline: str,
    impact: str,
    effort: Effort,
    category: str,
) -> Recommendation:
    return Recommendation(
        title=title,
        description=description,
        priority=priority,
        actions=list(actions),
        layer=layer,
        timeline=timeline,
        estimated_impact=impact,
        effort=effort,
        category=category,
        source=SOURCE,
    )


# --- Strategic layer ---


def focus_areas(view: ScoreView, config: RecommendationConfig) -> list[dict[str, Any]]:
    """Dimensions below the focus threshold, weakest first, with a +25 target."""
    areas = [
        {
            "key": key,
            "label": label,
            "current": getattr(view, key),
            "target": min(100, getattr(view, key) + config.focus_area_uplift),
        }
        for key, label in FOCUS_DIMENSIONS
        if getattr(view, key) < config.focus_area_below
    ]
    areas.sort(key=lambda a: a["current"])
    return areas[: config.focus_area_max]


def _strategic_direction(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    title, description = PLAN_DIRECTIONS[view.plan_type]
    if view.overall < config.direction_critical_below:
        priority = Priority.CRITICAL
    elif view.overall < config.direction_high_below:
        priority = Priority.HIGH
    else:
        priority = Priority.MEDIUM
    effort = Effort.HIGH if view.overall < config.direction_high_effort_below else Effort.MEDIUM
    return _item(
        title,
        description.format(overall=view.overall),
        priority,
        Layer.STRATEGIC,
        PLAN_ACTIONS[view.plan_type],
        plan_horizon(view.plan_type),
        estimated_impact(view.overall),
        effort,
        "strategic_direction",
    )


def _strategic_focus(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    areas = focus_areas(view, config)
    if not areas:
        return None
    return _item(
        "Concentrate resources on the highest-impact areas",
        "Direct the effort towards: " + ", ".join(a["label"] for a in areas),
        Priority.HIGH,
        Layer.STRATEGIC,
        [f"Raise {a['label'].lower()} from {a['current']} to {a['target']}" for a in areas],
        plan_horizon(view.plan_type),
        "High: expected improvement of 20-35%",
        Effort.MEDIUM,
        "focus_areas",
    )


def _strategic_risk(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.risk <= config.risk_mitigation_above:
        return None
    return _item(
        "Risk management and mitigation plan",
        f"The current risk level of {view.risk}/100 calls for preventive action",
        Priority.CRITICAL if view.risk > config.risk_critical_above else Priority.HIGH,
        Layer.STRATEGIC,
        (
            "Diversify revenue sources and marketing channels",
            "Build a financial reserve for marketing contingencies",
            "Prepare a fallback plan for adverse scenarios",
        ),
        "3 months",
        "Preventive: protects the business from likely losses",
        Effort.MEDIUM,
        "risk_mitigation",
    )


def _strategic_opportunity(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.opportunity <= config.opportunity_capture_above:
        return None
    return _item(
        "Opportunity capture strategy",
        f"Promising growth opportunities scored {view.opportunity}/100 and should be seized",
        Priority.MEDIUM,
        Layer.STRATEGIC,
        (
            "Allocate budget to explore new opportunities",
            "Launch pilots in the most promising areas",
            "Build strategic partnerships to accelerate growth",
        ),
        "6 months",
        "High: growth potential of 25-40%",
        Effort.MEDIUM,
        "opportunity_capture",
    )


def _strategic_capabilities(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.digital >= config.capability_building_below and view.marketing >= config.capability_building_below:
        return None
    return _item(
        "Marketing capability building programme",
        "Current maturity requires investment in the basic capabilities",
        Priority.HIGH,
        Layer.STRATEGIC,
        (
            "Assess skill and tooling gaps",
            "Write a training and development plan for the team",
            "Adopt modern marketing tools and technology",
        ),
        "6 months",
        "Foundational: infrastructure for future growth",
        Effort.HIGH,
        "capability_building",
    )


STRATEGIC_RULES = (
    _strategic_direction,
    _strategic_focus,
    _strategic_risk,
    _strategic_opportunity,
    _strategic_capabilities,
)


def generate_strategic(view: ScoreView, config: RecommendationConfig | None = None) -> list[Recommendation]:
    return run_rules(STRATEGIC_RULES, view, config or RecommendationConfig(), component="strategic")


# --- Tactical layer ---


def _tactic_website(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.digital >= config.website_below:
        return None
    return _item(
        "Improve the website and user experience",
        "The website is the first digital touchpoint and needs development",
        Priority.CRITICAL if view.digital < config.website_critical_below else Priority.HIGH,
        Layer.TACTICAL,
        (
            "Improve page load speed",
            "Make the design mobile responsive",
            "Improve search engine optimisation",
            "Add conversion tracking",
        ),
        "1 month",
        "30-50% more traffic",
        Effort.MEDIUM,
        "website",
    )


def _tactic_social(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    return _item(
        "Social media strategy",
        "Build an effective, consistent presence on the right platforms",
        Priority.HIGH if view.digital < config.social_high_below else Priority.MEDIUM,
        Layer.TACTICAL,
        (
            "Pick the platforms that best fit the target audience",
            "Create a monthly content calendar",
            "Allocate a paid social budget",
            "Measure reach and engagement weekly",
        ),
        "2 months",
        "40-60% more reach and engagement",
        Effort.LOW,
        "social_media",
    )


def _tactic_content(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.marketing >= config.content_below:
        return None
    return _item(
        "Content marketing plan",
        "Valuable content builds trust and attracts prospects",
        Priority.MEDIUM,
        Layer.TACTICAL,
        (
            "Choose topics the target audience cares about",
            "Publish articles and posts every week",
            "Produce visual content (video, infographics)",
            "Distribute content through the right channels",
        ),
        "3 months",
        "Builds authority and trust in the field",
        Effort.MEDIUM,
        "content",
    )


def _tactic_advertising(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    return _item(
        "Targeted digital advertising campaigns",
        "Measured ad investment for fast results",
        Priority.HIGH,
        Layer.TACTICAL,
        (
            "Launch search campaigns on the core keywords",
            "Run retargeting campaigns for past visitors",
            "A/B test ads and landing pages",
            "Optimise campaigns weekly from the data",
        ),
        "1 month",
        "3-5x return on ad spend",
        Effort.LOW,
        "advertising",
    )


def _tactic_email(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    return _item(
        "Email marketing programme",
        "Build a mailing list and keep in regular contact with customers",
        Priority.MEDIUM,
        Layer.TACTICAL,
        (
            "Grow a mailing list with sign-up incentives",
            "Set up an automated welcome sequence",
            "Send a monthly newsletter",
            "Segment the list by interest",
        ),
        "2 months",
        "15-25% higher conversion rate",
        Effort.LOW,
        "email",
    )


def _tactic_customer_experience(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    return _item(
        "Customer experience improvement programme",
        "An outstanding customer experience increases loyalty and referrals",
        Priority.MEDIUM,
        Layer.TACTICAL,
        (
            "Map the current customer journey",
            "Identify pain points and friction",
            "Ship quick fixes",
            "Set up a continuous feedback loop",
        ),
        "3 months",
        "10-20% better retention",
        Effort.MEDIUM,
        "customer_experience",
    )


def _tactic_analytics(view: ScoreView, config: RecommendationConfig) -> Recommendation | None:
    if view.digital >= config.analytics_below and view.organizational >= config.analytics_below:
        return None
    return _item(
        "Build an analytics and performance measurement system",
        "Data-driven decisions deliver better results",
        Priority.HIGH,
        Layer.TACTICAL,
        (
            "Install and configure analytics tools",
            "Define the key performance indicators",
            "Create a weekly tracking dashboard",
            "Train the team to read the data",
        ),
        "1 month",
        "20-30% more efficient spend",
        Effort.LOW,
        "analytics",
    )


TACTICAL_RULES = (
    _tactic_website,
    _tactic_social,
    _tactic_content,
    _tactic_advertising,
    _tactic_email,
    _tactic_customer_experience,
    _tactic_analytics,
)


def generate_tactical(view: ScoreView, config: RecommendationConfig | None = None) -> list[Recommendation]:
    return run_rules(TACTICAL_RULES, view, config or RecommendationConfig(), component="tactical")


# --- Execution layer ---

EXECUTION_CHECKLIST = (
    "Name an owner",
    "Allocate the required resources",
    "Define the success criteria",
    "Review results at the end of the week",
)


def generate_execution(
    tactical: Sequence[Recommendation],
    config: RecommendationConfig | None = None,
) -> list[Recommendation]:
    """The first action steps of each tactical item, one per week, up to the weekly cap."""
    config = config or RecommendationConfig()
    items: list[Recommendation] = []
    for tactic in tactical:
        for action in tactic.actions[: config.execution_steps_per_tactic]:
            if len(items) >= config.execution_max_weeks:
                return items
            items.append(
                _item(
                    action,
                    f"Part of: {tactic.title}",
                    tactic.priority,
                    Layer.EXECUTION,
                    EXECUTION_CHECKLIST,
                    f"Week {len(items) + 1}",
                    tactic.estimated_impact,
                    Effort.LOW,
                    tactic.category,
                )
            )
    return items


# --- Ranking ---


def prioritize(recommendations: Sequence[Recommendation]) -> list[Recommendation]:
    """
    Sort by impact/effort ratio (highest first), strategic before tactical
    before execution on ties, then number the result from 1.
    """
    ranked = sorted(
        recommendations,
        key=lambda r: (-r.impact_effort_ratio, LAYER_ORDER[r.layer or Layer.EXECUTION]),
    )
    for index, rec in enumerate(ranked):
        rec.priority_rank = index + 1
    return ranked


def recommendation_summary(recommendations: Sequence[Recommendation], plan_type: PlanType) -> dict[str, Any]:
    by_layer = {layer.value: 0 for layer in Layer}
    by_priority = {priority.value: 0 for priority in Priority}
    for rec in recommendations:
        if rec.layer is not None:
            by_layer[rec.layer.value] += 1
        by_priority[rec.priority.value] += 1
    return {
        "total": len(recommendations),
        "by_layer": by_layer,
        "by_priority": by_priority,
        "plan_type": plan_type.value,
        "time_horizon": plan_horizon(plan_type),
    }


def synthesize_recommendations(
    scores: DimensionScores | Mapping[str, Any],
    plan_type: PlanType | None = None,
    config: RecommendationConfig | None = None,
) -> tuple[list[Recommendation], dict[str, Any]]:
    """
    Build all three layers and rank them.

    Returns the ranked list and its summary. plan_type defaults to the
    classification of the overall and risk scores.
    """
    config = config or RecommendationConfig()
    view = ScoreView.from_scores(scores, plan_type)
    strategic = generate_strategic(view, config)
    tactical = generate_tactical(view, config)
    execution = generate_execution(tactical, config)
    ranked = prioritize([*strategic, *tactical, *execution])
    summary = recommendation_summary(ranked, view.plan_type)
    logger.debug(
        "recommendations_built",
        plan_type=view.plan_type.value,
        strategic=len(strategic),
        tactical=len(tactical),
        execution=len(execution),
    )
    return ranked, summary

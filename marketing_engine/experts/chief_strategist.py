"""
Chief strategist: the synthesis authority.

Runs last, over the shared scores map enriched with every specialist's
headline score. Combines seven dimensions into one business-health score,
classifies the plan type with the same thresholds as the inference step,
and picks the weakest dimensions as strategic focus pillars.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.inference import PLAN_LABELS, classify_plan_type
from marketing_engine.analysis.models import (
    ExpertAnalysisResult,
    ImpactTag,
    Insight,
    PlanType,
    Priority,
    Recommendation,
)
from marketing_engine.core.values import get_numeric, round_half_up
from marketing_engine.experts.base import (
    DEFAULT_SHARED_SCORE,
    build_result,
    calculate_confidence,
    impact_for,
    make_insight,
    make_recommendation,
    shared_score,
    score_label,
)

HEALTH_WEIGHTS = {
    "financial": 0.25,
    "market": 0.20,
    "digital": 0.15,
    "brand": 0.15,
    "operations": 0.10,
    "innovation": 0.10,
    "risk": 0.05,
}

PILLAR_BELOW = 60
MAX_PILLARS = 3
PILLAR_TARGET_GAIN = 25
PRIORITY_BELOW = 70
URGENT_BELOW = 40
IMPORTANT_BELOW = 60
WEAK_DIMENSION_BELOW = 50
STRONG_DIMENSION_MIN = 70

RESCUE_BELOW = 40
IMPROVE_BELOW = 70

PLAN_RECOMMENDATIONS: dict[PlanType, tuple[str, str, Priority, list[str]]] = {
    PlanType.EMERGENCY: (
        "Execute the emergency plan",
        "The business needs immediate stabilisation before any growth work",
        Priority.CRITICAL,
        [
            "Stop loss-making marketing activity this week",
            "Focus on retaining existing customers",
            "Secure cash flow for the next three months",
            "Review progress weekly with the leadership team",
        ],
    ),
    PlanType.TREATMENT: (
        "Execute the treatment plan",
        "Fix the weakest dimensions before scaling",
        Priority.HIGH,
        [
            "Address the focus pillars in order",
            "Set monthly improvement targets",
            "Rebalance budget toward proven channels",
        ],
    ),
    PlanType.GROWTH: (
        "Execute the growth plan",
        "The foundations are in place; invest in growth",
        Priority.MEDIUM,
        [
            "Scale the best-performing channels",
            "Enter one new customer segment",
            "Invest in brand awareness",
        ],
    ),
    PlanType.TRANSFORMATION: (
        "Execute the transformation plan",
        "The business is strong enough to lead its market",
        Priority.MEDIUM,
        [
            "Invest in innovation and new markets",
            "Automate and scale operations",
            "Build market leadership through brand",
        ],
    ),
}


def risk_dimension(scores: Mapping[str, Any]) -> float:
    """Risk preparedness (higher is better): published value, else the inverse of the risk dimension."""
    preparedness = get_numeric(scores, "risk_preparedness")
    if preparedness is not None:
        return preparedness
    risk = get_numeric(scores, "risk")
    return DEFAULT_SHARED_SCORE if risk is None else 100 - risk


def dimension_scores(scores: Mapping[str, Any]) -> dict[str, float]:
    out = {}
    for dimension in HEALTH_WEIGHTS:
        if dimension == "risk":
            out[dimension] = risk_dimension(scores)
        else:
            out[dimension] = shared_score(scores, dimension, f"{dimension}_score")
    return out


def business_health(dimensions: Mapping[str, float]) -> float:
    total_weight = sum(HEALTH_WEIGHTS.values())
    weighted = sum(dimensions[d] * w for d, w in HEALTH_WEIGHTS.items())
    return round_half_up(weighted / total_weight, 1)


def focus_pillars(dimensions: Mapping[str, float]) -> list[dict[str, Any]]:
    """Up to three weakest dimensions below 60, each with a +25 target."""
    ranked = sorted(dimensions.items(), key=lambda kv: kv[1])
    pillars = []
    for dimension, score in ranked:
        if score >= PILLAR_BELOW or len(pillars) >= MAX_PILLARS:
            continue
        target = min(100, score + PILLAR_TARGET_GAIN)
        pillars.append({
            "dimension": dimension,
            "current": score,
            "target": target,
            "description": f"Raise {dimension} from {score:.0f} to {target:.0f}",
        })
    return pillars


def set_priorities(dimensions: Mapping[str, float]) -> list[dict[str, Any]]:
    priorities = []
    for dimension, score in sorted(dimensions.items(), key=lambda kv: kv[1]):
        if score >= PRIORITY_BELOW:
            continue
        if score < URGENT_BELOW:
            urgency, timeframe = "urgent", "0-30 days"
        elif score < IMPORTANT_BELOW:
            urgency, timeframe = "important", "1-3 months"
        else:
            urgency, timeframe = "improve", "3-6 months"
        priorities.append({
            "rank": len(priorities) + 1,
            "dimension": dimension,
            "score": score,
            "urgency": urgency,
            "timeframe": timeframe,
        })
    return priorities


def investment_level(health: float, business_size: str | None) -> str:
    if health < RESCUE_BELOW:
        return "conservative and focused"
    if health < IMPROVE_BELOW:
        if business_size == "large":
            return "medium to high"
        if business_size == "medium":
            return "medium"
        return "limited and focused"
    return "high"


class ChiefStrategist:
    expert_id = "chief_strategist"
    name = "Chief Strategist"
    role = "Synthesises the panel into one verdict and sets the strategic direction"
    expertise = (
        "strategic_planning",
        "business_analysis",
        "decision_making",
        "synthesis",
        "leadership",
    )
    decision_weight = 1.0

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        dimensions = dimension_scores(scores)
        health = business_health(dimensions)
        risk = get_numeric(scores, "risk")
        plan_type = classify_plan_type(health, DEFAULT_SHARED_SCORE if risk is None else risk)
        direction = self._direction(health, dimensions, context)
        summary = self._executive_summary(context, health, plan_type, direction)
        return build_result(
            self,
            scores={"overall_health": health},
            sections={
                "business_health": {
                    "overall_score": health,
                    "label": score_label(health),
                    "dimensions": dimensions,
                },
                "plan_type": {"key": plan_type.value, "label": PLAN_LABELS[plan_type]},
                "executive_summary": summary,
                "strategic_direction": direction,
                "priority_setting": set_priorities(dimensions),
            },
            confidence=calculate_confidence({**answers, **scores}),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        health = result.scores.get("overall_health", 50)
        insights = [
            make_insight(
                self,
                "Overall business health",
                f"Business health: {score_label(health)} ({health:.0f}/100)",
                impact_for(health),
                0.9,
            )
        ]
        dimensions = result.sections.get("business_health", {}).get("dimensions", {})
        ranked = sorted(dimensions.items(), key=lambda kv: kv[1])
        for dimension, score in ranked[:2]:
            if score < WEAK_DIMENSION_BELOW:
                insights.append(
                    make_insight(
                        self,
                        f"Weak dimension: {dimension}",
                        f"{dimension.capitalize()} scores {score:.0f}/100 and holds the business back",
                        ImpactTag.WARNING,
                        0.85,
                    )
                )
        for dimension, score in list(reversed(ranked))[:2]:
            if score >= STRONG_DIMENSION_MIN:
                insights.append(
                    make_insight(
                        self,
                        f"Strength: {dimension}",
                        f"{dimension.capitalize()} scores {score:.0f}/100 and can anchor the plan",
                        ImpactTag.POSITIVE,
                        0.85,
                    )
                )
        plan = result.sections.get("plan_type", {})
        insights.append(
            make_insight(
                self,
                "Recommended plan",
                plan.get("label", ""),
                ImpactTag.NEUTRAL,
                0.9,
            )
        )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        key = result.sections.get("plan_type", {}).get("key", PlanType.TREATMENT.value)
        title, description, priority, actions = PLAN_RECOMMENDATIONS[PlanType(key)]
        return [make_recommendation(self, title, description, priority, actions)]

    @staticmethod
    def _direction(health: float, dimensions: Mapping[str, float], context: AssessmentContext) -> dict[str, Any]:
        if health < RESCUE_BELOW:
            focus, horizon = "rescue and stabilise", "3 months"
        elif health < IMPROVE_BELOW:
            focus, horizon = "improve and grow", "6 months"
        else:
            focus, horizon = "expand and lead", "12 months"
        return {
            "primary_focus": focus,
            "time_horizon": horizon,
            "investment_level": investment_level(health, context.business_size),
            "key_pillars": focus_pillars(dimensions),
            "sector": context.sector,
        }

    @staticmethod
    def _executive_summary(
        context: AssessmentContext,
        health: float,
        plan_type: PlanType,
        direction: Mapping[str, Any],
    ) -> dict[str, Any]:
        company = context.company_name or "The business"
        label = score_label(health)
        return {
            "company": company,
            "sector": context.sector,
            "overall_health": health,
            "health_label": label,
            "plan_type": plan_type.value,
            "primary_focus": direction["primary_focus"],
            "time_horizon": direction["time_horizon"],
            "summary_text": (
                f"Based on the full analysis of {company} in the {context.sector} sector, overall health is "
                f"{health:.0f}/100 ({label}). Recommended: {PLAN_LABELS[plan_type].lower()} focused on "
                f"{direction['primary_focus']} over {direction['time_horizon']}."
            ),
        }

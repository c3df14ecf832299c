"""
Consumer psychologist: purchase behaviour, satisfaction and loyalty.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import (
    ExpertAnalysisResult,
    ImpactTag,
    Insight,
    Priority,
    Recommendation,
)
from marketing_engine.core.values import clamp, get_numeric, get_str, round_half_up
from marketing_engine.experts.base import (
    build_result,
    calculate_confidence,
    impact_for,
    lookup,
    make_insight,
    make_recommendation,
    normalize_score,
    parse_enum,
    score_label,
)


class SatisfactionLevel(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    VERY_LOW = "very_low"


class PurchaseFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    OCCASIONAL = "occasional"


class NpsCategory(str, Enum):
    PROMOTER = "promoter"
    PASSIVE = "passive"
    DETRACTOR = "detractor"


SATISFACTION_SCORES = {
    SatisfactionLevel.VERY_HIGH: 95,
    SatisfactionLevel.HIGH: 75,
    SatisfactionLevel.MODERATE: 55,
    SatisfactionLevel.LOW: 30,
    SatisfactionLevel.VERY_LOW: 10,
}
FREQUENCY_SCORES = {
    PurchaseFrequency.DAILY: 95,
    PurchaseFrequency.WEEKLY: 80,
    PurchaseFrequency.MONTHLY: 60,
    PurchaseFrequency.QUARTERLY: 40,
    PurchaseFrequency.OCCASIONAL: 25,
}
OTHER_FREQUENCY_SCORE = 30

PROMOTER_NPS_MIN = 50
PASSIVE_NPS_MIN = 0

HIGH_CHURN_ABOVE = 20
MEDIUM_CHURN_ABOVE = 10
LOW_RETENTION_BELOW = 60
# LTV points per loyalty point, capped at 100
LTV_DIVISOR = 10


def satisfaction_points(raw: Any) -> float:
    """Categorical satisfaction level, or a 0-10 rating scaled to 0-100; moderate when unknown."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return clamp(raw * 10)
    level = parse_enum(SatisfactionLevel, raw if isinstance(raw, str) else None) or SatisfactionLevel.MODERATE
    return SATISFACTION_SCORES[level]


def nps_category(nps: float) -> NpsCategory:
    if nps >= PROMOTER_NPS_MIN:
        return NpsCategory.PROMOTER
    if nps >= PASSIVE_NPS_MIN:
        return NpsCategory.PASSIVE
    return NpsCategory.DETRACTOR


class ConsumerPsychologist:
    expert_id = "consumer_psychologist"
    name = "Consumer Psychologist"
    role = "Analyses customer behaviour, satisfaction and loyalty"
    expertise = (
        "consumer_behavior",
        "customer_satisfaction",
        "loyalty_programs",
        "customer_journey",
        "buying_psychology",
    )
    decision_weight = 0.7

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        satisfaction_raw = get_numeric(answers, "customer_satisfaction")
        if satisfaction_raw is None:
            satisfaction_raw = get_str(answers, "customer_satisfaction")
        data = {
            "customer_satisfaction": satisfaction_raw,
            "purchase_frequency": get_str(answers, "purchase_frequency"),
            "retention_rate": get_numeric(answers, "retention_rate", "customer_retention_rate"),
            "repeat_purchase_rate": get_numeric(answers, "repeat_purchase_rate"),
            "nps_score": get_numeric(answers, "nps_score"),
            "customer_lifetime_value": get_numeric(answers, "customer_lifetime_value", "ltv"),
            "churn_rate": get_numeric(answers, "churn_rate", "customer_churn_rate"),
        }
        behavior = self._behavior(data)
        satisfaction = self._satisfaction(data)
        loyalty = self._loyalty(data)
        health = (
            behavior["behavior_score"] * 0.30
            + satisfaction["satisfaction_score"] * 0.35
            + loyalty["loyalty_score"] * 0.35
        )
        return build_result(
            self,
            scores={
                "customer_health": round_half_up(health, 1),
                "loyalty_score": loyalty["loyalty_score"],
                "satisfaction_index": satisfaction["satisfaction_score"],
            },
            sections={
                "customer_behavior": behavior,
                "satisfaction_analysis": satisfaction,
                "loyalty_assessment": loyalty,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        health = result.scores.get("customer_health", 50)
        insights = [
            make_insight(
                self,
                "Customer relationship health",
                f"Customer health: {score_label(health)} ({health:.0f}/100)",
                impact_for(health),
                0.87,
            )
        ]
        satisfaction = result.scores.get("satisfaction_index", 50)
        if satisfaction < 40:
            insights.append(
                make_insight(
                    self,
                    "Low customer satisfaction",
                    "Dissatisfied customers are likely to leave and discourage others",
                    ImpactTag.WARNING,
                    0.85,
                )
            )
        elif satisfaction >= 75:
            insights.append(
                make_insight(
                    self,
                    "High customer satisfaction",
                    "Satisfied customers are an asset for referrals and word of mouth",
                    ImpactTag.POSITIVE,
                    0.85,
                )
            )
        if result.scores.get("loyalty_score", 50) < 40:
            insights.append(
                make_insight(
                    self,
                    "Weak customer loyalty",
                    "Customers show little attachment to the brand and switch easily",
                    ImpactTag.WARNING,
                    0.82,
                )
            )
        retention = result.sections.get("customer_behavior", {}).get("retention_rate") or 0
        if 0 < retention < LOW_RETENTION_BELOW:
            insights.append(
                make_insight(
                    self,
                    "Low customer retention",
                    f"Only {retention:.0f}% of customers are retained; acquisition spend is leaking",
                    ImpactTag.NEGATIVE,
                    0.85,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        satisfaction = result.scores.get("satisfaction_index", 50)
        if satisfaction < 60:
            critical = satisfaction < 40
            recommendations.append(
                make_recommendation(
                    self,
                    "Fix the customer experience" if critical else "Raise customer satisfaction",
                    (
                        "Satisfaction is low enough to threaten revenue"
                        if critical
                        else "Satisfaction is average and leaves room for competitors"
                    ),
                    Priority.CRITICAL if critical else Priority.HIGH,
                    [
                        "Survey customers to find the main pain points",
                        "Map the customer journey and remove friction",
                        "Set a response-time standard for complaints",
                    ],
                )
            )
        if result.scores.get("loyalty_score", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Build customer loyalty",
                    "Loyalty is too weak to sustain repeat revenue",
                    Priority.HIGH,
                    [
                        "Launch a simple loyalty or rewards programme",
                        "Follow up after every purchase",
                        "Personalise offers for returning customers",
                    ],
                )
            )
        if result.scores.get("customer_health", 50) >= 70:
            recommendations.append(
                make_recommendation(
                    self,
                    "Turn satisfied customers into advocates",
                    "Healthy customer relationships can drive referral growth",
                    Priority.MEDIUM,
                    [
                        "Start a referral programme",
                        "Collect and publish customer testimonials",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _behavior(data: Mapping[str, Any]) -> dict[str, Any]:
        frequency = lookup(
            FREQUENCY_SCORES,
            parse_enum(PurchaseFrequency, data["purchase_frequency"] or PurchaseFrequency.OCCASIONAL.value),
            OTHER_FREQUENCY_SCORE,
        )
        retention = normalize_score(data["retention_rate"] or 0, 0, 100)
        repeat = normalize_score(data["repeat_purchase_rate"] or 0, 0, 100)
        behavior = frequency * 0.35 + retention * 0.40 + repeat * 0.25
        return {
            "frequency_score": frequency,
            "retention_rate": data["retention_rate"],
            "retention_score": retention,
            "repeat_rate": data["repeat_purchase_rate"],
            "behavior_score": round_half_up(behavior, 1),
            "behavior_label": score_label(behavior),
        }

    @staticmethod
    def _satisfaction(data: Mapping[str, Any]) -> dict[str, Any]:
        nps = data["nps_score"] or 0
        nps_normalized = normalize_score(nps, -100, 100)
        level_points = satisfaction_points(data["customer_satisfaction"])
        satisfaction = level_points * 0.6 + nps_normalized * 0.4
        return {
            "satisfaction_level_score": level_points,
            "satisfaction_score": round_half_up(satisfaction, 1),
            "nps_raw": nps,
            "nps_normalized": nps_normalized,
            "nps_category": nps_category(nps).value,
        }

    @staticmethod
    def _loyalty(data: Mapping[str, Any]) -> dict[str, Any]:
        churn = data["churn_rate"] or 0
        ltv = data["customer_lifetime_value"] or 0
        loyalty = (
            normalize_score(data["retention_rate"] or 0, 0, 100) * 0.35
            + normalize_score(data["nps_score"] or 0, -100, 100) * 0.25
            + min(100, ltv / LTV_DIVISOR) * 0.25
            - min(50, churn * 2) * 0.15
        )
        loyalty = clamp(loyalty)
        if churn > HIGH_CHURN_ABOVE:
            churn_risk = "high"
        elif churn > MEDIUM_CHURN_ABOVE:
            churn_risk = "medium"
        else:
            churn_risk = "low"
        return {
            "loyalty_score": round_half_up(loyalty, 1),
            "loyalty_label": score_label(loyalty),
            "churn_risk": churn_risk,
            "ltv": data["customer_lifetime_value"],
        }

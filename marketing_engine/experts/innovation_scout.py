"""
Innovation scout: innovation maturity, growth opportunities, trend relevance by
sector and technology readiness.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import (
    Effort,
    ExpertAnalysisResult,
    ImpactTag,
    Insight,
    Priority,
    Recommendation,
)
from marketing_engine.core.values import get_bool, get_numeric, get_str, round_half_up
from marketing_engine.experts.base import (
    build_result,
    calculate_confidence,
    make_insight,
    make_recommendation,
    score_label,
)


class InnovationDimension(str, Enum):
    TECHNOLOGY_ADOPTION = "technology_adoption"
    MARKET_AWARENESS = "market_awareness"
    CREATIVE_CAPABILITY = "creative_capability"
    ADAPTABILITY = "adaptability"
    EXPERIMENTATION = "experimentation"


class Trend(str, Enum):
    AI_MARKETING = "ai_marketing"
    VIDEO_CONTENT = "video_content"
    SOCIAL_COMMERCE = "social_commerce"
    PERSONALIZATION = "personalization"
    VOICE_SEARCH = "voice_search"
    SUSTAINABILITY = "sustainability"
    INFLUENCER_MICRO = "influencer_micro"
    COMMUNITY_BUILDING = "community_building"


DIMENSION_WEIGHTS = {
    InnovationDimension.TECHNOLOGY_ADOPTION: 0.25,
    InnovationDimension.MARKET_AWARENESS: 0.20,
    InnovationDimension.CREATIVE_CAPABILITY: 0.20,
    InnovationDimension.ADAPTABILITY: 0.20,
    InnovationDimension.EXPERIMENTATION: 0.15,
}

CREATION_FREQUENCY_BONUS = {"daily": 40, "weekly": 30, "monthly": 15}
AUTOMATION_POINTS_PER_LEVEL = 7
AUTOMATION_POINTS_MAX = 35

# Trend -> (relevance in matching sectors, matching sectors, relevance elsewhere)
TREND_RELEVANCE: dict[Trend, tuple[int, frozenset[str], int]] = {
    Trend.VIDEO_CONTENT: (80, frozenset(), 80),
    Trend.SOCIAL_COMMERCE: (90, frozenset({"retail", "fnb", "crafts"}), 65),
    Trend.PERSONALIZATION: (85, frozenset({"education", "healthcare"}), 70),
    Trend.AI_MARKETING: (75, frozenset(), 75),
    Trend.INFLUENCER_MICRO: (85, frozenset({"fitness", "fnb", "crafts"}), 60),
    Trend.COMMUNITY_BUILDING: (85, frozenset({"education", "fitness"}), 65),
    Trend.VOICE_SEARCH: (50, frozenset(), 50),
    Trend.SUSTAINABILITY: (75, frozenset({"crafts", "fnb"}), 55),
}
RELEVANT_TREND_MIN = 70

TECH_READINESS_BASE = 30
TECH_READINESS_POINTS = {
    "has_website": 10,
    "uses_crm": 15,
    "uses_analytics": 15,
    "uses_automation": 15,
    "uses_digital_tools": 10,
}

DIGITAL_OPPORTUNITY_BELOW = 50
DEFAULT_DIGITAL_SCORE = 30
LOYALTY_RETENTION_BELOW = 70
# Opportunity index when no opportunity is identified
EMPTY_OPPORTUNITY_INDEX = 30.0
STRONG_OPPORTUNITY_MIN = 60


@dataclass
class Opportunity:
    id: str
    title: str
    description: str
    potential_impact: int
    effort: Effort
    timeframe: str
    confidence: float
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["effort"] = self.effort.value
        return out


def trend_relevance(sector: str) -> list[dict[str, Any]]:
    trends = []
    for trend, (matching, sectors, other) in TREND_RELEVANCE.items():
        trends.append({
            "key": trend.value,
            "relevance": matching if sector in sectors else other,
            "sector": sector,
        })
    trends.sort(key=lambda t: t["relevance"], reverse=True)
    return trends


class InnovationScout:
    expert_id = "innovation_scout"
    name = "Innovation Scout"
    role = "Finds innovation opportunities and emerging marketing trends"
    expertise = (
        "innovation",
        "trend_analysis",
        "emerging_technologies",
        "growth_hacking",
        "experimentation",
    )
    decision_weight = 0.6

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        dimensions = self._dimensions(answers)
        overall = round_half_up(
            sum(dimensions[d] * w for d, w in DIMENSION_WEIGHTS.items()) / sum(DIMENSION_WEIGHTS.values()),
            1,
        )
        opportunities = self._opportunities(answers, scores)
        tech = self._tech_readiness(answers)
        data_points = {
            key: answers.get(key)
            for key in (
                "uses_digital_tools",
                "automation_level",
                "follows_market_trends",
                "monitors_competitors",
                "content_creation_frequency",
                "has_pivoted",
                "does_ab_testing",
                "tries_new_channels",
                "uses_crm",
                "uses_automation",
            )
        }
        return build_result(
            self,
            scores={
                "innovation_score": overall,
                "opportunity_index": self._opportunity_index(opportunities),
                "tech_readiness": tech["readiness_score"],
            },
            sections={
                "innovation_audit": {
                    "overall_score": overall,
                    "maturity_label": score_label(overall),
                    "dimension_scores": {d.value: s for d, s in dimensions.items()},
                },
                "opportunity_map": [o.to_dict() for o in opportunities],
                "technology_assessment": tech,
                "trend_relevance": trend_relevance(context.sector),
            },
            confidence=calculate_confidence(data_points),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        innovation = result.scores.get("innovation_score", 50)
        insights = [
            make_insight(
                self,
                "Innovation level",
                f"Innovation: {score_label(innovation)} ({innovation:.0f}/100). "
                + (
                    "The business embraces innovation well"
                    if innovation >= 60
                    else "There is plenty of room for innovative marketing approaches"
                ),
                ImpactTag.POSITIVE if innovation >= 60 else ImpactTag.NEUTRAL,
                0.8,
            )
        ]
        if result.scores.get("opportunity_index", 0) >= 60:
            insights.append(
                make_insight(
                    self,
                    "Strong growth opportunities",
                    "Several high-impact opportunities are available at reasonable effort",
                    ImpactTag.POSITIVE,
                    0.8,
                )
            )
        for opportunity in result.sections.get("opportunity_map", [])[:2]:
            insights.append(
                make_insight(
                    self,
                    f"Opportunity: {opportunity['title']}",
                    opportunity["description"],
                    ImpactTag.POSITIVE,
                    opportunity.get("confidence", 0.7),
                )
            )
        relevant = [t["key"] for t in result.sections.get("trend_relevance", []) if t["relevance"] >= RELEVANT_TREND_MIN]
        if relevant:
            insights.append(
                make_insight(
                    self,
                    "Relevant market trends",
                    "Trends worth adopting in this sector: " + ", ".join(relevant[:3]),
                    ImpactTag.NEUTRAL,
                    0.75,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        innovation = result.scores.get("innovation_score", 50)
        if innovation < 40:
            priority, title = Priority.HIGH, "Build an innovation habit"
        elif innovation < 70:
            priority, title = Priority.MEDIUM, "Increase experimentation"
        else:
            priority, title = Priority.LOW, "Keep leading on innovation"
        recommendations.append(
            make_recommendation(
                self,
                title,
                f"Innovation scores {innovation:.0f}/100",
                priority,
                [
                    "Reserve a small budget for marketing experiments",
                    "Run at least one A/B test a month",
                    "Review new channels and trends quarterly",
                ],
            )
        )
        if result.scores.get("tech_readiness", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Raise technology readiness",
                    "Core marketing technology is missing",
                    Priority.HIGH,
                    [
                        "Adopt a simple CRM",
                        "Install web and social analytics",
                        "Automate follow-up messages",
                    ],
                )
            )
        for opportunity in result.sections.get("opportunity_map", [])[:2]:
            if opportunity["potential_impact"] >= STRONG_OPPORTUNITY_MIN:
                recommendations.append(
                    make_recommendation(
                        self,
                        opportunity["title"],
                        opportunity["description"],
                        Priority.MEDIUM,
                        opportunity["actions"],
                    )
                )
        return recommendations

    @staticmethod
    def _dimensions(answers: Mapping[str, Any]) -> dict[InnovationDimension, float]:
        tech = 30
        if get_bool(answers, "uses_digital_tools"):
            tech += 25
        automation = get_numeric(answers, "automation_level")
        tech += min(AUTOMATION_POINTS_MAX, int(1 if automation is None else automation) * AUTOMATION_POINTS_PER_LEVEL)

        market = 30
        if get_bool(answers, "follows_market_trends"):
            market += 30
        if get_bool(answers, "monitors_competitors"):
            market += 25

        creative = 30 + CREATION_FREQUENCY_BONUS.get(get_str(answers, "content_creation_frequency", default=""), 0)

        adaptability = 40
        if get_bool(answers, "has_pivoted"):
            adaptability += 25

        experimentation = 25
        if get_bool(answers, "does_ab_testing"):
            experimentation += 30
        if get_bool(answers, "tries_new_channels"):
            experimentation += 25

        return {
            InnovationDimension.TECHNOLOGY_ADOPTION: min(100, max(0, tech)),
            InnovationDimension.MARKET_AWARENESS: min(100, market),
            InnovationDimension.CREATIVE_CAPABILITY: min(100, creative),
            InnovationDimension.ADAPTABILITY: min(100, adaptability),
            InnovationDimension.EXPERIMENTATION: min(100, experimentation),
        }

    @staticmethod
    def _opportunities(answers: Mapping[str, Any], scores: Mapping[str, float]) -> list[Opportunity]:
        found: list[Opportunity] = []
        digital = get_numeric(scores, "digital_maturity", "digital")
        if (DEFAULT_DIGITAL_SCORE if digital is None else digital) < DIGITAL_OPPORTUNITY_BELOW:
            found.append(
                Opportunity(
                    id="OPP_DIGITAL",
                    title="Digital transformation",
                    description="A large opportunity to strengthen digital presence and reach more customers",
                    potential_impact=85,
                    effort=Effort.MEDIUM,
                    timeframe="3-6 months",
                    confidence=0.85,
                    actions=[
                        "Launch a professional website",
                        "Activate the main social platforms",
                        "Start search advertising",
                    ],
                )
            )
        if get_bool(answers, "has_social_media") and not get_bool(answers, "social_selling"):
            found.append(
                Opportunity(
                    id="OPP_SOCIAL_COMMERCE",
                    title="Social commerce",
                    description="Turn followers into customers by selling directly on social platforms",
                    potential_impact=70,
                    effort=Effort.LOW,
                    timeframe="1-2 months",
                    confidence=0.8,
                    actions=[
                        "Enable shop features on the main platform",
                        "Publish shoppable posts weekly",
                    ],
                )
            )
        if get_str(answers, "content_creation_frequency", default="rarely") in ("rarely", "never"):
            found.append(
                Opportunity(
                    id="OPP_CONTENT",
                    title="Content marketing",
                    description="Valuable content attracts customers and builds trust and authority",
                    potential_impact=75,
                    effort=Effort.MEDIUM,
                    timeframe="2-4 months",
                    confidence=0.8,
                    actions=[
                        "Plan a monthly content calendar",
                        "Publish educational posts and short videos",
                    ],
                )
            )
        retention = get_numeric(answers, "customer_retention", "customer_retention_rate")
        if not get_bool(answers, "has_loyalty_program") and (retention or 0) < LOYALTY_RETENTION_BELOW:
            found.append(
                Opportunity(
                    id="OPP_LOYALTY",
                    title="Customer loyalty programme",
                    description="A loyalty programme raises retention and repeat purchases",
                    potential_impact=65,
                    effort=Effort.MEDIUM,
                    timeframe="2-3 months",
                    confidence=0.75,
                    actions=[
                        "Design a points or rewards scheme",
                        "Reward referrals",
                    ],
                )
            )
        if not get_bool(answers, "uses_whatsapp_business"):
            found.append(
                Opportunity(
                    id="OPP_WHATSAPP",
                    title="WhatsApp Business marketing",
                    description="Use WhatsApp as a primary marketing and sales channel",
                    potential_impact=70,
                    effort=Effort.LOW,
                    timeframe="2-4 weeks",
                    confidence=0.85,
                    actions=[
                        "Set up a WhatsApp Business catalogue",
                        "Send broadcast offers to opted-in customers",
                    ],
                )
            )
        found.sort(key=lambda o: o.potential_impact, reverse=True)
        return found

    @staticmethod
    def _opportunity_index(opportunities: list[Opportunity]) -> float:
        if not opportunities:
            return EMPTY_OPPORTUNITY_INDEX
        mean = sum(o.potential_impact for o in opportunities) / len(opportunities)
        return min(100.0, round_half_up(mean, 1))

    @staticmethod
    def _tech_readiness(answers: Mapping[str, Any]) -> dict[str, Any]:
        score = TECH_READINESS_BASE + sum(
            points for key, points in TECH_READINESS_POINTS.items() if get_bool(answers, key)
        )
        score = min(100, score)
        return {
            "readiness_score": score,
            "readiness_label": score_label(score),
        }

"""
Market analyst: competitive position, growth opportunity and market attractiveness.
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
from marketing_engine.core.values import get_numeric, get_str, round_half_up
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


class CompetitionLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class MarketSize(str, Enum):
    VERY_LARGE = "very_large"
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"
    VERY_SMALL = "very_small"


class MarketPosition(str, Enum):
    LEADER = "leader"
    CHALLENGER = "challenger"
    FOLLOWER = "follower"
    NICHER = "nicher"


COMPETITION_SCORES = {
    CompetitionLevel.VERY_LOW: 90,
    CompetitionLevel.LOW: 75,
    CompetitionLevel.MODERATE: 60,
    CompetitionLevel.HIGH: 40,
    CompetitionLevel.VERY_HIGH: 20,
}
MARKET_SIZE_SCORES = {
    MarketSize.VERY_LARGE: 90,
    MarketSize.LARGE: 75,
    MarketSize.MEDIUM: 55,
    MarketSize.SMALL: 35,
    MarketSize.VERY_SMALL: 15,
}
POSITION_SCORES = {
    MarketPosition.LEADER: 90,
    MarketPosition.CHALLENGER: 70,
    MarketPosition.FOLLOWER: 45,
    MarketPosition.NICHER: 60,
}
UNKNOWN_SIZE_SCORE = 50
UNKNOWN_POSITION_SCORE = 40

# Market growth % mapped onto 0-100 over this range
GROWTH_RANGE = (-10, 30)
# Market share % mapped onto 0-100 over this range
SHARE_RANGE = (0, 50)

HIGH_GROWTH_ABOVE = 10
FEW_SEGMENTS_BELOW = 3
SMALL_SHARE_BELOW = 15
POINTS_PER_SEGMENT = 20


class MarketAnalyst:
    expert_id = "market_analyst"
    name = "Market Analyst"
    role = "Analyses the market, the competition and growth opportunities"
    expertise = (
        "market_research",
        "competitive_analysis",
        "market_sizing",
        "trend_analysis",
        "segmentation",
    )
    decision_weight = 0.8

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        data = {
            "competition_level": get_str(answers, "competition_level"),
            "competitors_count": get_numeric(answers, "competitors_count", "number_of_competitors"),
            "customer_segments": get_numeric(answers, "customer_segments"),
            "market_growth": get_numeric(answers, "market_growth", "market_growth_rate"),
            "market_position": get_str(answers, "market_position"),
            "market_share": get_numeric(answers, "market_share"),
            "market_size": get_str(answers, "market_size"),
        }
        competition = self._competition(data)
        growth = self._growth(data)
        attractiveness = self._attractiveness(data, competition["competition_score"], growth["market_growth_score"])
        return build_result(
            self,
            scores={
                "market_position": competition["position_score"],
                "growth_potential": growth["growth_score"],
                "market_attractiveness": attractiveness["score"],
            },
            sections={
                "competitive_analysis": competition,
                "growth_opportunities": growth,
                "market_attractiveness": attractiveness,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        position = result.scores.get("market_position", 50)
        growth = result.scores.get("growth_potential", 50)
        attractiveness = result.scores.get("market_attractiveness", 50)
        insights = [
            make_insight(
                self,
                "Competitive position",
                f"Market position is {score_label(position)} ({position:.0f}/100)",
                impact_for(position),
                0.85,
            ),
            make_insight(
                self,
                "Growth potential",
                f"Growth potential scores {growth:.0f}/100",
                impact_for(growth),
                0.8,
            ),
        ]
        if attractiveness < 40:
            insights.append(
                make_insight(
                    self,
                    "Unattractive market",
                    "Market size, growth and competition combine into a difficult environment",
                    ImpactTag.WARNING,
                    0.75,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        position = result.scores.get("market_position", 50)
        if position < 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Strengthen competitive position",
                    "The business is weakly placed against competitors",
                    Priority.CRITICAL if position < 40 else Priority.HIGH,
                    [
                        "Map the top competitors' offers and prices",
                        "Define a clear differentiating value proposition",
                        "Focus on the segment where the business can lead",
                    ],
                )
            )
        if result.scores.get("growth_potential", 50) >= 65:
            recommendations.append(
                make_recommendation(
                    self,
                    "Capture market growth opportunities",
                    "The market offers room to grow that the business is not yet using",
                    Priority.HIGH,
                    [
                        "Prioritise the fastest-growing customer segments",
                        "Extend into adjacent segments",
                        "Increase share of voice in growing channels",
                    ],
                )
            )
        if result.scores.get("market_attractiveness", 50) < 40:
            recommendations.append(
                make_recommendation(
                    self,
                    "Reassess market focus",
                    "The current market is hard to win in; consider niches or adjacent markets",
                    Priority.MEDIUM,
                    [
                        "Identify underserved niches",
                        "Test demand in an adjacent market",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _competition(data: Mapping[str, Any]) -> dict[str, Any]:
        level = parse_enum(CompetitionLevel, data["competition_level"]) or CompetitionLevel.MODERATE
        competition_score = COMPETITION_SCORES[level]
        share_score = normalize_score(data["market_share"] or 0, *SHARE_RANGE)
        position = parse_enum(MarketPosition, data["market_position"])
        position_points = lookup(POSITION_SCORES, position, UNKNOWN_POSITION_SCORE)
        position_score = share_score * 0.4 + position_points * 0.35 + competition_score * 0.25
        return {
            "competition_level": level.value,
            "competitors_count": data["competitors_count"],
            "competition_score": competition_score,
            "market_share_score": share_score,
            "position": position.value if position else None,
            "position_score": round_half_up(position_score, 1),
        }

    @staticmethod
    def _growth(data: Mapping[str, Any]) -> dict[str, Any]:
        growth = data["market_growth"] or 0
        segments = data["customer_segments"] or 0
        share = data["market_share"] or 0
        growth_score = normalize_score(growth, *GROWTH_RANGE)

        opportunities: list[str] = []
        if growth > HIGH_GROWTH_ABOVE:
            opportunities.append("Fast-growing market; expand share while demand rises")
        if segments < FEW_SEGMENTS_BELOW:
            opportunities.append("Few customer segments served; new segments are available")
        if share < SMALL_SHARE_BELOW:
            opportunities.append("Small market share; plenty of headroom to capture")

        segment_score = min(100, segments * POINTS_PER_SEGMENT)
        score = min(100.0, growth_score * 0.5 + segment_score * 0.3 + len(opportunities) * 10 * 0.2)
        return {
            "market_growth_score": growth_score,
            "segment_score": segment_score,
            "opportunities": opportunities,
            "growth_score": round_half_up(score, 1),
        }

    @staticmethod
    def _attractiveness(data: Mapping[str, Any], competition_score: float, growth_score: float) -> dict[str, Any]:
        size = parse_enum(MarketSize, data["market_size"])
        size_score = lookup(MARKET_SIZE_SCORES, size, UNKNOWN_SIZE_SCORE)
        score = size_score * 0.3 + growth_score * 0.35 + competition_score * 0.35
        return {
            "market_size": size.value if size else None,
            "size_score": size_score,
            "score": round_half_up(score, 1),
            "label": score_label(score),
        }

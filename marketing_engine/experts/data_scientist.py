"""
Data scientist: data readiness, analytics maturity and insight capability.
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
from marketing_engine.core.values import get_list, get_numeric, get_str, round_half_up
from marketing_engine.experts.base import (
    build_result,
    calculate_confidence,
    impact_for,
    lookup,
    make_insight,
    make_recommendation,
    parse_enum,
    score_label,
)


class Collection(str, Enum):
    COMPREHENSIVE = "comprehensive"
    SYSTEMATIC = "systematic"
    MODERATE = "moderate"
    BASIC = "basic"
    MINIMAL = "minimal"
    NONE = "none"


class DataQuality(str, Enum):
    EXCELLENT = "excellent"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    VERY_LOW = "very_low"


class DecisionHabit(str, Enum):
    ALWAYS = "always"
    OFTEN = "often"
    SOMETIMES = "sometimes"
    RARELY = "rarely"
    NEVER = "never"


class AnalyticsLevel(str, Enum):
    PREDICTIVE = "predictive"
    DIAGNOSTIC = "diagnostic"
    DESCRIPTIVE = "descriptive"
    BASIC = "basic"
    NONE = "none"


class ReportingFrequency(str, Enum):
    REAL_TIME = "real_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    RARELY = "rarely"
    NEVER = "never"


class MaturityStage(str, Enum):
    OPTIMIZED = "optimized"
    MANAGED = "managed"
    DEFINED = "defined"
    DEVELOPING = "developing"
    INITIAL = "initial"


COLLECTION_SCORES = {
    Collection.COMPREHENSIVE: 90,
    Collection.SYSTEMATIC: 70,
    Collection.MODERATE: 50,
    Collection.BASIC: 30,
    Collection.MINIMAL: 15,
    Collection.NONE: 5,
}
QUALITY_SCORES = {
    DataQuality.EXCELLENT: 90,
    DataQuality.HIGH: 75,
    DataQuality.MODERATE: 55,
    DataQuality.LOW: 30,
    DataQuality.VERY_LOW: 10,
}
DECISION_SCORES = {
    DecisionHabit.ALWAYS: 90,
    DecisionHabit.OFTEN: 70,
    DecisionHabit.SOMETIMES: 50,
    DecisionHabit.RARELY: 25,
    DecisionHabit.NEVER: 5,
}
ANALYTICS_SCORES = {
    AnalyticsLevel.PREDICTIVE: 95,
    AnalyticsLevel.DIAGNOSTIC: 75,
    AnalyticsLevel.DESCRIPTIVE: 55,
    AnalyticsLevel.BASIC: 30,
    AnalyticsLevel.NONE: 5,
}
REPORTING_SCORES = {
    ReportingFrequency.REAL_TIME: 95,
    ReportingFrequency.DAILY: 85,
    ReportingFrequency.WEEKLY: 65,
    ReportingFrequency.MONTHLY: 45,
    ReportingFrequency.QUARTERLY: 25,
    ReportingFrequency.RARELY: 10,
    ReportingFrequency.NEVER: 5,
}
MATURITY_STAGES = (
    (80, MaturityStage.OPTIMIZED),
    (60, MaturityStage.MANAGED),
    (40, MaturityStage.DEFINED),
    (20, MaturityStage.DEVELOPING),
)

OTHER_COLLECTION_SCORE = 25
OTHER_QUALITY_SCORE = 30
OTHER_DECISION_SCORE = 25
OTHER_REPORTING_SCORE = 20
# Infrastructure view of collection: anything below "basic" counts the same
INFRA_COLLECTION_FLOOR = 15

POINTS_PER_SOURCE = 15
POINTS_PER_TOOL = 20
DEFAULT_DATA_SOURCES = 1

# Yes/no answers to the data-driven question map onto the habit scale
BOOLEAN_DECISION_HABITS = {"yes": DecisionHabit.OFTEN, "no": DecisionHabit.NEVER}


def decision_habit(raw: str | None) -> DecisionHabit | None:
    if raw in BOOLEAN_DECISION_HABITS:
        return BOOLEAN_DECISION_HABITS[raw]
    return parse_enum(DecisionHabit, raw)


def maturity_stage(score: float) -> MaturityStage:
    for threshold, stage in MATURITY_STAGES:
        if score >= threshold:
            return stage
    return MaturityStage.INITIAL


class DataScientist:
    expert_id = "data_scientist"
    name = "Data Scientist"
    role = "Assesses data maturity, analytics capability and data infrastructure"
    expertise = (
        "data_analysis",
        "analytics",
        "reporting",
        "data_quality",
        "predictive_modeling",
    )
    decision_weight = 0.6

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        data = {
            "data_collection": get_str(answers, "data_collection"),
            "analytics_usage": get_str(answers, "analytics_usage"),
            "data_quality": get_str(answers, "data_quality"),
            "reporting_frequency": get_str(answers, "reporting_frequency"),
            "data_driven_decisions": get_str(answers, "data_driven_decisions"),
            "analytics_tools": get_list(answers, "analytics_tools"),
            "data_sources": get_numeric(answers, "data_sources"),
        }
        readiness = self._readiness(data)
        analytics = self._analytics(data)
        infrastructure = self._infrastructure(data, context.sector)
        return build_result(
            self,
            scores={
                "data_readiness": readiness["readiness_score"],
                "analytics_maturity": analytics["maturity_score"],
                "insight_capability": infrastructure["insight_score"],
            },
            sections={
                "data_maturity": readiness,
                "analytics_capability": analytics,
                "data_infrastructure": infrastructure,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        readiness = result.scores.get("data_readiness", 50)
        insights = [
            make_insight(
                self,
                "Data readiness",
                f"Data readiness: {score_label(readiness)} ({readiness:.0f}/100)",
                impact_for(readiness),
                0.86,
            )
        ]
        analytics = result.scores.get("analytics_maturity", 50)
        if analytics < 35:
            insights.append(
                make_insight(
                    self,
                    "Analytics are immature",
                    "Decisions are made with little analytical support",
                    ImpactTag.WARNING,
                    0.84,
                )
            )
        elif analytics >= 70:
            insights.append(
                make_insight(
                    self,
                    "Advanced analytics",
                    "Analytics capability supports evidence-based marketing decisions",
                    ImpactTag.POSITIVE,
                    0.84,
                )
            )
        if result.scores.get("insight_capability", 50) < 40:
            insights.append(
                make_insight(
                    self,
                    "Limited insight capability",
                    "Tools and collection practices are too thin to turn data into insight",
                    ImpactTag.WARNING,
                    0.80,
                )
            )
        quality = result.sections.get("data_maturity", {}).get("quality_score", 50)
        if quality < 40:
            insights.append(
                make_insight(
                    self,
                    "Poor data quality",
                    "Low data quality undermines any analysis built on it",
                    ImpactTag.NEGATIVE,
                    0.82,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        readiness = result.scores.get("data_readiness", 50)
        if readiness < 35:
            recommendations.append(
                make_recommendation(
                    self,
                    "Establish data foundations",
                    "The business collects too little reliable data to steer marketing",
                    Priority.CRITICAL,
                    [
                        "Define the key data points to capture per customer",
                        "Install analytics on the website and social accounts",
                        "Record every sale with its acquisition source",
                    ],
                )
            )
        elif readiness < 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Improve data practices",
                    "Data exists but is not used systematically",
                    Priority.HIGH,
                    [
                        "Clean and consolidate customer data",
                        "Make data review part of every marketing decision",
                    ],
                )
            )
        if result.scores.get("analytics_maturity", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Develop analytics and reporting",
                    "Reporting is too infrequent and shallow to guide decisions",
                    Priority.HIGH,
                    [
                        "Build a weekly KPI dashboard",
                        "Connect more data sources",
                        "Move from descriptive to diagnostic analysis",
                    ],
                )
            )
        if result.scores.get("insight_capability", 50) >= 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Use data for prediction",
                    "The data foundation is strong enough for predictive use",
                    Priority.MEDIUM,
                    [
                        "Segment customers by value and behaviour",
                        "Forecast demand for the next quarter",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _readiness(data: Mapping[str, Any]) -> dict[str, Any]:
        collection = lookup(
            COLLECTION_SCORES,
            parse_enum(Collection, data["data_collection"] or Collection.BASIC.value),
            OTHER_COLLECTION_SCORE,
        )
        quality = lookup(
            QUALITY_SCORES,
            parse_enum(DataQuality, data["data_quality"] or DataQuality.LOW.value),
            OTHER_QUALITY_SCORE,
        )
        decisions = lookup(
            DECISION_SCORES,
            decision_habit(data["data_driven_decisions"] or DecisionHabit.RARELY.value),
            OTHER_DECISION_SCORE,
        )
        readiness = collection * 0.35 + quality * 0.35 + decisions * 0.30
        return {
            "collection_score": collection,
            "quality_score": quality,
            "decision_score": decisions,
            "readiness_score": round_half_up(readiness, 1),
            "maturity_stage": maturity_stage(readiness).value,
        }

    @staticmethod
    def _analytics(data: Mapping[str, Any]) -> dict[str, Any]:
        level = parse_enum(AnalyticsLevel, data["analytics_usage"]) or AnalyticsLevel.NONE
        reporting = lookup(
            REPORTING_SCORES,
            parse_enum(ReportingFrequency, data["reporting_frequency"] or ReportingFrequency.RARELY.value),
            OTHER_REPORTING_SCORE,
        )
        sources = data["data_sources"]
        source_score = min(100, (DEFAULT_DATA_SOURCES if sources is None else sources) * POINTS_PER_SOURCE)
        maturity = ANALYTICS_SCORES[level] * 0.45 + reporting * 0.30 + source_score * 0.25
        return {
            "analytics_level": level.value,
            "analytics_score": ANALYTICS_SCORES[level],
            "reporting_score": reporting,
            "source_score": source_score,
            "maturity_score": round_half_up(maturity, 1),
            "maturity_label": score_label(maturity),
        }

    @staticmethod
    def _infrastructure(data: Mapping[str, Any], sector: str) -> dict[str, Any]:
        tools = data["analytics_tools"]
        tool_score = min(100, len(tools) * POINTS_PER_TOOL)
        collection = parse_enum(Collection, data["data_collection"] or Collection.BASIC.value)
        collection_score = INFRA_COLLECTION_FLOOR
        if collection in (Collection.COMPREHENSIVE, Collection.SYSTEMATIC, Collection.MODERATE, Collection.BASIC):
            collection_score = COLLECTION_SCORES[collection]
        level = parse_enum(AnalyticsLevel, data["analytics_usage"]) or AnalyticsLevel.NONE
        insight = tool_score * 0.30 + collection_score * 0.30 + ANALYTICS_SCORES[level] * 0.40
        return {
            "tool_score": tool_score,
            "tool_count": len(tools),
            "insight_score": round_half_up(insight, 1),
            "insight_label": score_label(insight),
            "sector": sector,
        }

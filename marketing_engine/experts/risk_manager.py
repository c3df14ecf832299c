"""
Risk manager: category risk scores, vulnerabilities and a mitigation plan.

Unanswered risk questions are read pessimistically (no strategy, no website,
no data protection), so a sparse snapshot produces an elevated risk profile.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import (
    ExpertAnalysisResult,
    FlagSeverity,
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
)


class RiskCategory(str, Enum):
    FINANCIAL = "financial"
    MARKET = "market"
    OPERATIONAL = "operational"
    COMPETITIVE = "competitive"
    COMPLIANCE = "compliance"


class ExposureLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


CATEGORY_WEIGHTS = {
    RiskCategory.FINANCIAL: 0.30,
    RiskCategory.MARKET: 0.25,
    RiskCategory.OPERATIONAL: 0.20,
    RiskCategory.COMPETITIVE: 0.15,
    RiskCategory.COMPLIANCE: 0.10,
}
EXPOSURE_LEVELS = (
    (75, ExposureLevel.CRITICAL),
    (50, ExposureLevel.HIGH),
    (25, ExposureLevel.MODERATE),
)
SEVERITY_POINTS = {
    FlagSeverity.CRITICAL: 100,
    FlagSeverity.HIGH: 75,
    FlagSeverity.MEDIUM: 50,
    FlagSeverity.LOW: 25,
}

# Category base scores
FINANCIAL_BASE = 50
MARKET_BASE = 40
OPERATIONAL_BASE = 40
COMPETITIVE_BASE = 40
COMPLIANCE_BASE = 30

THIN_MARGIN_BELOW = 10
MIN_TEAM_SIZE = 2
# Numeric differentiation ratings below this count as weak
WEAK_DIFFERENTIATION_BELOW = 3
# Numeric market growth below this (but not negative) counts as stable
STABLE_GROWTH_BELOW = 3

VULNERABLE_CATEGORY_MIN = 60
MITIGATION_MIN = 40
IMMEDIATE_MITIGATION_MIN = 70
PLANNED_MITIGATION_MIN = 50


def exposure_level(score: float) -> ExposureLevel:
    for threshold, level in EXPOSURE_LEVELS:
        if score >= threshold:
            return level
    return ExposureLevel.LOW


def market_growth_state(answers: Mapping[str, Any]) -> str:
    """declining / stable / growing from a label or a growth percentage; stable when unanswered."""
    growth = get_numeric(answers, "market_growth")
    if growth is not None:
        if growth < 0:
            return "declining"
        return "stable" if growth < STABLE_GROWTH_BELOW else "growing"
    return get_str(answers, "market_growth", default="stable")


def weak_differentiation(answers: Mapping[str, Any]) -> bool:
    rating = get_numeric(answers, "differentiation")
    if rating is not None:
        return rating < WEAK_DIFFERENTIATION_BELOW
    return get_str(answers, "differentiation", default="low") in ("low", "none")


class RiskManager:
    expert_id = "risk_manager"
    name = "Risk Manager"
    role = "Identifies marketing and business risks and plans their mitigation"
    expertise = (
        "risk_assessment",
        "crisis_management",
        "compliance",
        "contingency_planning",
        "vulnerability_analysis",
    )
    decision_weight = 0.6

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        categories = self._category_scores(answers)
        overall = round_half_up(
            sum(categories[c] * w for c, w in CATEGORY_WEIGHTS.items()) / sum(CATEGORY_WEIGHTS.values()),
            1,
        )
        vulnerabilities = self._vulnerabilities(answers, categories)
        data_points = {
            "revenue_growth": get_numeric(answers, "revenue_growth", "revenue_growth_rate"),
            "profit_margin": get_numeric(answers, "profit_margin"),
            "marketing_roi": get_numeric(answers, "marketing_roi"),
            "competition_level": get_str(answers, "competition_level"),
            "market_growth": get_str(answers, "market_growth"),
            "marketing_team_size": get_numeric(answers, "marketing_team_size", "team_size"),
            "has_marketing_strategy": get_str(answers, "has_marketing_strategy"),
            "market_position": get_str(answers, "market_position"),
            "differentiation": get_str(answers, "differentiation"),
            "data_protection": get_str(answers, "data_protection"),
        }
        return build_result(
            self,
            scores={
                "overall_risk": overall,
                "risk_preparedness": max(0.0, 100 - overall),
                "vulnerability_index": self._vulnerability_index(vulnerabilities),
            },
            sections={
                "risk_landscape": {
                    "overall_risk": overall,
                    "risk_level": exposure_level(overall).value,
                    "category_scores": {c.value: s for c, s in categories.items()},
                },
                "vulnerability_assessment": vulnerabilities,
                "mitigation_plan": self._mitigation_plan(categories),
            },
            confidence=calculate_confidence(data_points),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        overall = result.scores.get("overall_risk", 50)
        if overall >= 60:
            impact = ImpactTag.NEGATIVE
        elif overall >= 40:
            impact = ImpactTag.WARNING
        else:
            impact = ImpactTag.POSITIVE
        insights = [
            make_insight(
                self,
                "Overall risk level",
                f"Overall risk: {exposure_level(overall).value} ({overall:.0f}/100). "
                + ("Needs immediate attention" if overall >= 60 else "Within the acceptable range"),
                impact,
                0.85,
            )
        ]
        landscape = result.sections.get("risk_landscape", {})
        ranked = sorted(landscape.get("category_scores", {}).items(), key=lambda kv: kv[1], reverse=True)
        for category, score in ranked[:2]:
            if score >= 50:
                insights.append(
                    make_insight(
                        self,
                        f"High risk: {category}",
                        f"{category.capitalize()} risk scores {score:.0f}/100 and needs an urgent mitigation plan",
                        ImpactTag.WARNING,
                        0.8,
                    )
                )
        count = len(result.sections.get("vulnerability_assessment", []))
        if count > 0:
            insights.append(
                make_insight(
                    self,
                    "Vulnerabilities identified",
                    f"{count} weak point(s) need to be addressed",
                    ImpactTag.NEGATIVE if count >= 5 else ImpactTag.WARNING,
                    0.8,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        overall = result.scores.get("overall_risk", 50)
        categories = result.sections.get("risk_landscape", {}).get("category_scores", {})
        if overall >= 70:
            recommendations = [
                make_recommendation(
                    self,
                    "Emergency risk plan",
                    "Risk is at a level that threatens business continuity",
                    Priority.CRITICAL,
                    [
                        "Form a small crisis team with clear owners",
                        "Freeze non-essential marketing spend",
                        "Protect the most profitable customers first",
                        "Review risks weekly until they fall below 50",
                    ],
                )
            ]
        elif overall >= 50:
            recommendations = [
                make_recommendation(
                    self,
                    "Structured risk mitigation",
                    "Several risk areas are elevated and need a plan",
                    Priority.HIGH,
                    [
                        "Assign an owner to each high-risk category",
                        "Set mitigation milestones for the next quarter",
                        "Build a contingency budget",
                    ],
                )
            ]
        else:
            recommendations = [
                make_recommendation(
                    self,
                    "Keep monitoring risk",
                    "Risk is manageable; keep it that way with regular reviews",
                    Priority.MEDIUM,
                    [
                        "Review the risk register quarterly",
                        "Track early-warning indicators",
                    ],
                )
            ]
        if categories.get(RiskCategory.FINANCIAL.value, 0) >= VULNERABLE_CATEGORY_MIN:
            recommendations.append(
                make_recommendation(
                    self,
                    "Reduce financial exposure",
                    "Marketing returns do not cover costs adequately",
                    Priority.HIGH,
                    [
                        "Cut the lowest-return campaigns",
                        "Track ROI for every channel",
                        "Improve margins before scaling spend",
                    ],
                )
            )
        if categories.get(RiskCategory.COMPETITIVE.value, 0) >= VULNERABLE_CATEGORY_MIN:
            recommendations.append(
                make_recommendation(
                    self,
                    "Strengthen competitive defences",
                    "Weak differentiation leaves the business exposed to competitors",
                    Priority.HIGH,
                    [
                        "Define a clear unique selling proposition",
                        "Monitor competitor offers monthly",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _category_scores(answers: Mapping[str, Any]) -> dict[RiskCategory, float]:
        financial = FINANCIAL_BASE
        growth = get_numeric(answers, "revenue_growth", "revenue_growth_rate")
        if growth is not None and growth < 0:
            financial += 20
        if (get_numeric(answers, "profit_margin") or 0) < THIN_MARGIN_BELOW:
            financial += 15
        if (get_numeric(answers, "marketing_roi") or 0) < 1:
            financial += 15

        market = MARKET_BASE
        if get_str(answers, "competition_level") in ("high", "very_high"):
            market += 20
        trend = market_growth_state(answers)
        if trend == "declining":
            market += 25
        elif trend == "stable":
            market += 10

        operational = OPERATIONAL_BASE
        team = get_numeric(answers, "marketing_team_size")
        if (1 if team is None else team) < MIN_TEAM_SIZE:
            operational += 20
        if not get_bool(answers, "has_marketing_strategy"):
            operational += 25

        competitive = COMPETITIVE_BASE
        if get_str(answers, "market_position", default="weak") in ("weak", "follower"):
            competitive += 20
        if weak_differentiation(answers):
            competitive += 20

        compliance = COMPLIANCE_BASE
        if not get_bool(answers, "data_protection"):
            compliance += 25

        return {
            RiskCategory.FINANCIAL: min(100, financial),
            RiskCategory.MARKET: min(100, market),
            RiskCategory.OPERATIONAL: min(100, operational),
            RiskCategory.COMPETITIVE: min(100, competitive),
            RiskCategory.COMPLIANCE: min(100, compliance),
        }

    @staticmethod
    def _vulnerabilities(answers: Mapping[str, Any], categories: Mapping[RiskCategory, float]) -> list[dict[str, Any]]:
        found: list[dict[str, Any]] = []
        if categories[RiskCategory.FINANCIAL] >= VULNERABLE_CATEGORY_MIN:
            found.append({
                "area": "financial",
                "title": "Weak marketing finances",
                "severity": FlagSeverity.HIGH.value,
                "detail": "Returns do not adequately cover marketing costs",
            })
        if get_bool(answers, "single_channel_dependency"):
            found.append({
                "area": "operational",
                "title": "Dependence on a single marketing channel",
                "severity": FlagSeverity.HIGH.value,
                "detail": "An outage of that channel would hit the business hard",
            })
        if categories[RiskCategory.COMPETITIVE] >= VULNERABLE_CATEGORY_MIN:
            found.append({
                "area": "competitive",
                "title": "Weak competitive position",
                "severity": FlagSeverity.MEDIUM.value,
                "detail": "No clear differentiation from competitors",
            })
        if not get_bool(answers, "has_website"):
            found.append({
                "area": "digital",
                "title": "No digital presence",
                "severity": FlagSeverity.HIGH.value,
                "detail": "Without a website the business struggles to compete",
            })
        if not get_bool(answers, "tracks_marketing_roi", "tracks_ad_roi"):
            found.append({
                "area": "measurement",
                "title": "No performance measurement",
                "severity": FlagSeverity.MEDIUM.value,
                "detail": "Not tracking ROI prevents continuous improvement",
            })
        return found

    @staticmethod
    def _vulnerability_index(vulnerabilities: list[dict[str, Any]]) -> float:
        if not vulnerabilities:
            return 0.0
        points = [SEVERITY_POINTS.get(FlagSeverity(v["severity"]), 50) for v in vulnerabilities]
        return round_half_up(sum(points) / len(points), 1)

    @staticmethod
    def _mitigation_plan(categories: Mapping[RiskCategory, float]) -> list[dict[str, Any]]:
        plan: list[dict[str, Any]] = []
        ranked = sorted(categories.items(), key=lambda kv: kv[1], reverse=True)
        for category, score in ranked:
            if score < MITIGATION_MIN:
                continue
            if score >= IMMEDIATE_MITIGATION_MIN:
                strategy, timeframe = "immediate mitigation", "1-2 weeks"
            elif score >= PLANNED_MITIGATION_MIN:
                strategy, timeframe = "mitigation plan", "1-3 months"
            else:
                strategy, timeframe = "monitor and improve", "3-6 months"
            plan.append({
                "priority": len(plan) + 1,
                "category": category.value,
                "risk_score": score,
                "strategy": strategy,
                "timeframe": timeframe,
            })
        return plan

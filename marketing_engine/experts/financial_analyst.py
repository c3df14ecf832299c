"""
Financial analyst: marketing spend efficiency and financial health.

Scores budget fit against the sector benchmark, CAC/LTV, ROI against the
expected sector ROI, profit margin, cash-flow state and revenue trend, and
combines them into one financial health score. Raises financial red flags
and projects ROI bands.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
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
from marketing_engine.analysis.scoring import budget_percent
from marketing_engine.core.values import clamp, get_numeric, get_str, round_half_up
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


class CashFlow(str, Enum):
    POSITIVE = "positive"
    GROWING = "growing"
    STABLE = "stable"
    DECLINING = "declining"
    NEGATIVE = "negative"


class RevenueTrend(str, Enum):
    GROWING_FAST = "growing_fast"
    GROWING = "growing"
    STABLE = "stable"
    DECLINING = "declining"
    DECLINING_FAST = "declining_fast"


@dataclass(frozen=True)
class SectorBenchmark:
    marketing_budget_percent: float
    acceptable_cac: float
    expected_roi: float


SECTOR_BENCHMARKS = {
    "ecommerce": SectorBenchmark(12, 50, 4.0),
    "saas": SectorBenchmark(15, 200, 5.0),
    "retail": SectorBenchmark(10, 30, 3.5),
    "services": SectorBenchmark(8, 100, 3.0),
    "healthcare": SectorBenchmark(7, 150, 3.5),
    "education": SectorBenchmark(10, 80, 3.0),
    "real_estate": SectorBenchmark(5, 500, 6.0),
    "food": SectorBenchmark(8, 20, 3.0),
    "fnb": SectorBenchmark(8, 20, 3.0),
    "technology": SectorBenchmark(14, 250, 5.0),
}
DEFAULT_BENCHMARK = SectorBenchmark(10, 100, 3.5)

CASH_FLOW_SCORES = {
    CashFlow.POSITIVE: 80,
    CashFlow.GROWING: 80,
    CashFlow.STABLE: 60,
    CashFlow.DECLINING: 30,
    CashFlow.NEGATIVE: 10,
}
REVENUE_TREND_SCORES = {
    RevenueTrend.GROWING_FAST: 95,
    RevenueTrend.GROWING: 80,
    RevenueTrend.STABLE: 55,
    RevenueTrend.DECLINING: 25,
    RevenueTrend.DECLINING_FAST: 10,
}
HEALTH_WEIGHTS = {
    "budget_ratio": 0.15,
    "cac_ltv": 0.20,
    "roi": 0.25,
    "profit_margin": 0.15,
    "cash_flow": 0.15,
    "revenue_trend": 0.10,
}

# Fallback component scores when inputs are missing
NO_REVENUE_BUDGET_SCORE = 20
NO_CAC_LTV_SCORE = 40
NO_ROI_SCORE = 30
UNKNOWN_CATEGORY_SCORE = 50

BUDGET_REVENUE_MAX_RATIO = 0.30
ROI_OPTIMISTIC_MULTIPLIER = 1.3
ROI_CONSERVATIVE_MULTIPLIER = 0.85


def benchmark_for(sector: str) -> SectorBenchmark:
    return SECTOR_BENCHMARKS.get(sector, DEFAULT_BENCHMARK)


class FinancialAnalyst:
    expert_id = "financial_analyst"
    name = "Financial Analyst"
    role = "Assesses the financial viability of marketing activity, returns and budget allocation"
    expertise = (
        "financial_analysis",
        "roi_calculation",
        "budget_optimization",
        "cost_management",
        "revenue_forecasting",
    )
    decision_weight = 0.85

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        benchmark = benchmark_for(context.sector)
        financials = self._extract(answers)
        health = self._assess_health(financials, benchmark)
        red_flags = self._red_flags(financials)
        roi = self._roi_projections(financials, benchmark)
        budget = self._budget_analysis(financials, benchmark, context.sector)
        return build_result(
            self,
            scores={
                "financial_health": health["overall_score"],
                "roi_score": roi["roi_score"],
                "budget_score": budget["budget_score"],
                "red_flag_count": len(red_flags),
            },
            sections={
                "financial_health_assessment": health,
                "budget_recommendations": budget,
                "roi_projections": roi,
                "red_flags": red_flags,
            },
            confidence=calculate_confidence(financials),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        health = result.scores.get("financial_health", 50)
        insights = [
            make_insight(
                self,
                "Marketing financial health",
                f"Financial health of marketing activity: {score_label(health)} ({health:.0f}/100)",
                impact_for(health),
                0.9,
            )
        ]
        for flag in result.sections.get("red_flags", []):
            insights.append(
                make_insight(self, flag["title"], flag["description"], ImpactTag.WARNING, flag["confidence"])
            )
        roi_score = result.scores.get("roi_score", 50)
        if roi_score < 40:
            insights.append(
                make_insight(
                    self,
                    "Low marketing ROI",
                    "Returns on marketing are below the acceptable level for the sector; review budget allocation",
                    ImpactTag.NEGATIVE,
                    0.85,
                )
            )
        elif roi_score >= 75:
            insights.append(
                make_insight(
                    self,
                    "Excellent marketing ROI",
                    "Marketing returns beat the sector average; increasing investment is advisable",
                    ImpactTag.POSITIVE,
                    0.85,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        red_flag_count = int(result.scores.get("red_flag_count", 0))
        if red_flag_count > 0:
            recommendations.append(
                make_recommendation(
                    self,
                    "Address critical financial indicators",
                    f"{red_flag_count} financial indicator(s) need immediate intervention",
                    Priority.CRITICAL,
                    [
                        "Review marketing spend line by line",
                        "Stop campaigns with negative returns",
                        "Reallocate budget to the most efficient channels",
                    ],
                )
            )
        if result.scores.get("budget_score", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Restructure the marketing budget",
                    "The current budget allocation does not match sector norms",
                    Priority.HIGH,
                    [
                        "Compare the current allocation with sector benchmarks",
                        "Allocate 60% to proven channels, 30% to growth and 10% to experiments",
                        "Set a ceiling for customer acquisition cost",
                        "Review each channel's performance monthly",
                    ],
                )
            )
        if result.scores.get("roi_score", 50) >= 70:
            recommendations.append(
                make_recommendation(
                    self,
                    "Increase marketing investment",
                    "Current returns justify a larger budget to accelerate growth",
                    Priority.MEDIUM,
                    [
                        "Raise spend by 15-25% on the best-performing channels",
                        "Test new channels with a small experimental budget",
                        "Invest in marketing automation",
                    ],
                )
            )
        return recommendations

    # --- Helpers ---

    @staticmethod
    def _extract(answers: Mapping[str, Any]) -> dict[str, Any]:
        """Expected financial inputs; missing ones stay None and lower confidence."""
        return {
            "revenue": get_numeric(answers, "annual_revenue", "revenue"),
            "profit_margin": get_numeric(answers, "profit_margin"),
            "marketing_budget": get_numeric(answers, "marketing_budget"),
            "budget_percent": budget_percent(answers),
            "cac": get_numeric(answers, "customer_acquisition_cost", "cac"),
            "ltv": get_numeric(answers, "customer_lifetime_value", "ltv"),
            "roi": get_numeric(answers, "marketing_roi", "roi", "romi"),
            "cash_flow": get_str(answers, "cash_flow", "cash_flow_status"),
            "revenue_trend": get_str(answers, "revenue_trend"),
            "monthly_leads": get_numeric(answers, "monthly_leads"),
            "conversion_rate": get_numeric(answers, "conversion_rate"),
        }

    @staticmethod
    def _assess_health(financials: Mapping[str, Any], benchmark: SectorBenchmark) -> dict[str, Any]:
        components: dict[str, float] = {}
        percent = financials["budget_percent"]
        if percent is not None:
            deviation = abs(percent - benchmark.marketing_budget_percent)
            components["budget_ratio"] = max(0.0, 100 - deviation * 5)
        else:
            components["budget_ratio"] = NO_REVENUE_BUDGET_SCORE

        cac, ltv = financials["cac"], financials["ltv"]
        if cac and ltv and cac > 0 and ltv > 0:
            components["cac_ltv"] = min(100.0, ltv / cac * 25)
        else:
            components["cac_ltv"] = NO_CAC_LTV_SCORE

        roi = financials["roi"]
        if roi is not None and roi > 0:
            components["roi"] = min(100.0, roi / benchmark.expected_roi * 70)
        else:
            components["roi"] = NO_ROI_SCORE

        components["profit_margin"] = clamp((financials["profit_margin"] or 0) * 2.5)
        components["cash_flow"] = lookup(
            CASH_FLOW_SCORES, parse_enum(CashFlow, financials["cash_flow"]), UNKNOWN_CATEGORY_SCORE
        )
        components["revenue_trend"] = lookup(
            REVENUE_TREND_SCORES, parse_enum(RevenueTrend, financials["revenue_trend"]), UNKNOWN_CATEGORY_SCORE
        )

        overall = sum(components[name] * weight for name, weight in HEALTH_WEIGHTS.items())
        return {
            "overall_score": round_half_up(overall, 1),
            "label": score_label(overall),
            "component_scores": {k: round_half_up(v, 1) for k, v in components.items()},
        }

    @staticmethod
    def _red_flags(financials: Mapping[str, Any]) -> list[dict[str, Any]]:
        flags: list[dict[str, Any]] = []
        percent = financials["budget_percent"]
        if percent is not None and percent / 100 > BUDGET_REVENUE_MAX_RATIO:
            flags.append({
                "title": "Excessive marketing spend",
                "description": f"Marketing budget is {percent:.0f}% of revenue, above the 30% ceiling",
                "severity": "critical",
                "confidence": 0.95,
            })
        cac, ltv = financials["cac"], financials["ltv"]
        if cac and ltv and cac > 0 and ltv > 0 and cac > ltv:
            flags.append({
                "title": "Acquisition cost exceeds customer value",
                "description": (
                    f"Customer acquisition cost ({cac:.0f}) exceeds customer lifetime value ({ltv:.0f}); "
                    "every new customer loses money"
                ),
                "severity": "critical",
                "confidence": 0.95,
            })
        if financials["cash_flow"] == CashFlow.NEGATIVE.value:
            flags.append({
                "title": "Negative cash flow",
                "description": "Negative cash flow threatens both marketing activity and operations",
                "severity": "high",
                "confidence": 0.9,
            })
        if financials["revenue_trend"] in (RevenueTrend.DECLINING.value, RevenueTrend.DECLINING_FAST.value):
            flags.append({
                "title": "Declining revenue",
                "description": "Revenue is trending down; the marketing strategy needs an immediate review",
                "severity": "high",
                "confidence": 0.85,
            })
        return flags

    @staticmethod
    def _roi_projections(financials: Mapping[str, Any], benchmark: SectorBenchmark) -> dict[str, Any]:
        roi = financials["roi"]
        current = roi if roi is not None and roi > 0 else 1.0
        expected = benchmark.expected_roi
        return {
            "current_roi": current,
            "expected_roi": expected,
            "gap": round_half_up(expected - current, 2),
            "optimistic_roi": round_half_up(current * ROI_OPTIMISTIC_MULTIPLIER, 2),
            "conservative_roi": round_half_up(current * ROI_CONSERVATIVE_MULTIPLIER, 2),
            "roi_score": round_half_up(clamp(current / max(0.1, expected) * 70), 1),
        }

    @staticmethod
    def _budget_analysis(
        financials: Mapping[str, Any],
        benchmark: SectorBenchmark,
        sector: str,
    ) -> dict[str, Any]:
        ideal_percent = benchmark.marketing_budget_percent
        percent = financials["budget_percent"]
        revenue = financials["revenue"]
        if percent is None:
            return {
                "current_percent": None,
                "ideal_percent": ideal_percent,
                "budget_score": 50.0,
                "recommendation": "Budget share unknown; share revenue and budget to benchmark it",
                "sector": sector,
            }
        deviation = abs(percent - ideal_percent)
        if percent > ideal_percent:
            advice = "Budget is above the sector norm; improve efficiency or reduce spend"
        elif percent < ideal_percent:
            advice = "Budget is below the sector norm; there is room to invest more"
        else:
            advice = "Budget matches the sector norm"
        out: dict[str, Any] = {
            "current_percent": round_half_up(percent, 1),
            "ideal_percent": ideal_percent,
            "budget_score": round_half_up(max(0.0, 100 - deviation * 6), 1),
            "recommendation": advice,
            "sector": sector,
        }
        if revenue is not None and revenue > 0:
            out["ideal_annual_budget"] = round_half_up(revenue * ideal_percent / 100)
        return out

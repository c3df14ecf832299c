"""
Expert panel: runs the specialists, publishes their headline scores into the
shared scores map, then runs the chief strategist over the enriched map.

The chief strategist's verdict is final. decision_weight orders the
specialists and weights the panel's consensus confidence; it never
overrides the chief.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import ExpertAnalysisResult, PanelVerdict, PlanType
from marketing_engine.core.values import round_half_up
from marketing_engine.engine_logging import get_logger
from marketing_engine.experts.base import Expert
from marketing_engine.experts.brand_strategist import BrandStrategist
from marketing_engine.experts.chief_strategist import ChiefStrategist
from marketing_engine.experts.consumer_psychologist import ConsumerPsychologist
from marketing_engine.experts.data_scientist import DataScientist
from marketing_engine.experts.digital_marketing_expert import DigitalMarketingExpert
from marketing_engine.experts.financial_analyst import FinancialAnalyst
from marketing_engine.experts.innovation_scout import InnovationScout
from marketing_engine.experts.market_analyst import MarketAnalyst
from marketing_engine.experts.operations_expert import OperationsExpert
from marketing_engine.experts.risk_manager import RiskManager

logger = get_logger(__name__)

# Shared-map key -> (expert id, score name) published after the specialists run
HEADLINE_SCORES = {
    "financial": ("financial_analyst", "financial_health"),
    "market": ("market_analyst", "market_position"),
    "digital": ("digital_marketing_expert", "digital_maturity"),
    "brand": ("brand_strategist", "brand_strength"),
    "consumer": ("consumer_psychologist", "customer_health"),
    "data": ("data_scientist", "data_readiness"),
    "operations": ("operations_expert", "operational_readiness"),
    "risk_preparedness": ("risk_manager", "risk_preparedness"),
    "innovation": ("innovation_scout", "innovation_score"),
}


def default_specialists() -> list[Expert]:
    return [
        FinancialAnalyst(),
        MarketAnalyst(),
        DigitalMarketingExpert(),
        BrandStrategist(),
        ConsumerPsychologist(),
        DataScientist(),
        OperationsExpert(),
        RiskManager(),
        InnovationScout(),
    ]


@dataclass
class PanelOutcome:
    results: list[ExpertAnalysisResult]
    """Specialists by descending decision weight, chief strategist last."""
    verdict: PanelVerdict
    shared_scores: dict[str, float]


def order_by_weight(experts: Sequence[Expert]) -> list[Expert]:
    """Stable sort by decision weight, highest first."""
    return sorted(experts, key=lambda e: e.decision_weight, reverse=True)


def publish_headline_scores(shared: dict[str, float], results: Sequence[ExpertAnalysisResult]) -> dict[str, float]:
    by_id = {r.expert_id: r for r in results}
    for key, (expert_id, score_name) in HEADLINE_SCORES.items():
        result = by_id.get(expert_id)
        if result is not None and score_name in result.scores:
            shared[key] = result.scores[score_name]
    return shared


def consensus_confidence(results: Sequence[ExpertAnalysisResult]) -> float:
    """Decision-weight-weighted mean of expert confidences; 0 for an empty panel."""
    total_weight = sum(r.decision_weight for r in results)
    if total_weight <= 0:
        return 0.0
    weighted = sum(r.confidence * r.decision_weight for r in results)
    return round_half_up(weighted / total_weight, 2)


def build_verdict(chief: ExpertAnalysisResult, results: Sequence[ExpertAnalysisResult]) -> PanelVerdict:
    sections = chief.sections
    direction = sections.get("strategic_direction", {})
    return PanelVerdict(
        business_health=chief.scores.get("overall_health", 50.0),
        plan_type=PlanType(sections.get("plan_type", {}).get("key", PlanType.TREATMENT.value)),
        focus_pillars=list(direction.get("key_pillars", [])),
        priorities=list(sections.get("priority_setting", [])),
        executive_summary=sections.get("executive_summary", {}).get("summary_text", ""),
        consensus_confidence=consensus_confidence(results),
        expert_weights={r.expert_id: r.decision_weight for r in results},
    )


def run_panel(
    answers: Mapping[str, Any],
    context: AssessmentContext,
    scores: Mapping[str, float],
    specialists: Sequence[Expert] | None = None,
    chief: Expert | None = None,
) -> PanelOutcome:
    """
    Run every specialist over the same snapshot, then the chief strategist.

    A specialist that raises is logged and left out; the rest of the panel
    and the chief still run. The caller's scores map is not modified.
    """
    shared: dict[str, float] = dict(scores)
    chief = chief or ChiefStrategist()
    results: list[ExpertAnalysisResult] = []
    for expert in order_by_weight(specialists if specialists is not None else default_specialists()):
        try:
            results.append(expert.analyze(answers, context, shared))
        except Exception as e:
            logger.warning("expert_failed", expert=expert.expert_id, error=str(e))
            continue
        logger.debug("expert_done", expert=expert.expert_id, confidence=results[-1].confidence)

    publish_headline_scores(shared, results)
    chief_result = chief.analyze(answers, context, shared)
    results.append(chief_result)

    verdict = build_verdict(chief_result, results)
    logger.info(
        "panel_done",
        experts=len(results),
        business_health=verdict.business_health,
        plan_type=verdict.plan_type.value,
        consensus_confidence=verdict.consensus_confidence,
    )
    return PanelOutcome(results=results, verdict=verdict, shared_scores=shared)

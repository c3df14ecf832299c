"""
Playbook matching, plan-type classification, outcome prediction and scenarios.

Playbooks are named situational patterns, each a conjunction of field
thresholds. A match carries a fixed confidence, a recommended plan type, an
action list and the experts whose view matters most in that situation.
Predictions and scenario bands are fixed-formula illustrations from the
current scores, not fitted forecasts.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from marketing_engine.analysis.models import FlagSeverity, ImpactTag, Insight, PlanType
from marketing_engine.analysis.patterns import Condition, match_conditions
from marketing_engine.analysis.scoring import budget_percent
from marketing_engine.core.values import get_numeric, round_half_up
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

# Plan-type thresholds
EMERGENCY_RISK_ABOVE = 70
EMERGENCY_OVERALL_BELOW = 20
TREATMENT_OVERALL_BELOW = 40
GROWTH_OVERALL_BELOW = 70

DEFAULT_SCORE = 50
SCENARIO_CHECKPOINT_MONTHS = (0, 3, 6, 9, 12)
SERIOUS_RISK_ABOVE = 60

# Key under which the digital maturity score is exposed to playbook conditions
DIGITAL_SCORE_FACT = "digital_score"

PLAN_LABELS = {
    PlanType.EMERGENCY: "Emergency plan",
    PlanType.TREATMENT: "Treatment plan",
    PlanType.GROWTH: "Growth plan",
    PlanType.TRANSFORMATION: "Transformation plan",
}


@dataclass(frozen=True)
class Playbook:
    id: str
    name: str
    confidence: float
    plan_type: PlanType
    severity: str
    conditions: tuple[Condition, ...]
    actions: tuple[str, ...]
    experts: tuple[str, ...]


@dataclass
class PlaybookMatch:
    pattern_id: str
    name: str
    confidence: float
    plan_type: PlanType
    severity: str
    actions: list[str] = field(default_factory=list)
    experts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.pattern_id,
            "name": self.name,
            "confidence": self.confidence,
            "recommended_plan": self.plan_type.value,
            "severity": self.severity,
            "recommended_actions": list(self.actions),
            "assigned_experts": list(self.experts),
        }


@dataclass
class Scenario:
    key: str
    label: str
    growth_rate: int
    projections: list[int]
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "growth_rate": self.growth_rate,
            "checkpoints_months": list(SCENARIO_CHECKPOINT_MONTHS),
            "projections": list(self.projections),
            "description": self.description,
        }


@dataclass
class InferenceReport:
    matches: list[PlaybookMatch]
    plan_type: PlanType
    predictions: dict[str, Any]
    scenarios: list[Scenario]
    insights: list[Insight]

    def match_ids(self) -> list[str]:
        return [m.pattern_id for m in self.matches]

    def to_dict(self) -> dict[str, Any]:
        return {
            "patterns": [m.to_dict() for m in self.matches],
            "recommended_plan": self.plan_type.value,
            "predictions": self.predictions,
            "scenarios": {s.key: s.to_dict() for s in self.scenarios},
            "insights": [i.to_dict() for i in self.insights],
        }


PLAYBOOKS: tuple[Playbook, ...] = (
    Playbook(
        id="INF_001",
        name="Business at a critical stage",
        confidence=0.90,
        plan_type=PlanType.EMERGENCY,
        severity=FlagSeverity.CRITICAL.value,
        conditions=(
            Condition("revenue_trend", "==", "declining"),
            Condition(DIGITAL_SCORE_FACT, "<", 30),
            Condition("competition_level", "in", ("high", "very_high")),
        ),
        actions=(
            "Urgent revenue-recovery tactics",
            "Cost optimisation",
            "Build a digital presence",
            "Competitive repositioning",
        ),
        experts=("chief_strategist", "financial_analyst", "risk_manager"),
    ),
    Playbook(
        id="INF_002",
        name="Large untapped growth opportunity",
        confidence=0.85,
        plan_type=PlanType.GROWTH,
        severity="opportunity",
        conditions=(
            Condition("revenue_trend", "==", "growing"),
            Condition("marketing_budget_percent", "<", 5),
            Condition("customer_satisfaction", ">", 7),
        ),
        actions=(
            "Increase the marketing budget",
            "Expand into more channels",
            "Launch a referral programme",
            "Paid growth campaigns",
        ),
        experts=("chief_strategist", "digital_marketing_expert"),
    ),
    Playbook(
        id="INF_003",
        name="Ready for digital transformation",
        confidence=0.80,
        plan_type=PlanType.TRANSFORMATION,
        severity="opportunity",
        conditions=(
            Condition("annual_revenue", ">", 1_000_000),
            Condition(DIGITAL_SCORE_FACT, "<", 40),
            Condition("employee_count", ">", 5),
            Condition("leadership_support", ">", 7),
        ),
        actions=(
            "Comprehensive digital transformation plan",
            "Team training",
            "Build the digital infrastructure",
        ),
        experts=("digital_marketing_expert", "operations_expert", "data_scientist"),
    ),
    Playbook(
        id="INF_004",
        name="Brand building is the priority",
        confidence=0.85,
        plan_type=PlanType.TREATMENT,
        severity=FlagSeverity.HIGH.value,
        conditions=(
            Condition("brand_awareness", "<", 3),
            Condition("product_quality", ">", 7),
            Condition("years_in_business", "<", 3),
        ),
        actions=(
            "Build a visual identity",
            "Content marketing",
            "Public relations",
            "Influencer partnerships",
        ),
        experts=("brand_strategist", "digital_marketing_expert"),
    ),
)


def classify_plan_type(overall: float, risk: float) -> PlanType:
    """risk > 70 or overall < 20 -> emergency; < 40 treatment; < 70 growth; else transformation."""
    if risk > EMERGENCY_RISK_ABOVE or overall < EMERGENCY_OVERALL_BELOW:
        return PlanType.EMERGENCY
    if overall < TREATMENT_OVERALL_BELOW:
        return PlanType.TREATMENT
    if overall < GROWTH_OVERALL_BELOW:
        return PlanType.GROWTH
    return PlanType.TRANSFORMATION


def build_facts(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> dict[str, Any]:
    """Answers plus derived facts (digital score, revenue, budget share); explicit answers win over computed values."""
    facts = dict(answers)
    digital = get_numeric(answers, "digital_maturity_score")
    if digital is None:
        digital = get_numeric(scores, "digital")
    if digital is not None:
        facts[DIGITAL_SCORE_FACT] = digital
    revenue = get_numeric(answers, "annual_revenue", "revenue")
    if revenue is not None:
        facts["annual_revenue"] = revenue
    share = budget_percent(answers)
    if share is not None:
        facts["marketing_budget_percent"] = share
    return facts


def match_playbooks(
    answers: Mapping[str, Any],
    scores: Mapping[str, Any],
    playbooks: tuple[Playbook, ...] = PLAYBOOKS,
) -> list[PlaybookMatch]:
    facts = build_facts(answers, scores)
    matches: list[PlaybookMatch] = []
    for playbook in playbooks:
        try:
            matched = match_conditions(facts, playbook.conditions)
        except Exception as e:
            logger.warning("playbook_rule_failed", rule=playbook.id, error=str(e))
            continue
        if matched:
            matches.append(
                PlaybookMatch(
                    pattern_id=playbook.id,
                    name=playbook.name,
                    confidence=playbook.confidence,
                    plan_type=playbook.plan_type,
                    severity=playbook.severity,
                    actions=list(playbook.actions),
                    experts=list(playbook.experts),
                )
            )
    return matches


def predict_outcomes(scores: Mapping[str, Any]) -> dict[str, Any]:
    """Illustrative 6/12-month revenue bands, risk-without-action, improvement potential."""
    overall = get_numeric(scores, "overall")
    overall = DEFAULT_SCORE if overall is None else overall
    risk = get_numeric(scores, "risk")
    risk = DEFAULT_SCORE if risk is None else risk
    opportunity = get_numeric(scores, "opportunity")
    opportunity = DEFAULT_SCORE if opportunity is None else opportunity

    base_growth = (overall - 50) / 100
    risk_factor = 1 - risk / 200
    opportunity_factor = 1 + opportunity / 200
    serious = risk > SERIOUS_RISK_ABOVE
    return {
        "revenue_forecast": {
            "6_months_change_pct": round_half_up(base_growth * risk_factor * 100, 1),
            "12_months_change_pct": round_half_up(base_growth * opportunity_factor * 200, 1),
            "confidence": round_half_up(0.6 + overall / 500, 2),
        },
        "risk_without_action": {
            "6_months": "Serious threat to performance" if serious else "Limited risk",
            "12_months": "Threat to business continuity" if serious else "Stable position",
        },
        "improvement_potential": {
            "expected_score_with_plan": min(100, int(overall) + 25),
            "timeline": "6-12 months" if overall < 30 else "3-6 months",
        },
    }


SCENARIO_BANDS = (
    ("conservative", "Conservative scenario", 5, (0, 3, 5, 7, 10), "Apply the minimum set of recommendations"),
    ("moderate", "Moderate scenario", 15, (0, 5, 12, 18, 25), "Apply most recommendations consistently"),
    ("aggressive", "Aggressive scenario", 30, (0, 8, 20, 30, 40), "Apply every recommendation with extra investment"),
)


def project_scenarios(scores: Mapping[str, Any]) -> list[Scenario]:
    """Three additive bands from the current overall score over five checkpoints, capped at 100."""
    current = get_numeric(scores, "overall")
    current_int = DEFAULT_SCORE if current is None else int(current)
    return [
        Scenario(
            key=key,
            label=label,
            growth_rate=rate,
            projections=[min(100, current_int + offset) for offset in offsets],
            description=description,
        )
        for key, label, rate, offsets, description in SCENARIO_BANDS
    ]


def _insights(matches: list[PlaybookMatch], plan_type: PlanType) -> list[Insight]:
    insights = [
        Insight(
            title=m.name,
            description=f"Confidence: {m.confidence * 100:.0f}%",
            impact=ImpactTag.NEGATIVE if m.severity in ("critical", "high") else ImpactTag.POSITIVE,
            confidence=m.confidence,
            source="inference_engine",
        )
        for m in matches
    ]
    insights.append(
        Insight(
            title="Recommended plan type",
            description=PLAN_LABELS[plan_type],
            impact=ImpactTag.NEUTRAL,
            confidence=1.0,
            source="inference_engine",
        )
    )
    return insights


def run_inference(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> InferenceReport:
    """Match playbooks, classify the plan, predict outcomes and project scenarios."""
    overall = get_numeric(scores, "overall")
    risk = get_numeric(scores, "risk")
    plan_type = classify_plan_type(
        DEFAULT_SCORE if overall is None else overall,
        DEFAULT_SCORE if risk is None else risk,
    )
    matches = match_playbooks(answers, scores)
    report = InferenceReport(
        matches=matches,
        plan_type=plan_type,
        predictions=predict_outcomes(scores),
        scenarios=project_scenarios(scores),
        insights=_insights(matches, plan_type),
    )
    logger.debug("inference_done", playbooks=report.match_ids(), plan_type=plan_type.value)
    return report

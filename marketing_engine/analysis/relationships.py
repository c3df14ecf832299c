"""
Cross-field consistency, contradiction and opportunity checks.

Consistency rules validate business-logic invariants between answers (budget
vs revenue, CAC vs LTV, revenue per head, digital presence vs sector), each
tagged with a severity and the expert that owns the topic. Contradiction
rules catch self-reported claims that disagree with the numbers; opportunity
rules surface latent upside. Ratio rules are skipped when a denominator is
missing or zero.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from marketing_engine.analysis.models import FlagSeverity, ImpactTag
from marketing_engine.analysis.patterns import run_rules
from marketing_engine.core.values import get_bool, get_numeric, get_str, safe_ratio
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)


class FindingKind(str, Enum):
    VIOLATION = "violation"
    CONTRADICTION = "contradiction"
    OPPORTUNITY = "opportunity"


BUDGET_REVENUE_MAX_RATIO = 0.30
REVENUE_PER_HEAD_MIN = 100_000.0
NEAR_ZERO_DIGITAL_BELOW = 20
DEFAULT_DIGITAL_SCORE = 50
DIGITAL_FIRST_SECTORS = frozenset({"retail", "fnb", "fitness"})

GROWTH_CLAIMS = ("growing", "fast_growing")
MANY_COMPETITORS_ABOVE = 10
HIGH_SATISFACTION_ABOVE = 8.0
CONTRADICTING_CHURN_ABOVE = 20.0
UNDERSPENT_SHARE = 0.5
LOW_AWARENESS_BELOW = 4.0

# Budget share of revenue (%) bands for the ratio insight
BUDGET_SHARE_WARNING_ABOVE = 15.0
BUDGET_SHARE_LOW_BELOW = 3.0

STATUS_WARNING = "warning"
STATUS_LOW_INVESTMENT = "low_investment"
STATUS_HEALTHY = "healthy"


@dataclass
class ConsistencyFinding:
    """A fired relationship rule: violation, contradiction or opportunity."""

    rule_id: str
    name: str
    kind: FindingKind
    severity: FlagSeverity
    message: str
    recommendation: str = ""
    expert: str | None = None
    """Owning expert for violations."""
    action: str | None = None
    """Follow-up for contradictions (e.g. request_clarification)."""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "recommendation": self.recommendation,
            "expert": self.expert,
            "action": self.action,
            "details": self.details,
        }


@dataclass
class RelationshipReport:
    violations: list[ConsistencyFinding] = field(default_factory=list)
    contradictions: list[ConsistencyFinding] = field(default_factory=list)
    opportunities: list[ConsistencyFinding] = field(default_factory=list)
    insights: list[dict[str, Any]] = field(default_factory=list)

    def rule_ids(self) -> set[str]:
        return {f.rule_id for f in (*self.violations, *self.contradictions, *self.opportunities)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "consistency_violations": [f.to_dict() for f in self.violations],
            "contradictions": [f.to_dict() for f in self.contradictions],
            "opportunities": [f.to_dict() for f in self.opportunities],
            "insights": list(self.insights),
        }


def annual_budget_ratio(answers: Mapping[str, Any]) -> float | None:
    """Monthly marketing budget x 12 over annual revenue; None when undefined."""
    budget = get_numeric(answers, "marketing_budget")
    if budget is None or budget <= 0:
        return None
    return safe_ratio(budget * 12, get_numeric(answers, "annual_revenue", "revenue"))


# --- Consistency rules ---


def _rule_budget_revenue(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    ratio = annual_budget_ratio(answers)
    if ratio is None or ratio <= BUDGET_REVENUE_MAX_RATIO:
        return None
    return ConsistencyFinding(
        rule_id="RULE_001",
        name="budget_revenue_consistency",
        kind=FindingKind.VIOLATION,
        severity=FlagSeverity.CRITICAL,
        message="Marketing budget exceeds 30% of revenue, which is not sustainable",
        recommendation="Re-evaluate the budget or grow revenue",
        expert="financial_analyst",
        details={"ratio": round(ratio, 3), "threshold": BUDGET_REVENUE_MAX_RATIO},
    )


def _rule_cac_ltv(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    cac = get_numeric(answers, "customer_acquisition_cost", "cac")
    ltv = get_numeric(answers, "customer_lifetime_value", "ltv")
    if cac is None or ltv is None or cac <= 0 or ltv <= 0 or cac <= ltv:
        return None
    return ConsistencyFinding(
        rule_id="RULE_002",
        name="cac_ltv_ratio",
        kind=FindingKind.VIOLATION,
        severity=FlagSeverity.CRITICAL,
        message="Customer acquisition cost is higher than customer lifetime value",
        recommendation="Improve marketing efficiency or raise customer value",
        expert="financial_analyst",
        details={"cac": cac, "ltv": ltv},
    )


def _rule_revenue_per_head(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    revenue = get_numeric(answers, "annual_revenue", "revenue")
    if revenue is None or revenue <= 0:
        return None
    per_head = safe_ratio(revenue, get_numeric(answers, "employee_count"))
    if per_head is None or per_head >= REVENUE_PER_HEAD_MIN:
        return None
    return ConsistencyFinding(
        rule_id="RULE_003",
        name="team_revenue_efficiency",
        kind=FindingKind.VIOLATION,
        severity=FlagSeverity.HIGH,
        message="Team productivity is low relative to revenue",
        recommendation="Streamline operations or restructure the team",
        expert="operations_expert",
        details={"revenue_per_employee": round(per_head, 2), "threshold": REVENUE_PER_HEAD_MIN},
    )


def _rule_digital_first_sector(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    digital = get_numeric(answers, "digital_maturity_score")
    if digital is None:
        digital = get_numeric(scores, "digital")
    if digital is None:
        digital = DEFAULT_DIGITAL_SCORE
    sector = get_str(answers, "sector") or ""
    if digital >= NEAR_ZERO_DIGITAL_BELOW or sector not in DIGITAL_FIRST_SECTORS:
        return None
    return ConsistencyFinding(
        rule_id="RULE_004",
        name="no_digital_presence_modern_sector",
        kind=FindingKind.VIOLATION,
        severity=FlagSeverity.HIGH,
        message="Almost no digital presence in a sector that depends on it",
        recommendation="Build a digital presence urgently",
        expert="digital_marketing_expert",
        details={"digital_score": digital, "sector": sector},
    )


# --- Contradictions ---


def _contra_growth_claim(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    claim = get_str(answers, "business_growth_assessment")
    if claim not in GROWTH_CLAIMS or get_str(answers, "revenue_trend") != "declining":
        return None
    return ConsistencyFinding(
        rule_id="CONTRA_001",
        name="claims_growth_but_declining",
        kind=FindingKind.CONTRADICTION,
        severity=FlagSeverity.HIGH,
        message="The business is described as growing but revenue is declining",
        action="request_clarification",
    )


def _contra_competition(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    competitors = get_numeric(answers, "competitor_count", "competitors_count")
    if get_str(answers, "competition_level") != "low" or competitors is None or competitors <= MANY_COMPETITORS_ABOVE:
        return None
    return ConsistencyFinding(
        rule_id="CONTRA_002",
        name="no_competition_but_many_competitors",
        kind=FindingKind.CONTRADICTION,
        severity=FlagSeverity.MEDIUM,
        message="Competition is reported as low but the competitor count is high",
        action="educate_and_clarify",
        details={"competitor_count": competitors},
    )


def _contra_satisfaction_churn(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    satisfaction = get_numeric(answers, "customer_satisfaction")
    churn = get_numeric(answers, "churn_rate", "customer_churn_rate")
    if satisfaction is None or churn is None:
        return None
    if satisfaction <= HIGH_SATISFACTION_ABOVE or churn <= CONTRADICTING_CHURN_ABOVE:
        return None
    return ConsistencyFinding(
        rule_id="CONTRA_003",
        name="high_satisfaction_high_churn",
        kind=FindingKind.CONTRADICTION,
        severity=FlagSeverity.HIGH,
        message="Customer satisfaction is high yet churn is high",
        action="deep_dive_investigation",
        details={"customer_satisfaction": satisfaction, "churn_rate": churn},
    )


# --- Opportunities ---


def _opp_underused_budget(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    allocated = get_numeric(answers, "marketing_budget")
    if allocated is None or allocated <= 0 or get_str(answers, "revenue_trend") != "growing":
        return None
    spent = get_numeric(answers, "marketing_budget_spent")
    if spent is None or spent >= allocated * UNDERSPENT_SHARE:
        return None
    return ConsistencyFinding(
        rule_id="OPP_001",
        name="underutilized_budget",
        kind=FindingKind.OPPORTUNITY,
        severity=FlagSeverity.HIGH,
        message="Part of the marketing budget is unused while revenue grows",
        recommendation="Invest the remaining budget to accelerate growth",
        details={"allocated": allocated, "spent": spent},
    )


def _opp_satisfied_but_unknown(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    satisfaction = get_numeric(answers, "customer_satisfaction")
    awareness = get_numeric(answers, "brand_awareness")
    if satisfaction is None or satisfaction <= HIGH_SATISFACTION_ABOVE:
        return None
    if (5.0 if awareness is None else awareness) >= LOW_AWARENESS_BELOW:
        return None
    return ConsistencyFinding(
        rule_id="OPP_002",
        name="high_satisfaction_low_awareness",
        kind=FindingKind.OPPORTUNITY,
        severity=FlagSeverity.HIGH,
        message="Customers are very satisfied but few people know the brand",
        recommendation="Launch a referral programme and invest in awareness",
    )


def _opp_offline_in_growing_market(answers: Mapping[str, Any], scores: Mapping[str, Any]) -> ConsistencyFinding | None:
    if get_bool(answers, "has_website") or get_str(answers, "market_trend") != "growing":
        return None
    return ConsistencyFinding(
        rule_id="OPP_003",
        name="digital_opportunity",
        kind=FindingKind.OPPORTUNITY,
        severity=FlagSeverity.HIGH,
        message="The market is growing and the business has no digital presence",
        recommendation="Build a website and digital presence now",
    )


CONSISTENCY_RULES = (_rule_budget_revenue, _rule_cac_ltv, _rule_revenue_per_head, _rule_digital_first_sector)
CONTRADICTION_RULES = (_contra_growth_claim, _contra_competition, _contra_satisfaction_churn)
OPPORTUNITY_RULES = (_opp_underused_budget, _opp_satisfied_but_unknown, _opp_offline_in_growing_market)


def budget_share_insight(answers: Mapping[str, Any]) -> dict[str, Any] | None:
    ratio = annual_budget_ratio(answers)
    if ratio is None:
        return None
    percent = round(ratio * 100, 1)
    if percent > BUDGET_SHARE_WARNING_ABOVE:
        status, impact = STATUS_WARNING, ImpactTag.WARNING
    elif percent < BUDGET_SHARE_LOW_BELOW:
        status, impact = STATUS_LOW_INVESTMENT, ImpactTag.WARNING
    else:
        status, impact = STATUS_HEALTHY, ImpactTag.POSITIVE
    return {
        "title": "Marketing budget share",
        "description": f"Marketing budget is {percent}% of annual revenue",
        "budget_percent": percent,
        "status": status,
        "impact": impact.value,
    }


def check_relationships(
    answers: Mapping[str, Any],
    scores: Mapping[str, Any] | None = None,
) -> RelationshipReport:
    """Run every consistency, contradiction and opportunity rule; all matching rules fire."""
    shared = scores or {}
    report = RelationshipReport(
        violations=run_rules(CONSISTENCY_RULES, answers, shared, component="consistency"),
        contradictions=run_rules(CONTRADICTION_RULES, answers, shared, component="contradiction"),
        opportunities=run_rules(OPPORTUNITY_RULES, answers, shared, component="opportunity"),
    )
    insight = budget_share_insight(answers)
    if insight is not None:
        report.insights.append(insight)
    logger.debug("relationships_checked", rules=sorted(report.rule_ids()))
    return report

"""
Rule-based pattern detection over raw answers.

Raises red flags (distress signals), green flags (strengths) and data
anomalies (implausible revenue per employee). Each flag names the rule that
produced it and the values it saw. Also provides the generic condition
matcher used by the playbook library.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from marketing_engine.analysis.models import FlagSeverity, ImpactTag
from marketing_engine.analysis.scoring import budget_percent
from marketing_engine.core.values import get_bool, get_numeric, get_str, safe_ratio
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)


class FlagKind(str, Enum):
    RED = "red"
    GREEN = "green"
    ANOMALY = "anomaly"


# Red flag thresholds
LOW_PROFIT_MARGIN_BELOW = 5.0
HIGH_CHURN_ABOVE = 30.0
EXCESSIVE_BUDGET_PERCENT_ABOVE = 40.0
LOW_DIFFERENTIATION_BELOW = 3.0

# Green flag thresholds
HIGH_SATISFACTION_ABOVE = 8.0
HIGH_NPS_ABOVE = 50.0

# Revenue-per-employee plausibility band
REVENUE_PER_EMPLOYEE_MIN = 20_000.0
REVENUE_PER_EMPLOYEE_MAX = 2_000_000.0

ACTION_VERIFY_DATA = "verify_data"
ACTION_INVESTIGATE = "investigate"


@dataclass
class PatternFlag:
    """One detected signal, tied to the rule that raised it."""

    code: str
    kind: FlagKind
    message: str
    rule_name: str
    severity: FlagSeverity | None = None
    """Red flags only."""
    impact: ImpactTag | None = None
    """Green flags only."""
    action: str | None = None
    """Anomalies only: verify_data or investigate."""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "flag": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "rule_name": self.rule_name,
            "details": self.details,
        }
        if self.severity is not None:
            out["severity"] = self.severity.value
        if self.impact is not None:
            out["impact"] = self.impact.value
        if self.action is not None:
            out["action"] = self.action
        return out


@dataclass
class PatternReport:
    red_flags: list[PatternFlag] = field(default_factory=list)
    green_flags: list[PatternFlag] = field(default_factory=list)
    anomalies: list[PatternFlag] = field(default_factory=list)

    def codes(self) -> set[str]:
        return {f.code for f in (*self.red_flags, *self.green_flags, *self.anomalies)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "red_flags": [f.to_dict() for f in self.red_flags],
            "green_flags": [f.to_dict() for f in self.green_flags],
            "anomalies": [f.to_dict() for f in self.anomalies],
        }


def _red(code: str, message: str, severity: FlagSeverity, rule: str, **details: Any) -> PatternFlag:
    return PatternFlag(code=code, kind=FlagKind.RED, message=message, rule_name=rule, severity=severity, details=details)


def _green(code: str, message: str, rule: str, **details: Any) -> PatternFlag:
    return PatternFlag(
        code=code, kind=FlagKind.GREEN, message=message, rule_name=rule, impact=ImpactTag.POSITIVE, details=details
    )


# --- Red flags ---


def _check_declining_revenue(answers: Mapping[str, Any]) -> PatternFlag | None:
    if get_str(answers, "revenue_trend") != "declining":
        return None
    return _red("declining_revenue", "Revenue is declining", FlagSeverity.CRITICAL, "revenue_trend_declining")


def _check_low_profit_margin(answers: Mapping[str, Any]) -> PatternFlag | None:
    margin = get_numeric(answers, "profit_margin")
    if margin is None or margin >= LOW_PROFIT_MARGIN_BELOW:
        return None
    return _red(
        "low_profit_margin",
        f"Profit margin is very low ({margin:.1f}% < {LOW_PROFIT_MARGIN_BELOW:.0f}%)",
        FlagSeverity.CRITICAL,
        "profit_margin_below",
        profit_margin=margin,
        threshold=LOW_PROFIT_MARGIN_BELOW,
    )


def _check_high_churn(answers: Mapping[str, Any]) -> PatternFlag | None:
    churn = get_numeric(answers, "churn_rate", "customer_churn_rate")
    if churn is None or churn <= HIGH_CHURN_ABOVE:
        return None
    return _red(
        "high_churn",
        f"Customer churn is high ({churn:.1f}%)",
        FlagSeverity.HIGH,
        "churn_rate_above",
        churn_rate=churn,
        threshold=HIGH_CHURN_ABOVE,
    )


def _check_excessive_budget(answers: Mapping[str, Any]) -> PatternFlag | None:
    percent = budget_percent(answers)
    if percent is None or percent <= EXCESSIVE_BUDGET_PERCENT_ABOVE:
        return None
    return _red(
        "excessive_budget",
        f"Marketing spend is excessive ({percent:.1f}% of revenue)",
        FlagSeverity.HIGH,
        "budget_percent_above",
        marketing_budget_percent=percent,
        threshold=EXCESSIVE_BUDGET_PERCENT_ABOVE,
    )


def _check_no_website(answers: Mapping[str, Any]) -> PatternFlag | None:
    if get_bool(answers, "has_website"):
        return None
    return _red("no_website", "No website", FlagSeverity.HIGH, "has_website_false")


def _check_no_differentiation(answers: Mapping[str, Any]) -> PatternFlag | None:
    if get_str(answers, "competition_level") != "very_high":
        return None
    differentiation = get_numeric(answers, "differentiation")
    if differentiation is None or differentiation >= LOW_DIFFERENTIATION_BELOW:
        return None
    return _red(
        "no_differentiation",
        "No clear differentiation under very high competition",
        FlagSeverity.HIGH,
        "differentiation_under_competition",
        differentiation=differentiation,
    )


# --- Green flags ---


def _check_high_satisfaction(answers: Mapping[str, Any]) -> PatternFlag | None:
    satisfaction = get_numeric(answers, "customer_satisfaction")
    if satisfaction is None or satisfaction <= HIGH_SATISFACTION_ABOVE:
        return None
    return _green("high_satisfaction", "Excellent customer satisfaction", "satisfaction_above", customer_satisfaction=satisfaction)


def _check_growing_revenue(answers: Mapping[str, Any]) -> PatternFlag | None:
    if get_str(answers, "revenue_trend") != "growing":
        return None
    return _green("growing_revenue", "Revenue is growing", "revenue_trend_growing")


def _check_high_nps(answers: Mapping[str, Any]) -> PatternFlag | None:
    nps = get_numeric(answers, "nps_score")
    if nps is None or nps <= HIGH_NPS_ABOVE:
        return None
    return _green("high_nps", "Excellent customer loyalty (NPS)", "nps_above", nps_score=nps)


def _check_data_driven(answers: Mapping[str, Any]) -> PatternFlag | None:
    if not (get_bool(answers, "data_driven_decisions") or get_str(answers, "data_driven_decisions") == "always"):
        return None
    return _green("data_driven", "Decisions are data-driven", "data_driven_decisions")


# --- Anomalies ---


def _check_revenue_per_employee(answers: Mapping[str, Any]) -> PatternFlag | None:
    """Flag revenue per employee outside the plausibility band; skipped when either side is missing."""
    revenue = get_numeric(answers, "annual_revenue", "revenue")
    employees = get_numeric(answers, "employee_count")
    if revenue is None or revenue <= 0:
        return None
    per_employee = safe_ratio(revenue, employees)
    if per_employee is None:
        return None
    details = {"revenue_per_employee": round(per_employee, 2)}
    if per_employee > REVENUE_PER_EMPLOYEE_MAX:
        return PatternFlag(
            code="high_revenue_per_employee",
            kind=FlagKind.ANOMALY,
            message="Revenue per employee is implausibly high",
            rule_name="revenue_per_employee_above",
            action=ACTION_VERIFY_DATA,
            details={**details, "threshold": REVENUE_PER_EMPLOYEE_MAX},
        )
    if per_employee < REVENUE_PER_EMPLOYEE_MIN:
        return PatternFlag(
            code="low_revenue_per_employee",
            kind=FlagKind.ANOMALY,
            message="Revenue per employee is very low",
            rule_name="revenue_per_employee_below",
            action=ACTION_INVESTIGATE,
            details={**details, "threshold": REVENUE_PER_EMPLOYEE_MIN},
        )
    return None


PatternRule = Callable[[Mapping[str, Any]], "PatternFlag | None"]

RED_FLAG_RULES: tuple[PatternRule, ...] = (
    _check_declining_revenue,
    _check_low_profit_margin,
    _check_high_churn,
    _check_excessive_budget,
    _check_no_website,
    _check_no_differentiation,
)
GREEN_FLAG_RULES: tuple[PatternRule, ...] = (
    _check_high_satisfaction,
    _check_growing_revenue,
    _check_high_nps,
    _check_data_driven,
)
ANOMALY_RULES: tuple[PatternRule, ...] = (_check_revenue_per_employee,)


def run_rules(rules: Sequence[Callable[..., Any]], *args: Any, component: str) -> list[Any]:
    """
    Evaluate every rule and collect non-None results.

    A failing rule is logged and skipped so one bad rule never sinks the analysis.
    """
    hits: list[Any] = []
    for rule in rules:
        try:
            result = rule(*args)
        except Exception as e:
            logger.warning(f"{component}_rule_failed", rule=rule.__name__, error=str(e))
            continue
        if result is not None:
            hits.append(result)
    return hits


def detect_patterns(answers: Mapping[str, Any]) -> PatternReport:
    """Run all red-flag, green-flag and anomaly rules. Pure function of the answers."""
    report = PatternReport(
        red_flags=run_rules(RED_FLAG_RULES, answers, component="red_flag"),
        green_flags=run_rules(GREEN_FLAG_RULES, answers, component="green_flag"),
        anomalies=run_rules(ANOMALY_RULES, answers, component="anomaly"),
    )
    logger.debug(
        "patterns_detected",
        red_flags=[f.code for f in report.red_flags],
        green_flags=[f.code for f in report.green_flags],
        anomalies=[f.code for f in report.anomalies],
    )
    return report


# --- Condition matching ---

_NUMERIC_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


@dataclass(frozen=True)
class Condition:
    """field <operator> value; operators: ==, !=, >, <, >=, <=, in."""

    field: str
    operator: str
    value: Any


def evaluate_condition(answers: Mapping[str, Any], condition: Condition) -> bool:
    """Absent fields never match; numeric comparisons on non-numeric values do not match."""
    op = condition.operator
    if op in _NUMERIC_OPERATORS:
        actual = get_numeric(answers, condition.field)
        if actual is None:
            return False
        return _NUMERIC_OPERATORS[op](actual, float(condition.value))
    actual_text = get_str(answers, condition.field)
    if actual_text is None:
        return False
    if op == "==":
        return actual_text == str(condition.value).lower()
    if op == "!=":
        return actual_text != str(condition.value).lower()
    if op == "in":
        return actual_text in {str(v).lower() for v in condition.value}
    return False


def match_conditions(answers: Mapping[str, Any], conditions: Sequence[Condition]) -> bool:
    """True when every condition holds (conjunction). An empty condition list never matches."""
    if not conditions:
        return False
    return all(evaluate_condition(answers, c) for c in conditions)

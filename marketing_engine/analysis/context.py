"""
Assessment context: decoding at the load boundary and business-attribute inference.

The context record (sector, company size/age/revenue, previously inferred
attributes) is decoded once into a typed pydantic model. Attributes the
caller did not supply (business stage, budget tier, urgency level) are
inferred from the answers with a confidence and a source tag.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from marketing_engine.core.exceptions import InvalidContextError
from marketing_engine.core.values import get_numeric, get_str
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

CONFIDENCE_HIGH = 0.85
CONFIDENCE_MEDIUM = 0.65
CONFIDENCE_LOW = 0.40

# Sectors whose customers find them mostly online
DIGITAL_DEPENDENT_SECTORS = frozenset({"retail", "fnb", "fitness", "education"})

STAGE_STARTUP = "startup"
STAGE_EARLY_GROWTH = "early_growth"
STAGE_GROWTH = "growth"
STAGE_MATURE = "mature"
STAGE_LEGACY = "legacy"

TIER_MICRO = "micro"
TIER_SMALL = "small"
TIER_MEDIUM = "medium"
TIER_LARGE = "large"
TIER_UNKNOWN = "unknown"

URGENCY_MINIMAL = "minimal"
URGENCY_LOW = "low"
URGENCY_MEDIUM = "medium"
URGENCY_HIGH = "high"
URGENCY_CRITICAL = "critical"

# Share of annual revenue assumed to go to marketing when no budget is given
ESTIMATED_BUDGET_SHARE = 0.08

# Context fields that also serve as answers when the questionnaire lacks them
ANSWER_FALLBACK_FIELDS = ("sector", "annual_revenue", "employee_count", "years_in_business")


class AssessmentContext(BaseModel):
    """Typed context record for one assessment session."""

    model_config = ConfigDict(extra="allow")

    sector: str = Field("general", description="Business sector key, e.g. retail, saas, fnb")
    company_name: str | None = Field(None, max_length=256)
    business_size: str | None = Field(None, description="micro | small | medium | large")
    years_in_business: float | None = Field(None, ge=0)
    employee_count: int | None = Field(None, ge=0)
    annual_revenue: float | None = Field(None, ge=0)
    business_stage: str | None = Field(None, description="Previously inferred business stage")
    budget_tier: str | None = Field(None, description="Previously inferred budget tier")
    urgency_level: str | None = Field(None, description="Previously inferred urgency level")

    @field_validator("sector", mode="before")
    @classmethod
    def _normalize_sector(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "general"
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("business_size", "business_stage", "budget_tier", "urgency_level", mode="before")
    @classmethod
    def _normalize_tag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value


def decode_context(raw: Mapping[str, Any] | AssessmentContext | None) -> AssessmentContext:
    """
    Decode a raw context record into AssessmentContext.

    Fields that fail validation are dropped (logged) rather than failing the
    analysis; only a record that is not a mapping at all is rejected.
    """
    if raw is None:
        return AssessmentContext()
    if isinstance(raw, AssessmentContext):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidContextError(f"Context must be a mapping, got {type(raw).__name__}")
    data = dict(raw)
    try:
        return AssessmentContext.model_validate(data)
    except ValidationError as e:
        bad_fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        logger.warning("context_fields_dropped", fields=bad_fields)
        for name in bad_fields:
            data.pop(name, None)
        return AssessmentContext.model_validate(data)


def with_context_fallbacks(answers: Mapping[str, Any], context: AssessmentContext) -> dict[str, Any]:
    """Copy of answers with context fields filled in where the answers lack them."""
    merged = dict(answers)
    for name in ANSWER_FALLBACK_FIELDS:
        value = getattr(context, name, None)
        if value is not None and merged.get(name) in (None, ""):
            merged[name] = value
    return merged


# --- Business stage ---


def _stage_from_years(years: float) -> str:
    if years < 2:
        return STAGE_STARTUP
    if years < 5:
        return STAGE_EARLY_GROWTH
    if years < 10:
        return STAGE_GROWTH
    if years < 30:
        return STAGE_MATURE
    return STAGE_LEGACY


def infer_business_stage(answers: Mapping[str, Any]) -> dict[str, Any]:
    """Business stage from years in business; falls back to revenue, then headcount."""
    years = get_numeric(answers, "years_in_business")
    if years is not None:
        return {
            "value": _stage_from_years(years),
            "confidence": CONFIDENCE_HIGH,
            "source": "direct_answer",
        }

    revenue = get_numeric(answers, "annual_revenue", "revenue")
    employees = get_numeric(answers, "employee_count")
    if revenue is not None:
        if revenue < 500_000:
            stage = STAGE_STARTUP
        elif revenue < 2_000_000:
            stage = STAGE_EARLY_GROWTH
        elif revenue < 10_000_000:
            stage = STAGE_GROWTH
        elif revenue < 50_000_000:
            stage = STAGE_MATURE
        else:
            stage = STAGE_LEGACY
        return {"value": stage, "confidence": CONFIDENCE_MEDIUM, "source": "indirect_inference"}
    if employees is not None:
        if employees <= 5:
            stage = STAGE_STARTUP
        elif employees <= 20:
            stage = STAGE_EARLY_GROWTH
        elif employees <= 50:
            stage = STAGE_GROWTH
        elif employees <= 200:
            stage = STAGE_MATURE
        else:
            stage = STAGE_LEGACY
        return {
            "value": stage,
            "confidence": round(CONFIDENCE_MEDIUM - 0.10, 2),
            "source": "indirect_inference",
        }
    return {"value": STAGE_GROWTH, "confidence": CONFIDENCE_LOW, "source": "indirect_inference"}


# --- Budget tier ---


def _tier_from_monthly(budget: float) -> str:
    if budget <= 5_000:
        return TIER_MICRO
    if budget <= 20_000:
        return TIER_SMALL
    if budget <= 100_000:
        return TIER_MEDIUM
    return TIER_LARGE


def infer_budget_tier(answers: Mapping[str, Any]) -> dict[str, Any]:
    """Budget tier from the monthly marketing budget, else estimated from annual revenue."""
    budget = get_numeric(answers, "monthly_marketing_budget", "marketing_budget")
    if budget is not None:
        return {
            "value": _tier_from_monthly(budget),
            "confidence": CONFIDENCE_HIGH,
            "source": "direct_answer",
            "monthly_budget": budget,
        }
    revenue = get_numeric(answers, "annual_revenue", "revenue")
    if revenue is None:
        return {"value": TIER_UNKNOWN, "confidence": 0.0, "source": "no_data"}
    estimated = revenue * ESTIMATED_BUDGET_SHARE / 12
    return {
        "value": _tier_from_monthly(estimated),
        "confidence": CONFIDENCE_LOW,
        "source": "revenue_estimate",
        "estimated_monthly": round(estimated),
    }


# --- Urgency level ---


def _revenue_declining(answers: Mapping[str, Any]) -> bool:
    trend = get_str(answers, "revenue_trend")
    if trend is not None:
        return trend in ("declining", "sharply_declining", "declining_fast")
    growth = get_numeric(answers, "revenue_growth_rate", "revenue_growth")
    return growth is not None and growth < 0


def _high_competition(answers: Mapping[str, Any]) -> bool:
    level = get_str(answers, "competition_level")
    if level is not None:
        return level in ("high", "very_high")
    competitors = get_numeric(answers, "competitor_count", "competitors_count")
    return competitors is not None and competitors > 10


def _low_digital_presence(answers: Mapping[str, Any]) -> bool:
    for key in ("has_website", "social_media_active"):
        if get_str(answers, key) in ("no", "false", "0", "لا"):
            return True
    rating = get_numeric(answers, "digital_presence_rating")
    return rating is not None and rating <= 3


def _high_churn(answers: Mapping[str, Any]) -> bool:
    churn = get_numeric(answers, "churn_rate", "customer_churn_rate")
    return churn is not None and churn > 20


def _cash_flow_issues(answers: Mapping[str, Any]) -> bool:
    status = get_str(answers, "cash_flow_status", "cash_flow")
    if status is not None:
        return status in ("negative", "critical")
    revenue = get_numeric(answers, "annual_revenue", "revenue")
    costs = get_numeric(answers, "monthly_costs")
    if revenue is not None and costs is not None:
        return costs * 12 >= revenue * 0.95
    return False


URGENCY_SIGNALS = (
    ("revenue_declining", _revenue_declining),
    ("high_competition", _high_competition),
    ("low_digital", _low_digital_presence),
    ("high_churn", _high_churn),
    ("cash_flow_issues", _cash_flow_issues),
)


def infer_urgency_level(answers: Mapping[str, Any]) -> dict[str, Any]:
    """Urgency from the count of distress signals present."""
    signals = {name: check(answers) for name, check in URGENCY_SIGNALS}
    count = sum(1 for hit in signals.values() if hit)
    if count >= 4:
        level = URGENCY_CRITICAL
    elif count >= 3:
        level = URGENCY_HIGH
    elif count >= 2:
        level = URGENCY_MEDIUM
    elif count >= 1:
        level = URGENCY_LOW
    else:
        level = URGENCY_MINIMAL
    confidence = min(CONFIDENCE_HIGH, 0.5 + (count / len(signals)) * 0.4)
    return {
        "value": level,
        "confidence": round(confidence, 2),
        "signals": signals,
        "signal_count": count,
    }


def enrich_context(context: AssessmentContext, answers: Mapping[str, Any]) -> AssessmentContext:
    """Return a copy of context with missing inferred attributes filled from the answers."""
    update: dict[str, Any] = {}
    if context.business_stage is None:
        update["business_stage"] = infer_business_stage(answers)["value"]
    if context.budget_tier is None:
        update["budget_tier"] = infer_budget_tier(answers)["value"]
    if context.urgency_level is None:
        update["urgency_level"] = infer_urgency_level(answers)["value"]
    if not update:
        return context
    logger.debug("context_enriched", **update)
    return context.model_copy(update=update)

"""
Typed records shared across the engine.

Closed enumerations replace free-form category strings; every record exposes
to_dict() producing plain JSON-serialisable values for the result bundle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Dimension(str, Enum):
    DIGITAL = "digital"
    MARKETING = "marketing"
    ORGANIZATIONAL = "organizational"
    RISK = "risk"
    OPPORTUNITY = "opportunity"


class MaturityLevel(str, Enum):
    BEGINNER = "beginner"
    DEVELOPING = "developing"
    ADVANCED = "advanced"
    EXPERT = "expert"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PlanType(str, Enum):
    EMERGENCY = "emergency"
    TREATMENT = "treatment"
    GROWTH = "growth"
    TRANSFORMATION = "transformation"


class ImpactTag(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    WARNING = "warning"
    NEGATIVE = "negative"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Layer(str, Enum):
    STRATEGIC = "strategic"
    TACTICAL = "tactical"
    EXECUTION = "execution"


class Effort(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class AlertTier(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"


class FlagSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SessionStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


# Sort weights
PRIORITY_ORDER = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 2,
    Priority.MEDIUM: 3,
    Priority.LOW: 4,
}
PRIORITY_IMPACT = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}
EFFORT_COST = {
    Effort.MINIMAL: 1,
    Effort.LOW: 2,
    Effort.MEDIUM: 3,
    Effort.HIGH: 4,
    Effort.VERY_HIGH: 5,
}
LAYER_ORDER = {
    Layer.STRATEGIC: 0,
    Layer.TACTICAL: 1,
    Layer.EXECUTION: 2,
}


@dataclass
class DimensionScore:
    """One maturity axis with its named sub-component breakdown."""

    name: Dimension
    value: int
    """Dimension score in [0, 100]."""
    components: dict[str, float] = field(default_factory=dict)
    """Sub-component name -> score (0-100, or 0-10 for risk/opportunity raw sub-scores)."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.value,
            "value": self.value,
            "components": dict(self.components),
        }


@dataclass
class DimensionScores:
    """The five dimension scores plus the composite overall score."""

    digital: DimensionScore
    marketing: DimensionScore
    organizational: DimensionScore
    risk: DimensionScore
    opportunity: DimensionScore
    overall: int
    maturity_level: MaturityLevel
    risk_level: RiskLevel

    def as_map(self) -> dict[str, float]:
        """Flat name -> value map; this seeds the shared scores map read by experts and rules."""
        return {
            "digital": self.digital.value,
            "marketing": self.marketing.value,
            "organizational": self.organizational.value,
            "risk": self.risk.value,
            "opportunity": self.opportunity.value,
            "overall": self.overall,
        }

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.as_map())
        out["maturity_level"] = self.maturity_level.value
        out["risk_level"] = self.risk_level.value
        out["breakdown"] = {
            d.name.value: d.to_dict()
            for d in (self.digital, self.marketing, self.organizational, self.risk, self.opportunity)
        }
        return out


@dataclass
class Insight:
    title: str
    description: str
    impact: ImpactTag
    confidence: float
    """Self-assessed reliability in [0, 1]."""
    source: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
            "confidence": round(self.confidence, 2),
            "source": self.source,
        }


@dataclass
class Recommendation:
    """
    A prioritised recommendation.

    Synthesizer items always carry a layer; expert recommendations leave it
    unset. priority_rank is assigned only after global sorting.
    """

    title: str
    description: str
    priority: Priority
    actions: list[str] = field(default_factory=list)
    layer: Layer | None = None
    timeline: str = ""
    estimated_impact: str = ""
    effort: Effort = Effort.MEDIUM
    category: str = ""
    source: str = ""
    priority_rank: int | None = None

    @property
    def priority_order(self) -> int:
        return PRIORITY_ORDER[self.priority]

    @property
    def impact_effort_ratio(self) -> float:
        return PRIORITY_IMPACT[self.priority] / max(1, EFFORT_COST[self.effort])

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "priority_order": self.priority_order,
            "layer": self.layer.value if self.layer else None,
            "actions": list(self.actions),
            "timeline": self.timeline,
            "estimated_impact": self.estimated_impact,
            "effort": self.effort.value,
            "category": self.category,
            "source": self.source,
            "priority_rank": self.priority_rank,
        }


@dataclass
class Alert:
    tier: AlertTier
    title: str
    description: str
    dimension: str
    action: str
    urgency_score: int
    """Time-criticality in [0, 100]; higher sorts first."""
    rule_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.tier.value,
            "title": self.title,
            "description": self.description,
            "dimension": self.dimension,
            "action": self.action,
            "urgency_score": self.urgency_score,
            "rule_name": self.rule_name,
        }


@dataclass
class ExpertAnalysisResult:
    """Output of one expert for one snapshot. Built once, never mutated afterwards."""

    expert_id: str
    name: str
    role: str
    decision_weight: float
    expertise: list[str] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    sections: dict[str, Any] = field(default_factory=dict)
    """Free-form nested detail (plain values only)."""
    insights: list[Insight] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "expert_id": self.expert_id,
            "name": self.name,
            "role": self.role,
            "decision_weight": self.decision_weight,
            "expertise": list(self.expertise),
            "scores": dict(self.scores),
            "sections": self.sections,
            "insights": [i.to_dict() for i in self.insights],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "confidence": self.confidence,
        }


@dataclass
class PanelVerdict:
    """Final synthesis: the chief strategist's verdict plus the weighted panel consensus."""

    business_health: float
    plan_type: PlanType
    focus_pillars: list[dict[str, Any]]
    priorities: list[dict[str, Any]]
    executive_summary: str
    consensus_confidence: float
    """Decision-weight-weighted mean of expert confidences."""
    expert_weights: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_health": self.business_health,
            "plan_type": self.plan_type.value,
            "focus_pillars": self.focus_pillars,
            "priorities": self.priorities,
            "executive_summary": self.executive_summary,
            "consensus_confidence": self.consensus_confidence,
            "expert_weights": dict(self.expert_weights),
        }


@dataclass
class ResultBundle:
    """The engine's sole externally visible artifact for one completed session."""

    scores: DimensionScores
    expert_results: list[ExpertAnalysisResult]
    recommendations: list[Recommendation]
    alerts: list[Alert]
    generated_at: datetime
    plan_type: PlanType
    panel: PanelVerdict
    patterns: dict[str, Any] = field(default_factory=dict)
    relationships: dict[str, Any] = field(default_factory=dict)
    inference: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    recommendation_summary: dict[str, Any] = field(default_factory=dict)
    alert_summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scores": self.scores.to_dict(),
            "plan_type": self.plan_type.value,
            "expert_results": [r.to_dict() for r in self.expert_results],
            "panel": self.panel.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "alerts": [a.to_dict() for a in self.alerts],
            "patterns": self.patterns,
            "relationships": self.relationships,
            "inference": self.inference,
            "context": self.context,
            "recommendation_summary": self.recommendation_summary,
            "alert_summary": self.alert_summary,
            "generated_at": self.generated_at.isoformat(),
        }

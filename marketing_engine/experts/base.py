"""
Expert contract and shared helpers.

Every expert is an independent class satisfying the Expert protocol: static
metadata (id, name, role, expertise, decision weight) plus analyze(),
generate_insights() and generate_recommendations(). Experts own their lookup
tables and weights; the helpers here cover what they all share, namely
confidence estimation, score normalisation and labels, and result assembly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import replace
from enum import Enum
from typing import Any, Protocol, TypeVar, runtime_checkable

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import (
    ExpertAnalysisResult,
    ImpactTag,
    Insight,
    Priority,
    Recommendation,
)
from marketing_engine.core.values import clamp, get_numeric, is_numeric_value, round_half_up

COMPLETENESS_WEIGHT = 0.7
CONSISTENCY_WEIGHT = 0.3
CONSISTENCY_FLOOR = 0.5
CV_PENALTY = 0.2

# Neutral midpoint used when a shared score is missing
DEFAULT_SHARED_SCORE = 50.0

SCORE_LABELS = (
    (90, "excellent"),
    (75, "very good"),
    (60, "good"),
    (40, "average"),
    (20, "weak"),
)
SCORE_LABEL_FLOOR = "critical"

E = TypeVar("E", bound=Enum)


@runtime_checkable
class Expert(Protocol):
    expert_id: str
    name: str
    role: str
    expertise: tuple[str, ...]
    decision_weight: float

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult: ...

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]: ...

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]: ...


def _is_filled(value: Any) -> bool:
    return value is not None and value != "" and value != [] and value != ()


def calculate_confidence(data_points: Mapping[str, Any]) -> float:
    """
    Self-assessed reliability in [0, 1].

    0.7 x completeness (share of expected inputs present) + 0.3 x consistency,
    where consistency = max(0.5, 1 - 0.2 x coefficient of variation) over the
    numeric inputs (1.0 with fewer than two). No data present gives 0.
    """
    if not data_points:
        return 0.0
    filled = [v for v in data_points.values() if _is_filled(v)]
    if not filled:
        return 0.0
    completeness = len(filled) / len(data_points)

    consistency = 1.0
    numbers = [float(v) for v in filled if is_numeric_value(v)]
    if len(numbers) >= 2:
        mean = sum(numbers) / len(numbers)
        variance = sum((n - mean) ** 2 for n in numbers) / len(numbers)
        cv = math.sqrt(variance) / abs(mean) if mean != 0 else 0.0
        consistency = max(CONSISTENCY_FLOOR, 1.0 - cv * CV_PENALTY)

    confidence = completeness * COMPLETENESS_WEIGHT + consistency * CONSISTENCY_WEIGHT
    return round_half_up(clamp(confidence, 0.0, 1.0), 2)


def normalize_score(value: float, low: float, high: float) -> float:
    """Map value from [low, high] to 0-100 (clamped, 1 decimal); 50 when the range is empty."""
    if high == low:
        return 50.0
    normalized = (value - low) / (high - low) * 100
    return round_half_up(clamp(normalized), 1)


def score_label(score: float) -> str:
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return SCORE_LABEL_FLOOR


def parse_enum(enum_cls: type[E], value: str | None) -> E | None:
    """Closed-enum member for a categorical answer; None for missing or unknown values."""
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def lookup(table: Mapping[Any, float], key: Any, default: float) -> float:
    """Enum member -> points; unknown or missing categories score the default."""
    if key is None:
        return default
    return table.get(key, default)


def shared_score(scores: Mapping[str, Any], *keys: str, default: float = DEFAULT_SHARED_SCORE) -> float:
    """First present shared score among keys; default when none is present."""
    value = get_numeric(scores, *keys)
    return default if value is None else value


def impact_for(score: float, positive_at: float = 60, neutral_at: float = 40) -> ImpactTag:
    if score >= positive_at:
        return ImpactTag.POSITIVE
    if score >= neutral_at:
        return ImpactTag.NEUTRAL
    return ImpactTag.NEGATIVE


def make_insight(
    expert: Expert,
    title: str,
    description: str,
    impact: ImpactTag,
    confidence: float,
) -> Insight:
    return Insight(
        title=title,
        description=description,
        impact=impact,
        confidence=round_half_up(clamp(confidence, 0.0, 1.0), 2),
        source=expert.expert_id,
    )


def make_recommendation(
    expert: Expert,
    title: str,
    description: str,
    priority: Priority,
    actions: list[str],
) -> Recommendation:
    return Recommendation(
        title=title,
        description=description,
        priority=priority,
        actions=list(actions),
        source=expert.expert_id,
        category=expert.expert_id,
    )


def build_result(
    expert: Expert,
    *,
    scores: dict[str, float],
    sections: dict[str, Any],
    confidence: float,
) -> ExpertAnalysisResult:
    """Assemble the result, then let the expert derive insights and recommendations from it."""
    draft = ExpertAnalysisResult(
        expert_id=expert.expert_id,
        name=expert.name,
        role=expert.role,
        decision_weight=expert.decision_weight,
        expertise=list(expert.expertise),
        scores=scores,
        sections=sections,
        confidence=confidence,
    )
    return replace(
        draft,
        insights=expert.generate_insights(draft),
        recommendations=expert.generate_recommendations(draft),
    )

"""
Brand strategist: brand audit, content assessment and positioning clarity.

Categorical answers missing from the snapshot fall back to the weakest
sensible level (an unknown brand, undefined positioning) rather than a
neutral midpoint.
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


class Awareness(str, Enum):
    DOMINANT = "dominant"
    WELL_KNOWN = "well_known"
    RECOGNIZED = "recognized"
    EMERGING = "emerging"
    UNKNOWN = "unknown"


class QualityLevel(str, Enum):
    EXCELLENT = "excellent"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    NONE = "none"


class VisualIdentity(str, Enum):
    PROFESSIONAL = "professional"
    GOOD = "good"
    BASIC = "basic"
    WEAK = "weak"
    NONE = "none"


class Positioning(str, Enum):
    PRICE_LEADER = "price_leader"
    QUALITY_LEADER = "quality_leader"
    INNOVATION_LEADER = "innovation_leader"
    SERVICE_LEADER = "service_leader"
    NICHE_SPECIALIST = "niche_specialist"
    UNDEFINED = "undefined"


class ContentFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    RARELY = "rarely"
    NEVER = "never"


class BrandVoice(str, Enum):
    DISTINCTIVE = "distinctive"
    CONSISTENT = "consistent"
    DEVELOPING = "developing"
    UNDEFINED = "undefined"


BRAND_PILLARS = {
    "brand_awareness": 0.25,
    "brand_consistency": 0.20,
    "content_quality": 0.20,
    "brand_positioning": 0.20,
    "visual_identity": 0.15,
}

AWARENESS_SCORES = {
    Awareness.DOMINANT: 95,
    Awareness.WELL_KNOWN: 80,
    Awareness.RECOGNIZED: 60,
    Awareness.EMERGING: 40,
    Awareness.UNKNOWN: 15,
}
CONSISTENCY_SCORES = {
    QualityLevel.EXCELLENT: 90,
    QualityLevel.HIGH: 75,
    QualityLevel.MODERATE: 55,
    QualityLevel.LOW: 30,
    QualityLevel.NONE: 10,
}
CONTENT_QUALITY_SCORES = {
    QualityLevel.EXCELLENT: 90,
    QualityLevel.HIGH: 75,
    QualityLevel.MODERATE: 55,
    QualityLevel.LOW: 30,
    QualityLevel.NONE: 5,
}
VISUAL_SCORES = {
    VisualIdentity.PROFESSIONAL: 90,
    VisualIdentity.GOOD: 70,
    VisualIdentity.BASIC: 45,
    VisualIdentity.WEAK: 25,
    VisualIdentity.NONE: 5,
}
POSITIONING_SCORES = {
    Positioning.PRICE_LEADER: 80,
    Positioning.QUALITY_LEADER: 80,
    Positioning.INNOVATION_LEADER: 80,
    Positioning.SERVICE_LEADER: 80,
    Positioning.NICHE_SPECIALIST: 70,
    Positioning.UNDEFINED: 15,
}
FREQUENCY_SCORES = {
    ContentFrequency.DAILY: 90,
    ContentFrequency.WEEKLY: 75,
    ContentFrequency.BIWEEKLY: 60,
    ContentFrequency.MONTHLY: 40,
    ContentFrequency.RARELY: 20,
    ContentFrequency.NEVER: 5,
}
VOICE_SCORES = {
    BrandVoice.DISTINCTIVE: 90,
    BrandVoice.CONSISTENT: 70,
    BrandVoice.DEVELOPING: 45,
    BrandVoice.UNDEFINED: 20,
}

# Scores for answers outside the known categories
OTHER_CONSISTENCY_SCORE = 35
OTHER_VISUAL_SCORE = 30
OTHER_CONTENT_SCORE = 30
OTHER_POSITIONING_SCORE = 40
OTHER_FREQUENCY_SCORE = 20
OTHER_VOICE_SCORE = 25

# Defaults for missing answers
DEFAULTS = {
    "brand_awareness": Awareness.UNKNOWN.value,
    "brand_consistency": QualityLevel.LOW.value,
    "content_quality": QualityLevel.LOW.value,
    "brand_positioning": Positioning.UNDEFINED.value,
    "visual_identity": VisualIdentity.WEAK.value,
    "brand_voice": BrandVoice.UNDEFINED.value,
    "content_frequency": ContentFrequency.RARELY.value,
}


def awareness_score(raw: Any) -> float:
    """Categorical awareness level, or a 0-10 self-rating scaled to 0-100."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return clamp(raw * 10)
    level = parse_enum(Awareness, raw if isinstance(raw, str) else None) or Awareness.UNKNOWN
    return AWARENESS_SCORES[level]


class BrandStrategist:
    expert_id = "brand_strategist"
    name = "Brand Strategist"
    role = "Builds and evaluates brand identity, positioning and content"
    expertise = (
        "brand_identity",
        "positioning",
        "content_strategy",
        "visual_identity",
        "brand_voice",
    )
    decision_weight = 0.7

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        awareness_raw = get_numeric(answers, "brand_awareness")
        if awareness_raw is None:
            awareness_raw = get_str(answers, "brand_awareness")
        data: dict[str, Any] = {"brand_awareness": awareness_raw}
        for key in DEFAULTS:
            if key != "brand_awareness":
                data[key] = get_str(answers, key)

        filled = {key: DEFAULTS[key] if value is None else value for key, value in data.items()}
        audit = self._audit(filled)
        content = self._content(filled)
        positioning = self._positioning(filled)
        return build_result(
            self,
            scores={
                "brand_strength": audit["brand_score"],
                "content_score": content["content_score"],
                "positioning_clarity": positioning["clarity_score"],
            },
            sections={
                "brand_audit": audit,
                "content_assessment": content,
                "positioning_analysis": positioning,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        strength = result.scores.get("brand_strength", 50)
        insights = [
            make_insight(
                self,
                "Brand strength",
                f"Brand strength: {score_label(strength)} ({strength:.0f}/100)",
                impact_for(strength),
                0.88,
            )
        ]
        content = result.scores.get("content_score", 50)
        if content < 40:
            insights.append(
                make_insight(
                    self,
                    "Content quality needs work",
                    "Current content is not strong enough to build a relationship with the target audience",
                    ImpactTag.WARNING,
                    0.83,
                )
            )
        elif content >= 75:
            insights.append(
                make_insight(
                    self,
                    "Outstanding content",
                    "High-quality content is actively building the brand and attracting customers",
                    ImpactTag.POSITIVE,
                    0.85,
                )
            )
        if result.scores.get("positioning_clarity", 50) < 40:
            insights.append(
                make_insight(
                    self,
                    "Unclear positioning",
                    "Market positioning is vague, which weakens differentiation and scatters messaging",
                    ImpactTag.WARNING,
                    0.85,
                )
            )
        if result.sections.get("brand_audit", {}).get("consistency_score", 50) < 50:
            insights.append(
                make_insight(
                    self,
                    "Inconsistent identity",
                    "Visual identity and messaging are applied unevenly across channels",
                    ImpactTag.WARNING,
                    0.80,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        strength = result.scores.get("brand_strength", 50)
        if strength < 35:
            recommendations.append(
                make_recommendation(
                    self,
                    "Build the brand from the ground up",
                    "The brand is weak and needs a complete identity",
                    Priority.CRITICAL,
                    [
                        "Define the brand's mission, vision and values",
                        "Design a professional visual identity",
                        "Write brand guidelines for every channel",
                        "Define a distinctive brand voice",
                    ],
                )
            )
        elif strength < 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Strengthen the brand",
                    "The brand has a base to build on but needs more consistency and reach",
                    Priority.HIGH,
                    [
                        "Audit brand consistency across all touchpoints",
                        "Refresh the visual identity where it is dated",
                        "Run awareness campaigns in the core segment",
                    ],
                )
            )
        if result.scores.get("content_score", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Improve content strategy",
                    "Content quality and frequency do not support the brand",
                    Priority.HIGH,
                    [
                        "Create a monthly content calendar",
                        "Raise production quality of the core formats",
                        "Publish at least weekly on the main channel",
                    ],
                )
            )
        if result.scores.get("positioning_clarity", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Clarify market positioning",
                    "Customers cannot easily tell what sets the brand apart",
                    Priority.MEDIUM,
                    [
                        "Pick one leadership position (price, quality, innovation or service)",
                        "Rewrite key messages around that position",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _audit(data: Mapping[str, Any]) -> dict[str, Any]:
        awareness = awareness_score(data["brand_awareness"])
        consistency = lookup(
            CONSISTENCY_SCORES, parse_enum(QualityLevel, data["brand_consistency"]), OTHER_CONSISTENCY_SCORE
        )
        visual = lookup(VISUAL_SCORES, parse_enum(VisualIdentity, data["visual_identity"]), OTHER_VISUAL_SCORE)
        content = lookup(
            CONTENT_QUALITY_SCORES, parse_enum(QualityLevel, data["content_quality"]), OTHER_CONTENT_SCORE
        )
        positioning = lookup(
            POSITIONING_SCORES, parse_enum(Positioning, data["brand_positioning"]), OTHER_POSITIONING_SCORE
        )
        brand = (
            awareness * BRAND_PILLARS["brand_awareness"]
            + consistency * BRAND_PILLARS["brand_consistency"]
            + visual * BRAND_PILLARS["visual_identity"]
            + content * BRAND_PILLARS["content_quality"]
            + positioning * BRAND_PILLARS["brand_positioning"]
        )
        return {
            "awareness_score": awareness,
            "consistency_score": consistency,
            "visual_score": visual,
            "brand_score": round_half_up(brand, 1),
            "brand_label": score_label(brand),
        }

    @staticmethod
    def _content(data: Mapping[str, Any]) -> dict[str, Any]:
        quality = lookup(
            CONTENT_QUALITY_SCORES, parse_enum(QualityLevel, data["content_quality"]), OTHER_CONTENT_SCORE
        )
        frequency = lookup(
            FREQUENCY_SCORES, parse_enum(ContentFrequency, data["content_frequency"]), OTHER_FREQUENCY_SCORE
        )
        voice = lookup(VOICE_SCORES, parse_enum(BrandVoice, data["brand_voice"]), OTHER_VOICE_SCORE)
        content = quality * 0.45 + frequency * 0.30 + voice * 0.25
        return {
            "quality_score": quality,
            "frequency_score": frequency,
            "voice_score": voice,
            "content_score": round_half_up(content, 1),
            "content_label": score_label(content),
        }

    @staticmethod
    def _positioning(data: Mapping[str, Any]) -> dict[str, Any]:
        position = parse_enum(Positioning, data["brand_positioning"])
        positioning = lookup(POSITIONING_SCORES, position, OTHER_POSITIONING_SCORE)
        clarity = positioning * 0.6 + awareness_score(data["brand_awareness"]) * 0.4
        return {
            "position_type": position.value if position else Positioning.UNDEFINED.value,
            "positioning_score": positioning,
            "clarity_score": round_half_up(clarity, 1),
            "clarity_label": score_label(clarity),
        }

"""
Digital marketing expert: digital presence, channel performance and digital ROI potential.
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
from marketing_engine.core.values import get_numeric, get_str, round_half_up
from marketing_engine.experts.base import (
    build_result,
    calculate_confidence,
    impact_for,
    lookup,
    make_insight,
    make_recommendation,
    normalize_score,
    parse_enum,
    score_label,
)


class SocialPresence(str, Enum):
    EXCELLENT = "excellent"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NONE = "none"


class ChannelActivity(str, Enum):
    ADVANCED = "advanced"
    ACTIVE = "active"
    BASIC = "basic"
    OCCASIONAL = "occasional"


# Monthly visits -> website score, first threshold met wins
TRAFFIC_STEPS = (
    (50_000, 90.0),
    (10_000, 70.0),
    (3_000, 50.0),
    (500, 30.0),
)
TRAFFIC_FLOOR = 5.0
VISITS_PER_POINT = 50

SOCIAL_PRESENCE_SCORES = {
    SocialPresence.EXCELLENT: 90,
    SocialPresence.STRONG: 75,
    SocialPresence.MODERATE: 55,
    SocialPresence.WEAK: 30,
    SocialPresence.NONE: 5,
}
UNKNOWN_PRESENCE_SCORE = 30
# Channel view of social media: unknown presence scores lower than in the maturity view
UNKNOWN_SOCIAL_CHANNEL_SCORE = 10

CHANNEL_ACTIVITY_SCORES = {
    ChannelActivity.ADVANCED: 85,
    ChannelActivity.ACTIVE: 65,
    ChannelActivity.BASIC: 40,
    ChannelActivity.OCCASIONAL: 20,
}
INACTIVE_CHANNEL_SCORE = 5

CHANNEL_WEIGHTS = {
    "website": 0.20,
    "social_media": 0.18,
    "seo": 0.18,
    "email_marketing": 0.15,
    "paid_advertising": 0.15,
    "content_marketing": 0.14,
}
ACTIVE_CHANNEL_MIN_SCORE = 30
POINTS_PER_ACTIVE_CHANNEL = 18

MATURITY_LEVELS = (
    (75, "advanced"),
    (50, "intermediate"),
    (25, "basic"),
)
MATURITY_FLOOR = "beginner"


def traffic_score(visits: float) -> float:
    for threshold, score in TRAFFIC_STEPS:
        if visits >= threshold:
            return score
    return max(TRAFFIC_FLOOR, visits / VISITS_PER_POINT)


class DigitalMarketingExpert:
    expert_id = "digital_marketing_expert"
    name = "Digital Marketing Expert"
    role = "Evaluates digital presence, channel performance and digital strategy"
    expertise = (
        "seo",
        "social_media",
        "paid_advertising",
        "email_marketing",
        "content_marketing",
        "analytics",
    )
    decision_weight = 0.8

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        data = {
            "website_traffic": get_numeric(answers, "website_traffic", "monthly_website_visitors"),
            "social_media_presence": get_str(answers, "social_media_presence"),
            "seo_score": get_numeric(answers, "seo_score"),
            "email_marketing": get_str(answers, "email_marketing"),
            "paid_advertising": get_str(answers, "paid_advertising"),
            "content_marketing": get_str(answers, "content_marketing"),
            "conversion_rate": get_numeric(answers, "conversion_rate"),
            "social_followers": get_numeric(answers, "social_followers"),
            "email_list_size": get_numeric(answers, "email_list_size"),
        }
        presence = self._presence(data)
        channels = self._channels(data)
        strategy = self._strategy(data, channels)
        return build_result(
            self,
            scores={
                "digital_maturity": presence["maturity_score"],
                "channel_effectiveness": channels["overall_score"],
                "roi_potential": strategy["roi_potential"],
            },
            sections={
                "digital_presence": presence,
                "channel_performance": channels,
                "digital_strategy": strategy,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        maturity = result.scores.get("digital_maturity", 50)
        insights = [
            make_insight(
                self,
                "Digital marketing maturity",
                f"Digital maturity: {score_label(maturity)} ({maturity:.0f}/100)",
                impact_for(maturity),
                0.88,
            )
        ]
        if result.scores.get("channel_effectiveness", 50) < 40:
            insights.append(
                make_insight(
                    self,
                    "Digital channels underperform",
                    "Channel performance is below the required level and marketing opportunities are being lost",
                    ImpactTag.WARNING,
                    0.85,
                )
            )

        channel_scores = result.sections.get("channel_performance", {}).get("channels", {})
        if channel_scores:
            strongest = max(channel_scores, key=channel_scores.get)
            if channel_scores[strongest] >= 65:
                insights.append(
                    make_insight(
                        self,
                        "Standout digital channel",
                        f"{strongest} performs strongly ({channel_scores[strongest]:.0f}/100); investment there can grow",
                        ImpactTag.POSITIVE,
                        0.82,
                    )
                )
            weakest = min(channel_scores, key=channel_scores.get)
            if channel_scores[weakest] < 40:
                insights.append(
                    make_insight(
                        self,
                        "Digital channel needs work",
                        f"{weakest} performs poorly ({channel_scores[weakest]:.0f}/100) and needs improvement or review",
                        ImpactTag.WARNING,
                        0.80,
                    )
                )

        if result.scores.get("roi_potential", 50) >= 70:
            insights.append(
                make_insight(
                    self,
                    "High digital ROI potential",
                    "Refining the current strategy can noticeably improve digital returns",
                    ImpactTag.POSITIVE,
                    0.80,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        maturity = result.scores.get("digital_maturity", 50)
        if maturity < 35:
            recommendations.append(
                make_recommendation(
                    self,
                    "Build a solid digital foundation",
                    "Digital maturity is low; the digital infrastructure must be built from the ground up",
                    Priority.CRITICAL,
                    [
                        "Launch a professional, search-optimised website",
                        "Create and activate accounts on the main social platforms",
                        "Start an email list and email marketing",
                        "Install analytics and tracking on every channel",
                    ],
                )
            )
        elif maturity < 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Develop the digital strategy",
                    "The digital strategy needs to move to a more advanced stage",
                    Priority.HIGH,
                    [
                        "Write an integrated digital content strategy",
                        "Improve search engine optimisation systematically",
                        "Test paid campaigns on the best-performing platforms",
                        "Automate the basic digital marketing workflows",
                    ],
                )
            )
        if result.scores.get("channel_effectiveness", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Improve digital channel performance",
                    "Current channels need tuning to maximise returns",
                    Priority.HIGH,
                    [
                        "Analyse each channel and identify the highest-return ones",
                        "Shift budget towards the most effective channels",
                        "Tailor content and messaging per channel",
                        "Set per-channel KPIs and review them weekly",
                    ],
                )
            )
        if result.scores.get("roi_potential", 50) >= 60:
            recommendations.append(
                make_recommendation(
                    self,
                    "Maximise digital returns",
                    "Current digital investment can deliver higher returns",
                    Priority.MEDIUM,
                    [
                        "Increase spend on channels with proven returns",
                        "Run retargeting campaigns",
                        "Improve landing pages and conversion rates",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _presence(data: Mapping[str, Any]) -> dict[str, Any]:
        website = traffic_score(data["website_traffic"] or 0)
        social = lookup(
            SOCIAL_PRESENCE_SCORES,
            parse_enum(SocialPresence, data["social_media_presence"]),
            UNKNOWN_PRESENCE_SCORE,
        )
        seo = normalize_score(data["seo_score"] or 0, 0, 100)
        maturity = website * 0.40 + social * 0.30 + seo * 0.30
        level = next((label for threshold, label in MATURITY_LEVELS if maturity >= threshold), MATURITY_FLOOR)
        return {
            "website_score": round_half_up(website, 1),
            "social_score": round_half_up(social, 1),
            "seo_score": round_half_up(seo, 1),
            "maturity_score": round_half_up(maturity, 1),
            "maturity_level": level,
        }

    @staticmethod
    def _channels(data: Mapping[str, Any]) -> dict[str, Any]:
        channels = {
            "website": traffic_score(data["website_traffic"] or 0),
            "social_media": lookup(
                SOCIAL_PRESENCE_SCORES,
                parse_enum(SocialPresence, data["social_media_presence"]),
                UNKNOWN_SOCIAL_CHANNEL_SCORE,
            ),
            "seo": normalize_score(data["seo_score"] or 0, 0, 100),
        }
        for key in ("email_marketing", "paid_advertising", "content_marketing"):
            channels[key] = lookup(
                CHANNEL_ACTIVITY_SCORES,
                parse_enum(ChannelActivity, data[key]),
                INACTIVE_CHANNEL_SCORE,
            )
        overall = sum(channels[name] * weight for name, weight in CHANNEL_WEIGHTS.items())
        return {
            "channels": {name: round_half_up(score, 1) for name, score in channels.items()},
            "overall_score": round_half_up(overall, 1),
        }

    @staticmethod
    def _strategy(data: Mapping[str, Any], channels: Mapping[str, Any]) -> dict[str, Any]:
        channel_score = channels["overall_score"]
        conversion = normalize_score(data["conversion_rate"] or 0, 0, 10)
        active = sum(1 for score in channels["channels"].values() if score >= ACTIVE_CHANNEL_MIN_SCORE)
        diversity = min(100, active * POINTS_PER_ACTIVE_CHANNEL)
        roi_potential = channel_score * 0.4 + conversion * 0.3 + diversity * 0.3
        return {
            "channel_score": channel_score,
            "conversion_score": conversion,
            "diversity_score": diversity,
            "active_channels": active,
            "roi_potential": round_half_up(roi_potential, 1),
        }

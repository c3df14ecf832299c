"""Recommendation synthesizer: layered, ranked recommendations from dimension scores."""

from marketing_engine.recommendations.engine import (
    RecommendationConfig,
    prioritize,
    recommendation_summary,
    synthesize_recommendations,
)

__all__ = [
    "RecommendationConfig",
    "prioritize",
    "recommendation_summary",
    "synthesize_recommendations",
]

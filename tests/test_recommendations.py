"""
Tests for the recommendation synthesizer: layers, ranking, execution
schedule, summary and threshold overrides.
"""

from __future__ import annotations

from marketing_engine.analysis.models import LAYER_ORDER, Effort, Layer, PlanType, Priority
from marketing_engine.analysis.scoring import calculate_scores
from marketing_engine.recommendations import RecommendationConfig, prioritize, synthesize_recommendations
from marketing_engine.recommendations.engine import (
    ScoreView,
    estimated_impact,
    focus_areas,
    generate_execution,
    generate_strategic,
    generate_tactical,
)

WEAK = {"digital": 5, "marketing": 10, "organizational": 10, "risk": 80, "opportunity": 0, "overall": 12}


def _by_layer(recs, layer):
    return [r for r in recs if r.layer is layer]


# --- Profiles ---


def test_healthy_saas_layers(healthy_saas):
    recs, summary = synthesize_recommendations(calculate_scores(healthy_saas))
    assert summary["plan_type"] == "transformation"
    assert summary["time_horizon"] == "12 months"
    assert summary["by_layer"] == {"strategic": 2, "tactical": 4, "execution": 8}
    assert summary["total"] == len(recs) == 14
    categories = {r.category for r in _by_layer(recs, Layer.STRATEGIC)}
    assert categories == {"strategic_direction", "opportunity_capture"}


def test_weak_scores_emergency_layers():
    recs, summary = synthesize_recommendations(WEAK)
    assert summary["plan_type"] == "emergency"
    assert summary["time_horizon"] == "30 days"
    strategic = {r.category: r for r in _by_layer(recs, Layer.STRATEGIC)}
    assert set(strategic) == {"strategic_direction", "focus_areas", "risk_mitigation", "capability_building"}
    assert strategic["strategic_direction"].priority is Priority.CRITICAL
    assert strategic["strategic_direction"].effort is Effort.HIGH
    assert strategic["risk_mitigation"].priority is Priority.CRITICAL
    assert len(_by_layer(recs, Layer.TACTICAL)) == 7
    assert len(_by_layer(recs, Layer.EXECUTION)) == 14


def test_strong_scores_keep_the_short_plan():
    strong = {"digital": 80, "marketing": 80, "organizational": 80, "risk": 20, "opportunity": 40, "overall": 80}
    recs, summary = synthesize_recommendations(strong)
    # Only the always-on rules fire: direction, four channel tactics, two steps each
    assert summary["by_layer"] == {"strategic": 1, "tactical": 4, "execution": 8}
    assert [r.category for r in _by_layer(recs, Layer.STRATEGIC)] == ["strategic_direction"]


def test_missing_scores_default_to_midpoint():
    recs, summary = synthesize_recommendations({})
    assert summary["plan_type"] == "growth"
    direction = next(r for r in recs if r.category == "strategic_direction")
    assert direction.priority is Priority.MEDIUM
    assert "50/100" in direction.description


def test_explicit_plan_type_wins():
    _, summary = synthesize_recommendations(WEAK, PlanType.TREATMENT)
    assert summary["plan_type"] == "treatment"


# --- Ranking ---


def test_ranks_are_sequential_and_sorted():
    recs, _ = synthesize_recommendations(WEAK)
    assert [r.priority_rank for r in recs] == list(range(1, len(recs) + 1))
    keys = [(-r.impact_effort_ratio, LAYER_ORDER[r.layer]) for r in recs]
    assert keys == sorted(keys)


def test_prioritize_ties_prefer_strategic():
    view = ScoreView.from_scores(WEAK)
    ranked = prioritize([*generate_tactical(view), *generate_strategic(view)])
    by_category = {r.category: r for r in ranked}
    # Equal impact/effort ratio: the strategic item ranks first
    assert by_category["focus_areas"].impact_effort_ratio == by_category["email"].impact_effort_ratio
    assert ranked.index(by_category["focus_areas"]) < ranked.index(by_category["email"])
    assert by_category["risk_mitigation"].impact_effort_ratio == by_category["website"].impact_effort_ratio
    assert ranked.index(by_category["risk_mitigation"]) < ranked.index(by_category["website"])
    assert ranked[-1].impact_effort_ratio <= ranked[0].impact_effort_ratio


# --- Layers ---


def test_focus_areas_weakest_first():
    view = ScoreView.from_scores({"digital": 55, "marketing": 20, "organizational": 70, "overall": 50, "risk": 30})
    areas = focus_areas(view, RecommendationConfig())
    assert [a["key"] for a in areas] == ["marketing", "digital"]
    assert areas[0]["target"] == 45


def test_execution_schedule_is_capped():
    view = ScoreView.from_scores(WEAK)
    config = RecommendationConfig(execution_steps_per_tactic=4)
    items = generate_execution(generate_tactical(view, config), config)
    assert len(items) == 15
    assert items[0].timeline == "Week 1"
    assert items[-1].timeline == "Week 15"
    assert all(i.effort is Effort.LOW for i in items)
    assert items[0].description.startswith("Part of: ")


def test_config_overrides_thresholds():
    config = RecommendationConfig(risk_mitigation_above=90)
    recs, _ = synthesize_recommendations(WEAK, config=config)
    assert "risk_mitigation" not in {r.category for r in recs}


def test_estimated_impact_bands():
    assert estimated_impact(10).startswith("Critical")
    assert estimated_impact(45).startswith("High")
    assert estimated_impact(69).startswith("Medium")
    assert estimated_impact(70).startswith("Transformational")


def test_items_serialise_with_layer(healthy_saas):
    recs, _ = synthesize_recommendations(calculate_scores(healthy_saas))
    data = recs[0].to_dict()
    assert data["priority_rank"] == 1
    assert data["layer"] in {"strategic", "tactical", "execution"}
    assert data["source"] == "recommendation_engine"

"""
Tests for the expert panel: ordering, isolation of failing experts,
headline-score publication and the consensus verdict.
"""

from __future__ import annotations

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import PlanType
from marketing_engine.analysis.scoring import calculate_scores
from marketing_engine.experts import run_panel
from marketing_engine.experts.base import build_result
from marketing_engine.experts.panel import consensus_confidence, order_by_weight

EXPECTED_ORDER = [
    "financial_analyst",
    "market_analyst",
    "digital_marketing_expert",
    "brand_strategist",
    "consumer_psychologist",
    "operations_expert",
    "data_scientist",
    "risk_manager",
    "innovation_scout",
    "chief_strategist",
]


class StubExpert:
    """Minimal expert with a fixed score and confidence."""

    role = "stub"
    expertise = ("testing",)

    def __init__(self, expert_id, weight, confidence=0.5, fail=False):
        self.expert_id = expert_id
        self.name = expert_id
        self.decision_weight = weight
        self._confidence = confidence
        self._fail = fail

    def analyze(self, answers, context, scores):
        if self._fail:
            raise RuntimeError("stub failure")
        return build_result(self, scores={"stub_score": 42.0}, sections={}, confidence=self._confidence)

    def generate_insights(self, result):
        return []

    def generate_recommendations(self, result):
        return []


# --- Full panel ---


def test_panel_order_chief_last(healthy_saas):
    scores = calculate_scores(healthy_saas).as_map()
    outcome = run_panel(healthy_saas, AssessmentContext(sector="saas"), scores)
    assert [r.expert_id for r in outcome.results] == EXPECTED_ORDER


def test_panel_publishes_headline_scores_without_touching_input(healthy_saas):
    scores = calculate_scores(healthy_saas).as_map()
    before = dict(scores)
    outcome = run_panel(healthy_saas, AssessmentContext(sector="saas"), scores)
    assert scores == before
    for key in ("financial", "market", "brand", "operations", "risk_preparedness", "innovation"):
        assert key in outcome.shared_scores
    financial = next(r for r in outcome.results if r.expert_id == "financial_analyst")
    assert outcome.shared_scores["financial"] == financial.scores["financial_health"]


def test_struggling_panel_plans_emergency(struggling_retail):
    scores = calculate_scores(struggling_retail).as_map()
    outcome = run_panel(struggling_retail, AssessmentContext(sector="retail"), scores)
    # Risk 80 forces the emergency plan whatever the health score
    assert outcome.verdict.plan_type is PlanType.EMERGENCY
    assert outcome.verdict.focus_pillars
    assert 0.0 <= outcome.verdict.consensus_confidence <= 1.0


def test_empty_answers_run_every_expert(empty_answers):
    outcome = run_panel(empty_answers, AssessmentContext(), calculate_scores(empty_answers).as_map())
    assert len(outcome.results) == 10
    assert outcome.verdict.expert_weights["chief_strategist"] == 1.0


# --- Isolation and ordering ---


def test_failing_expert_is_skipped():
    specialists = [StubExpert("a", 0.5), StubExpert("broken", 0.9, fail=True), StubExpert("b", 0.7)]
    outcome = run_panel({}, AssessmentContext(), {"risk": 10}, specialists=specialists)
    assert [r.expert_id for r in outcome.results] == ["b", "a", "chief_strategist"]
    assert "broken" not in outcome.verdict.expert_weights


def test_order_by_weight_is_stable():
    experts = [StubExpert("x", 0.6), StubExpert("y", 0.8), StubExpert("z", 0.6)]
    assert [e.expert_id for e in order_by_weight(experts)] == ["y", "x", "z"]


def test_chief_is_final_even_with_heavy_specialist():
    specialists = [StubExpert("heavy", 5.0, confidence=1.0)]
    outcome = run_panel({}, AssessmentContext(), {"risk": 10}, specialists=specialists)
    chief = outcome.results[-1]
    assert chief.expert_id == "chief_strategist"
    assert outcome.verdict.business_health == chief.scores["overall_health"]


# --- Consensus ---


def test_consensus_is_weighted_mean():
    results = [
        build_result(StubExpert("a", 1.0), scores={}, sections={}, confidence=1.0),
        build_result(StubExpert("b", 3.0), scores={}, sections={}, confidence=0.0),
    ]
    assert consensus_confidence(results) == 0.25


def test_consensus_empty_panel_is_zero():
    assert consensus_confidence([]) == 0.0

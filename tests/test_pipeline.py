"""
Tests for the assessment pipeline: bundle shape, purity, sector resolution,
the session-status guard and the optional timeout.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from marketing_engine import pipeline
from marketing_engine.analysis.models import PlanType, SessionStatus
from marketing_engine.config import reset_settings_cache
from marketing_engine.core.exceptions import AnalysisTimeoutError, InvalidContextError, SessionNotCompletedError
from marketing_engine.pipeline import analyze, ensure_session_completed, run_assessment

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class RecordingStore:
    def __init__(self):
        self.saved = {}

    def save_bundle(self, session_id, bundle):
        self.saved[session_id] = bundle

    def load_bundle(self, session_id):
        return self.saved[session_id].to_dict()


# --- Bundle ---


def test_bundle_is_json_serialisable(struggling_retail):
    bundle = analyze(struggling_retail, {"sector": "retail"}, now=FIXED_NOW)
    data = json.loads(json.dumps(bundle.to_dict()))
    assert data["generated_at"] == FIXED_NOW.isoformat()
    assert set(data) >= {
        "scores",
        "plan_type",
        "expert_results",
        "panel",
        "recommendations",
        "alerts",
        "patterns",
        "relationships",
        "inference",
        "context",
        "recommendation_summary",
        "alert_summary",
    }
    assert len(data["expert_results"]) == 10
    assert "benchmarks" in data["context"]


def test_same_inputs_same_bundle(healthy_saas):
    first = analyze(healthy_saas, {"sector": "saas"}, now=FIXED_NOW).to_dict()
    second = analyze(dict(healthy_saas), {"sector": "saas"}, now=FIXED_NOW).to_dict()
    assert first == second


def test_struggling_retail_plans_emergency(struggling_retail):
    bundle = analyze(struggling_retail, {"sector": "retail"})
    assert bundle.plan_type is PlanType.EMERGENCY
    assert bundle.plan_type is bundle.panel.plan_type
    assert bundle.recommendation_summary["plan_type"] == "emergency"
    assert bundle.alerts[0].rule_name == "crisis"
    assert "INF_001" in [p["id"] for p in bundle.inference["patterns"]]


def test_plan_type_agrees_across_sections(healthy_saas):
    bundle = analyze(healthy_saas, {"sector": "saas"})
    assert bundle.recommendation_summary["plan_type"] == bundle.plan_type.value
    assert bundle.panel.to_dict()["plan_type"] == bundle.plan_type.value


def test_empty_answers_never_raise(empty_answers):
    bundle = analyze(empty_answers)
    assert 0 <= bundle.scores.overall <= 100
    assert bundle.recommendations
    assert [r.priority_rank for r in bundle.recommendations] == list(range(1, len(bundle.recommendations) + 1))


def test_ranks_and_urgencies_ordered(struggling_retail):
    bundle = analyze(struggling_retail)
    urgencies = [a.urgency_score for a in bundle.alerts]
    assert urgencies == sorted(urgencies, reverse=True)
    assert bundle.alert_summary["total"] == len(bundle.alerts)


# --- Context ---


def test_non_mapping_context_rejected(healthy_saas):
    with pytest.raises(InvalidContextError):
        analyze(healthy_saas, ["retail"])


def test_bad_context_field_is_dropped(healthy_saas):
    bundle = analyze(healthy_saas, {"sector": "saas", "employee_count": -3})
    assert bundle.context["sector"] == "saas"
    assert bundle.context["employee_count"] is None


def test_context_only_fields_reach_inference():
    bundle = analyze({}, {"years_in_business": 1, "annual_revenue": 100_000})
    assert bundle.context["business_stage"] == "startup"
    # No budget answer: tier estimated from the context revenue
    assert bundle.context["budget_tier"] == "micro"


def test_answers_win_over_context_for_inference():
    bundle = analyze({"years_in_business": 12}, {"years_in_business": 1})
    assert bundle.context["business_stage"] == "mature"


def test_sector_from_answers_when_context_silent(struggling_retail):
    assert analyze(struggling_retail).context["sector"] == "retail"


def test_configured_default_sector(monkeypatch, empty_answers):
    monkeypatch.setenv("MARKETING_ENGINE_DEFAULT_SECTOR", "SaaS")
    reset_settings_cache()
    assert analyze(empty_answers).context["sector"] == "saas"
    assert analyze(empty_answers, {"sector": "fnb"}).context["sector"] == "fnb"


# --- Session guard ---


@pytest.mark.parametrize("status", ["completed", " COMPLETED ", SessionStatus.COMPLETED])
def test_completed_sessions_pass(status):
    assert ensure_session_completed(status) is SessionStatus.COMPLETED


@pytest.mark.parametrize("status", ["draft", "in_progress", SessionStatus.ABANDONED, "bogus", ""])
def test_other_sessions_rejected(status):
    with pytest.raises(SessionNotCompletedError) as exc:
        ensure_session_completed(status)
    assert exc.value.code == "session_not_completed"


def test_run_assessment_saves_bundle(struggling_retail):
    store = RecordingStore()
    bundle = run_assessment(7, struggling_retail, {"sector": "retail"}, store)
    assert store.saved[7] is bundle


def test_run_assessment_refuses_incomplete_session(struggling_retail):
    store = RecordingStore()
    with pytest.raises(SessionNotCompletedError):
        run_assessment(7, struggling_retail, None, store, status="in_progress")
    assert store.saved == {}


# --- Timeout ---


def _slow_analysis(*args):
    time.sleep(1.0)


def test_timeout_argument(healthy_saas):
    with patch.object(pipeline, "_analyze", side_effect=_slow_analysis):
        with pytest.raises(AnalysisTimeoutError):
            analyze(healthy_saas, timeout_sec=0.05)


def test_timeout_from_settings(monkeypatch, healthy_saas):
    monkeypatch.setenv("MARKETING_ENGINE_TIMEOUT_SEC", "0.05")
    reset_settings_cache()
    with patch.object(pipeline, "_analyze", side_effect=_slow_analysis):
        with pytest.raises(AnalysisTimeoutError):
            analyze(healthy_saas)


def test_fast_run_within_timeout(healthy_saas):
    bundle = analyze(healthy_saas, {"sector": "saas"}, timeout_sec=30)
    assert bundle.scores.overall == 85

"""
Tests for the SQL results store: upsert semantics, lookups, listing and
error mapping. Uses a temporary SQLite database per test.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from marketing_engine.core.exceptions import PersistenceUnavailableError, SessionNotFoundError
from marketing_engine.pipeline import analyze, run_assessment
from marketing_engine.storage import SqlResultStore, get_result_store

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_save_and_load(results_store, struggling_retail):
    bundle = analyze(struggling_retail, {"sector": "retail"}, now=NOW)
    results_store.save_bundle(1, bundle)
    loaded = results_store.load_bundle(1)
    assert loaded["plan_type"] == "emergency"
    assert loaded["scores"]["overall"] == bundle.scores.overall
    assert loaded["generated_at"] == NOW.isoformat()
    assert len(loaded["alerts"]) == len(bundle.alerts)


def test_int_and_str_ids_share_a_row(results_store, healthy_saas):
    results_store.save_bundle(5, analyze(healthy_saas, now=NOW))
    assert results_store.load_bundle("5")["scores"]["overall"] == 85


def test_second_save_overwrites(results_store, struggling_retail, healthy_saas):
    results_store.save_bundle("s-1", analyze(struggling_retail, now=NOW))
    results_store.save_bundle("s-1", analyze(healthy_saas, now=NOW))
    sessions = results_store.list_sessions()
    assert len(sessions) == 1
    assert sessions[0]["session_id"] == "s-1"
    assert sessions[0]["overall"] == 85
    assert results_store.load_bundle("s-1")["scores"]["overall"] == 85


def test_missing_session_raises(results_store):
    with pytest.raises(SessionNotFoundError) as exc:
        results_store.load_bundle(404)
    assert exc.value.code == "session_not_found"


def test_list_sessions_most_recent_first(results_store, empty_answers):
    results_store.save_bundle("a", analyze(empty_answers, now=NOW))
    results_store.save_bundle("b", analyze(empty_answers, now=NOW))
    assert [s["session_id"] for s in results_store.list_sessions()] == ["b", "a"]


def test_run_assessment_persists(results_store, struggling_retail):
    bundle = run_assessment(42, struggling_retail, {"sector": "retail"}, results_store)
    stored = results_store.load_bundle(42)
    assert stored["plan_type"] == bundle.plan_type.value
    assert stored["recommendation_summary"]["total"] == len(bundle.recommendations)


def test_store_is_cached(results_store):
    assert get_result_store() is results_store


def test_unreachable_database_maps_to_persistence_error(tmp_path):
    store = SqlResultStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'results.db'}")
    with pytest.raises(PersistenceUnavailableError):
        store.init_db()
    store.dispose()


def test_save_without_tables_maps_to_persistence_error(tmp_path, healthy_saas):
    store = SqlResultStore(f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(PersistenceUnavailableError):
        store.save_bundle(1, analyze(healthy_saas, now=NOW))
    store.dispose()

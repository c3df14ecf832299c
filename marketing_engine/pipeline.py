"""
Assessment pipeline: answers + context in, one ResultBundle out.

Order: decode and enrich the context, merge context fallbacks into the
answers, score the five dimensions, detect patterns, check relationships,
run the expert panel, match playbooks, then build recommendations and
alerts. Apart from generated_at the bundle is a pure function of the
inputs; the only side effect is the store write in run_assessment().
"""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Any

from marketing_engine.alerts import alert_summary, evaluate_alerts
from marketing_engine.analysis.context import (
    AssessmentContext,
    decode_context,
    enrich_context,
    with_context_fallbacks,
)
from marketing_engine.analysis.inference import run_inference
from marketing_engine.analysis.models import ResultBundle, SessionStatus
from marketing_engine.analysis.patterns import detect_patterns
from marketing_engine.analysis.relationships import check_relationships
from marketing_engine.analysis.scoring import benchmark_all, calculate_scores
from marketing_engine.config import get_settings
from marketing_engine.core.exceptions import AnalysisTimeoutError, SessionNotCompletedError
from marketing_engine.core.values import get_str
from marketing_engine.engine_logging import bind_session, get_logger
from marketing_engine.experts import run_panel
from marketing_engine.recommendations import synthesize_recommendations
from marketing_engine.storage import ResultStore

logger = get_logger(__name__)


def ensure_session_completed(status: SessionStatus | str) -> SessionStatus:
    """Only completed sessions may be analyzed; anything else raises SessionNotCompletedError."""
    try:
        parsed = SessionStatus(str(getattr(status, "value", status)).strip().lower())
    except ValueError:
        raise SessionNotCompletedError(f"Unknown session status: {status!r}") from None
    if parsed is not SessionStatus.COMPLETED:
        raise SessionNotCompletedError(f"Session is {parsed.value}, not completed")
    return parsed


def _resolve_sector(context: AssessmentContext, answers: Mapping[str, Any]) -> AssessmentContext:
    """An explicit context sector wins, then the sector answer, then the configured default."""
    if context.sector != "general":
        return context
    sector = get_str(answers, "sector") or get_settings().default_sector
    if sector == context.sector:
        return context
    return context.model_copy(update={"sector": sector})


def _analyze(
    answers: Mapping[str, Any],
    raw_context: Mapping[str, Any] | AssessmentContext | None,
    now: datetime | None,
) -> ResultBundle:
    context = _resolve_sector(decode_context(raw_context), answers)
    merged = with_context_fallbacks(answers, context)
    context = enrich_context(context, merged)

    scores = calculate_scores(merged)
    score_map = scores.as_map()
    patterns = detect_patterns(merged)
    relationships = check_relationships(merged, score_map)

    panel = run_panel(merged, context, score_map)
    inference = run_inference(merged, score_map)

    recommendations, recommendation_summary = synthesize_recommendations(scores, panel.verdict.plan_type)
    alerts = evaluate_alerts(merged, scores, context)

    context_dict = context.model_dump(mode="json")
    context_dict["benchmarks"] = benchmark_all(scores, context.sector)

    return ResultBundle(
        scores=scores,
        expert_results=panel.results,
        recommendations=recommendations,
        alerts=alerts,
        generated_at=now or datetime.now(timezone.utc),
        plan_type=panel.verdict.plan_type,
        panel=panel.verdict,
        patterns=patterns.to_dict(),
        relationships=relationships.to_dict(),
        inference=inference.to_dict(),
        context=context_dict,
        recommendation_summary=recommendation_summary,
        alert_summary=alert_summary(alerts),
    )


def analyze(
    answers: Mapping[str, Any],
    context: Mapping[str, Any] | AssessmentContext | None = None,
    *,
    session_id: int | str | None = None,
    now: datetime | None = None,
    timeout_sec: float | None = None,
) -> ResultBundle:
    """
    Run the full assessment for one answer snapshot.

    Missing or malformed answers never fail the run. A context that is not a
    mapping raises InvalidContextError. When a timeout is configured (argument
    or MARKETING_ENGINE_TIMEOUT_SEC) and exceeded, AnalysisTimeoutError is raised.
    """
    log = bind_session(session_id) if session_id is not None else logger
    answers = answers or {}
    timeout = get_settings().analysis_timeout_sec if timeout_sec is None else timeout_sec
    log.info("pipeline_start", answers=len(answers), timeout_sec=timeout)

    if timeout and timeout > 0:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(_analyze, answers, context, now)
            bundle = future.result(timeout=timeout)
        except FutureTimeoutError:
            log.error("pipeline_timeout", timeout_sec=timeout)
            raise AnalysisTimeoutError(f"Analysis exceeded {timeout}s") from None
        finally:
            executor.shutdown(wait=False)
    else:
        bundle = _analyze(answers, context, now)

    log.info(
        "pipeline_done",
        overall=bundle.scores.overall,
        plan_type=bundle.plan_type.value,
        recommendations=len(bundle.recommendations),
        alerts=len(bundle.alerts),
    )
    return bundle


def run_assessment(
    session_id: int | str,
    answers: Mapping[str, Any],
    context: Mapping[str, Any] | AssessmentContext | None,
    store: ResultStore,
    *,
    status: SessionStatus | str = SessionStatus.COMPLETED,
) -> ResultBundle:
    """Guard the session status, analyze, and upsert the bundle for the session."""
    ensure_session_completed(status)
    bundle = analyze(answers, context, session_id=session_id)
    store.save_bundle(session_id, bundle)
    return bundle

#!/usr/bin/env python3
"""
Run the assessment engine on a JSON answers file.

The input file holds either a flat answer map, or an object with "answers"
and optional "context" keys. Prints the result bundle as JSON, or a short
summary with --summary. With --session-id the bundle is also saved to the
configured results store (upsert).

Usage:
  python -m marketing_engine.tools.run_assessment answers.json
  python -m marketing_engine.tools.run_assessment answers.json --sector retail --summary
  python -m marketing_engine.tools.run_assessment answers.json --session-id 42
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from marketing_engine.config import get_settings
from marketing_engine.core.exceptions import MarketingEngineError
from marketing_engine.engine_logging import configure_logging, get_logger
from marketing_engine.pipeline import analyze, run_assessment
from marketing_engine.storage import get_result_store

logger = get_logger(__name__)

SEP = "=" * 52


def load_input(path: Path) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (answers, context) from a JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    if "answers" in data:
        answers = data.get("answers") or {}
        context = data.get("context") or {}
    else:
        answers, context = data, {}
    if not isinstance(answers, dict) or not isinstance(context, dict):
        raise ValueError(f"{path}: 'answers' and 'context' must be JSON objects")
    return answers, context


def format_summary(bundle: dict[str, Any]) -> str:
    scores = bundle["scores"]
    lines = [
        SEP,
        "Assessment summary",
        SEP,
        f"Overall: {scores['overall']}/100 ({scores['maturity_level']}), risk level {scores['risk_level']}",
        f"Plan: {bundle['plan_type']}",
    ]
    for name in ("digital", "marketing", "organizational", "risk", "opportunity"):
        lines.append(f"  {name:<15} {scores[name]:>3}")
    lines.append(f"Alerts: {bundle['alert_summary']['total']} (max urgency {bundle['alert_summary']['max_urgency']})")
    for alert in bundle["alerts"][:5]:
        lines.append(f"  [{alert['type']}] {alert['urgency_score']:>3} {alert['title']}")
    lines.append(f"Recommendations: {bundle['recommendation_summary']['total']}")
    for rec in bundle["recommendations"][:5]:
        lines.append(f"  #{rec['priority_rank']} ({rec['layer']}, {rec['priority']}) {rec['title']}")
    lines.append(SEP)
    return "\n".join(lines)


def main() -> int:
    import argparse

    ap = argparse.ArgumentParser(description="Run the marketing assessment engine on a JSON answers file.")
    ap.add_argument("input", type=Path, help="JSON file with an answer map or {answers, context}")
    ap.add_argument("--sector", default=None, help="Sector key for the context (overrides the file)")
    ap.add_argument("--session-id", dest="session_id", default=None, help="Save the bundle for this session")
    ap.add_argument("--summary", action="store_true", help="Print a short summary instead of the full JSON")
    ap.add_argument("--log-level", dest="log_level", default=None, help="Override LOG_LEVEL (e.g. DEBUG)")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, settings.log_format)

    try:
        answers, context = load_input(args.input)
    except (OSError, ValueError) as e:
        logger.error("run_assessment_bad_input", path=str(args.input), error=str(e))
        return 2
    if args.sector:
        context["sector"] = args.sector

    try:
        if args.session_id is not None:
            bundle = run_assessment(args.session_id, answers, context, get_result_store())
        else:
            bundle = analyze(answers, context)
    except MarketingEngineError as e:
        logger.error("run_assessment_failed", code=e.code, error=e.message)
        return 1

    data = bundle.to_dict()
    if args.summary:
        print(format_summary(data))
    else:
        print(json.dumps(data, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

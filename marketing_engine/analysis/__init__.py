"""
Analysis core: typed records, context decoding, dimension scoring, pattern
detection, relationship checks and playbook inference.
"""

from marketing_engine.analysis.context import AssessmentContext, decode_context, enrich_context
from marketing_engine.analysis.inference import classify_plan_type, run_inference
from marketing_engine.analysis.patterns import detect_patterns, run_rules
from marketing_engine.analysis.relationships import check_relationships
from marketing_engine.analysis.scoring import calculate_scores

__all__ = [
    "AssessmentContext",
    "calculate_scores",
    "check_relationships",
    "classify_plan_type",
    "decode_context",
    "detect_patterns",
    "enrich_context",
    "run_inference",
    "run_rules",
]

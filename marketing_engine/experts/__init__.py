"""Expert panel: ten independent analyzers plus the synthesis step."""

from marketing_engine.experts.base import Expert, calculate_confidence, normalize_score, score_label
from marketing_engine.experts.panel import PanelOutcome, default_specialists, run_panel

__all__ = [
    "Expert",
    "PanelOutcome",
    "calculate_confidence",
    "default_specialists",
    "normalize_score",
    "run_panel",
    "score_label",
]

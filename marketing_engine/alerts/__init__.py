"""Alert evaluator: tiered, urgency-ranked alerts from threshold rules."""

from marketing_engine.alerts.engine import AlertConfig, alert_summary, evaluate_alerts

__all__ = ["AlertConfig", "alert_summary", "evaluate_alerts"]

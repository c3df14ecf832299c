"""
Structured logging for the marketing engine.

JSON records with timestamp, event_type, logger and (where bound) session_id.
Use get_logger(__name__) in every module.
"""

from marketing_engine.engine_logging.logger import bind_session, configure_logging, get_logger

__all__ = ["bind_session", "configure_logging", "get_logger"]

"""
Core utilities: exceptions and answer-value extraction shared by every engine component.
"""

from marketing_engine.core.exceptions import (
    AnalysisTimeoutError,
    InvalidContextError,
    MarketingEngineError,
    PersistenceUnavailableError,
    SessionNotCompletedError,
    SessionNotFoundError,
)

__all__ = [
    "AnalysisTimeoutError",
    "InvalidContextError",
    "MarketingEngineError",
    "PersistenceUnavailableError",
    "SessionNotCompletedError",
    "SessionNotFoundError",
]

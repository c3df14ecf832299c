"""
Application-level exceptions.

The scoring core is total and never raises for missing or malformed answers.
These exceptions belong to the boundaries: the session-status guard, context
decoding, and the results store.
"""

from __future__ import annotations


class MarketingEngineError(Exception):
    """Base error with a stable machine-readable code."""

    code = "engine_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class SessionNotFoundError(MarketingEngineError):
    code = "session_not_found"


class SessionNotCompletedError(MarketingEngineError):
    code = "session_not_completed"


class InvalidContextError(MarketingEngineError):
    code = "invalid_context"


class PersistenceUnavailableError(MarketingEngineError):
    code = "persistence_unavailable"


class AnalysisTimeoutError(MarketingEngineError):
    code = "analysis_timeout"

"""
Application settings.

Typed view over the environment (see env.py). get_settings() caches the
first resolution; tests call reset_settings_cache() after monkeypatching env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from marketing_engine.config.env import (
    get_analysis_timeout_sec,
    get_database_url,
    get_default_sector,
    load_engine_env,
)


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process."""

    database_url: str
    """SQLAlchemy URL of the results store."""
    default_sector: str
    """Sector used for benchmarks when the context does not name one."""
    log_level: str
    log_format: str
    analysis_timeout_sec: float = 0.0
    """Wrapping timeout for one analysis run; 0 disables it."""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the current settings, resolving them from the environment on first call."""
    global _settings
    if _settings is None:
        load_engine_env()
        _settings = Settings(
            database_url=get_database_url(),
            default_sector=get_default_sector(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "json").strip().lower(),
            analysis_timeout_sec=get_analysis_timeout_sec(),
        )
    return _settings


def reset_settings_cache() -> None:
    """Drop cached settings (for tests that change the environment)."""
    global _settings
    _settings = None

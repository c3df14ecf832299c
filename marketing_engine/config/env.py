"""
Environment variable loading for the marketing engine.

- MARKETING_ENGINE_DB_URL / DATABASE_URL: SQLAlchemy URL for the results store
- MARKETING_ENGINE_DB_PATH: SQLite file used when no URL is set
- MARKETING_ENGINE_DEFAULT_SECTOR: sector assumed when the context has none
- MARKETING_ENGINE_TIMEOUT_SEC: optional wrapping timeout for one analysis (0 = off)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "marketing_engine.db"
DEFAULT_SECTOR = "general"


def load_engine_env() -> None:
    """Load .env from project root. Existing environment variables win; safe to call repeatedly."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def get_database_url() -> str:
    """
    Resolve the results-store URL.
    Order: MARKETING_ENGINE_DB_URL > DATABASE_URL > sqlite:///<MARKETING_ENGINE_DB_PATH or default>.
    """
    load_engine_env()
    url = (os.getenv("MARKETING_ENGINE_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("MARKETING_ENGINE_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_default_sector() -> str:
    load_engine_env()
    return (os.getenv("MARKETING_ENGINE_DEFAULT_SECTOR") or DEFAULT_SECTOR).strip().lower() or DEFAULT_SECTOR


def get_analysis_timeout_sec() -> float:
    """Return MARKETING_ENGINE_TIMEOUT_SEC as float; invalid or missing values mean disabled (0)."""
    load_engine_env()
    raw = (os.getenv("MARKETING_ENGINE_TIMEOUT_SEC") or "").strip()
    try:
        value = float(raw) if raw else 0.0
    except ValueError:
        return 0.0
    return max(0.0, value)

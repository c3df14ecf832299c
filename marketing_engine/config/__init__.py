"""
Configuration for the marketing engine.

Loads settings from environment variables and an optional .env file at the
project root. Exposes a single cached Settings object.
"""

from marketing_engine.config.settings import Settings, get_settings, reset_settings_cache

__all__ = ["Settings", "get_settings", "reset_settings_cache"]

"""
Tests for structured logging helpers.
"""

from __future__ import annotations

import pytest
import structlog

from marketing_engine.engine_logging import bind_session, configure_logging, get_logger
from marketing_engine.engine_logging.logger import _event_fields, _filter_level, _renderer


def test_event_renamed_to_event_type():
    out = _event_fields(None, "info", {"event": "pipeline_done", "overall": 61})
    assert out["event_type"] == "pipeline_done"
    assert out["message"] == "pipeline_done"
    assert out["overall"] == 61
    assert "event" not in out


def test_existing_fields_kept():
    out = _event_fields(None, "info", {"event": "x", "message": "custom", "timestamp": "t"})
    assert out["message"] == "custom"
    assert out["timestamp"] == "t"


def test_timestamp_is_utc_iso():
    assert _event_fields(None, "info", {})["timestamp"].endswith("+00:00")


def test_renderer_selection():
    assert isinstance(_renderer("json"), structlog.processors.JSONRenderer)
    assert isinstance(_renderer("console"), structlog.dev.ConsoleRenderer)
    assert isinstance(_renderer("anything-else"), structlog.processors.JSONRenderer)


def test_get_logger_binds_module_name():
    logger = get_logger("marketing_engine.tests")
    assert structlog.get_context(logger.bind())["logger"] == "marketing_engine.tests"


def test_bind_session():
    logger = bind_session(42)
    assert structlog.get_context(logger)["session_id"] == 42


def test_level_filter_follows_configure_logging():
    try:
        configure_logging("WARNING", "json")
        with pytest.raises(structlog.DropEvent):
            _filter_level(None, "info", {"event": "x"})
        assert _filter_level(None, "error", {"event": "x"}) == {"event": "x"}
    finally:
        configure_logging("INFO", "json")
    assert _filter_level(None, "info", {"event": "x"}) == {"event": "x"}


def test_unknown_level_name_defaults_to_info():
    try:
        configure_logging("LOUD", "json")
        assert _filter_level(None, "info", {}) == {}
        with pytest.raises(structlog.DropEvent):
            _filter_level(None, "debug", {})
    finally:
        configure_logging("INFO", "json")

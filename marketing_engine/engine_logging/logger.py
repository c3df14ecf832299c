"""
Structured logging for the engine.

Every record carries event_type, level, an ISO timestamp and the emitting
module (logger=...). Session-scoped code binds session_id via bind_session().
Records go to stderr so tools can print result JSON on stdout.

LOG_LEVEL (default INFO) and LOG_FORMAT (json | console, default json) are
read at import; configure_logging() re-applies them with explicit values.
Module loggers are bound at import, so level filtering and rendering read the
active settings on every record instead of being baked into the logger.
This module imports nothing from marketing_engine.
"""

from __future__ import annotations

import functools
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "json"

_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_active: dict[str, Any] = {"level": logging.INFO, "format": DEFAULT_FORMAT}


def _filter_level(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if _METHOD_LEVELS.get(method_name, logging.INFO) < _active["level"]:
        raise structlog.DropEvent
    return event_dict


def _event_fields(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """event -> event_type, plus timestamp and message when absent."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


@functools.lru_cache(maxsize=None)
def _renderer(fmt: str) -> Any:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def _render(logger: Any, method_name: str, event_dict: dict[str, Any]) -> Any:
    return _renderer(_active["format"])(logger, method_name, event_dict)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """(Re)configure level and format; applies to loggers already handed out."""
    level_name = (level or os.getenv("LOG_LEVEL") or DEFAULT_LEVEL).strip().upper()
    _active["level"] = getattr(logging, level_name, logging.INFO)
    _active["format"] = (fmt or os.getenv("LOG_FORMAT") or DEFAULT_FORMAT).strip().lower()
    structlog.configure(
        processors=[
            _filter_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _event_fields,
            _render,
        ],
        wrapper_class=structlog.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; log an event name first, then keyword fields:

        logger = get_logger(__name__)
        logger.info("pipeline_done", overall=61, plan_type="growth")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_session(session_id: int | str) -> structlog.BoundLogger:
    """Logger with session_id bound to every record."""
    return get_logger("marketing_engine").bind(session_id=session_id)

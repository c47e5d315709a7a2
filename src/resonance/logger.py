"""Structured logging configuration using *structlog*.

Engine modules only call ``structlog.get_logger(__name__)`` and emit dotted
event names (``mood_ledger.sample_added``); the host decides the level and
whether lines are rendered for a terminal or as JSON for a log shipper.
"""

from __future__ import annotations

import logging
import sys

import structlog

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _renderers(json: bool) -> list:
    if json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(level: str = "INFO", *, json: bool | None = None) -> None:
    """Configure *structlog* for the engine.

    Call once at host startup (``create_service`` does it from
    ``Settings.log_level``).  ``json`` defaults to ``True`` unless stderr is
    a terminal.
    """
    if json is None:
        json = not sys.stderr.isatty()

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, *_renderers(json)],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

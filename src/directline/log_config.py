"""structlog setup.

Every module does `logger = structlog.get_logger()` and logs event-style
keys (`message.dispatched`, `connection.closed`). This module wires the
processor chain once at startup: request-scoped context from
contextvars, log level, timestamp, then a console or JSON renderer.
"""

import logging

import structlog

from directline.config import settings


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog for the process. Safe to call more than once."""
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    render_json = settings.log_json if json is None else json
    renderer = (
        structlog.processors.JSONRenderer()
        if render_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )

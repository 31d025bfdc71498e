"""Structured logging setup for the proof engine.

All modules obtain a logger via get_logger(__name__) and log with a short
human sentence plus key/value context:

    logger.info("Compliance query complete", query_id=query_id, verdict=verdict)

configure_logging() is called once by the embedding process (API service,
batch job). Without it structlog's defaults still render to stderr.
"""

import logging
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_logs: Render one JSON object per line instead of console output.
    """
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
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
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a lazy structlog logger carrying the module name.

    The logger resolves the structlog configuration on first use, so
    module-level loggers pick up configure_logging() called later.

    Args:
        name: Usually the caller's __name__.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name, logger_name=name)

"""
Structured logging setup.
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """
    Configure structlog for the host process.

    Args:
        level: Minimum log level name (e.g., "INFO", "DEBUG")
        json: Render JSON lines when True, otherwise a developer console format
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


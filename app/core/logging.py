"""
Structured logging setup.
Configures structlog once at application startup.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", use_json: bool = False) -> None:
    """
    Configure structlog for the whole process.

    - **level**: minimum log level name (DEBUG, INFO, WARNING, ...)
    - **use_json**: render JSON lines instead of the colored console format
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

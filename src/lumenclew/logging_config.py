"""
Structured logging setup.

Components call structlog.get_logger(__name__) directly; this module only
decides how the events are rendered (console for humans, JSON for servers).
"""

import logging
import sys

import structlog


def configure_logging(verbose: bool = False, json_output: bool = False):
    """
    Configure structlog processors and the stdlib root logger.

    Args:
        verbose: Emit debug events
        json_output: Render events as JSON lines instead of console text
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

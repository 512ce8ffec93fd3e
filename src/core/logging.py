"""
propstore - Structured Logging Module

Store events are snake_case names with keyword context, e.g.
``properties_saved path=/home/u/.JSignPdf count=12``. Library modules only
call get_logger(); the command line entry point calls configure_logging()
once, and tests call reset_logging() between runs.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import EventDict

# Module-level flag for one-time configuration
_configured: bool = False


def render_paths(
    logger: logging.Logger,  # noqa: ARG001 - Required by structlog interface
    method_name: str,  # noqa: ARG001 - Required by structlog interface
    event_dict: EventDict,
) -> EventDict:
    """Turn path-like values into plain strings so every renderer accepts them."""
    for key, value in event_dict.items():
        if isinstance(value, os.PathLike):
            event_dict[key] = os.fspath(value)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the command line tool.

    Events go to stderr so values printed on stdout stay machine readable.
    Only the first call has an effect until reset_logging().

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        json_output: Render JSON lines instead of key=value console output
    """
    global _configured

    if _configured:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            render_paths,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Module-level loggers resolve the current configuration on every call
        cache_logger_on_first_use=False,
    )

    _configured = True


def get_logger(name: str) -> Any:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


def reset_logging() -> None:
    """Reset logging configuration for testing."""
    global _configured
    _configured = False
    structlog.reset_defaults()

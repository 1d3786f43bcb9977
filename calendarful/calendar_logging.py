"""
Central logging configuration for calendarful.

Provides a console logging setup for applications embedding calendarful and
tags every record emitted during a resolution with the resolution ID of the
populate() call that produced it.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional

from colorlog import ColoredFormatter

# Resolution ID of the populate() call running in the current context
resolution_id_var: ContextVar[str] = ContextVar("resolution_id", default="")

CALENDARFUL_LOGGERS = [
    "calendarful",
    "calendarful.calendar",
    "calendarful.domain",
    "calendarful.recurrence",
    "calendarful.sources",
]

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def new_resolution_id() -> str:
    """Generate a short resolution ID."""
    return uuid.uuid4().hex[:12]


def get_resolution_id() -> str:
    """Get the current resolution ID.

    Returns:
        Current resolution ID, or "no-resolution-id" outside a resolution
    """
    return resolution_id_var.get() or "no-resolution-id"


class ResolutionIdFilter(logging.Filter):
    """Add resolution ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.resolution_id = get_resolution_id()
        return True


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    level_name: Optional[str] = None,
) -> None:
    """
    Configure logging levels for calendarful.

    Args:
        debug_mode: Whether to enable debug logging for calendarful modules
        force_debug: Override debug mode setting (None to use env var detection)
        level_name: Root log level, usually CalendarSettings.log_level; the
            environment variable still takes precedence

    Environment Variables:
        CALENDARFUL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARFUL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALENDARFUL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALENDARFUL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if level_name and level_name.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, level_name.upper())
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    resolution_filter = ResolutionIdFilter()

    # Only add a handler if none exist so host applications keep their own setup
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s [%(resolution_id)s] "
            "%(name)s: %(message)s",
            datefmt="%H:%M:%S",
            log_colors=LOG_COLORS,
        )
        handler.setFormatter(formatter)
        handler.addFilter(resolution_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, ResolutionIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(resolution_filter)

    calendarful_level = logging.DEBUG if final_debug else logging.INFO
    for logger_name in CALENDARFUL_LOGGERS:
        logging.getLogger(logger_name).setLevel(calendarful_level)

    if final_debug:
        root_logger.info("Debug logging enabled for calendarful modules.")


def reset_logging_to_debug() -> None:
    """Reset root and calendarful loggers to DEBUG level for troubleshooting."""
    logging.getLogger().setLevel(logging.DEBUG)
    for logger_name in CALENDARFUL_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All calendarful loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in CALENDARFUL_LOGGERS:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status

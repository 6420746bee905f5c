"""
Central logging configuration for lexcal.

Console output goes through colorlog; the recurrence core itself never logs,
only the adapter, service and CLI layers do.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

# Level names are left-aligned to 7 chars for column alignment.
LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

LEXCAL_LOGGERS = [
    "lexcal",
    "lexcal.adapters.event_records",
    "lexcal.services.expansion_service",
    "lexcal.config",
]


def _build_console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
    return handler


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for lexcal.

    Args:
        debug_mode: Whether to enable debug logging for lexcal modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        LEXCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        LEXCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("LEXCAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("LEXCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist, so embedding apps keep their own setup
    if not root_logger.handlers:
        root_logger.addHandler(_build_console_handler(root_level))

    lexcal_level = logging.DEBUG if final_debug else logging.INFO
    for name in LEXCAL_LOGGERS:
        logging.getLogger(name).setLevel(lexcal_level)

    if final_debug:
        root_logger.debug("Debug logging enabled for lexcal modules")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for name in LEXCAL_LOGGERS:
        status[name] = logging.getLevelName(logging.getLogger(name).level)
    return status

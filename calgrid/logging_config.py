"""
Central logging configuration for calgrid.

Keeps calgrid's own loggers at the requested verbosity while quieting the
HTTP and iCalendar libraries, whose debug output drowns out the pipeline's.
"""

import logging
import os
import sys
from typing import Optional

# Third-party loggers kept quiet even when calgrid runs at DEBUG
NOISY_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "charset_normalizer": logging.WARNING,
    "icalendar": logging.INFO,
}

CALGRID_MODULES = [
    "calgrid",
    "calgrid.ical_fetcher",
    "calgrid.ical_parser",
    "calgrid.week_selector",
    "calgrid.grid_converter",
    "calgrid.combine",
    "calgrid.store",
    "calgrid.session",
]


CONSOLE_LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _console_formatter() -> logging.Formatter:
    """Colored level names through colorlog when it is installed, plain text otherwise."""
    try:
        from colorlog import ColoredFormatter  # type: ignore[import-not-found]
    except ImportError:
        return logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")
    return ColoredFormatter(
        "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        log_colors=CONSOLE_LEVEL_COLORS,
    )


def init_console_logging(level_name: Optional[str] = None) -> int:
    """Attach a stderr handler to the root logger and set its level.

    An existing root handler is left in place. CALGRID_DEBUG forces DEBUG.

    Returns:
        The numeric level applied to the root logger
    """
    if os.getenv("CALGRID_DEBUG", "").strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"
    level = getattr(logging, level_name.upper(), logging.INFO) if level_name else logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(_console_formatter())
        root.addHandler(handler)
    root.setLevel(level)
    return level


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for calgrid.

    Args:
        debug_mode: Whether to enable debug logging for calgrid modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        CALGRID_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALGRID_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALGRID_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALGRID_LOG_LEVEL", "").upper()

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

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    logger_config = dict(NOISY_LOGGERS)
    calgrid_level = logging.DEBUG if final_debug else logging.INFO
    for module in CALGRID_MODULES:
        logger_config[module] = calgrid_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug("Debug logging enabled for calgrid modules")

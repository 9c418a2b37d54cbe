"""Logging utilities."""

import logging
import sys
from typing import Optional

ROOT_LOGGER = "updatebot"

INFO_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"
DEBUG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def setup_logging(
    level: int = logging.INFO,
    format_str: Optional[str] = None
) -> logging.Logger:
    """
    Configure the updatebot loggers for the command line.

    Only the updatebot namespace gets the requested level, so --debug does
    not turn on debug output from PyGithub or urllib3.

    Args:
        level: Logging level (default: INFO)
        format_str: Custom format string (default: includes the module at DEBUG)

    Returns:
        The root updatebot logger
    """
    if format_str is None:
        format_str = DEBUG_FORMAT if level <= logging.DEBUG else INFO_FORMAT

    logging.basicConfig(
        level=logging.WARNING,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the logger for a module of the updatebot package (or the package root)."""
    if not name or name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name or ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")

"""
Memoose - Logging Setup

The library only creates module loggers; applications and scripts call
configure_logging() to get the standard format at the configured level.
"""

import logging

from .config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name (default: MEMOOSE_LOG_LEVEL from configuration)
    """
    if level is None:
        level = str(get_config().log_level)

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

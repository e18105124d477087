"""Structured logging for bus events (subscribe, publish, dispatch)."""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Return a configured logger. Level defaults to CHANNELBUS_LOG_LEVEL."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        if level is None:
            from channelbus.config import get_settings

            level = get_settings().log_level
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger

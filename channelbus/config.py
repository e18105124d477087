"""Environment-driven settings (reads .env through python-dotenv)."""

import functools
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

DEFAULT_SEPARATOR = ":"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_EVENT_BUFFER_SIZE = 100


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for the bus and the HTTP surface."""

    separator: str = DEFAULT_SEPARATOR
    log_level: str = DEFAULT_LOG_LEVEL
    api_key: Optional[str] = None
    event_buffer_size: int = DEFAULT_EVENT_BUFFER_SIZE


def _log_level(raw: Optional[str]) -> str:
    level = (raw or "").strip().upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    return DEFAULT_LOG_LEVEL


def load_settings() -> Settings:
    """Read settings from the environment. Invalid values fall back to defaults."""
    try:
        buffer_size = int(os.environ.get("CHANNELBUS_EVENT_BUFFER_SIZE", DEFAULT_EVENT_BUFFER_SIZE))
    except (ValueError, TypeError):
        buffer_size = DEFAULT_EVENT_BUFFER_SIZE
    return Settings(
        separator=os.environ.get("CHANNELBUS_SEPARATOR") or DEFAULT_SEPARATOR,
        log_level=_log_level(os.environ.get("CHANNELBUS_LOG_LEVEL")),
        api_key=(os.environ.get("API_KEY") or "").strip() or None,
        event_buffer_size=max(1, buffer_size),
    )


@functools.lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Settings read once per process; get_settings.cache_clear() re-reads them."""
    return load_settings()

"""Observability: logging and metrics for the channel bus."""

from channelbus.observability.logger import get_logger
from channelbus.observability.metrics import Metrics

__all__ = ["get_logger", "Metrics"]

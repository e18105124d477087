"""Wildcard subscriber that logs bus events and keeps the most recent ones."""

from collections import deque
from typing import Any, Deque, Dict, List, Optional

from channelbus.bus import ChannelBus
from channelbus.channel import WILDCARD
from channelbus.config import DEFAULT_EVENT_BUFFER_SIZE
from channelbus.observability import get_logger
from channelbus.protocol import event_record, utc_ts
from channelbus.subscription import Subscription


class EventLog:
    """Records every message on a bus into a ring buffer (oldest dropped first)."""

    def __init__(self, size: int = DEFAULT_EVENT_BUFFER_SIZE) -> None:
        self._ring: Deque[Dict[str, Any]] = deque(maxlen=max(1, size))
        self._subscription: Optional[Subscription] = None
        self._logger = get_logger("channelbus.audit")

    def attach(self, bus: ChannelBus) -> Subscription:
        """Subscribe to ``*`` on ``bus``. Call the returned handle to detach."""
        self._subscription = bus.subscribe(WILDCARD, self)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription()
            self._subscription = None

    def __call__(self, channel: str, payload: Any) -> None:
        self._ring.append(event_record(channel, payload, utc_ts()))
        self._logger.info(
            "event",
            extra={"channel": channel, "payload_type": type(payload).__name__},
        )

    def get_last_n(self, n: int) -> List[Dict[str, Any]]:
        """Return the last n events, oldest first."""
        if n <= 0:
            return []
        buf = list(self._ring)
        return buf[-n:]

    def __len__(self) -> int:
        return len(self._ring)

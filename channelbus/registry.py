"""In-memory registry of channel subscribers."""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from channelbus.observability import get_logger

Callback = Callable[[str, Any], Union[None, Awaitable[Any]]]


class Registry:
    """Maps each channel to its callbacks, in registration order.

    A callback appears at most once per channel. Channels whose last callback
    is removed are pruned, so a channel present in the registry always has
    subscribers.
    """

    def __init__(self) -> None:
        # dict keys as an insertion-ordered set
        self._subs: Dict[str, Dict[Callback, None]] = {}
        self._logger = get_logger("channelbus.registry")

    def add(self, channel: str, callback: Callback) -> None:
        """Register ``callback`` on ``channel`` (no-op if already there)."""
        self._subs.setdefault(channel, {})[callback] = None
        self._logger.debug(
            "subscribed",
            extra={"channel": channel, "subscribers": len(self._subs[channel])},
        )

    def remove(self, channel: str, callback: Callback) -> bool:
        """Remove ``callback`` from ``channel``. Returns True if it was registered."""
        callbacks = self._subs.get(channel)
        if callbacks is None or callback not in callbacks:
            return False
        del callbacks[callback]
        if not callbacks:
            del self._subs[channel]
        self._logger.debug("unsubscribed", extra={"channel": channel})
        return True

    def clear(self) -> None:
        """Remove every subscription."""
        for callbacks in self._subs.values():
            callbacks.clear()
        self._subs = {}

    def snapshot(self, channel: str) -> Tuple[Callback, ...]:
        """Return a copy of the callbacks on ``channel`` (empty if none)."""
        callbacks = self._subs.get(channel)
        if callbacks is None:
            return ()
        return tuple(callbacks)

    def channels(self) -> List[str]:
        """Channels that currently have subscribers."""
        return list(self._subs)

    def subscriber_count(self, channel: Optional[str] = None) -> int:
        """Callbacks on ``channel``, or across all channels when omitted."""
        if channel is not None:
            return len(self._subs.get(channel, ()))
        return sum(len(callbacks) for callbacks in self._subs.values())

    def stats(self) -> Dict[str, int]:
        """Return { channel: subscriber_count } for the stats endpoint."""
        return {channel: len(callbacks) for channel, callbacks in self._subs.items()}

    def __len__(self) -> int:
        return len(self._subs)

    def __contains__(self, channel: object) -> bool:
        return channel in self._subs

    def __repr__(self) -> str:
        return f"Registry(channels={len(self._subs)})"

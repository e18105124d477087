"""Subscription handle returned by ChannelBus.subscribe()."""

from typing import TYPE_CHECKING, Tuple

from channelbus.observability import get_logger

if TYPE_CHECKING:
    from channelbus.registry import Callback, Registry


class Subscription:
    """Unsubscribe token for one subscribe() call.

    Calling it removes the callback from exactly the channels given to that
    call; other subscriptions of the same callback are left alone. Calling it
    again does nothing.
    """

    def __init__(self, registry: "Registry", channels: Tuple[str, ...], callback: "Callback") -> None:
        self._registry = registry
        self._channels = channels
        self._callback = callback
        self._active = True
        self._logger = get_logger("channelbus.subscription")

    @property
    def channels(self) -> Tuple[str, ...]:
        return self._channels

    @property
    def callback(self) -> "Callback":
        return self._callback

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Remove the callback from this subscription's channels (idempotent)."""
        if not self._active:
            return
        self._active = False
        for channel in self._channels:
            self._registry.remove(channel, self._callback)
        self._logger.info("unsubscribed", extra={"channels": list(self._channels)})

    def __call__(self) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(channels={list(self._channels)!r}, active={self._active})"

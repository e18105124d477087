"""String-keyed map that announces its changes on a ChannelBus."""

from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from channelbus.bus import ChannelBus, Delivery
from channelbus.channel import ChannelName
from channelbus.errors import InvalidKeyError
from channelbus.observability import get_logger

ADDED = "added"
CHANGED = "changed"
DELETED = "deleted"

_MISSING = object()

Initial = Union["ObservableMap", Mapping[str, Any], Iterable[Tuple[str, Any]], None]


class ObservableMap:
    """A dict-like container whose writes publish events on ``events``.

    Channels are ``added:<key>``, ``changed:<key>`` and ``deleted:<key>``
    (using the bus separator), so a subscriber can follow one key or all of
    them::

        m = ObservableMap()
        m.events.subscribe("changed:color", on_color)
        m.events.subscribe("changed", on_any_change)
        await m.set("color", "red")

    set() and delete() change the map before returning a Delivery; awaiting
    it waits until every subscriber has handled the event. clear() is a
    coroutine that deletes entries one at a time.
    """

    def __init__(self, initial: Initial = None, sep: Optional[str] = None) -> None:
        self.events = ChannelBus(sep)
        self._data: Dict[str, Any] = {}
        self._logger = get_logger("channelbus.observable_map")
        if initial is None:
            return
        if isinstance(initial, ObservableMap):
            pairs: Iterable[Tuple[str, Any]] = initial.items()
        elif isinstance(initial, Mapping):
            pairs = initial.items()
        else:
            pairs = initial
        for key, value in pairs:
            self._check_key(key)
            self._data[key] = value

    @staticmethod
    def _check_key(key: object) -> None:
        if not isinstance(key, str):
            raise InvalidKeyError(key)

    def _channel(self, kind: str, key: str) -> str:
        return ChannelName(kind, key).render(self.events.sep)

    # ---- Reads ----

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    @property
    def size(self) -> int:
        return len(self._data)

    def keys(self):
        return self._data.keys()

    def values(self):
        return self._data.values()

    def items(self):
        return self._data.items()

    entries = items

    def for_each(self, fn: Callable[[Any, str], Any]) -> None:
        """Call ``fn(value, key)`` for every entry."""
        for key, value in list(self._data.items()):
            fn(value, key)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # ---- Writes ----

    def set(self, key: str, value: Any) -> Delivery:
        """Store ``value`` and publish ``added`` or ``changed``; equal values publish nothing.

        The entry is stored before this returns; await the result to wait for
        subscribers.
        """
        self._check_key(key)
        old = self._data.get(key, _MISSING)
        if old is _MISSING:
            self._data[key] = value
            self._logger.debug("added", extra={"key": key})
            return self.events.publish_and_wait(self._channel(ADDED, key), {"key": key, "value": value})
        if old == value:
            return Delivery.resolved(self.events)
        self._data[key] = value
        self._logger.debug("changed", extra={"key": key})
        return self.events.publish_and_wait(
            self._channel(CHANGED, key),
            {"key": key, "value": value, "oldValue": old},
        )

    def delete(self, key: str) -> Delivery:
        """Remove ``key`` and publish ``deleted``. Awaiting gives False if it was absent."""
        self._check_key(key)
        old = self._data.pop(key, _MISSING)
        if old is _MISSING:
            return Delivery.resolved(self.events, False)
        self._logger.debug("deleted", extra={"key": key})
        delivery = self.events.publish_and_wait(self._channel(DELETED, key), {"key": key, "oldValue": old})
        delivery.result = True
        return delivery

    async def clear(self) -> int:
        """Delete every entry one at a time, each event fully handled before the next.

        Returns the number of entries deleted.
        """
        deleted = 0
        for key in list(self._data):
            if await self.delete(key):
                deleted += 1
        return deleted

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={len(self._data)}, sep={self.events.sep!r})"

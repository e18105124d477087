"""Channel names and their expansion into listener channels.

A channel like ``changed:123`` is made of a base (``changed``) and an id
(``123``). Only the first separator counts: ``changed:a:b`` has base
``changed`` and id ``a:b``.

Publishing on a channel reaches, most specific first::

    changed:123  ->  ["changed:123", "changed", "*"]
    changed      ->  ["changed", "*"]
"""

from dataclasses import dataclass
from typing import List, Optional

WILDCARD = "*"


@dataclass(frozen=True)
class ChannelName:
    """A channel split into its base and optional id."""

    base: str
    id: Optional[str] = None

    @classmethod
    def parse(cls, channel: str, sep: str) -> "ChannelName":
        base, found, ident = channel.partition(sep)
        if not found:
            return cls(channel)
        return cls(base, ident)

    @staticmethod
    def join(base: str, ident: str, sep: str) -> str:
        return f"{base}{sep}{ident}"

    def render(self, sep: str) -> str:
        if self.id is None:
            return self.base
        return self.join(self.base, self.id, sep)


def expand_channel(channel: str, sep: str) -> List[str]:
    """Return the listener channels for ``channel``; the wildcard is always last."""
    listeners = [channel]
    name = ChannelName.parse(channel, sep)
    if name.id is not None:
        listeners.append(name.base)
    listeners.append(WILDCARD)
    return listeners

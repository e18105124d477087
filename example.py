"""Example: channel specificity and the two publish modes."""

import asyncio
import logging

from channelbus import ChannelBus, ObservableMap

logging.basicConfig(level=logging.INFO)


async def main() -> None:
    bus = ChannelBus()

    bus.subscribe("changed:12345", lambda channel, data: print("item 12345:", channel, data))
    bus.subscribe("changed", lambda channel, data: print("any change:", channel, data))
    unsubscribe = bus.subscribe("*", lambda channel, data: print("everything:", channel))

    await bus.publish_and_wait("changed:12345", {"color": "red"})

    bus.publish_later("changed:999", {"color": "blue"})
    print("publish_later returned; nothing delivered yet")
    await asyncio.sleep(0)

    unsubscribe()
    bus.unsubscribe_all()

    settings = ObservableMap()
    settings.events.subscribe("changed:theme", lambda channel, data: print("theme", data["oldValue"], "->", data["value"]))
    await settings.set("theme", "light")
    await settings.set("theme", "dark")
    await settings.clear()


if __name__ == "__main__":
    asyncio.run(main())

"""ChannelBus: in-process publish/subscribe with channel specificity.

Subscribers register callbacks on channels::

    bus = ChannelBus()
    unsubscribe = bus.subscribe("changed", callback)
    unsubscribe()

A message published on ``changed:abc`` reaches subscribers of
``changed:abc``, then ``changed``, then ``*``, in that order. Every callback
receives the original channel (``changed:abc``) and the payload.

There are two ways to publish:

    await bus.publish_and_wait("changed:abc", data)
    bus.publish_later("changed:abc", data)

``publish_and_wait`` calls subscribers immediately and waits for their
awaitables one specificity level at a time: everything subscribed to
``changed:abc`` finishes before any ``changed`` subscriber starts. Levels run
during the call itself until one returns awaitables; forgetting the ``await``
still runs those synchronous subscribers, but the remaining levels only run
once the returned Delivery is awaited.

``publish_later`` returns before any subscriber runs. One unit per level is
appended to the bus's FIFO task queue; when a unit runs, its callbacks are
called in order and any awaitables they return are left to run on their own.
"""

import asyncio
import functools
import inspect
from typing import Any, Awaitable, Iterable, List, Optional, Set, Tuple, Union

from channelbus.channel import expand_channel
from channelbus.config import get_settings
from channelbus.message import Message
from channelbus.observability import Metrics, get_logger
from channelbus.registry import Callback, Registry
from channelbus.scheduler import TaskQueue, default_task_queue
from channelbus.subscription import Subscription


class Delivery:
    """Awaitable returned by ChannelBus.publish_and_wait().

    Creating it runs levels until the first one whose subscribers return
    awaitables. Awaiting it waits for that level, then runs the rest the same
    way. A failure in any level is raised from the await.
    """

    def __init__(self, bus: "ChannelBus", message: Optional[Message], result: Any = None) -> None:
        self._bus = bus
        self._message = message
        self._levels = iter(message.listeners if message is not None else ())
        self._listener: Optional[str] = None
        self._pending: List[Awaitable[Any]] = []
        self._error: Optional[BaseException] = None
        self._finished = False
        self._task: Optional["asyncio.Future[Any]"] = None
        self.result = result
        self._advance()

    @classmethod
    def resolved(cls, bus: "ChannelBus", result: Any = None) -> "Delivery":
        """A delivery with nothing left to run."""
        return cls(bus, None, result)

    @property
    def done(self) -> bool:
        """True once no level is left to run or a level has failed."""
        return self._finished or self._error is not None

    @property
    def waiting_on(self) -> Optional[str]:
        """Listener channel whose awaitables are outstanding, if any."""
        return self._listener if self._pending else None

    def _advance(self) -> None:
        for listener in self._levels:
            try:
                pending = self._bus._run_level(self._message, listener)
            except Exception as e:
                self._error = e
                return
            if pending:
                self._listener = listener
                self._pending = pending
                return
        self._finished = True

    async def _wait(self) -> Any:
        while True:
            if self._error is not None:
                raise self._error
            if not self._pending:
                return self.result
            pending, self._pending = self._pending, []
            try:
                await asyncio.gather(*pending)
            except Exception:
                for future in pending:
                    if isinstance(future, asyncio.Future) and not future.done():
                        self._bus._track(future)
                self._bus._dispatch_failed(self._message, self._listener)
                raise
            self._advance()

    def __await__(self):
        if self._task is None:
            self._task = asyncio.ensure_future(self._wait())
        return self._task.__await__()

    def __repr__(self) -> str:
        channel = self._message.channel if self._message is not None else None
        return f"{self.__class__.__name__}(channel={channel!r}, done={self.done})"


class ChannelBus:
    """Routes published messages to channel subscribers."""

    def __init__(
        self,
        sep: Optional[str] = None,
        task_queue: Optional[TaskQueue] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._sep = sep or get_settings().separator
        self._registry = Registry()
        self._task_queue = task_queue if task_queue is not None else default_task_queue()
        self._metrics = metrics or Metrics()
        # tasks started by publish_later callbacks; kept so they are not collected early
        self._detached: Set["asyncio.Future[Any]"] = set()
        self._logger = get_logger("channelbus.bus")

    @property
    def sep(self) -> str:
        return self._sep

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def task_queue(self) -> TaskQueue:
        return self._task_queue

    def expand(self, channel: str) -> List[str]:
        """Listener channels for ``channel``, most specific first."""
        return expand_channel(channel, self._sep)

    # ---- Subscriptions ----

    def subscribe(self, channels: Union[str, Iterable[str]], callback: Callback) -> Subscription:
        """Register ``callback`` on one channel or several.

        The callback is called as ``callback(channel, payload)`` and may return
        an awaitable. Returns a Subscription; call it to unsubscribe.
        """
        names: Tuple[str, ...] = (channels,) if isinstance(channels, str) else tuple(channels)
        if not names:
            raise ValueError("subscribe requires at least one channel")
        for name in names:
            self._registry.add(name, callback)
        self._metrics.set_gauge("channels", len(self._registry))
        self._logger.info("subscribed", extra={"channels": list(names)})
        return Subscription(self._registry, names, callback)

    def unsubscribe_all(self) -> None:
        """Remove every subscription. Units already queued still deliver."""
        self._registry.clear()
        self._metrics.set_gauge("channels", 0)
        self._logger.info("unsubscribed_all")

    # ---- Publishing ----

    def publish_and_wait(self, channel: str, payload: Any = None) -> Delivery:
        """Deliver now; await the result to know every subscriber is done.

        Levels run one after another. Within a level, callbacks are called in
        subscription order and their awaitables run concurrently; the next
        level starts when all of them have finished. The first failure stops
        delivery and is raised from the await.
        """
        message = Message(channel, payload, mode="wait", listeners=self.expand(channel))
        self._metrics.increment("published_wait")
        self._logger.debug("published", extra=message.to_dict())
        return Delivery(self, message)

    def publish_later(self, channel: str, payload: Any = None) -> None:
        """Queue delivery and return before any subscriber runs.

        Each level with subscribers becomes one unit on the task queue, holding
        a copy of that level's subscribers taken now.
        """
        message = Message(channel, payload, mode="later", listeners=self.expand(channel))
        self._metrics.increment("published_later")
        self._logger.debug("published", extra=message.to_dict())
        for listener in message.listeners:
            callbacks = self._registry.snapshot(listener)
            if not callbacks:
                continue
            self._task_queue.enqueue(functools.partial(self._deliver_detached, message, listener, callbacks))

    # ---- Internals ----

    def _invoke(self, callback: Callback, channel: str, payload: Any) -> Any:
        self._metrics.increment("callbacks_invoked")
        return callback(channel, payload)

    def _run_level(self, message: Message, listener: str) -> List[Awaitable[Any]]:
        """Call one level's subscribers; return the awaitables they produced."""
        pending: List[Awaitable[Any]] = []
        try:
            for callback in self._registry.snapshot(listener):
                result = self._invoke(callback, message.channel, message.payload)
                if inspect.isawaitable(result):
                    pending.append(self._start(result))
        except Exception:
            for awaitable in pending:
                if isinstance(awaitable, asyncio.Future):
                    self._track(awaitable)
                elif inspect.iscoroutine(awaitable):
                    awaitable.close()
            self._dispatch_failed(message, listener)
            raise
        return pending

    @staticmethod
    def _start(awaitable: Awaitable[Any]) -> Awaitable[Any]:
        # without a running loop the awaitable starts when the Delivery is awaited
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return awaitable
        return asyncio.ensure_future(awaitable, loop=loop)

    def _deliver_detached(self, message: Message, listener: str, callbacks: Tuple[Callback, ...]) -> None:
        try:
            for callback in callbacks:
                result = self._invoke(callback, message.channel, message.payload)
                if inspect.isawaitable(result):
                    self._detach(result)
        except Exception:
            self._dispatch_failed(message, listener)
            raise

    def _detach(self, awaitable: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError("async subscribers need a running event loop for publish_later") from None
        self._track(asyncio.ensure_future(awaitable, loop=loop))

    def _track(self, future: "asyncio.Future[Any]") -> None:
        self._detached.add(future)
        future.add_done_callback(self._on_detached_done)

    def _on_detached_done(self, future: "asyncio.Future[Any]") -> None:
        self._detached.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._metrics.increment("detached_failed")
            self._logger.error("detached_callback_failed", exc_info=exc, extra={"error": str(exc)})

    def _dispatch_failed(self, message: Message, listener: Optional[str]) -> None:
        self._metrics.increment("dispatch_failed")
        self._logger.warning(
            "dispatch_failed",
            extra={"channel": message.channel, "listener": listener, "mode": message.mode},
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sep={self._sep!r}, channels={len(self._registry)})"

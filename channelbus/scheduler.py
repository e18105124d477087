"""FIFO task queue used for deferred (publish_later) delivery."""

import asyncio
from collections import deque
from typing import Callable, Deque, Optional

from channelbus.observability import Metrics, get_logger

Unit = Callable[[], None]


class TaskQueue:
    """Strict FIFO of deferred units of work.

    Nothing runs until run_pending() drains the queue. Each unit is isolated:
    if one raises, the error is logged and the next unit still runs.
    """

    def __init__(self, metrics: Optional[Metrics] = None) -> None:
        self._queue: Deque[Unit] = deque()
        self._metrics = metrics or Metrics()
        self._logger = get_logger("channelbus.scheduler")

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    def enqueue(self, unit: Unit) -> None:
        """Append ``unit`` to the end of the queue."""
        self._queue.append(unit)
        self._metrics.increment("units_enqueued")

    def run_pending(self) -> int:
        """Run queued units in order until the queue is empty.

        Units enqueued while draining run in the same pass. Returns the
        number of units run.
        """
        ran = 0
        while self._queue:
            unit = self._queue.popleft()
            ran += 1
            try:
                unit()
            except Exception as e:
                self._metrics.increment("units_failed")
                self._logger.exception("unit_failed", extra={"error": str(e)})
        return ran

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(pending={len(self._queue)})"


class LoopTaskQueue(TaskQueue):
    """TaskQueue that drains itself on the running asyncio loop.

    Enqueueing from inside a running loop schedules one drain with
    loop.call_soon(). Without a running loop, units wait for an explicit
    run_pending() call.
    """

    def __init__(self, metrics: Optional[Metrics] = None) -> None:
        super().__init__(metrics)
        # loop a drain is currently scheduled on
        self._drain_loop: Optional[asyncio.AbstractEventLoop] = None

    def enqueue(self, unit: Unit) -> None:
        super().enqueue(unit)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._drain_loop is loop:
            return
        self._drain_loop = loop
        loop.call_soon(self._drain)

    def _drain(self) -> None:
        self._drain_loop = None
        self.run_pending()


_default_queue: Optional[LoopTaskQueue] = None


def default_task_queue() -> LoopTaskQueue:
    """Return the process-wide queue shared by buses created without one."""
    global _default_queue
    if _default_queue is None:
        _default_queue = LoopTaskQueue()
    return _default_queue

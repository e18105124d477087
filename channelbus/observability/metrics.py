"""Metrics for observability (publish counts, callback invocations, failures)."""

from typing import Dict


class Metrics:
    """In-memory metrics collector for bus events."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._gauges: Dict[str, int] = {}

    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def set_gauge(self, name: str, value: int) -> None:
        self._gauges[name] = value

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_gauge(self, name: str) -> int:
        return self._gauges.get(name, 0)

    def reset(self) -> None:
        """Drop every counter and gauge."""
        self._counters.clear()
        self._gauges.clear()

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Return a copy of all metrics."""
        return {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
        }

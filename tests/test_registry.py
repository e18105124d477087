"""Tests for the subscriber registry and subscription handles."""

import pytest

from channelbus import ChannelBus, Registry, TaskQueue


def noop(channel, data):
    pass


def other(channel, data):
    pass


class TestRegistry:
    """Test cases for Registry."""

    def test_add_keeps_registration_order(self):
        registry = Registry()
        registry.add("open", other)
        registry.add("open", noop)
        assert registry.snapshot("open") == (other, noop)

    def test_same_callback_occupies_one_slot(self):
        registry = Registry()
        registry.add("open", noop)
        registry.add("open", noop)
        assert registry.subscriber_count("open") == 1

    def test_remove_prunes_empty_channels(self):
        registry = Registry()
        registry.add("open", noop)
        assert registry.remove("open", noop) is True
        assert "open" not in registry
        assert registry.channels() == []
        assert registry.remove("open", noop) is False

    def test_snapshot_is_a_copy(self):
        registry = Registry()
        registry.add("open", noop)
        snap = registry.snapshot("open")
        registry.add("open", other)
        assert snap == (noop,)
        assert registry.snapshot("missing") == ()

    def test_clear_and_stats(self):
        registry = Registry()
        registry.add("open", noop)
        registry.add("open", other)
        registry.add("*", noop)
        assert registry.stats() == {"open": 2, "*": 1}
        assert registry.subscriber_count() == 3
        registry.clear()
        assert len(registry) == 0
        registry.clear()


class TestSubscription:
    """Test cases for subscribe() handles."""

    def setup_method(self):
        self.bus = ChannelBus(task_queue=TaskQueue())

    def test_subscribe_single_channel(self):
        sub = self.bus.subscribe("open", noop)
        assert sub.channels == ("open",)
        assert self.bus.registry.snapshot("open") == (noop,)

    def test_subscribe_many_channels(self):
        self.bus.subscribe(["open", "close"], noop)
        assert self.bus.registry.channels() == ["open", "close"]

    def test_subscribe_requires_a_channel(self):
        with pytest.raises(ValueError):
            self.bus.subscribe([], noop)

    def test_subscribe_to_busy_channel_does_not_raise(self):
        self.bus.subscribe("open", noop)
        self.bus.subscribe("open", other)
        assert self.bus.registry.subscriber_count("open") == 2

    def test_unsubscribe_removes_only_its_channels(self):
        first = self.bus.subscribe(["open", "close"], noop)
        self.bus.subscribe("changed", noop)
        first()
        assert not first.active
        assert self.bus.registry.channels() == ["changed"]

    def test_unsubscribe_twice_is_noop(self):
        sub = self.bus.subscribe("open", noop)
        sub()
        self.bus.subscribe("close", noop)
        sub()
        assert self.bus.registry.channels() == ["close"]

    def test_unsubscribe_leaves_other_callbacks(self):
        sub = self.bus.subscribe("open", noop)
        self.bus.subscribe("open", other)
        sub.unsubscribe()
        assert self.bus.registry.snapshot("open") == (other,)

    def test_unsubscribe_all(self):
        self.bus.subscribe(["open", "close"], noop)
        self.bus.subscribe("*", other)
        self.bus.unsubscribe_all()
        assert len(self.bus.registry) == 0
        assert self.bus.metrics.get_gauge("channels") == 0
        self.bus.unsubscribe_all()

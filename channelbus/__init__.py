"""In-process channel bus with specificity routing and an observable map."""

from channelbus.audit import EventLog
from channelbus.bus import ChannelBus, Delivery
from channelbus.channel import WILDCARD, ChannelName, expand_channel
from channelbus.errors import ChannelBusError, InvalidKeyError
from channelbus.message import Message
from channelbus.observable_map import ObservableMap
from channelbus.registry import Registry
from channelbus.scheduler import LoopTaskQueue, TaskQueue, default_task_queue
from channelbus.subscription import Subscription

__version__ = "1.0.0"

__all__ = [
    "ChannelBus",
    "ChannelName",
    "Delivery",
    "ChannelBusError",
    "EventLog",
    "InvalidKeyError",
    "LoopTaskQueue",
    "Message",
    "ObservableMap",
    "Registry",
    "Subscription",
    "TaskQueue",
    "WILDCARD",
    "default_task_queue",
    "expand_channel",
]

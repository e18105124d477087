"""Exceptions raised by the channel bus and the observable map."""


class ChannelBusError(Exception):
    """Base class for channelbus errors."""


class InvalidKeyError(ChannelBusError, TypeError):
    """Raised when an ObservableMap key is not a string."""

    def __init__(self, key: object) -> None:
        super().__init__(f"keys must be str, got {type(key).__name__}: {key!r}")
        self.key = key

"""Message record for one publish."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional


@dataclass
class Message:
    """A message on its way through the bus. Never stored past its publish."""

    channel: str
    payload: Any = None
    mode: str = "wait"
    listeners: List[str] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        """Serialize message for logging."""
        return {
            "channel": self.channel,
            "mode": self.mode,
            "listeners": list(self.listeners),
            "payload_type": type(self.payload).__name__,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

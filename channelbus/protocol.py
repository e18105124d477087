"""Response shapes for the HTTP surface (health, entries, stats, events)."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---- Health ----

@dataclass
class HealthResponse:
    """Response for GET /health."""
    uptime_sec: float
    entries: int
    channels: int
    subscribers: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uptime_sec": int(self.uptime_sec),
            "entries": self.entries,
            "channels": self.channels,
            "subscribers": self.subscribers,
        }


# ---- Entries ----

@dataclass
class EntryResponse:
    """Response for GET /entries/{key}."""
    key: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EntryWrittenResponse:
    """Response for PUT and DELETE /entries/{key}. status: added, changed, unchanged, deleted."""
    status: str
    key: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def entries_response(entries: Dict[str, Any]) -> Dict[str, Any]:
    """Response for GET /entries."""
    return {"entries": entries}


def cleared_response(deleted: int) -> Dict[str, Any]:
    """Response for DELETE /entries."""
    return {"status": "cleared", "deleted": deleted}


def stats_response(channels: Dict[str, int], metrics: Dict[str, Dict[str, int]]) -> Dict[str, Any]:
    """Response for GET /stats."""
    return {"channels": channels, "metrics": metrics}


def events_response(events: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Response for GET /events."""
    return {"events": events}


# ---- Errors ----

ERROR_BAD_REQUEST = "BAD_REQUEST"
ERROR_KEY_NOT_FOUND = "KEY_NOT_FOUND"
ERROR_UNAUTHORIZED = "UNAUTHORIZED"
ERROR_INTERNAL = "INTERNAL"


def error_body(code: str, message: str, key: Optional[str] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"error": code, "message": message}
    if key is not None:
        out["key"] = key
    return out


def event_record(channel: str, payload: Any, ts: str) -> Dict[str, Any]:
    return {"channel": channel, "payload": payload, "ts": ts}


def utc_ts() -> str:
    """Current UTC timestamp in ISO 8601 (e.g. 2025-08-25T10:00:00Z)."""
    from datetime import datetime, timezone
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

"""HTTP server: health, stats, entries of an observable map, and recent bus events."""

from dotenv import load_dotenv
load_dotenv()

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from channelbus.audit import EventLog
from channelbus.config import load_settings
from channelbus.errors import InvalidKeyError
from channelbus.observability import get_logger
from channelbus.observable_map import ObservableMap
from channelbus.protocol import (
    EntryResponse,
    EntryWrittenResponse,
    HealthResponse,
    cleared_response,
    entries_response,
    error_body,
    events_response,
    stats_response,
    ERROR_BAD_REQUEST,
    ERROR_INTERNAL,
    ERROR_KEY_NOT_FOUND,
    ERROR_UNAUTHORIZED,
)

logger = get_logger("channelbus.server")

store = ObservableMap()
event_log = EventLog(load_settings().event_buffer_size)
event_log.attach(store.events)
_start_time: float = 0.0


# X-API-Key is compulsory: API_KEY must be set in env (or .env)
def _get_expected_api_key() -> str | None:
    return load_settings().api_key


class XAPIKeyMiddleware(BaseHTTPMiddleware):
    """Require X-API-Key header; API_KEY env must be set."""
    async def dispatch(self, request: Request, call_next):
        expected = _get_expected_api_key()
        if not expected:
            return JSONResponse(
                status_code=503,
                content=error_body(ERROR_UNAUTHORIZED, "X-API-Key required (API_KEY env not set)"),
            )
        key = (request.headers.get("X-API-Key") or "").strip()
        if key != expected:
            return JSONResponse(
                status_code=401,
                content=error_body(ERROR_UNAUTHORIZED, "invalid or missing X-API-Key"),
            )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _start_time
    _start_time = time.time()
    logger.info("started", extra={"entries": store.size})
    yield
    logger.info("stopped")


app = FastAPI(title="Channel Bus API", lifespan=lifespan)
app.add_middleware(XAPIKeyMiddleware)

router = APIRouter(prefix="/api/v1")


# ---- Health ----

@router.get("/health")
def health() -> JSONResponse:
    """GET /health → { uptime_sec, entries, channels, subscribers }."""
    registry = store.events.registry
    body = HealthResponse(
        uptime_sec=time.time() - _start_time,
        entries=store.size,
        channels=len(registry),
        subscribers=registry.subscriber_count(),
    ).to_dict()
    return JSONResponse(content=body, status_code=200)


# ---- Stats ----

@router.get("/stats")
def stats() -> JSONResponse:
    """GET /stats → { channels: { name: subscribers }, metrics: { counters, gauges } }."""
    body = stats_response(store.events.registry.stats(), store.events.metrics.snapshot())
    return JSONResponse(content=body, status_code=200)


# ---- Events ----

@router.get("/events")
def recent_events(last_n: int = 10) -> JSONResponse:
    """GET /events?last_n= → { events: [ { channel, payload, ts } ] }, oldest first."""
    return JSONResponse(content=events_response(event_log.get_last_n(last_n)), status_code=200)


# ---- Entries ----

class EntryBody(BaseModel):
    value: Any


@router.get("/entries")
def list_entries() -> JSONResponse:
    """GET /entries → { entries: { key: value } }."""
    return JSONResponse(content=entries_response(store.to_dict()), status_code=200)


@router.get("/entries/{key}")
def get_entry(key: str) -> JSONResponse:
    """GET /entries/{key} → { key, value } or 404."""
    if not store.has(key):
        return JSONResponse(
            content=error_body(ERROR_KEY_NOT_FOUND, "key not found", key),
            status_code=404,
        )
    return JSONResponse(content=EntryResponse(key=key, value=store.get(key)).to_dict(), status_code=200)


def _subscriber_failed(e: Exception, key: str | None = None) -> JSONResponse:
    """500 for a store subscriber that raised; the write itself has been applied."""
    logger.exception("subscriber_failed", extra={"key": key, "error": str(e)})
    return JSONResponse(
        content=error_body(ERROR_INTERNAL, f"subscriber failed: {e!s}", key),
        status_code=500,
    )


@router.put("/entries/{key}")
async def put_entry(key: str, body: EntryBody) -> JSONResponse:
    """PUT /entries/{key} { value } → { status: added | changed | unchanged, key }."""
    if not key.strip():
        return JSONResponse(content=error_body(ERROR_BAD_REQUEST, "key is required"), status_code=400)
    if not store.has(key):
        status = "added"
    elif store.get(key) == body.value:
        status = "unchanged"
    else:
        status = "changed"
    try:
        await store.set(key, body.value)
    except InvalidKeyError as e:
        return JSONResponse(content=error_body(ERROR_BAD_REQUEST, str(e)), status_code=400)
    except Exception as e:
        return _subscriber_failed(e, key)
    return JSONResponse(content=EntryWrittenResponse(status=status, key=key).to_dict(), status_code=200)


@router.delete("/entries/{key}")
async def delete_entry(key: str) -> JSONResponse:
    """DELETE /entries/{key} → 200 { status: deleted, key } or 404."""
    try:
        deleted = await store.delete(key)
    except Exception as e:
        return _subscriber_failed(e, key)
    if not deleted:
        return JSONResponse(
            content=error_body(ERROR_KEY_NOT_FOUND, "key not found", key),
            status_code=404,
        )
    return JSONResponse(content=EntryWrittenResponse(status="deleted", key=key).to_dict(), status_code=200)


@router.delete("/entries")
async def clear_entries() -> JSONResponse:
    """DELETE /entries → { status: cleared, deleted }."""
    try:
        deleted = await store.clear()
    except Exception as e:
        return _subscriber_failed(e)
    return JSONResponse(content=cleared_response(deleted), status_code=200)


app.include_router(router)

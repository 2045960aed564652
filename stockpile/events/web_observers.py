"""Web-facing observers for shopping-list events.

Subscribes to the shopping.* events of an EventBus and stores a lightweight
in-memory ring buffer of recent events that the web layer exposes for
polling, so a client can show "added to list" / "AI suggestion ready"
notices without refetching the whole list.

Each event gets an auto-increment integer id (cursor) so clients can request
only newer events (since=<last_id_seen>). A lock guards the buffer because
FastAPI runs sync endpoints and enrichment completions on different threads.
"""
from __future__ import annotations
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, timezone
import logging

from .Event_Bus import GLOBAL_EVENT_BUS, SHOPPING_EVENTS, EventBus

logger = logging.getLogger(__name__)

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
MAX_EVENTS = 300  # keep a few hundred recent events
_started_on: List[EventBus] = []


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    evt = {
        'type': event_name,
        'ts': datetime.now(timezone.utc).isoformat(),
    }
    if isinstance(payload, dict):
        entry = payload.get('entry')
        if entry is not None:
            evt['entry_id'] = getattr(entry, 'id', '')
            evt['name'] = getattr(entry, 'name', '')
            evt['quantity'] = getattr(entry, 'quantity', 0)
            evt['checked'] = getattr(entry, 'checked', False)
            evt['reason'] = getattr(entry, 'reason', '')
        if 'ok' in payload:
            evt['ok'] = payload['ok']
    with _lock:
        evt['id'] = _next_id
        _events.append(evt)
        _next_id += 1
        # Trim buffer
        if len(_events) > MAX_EVENTS:
            del _events[: len(_events) - MAX_EVENTS]


def start(bus: EventBus = GLOBAL_EVENT_BUS):
    """Idempotent start: subscribe the recorder once per bus."""
    if any(b is bus for b in _started_on):
        return
    for name in SHOPPING_EVENTS:
        bus.subscribe(name, _record)
    _started_on.append(bus)
    logger.debug("Web observers subscribed to %d shopping events", len(SHOPPING_EVENTS))


def get_events(since: int | None = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive).

    If since is None, returns the last N (up to MAX_EVENTS) events.
    Response includes next_cursor (largest id) so client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_events)
        else:
            data = [e for e in _events if e['id'] > since]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events', 'MAX_EVENTS']

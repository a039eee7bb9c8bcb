"""In-process change feed for open admin dashboards.

Committed ticket and taxonomy changes are published here as sequence-numbered
events. Dashboards poll ``/admin/events?since=<seq>`` and feed the events through
``TicketListReducer``: ticket events carrying a full row are applied as deltas,
anything else (taxonomy edits, bulk deletes, a gap in the sequence) asks for a
full refetch.
"""
from __future__ import annotations
import logging
import threading
from collections import deque
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

TABLE_TICKETS = 'tickets'
TABLE_STATUSES = 'task_statuses'

KIND_INSERT = 'insert'
KIND_UPDATE = 'update'
KIND_DELETE = 'delete'
KIND_RESET = 'reset'


@dataclass
class ChangeEvent:
    seq: int
    table: str
    kind: str
    entity_id: Optional[str]
    department: Optional[str]
    payload: Optional[Dict[str, Any]] = None
    at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self):
        return asdict(self)


class ChangeFeed:
    def __init__(self, maxlen: int = 500):
        self._events: Deque[ChangeEvent] = deque(maxlen=maxlen)
        self._subscribers: List[Callable[[ChangeEvent], None]] = []
        self._lock = threading.Lock()
        self._seq = 0

    @property
    def last_seq(self) -> int:
        return self._seq

    def subscribe(self, callback: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    def publish(self, table: str, kind: str, entity_id: Optional[str] = None,
                department: Optional[str] = None, payload: Optional[Dict[str, Any]] = None) -> ChangeEvent:
        with self._lock:
            self._seq += 1
            event = ChangeEvent(self._seq, table, kind, entity_id, department, payload)
            self._events.append(event)
            subscribers = list(self._subscribers)
        for cb in subscribers:
            try:
                cb(event)
            except Exception:
                logger.warning('change feed subscriber failed', exc_info=True)
        return event

    def since(self, seq: int, department: Optional[str] = None) -> List[ChangeEvent]:
        """Events after seq. Department-less events (taxonomy, resets) are always included."""
        with self._lock:
            events = [e for e in self._events if e.seq > seq]
        if department:
            events = [e for e in events if e.department in (None, department)]
        return events

    def has_gap(self, seq: int) -> bool:
        """True when events after seq were already evicted from the ring."""
        with self._lock:
            if not self._events:
                return seq < self._seq
            return seq < self._events[0].seq - 1


class TicketListReducer:
    """Applies feed events to a dashboard's ticket list (newest first).

    ``apply`` returns the new list, or None when the caller must refetch.
    """

    def apply(self, tickets: List[Dict[str, Any]], event: ChangeEvent) -> Optional[List[Dict[str, Any]]]:
        if event.table != TABLE_TICKETS or event.kind == KIND_RESET:
            return None
        if event.kind == KIND_DELETE:
            return [t for t in tickets if t.get('id') != event.entity_id]
        if not event.payload:
            return None
        if event.kind == KIND_INSERT:
            return [event.payload] + [t for t in tickets if t.get('id') != event.entity_id]
        if event.kind == KIND_UPDATE:
            found = False
            out = []
            for t in tickets:
                if t.get('id') == event.entity_id:
                    out.append(event.payload)
                    found = True
                else:
                    out.append(t)
            # Redirected into view: row was never part of this list
            return out if found else None
        return None

    def needs_refetch(self, events: List[ChangeEvent]) -> bool:
        return any(e.table != TABLE_TICKETS or e.kind == KIND_RESET or
                   (e.kind != KIND_DELETE and not e.payload) for e in events)

"""Audit logging decorator to reduce repetitive add_audit() calls in route handlers.

Usage examples:

@audit_log('STATUS.CREATE', entity='TaskStatus', entity_id_key='id', new_keys=['name'])
def create_status():
    ... return {'id': status.id, 'name': status.name}, 201

@audit_log('TICKET.DEADLINE.SET', entity='Ticket', entity_id_arg='ticket_id',
           diff_keys=['deadline'], pre_fetch=lambda a, kw: _snapshot(kw['ticket_id']))
def set_deadline(ticket_id): ...

Parameters:
  action: required audit action code (e.g. TICKET.REDIRECT)
  entity: optional entity label (Ticket, TaskStatus, Employee)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the path parameter to use for entity_id (fallback if entity_id_key absent).
  new_keys: keys projected from the returned JSON into new_value when no diff is requested.
  diff_keys + pre_fetch: pre_fetch(args, kwargs) snapshots the entity before the call; only keys
    whose value changed are recorded, the before side in old_value and the after side in new_value.
  description_builder: callable(data, args, kwargs) -> str for the history view.

Only successful (< 400) responses are logged. Flask view functions commonly return one of:
    dict
    (dict, status)
    (dict, status, headers)
"""
from __future__ import annotations

from functools import wraps
import logging
from typing import Any, Callable, Iterable, Optional, Dict

from feedbackdesk.services.audit import add_audit
from feedbackdesk import get_db

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return (data, status) where data is the JSON-able dict for inspection."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, 200


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    new_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
    description_builder: Optional[Callable[[dict, tuple, dict], str]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before_snapshot = None
            if pre_fetch:
                try:
                    before_snapshot = pre_fetch(args, kwargs)
                except Exception:
                    logger.warning('audit pre_fetch failed for %s', action, exc_info=True)
                    before_snapshot = None
            rv = fn(*args, **kwargs)
            try:
                data, status = _extract_payload(rv)
                if status >= 400:
                    return rv
                if not isinstance(data, dict):
                    data = {}
                entity_id = None
                if entity_id_key and entity_id_key in data:
                    entity_id = data.get(entity_id_key)
                elif entity_id_arg and entity_id_arg in kwargs:
                    entity_id = kwargs.get(entity_id_arg)
                old_value = None
                new_value = None
                if diff_keys and isinstance(before_snapshot, dict):
                    old_value, new_value = {}, {}
                    for k in diff_keys:
                        if k in data and before_snapshot.get(k) != data.get(k):
                            old_value[k] = before_snapshot.get(k)
                            new_value[k] = data.get(k)
                elif before_snapshot is not None:
                    old_value = before_snapshot
                if new_value is None and new_keys:
                    new_value = {k: data.get(k) for k in new_keys if k in data}
                description = None
                if description_builder:
                    try:
                        description = description_builder(data, args, kwargs)
                    except Exception:
                        description = None
                add_audit(action, entity, entity_id, old_value or None, new_value or None, description)
                get_db().commit()
            except Exception:
                # Do not raise - audit must not interfere with main response
                logger.warning('audit write failed for %s', action, exc_info=True)
                get_db().rollback()
            return rv
        return wrapper
    return outer

"""Pull status changes back from a department's sheet and task tracker.

Both pulls are admin-triggered and last-writer-wins: whatever the external
side says now overwrites the store when it differs. Rows or tasks that cannot
be matched are skipped silently.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from flask import abort
from sqlalchemy import select

from feedbackdesk import get_db, get_integrations
from feedbackdesk.constants.catalog import STATUS_IN_PROGRESS, resolve_legacy_status
from feedbackdesk.integrations.bitrix import map_remote_status
from feedbackdesk.integrations.errors import IntegrationError
from feedbackdesk.models.task_status import TaskStatus, TaskSubstatus
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.services.department_settings import get_settings
from feedbackdesk.services.events import KIND_UPDATE
from feedbackdesk.services.taxonomy import list_statuses
from feedbackdesk.services.tickets import find_ticket, publish_change

logger = logging.getLogger(__name__)


def _fold(text: Optional[str]) -> str:
    return (text or '').strip().lower()


def _match_substatus(status: TaskStatus, text: Optional[str]) -> Optional[TaskSubstatus]:
    if not text:
        return None
    wanted = _fold(text)
    for sub in status.substatuses:
        if sub.is_active and _fold(sub.name) == wanted:
            return sub
    return None


def _apply_dynamic(t: Ticket, status: TaskStatus, sub_text: Optional[str]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    # Sub-status text naming another status's child is dropped
    sub = _match_substatus(status, sub_text)
    if t.task_status_id != status.id:
        t.task_status = status
        changes['task_status_id'] = status.id
    new_sub_id = sub.id if sub is not None else None
    if t.task_substatus_id != new_sub_id:
        t.task_substatus = sub
        changes['task_substatus_id'] = new_sub_id
    return changes


def _apply_legacy(t: Ticket, status: str, sub_text: Optional[str]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if status != STATUS_IN_PROGRESS:
        new_sub = None
    else:
        # A blank K cell leaves the stored sub-status alone
        new_sub = sub_text or t.sub_status
    if t.status != status:
        t.status = status
        changes['status'] = status
    if t.sub_status != new_sub:
        t.sub_status = new_sub
        changes['sub_status'] = new_sub
    return changes


def pull_sheet_statuses(department: str) -> Dict[str, Any]:
    """Reconcile columns J/K of the department's sheet into the store.

    Status text is matched against the department's active dynamic statuses
    first (case-insensitive), then against the legacy labels. Dynamic names
    only apply to tickets the department owns; the oversight sheet also
    carries other departments' rows.
    """
    client = get_integrations().sheets(get_settings(department), readonly=True)
    if client is None:
        abort(400, description='google sheets not configured for department')
    try:
        rows = list(client.read_status_rows())
    except IntegrationError as e:
        logger.warning('sheet pull failed for %s: %s', department, e)
        abort(502, description=f'sheet pull failed: {e}')

    by_name = {_fold(s.name): s for s in list_statuses(department, active_only=True)}
    session = get_db()
    updates: List[Dict[str, Any]] = []
    for ticket_id, status_text, sub_text in rows:
        t = find_ticket(ticket_id)
        if t is None:
            continue
        old_status = t.task_status.name if t.task_status is not None else t.status
        dynamic = by_name.get(_fold(status_text)) if t.department == department else None
        if dynamic is not None:
            changes = _apply_dynamic(t, dynamic, sub_text)
        else:
            legacy = resolve_legacy_status(status_text)
            if legacy is None:
                logger.info('sheet row %s has unknown status %r, skipped', ticket_id, status_text)
                continue
            changes = _apply_legacy(t, legacy, sub_text)
        if not changes:
            continue
        session.commit()
        publish_change(KIND_UPDATE, t)
        updates.append({
            'id': t.id,
            'old_status': old_status,
            'new_status': status_text,
            'sub_status': sub_text,
            'changes': changes,
        })
    logger.info('sheet pull for %s updated %d tickets', department, len(updates))
    return {'updated_count': len(updates), 'updates': updates}


def sync_tracker_statuses(department: str) -> Dict[str, Any]:
    """Poll the tracker for every linked ticket of the department.

    Remote fetches run on a bounded worker pool; store writes stay on the
    calling thread.
    """
    hub = get_integrations()
    tracker = hub.tracker(get_settings(department), polling=True)
    if tracker is None:
        abort(400, description='task tracker not configured for department')
    session = get_db()
    tickets = session.execute(
        select(Ticket).where(Ticket.department == department, Ticket.tracker_task_id.is_not(None))
    ).scalars().all()

    updates: List[Dict[str, Any]] = []
    failed: List[Dict[str, Any]] = []
    with ThreadPoolExecutor(max_workers=hub.tracker_workers) as pool:
        futures = {pool.submit(tracker.get_task_status, t.tracker_task_id): t for t in tickets}
        for future in as_completed(futures):
            t = futures[future]
            try:
                code = future.result()
            except IntegrationError as e:
                logger.warning('tracker poll failed for ticket %s (task %s): %s', t.id, t.tracker_task_id, e)
                failed.append({'id': t.id, 'detail': str(e)})
                continue
            if code is None:
                continue
            new_status = map_remote_status(code)
            if t.status == new_status:
                continue
            old_status = t.status
            t.status = new_status
            if new_status != STATUS_IN_PROGRESS:
                t.sub_status = None
            session.commit()
            publish_change(KIND_UPDATE, t)
            updates.append({'id': t.id, 'old_status': old_status, 'new_status': new_status, 'remote_status': code})
    logger.info('tracker sync for %s: %d updated, %d failed', department, len(updates), len(failed))
    return {'updated_count': len(updates), 'updates': updates, 'failed': failed, 'checked': len(tickets)}

from __future__ import annotations
from typing import Optional
from flask import Blueprint, request, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.decorators.audit import audit_log
from feedbackdesk.utils.listing import apply_pagination, list_response
from feedbackdesk.utils.sorting import apply_multi_sort
from feedbackdesk.services.policy import assert_department_access, scoped_department, sees_all_departments
from feedbackdesk.services import tickets as store
from feedbackdesk.services import outbound
from feedbackdesk.services.reports import latest_change
from feedbackdesk.services.analysis import analyze_message
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.constants.catalog import department_label

tickets_bp = Blueprint('tickets', __name__)

SORTABLE = {
    'created_at': Ticket.created_at,
    'updated_at': Ticket.updated_at,
    'deadline': Ticket.deadline,
    'urgency_level': Ticket.urgency_level,
    'status': Ticket.status,
    'type': Ticket.type,
    'department': Ticket.department,
}

TICKET_AUDIT_KEYS = [
    'status', 'sub_status', 'task_status_id', 'task_substatus_id', 'deadline', 'urgency_level',
    'assigned_employee_id', 'department', 'redirected_from', 'final_photo_url', 'tracker_task_id',
]


def _snapshot(ticket_id: Optional[str]):
    t = store.find_ticket(ticket_id) if ticket_id else None
    return store.ticket_to_dict(t) if t else None


def _prefetch(a, kw):
    return _snapshot(kw.get('ticket_id'))


def _load(ticket_id: str) -> Ticket:
    t = store.get_ticket(ticket_id)
    assert_department_access(t.department)
    return t


def _with_sync(t: Ticket, result=None):
    out = store.ticket_to_dict(t)
    if result is not None:
        out['sync'] = result.to_dict()
    return out


def _filtered_query():
    department = scoped_department(request.args.get('department'))
    q = store.tickets_query(
        department,
        status=request.args.get('status'),
        type_=request.args.get('type'),
        search=(request.args.get('q') or '').strip() or None,
    )
    q = apply_multi_sort(q, request.args.get('sort'), SORTABLE, [Ticket.created_at.desc()], Ticket.id.desc())
    return q, department


@tickets_bp.get('')
@require_permissions('FB.READ')
def list_tickets():
    q, department = _filtered_query()
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [store.ticket_to_dict(t) for t in paged_q.all()]
    return list_response(rows, total, limit, offset, latest_change(department))


@tickets_bp.route('', methods=['HEAD'])
@require_permissions('FB.READ')
def head_tickets():
    q, department = _filtered_query()
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [store.ticket_to_dict(t) for t in paged_q.all()]
    return list_response(rows, total, limit, offset, latest_change(department), head=True)


@tickets_bp.get('/count')
@require_permissions('FB.READ')
def count_tickets():
    department = scoped_department(request.args.get('department'))
    return {'department': department, 'count': store.count_tickets(department)}


@tickets_bp.get('/<ticket_id>')
@require_permissions('FB.READ')
def get_ticket(ticket_id: str):
    t = _load(ticket_id)
    out = store.ticket_to_dict(t)
    out['analysis'] = analyze_message(t.message)
    return out


@tickets_bp.post('/<ticket_id>/status')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.STATUS.SET', entity='Ticket', entity_id_key='id', diff_keys=['status', 'sub_status'], pre_fetch=_prefetch)
def set_status(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.set_legacy_status(t, data.get('status'), data.get('sub_status'))
    return _with_sync(t, outbound.push_field(t, 'status'))


@tickets_bp.post('/<ticket_id>/task-status')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.TASK_STATUS.SET', entity='Ticket', entity_id_key='id', diff_keys=['task_status_id', 'task_substatus_id'], pre_fetch=_prefetch)
def set_task_status(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.set_dynamic_status(t, data.get('task_status_id'), data.get('task_substatus_id'))
    return _with_sync(t, outbound.push_field(t, 'status'))


@tickets_bp.put('/<ticket_id>/deadline')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.DEADLINE.SET', entity='Ticket', entity_id_key='id', diff_keys=['deadline'], pre_fetch=_prefetch)
def set_deadline(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.set_deadline(t, data.get('deadline'))
    return _with_sync(t, outbound.push_field(t, 'deadline'))


@tickets_bp.put('/<ticket_id>/urgency-level')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.URGENCY.SET', entity='Ticket', entity_id_key='id', diff_keys=['urgency_level'], pre_fetch=_prefetch)
def set_urgency_level(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.set_urgency_level(t, data.get('urgency_level'))
    return _with_sync(t, outbound.push_field(t, 'urgency_level'))


@tickets_bp.put('/<ticket_id>/assignee')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.ASSIGN', entity='Ticket', entity_id_key='id', diff_keys=['assigned_employee_id'], pre_fetch=_prefetch)
def set_assignee(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.set_assignee(t, data.get('employee_id'))
    return _with_sync(t, outbound.push_field(t, 'assignee'))


@tickets_bp.put('/<ticket_id>/final-photo')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.FINAL_PHOTO.SET', entity='Ticket', entity_id_key='id', diff_keys=['final_photo_url'], pre_fetch=_prefetch)
def set_final_photo(ticket_id: str):
    data = request.json or {}
    url = data.get('url')
    if url is not None and not isinstance(url, str):
        abort(400, description='url invalid')
    t = _load(ticket_id)
    store.set_final_photo(t, (url or '').strip() or None)
    return _with_sync(t)


def _redirect_description(data, a, kw):
    return f"Redirected from {department_label(data.get('redirected_from'))} to {department_label(data.get('department'))}"


@tickets_bp.post('/<ticket_id>/redirect')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.REDIRECT', entity='Ticket', entity_id_key='id', diff_keys=TICKET_AUDIT_KEYS, pre_fetch=_prefetch, description_builder=_redirect_description)
def redirect(ticket_id: str):
    data = request.json or {}
    t = _load(ticket_id)
    store.redirect_ticket(t, data.get('department'))
    return _with_sync(t, outbound.push_redirect(t))


@tickets_bp.post('/<ticket_id>/tracker-task')
@require_permissions('FB.MANAGE')
@audit_log('TICKET.TRACKER.CREATE', entity='Ticket', entity_id_key='id', diff_keys=['tracker_task_id'], pre_fetch=_prefetch)
def create_tracker_task(ticket_id: str):
    t = _load(ticket_id)
    if t.tracker_task_id:
        abort(409, description='ticket already linked to a tracker task')
    return _with_sync(t, outbound.create_tracker_task(t))


@tickets_bp.delete('/<ticket_id>')
@require_permissions('FB.DELETE')
@audit_log('TICKET.DELETE', entity='Ticket', entity_id_arg='ticket_id', pre_fetch=_prefetch)
def delete_ticket(ticket_id: str):
    t = _load(ticket_id)
    department = t.department
    store.delete_ticket(t)
    # Store delete already committed; sheet rows are removed best effort
    result = outbound.delete_sheet_rows(ticket_id, department)
    return {'id': ticket_id, 'deleted': True, 'sync': result.to_dict()}


@tickets_bp.delete('')
@require_permissions('FB.DELETE')
@audit_log('TICKET.CLEAR_ALL', entity='Ticket', new_keys=['removed'])
def clear_all():
    if not sees_all_departments():
        abort(403, description='Only the oversight department may clear all tickets')
    return {'removed': store.clear_all()}

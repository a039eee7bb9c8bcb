"""Ticket store: single-row reads and writes plus the explicit row mapping.

Every mutator commits its own change and publishes it on the change feed.
Outbound mirroring (sheets, chat, tracker) is the caller's business, see
``services.outbound``.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import abort
from sqlalchemy import delete, func, or_, select

from feedbackdesk import get_db, get_change_feed
from feedbackdesk.constants.catalog import (
    ANONYMOUS_LABEL, DEPARTMENTS, FEEDBACK_TYPES, LEGACY_STATUSES, OBJECT_LABELS, ROLE_LABELS,
    STATUS_IN_PROGRESS, STATUS_LABELS, STATUS_NEW, STATUS_RESOLVED, TYPE_LABELS, URGENCIES,
    URGENCY_LEVELS, URGENCY_NORMAL, USER_ROLES, department_label, urgency_level_label,
)
from feedbackdesk.models.employee import Employee
from feedbackdesk.models.task_status import TaskStatus, TaskSubstatus
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.services.events import (
    KIND_DELETE, KIND_INSERT, KIND_RESET, KIND_UPDATE, TABLE_TICKETS,
)
from feedbackdesk.utils.validation import (
    optional_text, parse_datetime, parse_int, require_text, to_iso, validate_choice,
)

logger = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 5000


# ---------- mapping ---------- #

def ticket_to_dict(t: Ticket) -> Dict[str, Any]:
    return {
        'id': t.id,
        'created_at': to_iso(t.created_at),
        'user_role': t.user_role,
        'type': t.type,
        'message': t.message,
        'name': t.name,
        'contact': t.contact,
        'is_anonymous': t.is_anonymous,
        'object_code': t.object_code,
        'urgency': t.urgency,
        'department': t.department,
        'status': t.status,
        'sub_status': t.sub_status,
        'task_status_id': t.task_status_id,
        'task_substatus_id': t.task_substatus_id,
        'assigned_employee_id': t.assigned_employee_id,
        'deadline': to_iso(t.deadline),
        'urgency_level': t.urgency_level,
        'redirected_from': t.redirected_from,
        'redirected_at': to_iso(t.redirected_at),
        'attachment_url': t.attachment_url,
        'attachment_name': t.attachment_name,
        'final_photo_url': t.final_photo_url,
        'tracker_task_id': t.tracker_task_id,
        'updated_at': to_iso(t.updated_at),
    }


def status_labels(t: Ticket):
    """(status label, sub-status label) as mirrored into the spreadsheet."""
    if t.task_status is not None:
        return t.task_status.name, (t.task_substatus.name if t.task_substatus is not None else '')
    return STATUS_LABELS.get(t.status, t.status), (t.sub_status or '')


def ticket_sheet_row(t: Ticket) -> List[str]:
    status_label, sub_label = status_labels(t)
    return [
        t.id,
        to_iso(t.created_at) or '',
        ROLE_LABELS.get(t.user_role, t.user_role),
        TYPE_LABELS.get(t.type, t.type),
        ANONYMOUS_LABEL if t.is_anonymous else (t.name or ''),
        t.contact or '',
        t.message,
        OBJECT_LABELS.get(t.object_code, t.object_code or ''),
        department_label(t.department),
        status_label,
        sub_label,
        t.attachment_url or '',
        t.tracker_task_id or '',
        to_iso(t.deadline) or '',
        urgency_level_label(t.urgency_level),
        t.assignee.name if t.assignee is not None else '',
    ]


def publish_change(kind: str, t: Ticket):
    get_change_feed().publish(
        TABLE_TICKETS, kind, t.id, t.department,
        None if kind == KIND_DELETE else ticket_to_dict(t),
    )


# ---------- reads ---------- #

def get_ticket(ticket_id: str) -> Ticket:
    session = get_db()
    t = session.execute(select(Ticket).where(Ticket.id == ticket_id)).scalar_one_or_none()
    if not t:
        abort(404, description='ticket not found')
    return t


def find_ticket(ticket_id: str) -> Optional[Ticket]:
    session = get_db()
    return session.execute(select(Ticket).where(Ticket.id == ticket_id)).scalar_one_or_none()


def tickets_query(department: Optional[str] = None, status: Optional[str] = None,
                  type_: Optional[str] = None, search: Optional[str] = None):
    session = get_db()
    q = session.query(Ticket)
    if department:
        q = q.filter(Ticket.department == department)
    if status:
        q = q.filter(Ticket.status == status)
    if type_:
        q = q.filter(Ticket.type == type_)
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Ticket.message.ilike(like), Ticket.name.ilike(like), Ticket.contact.ilike(like)))
    return q


def list_tickets(department: Optional[str] = None) -> List[Ticket]:
    return tickets_query(department).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def count_tickets(department: Optional[str] = None) -> int:
    session = get_db()
    q = select(func.count(Ticket.id))
    if department:
        q = q.where(Ticket.department == department)
    return session.execute(q).scalar() or 0


# ---------- create ---------- #

def validate_submission(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate an intake payload; aborts 400 on the first bad field."""
    message = require_text(data, 'message', MAX_MESSAGE_LEN)
    user_role = validate_choice(data.get('user_role'), USER_ROLES, 'user_role')
    type_ = validate_choice(data.get('type'), FEEDBACK_TYPES, 'type')
    department = validate_choice(data.get('department'), DEPARTMENTS, 'department')
    urgency = validate_choice(data.get('urgency') or URGENCY_NORMAL, URGENCIES, 'urgency')
    object_code = optional_text(data, 'object_code', 32)
    if object_code is not None:
        validate_choice(object_code, OBJECT_LABELS, 'object_code')
    is_anonymous = bool(data.get('is_anonymous'))
    name = optional_text(data, 'name', 255)
    return {
        'message': message,
        'user_role': user_role,
        'type': type_,
        'department': department,
        'urgency': urgency,
        'object_code': object_code,
        'is_anonymous': is_anonymous,
        # Anonymous submissions never keep a name
        'name': None if is_anonymous else name,
        'contact': optional_text(data, 'contact', 255),
        'attachment_url': optional_text(data, 'attachment_url', 1024),
        'attachment_name': optional_text(data, 'attachment_name', 255),
    }


def create_ticket(fields: Dict[str, Any]) -> Ticket:
    session = get_db()
    t = Ticket(status=STATUS_NEW, **fields)
    if t.is_anonymous:
        t.name = None
    session.add(t)
    session.commit()
    logger.info('ticket %s created for %s', t.id, t.department)
    publish_change(KIND_INSERT, t)
    return t


# ---------- status ---------- #

def set_legacy_status(t: Ticket, status: str, sub_status: Optional[str] = None) -> Ticket:
    validate_choice(status, LEGACY_STATUSES, 'status')
    t.status = status
    # sub-status only lives while in progress
    t.sub_status = (sub_status or None) if status == STATUS_IN_PROGRESS else None
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def resolve_dynamic_status(department: str, status_id: Optional[int], substatus_id: Optional[int]):
    """Validate a (status, sub-status) pair for a department; returns the model pair."""
    session = get_db()
    st = None
    sub = None
    if status_id is not None:
        st = session.execute(select(TaskStatus).where(TaskStatus.id == status_id)).scalar_one_or_none()
        if not st or st.department != department:
            abort(400, description='task_status_id invalid')
    if substatus_id is not None:
        if st is None:
            abort(400, description='task_substatus_id requires task_status_id')
        sub = session.execute(select(TaskSubstatus).where(TaskSubstatus.id == substatus_id)).scalar_one_or_none()
        if not sub or sub.status_id != st.id:
            abort(400, description='task_substatus_id does not belong to task_status_id')
    return st, sub


def set_dynamic_status(t: Ticket, status_id: Optional[int], substatus_id: Optional[int] = None) -> Ticket:
    st, sub = resolve_dynamic_status(t.department, status_id, substatus_id)
    t.task_status = st
    t.task_substatus = sub
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def is_terminal(t: Ticket) -> bool:
    if t.task_status is not None:
        return bool(t.task_status.is_final)
    return t.status == STATUS_RESOLVED


# ---------- single field updates ---------- #

def set_deadline(t: Ticket, raw) -> Ticket:
    t.deadline = parse_datetime(raw, 'deadline')
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def set_urgency_level(t: Ticket, raw) -> Ticket:
    t.urgency_level = parse_int(raw, 'urgency_level', URGENCY_LEVELS)
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def set_assignee(t: Ticket, raw) -> Ticket:
    employee_id = parse_int(raw, 'employee_id')
    emp = None
    if employee_id is not None:
        session = get_db()
        emp = session.execute(select(Employee).where(Employee.id == employee_id)).scalar_one_or_none()
        if not emp or not emp.is_active or emp.department != t.department:
            abort(400, description='employee_id invalid')
    t.assignee = emp
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def set_final_photo(t: Ticket, url: Optional[str]) -> Ticket:
    if url and not is_terminal(t):
        abort(400, description='final photo requires a final status')
    t.final_photo_url = url or None
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def set_tracker_task_id(t: Ticket, task_id: str) -> Ticket:
    t.tracker_task_id = task_id
    get_db().commit()
    publish_change(KIND_UPDATE, t)
    return t


def redirect_ticket(t: Ticket, new_department: str) -> Ticket:
    """Move to another department in one transaction.

    Only the immediately prior department is kept; assignment and the
    department-scoped dynamic status do not carry over.
    """
    validate_choice(new_department, DEPARTMENTS, 'department')
    if new_department == t.department:
        abort(400, description='ticket already belongs to department')
    t.redirected_from = t.department
    t.redirected_at = datetime.now(timezone.utc)
    t.department = new_department
    t.assignee = None
    t.task_status = None
    t.task_substatus = None
    get_db().commit()
    # Gone from the old department's view; the new one sees an unknown id and refetches
    get_change_feed().publish(TABLE_TICKETS, KIND_DELETE, t.id, t.redirected_from)
    publish_change(KIND_UPDATE, t)
    return t


# ---------- delete ---------- #

def delete_ticket(t: Ticket):
    session = get_db()
    session.delete(t)
    session.commit()
    publish_change(KIND_DELETE, t)


def clear_all() -> int:
    session = get_db()
    removed = session.execute(delete(Ticket)).rowcount or 0
    session.commit()
    session.expunge_all()
    get_change_feed().publish(TABLE_TICKETS, KIND_RESET)
    return removed

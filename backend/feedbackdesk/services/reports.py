"""Read-only dashboard views over the ticket table."""
from __future__ import annotations
import csv
import io
from typing import Any, Dict, Optional

from sqlalchemy import func

from feedbackdesk import get_db
from feedbackdesk.constants.catalog import (
    ANONYMOUS_LABEL, DEPARTMENTS, FEEDBACK_TYPES, LEGACY_STATUSES, MEETING_MIN_LEVEL,
    OBJECT_LABELS, ROLE_LABELS, STATUS_LABELS, TYPE_LABELS, URGENCY_LEVEL_LABELS, URGENCY_LEVELS,
    department_label,
)
from feedbackdesk.models.task_status import TaskStatus
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.services.tickets import list_tickets, ticket_to_dict
from feedbackdesk.utils.validation import to_iso

RECENT_COUNT = 5
CRITICAL_LEVEL = max(URGENCY_LEVELS)
CSV_HEADERS = ['ID', 'Date', 'Role', 'Type', 'Name', 'Contact', 'Message', 'Object', 'Department', 'Status']
CSV_BOM = '\ufeff'


def _grouped(column, department: Optional[str]) -> Dict[Any, int]:
    session = get_db()
    q = session.query(column, func.count(Ticket.id))
    if department:
        q = q.filter(Ticket.department == department)
    return {key: int(count) for key, count in q.group_by(column).all()}


def latest_change(department: Optional[str] = None):
    session = get_db()
    q = session.query(func.max(func.coalesce(Ticket.updated_at, Ticket.created_at)))
    if department:
        q = q.filter(Ticket.department == department)
    return q.scalar()


def dashboard_stats(department: Optional[str] = None) -> Dict[str, Any]:
    by_status = _grouped(Ticket.status, department)
    by_type = _grouped(Ticket.type, department)
    recent = list_tickets(department)[:RECENT_COUNT]
    return {
        'department': department,
        'total': sum(by_status.values()),
        'new': by_status.get('new', 0),
        'in_progress': by_status.get('in_progress', 0),
        'resolved': by_status.get('resolved', 0),
        'by_type': [
            {'type': t, 'label': TYPE_LABELS[t], 'count': by_type.get(t, 0)} for t in FEEDBACK_TYPES
        ],
        'recent': [ticket_to_dict(t) for t in recent],
    }


def _dynamic_status_counts(department: Optional[str]):
    session = get_db()
    q = (
        session.query(TaskStatus.id, TaskStatus.name, func.count(Ticket.id))
        .join(Ticket, Ticket.task_status_id == TaskStatus.id)
    )
    if department:
        q = q.filter(Ticket.department == department)
    rows = q.group_by(TaskStatus.id, TaskStatus.name).order_by(TaskStatus.position, TaskStatus.id).all()
    return [{'id': sid, 'name': name, 'count': int(count)} for sid, name, count in rows]


def build_report(department: Optional[str] = None) -> Dict[str, Any]:
    by_type = _grouped(Ticket.type, department)
    by_status = _grouped(Ticket.status, department)
    by_level = _grouped(Ticket.urgency_level, department)
    report = {
        'department': department,
        'total': sum(by_type.values()),
        'by_type': [{'type': t, 'label': TYPE_LABELS[t], 'count': by_type.get(t, 0)} for t in FEEDBACK_TYPES],
        'by_status': [
            {'status': s, 'label': STATUS_LABELS[s], 'count': by_status.get(s, 0)} for s in LEGACY_STATUSES
        ],
        'by_dynamic_status': _dynamic_status_counts(department),
        'by_urgency_level': [
            {'level': lvl, 'label': URGENCY_LEVEL_LABELS[lvl], 'count': by_level.get(lvl, 0)}
            for lvl in URGENCY_LEVELS
        ],
        'unrated': by_level.get(None, 0),
    }
    if department is None:
        by_dept = _grouped(Ticket.department, None)
        report['by_department'] = [
            {'department': d, 'label': department_label(d), 'count': by_dept.get(d, 0)} for d in DEPARTMENTS
        ]
    return report


def meeting_agenda(department: Optional[str] = None) -> Dict[str, Any]:
    """Tickets rated for discussion (level 3 and up), critical ones split out."""
    q = get_db().query(Ticket).filter(Ticket.urgency_level >= MEETING_MIN_LEVEL)
    if department:
        q = q.filter(Ticket.department == department)
    tickets = q.order_by(Ticket.urgency_level.desc(), Ticket.created_at.desc(), Ticket.id.desc()).all()
    critical = [ticket_to_dict(t) for t in tickets if t.urgency_level == CRITICAL_LEVEL]
    high = [ticket_to_dict(t) for t in tickets if t.urgency_level != CRITICAL_LEVEL]
    return {
        'department': department,
        'total': len(tickets),
        'critical': critical,
        'high': high,
        'with_deadline': sum(1 for t in tickets if t.deadline is not None),
    }


def redirected_into(department: str):
    q = get_db().query(Ticket).filter(Ticket.department == department, Ticket.redirected_from.is_not(None))
    return q.order_by(Ticket.redirected_at.desc(), Ticket.id.desc()).all()


def export_csv(department: Optional[str] = None) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator='\n')
    writer.writerow(CSV_HEADERS)
    for t in list_tickets(department):
        writer.writerow([
            t.id,
            to_iso(t.created_at) or '',
            ROLE_LABELS.get(t.user_role, t.user_role),
            TYPE_LABELS.get(t.type, t.type),
            ANONYMOUS_LABEL if t.is_anonymous else (t.name or ''),
            t.contact or '',
            t.message,
            OBJECT_LABELS.get(t.object_code, t.object_code or ''),
            department_label(t.department),
            STATUS_LABELS.get(t.status, t.status),
        ])
    return CSV_BOM + buf.getvalue()

"""Department-defined status taxonomy.

Positions are dense integers per parent scope (department for statuses, parent
status for sub-statuses). New entries are appended after the current maximum;
deletes leave gaps and nothing is renumbered.
"""
from __future__ import annotations
from typing import Optional
from flask import abort
from sqlalchemy import select, func
from feedbackdesk import get_db
from feedbackdesk.models.task_status import TaskStatus, TaskSubstatus
from feedbackdesk.models.ticket import Ticket


def list_statuses(department: str, active_only: bool = True):
    session = get_db()
    q = select(TaskStatus).where(TaskStatus.department == department)
    if active_only:
        q = q.where(TaskStatus.is_active == True)  # noqa: E712
    return session.execute(q.order_by(TaskStatus.position.asc(), TaskStatus.id.asc())).scalars().all()


def get_status(status_id: int) -> TaskStatus:
    session = get_db()
    st = session.execute(select(TaskStatus).where(TaskStatus.id == status_id)).scalar_one_or_none()
    if not st:
        abort(404, description='status not found')
    return st


def get_substatus(substatus_id: int) -> TaskSubstatus:
    session = get_db()
    sub = session.execute(select(TaskSubstatus).where(TaskSubstatus.id == substatus_id)).scalar_one_or_none()
    if not sub:
        abort(404, description='sub-status not found')
    return sub


def _next_position(column, *criteria) -> int:
    session = get_db()
    current = session.execute(select(func.max(column)).where(*criteria)).scalar()
    return 0 if current is None else current + 1


def add_status(department: str, name: str) -> TaskStatus:
    session = get_db()
    st = TaskStatus(
        department=department,
        name=name.strip(),
        position=_next_position(TaskStatus.position, TaskStatus.department == department),
        is_final=False,
        is_active=True,
    )
    session.add(st)
    session.commit()
    return st


def update_status(st: TaskStatus, name: Optional[str] = None, is_final: Optional[bool] = None) -> TaskStatus:
    if name is not None:
        st.name = name.strip()
    if is_final is not None:
        st.is_final = bool(is_final)
    get_db().commit()
    return st


def toggle_status(st: TaskStatus) -> TaskStatus:
    st.is_active = not st.is_active
    get_db().commit()
    return st


def _status_references(status_id: int) -> int:
    session = get_db()
    return session.execute(select(func.count(Ticket.id)).where(Ticket.task_status_id == status_id)).scalar() or 0


def _substatus_references(substatus_ids) -> int:
    if not substatus_ids:
        return 0
    session = get_db()
    return session.execute(
        select(func.count(Ticket.id)).where(Ticket.task_substatus_id.in_(list(substatus_ids)))
    ).scalar() or 0


def delete_status(st: TaskStatus):
    """Hard delete, refused while any ticket points at the status or one of its children."""
    if _status_references(st.id) or _substatus_references([s.id for s in st.substatuses]):
        abort(409, description='status is referenced by tickets; deactivate it instead')
    session = get_db()
    session.delete(st)  # sub-statuses go with it (delete-orphan)
    session.commit()


def add_substatus(st: TaskStatus, name: str) -> TaskSubstatus:
    session = get_db()
    sub = TaskSubstatus(
        name=name.strip(),
        position=_next_position(TaskSubstatus.position, TaskSubstatus.status_id == st.id),
        is_active=True,
    )
    st.substatuses.append(sub)
    session.commit()
    return sub


def update_substatus(sub: TaskSubstatus, name: Optional[str] = None) -> TaskSubstatus:
    if name is not None:
        sub.name = name.strip()
    get_db().commit()
    return sub


def toggle_substatus(sub: TaskSubstatus) -> TaskSubstatus:
    sub.is_active = not sub.is_active
    get_db().commit()
    return sub


def delete_substatus(sub: TaskSubstatus):
    if _substatus_references([sub.id]):
        abort(409, description='sub-status is referenced by tickets; deactivate it instead')
    session = get_db()
    # Detach through the parent so the loaded collection stays in step (delete-orphan)
    sub.status.substatuses.remove(sub)
    session.commit()


def substatus_to_dict(sub: TaskSubstatus):
    return {
        'id': sub.id,
        'status_id': sub.status_id,
        'name': sub.name,
        'position': sub.position,
        'is_active': sub.is_active,
    }


def status_to_dict(st: TaskStatus, active_only: bool = False):
    subs = [s for s in st.substatuses if s.is_active or not active_only]
    return {
        'id': st.id,
        'department': st.department,
        'name': st.name,
        'position': st.position,
        'is_final': st.is_final,
        'is_active': st.is_active,
        'substatuses': [substatus_to_dict(s) for s in subs],
    }

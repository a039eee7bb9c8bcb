from __future__ import annotations
from typing import Any, Optional
from flask_jwt_extended import get_jwt_identity
from feedbackdesk import get_db
from feedbackdesk.models.audit import AdminActionLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None,
              old_value: Any = None, new_value: Any = None, description: Optional[str] = None):
    """Persist an admin action log entry within the current DB session.

    Parameters:
      action: short action code e.g. TICKET.STATUS.SET, STATUS.CREATE, EMPLOYEE.DEACTIVATE
      entity: optional entity name (Ticket, TaskStatus, Employee, ...)
      entity_id: optional primary key string
      old_value / new_value: JSON-safe snapshots of the changed fields
      description: free text shown in the history view
    """
    session = get_db()
    actor = None
    try:
        ident = get_jwt_identity()
        actor = int(ident) if ident is not None else None
    except Exception:
        actor = None  # no JWT context (seed scripts, background sync)
    log = AdminActionLog(
        actor_user_id=actor or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        old_value=old_value,
        new_value=new_value,
        description=description,
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log


def list_audit(limit: int = 50, entity: Optional[str] = None, entity_id: Optional[str] = None):
    session = get_db()
    q = session.query(AdminActionLog)
    if entity:
        q = q.filter(AdminActionLog.entity == entity)
    if entity_id:
        q = q.filter(AdminActionLog.entity_id == str(entity_id))
    return q.order_by(AdminActionLog.created_at.desc(), AdminActionLog.id.desc()).limit(limit).all()


def audit_to_dict(log: AdminActionLog):
    return {
        'id': log.id,
        'actor_user_id': log.actor_user_id,
        'action': log.action,
        'entity': log.entity,
        'entity_id': log.entity_id,
        'old_value': log.old_value,
        'new_value': log.new_value,
        'description': log.description,
        'created_at': log.created_at.isoformat() if log.created_at else None,
    }

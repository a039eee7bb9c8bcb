from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey
from feedbackdesk.models.authz import Base
from feedbackdesk.constants.catalog import STATUS_NEW, URGENCY_NORMAL


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


class Ticket(Base):
    __tablename__ = 'tickets'
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    # Intake fields, immutable after creation
    user_role: Mapped[str] = mapped_column(String(32), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    object_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    urgency: Mapped[str] = mapped_column(String(16), nullable=False, default=URGENCY_NORMAL)
    attachment_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    attachment_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Administrative state
    department: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_NEW, index=True)
    sub_status: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    task_status_id: Mapped[Optional[int]] = mapped_column(ForeignKey('task_statuses.id'), nullable=True, index=True)
    task_substatus_id: Mapped[Optional[int]] = mapped_column(ForeignKey('task_substatuses.id'), nullable=True, index=True)
    assigned_employee_id: Mapped[Optional[int]] = mapped_column(ForeignKey('employees.id'), nullable=True)
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    urgency_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    redirected_from: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    redirected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    final_photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    tracker_task_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    task_status = relationship('TaskStatus', foreign_keys=[task_status_id])
    task_substatus = relationship('TaskSubstatus', foreign_keys=[task_substatus_id])
    assignee = relationship('Employee', foreign_keys=[assigned_employee_id])

# Legacy flow: new -> in_progress -> resolved, every transition allowed (re-open included).
# sub_status is only kept while status == in_progress.

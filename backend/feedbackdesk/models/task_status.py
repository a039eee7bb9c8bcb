from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Boolean, ForeignKey
from feedbackdesk.models.authz import Base


class TaskStatus(Base):
    """Department-defined lifecycle stage."""
    __tablename__ = 'task_statuses'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    department: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_final: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    substatuses = relationship(
        'TaskSubstatus',
        back_populates='status',
        cascade='all, delete-orphan',
        order_by='TaskSubstatus.position',
    )


class TaskSubstatus(Base):
    __tablename__ = 'task_substatuses'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    status_id: Mapped[int] = mapped_column(ForeignKey('task_statuses.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    status = relationship('TaskStatus', back_populates='substatuses')

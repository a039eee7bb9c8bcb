from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean
from feedbackdesk.models.authz import Base

class Employee(Base):
    __tablename__ = 'employees'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    department: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    # Soft delete only: tickets keep pointing at deactivated employees
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

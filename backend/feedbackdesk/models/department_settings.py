from __future__ import annotations
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, DateTime, func
from feedbackdesk.models.authz import Base

class DepartmentSettings(Base):
    """Integration credentials per department. Every group is optional."""
    __tablename__ = 'department_settings'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    department: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    google_sheets_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    google_service_account_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    google_private_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    telegram_bot_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telegram_chat_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    bitrix_webhook_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

from __future__ import annotations
from typing import Dict, Optional
from sqlalchemy import select
from feedbackdesk import get_db
from feedbackdesk.models.department_settings import DepartmentSettings

EDITABLE_FIELDS = (
    'google_sheets_id', 'google_service_account_email', 'google_private_key',
    'telegram_bot_token', 'telegram_chat_id', 'bitrix_webhook_url',
)
SECRET_FIELDS = ('google_private_key', 'telegram_bot_token')


def get_settings(department: str) -> Optional[DepartmentSettings]:
    session = get_db()
    return session.execute(select(DepartmentSettings).where(DepartmentSettings.department == department)).scalar_one_or_none()


def list_settings():
    session = get_db()
    return session.execute(select(DepartmentSettings).order_by(DepartmentSettings.department)).scalars().all()


def save_settings(department: str, values: Dict[str, Optional[str]]) -> DepartmentSettings:
    """Upsert the settings row; blank strings are stored as None (integration disabled)."""
    session = get_db()
    row = get_settings(department)
    if row is None:
        row = DepartmentSettings(department=department)
        session.add(row)
    for key in EDITABLE_FIELDS:
        if key in values:
            val = values[key]
            if isinstance(val, str):
                val = val.strip() or None
            setattr(row, key, val)
    session.commit()
    return row


def settings_to_dict(row: DepartmentSettings, reveal_secrets: bool = False):
    out = {'department': row.department}
    for key in EDITABLE_FIELDS:
        val = getattr(row, key)
        if key in SECRET_FIELDS and val and not reveal_secrets:
            val = '***'
        out[key] = val
    out['integrations'] = {
        'sheets': bool(row.google_sheets_id),
        'chat': bool(row.telegram_bot_token and row.telegram_chat_id),
        'tracker': bool(row.bitrix_webhook_url),
    }
    return out

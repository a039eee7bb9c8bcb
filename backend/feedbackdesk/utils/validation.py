"""Reusable validation helpers for request payloads.

All helpers abort with 400 and a field-specific description so validation errors
surface before any store write or network call.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from flask import abort


def validate_choice(value: Any, allowed: Iterable, field_name: str = 'status'):
    """Validate that value is inside allowed.

    Returns the value (to enable inline usage) or aborts with 400.
    """
    if value not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value


def require_text(data: dict, field_name: str, max_len: Optional[int] = None) -> str:
    raw = data.get(field_name)
    if not isinstance(raw, str) or not raw.strip():
        abort(400, description=f"{field_name} required")
    value = raw.strip()
    if max_len and len(value) > max_len:
        abort(400, description=f"{field_name} too long")
    return value


def optional_text(data: dict, field_name: str, max_len: Optional[int] = None) -> Optional[str]:
    raw = data.get(field_name)
    if raw is None:
        return None
    if not isinstance(raw, str):
        abort(400, description=f"{field_name} invalid")
    value = raw.strip()
    if max_len and len(value) > max_len:
        abort(400, description=f"{field_name} too long")
    return value or None


def parse_datetime(raw: Any, field_name: str) -> Optional[datetime]:
    """ISO 8601 (trailing Z allowed) -> tz-aware UTC datetime; None/'' clears."""
    if raw in (None, ''):
        return None
    if not isinstance(raw, str):
        abort(400, description=f"{field_name} invalid")
    try:
        dt = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except ValueError:
        abort(400, description=f"{field_name} invalid")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_int(raw: Any, field_name: str, allowed: Optional[Iterable[int]] = None) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        abort(400, description=f"{field_name} invalid")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        abort(400, description=f"{field_name} invalid")
    if allowed is not None and value not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """UTC ISO string with Z suffix; naive values (SQLite) are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')

__all__ = ['validate_choice', 'require_text', 'optional_text', 'parse_datetime', 'parse_int', 'to_iso']

"""Fixed catalogues shared by intake, admin views and the external mirrors.

Codes are stored in the database; labels are what people see in the spreadsheet,
chat messages and CSV export. Never rename a code silently: rows in external
spreadsheets and historic log entries refer to them.
"""
from __future__ import annotations
from typing import Dict, List, Optional

USER_ROLES = ['employee', 'client', 'contractor', 'resident']
ROLE_LABELS = {
    'employee': 'Employee',
    'client': 'Client',
    'contractor': 'Contractor',
    'resident': 'Apartment owner',
}

FEEDBACK_TYPES = ['remark', 'suggestion', 'safety', 'gratitude']
TYPE_LABELS = {
    'remark': 'Remark',
    'suggestion': 'Suggestion',
    'safety': 'Safety',
    'gratitude': 'Gratitude',
}
TYPE_EMOJI = {
    'remark': '\U0001F534',      # red circle
    'suggestion': '\U0001F535',  # blue circle
    'safety': '\U0001F7E0',      # orange circle
    'gratitude': '\U0001F7E2',   # green circle
}

DEPARTMENTS = [
    'management', 'reception', 'sales', 'hr', 'marketing',
    'favorites_ssl', 'construction_tech', 'other',
]
DEPARTMENT_LABELS = {
    'management': 'Management',
    'reception': 'Reception',
    'sales': 'Sales',
    'hr': 'HR',
    'marketing': 'Marketing',
    'favorites_ssl': 'Favorites - SSL',
    'construction_tech': 'Construction - Technical',
    'other': 'Other',
}

RESIDENTIAL_OBJECTS: List[Dict[str, str]] = [
    {'code': 'OFC_ART', 'name': 'Artwin office'},
    {'code': 'TKY', 'name': 'Tokyo residential complex'},
    {'code': 'EST', 'name': 'Esentai residential complex'},
    {'code': 'TKC', 'name': 'Tokyo City residential complex'},
    {'code': 'SEL', 'name': 'Seoul business center'},
    {'code': 'HYT', 'name': 'Hayat residential complex'},
    {'code': 'URP', 'name': 'Urpak residential complex'},
    {'code': 'WLT', 'name': 'Wilton Park residential complex'},
    {'code': 'LND', 'name': 'London residential complex'},
    {'code': 'S_UCH', 'name': 'Social project: Umut Chyragy kindergarten'},
]
OBJECT_LABELS = {o['code']: o['name'] for o in RESIDENTIAL_OBJECTS}

# Legacy three-state lifecycle
STATUS_NEW = 'new'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_RESOLVED = 'resolved'
LEGACY_STATUSES = (STATUS_NEW, STATUS_IN_PROGRESS, STATUS_RESOLVED)
STATUS_LABELS = {
    STATUS_NEW: 'New',
    STATUS_IN_PROGRESS: 'In Progress',
    STATUS_RESOLVED: 'Resolved',
}
# Spreadsheet text -> legacy status. Compared case-insensitively.
LEGACY_STATUS_ALIASES = {
    'new': STATUS_NEW,
    'новая': STATUS_NEW,
    'in progress': STATUS_IN_PROGRESS,
    'in_progress': STATUS_IN_PROGRESS,
    'в работе': STATUS_IN_PROGRESS,
    'resolved': STATUS_RESOLVED,
    'решена': STATUS_RESOLVED,
}

URGENCY_NORMAL = 'normal'
URGENCY_URGENT = 'urgent'
URGENCIES = (URGENCY_NORMAL, URGENCY_URGENT)
URGENCY_LABELS = {URGENCY_NORMAL: 'Normal', URGENCY_URGENT: 'Urgent'}

URGENCY_LEVELS = (1, 2, 3, 4)
URGENCY_LEVEL_LABELS = {1: 'Low', 2: 'Medium', 3: 'High', 4: 'Critical'}
MEETING_MIN_LEVEL = 3

ANONYMOUS_LABEL = 'Anonymous'


def department_label(code: Optional[str]) -> str:
    if not code:
        return ''
    return DEPARTMENT_LABELS.get(code, code)


def urgency_level_label(level: Optional[int]) -> str:
    if level is None:
        return ''
    return URGENCY_LEVEL_LABELS.get(level, str(level))


def resolve_legacy_status(text: str) -> Optional[str]:
    return LEGACY_STATUS_ALIASES.get((text or '').strip().lower())


__all__ = [
    'USER_ROLES', 'ROLE_LABELS', 'FEEDBACK_TYPES', 'TYPE_LABELS', 'TYPE_EMOJI',
    'DEPARTMENTS', 'DEPARTMENT_LABELS', 'RESIDENTIAL_OBJECTS', 'OBJECT_LABELS',
    'STATUS_NEW', 'STATUS_IN_PROGRESS', 'STATUS_RESOLVED', 'LEGACY_STATUSES', 'STATUS_LABELS',
    'URGENCY_NORMAL', 'URGENCY_URGENT', 'URGENCIES', 'URGENCY_LABELS',
    'URGENCY_LEVELS', 'URGENCY_LEVEL_LABELS', 'MEETING_MIN_LEVEL', 'ANONYMOUS_LABEL',
    'department_label', 'urgency_level_label', 'resolve_legacy_status',
]

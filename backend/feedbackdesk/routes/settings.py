from __future__ import annotations
from flask import Blueprint, request, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.decorators.audit import audit_log
from feedbackdesk.services.policy import sees_all_departments, current_department
from feedbackdesk.services.department_settings import (
    EDITABLE_FIELDS, SECRET_FIELDS, get_settings, list_settings, save_settings, settings_to_dict,
)
from feedbackdesk.constants.catalog import DEPARTMENTS, department_label
from feedbackdesk.integrations.google_auth import normalize_private_key
from feedbackdesk.integrations.errors import CredentialsError
from feedbackdesk.integrations.sheets import extract_spreadsheet_id

settings_bp = Blueprint('settings', __name__)


def _masked(a, kw):
    row = get_settings(kw['department'])
    return settings_to_dict(row) if row else None


def _describe(data, a, kw):
    return f"Integration settings saved for {department_label(kw['department'])}"


@settings_bp.get('')
@require_permissions('SET.MANAGE')
def list_department_settings():
    rows = {r.department: r for r in list_settings()}
    departments = DEPARTMENTS if sees_all_departments() else [current_department()]
    out = []
    for dept in departments:
        row = rows.get(dept)
        out.append(settings_to_dict(row) if row else {'department': dept, 'integrations': {'sheets': False, 'chat': False, 'tracker': False}})
    return {'data': out}


@settings_bp.get('/<department>')
@require_permissions('SET.MANAGE', department_arg='department')
def get_department_settings(department: str):
    if department not in DEPARTMENTS:
        abort(404, description='department not found')
    row = get_settings(department)
    if not row:
        return {'department': department, 'integrations': {'sheets': False, 'chat': False, 'tracker': False}}
    return settings_to_dict(row)


@settings_bp.put('/<department>')
@require_permissions('SET.MANAGE', department_arg='department')
@audit_log('SETTINGS.UPDATE', entity='DepartmentSettings', entity_id_arg='department', diff_keys=list(EDITABLE_FIELDS), pre_fetch=_masked, description_builder=_describe)
def put_department_settings(department: str):
    if department not in DEPARTMENTS:
        abort(404, description='department not found')
    data = request.json or {}
    values = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        val = data[key]
        if val is not None and not isinstance(val, str):
            abort(400, description=f'{key} invalid')
        # The masked placeholder echoed back by a client means "unchanged"
        if key in SECRET_FIELDS and val == '***':
            continue
        values[key] = val
    if values.get('google_sheets_id'):
        values['google_sheets_id'] = extract_spreadsheet_id(values['google_sheets_id'])
    if values.get('google_private_key'):
        try:
            values['google_private_key'] = normalize_private_key(values['google_private_key'])
        except CredentialsError as e:
            abort(400, description=str(e))
    row = save_settings(department, values)
    return settings_to_dict(row)

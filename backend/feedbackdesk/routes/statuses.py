from __future__ import annotations
from flask import Blueprint, request, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.decorators.audit import audit_log
from feedbackdesk.services.policy import assert_department_access, scoped_department
from feedbackdesk.services import taxonomy
from feedbackdesk.services.events import TABLE_STATUSES, KIND_INSERT, KIND_UPDATE, KIND_DELETE
from feedbackdesk.constants.catalog import DEPARTMENTS
from feedbackdesk.utils.validation import require_text, validate_choice
from feedbackdesk import get_change_feed

statuses_bp = Blueprint('statuses', __name__)

NAME_MAX = 100


def _announce(kind: str, entity_id):
    # Taxonomy edits make open dashboards refetch
    get_change_feed().publish(TABLE_STATUSES, kind, str(entity_id), None)


def _status(status_id: int):
    st = taxonomy.get_status(status_id)
    assert_department_access(st.department)
    return st


def _substatus(substatus_id: int):
    sub = taxonomy.get_substatus(substatus_id)
    assert_department_access(sub.status.department)
    return sub


def _status_snapshot(a, kw):
    st = taxonomy.get_status(kw['status_id'])
    return {'name': st.name, 'is_final': st.is_final, 'is_active': st.is_active}


def _substatus_snapshot(a, kw):
    sub = taxonomy.get_substatus(kw['substatus_id'])
    return {'name': sub.name, 'is_active': sub.is_active}


@statuses_bp.get('')
@require_permissions('FB.READ')
def list_statuses():
    department = scoped_department(request.args.get('department'))
    if not department:
        abort(400, description='department required')
    # Ticket-facing pickers ask for active entries only; the editor wants everything
    active_only = request.args.get('active_only', 'true') != 'false'
    rows = taxonomy.list_statuses(department, active_only=active_only)
    return {'department': department, 'data': [taxonomy.status_to_dict(s, active_only) for s in rows]}


@statuses_bp.post('')
@require_permissions('STS.MANAGE')
@audit_log('STATUS.CREATE', entity='TaskStatus', entity_id_key='id', new_keys=['department', 'name', 'position'])
def create_status():
    data = request.json or {}
    department = validate_choice(data.get('department'), DEPARTMENTS, 'department')
    assert_department_access(department)
    st = taxonomy.add_status(department, require_text(data, 'name', NAME_MAX))
    _announce(KIND_INSERT, st.id)
    return taxonomy.status_to_dict(st), 201


@statuses_bp.patch('/<int:status_id>')
@require_permissions('STS.MANAGE')
@audit_log('STATUS.UPDATE', entity='TaskStatus', entity_id_key='id', diff_keys=['name', 'is_final'], pre_fetch=_status_snapshot)
def update_status(status_id: int):
    data = request.json or {}
    st = _status(status_id)
    name = require_text(data, 'name', NAME_MAX) if 'name' in data else None
    is_final = data.get('is_final')
    if is_final is not None and not isinstance(is_final, bool):
        abort(400, description='is_final invalid')
    taxonomy.update_status(st, name=name, is_final=is_final)
    _announce(KIND_UPDATE, st.id)
    return taxonomy.status_to_dict(st)


@statuses_bp.post('/<int:status_id>/toggle')
@require_permissions('STS.MANAGE')
@audit_log('STATUS.TOGGLE', entity='TaskStatus', entity_id_key='id', diff_keys=['is_active'], pre_fetch=_status_snapshot)
def toggle_status(status_id: int):
    st = _status(status_id)
    taxonomy.toggle_status(st)
    _announce(KIND_UPDATE, st.id)
    return taxonomy.status_to_dict(st)


@statuses_bp.delete('/<int:status_id>')
@require_permissions('STS.MANAGE')
@audit_log('STATUS.DELETE', entity='TaskStatus', entity_id_arg='status_id', pre_fetch=_status_snapshot)
def delete_status(status_id: int):
    st = _status(status_id)
    taxonomy.delete_status(st)
    _announce(KIND_DELETE, status_id)
    return {'id': status_id, 'deleted': True}


@statuses_bp.post('/<int:status_id>/substatuses')
@require_permissions('STS.MANAGE')
@audit_log('SUBSTATUS.CREATE', entity='TaskSubstatus', entity_id_key='id', new_keys=['status_id', 'name', 'position'])
def create_substatus(status_id: int):
    data = request.json or {}
    st = _status(status_id)
    sub = taxonomy.add_substatus(st, require_text(data, 'name', NAME_MAX))
    _announce(KIND_INSERT, st.id)
    return taxonomy.substatus_to_dict(sub), 201


@statuses_bp.patch('/substatuses/<int:substatus_id>')
@require_permissions('STS.MANAGE')
@audit_log('SUBSTATUS.UPDATE', entity='TaskSubstatus', entity_id_key='id', diff_keys=['name'], pre_fetch=_substatus_snapshot)
def update_substatus(substatus_id: int):
    data = request.json or {}
    sub = _substatus(substatus_id)
    taxonomy.update_substatus(sub, name=require_text(data, 'name', NAME_MAX))
    _announce(KIND_UPDATE, sub.status_id)
    return taxonomy.substatus_to_dict(sub)


@statuses_bp.post('/substatuses/<int:substatus_id>/toggle')
@require_permissions('STS.MANAGE')
@audit_log('SUBSTATUS.TOGGLE', entity='TaskSubstatus', entity_id_key='id', diff_keys=['is_active'], pre_fetch=_substatus_snapshot)
def toggle_substatus(substatus_id: int):
    sub = _substatus(substatus_id)
    taxonomy.toggle_substatus(sub)
    _announce(KIND_UPDATE, sub.status_id)
    return taxonomy.substatus_to_dict(sub)


@statuses_bp.delete('/substatuses/<int:substatus_id>')
@require_permissions('STS.MANAGE')
@audit_log('SUBSTATUS.DELETE', entity='TaskSubstatus', entity_id_arg='substatus_id', pre_fetch=_substatus_snapshot)
def delete_substatus(substatus_id: int):
    sub = _substatus(substatus_id)
    status_id = sub.status_id
    taxonomy.delete_substatus(sub)
    _announce(KIND_DELETE, status_id)
    return {'id': substatus_id, 'deleted': True}

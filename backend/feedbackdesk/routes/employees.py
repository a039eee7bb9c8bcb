from __future__ import annotations
from flask import Blueprint, request, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.decorators.audit import audit_log
from feedbackdesk.services.policy import assert_department_access, scoped_department
from feedbackdesk.services import employees as directory
from feedbackdesk.constants.catalog import DEPARTMENTS
from feedbackdesk.utils.validation import optional_text, require_text, validate_choice

employees_bp = Blueprint('employees', __name__)


def _load(employee_id: int):
    emp = directory.get_employee(employee_id)
    assert_department_access(emp.department)
    return emp


def _snapshot(a, kw):
    return directory.employee_to_dict(directory.get_employee(kw['employee_id']))


@employees_bp.get('')
@require_permissions('FB.READ')
def list_employees():
    department = scoped_department(request.args.get('department'))
    include_inactive = request.args.get('include_inactive') == 'true'
    rows = directory.list_employees(department, include_inactive=include_inactive)
    return {'data': [directory.employee_to_dict(e) for e in rows]}


@employees_bp.post('')
@require_permissions('EMP.MANAGE')
@audit_log('EMPLOYEE.CREATE', entity='Employee', entity_id_key='id', new_keys=['name', 'department', 'position'])
def create_employee():
    data = request.json or {}
    department = validate_choice(data.get('department'), DEPARTMENTS, 'department')
    assert_department_access(department)
    emp = directory.add_employee(
        require_text(data, 'name', 255),
        department,
        email=optional_text(data, 'email', 255),
        position=optional_text(data, 'position', 255),
    )
    return directory.employee_to_dict(emp), 201


@employees_bp.patch('/<int:employee_id>')
@require_permissions('EMP.MANAGE')
@audit_log('EMPLOYEE.UPDATE', entity='Employee', entity_id_key='id', diff_keys=['name', 'email', 'position'], pre_fetch=_snapshot)
def update_employee(employee_id: int):
    data = request.json or {}
    emp = _load(employee_id)
    fields = {}
    if 'name' in data:
        fields['name'] = require_text(data, 'name', 255)
    for key in ('email', 'position'):
        if key in data:
            fields[key] = optional_text(data, key, 255)
    if not fields:
        abort(400, description='nothing to update')
    directory.update_employee(emp, **fields)
    return directory.employee_to_dict(emp)


@employees_bp.post('/<int:employee_id>/deactivate')
@require_permissions('EMP.MANAGE')
@audit_log('EMPLOYEE.DEACTIVATE', entity='Employee', entity_id_key='id', diff_keys=['is_active'], pre_fetch=_snapshot)
def deactivate_employee(employee_id: int):
    emp = _load(employee_id)
    directory.set_active(emp, False)
    return directory.employee_to_dict(emp)


@employees_bp.post('/<int:employee_id>/activate')
@require_permissions('EMP.MANAGE')
@audit_log('EMPLOYEE.ACTIVATE', entity='Employee', entity_id_key='id', diff_keys=['is_active'], pre_fetch=_snapshot)
def activate_employee(employee_id: int):
    emp = _load(employee_id)
    directory.set_active(emp, True)
    return directory.employee_to_dict(emp)

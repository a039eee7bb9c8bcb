from __future__ import annotations
from typing import Optional
from flask import abort
from sqlalchemy import select
from feedbackdesk import get_db
from feedbackdesk.models.employee import Employee


def list_employees(department: Optional[str] = None, include_inactive: bool = False):
    session = get_db()
    q = select(Employee)
    if not include_inactive:
        q = q.where(Employee.is_active == True)  # noqa: E712
    if department:
        q = q.where(Employee.department == department)
    return session.execute(q.order_by(Employee.name.asc(), Employee.id.asc())).scalars().all()


def get_employee(employee_id: int) -> Employee:
    session = get_db()
    emp = session.execute(select(Employee).where(Employee.id == employee_id)).scalar_one_or_none()
    if not emp:
        abort(404, description='employee not found')
    return emp


def add_employee(name: str, department: str, email: Optional[str] = None, position: Optional[str] = None) -> Employee:
    session = get_db()
    emp = Employee(name=name.strip(), department=department, email=email or None, position=position or None, is_active=True)
    session.add(emp)
    session.commit()
    return emp


def update_employee(emp: Employee, **fields) -> Employee:
    if fields.get('name'):
        emp.name = fields['name'].strip()
    for key in ('email', 'position'):
        if key in fields:
            setattr(emp, key, fields[key] or None)
    get_db().commit()
    return emp


def set_active(emp: Employee, active: bool) -> Employee:
    # Soft delete only: tickets may still reference this employee
    emp.is_active = active
    get_db().commit()
    return emp


def employee_to_dict(emp: Employee):
    return {
        'id': emp.id,
        'name': emp.name,
        'email': emp.email,
        'position': emp.position,
        'department': emp.department,
        'is_active': emp.is_active,
    }

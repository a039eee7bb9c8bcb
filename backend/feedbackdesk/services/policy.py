from __future__ import annotations
from typing import Optional, Set
from flask import abort, current_app
from flask_jwt_extended import get_jwt
from sqlalchemy import select
from feedbackdesk.models.authz import UserRole, RolePermission, Permission, Role
from feedbackdesk import get_db


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)


def compute_effective_permissions(user_id: int):
    session = get_db()
    role_ids = {r.role_id for r in session.execute(select(UserRole).where(UserRole.user_id==user_id)).scalars()}
    perm_codes = set()
    if role_ids:
        role_perms = session.execute(select(RolePermission).where(RolePermission.role_id.in_(role_ids))).scalars().all()
        perm_ids = [rp.permission_id for rp in role_perms]
        if perm_ids:
            for p in session.execute(select(Permission).where(Permission.id.in_(perm_ids))).scalars():
                perm_codes.add(p.code)
    # Owner wildcard support (if role named Owner present)
    owner_role = session.execute(select(Role).where(Role.name=='Owner')).scalar_one_or_none()
    if owner_role and owner_role.id in role_ids:
        for p in session.execute(select(Permission)).scalars():
            perm_codes.add(p.code)
    return {
        'roles': sorted(role_ids),
        'perms': sorted(perm_codes),
    }


def oversight_department() -> str:
    return current_app.config['OVERSIGHT_DEPARTMENT']


def current_department() -> Optional[str]:
    return get_jwt().get('department')


def sees_all_departments() -> bool:
    """Oversight admins see every department's tickets."""
    return current_department() == oversight_department()


def scoped_department(requested: Optional[str] = None) -> Optional[str]:
    """Resolve the department filter for a list view.

    Oversight admins may pass any department (or none for all); everyone else is
    pinned to their own department.
    """
    if sees_all_departments():
        return requested or None
    own = current_department()
    if requested and requested != own:
        abort(403, description='Department access denied')
    return own


def assert_department_access(department: str):
    if sees_all_departments():
        return
    if department != current_department():
        abort(403, description='Department access denied')

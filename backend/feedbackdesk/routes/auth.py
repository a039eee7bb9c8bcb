from __future__ import annotations
from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from sqlalchemy import select
from feedbackdesk import get_db
from feedbackdesk.models.authz import User
from feedbackdesk.services.policy import compute_effective_permissions, oversight_department
from feedbackdesk.constants.catalog import department_label

auth_bp = Blueprint('auth', __name__)


def _user_json(user: User, eff):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'department': user.department,
        'department_label': department_label(user.department),
        'sees_all_departments': user.department == oversight_department(),
        'roles': eff['roles'],
        'perms': eff['perms'],
    }


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        abort(401, description='invalid credentials')
    eff = compute_effective_permissions(user.id)
    # A valid account without any admin permission is not let in
    if not eff['perms']:
        abort(403, description='account has no admin access')
    claims = {
        'roles': eff['roles'],
        'perms': eff['perms'],
        'department': user.department,
    }
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=claims)
    return {'access_token': token, 'user': _user_json(user, eff)}


@auth_bp.get('/me')
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    session = get_db()
    user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user or not user.is_active:
        abort(404)
    return _user_json(user, compute_effective_permissions(user.id))

#!/usr/bin/env python
"""Idempotent seed script: permissions, roles, one admin per department, settings rows.

Usage:
    python backend/scripts/seed.py               # seed normally
    python backend/scripts/seed.py --show-roles  # print role -> permission counts (after ensuring seed)
    python backend/scripts/seed.py --dry-run     # run logic then rollback (no DB changes)
    python backend/scripts/seed.py --validate    # exit 2 when stored codes drift from the catalogue

Admin accounts are ``<department>@<SEED_EMAIL_DOMAIN>`` with the password from
``SEED_ADMIN_PASSWORD``. The oversight department's admin gets the Owner role,
everyone else DepartmentAdmin.
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from feedbackdesk import create_app, get_db  # type: ignore
from feedbackdesk.models.authz import Base, Permission, Role, RolePermission, User, UserRole
from feedbackdesk.models.department_settings import DepartmentSettings
from feedbackdesk.constants.catalog import DEPARTMENTS
from feedbackdesk.constants.permissions import SERVICE_ACTIONS, ROLE_PRESETS, build_all_permission_codes

DEFAULT_EMAIL_DOMAIN = 'example.com'
DEFAULT_PASSWORD = 'ChangeMe123!'


def ensure_permissions(session):
    existing = {p.code for p in session.execute(select(Permission)).scalars().all()}
    created = 0
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            code = f"{svc}.{act}"
            if code not in existing:
                session.add(Permission(code=code, service=svc, action=act, description_i18n={"en": code.replace('.', ' - ')}))
                created += 1
    session.flush()
    return created


def ensure_roles(session):
    existing_roles = {r.name: r for r in session.execute(select(Role)).scalars().all()}
    created = 0
    for role_name in ROLE_PRESETS:
        if role_name not in existing_roles:
            role = Role(name=role_name, is_system=True)
            session.add(role)
            existing_roles[role_name] = role
            created += 1
    session.flush()

    all_codes = set(build_all_permission_codes())
    perms_map = {p.code: p for p in session.execute(select(Permission)).scalars()}
    for role_name, raw_codes in ROLE_PRESETS.items():
        role = existing_roles[role_name]
        desired = all_codes if '*' in raw_codes else set(raw_codes)
        current = {
            code for code in session.execute(
                select(Permission.code).join(RolePermission, RolePermission.permission_id == Permission.id)
                .where(RolePermission.role_id == role.id)
            ).scalars()
        }
        for code in sorted(desired - current):
            if code not in perms_map:
                print(f"[WARN] Missing permission referenced by role {role_name}: {code}")
                continue
            session.add(RolePermission(role_id=role.id, permission_id=perms_map[code].id))
    session.flush()
    return created


def ensure_department_admins(session, oversight: str, domain: str, password: str):
    roles = {r.name: r for r in session.execute(select(Role)).scalars().all()}
    created = []
    for dept in DEPARTMENTS:
        email = f'{dept}@{domain}'.lower()
        if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
            continue
        role = roles['Owner' if dept == oversight else 'DepartmentAdmin']
        user = User(name=f'{dept} admin', email=email, department=dept, password_hash='')
        user.set_password(password)
        session.add(user)
        session.flush()
        session.add(UserRole(user_id=user.id, role_id=role.id))
        created.append(email)
    session.flush()
    return created


def ensure_settings_rows(session):
    existing = {s.department for s in session.execute(select(DepartmentSettings)).scalars()}
    created = 0
    for dept in DEPARTMENTS:
        if dept not in existing:
            session.add(DepartmentSettings(department=dept))
            created += 1
    session.flush()
    return created


def validate(session):
    problems = []
    for code in session.execute(select(Permission.code)).scalars().all():
        svc, _, action = code.partition('.')
        if svc not in SERVICE_ACTIONS:
            problems.append(f"Unknown service '{svc}' in code: {code}")
        elif action not in SERVICE_ACTIONS[svc]:
            problems.append(f"Unknown action '{action}' for service '{svc}' in code: {code}")
    return problems


def seed(session, oversight: str, domain: str = DEFAULT_EMAIL_DOMAIN, password: str = DEFAULT_PASSWORD):
    return {
        'permissions': ensure_permissions(session),
        'roles': ensure_roles(session),
        'admins': ensure_department_admins(session, oversight, domain, password),
        'settings': ensure_settings_rows(session),
    }


def print_role_summary(session):
    rows = []
    for role in session.execute(select(Role)).scalars().all():
        perms = sorted(rp.permission.code for rp in role.permissions)
        rows.append((role.name, len(perms), perms[:8]))
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, cnt, sample in rows:
        print(f"{name.ljust(name_w)} | {str(cnt).rjust(5)} | {', '.join(sample)}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed permissions, roles, department admins and settings rows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed.py\n  dry run: seed.py --dry-run\n  show roles: seed.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--validate', action='store_true', help='Validate stored permission codes; exits non-zero on problems')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM permissions LIMIT 1'))
        except Exception:
            # Bootstrap fallback when migrations have not been run yet
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        session.commit()

        try:
            result = seed(
                session,
                app.config['OVERSIGHT_DEPARTMENT'],
                os.getenv('SEED_EMAIL_DOMAIN', DEFAULT_EMAIL_DOMAIN),
                os.getenv('SEED_ADMIN_PASSWORD', DEFAULT_PASSWORD),
            )
            if args.validate:
                problems = validate(session)
                if problems:
                    print('\n[VALIDATION] FAIL:')
                    for p in problems:
                        print(' -', p)
                    session.rollback()
                    sys.exit(2)
                print('[VALIDATION] OK: All permission codes valid.')
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) would create: {result}")
            else:
                session.commit()
                print(f"[DONE] Permissions: {result['permissions']}, Roles: {result['roles']}, Settings rows: {result['settings']}")
                for email in result['admins']:
                    print(f"[INFO] Created admin {email} with temporary password.")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()

"""initial schema: admin accounts, tickets, status taxonomy, employees, settings, action log

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=64), nullable=False, unique=True),
        sa.Column('service', sa.String(length=32), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description_i18n', sa.JSON(), nullable=True)
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'])
    op.create_index('ix_permissions_service', 'permissions', ['service'])

    op.create_table('roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default=sa.text('0'))
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('department', sa.String(length=32), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_department', 'users', ['department'])

    op.create_table('role_permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('role_id', 'permission_id', name='uq_role_permission')
    )

    op.create_table('user_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('user_id', 'role_id', name='uq_user_role')
    )

    op.create_table('admin_action_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_admin_action_logs_actor_user_id', 'admin_action_logs', ['actor_user_id'])
    op.create_index('ix_admin_action_logs_action', 'admin_action_logs', ['action'])
    op.create_index('ix_admin_action_logs_entity_id', 'admin_action_logs', ['entity_id'])

    op.create_table('task_statuses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_final', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1'))
    )
    op.create_index('ix_task_statuses_department', 'task_statuses', ['department'])

    op.create_table('task_substatuses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('status_id', sa.Integer(), sa.ForeignKey('task_statuses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1'))
    )
    op.create_index('ix_task_substatuses_status_id', 'task_substatuses', ['status_id'])

    op.create_table('employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=True),
        sa.Column('position', sa.String(length=128), nullable=True),
        sa.Column('department', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1'))
    )
    op.create_index('ix_employees_department', 'employees', ['department'])

    op.create_table('department_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department', sa.String(length=32), nullable=False, unique=True),
        sa.Column('google_sheets_id', sa.String(length=255), nullable=True),
        sa.Column('google_service_account_email', sa.String(length=255), nullable=True),
        sa.Column('google_private_key', sa.Text(), nullable=True),
        sa.Column('telegram_bot_token', sa.String(length=255), nullable=True),
        sa.Column('telegram_chat_id', sa.String(length=64), nullable=True),
        sa.Column('bitrix_webhook_url', sa.String(length=512), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )

    op.create_table('tickets',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_role', sa.String(length=32), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('contact', sa.String(length=255), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('object_code', sa.String(length=32), nullable=True),
        sa.Column('urgency', sa.String(length=16), nullable=False, server_default='normal'),
        sa.Column('attachment_url', sa.String(length=1024), nullable=True),
        sa.Column('attachment_name', sa.String(length=255), nullable=True),
        sa.Column('department', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='new'),
        sa.Column('sub_status', sa.String(length=255), nullable=True),
        sa.Column('task_status_id', sa.Integer(), sa.ForeignKey('task_statuses.id'), nullable=True),
        sa.Column('task_substatus_id', sa.Integer(), sa.ForeignKey('task_substatuses.id'), nullable=True),
        sa.Column('assigned_employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=True),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('urgency_level', sa.Integer(), nullable=True),
        sa.Column('redirected_from', sa.String(length=32), nullable=True),
        sa.Column('redirected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('final_photo_url', sa.String(length=1024), nullable=True),
        sa.Column('tracker_task_id', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False)
    )
    op.create_index('ix_tickets_created_at', 'tickets', ['created_at'])
    op.create_index('ix_tickets_type', 'tickets', ['type'])
    op.create_index('ix_tickets_department', 'tickets', ['department'])
    op.create_index('ix_tickets_status', 'tickets', ['status'])
    op.create_index('ix_tickets_task_status_id', 'tickets', ['task_status_id'])
    op.create_index('ix_tickets_task_substatus_id', 'tickets', ['task_substatus_id'])


def downgrade():
    op.drop_table('tickets')
    op.drop_table('department_settings')
    op.drop_table('employees')
    op.drop_table('task_substatuses')
    op.drop_table('task_statuses')
    op.drop_index('ix_admin_action_logs_entity_id', table_name='admin_action_logs')
    op.drop_index('ix_admin_action_logs_action', table_name='admin_action_logs')
    op.drop_index('ix_admin_action_logs_actor_user_id', table_name='admin_action_logs')
    op.drop_table('admin_action_logs')
    op.drop_table('user_roles')
    op.drop_table('role_permissions')
    op.drop_index('ix_users_department', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_permissions_service', table_name='permissions')
    op.drop_index('ix_permissions_code', table_name='permissions')
    op.drop_table('permissions')

"""create_stewardship_schema

Revision ID: 4b7e1c9a2d10
Revises:
Create Date: 2026-10-17 09:12:31.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b7e1c9a2d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, catalog, group, role, audit and notification tables."""
    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_decommissioned', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sessions_revoked_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_created_at', 'users', ['created_at'], unique=False)

    # --- Permission catalog ---
    op.create_table('permissions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('role_templates',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('role_template_permissions',
        sa.Column('template_id', sa.UUID(), nullable=False),
        sa.Column('permission_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['role_templates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('template_id', 'permission_id'),
    )

    # --- Groups and memberships ---
    op.create_table('groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False, server_default='engagement'),
        sa.Column('visibility', sa.String(length=20), nullable=False, server_default='private'),
        sa.Column('show_member_list', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("kind IN ('personal', 'engagement', 'system')", name='ck_groups_kind'),
        sa.CheckConstraint("visibility IN ('public', 'private')", name='ck_groups_visibility'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_groups_kind', 'groups', ['kind'], unique=False)

    op.create_table('group_memberships',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='invited'),
        sa.Column('added_by_user_id', sa.UUID(), nullable=True),
        sa.Column('added_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status IN ('invited', 'active', 'paused', 'removed')",
            name='ck_group_memberships_status',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['added_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_memberships_group_user'),
    )
    op.create_index('ix_group_memberships_group_id', 'group_memberships', ['group_id'], unique=False)
    op.create_index('ix_group_memberships_user_id', 'group_memberships', ['user_id'], unique=False)

    # --- Roles and grants ---
    op.create_table('group_roles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('source_template_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_template_id'], ['role_templates.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_group_roles_group_id', 'group_roles', ['group_id'], unique=False)
    op.create_index('uq_group_roles_group_name', 'group_roles', ['group_id', 'name'], unique=True)

    op.create_table('group_role_permissions',
        sa.Column('role_id', sa.UUID(), nullable=False),
        sa.Column('permission_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['group_roles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('role_id', 'permission_id'),
    )

    op.create_table('user_group_roles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('role_id', sa.UUID(), nullable=False),
        sa.Column('assigned_by_user_id', sa.UUID(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['role_id'], ['group_roles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'group_id', 'role_id', name='uq_user_group_roles'),
    )
    op.create_index('ix_user_group_roles_user_id', 'user_group_roles', ['user_id'], unique=False)
    op.create_index('ix_user_group_roles_group_id', 'user_group_roles', ['group_id'], unique=False)
    op.create_index('ix_user_group_roles_role_id', 'user_group_roles', ['role_id'], unique=False)

    # --- Audit log ---
    op.create_table('admin_audit_log',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('actor_user_id', sa.UUID(), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('target', sa.String(length=255), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_audit_log_actor_user_id', 'admin_audit_log', ['actor_user_id'], unique=False)
    op.create_index('ix_admin_audit_log_action', 'admin_audit_log', ['action'], unique=False)
    op.create_index('ix_admin_audit_log_created_at', 'admin_audit_log', ['created_at'], unique=False)

    # --- Notifications ---
    op.create_table('notifications',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('sender_id', sa.UUID(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("kind IN ('message', 'notification')", name='ck_notifications_kind'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('notification_recipients',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('notification_id', sa.UUID(), nullable=False),
        sa.Column('recipient_id', sa.UUID(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['notification_id'], ['notifications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('notification_id', 'recipient_id'),
    )
    op.create_index(
        'ix_notification_recipients_recipient_id',
        'notification_recipients',
        ['recipient_id'],
        unique=False,
    )


def downgrade() -> None:
    """Drop every stewardship table."""
    op.drop_index('ix_notification_recipients_recipient_id', table_name='notification_recipients')
    op.drop_table('notification_recipients')
    op.drop_table('notifications')

    op.drop_index('ix_admin_audit_log_created_at', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_action', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_actor_user_id', table_name='admin_audit_log')
    op.drop_table('admin_audit_log')

    op.drop_index('ix_user_group_roles_role_id', table_name='user_group_roles')
    op.drop_index('ix_user_group_roles_group_id', table_name='user_group_roles')
    op.drop_index('ix_user_group_roles_user_id', table_name='user_group_roles')
    op.drop_table('user_group_roles')
    op.drop_table('group_role_permissions')
    op.drop_index('uq_group_roles_group_name', table_name='group_roles')
    op.drop_index('ix_group_roles_group_id', table_name='group_roles')
    op.drop_table('group_roles')

    op.drop_index('ix_group_memberships_user_id', table_name='group_memberships')
    op.drop_index('ix_group_memberships_group_id', table_name='group_memberships')
    op.drop_table('group_memberships')
    op.drop_index('ix_groups_kind', table_name='groups')
    op.drop_table('groups')

    op.drop_table('role_template_permissions')
    op.drop_table('role_templates')
    op.drop_table('permissions')

    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_table('users')

"""add_rls_policies

Revision ID: 9c31d07e5f42
Revises: 4b7e1c9a2d10
Create Date: 2026-10-17 09:40:05.118374

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "9c31d07e5f42"
down_revision: str | Sequence[str] | None = "4b7e1c9a2d10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_TABLES = (
    "users",
    "permissions",
    "role_templates",
    "role_template_permissions",
    "groups",
    "group_memberships",
    "group_roles",
    "group_role_permissions",
    "user_group_roles",
    "admin_audit_log",
    "notifications",
    "notification_recipients",
)


def upgrade() -> None:
    """Enable Row Level Security on every table.

    The API connects with a service account that bypasses RLS and enforces
    permissions in the service layer. Direct client connections only see
    their own notification deliveries and the public catalog.
    """
    for table in _TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")

    op.execute("""
        CREATE POLICY permissions_select ON permissions
            FOR SELECT USING (true);
    """)
    op.execute("""
        CREATE POLICY notification_recipients_select ON notification_recipients
            FOR SELECT USING (recipient_id = (SELECT auth.uid()));
    """)
    op.execute("""
        CREATE POLICY notifications_select ON notifications
            FOR SELECT USING (
                id IN (
                    SELECT notification_id FROM notification_recipients
                    WHERE recipient_id = (SELECT auth.uid())
                )
            );
    """)


def downgrade() -> None:
    """Drop policies and disable Row Level Security."""
    op.execute("DROP POLICY IF EXISTS notifications_select ON notifications;")
    op.execute("DROP POLICY IF EXISTS notification_recipients_select ON notification_recipients;")
    op.execute("DROP POLICY IF EXISTS permissions_select ON permissions;")

    for table in reversed(_TABLES):
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")

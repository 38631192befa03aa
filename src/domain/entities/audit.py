"""Audit log domain entity and action constants."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

# --- Audit Action Constants ---
# Admin surface actions keep the names the admin UI filters on; engine
# mutations use {entity_type}.{action}.


class AuditActions:
    """Audit action constants."""

    # Bulk admin actions
    USER_ACTIVATED = "admin_user_activated"
    USER_DEACTIVATED = "admin_user_deactivated"
    USER_DECOMMISSIONED = "admin_user_decommissioned"
    USER_HARD_DELETED = "user_hard_deleted"
    FORCE_LOGOUT = "admin_force_logout"
    MESSAGE_SENT = "admin_message_sent"
    NOTIFICATION_SENT = "admin_notification_sent"
    INVITE_TO_GROUP = "admin_invite_to_group"
    JOIN_GROUP = "admin_join_group"
    REMOVE_FROM_GROUP = "admin_remove_from_group"

    # Platform administrators
    PLATFORM_ADMIN_ADDED = "platform_admin_added"
    PLATFORM_ADMIN_REMOVED = "platform_admin_removed"
    ORPHANED_GROUP_REPAIRED = "admin_orphaned_group_repaired"

    # Group actions
    GROUP_CREATED = "group.created"
    GROUP_UPDATED = "group.updated"
    GROUP_DELETED = "group.deleted"

    # Membership actions
    MEMBER_INVITED = "membership.invited"
    INVITATION_ACCEPTED = "membership.accepted"
    INVITATION_DECLINED = "membership.declined"
    MEMBER_STATUS_CHANGED = "membership.status_changed"
    MEMBER_REMOVED = "membership.removed"
    MEMBER_LEFT = "membership.left"

    # Role actions
    ROLE_CREATED = "role.created"
    ROLE_UPDATED = "role.updated"
    ROLE_DELETED = "role.deleted"
    ROLE_GRANTS_CHANGED = "role.grants_changed"
    ROLE_ASSIGNED = "role.assigned"
    ROLE_UNASSIGNED = "role.unassigned"


@dataclass
class AuditLogEntry:
    """Domain entity for an append-only audit log entry."""

    actor_user_id: UUID | None
    action: str
    id: UUID = field(default_factory=uuid4)
    target: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)

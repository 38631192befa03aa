"""Services wired to the seeded test database."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from domain.entities.group import Group
from domain.entities.user import User
from domain.services.admin_action_service import AdminActionService
from domain.services.admin_directory_service import AdminDirectoryService
from domain.services.audit_service import AuditService
from domain.services.group_service import GroupService
from domain.services.membership_service import MembershipService
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService
from domain.services.protection import ProtectionGuard
from domain.services.role_service import RoleService
from domain.services.user_service import UserService


@dataclass
class Services:
    permissions: PermissionService
    audit: AuditService
    users: UserService
    groups: GroupService
    members: MembershipService
    roles: RoleService
    notifications: NotificationService
    directory: AdminDirectoryService
    actions: AdminActionService


@pytest.fixture
def services(seeded: Callable[..., Any]) -> Services:
    guard = ProtectionGuard()
    permissions = PermissionService(seeded)
    audit = AuditService(seeded, permissions)
    notifications = NotificationService(seeded)
    directory = AdminDirectoryService(seeded, permissions)
    return Services(
        permissions=permissions,
        audit=audit,
        users=UserService(seeded),
        groups=GroupService(seeded, audit_service=audit),
        members=MembershipService(seeded, guard=guard, audit_service=audit),
        roles=RoleService(seeded, guard=guard, audit_service=audit),
        notifications=notifications,
        directory=directory,
        actions=AdminActionService(
            seeded,
            permissions,
            guard=guard,
            audit_service=audit,
            notification_sender=notifications,
            directory_service=directory,
        ),
    )


@pytest.fixture
def join(services: Services) -> Callable[..., Any]:
    """Invite a user into a group on behalf of its steward and accept."""

    async def _join(group: Group, steward: User, user: User) -> None:
        membership = await services.members.invite(group.id, user.id, invited_by=steward.id)
        await services.members.accept_invitation(membership.id, user.id)

    return _join

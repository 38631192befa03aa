"""Membership service: invitations and the membership state machine."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyAMemberError,
    AuthorizationError,
    GroupNotFoundError,
    InsufficientPermissionsError,
    InvalidAccountStateError,
    InvalidMembershipStateError,
    MembershipNotFoundError,
    SystemGroupProtectedError,
    UserNotFoundError,
)
from domain.entities.audit import AuditActions
from domain.entities.catalog import MEMBER_TEMPLATE, Permissions
from domain.entities.group import (
    Group,
    GroupMemberView,
    GroupMembership,
    MembershipStatus,
    can_transition,
)
from domain.entities.role import UserRoleAssignment
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.audit_service import AuditService
from domain.services.permission_service import PermissionService, resolve_permissions
from domain.services.protection import ProtectionGuard

logger = structlog.get_logger()

_STATUS_PERMISSIONS: dict[MembershipStatus, str] = {
    MembershipStatus.ACTIVE: Permissions.ACTIVATE_MEMBERS,
    MembershipStatus.PAUSED: Permissions.PAUSE_MEMBERS,
    MembershipStatus.REMOVED: Permissions.REMOVE_MEMBERS,
}


async def assign_default_member_role(
    uow: IUnitOfWork, group_id: UUID, user_id: UUID, assigned_by: UUID | None
) -> bool:
    """Give a new active member the group's Member role if they lack it."""
    role = await uow.roles.get_by_name(group_id, MEMBER_TEMPLATE)
    if not role:
        return False
    if await uow.roles.get_assignment(user_id, group_id, role.id):
        return False
    await uow.roles.add_assignment(
        UserRoleAssignment(
            user_id=user_id,
            group_id=group_id,
            role_id=role.id,
            assigned_by_user_id=assigned_by,
        )
    )
    return True


async def remove_membership(
    uow: IUnitOfWork, guard: ProtectionGuard, group_id: UUID, user_id: UUID
) -> bool:
    """Delete a membership and its role assignments, keeping a leader in place."""
    await guard.ensure_leadership_retained(
        uow, group_id, removing=lambda assignment: assignment.user_id == user_id
    )
    await uow.roles.delete_member_assignments(group_id, user_id)
    return await uow.groups.delete_membership(group_id, user_id)


class MembershipService:
    """Service layer for group membership lifecycle."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        guard: ProtectionGuard | None = None,
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or ProtectionGuard()
        self._audit = audit_service

    async def invite(
        self, group_id: UUID, target_user_id: UUID, invited_by: UUID
    ) -> GroupMembership:
        """Invite a user to a group. Requires ``invite_members``.

        A previously removed membership is reopened as an invitation.
        """
        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)
            await PermissionService.require(uow, invited_by, group_id, Permissions.INVITE_MEMBERS)

            target = await uow.users.get(target_user_id)
            if not target:
                raise UserNotFoundError(str(target_user_id))
            if target.is_decommissioned:
                raise InvalidAccountStateError(
                    "Decommissioned users cannot be invited", str(target_user_id)
                )

            membership = await self._open_invitation(uow, group_id, target_user_id, invited_by)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=invited_by,
                    action=AuditActions.MEMBER_INVITED,
                    target=group.name,
                    metadata={"group_id": str(group_id), "user_id": str(target_user_id)},
                )

            await uow.commit()
            return membership

    async def accept_invitation(self, membership_id: UUID, user_id: UUID) -> GroupMembership:
        """Accept an invitation. Idempotent on an already-active membership."""
        async with self._uow_factory() as uow:
            membership = await self._get_own_membership(uow, membership_id, user_id)

            if membership.status == MembershipStatus.ACTIVE:
                return membership
            if membership.status != MembershipStatus.INVITED:
                raise InvalidMembershipStateError(
                    membership.status.value, MembershipStatus.ACTIVE.value
                )

            membership.status = MembershipStatus.ACTIVE
            membership.updated_at = datetime.utcnow()
            updated = await uow.groups.update_membership(membership)
            await assign_default_member_role(
                uow, membership.group_id, user_id, membership.added_by_user_id
            )

            if self._audit:
                group = await uow.groups.get(membership.group_id)
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.INVITATION_ACCEPTED,
                    target=group.name if group else None,
                    metadata={"group_id": str(membership.group_id)},
                )

            await uow.commit()
            return updated

    async def decline_invitation(self, membership_id: UUID, user_id: UUID) -> bool:
        """Decline an invitation, deleting the membership record."""
        async with self._uow_factory() as uow:
            membership = await self._get_own_membership(uow, membership_id, user_id)
            if membership.status != MembershipStatus.INVITED:
                raise InvalidMembershipStateError(membership.status.value, "declined")

            deleted = await uow.groups.delete_membership(membership.group_id, user_id)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.INVITATION_DECLINED,
                    metadata={"group_id": str(membership.group_id)},
                )

            await uow.commit()
            return deleted

    async def list_my_invitations(
        self, user_id: UUID
    ) -> list[tuple[GroupMembership, Group]]:
        """Get pending invitations for the user."""
        async with self._uow_factory() as uow:
            return await uow.groups.list_invitations_for_user(user_id)

    async def set_status(
        self,
        group_id: UUID,
        target_user_id: UUID,
        status: MembershipStatus,
        actor_id: UUID,
    ) -> GroupMembership:
        """Pause, reactivate or mark a member removed.

        Leaving ``active`` is guarded by the last-holder rule. Marking a
        member removed also deletes their role assignments; pausing keeps
        them so reactivation restores the member's roles.
        """
        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)

            required = _STATUS_PERMISSIONS.get(status)
            if required is None:
                raise InvalidMembershipStateError("any", status.value)
            await PermissionService.require(uow, actor_id, group_id, required)

            membership = await uow.groups.get_membership(group_id, target_user_id)
            if not membership:
                raise MembershipNotFoundError(str(target_user_id))
            if membership.status == status:
                return membership
            if not can_transition(membership.status, status):
                raise InvalidMembershipStateError(membership.status.value, status.value)

            if membership.status == MembershipStatus.ACTIVE:
                await self._guard.ensure_leadership_retained(
                    uow, group_id, removing=lambda a: a.user_id == target_user_id
                )
            if status == MembershipStatus.REMOVED:
                await uow.roles.delete_member_assignments(group_id, target_user_id)

            previous = membership.status
            membership.status = status
            membership.updated_at = datetime.utcnow()
            updated = await uow.groups.update_membership(membership)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.MEMBER_STATUS_CHANGED,
                    target=group.name,
                    metadata={
                        "group_id": str(group_id),
                        "user_id": str(target_user_id),
                        "old_status": previous.value,
                        "new_status": status.value,
                    },
                )

            await uow.commit()
            return updated

    async def leave(self, group_id: UUID, user_id: UUID) -> bool:
        """Leave a group. The last Steward cannot leave."""
        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)
            membership = await uow.groups.get_membership(group_id, user_id)
            if not membership:
                raise MembershipNotFoundError(str(user_id))

            removed = await remove_membership(uow, self._guard, group_id, user_id)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.MEMBER_LEFT,
                    target=group.name,
                    metadata={"group_id": str(group_id)},
                )

            await uow.commit()
            return removed

    async def remove_member(
        self, group_id: UUID, target_user_id: UUID, actor_id: UUID
    ) -> bool:
        """Remove a member. Requires ``remove_members`` unless removing oneself."""
        if target_user_id == actor_id:
            return await self.leave(group_id, actor_id)

        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)
            await PermissionService.require(uow, actor_id, group_id, Permissions.REMOVE_MEMBERS)

            membership = await uow.groups.get_membership(group_id, target_user_id)
            if not membership:
                raise MembershipNotFoundError(str(target_user_id))

            removed = await remove_membership(uow, self._guard, group_id, target_user_id)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.MEMBER_REMOVED,
                    target=group.name,
                    metadata={"group_id": str(group_id), "user_id": str(target_user_id)},
                )

            await uow.commit()
            logger.info(
                "member_removed",
                group_id=str(group_id),
                user_id=str(target_user_id),
                removed_by=str(actor_id),
            )
            return removed

    async def list_members(self, group_id: UUID, user_id: UUID) -> list[GroupMemberView]:
        """Get the member list of a group.

        Requires ``view_member_list``. When the group hides its member list,
        ``control_member_list_visibility`` is required as well. Pending and
        paused members are included for holders of ``invite_members``.
        """
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(str(group_id))

            permissions = await resolve_permissions(uow, user_id, group_id)
            if Permissions.VIEW_MEMBER_LIST not in permissions:
                raise InsufficientPermissionsError(Permissions.VIEW_MEMBER_LIST, str(group_id))
            if (
                not group.show_member_list
                and Permissions.CONTROL_MEMBER_LIST_VISIBILITY not in permissions
            ):
                raise InsufficientPermissionsError(
                    Permissions.CONTROL_MEMBER_LIST_VISIBILITY, str(group_id)
                )

            statuses = [MembershipStatus.ACTIVE]
            if Permissions.INVITE_MEMBERS in permissions:
                statuses += [MembershipStatus.INVITED, MembershipStatus.PAUSED]
            return await uow.groups.list_members(group_id, statuses=statuses)

    # --- Internal helpers ---

    async def _get_engagement_group(self, uow: IUnitOfWork, group_id: UUID) -> Group:
        group = await uow.groups.get(group_id)
        if not group:
            raise GroupNotFoundError(str(group_id))
        if not group.is_engagement:
            raise SystemGroupProtectedError(str(group_id))
        return group

    async def _get_own_membership(
        self, uow: IUnitOfWork, membership_id: UUID, user_id: UUID
    ) -> GroupMembership:
        membership = await uow.groups.get_membership_by_id(membership_id)
        if not membership:
            raise MembershipNotFoundError(str(membership_id))
        if membership.user_id != user_id:
            raise AuthorizationError("This invitation belongs to another user")
        return membership

    async def _open_invitation(
        self, uow: IUnitOfWork, group_id: UUID, user_id: UUID, invited_by: UUID
    ) -> GroupMembership:
        existing = await uow.groups.get_membership(group_id, user_id)
        if existing and existing.status != MembershipStatus.REMOVED:
            raise AlreadyAMemberError(str(user_id), existing.status.value)

        if existing:
            existing.status = MembershipStatus.INVITED
            existing.added_by_user_id = invited_by
            existing.added_at = datetime.utcnow()
            existing.updated_at = existing.added_at
            return await uow.groups.update_membership(existing)

        return await uow.groups.add_membership(
            GroupMembership(
                group_id=group_id,
                user_id=user_id,
                status=MembershipStatus.INVITED,
                added_by_user_id=invited_by,
            )
        )

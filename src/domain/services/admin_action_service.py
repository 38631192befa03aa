"""Admin action orchestrator for the bulk action bar.

Bulk actions run as a sequential loop with one transaction per target, so a
failure on one user is recorded and the loop moves on. Each action appends
one audit entry describing the affected users; hard deletion appends one
entry per deleted user inside the deleting transaction instead.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from core.config import settings
from core.exceptions import (
    AlreadyAMemberError,
    AppException,
    AuthorizationError,
    ErrorCode,
    GroupNotFoundError,
    GroupNotOrphanedError,
    InvalidAccountStateError,
    InvalidActionError,
    MembershipNotFoundError,
    ConfirmationRequiredError,
    SystemGroupProtectedError,
    UserNotFoundError,
)
from domain.entities.admin_action import (
    COMMUNICATION_ACTIONS,
    GROUP_ACTIONS,
    ActionName,
    ActionState,
    BulkResult,
    clears_selection_after,
    common_group_ids,
    compute_action_states,
    confirmation_text,
    is_destructive_action,
)
from domain.entities.audit import AuditActions
from domain.entities.catalog import STEWARD_TEMPLATE, SUPER_ADMIN_ROLE
from domain.entities.group import (
    Group,
    GroupKind,
    GroupMemberView,
    GroupMembership,
    MembershipStatus,
    OrphanedGroup,
)
from domain.entities.notification import NotificationKind, NotificationPayload
from domain.entities.role import GroupRole, UserRoleAssignment
from domain.entities.user import User
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.admin_directory_service import AdminDirectoryService
from domain.services.audit_service import AuditService
from domain.services.group_service import create_role_from_template
from domain.services.membership_service import assign_default_member_role, remove_membership
from domain.services.notification_service import INotificationSender
from domain.services.permission_service import PermissionService
from domain.services.protection import ProtectionGuard

logger = structlog.get_logger()

_ACCOUNT_AUDIT_ACTIONS: dict[ActionName, str] = {
    ActionName.ACTIVATE: AuditActions.USER_ACTIVATED,
    ActionName.DEACTIVATE: AuditActions.USER_DEACTIVATED,
    ActionName.DELETE_SOFT: AuditActions.USER_DECOMMISSIONED,
    ActionName.LOGOUT: AuditActions.FORCE_LOGOUT,
    ActionName.MESSAGE: AuditActions.MESSAGE_SENT,
    ActionName.NOTIFY: AuditActions.NOTIFICATION_SENT,
    ActionName.INVITE: AuditActions.INVITE_TO_GROUP,
    ActionName.JOIN: AuditActions.JOIN_GROUP,
    ActionName.REMOVE: AuditActions.REMOVE_FROM_GROUP,
}

# Handler result: True when the target changed, False when skipped
ItemHandler = Callable[[IUnitOfWork, UUID], Awaitable[bool]]


@dataclass(frozen=True)
class ActionExtra:
    """Action-specific input: target group or message content."""

    group_id: UUID | None = None
    title: str | None = None
    body: str | None = None


@dataclass
class ActionStatesView:
    """Action bar state for a selection."""

    states: dict[ActionName, ActionState]
    selected_count: int
    common_group_count: int


class AdminActionService:
    """Service layer for bulk administrative actions."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService,
        guard: ProtectionGuard | None = None,
        audit_service: Optional["AuditService"] = None,
        notification_sender: INotificationSender | None = None,
        directory_service: AdminDirectoryService | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service
        self._guard = guard or ProtectionGuard()
        self._audit = audit_service
        self._sender = notification_sender
        self._directory = directory_service

    async def get_action_states(
        self, actor_id: UUID, user_ids: list[UUID]
    ) -> ActionStatesView:
        """Compute the action bar for a selection of user ids."""
        await self._require_admin(actor_id)
        unique_ids = list(dict.fromkeys(user_ids))
        async with self._uow_factory() as uow:
            users = await uow.users.get_many(unique_ids) if unique_ids else []
            found = [u.id for u in users]
            pairs = await uow.groups.list_active_membership_pairs(
                found, kind=GroupKind.ENGAGEMENT
            ) if found else []

        common_count = len(common_group_ids(pairs, found))
        return ActionStatesView(
            states=compute_action_states(users, common_count),
            selected_count=len(users),
            common_group_count=common_count,
        )

    async def group_picker(
        self, actor_id: UUID, action: ActionName, user_ids: list[UUID]
    ) -> list[Group]:
        """Engagement groups offered for a group action.

        Invite and join offer every engagement group; remove offers only the
        groups in which every selected user is an active member.
        """
        await self._require_admin(actor_id)
        if action not in GROUP_ACTIONS:
            raise InvalidActionError(action.value, "Action does not target a group")

        async with self._uow_factory() as uow:
            groups = await uow.groups.list_all(kind=GroupKind.ENGAGEMENT)
            if action != ActionName.REMOVE:
                return sorted(groups, key=lambda g: g.name.lower())

            unique_ids = list(dict.fromkeys(user_ids))
            pairs = await uow.groups.list_active_membership_pairs(
                unique_ids, kind=GroupKind.ENGAGEMENT
            )
            shared = common_group_ids(pairs, unique_ids)
            return sorted((g for g in groups if g.id in shared), key=lambda g: g.name.lower())

    async def execute(
        self,
        actor_id: UUID,
        action: ActionName,
        target_user_ids: list[UUID],
        extra: ActionExtra | None = None,
        confirmed: bool = False,
    ) -> BulkResult:
        """Execute a bulk action with per-item error isolation.

        Destructive actions require ``confirmed``; without it the
        confirmation dialog text is returned as an error before anything
        changes. Partial failures are reported in the result, never raised.
        """
        extra = extra or ActionExtra()
        await self._require_admin(actor_id)
        targets = list(dict.fromkeys(target_user_ids))
        if not targets:
            raise InvalidActionError(action.value, "No users selected")

        if is_destructive_action(action) and not confirmed:
            raise ConfirmationRequiredError(
                action.value, confirmation_text(action, len(targets)) or ""
            )

        result = BulkResult(action=action)
        target_label = f"{len(targets)} user(s)"
        audit_extra: dict[str, object] = {}

        if action in COMMUNICATION_ACTIONS:
            delivered = await self._send(actor_id, action, targets, extra)
            result.succeeded = len(delivered)
            result.skipped = len(targets) - len(delivered)
            result.affected_ids = delivered
            target_label = extra.title or target_label
            audit_extra["delivered_count"] = len(delivered)
        elif action in GROUP_ACTIONS:
            group = await self._get_target_group(extra.group_id, action)
            target_label = group.name
            audit_extra.update(group_id=str(group.id), group_name=group.name)
            await self._run_per_item(
                targets, result, self._group_handler(action, group, actor_id)
            )
        elif action == ActionName.DELETE_HARD:
            await self._run_per_item(targets, result, self._hard_delete_handler(actor_id))
        else:
            await self._run_per_item(targets, result, self._account_handler(action, actor_id))

        if action != ActionName.DELETE_HARD:
            await self._log_bulk(actor_id, action, target_label, result, audit_extra)

        result.clear_selection = clears_selection_after(action) and result.succeeded > 0
        if self._directory:
            self._directory.invalidate()

        logger.info(
            "bulk_action_executed",
            action=action.value,
            actor_id=str(actor_id),
            succeeded=result.succeeded,
            skipped=result.skipped,
            errors=len(result.errors),
        )
        return result

    # --- Platform administrators ---

    async def list_platform_admins(self, actor_id: UUID) -> list[GroupMemberView]:
        await self._require_admin(actor_id)
        async with self._uow_factory() as uow:
            group = await self._get_super_admin_group(uow)
            return await uow.groups.list_members(group.id, statuses=[MembershipStatus.ACTIVE])

    async def add_platform_admin(self, actor_id: UUID, target_user_id: UUID) -> None:
        """Make a user a member of the super administrator group."""
        await self._require_admin(actor_id)
        async with self._uow_factory() as uow:
            group = await self._get_super_admin_group(uow)
            target = await uow.users.get(target_user_id)
            if not target:
                raise UserNotFoundError(str(target_user_id))
            if target.is_decommissioned:
                raise InvalidAccountStateError(
                    "Decommissioned users cannot become administrators", str(target_user_id)
                )

            membership = await uow.groups.get_membership(group.id, target_user_id)
            if membership and membership.is_active:
                raise AlreadyAMemberError(str(target_user_id), membership.status.value)
            await self._activate_membership(uow, group.id, target_user_id, actor_id, membership)

            role = await uow.roles.get_by_name(group.id, SUPER_ADMIN_ROLE)
            if role and not await uow.roles.get_assignment(target_user_id, group.id, role.id):
                await uow.roles.add_assignment(
                    UserRoleAssignment(
                        user_id=target_user_id,
                        group_id=group.id,
                        role_id=role.id,
                        assigned_by_user_id=actor_id,
                    )
                )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.PLATFORM_ADMIN_ADDED,
                    target=target.email,
                    metadata=AuditService.user_metadata(
                        [target_user_id], target_email=target.email
                    ),
                )
            await uow.commit()

    async def remove_platform_admin(self, actor_id: UUID, target_user_id: UUID) -> None:
        """Remove a user from the super administrator group. The last one stays."""
        await self._require_admin(actor_id)
        async with self._uow_factory() as uow:
            group = await self._get_super_admin_group(uow)
            membership = await uow.groups.get_membership(group.id, target_user_id)
            if not membership:
                raise MembershipNotFoundError(str(target_user_id))

            await remove_membership(uow, self._guard, group.id, target_user_id)

            if self._audit:
                target = await uow.users.get(target_user_id)
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.PLATFORM_ADMIN_REMOVED,
                    target=target.email if target else str(target_user_id),
                    metadata=AuditService.user_metadata([target_user_id]),
                )
            await uow.commit()

    # --- Orphaned groups ---

    async def list_orphaned_groups(self, actor_id: UUID) -> list[OrphanedGroup]:
        """Engagement groups in which no active member holds the leadership permission."""
        await self._require_admin(actor_id)
        orphaned = []
        async with self._uow_factory() as uow:
            for group in await uow.groups.list_all(kind=GroupKind.ENGAGEMENT):
                if await self._guard.has_leadership_holder(uow, group.id):
                    continue
                creator = await uow.users.get(group.created_by) if group.created_by else None
                orphaned.append(
                    OrphanedGroup(
                        group=group,
                        creator_email=creator.email if creator else None,
                        creator_name=creator.display_name if creator else None,
                    )
                )
        return sorted(orphaned, key=lambda o: o.group.name.lower())

    async def repair_orphaned_group(
        self, actor_id: UUID, group_id: UUID, steward_user_id: UUID | None = None
    ) -> UserRoleAssignment:
        """Give an orphaned group a steward again.

        The steward defaults to the group's creator; a deleted creator means
        the admin has to name someone. The user becomes an active member if
        needed and receives the group's Steward role, or another role
        carrying the leadership permission when Steward was edited away.
        """
        await self._require_admin(actor_id)
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(str(group_id))
            if not group.is_engagement:
                raise SystemGroupProtectedError(str(group_id))
            if await uow.roles.list_permission_holders(
                group_id, self._guard.leadership_permission, for_update=True
            ):
                raise GroupNotOrphanedError(str(group_id))

            steward_id = steward_user_id or group.created_by
            if steward_id is None:
                raise InvalidActionError("repair_orphaned_group", "Choose the new steward")
            user = await self._get_user(uow, steward_id)
            if user.is_decommissioned or not user.is_active:
                raise InvalidAccountStateError(
                    "Only active accounts can lead a group", str(steward_id)
                )

            membership = await uow.groups.get_membership(group_id, steward_id)
            if not membership or not membership.is_active:
                await self._activate_membership(uow, group_id, steward_id, actor_id, membership)

            role = await self._leadership_role(uow, group_id)
            assignment = await uow.roles.get_assignment(steward_id, group_id, role.id)
            if not assignment:
                assignment = await uow.roles.add_assignment(
                    UserRoleAssignment(
                        user_id=steward_id,
                        group_id=group_id,
                        role_id=role.id,
                        assigned_by_user_id=actor_id,
                    )
                )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.ORPHANED_GROUP_REPAIRED,
                    target=group.name,
                    metadata={
                        **AuditService.user_metadata([steward_id], target_email=user.email),
                        "group_id": str(group_id),
                        "group_name": group.name,
                        "role_id": str(role.id),
                    },
                )
            await uow.commit()

        logger.info(
            "orphaned_group_repaired",
            group_id=str(group_id),
            steward_user_id=str(steward_id),
            actor_id=str(actor_id),
        )
        return assignment

    # --- Internal helpers ---

    async def _leadership_role(self, uow: IUnitOfWork, group_id: UUID) -> GroupRole:
        leadership = self._guard.leadership_permission
        candidates = []
        for role in await uow.roles.list_for_group(group_id):
            if leadership in await uow.roles.get_permission_names(role.id):
                candidates.append(role)
        if candidates:
            # Prefer the template Steward over custom roles
            return min(candidates, key=lambda r: (r.name != STEWARD_TEMPLATE, r.name.lower()))

        # The Steward role itself lost the permission; keep it and add a fresh copy
        name = STEWARD_TEMPLATE
        if await uow.roles.get_by_name(group_id, STEWARD_TEMPLATE):
            name = f"{STEWARD_TEMPLATE} (restored)"
        return await create_role_from_template(uow, group_id, STEWARD_TEMPLATE, role_name=name)

    async def _require_admin(self, actor_id: UUID) -> None:
        if not await self._permissions.has_platform_permission(actor_id, settings.admin_permission):
            raise AuthorizationError("Unauthorized: admin access required")

    async def _run_per_item(
        self, targets: list[UUID], result: BulkResult, handler: ItemHandler
    ) -> None:
        for user_id in targets:
            try:
                async with self._uow_factory() as uow:
                    changed = await handler(uow, user_id)
                    if changed:
                        await uow.commit()
            except AppException as exc:
                result.record_error(user_id, exc.error_code.value, exc.message)
                continue
            except SQLAlchemyError:
                logger.exception("bulk_item_failed", user_id=str(user_id))
                result.record_error(
                    user_id, ErrorCode.DATABASE_ERROR.value, "A database error occurred"
                )
                continue

            if changed:
                result.record_success(user_id)
            else:
                result.record_skip()

    def _account_handler(self, action: ActionName, actor_id: UUID) -> ItemHandler:
        async def handle(uow: IUnitOfWork, user_id: UUID) -> bool:
            user = await self._get_user(uow, user_id)

            if action == ActionName.ACTIVATE:
                if user.is_decommissioned:
                    raise InvalidAccountStateError(
                        "Cannot activate decommissioned users", str(user_id)
                    )
                if user.is_active:
                    return False
                user.is_active = True
            elif action == ActionName.DEACTIVATE:
                self._ensure_not_self(user_id, actor_id)
                if user.is_decommissioned or not user.is_active:
                    return False
                user.is_active = False
            elif action == ActionName.DELETE_SOFT:
                self._ensure_not_self(user_id, actor_id)
                if user.is_decommissioned:
                    return False
                user.is_decommissioned = True
                user.is_active = False
            elif action == ActionName.LOGOUT:
                user.sessions_revoked_at = datetime.utcnow()
            else:
                raise InvalidActionError(action.value, "Not an account action")

            user.updated_at = datetime.utcnow()
            await uow.users.update(user)
            return True

        return handle

    def _hard_delete_handler(self, actor_id: UUID) -> ItemHandler:
        async def handle(uow: IUnitOfWork, user_id: UUID) -> bool:
            user = await self._get_user(uow, user_id)
            self._ensure_not_self(user_id, actor_id)

            # Account deletion cascades past the last-holder guard
            orphaned = await self._groups_led_only_by(uow, user_id)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.USER_HARD_DELETED,
                    target=user.email,
                    metadata={
                        **AuditService.user_metadata([user_id]),
                        "target_user_id": str(user_id),
                        "target_email": user.email,
                        "orphaned_group_ids": [str(gid) for gid in orphaned],
                    },
                )
            if not await uow.users.delete(user_id):
                raise UserNotFoundError(str(user_id))
            return True

        return handle

    def _group_handler(self, action: ActionName, group: Group, actor_id: UUID) -> ItemHandler:
        async def handle(uow: IUnitOfWork, user_id: UUID) -> bool:
            user = await self._get_user(uow, user_id)
            membership = await uow.groups.get_membership(group.id, user_id)

            if action == ActionName.INVITE:
                if user.is_decommissioned:
                    raise InvalidAccountStateError(
                        "Decommissioned users cannot be invited", str(user_id)
                    )
                if membership and membership.status != MembershipStatus.REMOVED:
                    return False
                if membership:
                    membership.status = MembershipStatus.INVITED
                    membership.added_by_user_id = actor_id
                    membership.updated_at = datetime.utcnow()
                    await uow.groups.update_membership(membership)
                else:
                    await uow.groups.add_membership(
                        GroupMembership(
                            group_id=group.id,
                            user_id=user_id,
                            status=MembershipStatus.INVITED,
                            added_by_user_id=actor_id,
                        )
                    )
                return True

            if action == ActionName.JOIN:
                if user.is_decommissioned:
                    raise InvalidAccountStateError(
                        "Decommissioned users cannot join groups", str(user_id)
                    )
                if membership and membership.is_active:
                    return False
                await self._activate_membership(uow, group.id, user_id, actor_id, membership)
                await assign_default_member_role(uow, group.id, user_id, actor_id)
                return True

            if action == ActionName.REMOVE:
                if not membership or not membership.is_active:
                    return False
                await remove_membership(uow, self._guard, group.id, user_id)
                return True

            raise InvalidActionError(action.value, "Not a group action")

        return handle

    async def _send(
        self, actor_id: UUID, action: ActionName, targets: list[UUID], extra: ActionExtra
    ) -> list[UUID]:
        if not self._sender:
            raise InvalidActionError(action.value, "No notification sender configured")
        if not extra.body or not extra.body.strip():
            raise InvalidActionError(action.value, "Message body is required")
        kind = NotificationKind.MESSAGE if action == ActionName.MESSAGE else NotificationKind.NOTIFICATION
        payload = NotificationPayload(
            kind=kind,
            title=(extra.title or "").strip() or "Message from the platform team",
            body=extra.body.strip(),
            sender_id=actor_id,
        )
        return await self._sender.send(targets, payload)

    async def _log_bulk(
        self,
        actor_id: UUID,
        action: ActionName,
        target_label: str,
        result: BulkResult,
        extra: dict[str, object],
    ) -> None:
        if not self._audit:
            return
        async with self._uow_factory() as uow:
            await self._audit.log(
                uow=uow,
                actor_user_id=actor_id,
                action=_ACCOUNT_AUDIT_ACTIONS[action],
                target=target_label,
                metadata=AuditService.user_metadata(
                    result.affected_ids,
                    skipped=result.skipped,
                    error_count=len(result.errors),
                    **extra,
                ),
            )
            await uow.commit()

    async def _get_target_group(self, group_id: UUID | None, action: ActionName) -> Group:
        if group_id is None:
            raise InvalidActionError(action.value, "A target group is required")
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
        if not group:
            raise GroupNotFoundError(str(group_id))
        if not group.is_engagement:
            raise SystemGroupProtectedError(str(group_id))
        return group

    async def _get_super_admin_group(self, uow: IUnitOfWork) -> Group:
        group = await uow.groups.get_system_group(settings.super_admin_group_name)
        if not group:
            raise GroupNotFoundError(settings.super_admin_group_name)
        return group

    async def _get_user(self, uow: IUnitOfWork, user_id: UUID) -> User:
        user = await uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    async def _activate_membership(
        self,
        uow: IUnitOfWork,
        group_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        membership: GroupMembership | None,
    ) -> None:
        if membership:
            membership.status = MembershipStatus.ACTIVE
            membership.updated_at = datetime.utcnow()
            await uow.groups.update_membership(membership)
            return
        await uow.groups.add_membership(
            GroupMembership(
                group_id=group_id,
                user_id=user_id,
                status=MembershipStatus.ACTIVE,
                added_by_user_id=actor_id,
            )
        )

    async def _groups_led_only_by(self, uow: IUnitOfWork, user_id: UUID) -> list[UUID]:
        pairs = await uow.groups.list_active_membership_pairs([user_id])
        orphaned = []
        for group_id, _ in pairs:
            holders = await uow.roles.list_permission_holders(
                group_id, self._guard.leadership_permission
            )
            if holders and all(h.user_id == user_id for h in holders):
                orphaned.append(group_id)
        return orphaned

    @staticmethod
    def _ensure_not_self(user_id: UUID, actor_id: UUID) -> None:
        if user_id == actor_id:
            raise InvalidAccountStateError(
                "You cannot apply this action to your own account", str(user_id)
            )

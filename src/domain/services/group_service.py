"""Group service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    GroupNotFoundError,
    RoleTemplateNotFoundError,
    SystemGroupProtectedError,
)
from domain.entities.audit import AuditActions
from domain.entities.catalog import MANDATORY_GROUP_TEMPLATES, STEWARD_TEMPLATE, Permissions
from domain.entities.group import (
    Group,
    GroupKind,
    GroupMembership,
    GroupVisibility,
    MembershipStatus,
)
from domain.entities.role import GroupRole, UserRoleAssignment
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.audit_service import AuditService
from domain.services.permission_service import PermissionService, resolve_permissions

logger = structlog.get_logger()


async def create_role_from_template(
    uow: IUnitOfWork, group_id: UUID, template_name: str, role_name: str | None = None
) -> GroupRole:
    """Create a template-derived role with a copy of the template's grants."""
    template = await uow.catalog.get_role_template_by_name(template_name)
    if not template:
        raise RoleTemplateNotFoundError(template_name)
    role = await uow.roles.create(
        GroupRole(
            group_id=group_id,
            name=role_name or template.name,
            description=template.description,
            source_template_id=template.id,
        )
    )
    permission_ids = await uow.catalog.get_template_permission_ids(template.id)
    await uow.roles.set_permissions(role.id, set(permission_ids))
    return role


class GroupService:
    """Service layer for engagement group management."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._audit = audit_service

    async def create(
        self,
        user_id: UUID,
        name: str,
        description: str | None = None,
        visibility: GroupVisibility = GroupVisibility.PRIVATE,
        show_member_list: bool = True,
    ) -> Group:
        """Create an engagement group.

        Requires the platform ``create_group`` permission. Seeds the
        mandatory template roles and makes the creator an active member
        holding the Steward role.
        """
        async with self._uow_factory() as uow:
            await PermissionService.require_platform(uow, user_id, Permissions.CREATE_GROUP)

            group = await uow.groups.create(
                Group(
                    name=name,
                    description=description,
                    kind=GroupKind.ENGAGEMENT,
                    visibility=visibility,
                    show_member_list=show_member_list,
                    created_by=user_id,
                )
            )

            roles = {
                template: await create_role_from_template(uow, group.id, template)
                for template in MANDATORY_GROUP_TEMPLATES
            }

            await uow.groups.add_membership(
                GroupMembership(
                    group_id=group.id,
                    user_id=user_id,
                    status=MembershipStatus.ACTIVE,
                    added_by_user_id=user_id,
                )
            )
            await uow.roles.add_assignment(
                UserRoleAssignment(
                    user_id=user_id,
                    group_id=group.id,
                    role_id=roles[STEWARD_TEMPLATE].id,
                    assigned_by_user_id=user_id,
                )
            )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.GROUP_CREATED,
                    target=group.name,
                    metadata={"group_id": str(group.id)},
                )

            await uow.commit()
            logger.info("group_created", group_id=str(group.id), created_by=str(user_id))
            return group

    async def get_by_id(self, group_id: UUID, user_id: UUID) -> Group:
        """Get a group visible to the user.

        Public groups are visible to everyone; private groups to their
        members and platform administrators. Invisible groups are reported
        as not found.
        """
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group or not await self._is_visible(uow, group, user_id):
                raise GroupNotFoundError(str(group_id))
            return group

    async def list_for_user(self, user_id: UUID) -> list[Group]:
        """Get every group the user can discover."""
        async with self._uow_factory() as uow:
            permissions = await uow.roles.get_system_permission_names(user_id)
            if settings.admin_permission in permissions:
                return await uow.groups.list_all()
            return await uow.groups.list_discoverable(user_id)

    async def update(
        self,
        group_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
        visibility: GroupVisibility | None = None,
        show_member_list: bool | None = None,
    ) -> Group:
        """Update group settings. Each setting is gated by its own permission."""
        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)

            if name is not None or description is not None:
                await PermissionService.require(
                    uow, user_id, group_id, Permissions.EDIT_GROUP_SETTINGS
                )
            if visibility is not None:
                await PermissionService.require(
                    uow, user_id, group_id, Permissions.SET_GROUP_VISIBILITY
                )
            if show_member_list is not None:
                await PermissionService.require(
                    uow, user_id, group_id, Permissions.CONTROL_MEMBER_LIST_VISIBILITY
                )

            old_state = {
                "name": group.name,
                "description": group.description,
                "visibility": group.visibility.value,
                "show_member_list": group.show_member_list,
            }

            if name is not None:
                group.name = name
            if description is not None:
                group.description = description
            if visibility is not None:
                group.visibility = visibility
            if show_member_list is not None:
                group.show_member_list = show_member_list
            group.updated_at = datetime.utcnow()

            updated = await uow.groups.update(group)

            if self._audit:
                new_state = {
                    "name": updated.name,
                    "description": updated.description,
                    "visibility": updated.visibility.value,
                    "show_member_list": updated.show_member_list,
                }
                changes = {
                    key: {"old": old_state[key], "new": new_state[key]}
                    for key in old_state
                    if old_state[key] != new_state[key]
                }
                if changes:
                    await self._audit.log(
                        uow=uow,
                        actor_user_id=user_id,
                        action=AuditActions.GROUP_UPDATED,
                        target=updated.name,
                        metadata={"group_id": str(group_id), "changes": changes},
                    )

            await uow.commit()
            return updated

    async def delete(self, group_id: UUID, user_id: UUID) -> bool:
        """Delete an engagement group. Requires ``delete_group``."""
        async with self._uow_factory() as uow:
            group = await self._get_engagement_group(uow, group_id)
            await PermissionService.require(uow, user_id, group_id, Permissions.DELETE_GROUP)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.GROUP_DELETED,
                    target=group.name,
                    metadata={"group_id": str(group_id)},
                )

            deleted = await uow.groups.delete(group_id)
            await uow.commit()
            logger.info("group_deleted", group_id=str(group_id), deleted_by=str(user_id))
            return deleted

    # --- Internal helpers ---

    async def _get_engagement_group(self, uow: IUnitOfWork, group_id: UUID) -> Group:
        group = await uow.groups.get(group_id)
        if not group:
            raise GroupNotFoundError(str(group_id))
        if not group.is_engagement:
            raise SystemGroupProtectedError(str(group_id))
        return group

    async def _is_visible(self, uow: IUnitOfWork, group: Group, user_id: UUID) -> bool:
        if group.is_engagement and group.visibility == GroupVisibility.PUBLIC:
            return True
        membership = await uow.groups.get_membership(group.id, user_id)
        if membership and membership.status != MembershipStatus.REMOVED:
            return True
        permissions = await resolve_permissions(uow, user_id, None)
        return settings.admin_permission in permissions

"""Role service: group roles, role grants and role assignments."""

from collections.abc import Callable
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import (
    DuplicateRoleAssignmentError,
    GroupNotFoundError,
    InsufficientPermissionsError,
    MembershipNotFoundError,
    PermissionNotFoundError,
    RoleAssignmentNotFoundError,
    RoleNameTakenError,
    RoleNotFoundError,
    RoleTemplateNotFoundError,
    TemplateRoleProtectedError,
)
from domain.entities.audit import AuditActions
from domain.entities.catalog import Permissions, sort_permission_names
from domain.entities.group import Group
from domain.entities.role import (
    GrantOutcome,
    GroupRole,
    PermissionOption,
    RoleDetails,
    RoleGrantResult,
    UserRoleAssignment,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.audit_service import AuditService
from domain.services.permission_service import PermissionService, resolve_permissions
from domain.services.protection import ProtectionGuard

logger = structlog.get_logger()


class RoleService:
    """Service layer for group roles and their assignments."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        guard: ProtectionGuard | None = None,
        audit_service: Optional["AuditService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or ProtectionGuard()
        self._audit = audit_service

    async def list_roles(self, group_id: UUID, user_id: UUID) -> list[RoleDetails]:
        """Get the roles of a group with their grants. Requires ``view_member_list``."""
        async with self._uow_factory() as uow:
            await self._get_group(uow, group_id)
            await PermissionService.require(uow, user_id, group_id, Permissions.VIEW_MEMBER_LIST)

            details = []
            for role in await uow.roles.list_for_group(group_id):
                names = await uow.roles.get_permission_names(role.id)
                details.append(
                    RoleDetails(
                        role=role,
                        permission_names=sort_permission_names(names),
                        holder_count=await uow.roles.count_holders(role.id),
                    )
                )
            return details

    async def create_role(
        self,
        group_id: UUID,
        user_id: UUID,
        name: str,
        description: str | None = None,
        template_id: UUID | None = None,
        permission_ids: list[UUID] | None = None,
    ) -> GroupRole:
        """Create a group role. Requires ``manage_roles``.

        With ``template_id`` the role copies the template's grants; the
        role then evolves independently of the template. Otherwise it is a
        custom role seeded with ``permission_ids``. Either way the creator
        must hold every initial grant themselves.
        """
        async with self._uow_factory() as uow:
            group = await self._get_group(uow, group_id)
            held = await PermissionService.require(
                uow, user_id, group_id, Permissions.MANAGE_ROLES
            )
            await self._ensure_name_available(uow, group_id, name)

            if template_id:
                template = await uow.catalog.get_role_template(template_id)
                if not template:
                    raise RoleTemplateNotFoundError(str(template_id))
                grant_ids = set(await uow.catalog.get_template_permission_ids(template.id))
            else:
                grant_ids = set(permission_ids or [])
            names = await self._permission_names(uow, grant_ids)
            self._guard.ensure_grantable(held, names)

            role = await uow.roles.create(
                GroupRole(
                    group_id=group_id,
                    name=name.strip(),
                    description=description,
                    source_template_id=template_id,
                )
            )
            await uow.roles.set_permissions(role.id, grant_ids)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.ROLE_CREATED,
                    target=f"{group.name}: {role.name}",
                    metadata={
                        "group_id": str(group_id),
                        "role_id": str(role.id),
                        "template_id": str(template_id) if template_id else None,
                    },
                )

            await uow.commit()
            return role

    async def update_role(
        self,
        role_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> GroupRole:
        """Rename or describe a role. Requires ``manage_roles``."""
        async with self._uow_factory() as uow:
            role = await self._get_role(uow, role_id)
            await PermissionService.require(uow, user_id, role.group_id, Permissions.MANAGE_ROLES)

            if name is not None:
                if name.strip().lower() != role.name.lower():
                    await self._ensure_name_available(uow, role.group_id, name)
                role.name = name.strip()
            if description is not None:
                role.description = description

            updated = await uow.roles.update(role)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.ROLE_UPDATED,
                    target=updated.name,
                    metadata={"group_id": str(role.group_id), "role_id": str(role_id)},
                )

            await uow.commit()
            return updated

    async def delete_role(self, role_id: UUID, user_id: UUID) -> bool:
        """Delete a custom role and its assignments. Requires ``manage_roles``."""
        async with self._uow_factory() as uow:
            role = await self._get_role(uow, role_id)
            await PermissionService.require(uow, user_id, role.group_id, Permissions.MANAGE_ROLES)

            if role.is_template_derived:
                raise TemplateRoleProtectedError(str(role_id))

            await self._guard.ensure_leadership_retained(
                uow, role.group_id, removing=lambda a: a.role_id == role_id
            )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.ROLE_DELETED,
                    target=role.name,
                    metadata={"group_id": str(role.group_id), "role_id": str(role_id)},
                )

            deleted = await uow.roles.delete(role_id)
            await uow.commit()
            return deleted

    async def set_grants(
        self,
        role_id: UUID,
        user_id: UUID,
        permission_ids: list[UUID],
        confirm_lockout: bool = False,
    ) -> RoleGrantResult:
        """Replace the permissions a role grants. Requires ``manage_roles``.

        Added permissions must be held by the editor. Removing a critical
        permission the editor would no longer hold through another role
        returns a lockout warning without saving, unless confirmed.
        """
        async with self._uow_factory() as uow:
            role = await self._get_role(uow, role_id)
            held = await PermissionService.require(
                uow, user_id, role.group_id, Permissions.MANAGE_ROLES
            )

            requested_ids = set(permission_ids)
            requested = await self._permission_names(uow, requested_ids)
            current = await uow.roles.get_permission_names(role_id)

            self._guard.ensure_grantable(held, requested - current)

            removed = current - requested
            warning = await self._guard.detect_self_lockout(
                uow, user_id, role.group_id, role_id, removed
            )
            if warning and not confirm_lockout:
                logger.info(
                    "role_grants_lockout_warning",
                    role_id=str(role_id),
                    user_id=str(user_id),
                    permissions=warning.permissions,
                )
                return RoleGrantResult(
                    outcome=GrantOutcome.LOCKOUT_WARNING,
                    role_id=role_id,
                    permission_names=sort_permission_names(current),
                    warning=warning,
                )

            await uow.roles.set_permissions(role_id, requested_ids)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=user_id,
                    action=AuditActions.ROLE_GRANTS_CHANGED,
                    target=role.name,
                    metadata={
                        "group_id": str(role.group_id),
                        "role_id": str(role_id),
                        "added": sort_permission_names(requested - current),
                        "removed": sort_permission_names(removed),
                    },
                )

            await uow.commit()
            return RoleGrantResult(
                outcome=GrantOutcome.OK,
                role_id=role_id,
                permission_names=sort_permission_names(requested),
            )

    async def get_permission_picker(
        self, group_id: UUID, user_id: UUID
    ) -> list[PermissionOption]:
        """Catalog permissions with grantability for the role editor."""
        async with self._uow_factory() as uow:
            await self._get_group(uow, group_id)
            held = await PermissionService.require(
                uow, user_id, group_id, Permissions.MANAGE_ROLES
            )
            catalog = await uow.catalog.list_permissions()
            return self._guard.permission_options(catalog, held)

    async def assign_role(
        self, target_user_id: UUID, group_id: UUID, role_id: UUID, assigned_by: UUID
    ) -> UserRoleAssignment:
        """Assign a role to an active member. Requires ``assign_roles``.

        The group creator may assign themself a leadership role while the
        group has no leader at all.
        """
        async with self._uow_factory() as uow:
            group = await self._get_group(uow, group_id)
            role = await self._get_role(uow, role_id)
            if role.group_id != group_id:
                raise RoleNotFoundError(str(role_id))

            held = await resolve_permissions(uow, assigned_by, group_id)
            if Permissions.ASSIGN_ROLES not in held and not await self._may_bootstrap(
                uow, group, target_user_id, assigned_by
            ):
                raise InsufficientPermissionsError(Permissions.ASSIGN_ROLES, str(group_id))

            membership = await uow.groups.get_membership(group_id, target_user_id)
            if not membership or not membership.is_active:
                raise MembershipNotFoundError(str(target_user_id))

            if await uow.roles.get_assignment(target_user_id, group_id, role_id):
                raise DuplicateRoleAssignmentError(str(target_user_id), str(role_id))

            assignment = await uow.roles.add_assignment(
                UserRoleAssignment(
                    user_id=target_user_id,
                    group_id=group_id,
                    role_id=role_id,
                    assigned_by_user_id=assigned_by,
                )
            )

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=assigned_by,
                    action=AuditActions.ROLE_ASSIGNED,
                    target=f"{group.name}: {role.name}",
                    metadata={
                        "group_id": str(group_id),
                        "role_id": str(role_id),
                        "user_id": str(target_user_id),
                    },
                )

            await uow.commit()
            return assignment

    async def unassign_role(
        self, target_user_id: UUID, group_id: UUID, role_id: UUID, actor_id: UUID
    ) -> bool:
        """Remove a role from a member. Requires ``remove_roles`` unless it is one's own."""
        async with self._uow_factory() as uow:
            group = await self._get_group(uow, group_id)
            if target_user_id != actor_id:
                await PermissionService.require(
                    uow, actor_id, group_id, Permissions.REMOVE_ROLES
                )

            assignment = await uow.roles.get_assignment(target_user_id, group_id, role_id)
            if not assignment:
                raise RoleAssignmentNotFoundError(str(target_user_id), str(role_id))

            await self._guard.ensure_leadership_retained(
                uow, group_id, removing=lambda a: a.id == assignment.id
            )

            removed = await uow.roles.delete_assignment(target_user_id, group_id, role_id)

            if self._audit:
                await self._audit.log(
                    uow=uow,
                    actor_user_id=actor_id,
                    action=AuditActions.ROLE_UNASSIGNED,
                    target=group.name,
                    metadata={
                        "group_id": str(group_id),
                        "role_id": str(role_id),
                        "user_id": str(target_user_id),
                    },
                )

            await uow.commit()
            return removed

    # --- Internal helpers ---

    async def _get_group(self, uow: IUnitOfWork, group_id: UUID) -> Group:
        group = await uow.groups.get(group_id)
        if not group:
            raise GroupNotFoundError(str(group_id))
        return group

    async def _get_role(self, uow: IUnitOfWork, role_id: UUID) -> GroupRole:
        role = await uow.roles.get(role_id)
        if not role:
            raise RoleNotFoundError(str(role_id))
        return role

    async def _ensure_name_available(self, uow: IUnitOfWork, group_id: UUID, name: str) -> None:
        if await uow.roles.get_by_name(group_id, name.strip()):
            raise RoleNameTakenError(name.strip())

    async def _permission_names(self, uow: IUnitOfWork, permission_ids: set[UUID]) -> set[str]:
        if not permission_ids:
            return set()
        permissions = await uow.catalog.get_permissions_by_ids(list(permission_ids))
        unknown = permission_ids - {p.id for p in permissions}
        if unknown:
            raise PermissionNotFoundError(sorted(str(pid) for pid in unknown))
        return {p.name for p in permissions}

    async def _may_bootstrap(
        self, uow: IUnitOfWork, group: Group, target_user_id: UUID, assigned_by: UUID
    ) -> bool:
        return (
            group.is_engagement
            and group.created_by == assigned_by
            and target_user_id == assigned_by
            and not await self._guard.has_leadership_holder(uow, group.id)
        )

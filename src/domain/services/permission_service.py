"""Permission resolution engine.

Effective permissions of a user in a context group are the union of two
strictly additive tiers:

* Tier 1: grants of roles assigned to the user in system groups where the
  user's membership is active. They apply in every context group.
* Tier 2: grants of roles assigned to the user in the context group itself,
  only while that membership is active.

Checks never raise for unknown or missing input; they resolve to False or
an empty set.
"""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import InsufficientPermissionsError
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


def coerce_uuid(value: Any) -> UUID | None:
    """Parse a UUID leniently, returning None for anything unusable."""
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


async def resolve_permissions(
    uow: IUnitOfWork, user_id: UUID, group_id: UUID | None
) -> set[str]:
    """Effective permission names within an existing UoW transaction."""
    permissions = set(await uow.roles.get_system_permission_names(user_id))
    if group_id is not None:
        permissions |= await uow.roles.get_group_permission_names(user_id, group_id)
    return permissions


class PermissionService:
    """Service layer for permission checks."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def has_permission(
        self, user_id: Any, group_id: Any, permission_name: str | None
    ) -> bool:
        """Check one permission for a user in a context group."""
        if not permission_name:
            return False
        permissions = await self.effective_permissions(user_id, group_id)
        return permission_name in permissions

    async def effective_permissions(self, user_id: Any, group_id: Any) -> set[str]:
        """Get the effective permission names of a user in a context group."""
        uid = coerce_uuid(user_id)
        gid = coerce_uuid(group_id)
        if uid is None or gid is None:
            return set()
        async with self._uow_factory() as uow:
            return await resolve_permissions(uow, uid, gid)

    async def has_platform_permission(self, user_id: Any, permission_name: str | None) -> bool:
        """Check a Tier 1 permission without a context group."""
        uid = coerce_uuid(user_id)
        if uid is None or not permission_name:
            return False
        async with self._uow_factory() as uow:
            return permission_name in await uow.roles.get_system_permission_names(uid)

    # --- In-transaction helpers for mutating services ---

    @staticmethod
    async def require(
        uow: IUnitOfWork, user_id: UUID, group_id: UUID, permission_name: str
    ) -> set[str]:
        """Raise unless the user holds a permission; returns the effective set."""
        permissions = await resolve_permissions(uow, user_id, group_id)
        if permission_name not in permissions:
            logger.info(
                "permission_denied",
                user_id=str(user_id),
                group_id=str(group_id),
                permission=permission_name,
            )
            raise InsufficientPermissionsError(permission_name, str(group_id))
        return permissions

    @staticmethod
    async def require_platform(
        uow: IUnitOfWork, user_id: UUID, permission_name: str
    ) -> None:
        """Raise unless the user holds a Tier 1 permission."""
        if permission_name not in await uow.roles.get_system_permission_names(user_id):
            raise InsufficientPermissionsError(permission_name)

"""Protection invariants guarding membership, role and grant mutations.

Every check runs inside the transaction of the mutation it protects.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import LastPrivilegedHolderError, PermissionEscalationError
from domain.entities.catalog import Permission, sort_permissions
from domain.entities.role import NOT_HELD_REASON, LockoutWarning, PermissionOption, UserRoleAssignment
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProtectionGuard:
    """Last-privileged-holder, anti-escalation and self-lockout checks."""

    leadership_permission: str = settings.leadership_permission
    critical_permissions: frozenset[str] = settings.critical_permissions_set

    async def ensure_leadership_retained(
        self,
        uow: IUnitOfWork,
        group_id: UUID,
        removing: Callable[[UserRoleAssignment], bool],
    ) -> None:
        """Reject a removal that would leave the group without a leader.

        ``removing`` tells which current holder assignments the mutation
        takes away. Holder rows are locked so concurrent removals serialize
        on them; a group that has no holder at all is not protected.
        """
        holders = await uow.roles.list_permission_holders(
            group_id, self.leadership_permission, for_update=True
        )
        if not holders:
            return
        if all(removing(assignment) for assignment in holders):
            logger.info(
                "last_privileged_holder_protected",
                group_id=str(group_id),
                permission=self.leadership_permission,
            )
            raise LastPrivilegedHolderError(str(group_id), self.leadership_permission)

    async def has_leadership_holder(self, uow: IUnitOfWork, group_id: UUID) -> bool:
        holders = await uow.roles.list_permission_holders(group_id, self.leadership_permission)
        return bool(holders)

    @staticmethod
    def ensure_grantable(granter_permissions: set[str], requested: Iterable[str]) -> None:
        """Reject granting permissions the granter does not hold."""
        missing = [name for name in requested if name not in granter_permissions]
        if missing:
            raise PermissionEscalationError(missing)

    @staticmethod
    def permission_options(
        catalog: list[Permission], granter_permissions: set[str]
    ) -> list[PermissionOption]:
        """Every catalog permission, disabled with a reason when not held."""
        return [
            PermissionOption(
                permission=permission,
                grantable=permission.name in granter_permissions,
                reason=None if permission.name in granter_permissions else NOT_HELD_REASON,
            )
            for permission in sort_permissions(catalog)
        ]

    async def detect_self_lockout(
        self,
        uow: IUnitOfWork,
        editor_id: UUID,
        group_id: UUID,
        role_id: UUID,
        removed_permissions: set[str],
    ) -> LockoutWarning | None:
        """Warn when an edit strips critical permissions from the editor.

        Only applies when the editor holds the edited role; retention is
        evaluated through Tier 1 and every other role in the group.
        """
        critical_removed = removed_permissions & self.critical_permissions
        if not critical_removed:
            return None
        if await uow.roles.get_assignment(editor_id, group_id, role_id) is None:
            return None

        retained = set(await uow.roles.get_system_permission_names(editor_id))
        retained |= await uow.roles.get_group_permission_names(
            editor_id, group_id, exclude_role_id=role_id
        )
        lost = sorted(critical_removed - retained)
        if not lost:
            return None
        return LockoutWarning(role_id=role_id, permissions=lost)

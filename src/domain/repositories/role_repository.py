"""Group role, grant and assignment repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.role import GroupRole, UserRoleAssignment


class IRoleRepository(Protocol):
    """Repository interface for group roles, role grants and role assignments."""

    async def get(self, id: UUID) -> GroupRole | None:
        """Get a role by ID."""
        ...

    async def get_by_name(self, group_id: UUID, name: str) -> GroupRole | None:
        """Get a role by name within a group (case-insensitive)."""
        ...

    async def list_for_group(self, group_id: UUID) -> list[GroupRole]:
        """Get all roles of a group."""
        ...

    async def create(self, role: GroupRole) -> GroupRole:
        """Create a role."""
        ...

    async def update(self, role: GroupRole) -> GroupRole:
        """Update a role's name and description."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a role with its grants and assignments."""
        ...

    # --- Grants ---

    async def get_permission_ids(self, role_id: UUID) -> set[UUID]:
        """Get the permission IDs granted by a role."""
        ...

    async def get_permission_names(self, role_id: UUID) -> set[str]:
        """Get the permission names granted by a role."""
        ...

    async def set_permissions(self, role_id: UUID, permission_ids: set[UUID]) -> None:
        """Replace the grants of a role."""
        ...

    # --- Assignments ---

    async def get_assignment(
        self, user_id: UUID, group_id: UUID, role_id: UUID
    ) -> UserRoleAssignment | None:
        """Get a specific role assignment."""
        ...

    async def list_assignments(
        self, user_id: UUID, group_id: UUID
    ) -> list[UserRoleAssignment]:
        """Get every role assignment of a user in a group."""
        ...

    async def add_assignment(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        """Create a role assignment."""
        ...

    async def delete_assignment(self, user_id: UUID, group_id: UUID, role_id: UUID) -> bool:
        """Delete a role assignment."""
        ...

    async def delete_member_assignments(self, group_id: UUID, user_id: UUID) -> int:
        """Delete every role assignment of a user in a group."""
        ...

    async def count_holders(self, role_id: UUID) -> int:
        """Count users assigned to a role."""
        ...

    # --- Resolution ---

    async def get_system_permission_names(self, user_id: UUID) -> set[str]:
        """Tier 1: permissions granted through active system group memberships."""
        ...

    async def get_group_permission_names(
        self, user_id: UUID, group_id: UUID, exclude_role_id: UUID | None = None
    ) -> set[str]:
        """Tier 2: permissions granted by the user's roles in an active group membership."""
        ...

    async def list_permission_holders(
        self, group_id: UUID, permission_name: str, for_update: bool = False
    ) -> list[UserRoleAssignment]:
        """Get assignments of active members whose role grants a permission.

        With ``for_update`` the matching assignment rows are locked until
        the end of the transaction.
        """
        ...

"""Group and membership repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.group import (
    Group,
    GroupKind,
    GroupMemberView,
    GroupMembership,
    MembershipStatus,
)


class IGroupRepository(Protocol):
    """Repository interface for groups and their memberships."""

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        ...

    async def get_system_group(self, name: str) -> Group | None:
        """Get a system group by name."""
        ...

    async def get_personal_group(self, user_id: UUID) -> Group | None:
        """Get the personal group owned by a user."""
        ...

    async def list_all(self, kind: GroupKind | None = None) -> list[Group]:
        """Get all groups, optionally of one kind."""
        ...

    async def list_discoverable(self, user_id: UUID) -> list[Group]:
        """Get public engagement groups plus groups the user belongs to."""
        ...

    async def create(self, group: Group) -> Group:
        """Create a new group."""
        ...

    async def update(self, group: Group) -> Group:
        """Update an existing group."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a group with its memberships, roles and assignments."""
        ...

    # --- Memberships ---

    async def get_membership(
        self, group_id: UUID, user_id: UUID
    ) -> GroupMembership | None:
        """Get the membership of a user in a group."""
        ...

    async def get_membership_by_id(self, id: UUID) -> GroupMembership | None:
        """Get a membership by ID."""
        ...

    async def add_membership(self, membership: GroupMembership) -> GroupMembership:
        """Create a membership."""
        ...

    async def update_membership(self, membership: GroupMembership) -> GroupMembership:
        """Persist a membership status change."""
        ...

    async def delete_membership(self, group_id: UUID, user_id: UUID) -> bool:
        """Delete a membership record."""
        ...

    async def list_members(
        self, group_id: UUID, statuses: list[MembershipStatus] | None = None
    ) -> list[GroupMemberView]:
        """Get memberships of a group joined with profiles and role names."""
        ...

    async def list_invitations_for_user(
        self, user_id: UUID
    ) -> list[tuple[GroupMembership, Group]]:
        """Get pending invitations of a user with their groups."""
        ...

    async def list_active_membership_pairs(
        self, user_ids: list[UUID], kind: GroupKind | None = None
    ) -> list[tuple[UUID, UUID]]:
        """Get (group_id, user_id) pairs of active memberships for users."""
        ...

    async def count_active_members(self, group_id: UUID) -> int:
        """Count active members in a group."""
        ...

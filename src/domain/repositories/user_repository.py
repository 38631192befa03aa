"""User repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.user import User, UserFilter


class IUserRepository(Protocol):
    """Repository interface for user accounts."""

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        ...

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email (case-insensitive)."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[User]:
        """Get users by ID. Unknown IDs are omitted."""
        ...

    async def create(self, user: User) -> User:
        """Create a user."""
        ...

    async def update(self, user: User) -> User:
        """Persist account flags and profile changes."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a user with all memberships and role assignments."""
        ...

    async def search(
        self, filters: UserFilter, offset: int, limit: int
    ) -> tuple[list[User], int]:
        """Get one page of users matching filters, newest first, with the total."""
        ...

    async def list_ids(self, filters: UserFilter, offset: int, limit: int) -> list[UUID]:
        """Get one batch of ids of users matching filters, newest first."""
        ...

    async def directory_version(self) -> tuple[int, datetime | None]:
        """Get the user count and latest change time; any user write moves it."""
        ...

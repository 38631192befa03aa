"""Catalog repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.catalog import Permission, RoleTemplate


class ICatalogRepository(Protocol):
    """Repository interface for permissions and role templates."""

    async def list_permissions(self) -> list[Permission]:
        """Get every catalog permission."""
        ...

    async def get_permissions_by_ids(self, ids: list[UUID]) -> list[Permission]:
        """Get permissions by ID. Unknown IDs are omitted."""
        ...

    async def get_permissions_by_names(self, names: list[str]) -> list[Permission]:
        """Get permissions by name. Unknown names are omitted."""
        ...

    async def create_permission(self, permission: Permission) -> Permission:
        """Add a permission to the catalog."""
        ...

    async def list_role_templates(self) -> list[RoleTemplate]:
        """Get all role templates with their permission names."""
        ...

    async def get_role_template(self, id: UUID) -> RoleTemplate | None:
        """Get a role template by ID."""
        ...

    async def get_role_template_by_name(self, name: str) -> RoleTemplate | None:
        """Get a role template by name."""
        ...

    async def create_role_template(self, template: RoleTemplate) -> RoleTemplate:
        """Create a role template."""
        ...

    async def get_template_permission_ids(self, template_id: UUID) -> list[UUID]:
        """Get the permission IDs bundled in a template."""
        ...

    async def add_template_permissions(
        self, template_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Add permissions to a template, ignoring ones already present."""
        ...

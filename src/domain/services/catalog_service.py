"""Catalog service: read access to permissions and role templates."""

from collections.abc import Callable
from dataclasses import dataclass

from domain.entities.catalog import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    Permission,
    RoleTemplate,
    sort_permissions,
)
from domain.repositories.unit_of_work import IUnitOfWork


@dataclass
class PermissionCategoryGroup:
    """Permissions of one category in display order."""

    category: str
    label: str
    permissions: list[Permission]


def group_by_category(permissions: list[Permission]) -> list[PermissionCategoryGroup]:
    """Group permissions by category, categories and entries in display order."""
    ordered = sort_permissions(permissions)
    groups: list[PermissionCategoryGroup] = []
    for category in CATEGORY_ORDER:
        entries = [p for p in ordered if p.category == category.value]
        if entries:
            groups.append(
                PermissionCategoryGroup(
                    category=category.value,
                    label=CATEGORY_LABELS[category],
                    permissions=entries,
                )
            )
    known = {c.value for c in CATEGORY_ORDER}
    for category_name in sorted({p.category for p in ordered} - known):
        groups.append(
            PermissionCategoryGroup(
                category=category_name,
                label=category_name.replace("_", " ").title(),
                permissions=[p for p in ordered if p.category == category_name],
            )
        )
    return groups


class CatalogService:
    """Service layer for the permission catalog."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def list_permissions(self) -> list[PermissionCategoryGroup]:
        async with self._uow_factory() as uow:
            return group_by_category(await uow.catalog.list_permissions())

    async def list_role_templates(self) -> list[RoleTemplate]:
        async with self._uow_factory() as uow:
            return await uow.catalog.list_role_templates()

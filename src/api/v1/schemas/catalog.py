"""Pydantic schemas for the permission catalog API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PermissionResponse(BaseModel):
    """Schema for a catalog permission."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    description: str | None
    display_order: int


class PermissionCategoryResponse(BaseModel):
    """Permissions of one category, in display order."""

    category: str
    label: str
    permissions: list[PermissionResponse]


class PermissionCatalogResponse(BaseModel):
    """Schema for the grouped permission catalog."""

    data: list[PermissionCategoryResponse]


class RoleTemplateResponse(BaseModel):
    """Schema for a role template."""

    id: UUID
    name: str
    description: str | None
    permission_names: list[str]
    created_at: datetime


class RoleTemplateListResponse(BaseModel):
    """Schema for list of role templates."""

    data: list[RoleTemplateResponse]

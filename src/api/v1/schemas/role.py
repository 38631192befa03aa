"""Pydantic schemas for Role, Grant and Assignment API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.catalog import PermissionResponse
from domain.entities.role import GrantOutcome


class RoleCreate(BaseModel):
    """Schema for creating a role, from a template or from explicit permissions."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    template_id: UUID | None = None
    permission_ids: list[UUID] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    """Schema for renaming or describing a role."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)


class RoleResponse(BaseModel):
    """Schema for Role response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    name: str
    description: str | None
    source_template_id: UUID | None
    is_template_derived: bool
    permission_names: list[str] = Field(default_factory=list)
    holder_count: int = 0
    created_at: datetime


class RoleListResponse(BaseModel):
    """Schema for list of Roles response."""

    data: list[RoleResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class RoleDetailResponse(BaseModel):
    """Schema for single Role response."""

    data: RoleResponse


class RoleGrantsUpdate(BaseModel):
    """Schema for replacing the permissions a role grants."""

    permission_ids: list[UUID]
    confirm_lockout: bool = False


class LockoutWarningResponse(BaseModel):
    """Saving would remove critical permissions from the editing user."""

    permissions: list[str]
    message: str


class RoleGrantResponse(BaseModel):
    """Outcome of a grant update: saved, or a warning awaiting confirmation."""

    outcome: GrantOutcome
    role_id: UUID
    permission_names: list[str]
    warning: LockoutWarningResponse | None = None


class PermissionOptionResponse(BaseModel):
    """One row of the permission picker."""

    permission: PermissionResponse
    grantable: bool
    reason: str | None = None


class PermissionPickerResponse(BaseModel):
    """Schema for the role editor permission picker."""

    data: list[PermissionOptionResponse]


class RoleAssignmentRequest(BaseModel):
    """Schema for assigning a role to a group member."""

    role_id: UUID


class RoleAssignmentResponse(BaseModel):
    """Schema for a role assignment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    group_id: UUID
    role_id: UUID
    assigned_by_user_id: UUID | None
    assigned_at: datetime

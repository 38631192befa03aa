"""Pydantic schemas for the admin API: directory, bulk actions and audit log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.admin_action import ActionName
from domain.entities.user import AccountStatus


class AdminUserResponse(BaseModel):
    """A user row in the admin directory."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None
    status: AccountStatus
    is_active: bool
    is_decommissioned: bool
    created_at: datetime


class AdminUserListResponse(BaseModel):
    """One page of the admin directory."""

    data: list[AdminUserResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UserIdListResponse(BaseModel):
    """Every user id matching the directory filters."""

    data: list[UUID]
    meta: dict[str, Any] = Field(default_factory=dict)


class SelectionRequest(BaseModel):
    """A selection of user ids."""

    user_ids: list[UUID] = Field(default_factory=list)


class ActionStateResponse(BaseModel):
    """Enable/disable state of one action."""

    action: ActionName
    disabled: bool
    reason: str | None = None


class ActionStatesResponse(BaseModel):
    """Action bar state for a selection."""

    data: list[ActionStateResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class BulkActionRequest(BaseModel):
    """Schema for executing a bulk action."""

    user_ids: list[UUID] = Field(..., min_length=1)
    confirmed: bool = False
    group_id: UUID | None = None
    title: str | None = Field(None, max_length=255)
    body: str | None = Field(None, max_length=5000)


class BulkItemErrorResponse(BaseModel):
    """A failure on one target of a bulk action."""

    user_id: UUID
    error_code: str
    message: str


class BulkActionResponse(BaseModel):
    """Outcome of a bulk action."""

    action: ActionName
    succeeded: int
    skipped: int
    errors: list[BulkItemErrorResponse]
    affected_ids: list[UUID]
    clear_selection: bool


class GroupOptionResponse(BaseModel):
    """A group offered by the group picker."""

    id: UUID
    name: str


class GroupPickerResponse(BaseModel):
    """Groups eligible for a group action."""

    data: list[GroupOptionResponse]


class AuditLogEntryResponse(BaseModel):
    """Schema for an audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor_user_id: UUID | None
    action: str
    target: str | None
    metadata: dict[str, Any]
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated audit log response."""

    data: list[AuditLogEntryResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class PlatformAdminRequest(BaseModel):
    """Schema for granting platform administration."""

    user_id: UUID


class OrphanedGroupResponse(BaseModel):
    """An engagement group left without a steward."""

    id: UUID
    name: str
    created_by: UUID | None
    creator_email: str | None
    creator_name: str | None
    created_at: datetime


class OrphanedGroupListResponse(BaseModel):
    """Every engagement group left without a steward."""

    data: list[OrphanedGroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class OrphanRepairRequest(BaseModel):
    """Who becomes steward; the group's creator when omitted."""

    user_id: UUID | None = None

"""Pydantic schemas for Group and Membership API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.group import GroupKind, GroupVisibility, MembershipStatus


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    visibility: GroupVisibility = GroupVisibility.PRIVATE
    show_member_list: bool = True


class GroupUpdate(BaseModel):
    """Schema for updating a group. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    visibility: GroupVisibility | None = None
    show_member_list: bool | None = None


class GroupResponse(BaseModel):
    """Schema for Group response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    kind: GroupKind
    visibility: GroupVisibility
    show_member_list: bool
    description: str | None
    created_by: UUID | None
    created_at: datetime


class GroupListResponse(BaseModel):
    """Schema for list of Groups response."""

    data: list[GroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupDetailResponse(BaseModel):
    """Schema for single Group response."""

    data: GroupResponse


# --- Memberships ---


class MembershipResponse(BaseModel):
    """Schema for a membership record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    user_id: UUID
    status: MembershipStatus
    added_by_user_id: UUID | None
    added_at: datetime


class GroupMemberResponse(BaseModel):
    """Schema for Group Member response."""

    membership_id: UUID
    user_id: UUID
    full_name: str | None
    email: str
    status: MembershipStatus
    role_names: list[str]
    added_at: datetime


class GroupMemberListResponse(BaseModel):
    """Schema for list of Group Members response."""

    data: list[GroupMemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InviteMemberRequest(BaseModel):
    """Schema for inviting a user to a group."""

    user_id: UUID


class MembershipStatusUpdate(BaseModel):
    """Schema for an administrative membership status change."""

    status: MembershipStatus


class InvitationResponse(BaseModel):
    """A pending invitation of the current user."""

    membership_id: UUID
    group: GroupResponse
    added_by_user_id: UUID | None
    invited_at: datetime


class InvitationListResponse(BaseModel):
    """Schema for list of pending invitations."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)

"""Group membership and role assignment API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_membership_service, get_role_service
from api.v1.schemas.group import (
    GroupMemberListResponse,
    GroupMemberResponse,
    InviteMemberRequest,
    MembershipResponse,
    MembershipStatusUpdate,
)
from api.v1.schemas.role import RoleAssignmentRequest, RoleAssignmentResponse
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.group import GroupMembership
from domain.services.membership_service import MembershipService
from domain.services.role_service import RoleService

router = APIRouter(prefix="/groups/{group_id}/members", tags=["members"])


@router.get(
    "",
    response_model=GroupMemberListResponse,
    summary="List group members",
    responses={
        200: {"description": "Members visible to the current user"},
        403: {"description": "Missing view_member_list permission"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_members(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> GroupMemberListResponse:
    """Get active members. Inviters also see invited and paused members."""
    members = await service.list_members(group_id, user.id)
    data = [
        GroupMemberResponse(
            membership_id=m.membership.id,
            user_id=m.membership.user_id,
            full_name=m.full_name,
            email=m.email,
            status=m.membership.status,
            role_names=m.role_names,
            added_at=m.membership.added_at,
        )
        for m in members
    ]
    return GroupMemberListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a user",
    responses={
        201: {"description": "Invitation created"},
        403: {"description": "Missing invite_members permission"},
        404: {"description": "Group or user not found"},
        409: {"description": "Already invited or a member"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def invite_member(
    request: Request,
    group_id: UUID,
    body: InviteMemberRequest,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MembershipResponse:
    """Invite a user to the group."""
    membership = await service.invite(group_id, body.user_id, invited_by=user.id)
    return _build_membership_response(membership)


@router.patch(
    "/{member_user_id}",
    response_model=MembershipResponse,
    summary="Change membership status",
    responses={
        200: {"description": "Status changed"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Membership not found"},
        409: {"description": "Transition not allowed or last Steward"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def set_member_status(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    body: MembershipStatusUpdate,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MembershipResponse:
    """Pause, reactivate or mark a member removed."""
    membership = await service.set_status(group_id, member_user_id, body.status, user.id)
    return _build_membership_response(membership)


@router.delete(
    "/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member or leave",
    responses={
        204: {"description": "Membership deleted"},
        403: {"description": "Missing remove_members permission"},
        404: {"description": "Membership not found"},
        409: {"description": "Last Steward of the group"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_member(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Remove a member from the group, or leave it when targeting yourself."""
    await service.remove_member(group_id, member_user_id, user.id)
    return None


# --- Role assignments ---


@router.post(
    "/{member_user_id}/roles",
    response_model=RoleAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a role",
    responses={
        201: {"description": "Role assigned"},
        403: {"description": "Missing assign_roles permission"},
        404: {"description": "Role or membership not found"},
        409: {"description": "Role already assigned"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def assign_role(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    body: RoleAssignmentRequest,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> RoleAssignmentResponse:
    """Assign a group role to an active member."""
    assignment = await service.assign_role(member_user_id, group_id, body.role_id, user.id)
    return RoleAssignmentResponse.model_validate(assignment)


@router.delete(
    "/{member_user_id}/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unassign a role",
    responses={
        204: {"description": "Role unassigned"},
        403: {"description": "Missing remove_roles permission"},
        404: {"description": "Assignment not found"},
        409: {"description": "Last Steward of the group"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def unassign_role(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    role_id: UUID,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> None:
    """Remove a role from a member."""
    await service.unassign_role(member_user_id, group_id, role_id, user.id)
    return None


def _build_membership_response(membership: GroupMembership) -> MembershipResponse:
    """Convert domain entity to response schema."""
    return MembershipResponse(
        id=membership.id,
        group_id=membership.group_id,
        user_id=membership.user_id,
        status=membership.status,
        added_by_user_id=membership.added_by_user_id,
        added_at=membership.added_at,
    )

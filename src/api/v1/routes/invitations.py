"""Invitation API routes for the invited user."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_membership_service
from api.v1.routes.groups import _build_group_response
from api.v1.schemas.group import (
    InvitationListResponse,
    InvitationResponse,
    MembershipResponse,
)
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.services.membership_service import MembershipService

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get(
    "",
    response_model=InvitationListResponse,
    summary="List my invitations",
    responses={200: {"description": "Pending invitations of the current user"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_my_invitations(
    request: Request,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> InvitationListResponse:
    """Get pending invitations with their groups."""
    invitations = await service.list_my_invitations(user.id)
    data = [
        InvitationResponse(
            membership_id=membership.id,
            group=_build_group_response(group),
            added_by_user_id=membership.added_by_user_id,
            invited_at=membership.added_at,
        )
        for membership, group in invitations
    ]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/{membership_id}/accept",
    response_model=MembershipResponse,
    summary="Accept an invitation",
    responses={
        200: {"description": "Membership is active"},
        404: {"description": "Invitation not found"},
        409: {"description": "Membership is not an invitation"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    membership_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> MembershipResponse:
    """Accept an invitation. Accepting twice is a no-op."""
    membership = await service.accept_invitation(membership_id, user.id)
    return MembershipResponse(
        id=membership.id,
        group_id=membership.group_id,
        user_id=membership.user_id,
        status=membership.status,
        added_by_user_id=membership.added_by_user_id,
        added_at=membership.added_at,
    )


@router.delete(
    "/{membership_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Decline an invitation",
    responses={
        204: {"description": "Invitation declined"},
        404: {"description": "Invitation not found"},
        409: {"description": "Membership is not an invitation"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def decline_invitation(
    request: Request,
    membership_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Decline an invitation, deleting it."""
    await service.decline_invitation(membership_id, user.id)
    return None

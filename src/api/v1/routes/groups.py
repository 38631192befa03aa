"""Group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_group_service
from api.v1.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupListResponse,
    GroupResponse,
    GroupUpdate,
)
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.group import Group
from domain.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get(
    "",
    response_model=GroupListResponse,
    summary="List groups",
    responses={
        200: {"description": "Groups visible to the current user"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_groups(
    request: Request,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get public groups and the groups the user belongs to. Admins see all groups."""
    groups = await service.list_for_user(user.id)
    data = [_build_group_response(g) for g in groups]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=GroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
    responses={
        201: {"description": "Group created, creator is its first Steward"},
        403: {"description": "Missing create_group permission"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_group(
    request: Request,
    body: GroupCreate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Create an engagement group with its mandatory roles."""
    group = await service.create(
        user_id=user.id,
        name=body.name,
        description=body.description,
        visibility=body.visibility,
        show_member_list=body.show_member_list,
    )
    return GroupDetailResponse(data=_build_group_response(group))


@router.get(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Get a group",
    responses={
        200: {"description": "Group details"},
        404: {"description": "Group not found or not visible"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Get a single group."""
    group = await service.get_by_id(group_id, user.id)
    return GroupDetailResponse(data=_build_group_response(group))


@router.patch(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Update a group",
    responses={
        200: {"description": "Group updated"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_group(
    request: Request,
    group_id: UUID,
    body: GroupUpdate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Update group settings. Each setting requires its own permission."""
    group = await service.update(
        group_id=group_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
        visibility=body.visibility,
        show_member_list=body.show_member_list,
    )
    return GroupDetailResponse(data=_build_group_response(group))


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    responses={
        204: {"description": "Group deleted"},
        403: {"description": "Missing delete_group permission or system group"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Delete an engagement group with its memberships and roles."""
    await service.delete(group_id, user.id)
    return None


def _build_group_response(group: Group) -> GroupResponse:
    """Convert domain entity to response schema."""
    return GroupResponse(
        id=group.id,
        name=group.name,
        kind=group.kind,
        visibility=group.visibility,
        show_member_list=group.show_member_list,
        description=group.description,
        created_by=group.created_by,
        created_at=group.created_at,
    )

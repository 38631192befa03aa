"""Platform admin API routes: user directory, bulk actions and audit log."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import (
    get_admin_action_service,
    get_admin_directory_service,
    get_audit_service,
)
from api.v1.schemas.admin import (
    ActionStateResponse,
    ActionStatesResponse,
    AdminUserListResponse,
    AdminUserResponse,
    AuditLogEntryResponse,
    AuditLogListResponse,
    BulkActionRequest,
    BulkActionResponse,
    BulkItemErrorResponse,
    GroupOptionResponse,
    GroupPickerResponse,
    OrphanedGroupListResponse,
    OrphanedGroupResponse,
    OrphanRepairRequest,
    PlatformAdminRequest,
    SelectionRequest,
    UserIdListResponse,
)
from api.v1.schemas.group import GroupMemberListResponse, GroupMemberResponse
from api.v1.schemas.role import RoleAssignmentResponse
from core.rate_limit import BULK_ACTION_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.admin_action import ActionName
from domain.entities.user import UserFilter
from domain.services.admin_action_service import ActionExtra, AdminActionService
from domain.services.admin_directory_service import AdminDirectoryService
from domain.services.audit_service import AuditService

router = APIRouter(prefix="/admin", tags=["admin"])

_ADMIN_ONLY = {403: {"description": "Admin access required"}}


def _user_filter(
    search: str | None = Query(None, max_length=255, description="Email or name contains"),
    show_active: bool = Query(True),
    show_inactive: bool = Query(True),
    show_decommissioned: bool = Query(False),
) -> UserFilter:
    return UserFilter(
        search=search,
        show_active=show_active,
        show_inactive=show_inactive,
        show_decommissioned=show_decommissioned,
    )


# --- User directory ---


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    summary="Search users",
    responses={200: {"description": "One page of matching users"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def search_users(
    request: Request,
    user: CurrentUser,
    filters: UserFilter = Depends(_user_filter),
    page: int = Query(0, ge=0, description="Zero-based page index"),
    page_size: int | None = Query(None, ge=1),
    service: AdminDirectoryService = Depends(get_admin_directory_service),
) -> AdminUserListResponse:
    """Get one page of the user directory, newest accounts first."""
    result = await service.search_users(user.id, filters, page=page, page_size=page_size)
    return AdminUserListResponse(
        data=[AdminUserResponse.model_validate(u) for u in result.users],
        meta={
            "total": result.total,
            "page": result.page,
            "page_size": result.page_size,
        },
    )


@router.get(
    "/users/ids",
    response_model=UserIdListResponse,
    summary="Select all matching users",
    responses={200: {"description": "Ids of every matching user"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def select_all_matching(
    request: Request,
    user: CurrentUser,
    filters: UserFilter = Depends(_user_filter),
    service: AdminDirectoryService = Depends(get_admin_directory_service),
) -> UserIdListResponse:
    """Get the ids of every user matching the filters across all pages."""
    ids = await service.select_all_matching(user.id, filters)
    return UserIdListResponse(data=ids, meta={"total": len(ids)})


# --- Bulk actions ---


@router.post(
    "/actions/states",
    response_model=ActionStatesResponse,
    summary="Action bar state",
    responses={200: {"description": "Enable/disable state per action"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_action_states(
    request: Request,
    body: SelectionRequest,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> ActionStatesResponse:
    """Compute which bulk actions are available for a selection."""
    view = await service.get_action_states(user.id, body.user_ids)
    return ActionStatesResponse(
        data=[
            ActionStateResponse(action=action, disabled=state.disabled, reason=state.reason)
            for action, state in view.states.items()
        ],
        meta={
            "selected_count": view.selected_count,
            "common_group_count": view.common_group_count,
        },
    )


@router.post(
    "/actions/{action}/groups",
    response_model=GroupPickerResponse,
    summary="Group picker",
    responses={
        200: {"description": "Groups eligible for the action"},
        400: {"description": "Action does not target a group"},
        **_ADMIN_ONLY,
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_group_picker(
    request: Request,
    action: ActionName,
    body: SelectionRequest,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> GroupPickerResponse:
    """Get the groups offered for invite, join or remove."""
    groups = await service.group_picker(user.id, action, body.user_ids)
    return GroupPickerResponse(data=[GroupOptionResponse(id=g.id, name=g.name) for g in groups])


@router.post(
    "/actions/{action}",
    response_model=BulkActionResponse,
    summary="Execute a bulk action",
    responses={
        200: {"description": "Every target processed"},
        207: {"description": "Some targets failed; see errors"},
        400: {"description": "Invalid action input"},
        428: {"description": "Destructive action needs confirmation"},
        **_ADMIN_ONLY,
    },
)
@limiter.limit(BULK_ACTION_LIMIT)  # type: ignore[untyped-decorator]
async def execute_action(
    request: Request,
    response: Response,
    action: ActionName,
    body: BulkActionRequest,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> BulkActionResponse:
    """Run an action on every selected user.

    Each user is processed independently; failures are reported per user
    and never roll back the users already processed.
    """
    result = await service.execute(
        actor_id=user.id,
        action=action,
        target_user_ids=body.user_ids,
        extra=ActionExtra(group_id=body.group_id, title=body.title, body=body.body),
        confirmed=body.confirmed,
    )
    if result.is_partial_failure:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return BulkActionResponse(
        action=result.action,
        succeeded=result.succeeded,
        skipped=result.skipped,
        errors=[
            BulkItemErrorResponse(user_id=e.user_id, error_code=e.error_code, message=e.message)
            for e in result.errors
        ],
        affected_ids=result.affected_ids,
        clear_selection=result.clear_selection,
    )


# --- Audit log ---


@router.get(
    "/audit-log",
    response_model=AuditLogListResponse,
    summary="Get audit log",
    responses={200: {"description": "Audit entries, newest first"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_audit_log(
    request: Request,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    action: str | None = Query(None, max_length=100),
    actor_user_id: UUID | None = Query(None),
    service: AuditService = Depends(get_audit_service),
) -> AuditLogListResponse:
    """Get audit log entries, optionally filtered by action or actor."""
    entries, total = await service.list_entries(
        user.id,
        limit=limit,
        offset=offset,
        action=action,
        actor_user_id=actor_user_id,
    )
    return AuditLogListResponse(
        data=[AuditLogEntryResponse.model_validate(e) for e in entries],
        meta={"total": total, "limit": limit, "offset": offset},
    )


# --- Platform administrators ---


@router.get(
    "/platform-admins",
    response_model=GroupMemberListResponse,
    summary="List platform administrators",
    responses={200: {"description": "Active super administrators"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_platform_admins(
    request: Request,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> GroupMemberListResponse:
    members = await service.list_platform_admins(user.id)
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
    "/platform-admins",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Grant platform administration",
    responses={
        204: {"description": "User is a platform administrator"},
        404: {"description": "User not found"},
        409: {"description": "Already a platform administrator"},
        **_ADMIN_ONLY,
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_platform_admin(
    request: Request,
    body: PlatformAdminRequest,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> None:
    """Add a user to the super administrator group."""
    await service.add_platform_admin(user.id, body.user_id)
    return None


@router.delete(
    "/platform-admins/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke platform administration",
    responses={
        204: {"description": "User is no longer a platform administrator"},
        404: {"description": "Not a platform administrator"},
        409: {"description": "Last platform administrator"},
        **_ADMIN_ONLY,
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_platform_admin(
    request: Request,
    user_id: UUID,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> None:
    """Remove a user from the super administrator group."""
    await service.remove_platform_admin(user.id, user_id)
    return None


# --- Orphaned groups ---


@router.get(
    "/orphaned-groups",
    response_model=OrphanedGroupListResponse,
    summary="List groups without a steward",
    responses={200: {"description": "Engagement groups with no active steward"}, **_ADMIN_ONLY},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_orphaned_groups(
    request: Request,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> OrphanedGroupListResponse:
    orphaned = await service.list_orphaned_groups(user.id)
    data = [
        OrphanedGroupResponse(
            id=o.group.id,
            name=o.group.name,
            created_by=o.group.created_by,
            creator_email=o.creator_email,
            creator_name=o.creator_name,
            created_at=o.group.created_at,
        )
        for o in orphaned
    ]
    return OrphanedGroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/orphaned-groups/{group_id}/repair",
    response_model=RoleAssignmentResponse,
    summary="Give an orphaned group a steward",
    responses={
        200: {"description": "Steward role assigned"},
        400: {"description": "Creator is gone and no user was named"},
        404: {"description": "Group or user not found"},
        409: {"description": "Group already has a steward, or the account is inactive"},
        **_ADMIN_ONLY,
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def repair_orphaned_group(
    request: Request,
    group_id: UUID,
    body: OrphanRepairRequest,
    user: CurrentUser,
    service: AdminActionService = Depends(get_admin_action_service),
) -> RoleAssignmentResponse:
    """Assign the Steward role to the named user or the group's creator."""
    assignment = await service.repair_orphaned_group(user.id, group_id, body.user_id)
    return RoleAssignmentResponse.model_validate(assignment)

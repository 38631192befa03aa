"""Group role and role grant API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_role_service
from api.v1.routes.permissions import build_permission_response
from api.v1.schemas.role import (
    LockoutWarningResponse,
    PermissionOptionResponse,
    PermissionPickerResponse,
    RoleCreate,
    RoleDetailResponse,
    RoleGrantResponse,
    RoleGrantsUpdate,
    RoleListResponse,
    RoleResponse,
    RoleUpdate,
)
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.role import GroupRole
from domain.services.role_service import RoleService

group_roles_router = APIRouter(prefix="/groups/{group_id}", tags=["roles"])
router = APIRouter(prefix="/roles", tags=["roles"])


@group_roles_router.get(
    "/roles",
    response_model=RoleListResponse,
    summary="List group roles",
    responses={
        200: {"description": "Roles with their grants and holder counts"},
        403: {"description": "Missing view_member_list permission"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_roles(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> RoleListResponse:
    """Get all roles of a group."""
    details = await service.list_roles(group_id, user.id)
    data = [
        _build_role_response(d.role, d.permission_names, d.holder_count) for d in details
    ]
    return RoleListResponse(data=data, meta={"total": len(data)})


@group_roles_router.post(
    "/roles",
    response_model=RoleDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group role",
    responses={
        201: {"description": "Role created"},
        403: {"description": "Missing manage_roles or granting unheld permissions"},
        404: {"description": "Group, template or permission not found"},
        409: {"description": "Role name already taken"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_role(
    request: Request,
    group_id: UUID,
    body: RoleCreate,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> RoleDetailResponse:
    """Create a role from a template or from explicit permissions."""
    role = await service.create_role(
        group_id=group_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
        template_id=body.template_id,
        permission_ids=body.permission_ids,
    )
    return RoleDetailResponse(data=_build_role_response(role))


@group_roles_router.get(
    "/permission-picker",
    response_model=PermissionPickerResponse,
    summary="Permission picker",
    responses={
        200: {"description": "Catalog with grantability for the current user"},
        403: {"description": "Missing manage_roles permission"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_permission_picker(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> PermissionPickerResponse:
    """Get every catalog permission, marking the ones the user cannot grant."""
    options = await service.get_permission_picker(group_id, user.id)
    return PermissionPickerResponse(
        data=[
            PermissionOptionResponse(
                permission=build_permission_response(o.permission),
                grantable=o.grantable,
                reason=o.reason,
            )
            for o in options
        ]
    )


@router.patch(
    "/{role_id}",
    response_model=RoleDetailResponse,
    summary="Update a role",
    responses={
        200: {"description": "Role updated"},
        403: {"description": "Missing manage_roles permission"},
        404: {"description": "Role not found"},
        409: {"description": "Role name already taken"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_role(
    request: Request,
    role_id: UUID,
    body: RoleUpdate,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> RoleDetailResponse:
    """Rename or describe a role."""
    role = await service.update_role(
        role_id=role_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
    )
    return RoleDetailResponse(data=_build_role_response(role))


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a role",
    responses={
        204: {"description": "Role deleted with its assignments"},
        403: {"description": "Missing manage_roles or template-derived role"},
        404: {"description": "Role not found"},
        409: {"description": "Would remove the last Steward"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_role(
    request: Request,
    role_id: UUID,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> None:
    """Delete a custom role."""
    await service.delete_role(role_id, user.id)
    return None


@router.put(
    "/{role_id}/permissions",
    response_model=RoleGrantResponse,
    summary="Replace role grants",
    responses={
        200: {"description": "Grants saved, or a lockout warning awaiting confirmation"},
        403: {"description": "Granting a permission you do not hold"},
        404: {"description": "Role or permission not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def set_role_grants(
    request: Request,
    role_id: UUID,
    body: RoleGrantsUpdate,
    user: CurrentUser,
    service: RoleService = Depends(get_role_service),
) -> RoleGrantResponse:
    """Replace the permissions a role grants.

    When saving would strip the editor of a critical permission the grants
    are not saved; resend with ``confirm_lockout`` to save anyway.
    """
    result = await service.set_grants(
        role_id=role_id,
        user_id=user.id,
        permission_ids=body.permission_ids,
        confirm_lockout=body.confirm_lockout,
    )
    warning = None
    if result.warning:
        warning = LockoutWarningResponse(
            permissions=result.warning.permissions,
            message=result.warning.message,
        )
    return RoleGrantResponse(
        outcome=result.outcome,
        role_id=result.role_id,
        permission_names=result.permission_names,
        warning=warning,
    )


def _build_role_response(
    role: GroupRole, permission_names: list[str] | None = None, holder_count: int = 0
) -> RoleResponse:
    """Convert domain entity to response schema."""
    return RoleResponse(
        id=role.id,
        group_id=role.group_id,
        name=role.name,
        description=role.description,
        source_template_id=role.source_template_id,
        is_template_derived=role.is_template_derived,
        permission_names=permission_names or [],
        holder_count=holder_count,
        created_at=role.created_at,
    )

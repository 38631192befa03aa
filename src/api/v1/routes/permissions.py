"""Permission catalog API routes."""

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_catalog_service
from api.v1.schemas.catalog import (
    PermissionCatalogResponse,
    PermissionCategoryResponse,
    PermissionResponse,
    RoleTemplateListResponse,
    RoleTemplateResponse,
)
from core.rate_limit import READ_LIMIT, limiter
from domain.entities.catalog import Permission, sort_permission_names
from domain.services.catalog_service import CatalogService

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get(
    "",
    response_model=PermissionCatalogResponse,
    summary="List permissions",
    responses={200: {"description": "Catalog grouped by category in display order"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_permissions(
    request: Request,
    user: CurrentUser,
    service: CatalogService = Depends(get_catalog_service),
) -> PermissionCatalogResponse:
    """Get the permission catalog grouped by category."""
    groups = await service.list_permissions()
    return PermissionCatalogResponse(
        data=[
            PermissionCategoryResponse(
                category=g.category,
                label=g.label,
                permissions=[build_permission_response(p) for p in g.permissions],
            )
            for g in groups
        ]
    )


@router.get(
    "/templates",
    response_model=RoleTemplateListResponse,
    summary="List role templates",
    responses={200: {"description": "Platform role templates"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_role_templates(
    request: Request,
    user: CurrentUser,
    service: CatalogService = Depends(get_catalog_service),
) -> RoleTemplateListResponse:
    """Get the role templates groups can create roles from."""
    templates = await service.list_role_templates()
    return RoleTemplateListResponse(
        data=[
            RoleTemplateResponse(
                id=t.id,
                name=t.name,
                description=t.description,
                permission_names=sort_permission_names(t.permission_names),
                created_at=t.created_at,
            )
            for t in templates
        ]
    )


def build_permission_response(permission: Permission) -> PermissionResponse:
    """Convert domain entity to response schema."""
    return PermissionResponse(
        id=permission.id,
        name=permission.name,
        category=permission.category,
        description=permission.description,
        display_order=permission.display_order,
    )

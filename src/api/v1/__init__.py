"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.admin import router as admin_router
from api.v1.routes.groups import router as groups_router
from api.v1.routes.invitations import router as invitations_router
from api.v1.routes.members import router as members_router
from api.v1.routes.notifications import router as notifications_router
from api.v1.routes.permissions import router as permissions_router
from api.v1.routes.roles import group_roles_router
from api.v1.routes.roles import router as roles_router

router = APIRouter()
router.include_router(groups_router)
router.include_router(members_router)
router.include_router(group_roles_router)
router.include_router(roles_router)
router.include_router(permissions_router)
router.include_router(invitations_router)
router.include_router(notifications_router)
router.include_router(admin_router)

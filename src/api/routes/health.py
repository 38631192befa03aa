"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from infrastructure.database.models import PermissionModel
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    catalog: str | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Detailed health check including database connectivity.

    Also reports whether the permission catalog has been seeded; an empty
    catalog means every permission check fails closed.
    """
    db_status = "unknown"
    catalog_status = None

    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
        count = await db.scalar(select(func.count()).select_from(PermissionModel))
        catalog_status = "seeded" if count else "empty"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"

    healthy = db_status == "healthy" and catalog_status == "seeded"

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version="1.0.0",
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        catalog=catalog_status,
    )

"""Notification API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_notification_service
from api.v1.schemas.notification import NotificationListResponse, NotificationResponse
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="Get notification feed",
    responses={200: {"description": "Messages and notifications for the current user"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_notifications(
    request: Request,
    user: CurrentUser,
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """Get the current user's notification feed, newest first."""
    views = await service.get_notifications(user.id, limit=limit, unread_only=unread_only)
    data = [NotificationResponse.model_validate(v) for v in views]
    return NotificationListResponse(data=data, meta={"count": len(data)})


@router.post(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark notification as read",
    responses={
        204: {"description": "Marked as read"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def mark_read(
    request: Request,
    notification_id: UUID,
    user: CurrentUser,
    service: NotificationService = Depends(get_notification_service),
) -> None:
    """Mark a delivered notification as read."""
    await service.mark_read(notification_id, user.id)
    return None

"""Pydantic schemas for Notification API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.notification import NotificationKind


class NotificationResponse(BaseModel):
    """Single notification in the feed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID  # notification_recipient.id (used for mark_read)
    notification_id: UUID
    kind: NotificationKind
    title: str
    body: str
    sender_id: UUID | None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    """Notification feed response."""

    data: list[NotificationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)

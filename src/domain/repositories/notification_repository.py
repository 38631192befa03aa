"""Notification repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.notification import (
    Notification,
    NotificationRecipient,
    NotificationView,
)


class INotificationRepository(Protocol):
    """Repository interface for notifications and their deliveries."""

    async def create(self, notification: Notification) -> Notification:
        """Create a notification event."""
        ...

    async def create_recipients_batch(
        self, recipients: list[NotificationRecipient]
    ) -> int:
        """Create delivery records, returning how many were written."""
        ...

    async def list_for_recipient(
        self, user_id: UUID, limit: int = 20, unread_only: bool = False
    ) -> list[NotificationView]:
        """Get notifications delivered to a user, newest first."""
        ...

    async def mark_read(self, recipient_row_id: UUID, user_id: UUID) -> bool:
        """Mark a delivery as read."""
        ...

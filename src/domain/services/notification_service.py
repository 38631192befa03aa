"""Notification service: sender for admin communications and recipient feed."""

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

import structlog

from core.exceptions import NotificationNotFoundError
from domain.entities.notification import (
    Notification,
    NotificationPayload,
    NotificationRecipient,
    NotificationView,
)
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class INotificationSender(Protocol):
    """Delivers a payload to users and reports which of them received it."""

    async def send(
        self, target_user_ids: list[UUID], payload: NotificationPayload
    ) -> list[UUID]:
        ...


class NotificationService:
    """Database-backed notification sender and feed."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def send(
        self, target_user_ids: list[UUID], payload: NotificationPayload
    ) -> list[UUID]:
        """Deliver a payload to every existing, non-decommissioned target.

        Returns:
            Ids of the users the payload was delivered to.
        """
        unique_ids = list(dict.fromkeys(target_user_ids))
        if not unique_ids:
            return []

        async with self._uow_factory() as uow:
            users = await uow.users.get_many(unique_ids)
            eligible = {u.id for u in users if not u.is_decommissioned}
            deliverable = [uid for uid in unique_ids if uid in eligible]
            if not deliverable:
                return []

            notification = await uow.notifications.create(
                Notification(
                    kind=payload.kind,
                    title=payload.title,
                    body=payload.body,
                    sender_id=payload.sender_id,
                    metadata=payload.metadata,
                )
            )
            await uow.notifications.create_recipients_batch(
                [
                    NotificationRecipient(notification_id=notification.id, recipient_id=uid)
                    for uid in deliverable
                ]
            )
            await uow.commit()

        logger.info(
            "notification_sent",
            kind=payload.kind.value,
            requested=len(unique_ids),
            delivered=len(deliverable),
        )
        return deliverable

    async def get_notifications(
        self, user_id: UUID, limit: int = 20, unread_only: bool = False
    ) -> list[NotificationView]:
        """Get the notification feed of a user."""
        async with self._uow_factory() as uow:
            return await uow.notifications.list_for_recipient(
                user_id, limit=limit, unread_only=unread_only
            )

    async def mark_read(self, recipient_row_id: UUID, user_id: UUID) -> None:
        """Mark a delivered notification as read."""
        async with self._uow_factory() as uow:
            if not await uow.notifications.mark_read(recipient_row_id, user_id):
                raise NotificationNotFoundError(str(recipient_row_id))
            await uow.commit()

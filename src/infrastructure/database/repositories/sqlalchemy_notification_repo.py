"""SQLAlchemy implementation of Notification repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import (
    Notification,
    NotificationKind,
    NotificationRecipient,
    NotificationView,
)
from infrastructure.database.models import NotificationModel, NotificationRecipientModel


class SQLAlchemyNotificationRepository:
    """SQLAlchemy implementation of INotificationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        """Create a new notification."""
        model = self._to_model(notification)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def create_recipients_batch(self, recipients: list[NotificationRecipient]) -> int:
        """Batch-create notification recipient records."""
        models = [self._recipient_to_model(r) for r in recipients]
        self._session.add_all(models)
        await self._session.flush()
        return len(models)

    async def list_for_recipient(
        self, user_id: UUID, limit: int = 20, unread_only: bool = False
    ) -> list[NotificationView]:
        """Get the notification feed for a user, newest first."""
        stmt = (
            select(NotificationModel, NotificationRecipientModel)
            .join(
                NotificationRecipientModel,
                NotificationModel.id == NotificationRecipientModel.notification_id,
            )
            .where(NotificationRecipientModel.recipient_id == user_id)
        )
        if unread_only:
            stmt = stmt.where(NotificationRecipientModel.is_read.is_(False))

        stmt = stmt.order_by(NotificationModel.created_at.desc()).limit(limit)

        rows = (await self._session.execute(stmt)).all()
        return [
            NotificationView(
                id=nr_model.id,
                notification_id=n_model.id,
                kind=NotificationKind(n_model.kind),
                title=n_model.title,
                body=n_model.body,
                sender_id=n_model.sender_id,
                is_read=nr_model.is_read,
                created_at=n_model.created_at,
            )
            for n_model, nr_model in rows
        ]

    async def mark_read(self, recipient_row_id: UUID, user_id: UUID) -> bool:
        """Mark a notification as read for a user."""
        stmt = (
            update(NotificationRecipientModel)
            .where(
                NotificationRecipientModel.id == recipient_row_id,
                NotificationRecipientModel.recipient_id == user_id,
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[return-value]

    # --- Conversion methods ---

    def _to_entity(self, model: NotificationModel) -> Notification:
        """Convert NotificationModel to domain entity."""
        return Notification(
            id=model.id,
            kind=NotificationKind(model.kind),
            title=model.title,
            body=model.body,
            sender_id=model.sender_id,
            metadata=model.metadata_,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Notification) -> NotificationModel:
        """Convert Notification domain entity to ORM model."""
        return NotificationModel(
            id=entity.id,
            kind=entity.kind.value,
            title=entity.title,
            body=entity.body,
            sender_id=entity.sender_id,
            metadata_=entity.metadata,
            created_at=entity.created_at,
        )

    def _recipient_to_model(self, entity: NotificationRecipient) -> NotificationRecipientModel:
        """Convert NotificationRecipient domain entity to ORM model."""
        return NotificationRecipientModel(
            id=entity.id,
            notification_id=entity.notification_id,
            recipient_id=entity.recipient_id,
            is_read=entity.is_read,
            read_at=entity.read_at,
        )

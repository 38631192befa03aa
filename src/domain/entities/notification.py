"""Notification domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4


class NotificationKind(StrEnum):
    """Delivery flavour of an admin communication."""

    MESSAGE = "message"
    NOTIFICATION = "notification"


@dataclass(frozen=True)
class NotificationPayload:
    """Content handed to the notification sender."""

    kind: NotificationKind
    title: str
    body: str
    sender_id: UUID | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class Notification:
    """Domain entity for a notification event."""

    kind: NotificationKind
    title: str
    body: str
    id: UUID = field(default_factory=uuid4)
    sender_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class NotificationRecipient:
    """Domain entity for a per-user notification delivery record."""

    notification_id: UUID
    recipient_id: UUID
    id: UUID = field(default_factory=uuid4)
    is_read: bool = False
    read_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class NotificationView:
    """Read-only value object: a delivered notification for one recipient."""

    id: UUID
    notification_id: UUID
    kind: NotificationKind
    title: str
    body: str
    sender_id: UUID | None
    is_read: bool
    created_at: datetime

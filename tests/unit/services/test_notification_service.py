"""Unit tests for NotificationService."""

from uuid import UUID, uuid4

import pytest

from core.exceptions import NotificationNotFoundError
from domain.entities.notification import NotificationKind, NotificationPayload
from domain.entities.user import User
from domain.services.notification_service import NotificationService
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def service(uow: FakeUnitOfWork) -> NotificationService:
    return NotificationService(lambda: uow)


@pytest.fixture
def payload(actor_id: UUID) -> NotificationPayload:
    return NotificationPayload(
        kind=NotificationKind.MESSAGE,
        title="Hello",
        body="Welcome aboard",
        sender_id=actor_id,
    )


class TestSend:
    @pytest.mark.asyncio
    async def test_skips_decommissioned_and_missing_users(
        self, service: NotificationService, uow: FakeUnitOfWork, payload: NotificationPayload
    ):
        active = User(email="a@example.com")
        gone = User(email="b@example.com", is_decommissioned=True)
        uow.users.get_many.return_value = [active, gone]
        uow.notifications.create.side_effect = lambda n: n
        uow.notifications.create_recipients_batch.side_effect = lambda rows: len(rows)

        delivered = await service.send([active.id, gone.id, uuid4(), active.id], payload)

        assert delivered == [active.id]
        rows = uow.notifications.create_recipients_batch.await_args.args[0]
        assert [r.recipient_id for r in rows] == [active.id]
        notification = uow.notifications.create.await_args.args[0]
        assert notification.sender_id == payload.sender_id
        assert uow.committed

    @pytest.mark.asyncio
    async def test_no_targets_sends_nothing(
        self, service: NotificationService, uow: FakeUnitOfWork, payload: NotificationPayload
    ):
        assert await service.send([], payload) == []
        uow.users.get_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nobody_deliverable(
        self, service: NotificationService, uow: FakeUnitOfWork, payload: NotificationPayload
    ):
        uow.users.get_many.return_value = []

        assert await service.send([uuid4()], payload) == []
        uow.notifications.create.assert_not_awaited()
        assert not uow.committed


class TestFeed:
    @pytest.mark.asyncio
    async def test_passes_filters_through(
        self, service: NotificationService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.notifications.list_for_recipient.return_value = []

        await service.get_notifications(user_id, limit=5, unread_only=True)

        uow.notifications.list_for_recipient.assert_awaited_once_with(
            user_id, limit=5, unread_only=True
        )

    @pytest.mark.asyncio
    async def test_mark_read(
        self, service: NotificationService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.notifications.mark_read.return_value = True

        await service.mark_read(uuid4(), user_id)

        assert uow.committed

    @pytest.mark.asyncio
    async def test_mark_read_of_foreign_row(
        self, service: NotificationService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.notifications.mark_read.return_value = False

        with pytest.raises(NotificationNotFoundError):
            await service.mark_read(uuid4(), user_id)

"""Unit tests for the admin user directory."""

from datetime import datetime
from unittest.mock import AsyncMock, patch
from uuid import UUID, uuid4

import pytest

from core.exceptions import AuthorizationError
from domain.entities.user import User, UserFilter, UserPage
from domain.services import admin_directory_service as directory_module
from domain.services.admin_directory_service import (
    AdminDirectoryService,
    PageCache,
    clamp_page_size,
)
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def permissions() -> AsyncMock:
    mock = AsyncMock()
    mock.has_platform_permission.return_value = True
    return mock


@pytest.fixture
def service(uow: FakeUnitOfWork, permissions: AsyncMock) -> AdminDirectoryService:
    return AdminDirectoryService(lambda: uow, permissions, cache_size=4)


class TestPageCache:
    def test_evicts_least_recently_used(self):
        cache = PageCache(max_size=2)
        page = UserPage(users=[], total=0, page=0, page_size=10)
        cache.set(("a",), page)
        cache.set(("b",), page)
        cache.get(("a",))

        cache.set(("c",), page)

        assert cache.get(("b",)) is None
        assert cache.get(("a",)) is page
        assert len(cache) == 2

    def test_clear(self):
        cache = PageCache()
        cache.set(("a",), UserPage(users=[], total=0, page=0, page_size=10))
        cache.clear()
        assert len(cache) == 0


class TestClampPageSize:
    def test_defaults_when_missing(self):
        assert clamp_page_size(None) == directory_module.settings.admin_page_size_default

    def test_caps_at_maximum(self):
        assert clamp_page_size(10_000) == directory_module.settings.admin_page_size_max

    def test_minimum_is_one(self):
        assert clamp_page_size(-3) == 1


class TestSearchUsers:
    @pytest.mark.asyncio
    async def test_requires_platform_admin(
        self, service: AdminDirectoryService, permissions: AsyncMock, actor_id: UUID
    ):
        permissions.has_platform_permission.return_value = False

        with pytest.raises(AuthorizationError):
            await service.search_users(actor_id, UserFilter())

    @pytest.mark.asyncio
    async def test_returns_page_with_offset(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        users = [User(email="a@example.com"), User(email="b@example.com")]
        uow.users.search.return_value = (users, 12)

        page = await service.search_users(actor_id, UserFilter(search="ex"), page=2, page_size=5)

        assert page.users == users
        assert page.total == 12
        assert (page.page, page.page_size) == (2, 5)
        uow.users.search.assert_awaited_once_with(UserFilter(search="ex"), offset=10, limit=5)

    @pytest.mark.asyncio
    async def test_caches_pages_until_invalidated(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        uow.users.search.return_value = ([], 0)
        uow.users.directory_version.return_value = (1, datetime(2026, 1, 1))

        await service.search_users(actor_id, UserFilter())
        await service.search_users(actor_id, UserFilter())
        assert uow.users.search.await_count == 1

        service.invalidate()
        await service.search_users(actor_id, UserFilter())
        assert uow.users.search.await_count == 2

    @pytest.mark.asyncio
    async def test_user_changes_elsewhere_bypass_cached_pages(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        admin = User(email="admin@example.com")
        newcomer = User(email="new@example.com")
        uow.users.directory_version.return_value = (1, datetime(2026, 1, 1))
        uow.users.search.return_value = ([admin], 1)
        await service.search_users(actor_id, UserFilter())

        uow.users.directory_version.return_value = (2, datetime(2026, 1, 2))
        uow.users.search.return_value = ([newcomer, admin], 2)
        page = await service.search_users(actor_id, UserFilter())

        assert page.users == [newcomer, admin]
        assert uow.users.search.await_count == 2

    @pytest.mark.asyncio
    async def test_no_status_selected_matches_nobody(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        filters = UserFilter(show_active=False, show_inactive=False, show_decommissioned=False)

        page = await service.search_users(actor_id, filters)

        assert page.total == 0
        uow.users.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_page_becomes_first_page(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        uow.users.search.return_value = ([], 0)

        page = await service.search_users(actor_id, UserFilter(), page=-1, page_size=10)

        assert page.page == 0
        uow.users.search.assert_awaited_once_with(UserFilter(), offset=0, limit=10)


class TestSelectAllMatching:
    @pytest.mark.asyncio
    async def test_collects_ids_across_batches(
        self, service: AdminDirectoryService, uow: FakeUnitOfWork, actor_id: UUID
    ):
        ids = [uuid4() for _ in range(5)]
        uow.users.list_ids.side_effect = [ids[:2], ids[2:4], ids[4:]]

        with patch.object(directory_module.settings, "bulk_id_batch_size", 2):
            result = await service.select_all_matching(actor_id, UserFilter())

        assert result == ids
        assert uow.users.list_ids.await_count == 3

    @pytest.mark.asyncio
    async def test_requires_platform_admin(
        self, service: AdminDirectoryService, permissions: AsyncMock, actor_id: UUID
    ):
        permissions.has_platform_permission.return_value = False

        with pytest.raises(AuthorizationError):
            await service.select_all_matching(actor_id, UserFilter())

"""Admin user directory: filtered, searched and paginated user listing."""

from collections import OrderedDict
from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import AuthorizationError
from domain.entities.user import UserFilter, UserPage
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()


class PageCache:
    """Small LRU cache of directory pages keyed by view and directory version."""

    def __init__(self, max_size: int = 64) -> None:
        self._max_size = max_size
        self._data: OrderedDict[tuple[Any, ...], UserPage] = OrderedDict()

    def get(self, key: tuple[Any, ...]) -> UserPage | None:
        page = self._data.get(key)
        if page is not None:
            self._data.move_to_end(key)
        return page

    def set(self, key: tuple[Any, ...], page: UserPage) -> None:
        self._data[key] = page
        self._data.move_to_end(key)
        while len(self._data) > self._max_size:
            self._data.popitem(last=False)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


def clamp_page_size(page_size: int | None) -> int:
    if not page_size:
        return settings.admin_page_size_default
    return max(1, min(page_size, settings.admin_page_size_max))


class AdminDirectoryService:
    """Service layer for the admin user directory."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService,
        cache_size: int = settings.directory_cache_size,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service
        self._cache = PageCache(cache_size)

    async def search_users(
        self,
        actor_id: UUID,
        filters: UserFilter,
        page: int = 0,
        page_size: int | None = None,
    ) -> UserPage:
        """Get one page of users, newest first."""
        await self._require_admin(actor_id)
        size = clamp_page_size(page_size)
        page = max(0, page)

        if not filters.statuses:
            return UserPage(users=[], total=0, page=page, page_size=size)

        async with self._uow_factory() as uow:
            # Provisioning and account changes elsewhere move the version
            key = (filters, page, size, await uow.users.directory_version())
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            users, total = await uow.users.search(filters, offset=page * size, limit=size)

        result = UserPage(users=users, total=total, page=page, page_size=size)
        self._cache.set(key, result)
        return result

    async def select_all_matching(self, actor_id: UUID, filters: UserFilter) -> list[UUID]:
        """Get the ids of every user matching filters, across all pages."""
        await self._require_admin(actor_id)
        if not filters.statuses:
            return []

        batch_size = settings.bulk_id_batch_size
        ids: list[UUID] = []
        async with self._uow_factory() as uow:
            offset = 0
            while True:
                batch = await uow.users.list_ids(filters, offset=offset, limit=batch_size)
                ids.extend(batch)
                if len(batch) < batch_size:
                    break
                offset += batch_size

        logger.info("directory_select_all", matched=len(ids))
        return ids

    def invalidate(self) -> None:
        """Drop cached pages after a mutation."""
        self._cache.clear()

    async def _require_admin(self, actor_id: UUID) -> None:
        if not await self._permissions.has_platform_permission(actor_id, settings.admin_permission):
            raise AuthorizationError("Unauthorized: admin access required")

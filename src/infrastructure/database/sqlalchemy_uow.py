"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_audit_repo import SQLAlchemyAuditLogRepository
from infrastructure.database.repositories.sqlalchemy_catalog_repo import SQLAlchemyCatalogRepository
from infrastructure.database.repositories.sqlalchemy_group_repo import SQLAlchemyGroupRepository
from infrastructure.database.repositories.sqlalchemy_notification_repo import (
    SQLAlchemyNotificationRepository,
)
from infrastructure.database.repositories.sqlalchemy_role_repo import SQLAlchemyRoleRepository
from infrastructure.database.repositories.sqlalchemy_user_repo import SQLAlchemyUserRepository


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def users(self) -> SQLAlchemyUserRepository:
        """Get user repository."""
        return SQLAlchemyUserRepository(self._require_session())

    @property
    def catalog(self) -> SQLAlchemyCatalogRepository:
        """Get permission catalog repository."""
        return SQLAlchemyCatalogRepository(self._require_session())

    @property
    def groups(self) -> SQLAlchemyGroupRepository:
        """Get group repository."""
        return SQLAlchemyGroupRepository(self._require_session())

    @property
    def roles(self) -> SQLAlchemyRoleRepository:
        """Get role repository."""
        return SQLAlchemyRoleRepository(self._require_session())

    @property
    def audit(self) -> SQLAlchemyAuditLogRepository:
        """Get audit log repository."""
        return SQLAlchemyAuditLogRepository(self._require_session())

    @property
    def notifications(self) -> SQLAlchemyNotificationRepository:
        """Get notification repository."""
        return SQLAlchemyNotificationRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None

"""Audit service layer for appending and reading the admin audit log."""

from collections.abc import Callable
from typing import Any
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import AuthorizationError
from domain.entities.audit import AuditLogEntry
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()


class AuditService:
    """Service layer for the append-only audit log."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service

    async def log(
        self,
        uow: IUnitOfWork,
        actor_user_id: UUID | None,
        action: str,
        target: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """Append an audit entry within an existing UoW transaction.

        The entry is committed or rolled back together with the mutation
        it describes.

        Args:
            uow: The active Unit of Work (caller manages commit).
            actor_user_id: The user who performed the action.
            action: The action string (use AuditActions constants).
            target: Human readable label of what was acted on.
            metadata: Structured facts such as affected ids and counts.

        Returns:
            The created AuditLogEntry.
        """
        entry = AuditLogEntry(
            actor_user_id=actor_user_id,
            action=action,
            target=target,
            metadata=metadata or {},
        )
        created = await uow.audit.create(entry)
        logger.info(
            "audit_logged",
            action=action,
            actor_user_id=str(actor_user_id) if actor_user_id else None,
            target=target,
        )
        return created

    async def list_entries(
        self,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
        actor_user_id: UUID | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """Get audit entries newest first. Requires platform admin."""
        if not await self._permissions.has_platform_permission(
            user_id, settings.admin_permission
        ):
            raise AuthorizationError("Unauthorized: admin access required")

        async with self._uow_factory() as uow:
            return await uow.audit.list(
                limit=limit, offset=offset, action=action, actor_user_id=actor_user_id
            )

    @staticmethod
    def user_metadata(user_ids: list[UUID], **extra: Any) -> dict[str, Any]:
        """Standard metadata for bulk entries: affected ids and count."""
        return {
            "user_ids": [str(uid) for uid in user_ids],
            "user_count": len(user_ids),
            **extra,
        }

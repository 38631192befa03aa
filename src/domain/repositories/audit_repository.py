"""Audit log repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.audit import AuditLogEntry


class IAuditLogRepository(Protocol):
    """Repository interface for the append-only audit log."""

    async def create(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Append an entry."""
        ...

    async def list(
        self,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
        actor_user_id: UUID | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """Get entries newest first, with the total count."""
        ...

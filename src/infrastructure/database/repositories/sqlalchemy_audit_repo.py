"""SQLAlchemy implementation of the admin audit log repository."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.audit import AuditLogEntry
from infrastructure.database.models import AdminAuditLogModel


class SQLAlchemyAuditLogRepository:
    """SQLAlchemy implementation of IAuditLogRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Append an audit log entry."""
        model = self._to_model(entry)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def list(
        self,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
        actor_user_id: UUID | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """Get entries, newest first, with the total count."""
        conditions = []
        if action:
            conditions.append(AdminAuditLogModel.action == action)
        if actor_user_id:
            conditions.append(AdminAuditLogModel.actor_user_id == actor_user_id)

        count_stmt = select(func.count(AdminAuditLogModel.id)).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(AdminAuditLogModel)
            .where(*conditions)
            .order_by(AdminAuditLogModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    def _to_entity(self, model: AdminAuditLogModel) -> AuditLogEntry:
        """Convert ORM model to domain entity."""
        return AuditLogEntry(
            id=model.id,
            actor_user_id=model.actor_user_id,
            action=model.action,
            target=model.target,
            metadata=model.metadata_ or {},
            created_at=model.created_at,
        )

    def _to_model(self, entity: AuditLogEntry) -> AdminAuditLogModel:
        """Convert domain entity to ORM model."""
        return AdminAuditLogModel(
            id=entity.id,
            actor_user_id=entity.actor_user_id,
            action=entity.action,
            target=entity.target,
            metadata_=entity.metadata,
            created_at=entity.created_at,
        )

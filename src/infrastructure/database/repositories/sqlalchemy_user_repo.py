"""SQLAlchemy implementation of User repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, and_, delete, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import GroupKind
from domain.entities.user import AccountStatus, User, UserFilter
from infrastructure.database.models import (
    GroupMembershipModel,
    GroupModel,
    GroupRoleModel,
    GroupRolePermissionModel,
    NotificationRecipientModel,
    UserGroupRoleModel,
    UserModel,
)


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> User | None:
        stmt = select(UserModel).where(UserModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_many(self, ids: list[UUID]) -> list[User]:
        if not ids:
            return []
        stmt = select(UserModel).where(UserModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, user: User) -> User:
        model = self._to_model(user)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, user: User) -> User:
        stmt = select(UserModel).where(UserModel.id == user.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"User {user.id} not found")

        model.email = user.email
        model.full_name = user.full_name
        model.is_active = user.is_active
        model.is_decommissioned = user.is_decommissioned
        model.sessions_revoked_at = user.sessions_revoked_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a user with role assignments, memberships, deliveries and personal group."""
        exists = await self._session.execute(select(UserModel.id).where(UserModel.id == id))
        if exists.scalar_one_or_none() is None:
            return False

        await self._session.execute(
            delete(UserGroupRoleModel).where(UserGroupRoleModel.user_id == id)
        )
        await self._session.execute(
            delete(GroupMembershipModel).where(GroupMembershipModel.user_id == id)
        )
        await self._session.execute(
            delete(NotificationRecipientModel).where(NotificationRecipientModel.recipient_id == id)
        )
        personal_ids = select(GroupModel.id).where(
            GroupModel.kind == GroupKind.PERSONAL.value, GroupModel.created_by == id
        )
        personal_role_ids = select(GroupRoleModel.id).where(GroupRoleModel.group_id.in_(personal_ids))
        await self._session.execute(
            delete(GroupRolePermissionModel).where(
                GroupRolePermissionModel.role_id.in_(personal_role_ids)
            )
        )
        await self._session.execute(
            delete(GroupRoleModel).where(GroupRoleModel.group_id.in_(personal_ids))
        )
        await self._session.execute(delete(GroupModel).where(GroupModel.id.in_(personal_ids)))
        await self._session.execute(delete(UserModel).where(UserModel.id == id))
        await self._session.flush()
        return True

    async def search(
        self, filters: UserFilter, offset: int, limit: int
    ) -> tuple[list[User], int]:
        count_stmt = self._apply_filters(select(func.count(UserModel.id)), filters)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            self._apply_filters(select(UserModel), filters)
            .order_by(UserModel.created_at.desc(), UserModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def list_ids(self, filters: UserFilter, offset: int, limit: int) -> list[UUID]:
        stmt = (
            self._apply_filters(select(UserModel.id), filters)
            .order_by(UserModel.created_at.desc(), UserModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def directory_version(self) -> tuple[int, datetime | None]:
        stmt = select(func.count(UserModel.id), func.max(UserModel.updated_at))
        count, latest = (await self._session.execute(stmt)).one()
        return count, latest

    def _apply_filters(self, stmt: Select, filters: UserFilter) -> Select:
        """Restrict a statement to users matching status flags and search text."""
        conditions = []
        statuses = filters.statuses
        if AccountStatus.ACTIVE in statuses:
            conditions.append(
                and_(UserModel.is_active.is_(True), UserModel.is_decommissioned.is_(False))
            )
        if AccountStatus.INACTIVE in statuses:
            conditions.append(
                and_(UserModel.is_active.is_(False), UserModel.is_decommissioned.is_(False))
            )
        if AccountStatus.DECOMMISSIONED in statuses:
            conditions.append(UserModel.is_decommissioned.is_(True))
        stmt = stmt.where(or_(*conditions)) if conditions else stmt.where(false())

        term = filters.normalized_search
        if term:
            pattern = f"%{term.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(UserModel.email).like(pattern),
                    func.lower(func.coalesce(UserModel.full_name, "")).like(pattern),
                )
            )
        return stmt

    def _to_entity(self, model: UserModel) -> User:
        """Convert ORM model to domain entity."""
        return User(
            id=model.id,
            email=model.email,
            full_name=model.full_name,
            is_active=model.is_active,
            is_decommissioned=model.is_decommissioned,
            sessions_revoked_at=model.sessions_revoked_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: User) -> UserModel:
        """Convert domain entity to ORM model."""
        return UserModel(
            id=entity.id,
            email=entity.email,
            full_name=entity.full_name,
            is_active=entity.is_active,
            is_decommissioned=entity.is_decommissioned,
            sessions_revoked_at=entity.sessions_revoked_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

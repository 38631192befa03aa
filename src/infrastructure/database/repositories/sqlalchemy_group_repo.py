"""SQLAlchemy implementation of Group repository."""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import (
    Group,
    GroupKind,
    GroupMemberView,
    GroupMembership,
    GroupVisibility,
    MembershipStatus,
)
from infrastructure.database.models import (
    GroupMembershipModel,
    GroupModel,
    GroupRoleModel,
    GroupRolePermissionModel,
    UserGroupRoleModel,
    UserModel,
)


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        stmt = select(GroupModel).where(GroupModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_system_group(self, name: str) -> Group | None:
        stmt = select(GroupModel).where(
            GroupModel.kind == GroupKind.SYSTEM.value,
            GroupModel.name == name,
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def get_personal_group(self, user_id: UUID) -> Group | None:
        stmt = select(GroupModel).where(
            GroupModel.kind == GroupKind.PERSONAL.value,
            GroupModel.created_by == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def list_all(self, kind: GroupKind | None = None) -> list[Group]:
        stmt = select(GroupModel).order_by(GroupModel.created_at)
        if kind is not None:
            stmt = stmt.where(GroupModel.kind == kind.value)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_discoverable(self, user_id: UUID) -> list[Group]:
        """Get public engagement groups plus groups the user has a live membership in."""
        member_of = select(GroupMembershipModel.group_id).where(
            GroupMembershipModel.user_id == user_id,
            GroupMembershipModel.status != MembershipStatus.REMOVED.value,
        )
        stmt = (
            select(GroupModel)
            .where(
                or_(
                    GroupModel.id.in_(member_of),
                    (GroupModel.kind == GroupKind.ENGAGEMENT.value)
                    & (GroupModel.visibility == GroupVisibility.PUBLIC.value),
                )
            )
            .order_by(GroupModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, group: Group) -> Group:
        """Create a new group."""
        model = self._to_model(group)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, group: Group) -> Group:
        """Update an existing group."""
        stmt = select(GroupModel).where(GroupModel.id == group.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Group {group.id} not found")

        model.name = group.name
        model.description = group.description
        model.visibility = group.visibility.value
        model.show_member_list = group.show_member_list

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a group with its memberships, roles, grants and assignments."""
        exists = await self._session.execute(select(GroupModel.id).where(GroupModel.id == id))
        if exists.scalar_one_or_none() is None:
            return False

        role_ids = select(GroupRoleModel.id).where(GroupRoleModel.group_id == id)
        await self._session.execute(
            delete(UserGroupRoleModel).where(UserGroupRoleModel.group_id == id)
        )
        await self._session.execute(
            delete(GroupRolePermissionModel).where(GroupRolePermissionModel.role_id.in_(role_ids))
        )
        await self._session.execute(delete(GroupRoleModel).where(GroupRoleModel.group_id == id))
        await self._session.execute(
            delete(GroupMembershipModel).where(GroupMembershipModel.group_id == id)
        )
        await self._session.execute(delete(GroupModel).where(GroupModel.id == id))
        await self._session.flush()
        return True

    # --- Memberships ---

    async def get_membership(
        self, group_id: UUID, user_id: UUID
    ) -> GroupMembership | None:
        stmt = select(GroupMembershipModel).where(
            GroupMembershipModel.group_id == group_id,
            GroupMembershipModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._membership_to_entity(model) if model else None

    async def get_membership_by_id(self, id: UUID) -> GroupMembership | None:
        stmt = select(GroupMembershipModel).where(GroupMembershipModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._membership_to_entity(model) if model else None

    async def add_membership(self, membership: GroupMembership) -> GroupMembership:
        model = self._membership_to_model(membership)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._membership_to_entity(model)

    async def update_membership(self, membership: GroupMembership) -> GroupMembership:
        stmt = select(GroupMembershipModel).where(GroupMembershipModel.id == membership.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Membership {membership.id} not found")

        model.status = membership.status.value
        model.added_by_user_id = membership.added_by_user_id
        model.updated_at = membership.updated_at

        await self._session.flush()
        return self._membership_to_entity(model)

    async def delete_membership(self, group_id: UUID, user_id: UUID) -> bool:
        stmt = delete(GroupMembershipModel).where(
            GroupMembershipModel.group_id == group_id,
            GroupMembershipModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[return-value]

    async def list_members(
        self, group_id: UUID, statuses: list[MembershipStatus] | None = None
    ) -> list[GroupMemberView]:
        """Get memberships joined with profiles and the member's role names."""
        stmt = (
            select(GroupMembershipModel, UserModel.full_name, UserModel.email)
            .join(UserModel, GroupMembershipModel.user_id == UserModel.id)
            .where(GroupMembershipModel.group_id == group_id)
            .order_by(GroupMembershipModel.added_at)
        )
        if statuses:
            stmt = stmt.where(GroupMembershipModel.status.in_([s.value for s in statuses]))
        rows = (await self._session.execute(stmt)).all()

        roles_stmt = (
            select(UserGroupRoleModel.user_id, GroupRoleModel.name)
            .join(GroupRoleModel, UserGroupRoleModel.role_id == GroupRoleModel.id)
            .where(UserGroupRoleModel.group_id == group_id)
            .order_by(GroupRoleModel.name)
        )
        role_names: dict[UUID, list[str]] = defaultdict(list)
        for user_id, role_name in (await self._session.execute(roles_stmt)).all():
            role_names[user_id].append(role_name)

        return [
            GroupMemberView(
                membership=self._membership_to_entity(model),
                full_name=full_name,
                email=email,
                role_names=role_names.get(model.user_id, []),
            )
            for model, full_name, email in rows
        ]

    async def list_invitations_for_user(
        self, user_id: UUID
    ) -> list[tuple[GroupMembership, Group]]:
        stmt = (
            select(GroupMembershipModel, GroupModel)
            .join(GroupModel, GroupMembershipModel.group_id == GroupModel.id)
            .where(
                GroupMembershipModel.user_id == user_id,
                GroupMembershipModel.status == MembershipStatus.INVITED.value,
            )
            .order_by(GroupMembershipModel.added_at.desc())
        )
        rows = (await self._session.execute(stmt)).all()
        return [
            (self._membership_to_entity(membership), self._to_entity(group))
            for membership, group in rows
        ]

    async def list_active_membership_pairs(
        self, user_ids: list[UUID], kind: GroupKind | None = None
    ) -> list[tuple[UUID, UUID]]:
        if not user_ids:
            return []
        stmt = select(GroupMembershipModel.group_id, GroupMembershipModel.user_id).where(
            GroupMembershipModel.user_id.in_(user_ids),
            GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
        )
        if kind is not None:
            stmt = stmt.join(GroupModel, GroupMembershipModel.group_id == GroupModel.id).where(
                GroupModel.kind == kind.value
            )
        rows = (await self._session.execute(stmt)).all()
        return [(group_id, user_id) for group_id, user_id in rows]

    async def count_active_members(self, group_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(GroupMembershipModel)
            .where(
                GroupMembershipModel.group_id == group_id,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    # --- Conversion methods ---

    def _to_entity(self, model: GroupModel) -> Group:
        """Convert ORM model to domain entity."""
        return Group(
            id=model.id,
            name=model.name,
            kind=GroupKind(model.kind),
            visibility=GroupVisibility(model.visibility),
            show_member_list=model.show_member_list,
            description=model.description,
            created_by=model.created_by,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Group) -> GroupModel:
        """Convert domain entity to ORM model."""
        return GroupModel(
            id=entity.id,
            name=entity.name,
            kind=entity.kind.value,
            visibility=entity.visibility.value,
            show_member_list=entity.show_member_list,
            description=entity.description,
            created_by=entity.created_by,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _membership_to_entity(self, model: GroupMembershipModel) -> GroupMembership:
        return GroupMembership(
            id=model.id,
            group_id=model.group_id,
            user_id=model.user_id,
            status=MembershipStatus(model.status),
            added_by_user_id=model.added_by_user_id,
            added_at=model.added_at,
            updated_at=model.updated_at,
        )

    def _membership_to_model(self, entity: GroupMembership) -> GroupMembershipModel:
        return GroupMembershipModel(
            id=entity.id,
            group_id=entity.group_id,
            user_id=entity.user_id,
            status=entity.status.value,
            added_by_user_id=entity.added_by_user_id,
            added_at=entity.added_at,
            updated_at=entity.updated_at,
        )

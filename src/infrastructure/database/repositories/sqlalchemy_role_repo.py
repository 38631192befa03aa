"""SQLAlchemy implementation of Role repository.

Also hosts the permission resolution queries: a grant counts only through
a role assignment backed by an active membership in the same group.
"""

from uuid import UUID

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import GroupKind, MembershipStatus
from domain.entities.role import GroupRole, UserRoleAssignment
from infrastructure.database.models import (
    GroupMembershipModel,
    GroupModel,
    GroupRoleModel,
    GroupRolePermissionModel,
    PermissionModel,
    UserGroupRoleModel,
)


class SQLAlchemyRoleRepository:
    """SQLAlchemy implementation of IRoleRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> GroupRole | None:
        stmt = select(GroupRoleModel).where(GroupRoleModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_name(self, group_id: UUID, name: str) -> GroupRole | None:
        stmt = select(GroupRoleModel).where(
            GroupRoleModel.group_id == group_id,
            func.lower(GroupRoleModel.name) == name.strip().lower(),
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def list_for_group(self, group_id: UUID) -> list[GroupRole]:
        stmt = (
            select(GroupRoleModel)
            .where(GroupRoleModel.group_id == group_id)
            .order_by(GroupRoleModel.created_at, GroupRoleModel.name)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, role: GroupRole) -> GroupRole:
        model = self._to_model(role)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, role: GroupRole) -> GroupRole:
        stmt = select(GroupRoleModel).where(GroupRoleModel.id == role.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Role {role.id} not found")

        model.name = role.name
        model.description = role.description

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a role with its grants and assignments."""
        await self._session.execute(
            delete(UserGroupRoleModel).where(UserGroupRoleModel.role_id == id)
        )
        await self._session.execute(
            delete(GroupRolePermissionModel).where(GroupRolePermissionModel.role_id == id)
        )
        result = await self._session.execute(delete(GroupRoleModel).where(GroupRoleModel.id == id))
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[return-value]

    # --- Grants ---

    async def get_permission_ids(self, role_id: UUID) -> set[UUID]:
        stmt = select(GroupRolePermissionModel.permission_id).where(
            GroupRolePermissionModel.role_id == role_id
        )
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def get_permission_names(self, role_id: UUID) -> set[str]:
        stmt = (
            select(PermissionModel.name)
            .join(
                GroupRolePermissionModel,
                GroupRolePermissionModel.permission_id == PermissionModel.id,
            )
            .where(GroupRolePermissionModel.role_id == role_id)
        )
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def set_permissions(self, role_id: UUID, permission_ids: set[UUID]) -> None:
        """Replace the grants of a role."""
        await self._session.execute(
            delete(GroupRolePermissionModel).where(GroupRolePermissionModel.role_id == role_id)
        )
        self._session.add_all(
            GroupRolePermissionModel(role_id=role_id, permission_id=pid) for pid in permission_ids
        )
        await self._session.flush()

    # --- Assignments ---

    async def get_assignment(
        self, user_id: UUID, group_id: UUID, role_id: UUID
    ) -> UserRoleAssignment | None:
        stmt = select(UserGroupRoleModel).where(
            UserGroupRoleModel.user_id == user_id,
            UserGroupRoleModel.group_id == group_id,
            UserGroupRoleModel.role_id == role_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._assignment_to_entity(model) if model else None

    async def list_assignments(
        self, user_id: UUID, group_id: UUID
    ) -> list[UserRoleAssignment]:
        stmt = select(UserGroupRoleModel).where(
            UserGroupRoleModel.user_id == user_id,
            UserGroupRoleModel.group_id == group_id,
        )
        result = await self._session.execute(stmt)
        return [self._assignment_to_entity(model) for model in result.scalars()]

    async def add_assignment(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        model = UserGroupRoleModel(
            id=assignment.id,
            user_id=assignment.user_id,
            group_id=assignment.group_id,
            role_id=assignment.role_id,
            assigned_by_user_id=assignment.assigned_by_user_id,
            assigned_at=assignment.assigned_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._assignment_to_entity(model)

    async def delete_assignment(self, user_id: UUID, group_id: UUID, role_id: UUID) -> bool:
        stmt = delete(UserGroupRoleModel).where(
            UserGroupRoleModel.user_id == user_id,
            UserGroupRoleModel.group_id == group_id,
            UserGroupRoleModel.role_id == role_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount > 0  # type: ignore[return-value]

    async def delete_member_assignments(self, group_id: UUID, user_id: UUID) -> int:
        stmt = delete(UserGroupRoleModel).where(
            UserGroupRoleModel.group_id == group_id,
            UserGroupRoleModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[return-value]

    async def count_holders(self, role_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(UserGroupRoleModel)
            .where(UserGroupRoleModel.role_id == role_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    # --- Resolution ---

    async def get_system_permission_names(self, user_id: UUID) -> set[str]:
        """Permissions granted through roles in active system group memberships."""
        stmt = (
            self._granted_permission_names(user_id)
            .join(GroupModel, GroupModel.id == UserGroupRoleModel.group_id)
            .where(GroupModel.kind == GroupKind.SYSTEM.value)
        )
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def get_group_permission_names(
        self, user_id: UUID, group_id: UUID, exclude_role_id: UUID | None = None
    ) -> set[str]:
        """Permissions granted by the user's roles in one group."""
        stmt = self._granted_permission_names(user_id).where(
            UserGroupRoleModel.group_id == group_id
        )
        if exclude_role_id is not None:
            stmt = stmt.where(UserGroupRoleModel.role_id != exclude_role_id)
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def list_permission_holders(
        self, group_id: UUID, permission_name: str, for_update: bool = False
    ) -> list[UserRoleAssignment]:
        """Assignments of active members whose role grants a permission in a group."""
        stmt = (
            select(UserGroupRoleModel)
            .join(
                GroupRolePermissionModel,
                GroupRolePermissionModel.role_id == UserGroupRoleModel.role_id,
            )
            .join(PermissionModel, PermissionModel.id == GroupRolePermissionModel.permission_id)
            .join(
                GroupMembershipModel,
                (GroupMembershipModel.group_id == UserGroupRoleModel.group_id)
                & (GroupMembershipModel.user_id == UserGroupRoleModel.user_id),
            )
            .where(
                UserGroupRoleModel.group_id == group_id,
                PermissionModel.name == permission_name,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
            )
        )
        if for_update:
            # Serializes concurrent removals of the last holders
            stmt = stmt.with_for_update(of=UserGroupRoleModel)
        result = await self._session.execute(stmt)
        return [self._assignment_to_entity(model) for model in result.scalars()]

    def _granted_permission_names(self, user_id: UUID) -> Select:
        """Permission names reachable from a user's assignments under active memberships."""
        return (
            select(PermissionModel.name)
            .distinct()
            .join(
                GroupRolePermissionModel,
                GroupRolePermissionModel.permission_id == PermissionModel.id,
            )
            .join(
                UserGroupRoleModel,
                UserGroupRoleModel.role_id == GroupRolePermissionModel.role_id,
            )
            .join(
                GroupMembershipModel,
                (GroupMembershipModel.group_id == UserGroupRoleModel.group_id)
                & (GroupMembershipModel.user_id == UserGroupRoleModel.user_id),
            )
            .where(
                UserGroupRoleModel.user_id == user_id,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
            )
        )

    # --- Conversion methods ---

    def _to_entity(self, model: GroupRoleModel) -> GroupRole:
        return GroupRole(
            id=model.id,
            group_id=model.group_id,
            name=model.name,
            description=model.description,
            source_template_id=model.source_template_id,
            created_at=model.created_at,
        )

    def _to_model(self, entity: GroupRole) -> GroupRoleModel:
        return GroupRoleModel(
            id=entity.id,
            group_id=entity.group_id,
            name=entity.name,
            description=entity.description,
            source_template_id=entity.source_template_id,
            created_at=entity.created_at,
        )

    def _assignment_to_entity(self, model: UserGroupRoleModel) -> UserRoleAssignment:
        return UserRoleAssignment(
            id=model.id,
            user_id=model.user_id,
            group_id=model.group_id,
            role_id=model.role_id,
            assigned_by_user_id=model.assigned_by_user_id,
            assigned_at=model.assigned_at,
        )

"""SQLAlchemy implementation of the permission catalog repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.catalog import Permission, RoleTemplate, sort_permissions
from infrastructure.database.models import (
    PermissionModel,
    RoleTemplateModel,
    RoleTemplatePermissionModel,
)


class SQLAlchemyCatalogRepository:
    """SQLAlchemy implementation of ICatalogRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Permissions ---

    async def list_permissions(self) -> list[Permission]:
        result = await self._session.execute(select(PermissionModel))
        return sort_permissions([self._permission_to_entity(m) for m in result.scalars()])

    async def get_permissions_by_ids(self, ids: list[UUID]) -> list[Permission]:
        if not ids:
            return []
        stmt = select(PermissionModel).where(PermissionModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [self._permission_to_entity(m) for m in result.scalars()]

    async def get_permissions_by_names(self, names: list[str]) -> list[Permission]:
        if not names:
            return []
        stmt = select(PermissionModel).where(PermissionModel.name.in_(names))
        result = await self._session.execute(stmt)
        return [self._permission_to_entity(m) for m in result.scalars()]

    async def create_permission(self, permission: Permission) -> Permission:
        model = PermissionModel(
            id=permission.id,
            name=permission.name,
            category=permission.category,
            description=permission.description,
        )
        self._session.add(model)
        await self._session.flush()
        return self._permission_to_entity(model)

    # --- Role templates ---

    async def list_role_templates(self) -> list[RoleTemplate]:
        stmt = select(RoleTemplateModel).order_by(RoleTemplateModel.created_at)
        result = await self._session.execute(stmt)
        return await self._with_permission_names(list(result.scalars()))

    async def get_role_template(self, id: UUID) -> RoleTemplate | None:
        stmt = select(RoleTemplateModel).where(RoleTemplateModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return (await self._with_permission_names([model]))[0]

    async def get_role_template_by_name(self, name: str) -> RoleTemplate | None:
        stmt = select(RoleTemplateModel).where(RoleTemplateModel.name == name)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return (await self._with_permission_names([model]))[0]

    async def create_role_template(self, template: RoleTemplate) -> RoleTemplate:
        model = RoleTemplateModel(
            id=template.id,
            name=template.name,
            description=template.description,
            created_at=template.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return RoleTemplate(
            id=model.id,
            name=model.name,
            description=model.description,
            created_at=model.created_at,
        )

    async def get_template_permission_ids(self, template_id: UUID) -> list[UUID]:
        stmt = select(RoleTemplatePermissionModel.permission_id).where(
            RoleTemplatePermissionModel.template_id == template_id
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def add_template_permissions(
        self, template_id: UUID, permission_ids: list[UUID]
    ) -> None:
        existing = set(await self.get_template_permission_ids(template_id))
        self._session.add_all(
            RoleTemplatePermissionModel(template_id=template_id, permission_id=pid)
            for pid in dict.fromkeys(permission_ids)
            if pid not in existing
        )
        await self._session.flush()

    # --- Conversion methods ---

    def _permission_to_entity(self, model: PermissionModel) -> Permission:
        return Permission(
            id=model.id,
            name=model.name,
            category=model.category,
            description=model.description,
        )

    async def _with_permission_names(
        self, models: list[RoleTemplateModel]
    ) -> list[RoleTemplate]:
        """Convert template models, loading their bundled permission names."""
        names: dict[UUID, set[str]] = {m.id: set() for m in models}
        if names:
            stmt = (
                select(RoleTemplatePermissionModel.template_id, PermissionModel.name)
                .join(
                    PermissionModel,
                    RoleTemplatePermissionModel.permission_id == PermissionModel.id,
                )
                .where(RoleTemplatePermissionModel.template_id.in_(list(names)))
            )
            for template_id, permission_name in (await self._session.execute(stmt)).all():
                names[template_id].add(permission_name)

        return [
            RoleTemplate(
                id=model.id,
                name=model.name,
                description=model.description,
                permission_names=frozenset(names[model.id]),
                created_at=model.created_at,
            )
            for model in models
        ]

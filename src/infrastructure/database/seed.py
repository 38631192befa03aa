"""Idempotent seeding of the permission catalog, role templates and system groups.

Runs on application startup and can be run by hand:

    python -m infrastructure.database.seed [--admin-email EMAIL]

``--admin-email`` makes an already provisioned user the first platform
administrator.
"""

import argparse
import asyncio
from collections.abc import Callable
from uuid import UUID

import structlog

from core.config import settings
from core.logging import setup_logging
from domain.entities.catalog import (
    ALL_MEMBERS_PERMISSIONS,
    ALL_MEMBERS_ROLE,
    PERMISSION_CATALOG,
    ROLE_TEMPLATE_CATALOG,
    SUPER_ADMIN_PERMISSIONS,
    SUPER_ADMIN_ROLE,
    Permission,
    RoleTemplate,
)
from domain.entities.group import Group, GroupKind, GroupMembership, MembershipStatus
from domain.entities.role import GroupRole, UserRoleAssignment
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


async def seed_catalog(uow_factory: Callable[[], IUnitOfWork]) -> None:
    """Create missing permissions, templates and system groups.

    Existing rows are left alone; new catalog permissions are granted to the
    administrator role and added to their templates.
    """
    async with uow_factory() as uow:
        by_name = await _seed_permissions(uow)
        await _seed_templates(uow, by_name)
        await _seed_system_group(
            uow,
            settings.all_members_group_name,
            ALL_MEMBERS_ROLE,
            {by_name[n] for n in ALL_MEMBERS_PERMISSIONS if n in by_name},
        )
        await _seed_system_group(
            uow,
            settings.super_admin_group_name,
            SUPER_ADMIN_ROLE,
            {by_name[n] for n in SUPER_ADMIN_PERMISSIONS if n in by_name},
        )
        await uow.commit()
    logger.info("catalog_seeded", permissions=len(PERMISSION_CATALOG))


async def grant_initial_admin(uow_factory: Callable[[], IUnitOfWork], email: str) -> bool:
    """Make an existing user a platform administrator. Returns False if unknown."""
    async with uow_factory() as uow:
        user = await uow.users.get_by_email(email)
        group = await uow.groups.get_system_group(settings.super_admin_group_name)
        if not user or not group:
            logger.warning("initial_admin_not_granted", email=email)
            return False

        membership = await uow.groups.get_membership(group.id, user.id)
        if not membership:
            await uow.groups.add_membership(
                GroupMembership(group_id=group.id, user_id=user.id, status=MembershipStatus.ACTIVE)
            )
        elif not membership.is_active:
            membership.status = MembershipStatus.ACTIVE
            await uow.groups.update_membership(membership)

        role = await uow.roles.get_by_name(group.id, SUPER_ADMIN_ROLE)
        if role and not await uow.roles.get_assignment(user.id, group.id, role.id):
            await uow.roles.add_assignment(
                UserRoleAssignment(user_id=user.id, group_id=group.id, role_id=role.id)
            )
        await uow.commit()

    logger.info("initial_admin_granted", user_id=str(user.id))
    return True


# --- Internal helpers ---


async def _seed_permissions(uow: IUnitOfWork) -> dict[str, UUID]:
    existing = {p.name: p.id for p in await uow.catalog.list_permissions()}
    for definition in PERMISSION_CATALOG:
        if definition.name in existing:
            continue
        created = await uow.catalog.create_permission(
            Permission(
                name=definition.name,
                category=definition.category.value,
                description=definition.description,
            )
        )
        existing[created.name] = created.id
        logger.debug("permission_created", name=created.name)
    return existing


async def _seed_templates(uow: IUnitOfWork, by_name: dict[str, UUID]) -> None:
    for definition in ROLE_TEMPLATE_CATALOG:
        template = await uow.catalog.get_role_template_by_name(definition.name)
        if not template:
            template = await uow.catalog.create_role_template(
                RoleTemplate(name=definition.name, description=definition.description)
            )
        await uow.catalog.add_template_permissions(
            template.id, [by_name[n] for n in sorted(definition.permissions) if n in by_name]
        )


async def _seed_system_group(
    uow: IUnitOfWork, group_name: str, role_name: str, permission_ids: set[UUID]
) -> None:
    group = await uow.groups.get_system_group(group_name)
    if not group:
        group = await uow.groups.create(
            Group(name=group_name, kind=GroupKind.SYSTEM, show_member_list=False)
        )
        logger.info("system_group_created", name=group_name)

    role = await uow.roles.get_by_name(group.id, role_name)
    if not role:
        role = await uow.roles.create(GroupRole(group_id=group.id, name=role_name))

    current = await uow.roles.get_permission_ids(role.id)
    if not permission_ids <= current:
        await uow.roles.set_permissions(role.id, current | permission_ids)


async def _main(admin_email: str | None) -> None:
    from infrastructure.database.session import async_session_factory, engine
    from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    try:
        await seed_catalog(factory)
        if admin_email:
            await grant_initial_admin(factory, admin_email)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    parser = argparse.ArgumentParser(description="Seed the permission catalog")
    parser.add_argument("--admin-email", help="Make this user a platform administrator")
    args = parser.parse_args()
    asyncio.run(_main(args.admin_email))

"""User service: account provisioning and session validation."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.exceptions import AccountDisabledError, AuthenticationError, ErrorCode, UserNotFoundError
from domain.entities.catalog import ALL_MEMBERS_ROLE, PERSONAL_GROUP_PERMISSIONS, PERSONAL_GROUP_ROLE
from domain.entities.group import Group, GroupKind, GroupMembership, MembershipStatus
from domain.entities.role import GroupRole, UserRoleAssignment
from domain.entities.user import User
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class UserService:
    """Service layer for user accounts."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def get(self, user_id: UUID) -> User:
        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))
            return user

    async def authorize_session(
        self,
        user_id: UUID,
        email: str,
        full_name: str | None = None,
        issued_at: datetime | None = None,
    ) -> User:
        """Resolve the account behind a validated token.

        Provisions the account on first sight. Rejects disabled accounts
        and tokens issued before the account's sessions were revoked.
        """
        user = await self.ensure_provisioned(user_id, email, full_name)

        if user.is_decommissioned or not user.is_active:
            raise AccountDisabledError()
        revoked_at = user.sessions_revoked_at
        # Token iat has whole-second precision
        if revoked_at and (issued_at is None or issued_at < revoked_at.replace(microsecond=0)):
            raise AuthenticationError(
                message="Session has been revoked", error_code=ErrorCode.SESSION_REVOKED
            )
        return user

    async def ensure_provisioned(
        self, user_id: UUID, email: str, full_name: str | None = None
    ) -> User:
        """Create the account, its personal group and its platform membership.

        Idempotent. Handles concurrent first requests via IntegrityError catch.
        """
        async with self._uow_factory() as uow:
            existing = await uow.users.get(user_id)
            if existing:
                return existing

            try:
                user = await uow.users.create(User(id=user_id, email=email, full_name=full_name))
                await self._create_personal_group(uow, user)
                await self._join_all_members(uow, user)
                await uow.commit()
                logger.info("account_provisioned", user_id=str(user_id))
                return user
            except IntegrityError as exc:
                await uow.rollback()
                # Only swallow unique-constraint violations (race condition).
                orig = str(exc.orig).lower() if exc.orig else ""
                if "unique" not in orig and "duplicate" not in orig:
                    raise
                logger.debug("account_provision_race", user_id=str(user_id))

        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))
            return user

    # --- Internal helpers ---

    async def _create_personal_group(self, uow: IUnitOfWork, user: User) -> Group:
        group = await uow.groups.create(
            Group(
                name=user.display_name,
                kind=GroupKind.PERSONAL,
                created_by=user.id,
                show_member_list=False,
            )
        )
        role = await uow.roles.create(GroupRole(group_id=group.id, name=PERSONAL_GROUP_ROLE))
        permissions = await uow.catalog.get_permissions_by_names(sorted(PERSONAL_GROUP_PERMISSIONS))
        await uow.roles.set_permissions(role.id, {p.id for p in permissions})

        await uow.groups.add_membership(
            GroupMembership(
                group_id=group.id,
                user_id=user.id,
                status=MembershipStatus.ACTIVE,
                added_by_user_id=user.id,
            )
        )
        await uow.roles.add_assignment(
            UserRoleAssignment(user_id=user.id, group_id=group.id, role_id=role.id)
        )
        return group

    async def _join_all_members(self, uow: IUnitOfWork, user: User) -> None:
        group = await uow.groups.get_system_group(settings.all_members_group_name)
        if not group:
            logger.warning("system_group_missing", group_name=settings.all_members_group_name)
            return
        await uow.groups.add_membership(
            GroupMembership(group_id=group.id, user_id=user.id, status=MembershipStatus.ACTIVE)
        )
        role = await uow.roles.get_by_name(group.id, ALL_MEMBERS_ROLE)
        if role:
            await uow.roles.add_assignment(
                UserRoleAssignment(user_id=user.id, group_id=group.id, role_id=role.id)
            )

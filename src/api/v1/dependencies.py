"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.admin_action_service import AdminActionService
from domain.services.admin_directory_service import AdminDirectoryService
from domain.services.audit_service import AuditService
from domain.services.catalog_service import CatalogService
from domain.services.group_service import GroupService
from domain.services.membership_service import MembershipService
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService
from domain.services.protection import ProtectionGuard
from domain.services.role_service import RoleService
from domain.services.user_service import UserService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_protection_guard() -> ProtectionGuard:
    """Get the protection guard configured from settings."""
    return ProtectionGuard(
        leadership_permission=settings.leadership_permission,
        critical_permissions=settings.critical_permissions_set,
    )


@lru_cache
def get_permission_service() -> PermissionService:
    """Get Permission service instance."""
    return PermissionService(get_uow_factory())


@lru_cache
def get_audit_service() -> AuditService:
    """Get Audit service instance."""
    return AuditService(get_uow_factory(), get_permission_service())


@lru_cache
def get_notification_service() -> NotificationService:
    """Get Notification service instance."""
    return NotificationService(get_uow_factory())


@lru_cache
def get_user_service() -> UserService:
    """Get User service instance."""
    return UserService(get_uow_factory())


@lru_cache
def get_catalog_service() -> CatalogService:
    """Get Catalog service instance."""
    return CatalogService(get_uow_factory())


@lru_cache
def get_group_service() -> GroupService:
    """Get Group service instance."""
    return GroupService(get_uow_factory(), audit_service=get_audit_service())


@lru_cache
def get_membership_service() -> MembershipService:
    """Get Membership service instance."""
    return MembershipService(
        get_uow_factory(),
        guard=get_protection_guard(),
        audit_service=get_audit_service(),
    )


@lru_cache
def get_role_service() -> RoleService:
    """Get Role service instance."""
    return RoleService(
        get_uow_factory(),
        guard=get_protection_guard(),
        audit_service=get_audit_service(),
    )


@lru_cache
def get_admin_directory_service() -> AdminDirectoryService:
    """Get Admin directory service instance."""
    return AdminDirectoryService(
        get_uow_factory(),
        get_permission_service(),
        cache_size=settings.directory_cache_size,
    )


@lru_cache
def get_admin_action_service() -> AdminActionService:
    """Get Admin action service instance."""
    return AdminActionService(
        get_uow_factory(),
        get_permission_service(),
        guard=get_protection_guard(),
        audit_service=get_audit_service(),
        notification_sender=get_notification_service(),
        directory_service=get_admin_directory_service(),
    )

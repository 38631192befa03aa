"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import uuid4

# Disable rate limiting and startup seeding in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_CATALOG_ON_STARTUP"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.user import User
from domain.services.user_service import UserService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.database.seed import grant_initial_admin, seed_catalog
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

UowFactory = Callable[[], SQLAlchemyUnitOfWork]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for direct assertions."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow_factory(session_factory: async_sessionmaker[AsyncSession]) -> UowFactory:
    """Unit of Work factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
async def seeded(uow_factory: UowFactory) -> UowFactory:
    """Seed the permission catalog, role templates and system groups."""
    await seed_catalog(uow_factory)
    return uow_factory


@pytest.fixture
def make_user(seeded: UowFactory) -> Callable[..., Any]:
    """Provision accounts the way the first authenticated request does."""
    service = UserService(seeded)

    async def _make(
        email: str | None = None,
        full_name: str | None = None,
        admin: bool = False,
    ) -> User:
        user_id = uuid4()
        user = await service.ensure_provisioned(
            user_id, email or f"user-{user_id.hex[:8]}@example.com", full_name
        )
        if admin:
            await grant_initial_admin(seeded, user.email)
        return user

    return _make


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


def token_user_for(user: User) -> TokenUser:
    return TokenUser(id=user.id, email=user.email, display_name=user.full_name)


@dataclass
class AuthState:
    """The identity the test client sends requests as."""

    user: TokenUser | None = None

    def act_as(self, user: User) -> None:
        self.user = token_user_for(user)


@pytest.fixture
def auth_state() -> AuthState:
    return AuthState()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _provide(value: Any) -> Callable[[], Any]:
    def provider() -> Any:
        return value

    return provider


def build_service_overrides(uow_factory: UowFactory) -> dict[Callable[..., Any], Callable[[], Any]]:
    """Service dependency overrides wired to the test database."""
    from api.v1 import dependencies as deps
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

    guard = ProtectionGuard()
    permissions = PermissionService(uow_factory)
    audit = AuditService(uow_factory, permissions)
    notifications = NotificationService(uow_factory)
    directory = AdminDirectoryService(uow_factory, permissions)
    services: dict[Callable[..., Any], Any] = {
        deps.get_uow_factory: uow_factory,
        deps.get_permission_service: permissions,
        deps.get_audit_service: audit,
        deps.get_notification_service: notifications,
        deps.get_user_service: UserService(uow_factory),
        deps.get_catalog_service: CatalogService(uow_factory),
        deps.get_group_service: GroupService(uow_factory, audit_service=audit),
        deps.get_membership_service: MembershipService(
            uow_factory, guard=guard, audit_service=audit
        ),
        deps.get_role_service: RoleService(uow_factory, guard=guard, audit_service=audit),
        deps.get_admin_directory_service: directory,
        deps.get_admin_action_service: AdminActionService(
            uow_factory,
            permissions,
            guard=guard,
            audit_service=audit,
            notification_sender=notifications,
            directory_service=directory,
        ),
    }
    return {dependency: _provide(value) for dependency, value in services.items()}


@pytest.fixture
async def authenticated_client(
    seeded: UowFactory,
    auth_state: AuthState,
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated test client with proper database and auth overrides.

    This client:
    - Uses an in-memory SQLite database with the catalog seeded
    - Sends requests as ``auth_state.user``
    - Provisions that user on first request, like production does
    """
    from api.dependencies.auth import get_auth_provider, get_token_user
    from core.exceptions import AuthenticationError
    from main import create_app

    app = create_app()

    async def override_get_token_user() -> TokenUser:
        if auth_state.user is None:
            raise AuthenticationError("Authorization header required")
        return auth_state.user

    app.dependency_overrides[get_token_user] = override_get_token_user
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides.update(build_service_overrides(seeded))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Stewardship API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/stewardship",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_transaction_pooler: bool = Field(
        default=False,
        description="Connecting through a transaction-mode pooler (disables statement cache)",
    )

    # For testing with SQLite
    test_database_url: str = Field(
        default="sqlite+aiosqlite:///./test.db",
        description="Test database URL",
    )

    # Identity platform
    supabase_url: str = Field(
        default="",
        description="Identity platform project URL; the JWKS endpoint is derived from it",
    )
    auth_jwks_url: str = Field(
        default="",
        description="Explicit JWKS endpoint, overrides the derived one",
    )

    # JWT Authentication
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for JWT signing (used for HS256 fallback and tests)",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)
    jwt_audience: str = Field(
        default="",
        description="Expected aud claim; empty disables the audience check",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def jwks_url(self) -> str:
        """JWKS endpoint for ES256 token verification."""
        if self.auth_jwks_url:
            return self.auth_jwks_url
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"
        return ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Render and other providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Authorization engine
    leadership_permission: str = Field(
        default="manage_roles",
        description="Permission whose last holder in a group cannot be removed",
    )
    critical_permissions: str = Field(
        default="manage_roles",
        description="Comma-separated permissions that trigger the self-lockout warning",
    )
    admin_permission: str = Field(
        default="manage_all_groups",
        description="Platform permission required for the admin surface",
    )
    all_members_group_name: str = Field(default="All Members")
    super_admin_group_name: str = Field(default="Super Administrators")

    # Admin user directory
    admin_page_size_default: int = Field(default=10)
    admin_page_size_max: int = Field(default=100)
    bulk_id_batch_size: int = Field(
        default=1000,
        description="Batch size when collecting every id matching a filter",
    )
    directory_cache_size: int = Field(default=64)
    seed_catalog_on_startup: bool = Field(
        default=True,
        description="Seed permissions, role templates and system groups at startup",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def critical_permissions_set(self) -> frozenset[str]:
        """Parse critical permissions into a set."""
        return frozenset(
            name.strip() for name in self.critical_permissions.split(",") if name.strip()
        )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    rate_limit_read: str = Field(default="30/minute")
    rate_limit_write: str = Field(default="10/minute")
    rate_limit_bulk: str = Field(
        default="5/minute",
        description="Bulk admin actions fan out to every selected user",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()

"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_uow_factory
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from infrastructure.database.seed import seed_catalog

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    logger.info("startup", environment=settings.app_env, version=app.version)
    if settings.seed_catalog_on_startup:
        await seed_catalog(get_uow_factory())
    yield
    logger.info("shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Group Stewardship and Administration\n\n"
            "Manages self-governing groups: who belongs, which roles they hold, "
            "and what those roles allow. A platform admin surface runs bulk "
            "actions over the user directory.\n\n"
            "### Features\n"
            "- **Permission Resolution**: Platform, group and personal grants\n"
            "- **Protected Membership**: Every group keeps at least one Steward\n"
            "- **Bulk Admin Actions**: Per-user error isolation with an audit trail\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Rate Limits\n"
            f"- Reads: {settings.rate_limit_read}\n"
            f"- Writes: {settings.rate_limit_write}\n"
            f"- Bulk admin actions: {settings.rate_limit_bulk}"
        ),
        version="1.0.0",
        debug=settings.debug,
        contact={
            "name": "Stewardship Support",
        },
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "groups",
                "description": "Engagement group operations",
            },
            {
                "name": "members",
                "description": "Membership and role assignment operations",
            },
            {
                "name": "roles",
                "description": "Group role and grant operations",
            },
            {
                "name": "permissions",
                "description": "Permission catalog and role templates",
            },
            {
                "name": "invitations",
                "description": "Invitation responses",
            },
            {
                "name": "notifications",
                "description": "Message and notification feed",
            },
            {
                "name": "admin",
                "description": "Platform administration and bulk actions",
            },
        ],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    _add_middleware(app)
    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


def _add_middleware(app: FastAPI) -> None:
    # Last added runs outermost: CORS, gzip, request id, security headers,
    # request logging, then the rate limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )

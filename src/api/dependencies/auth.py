"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.v1.dependencies import get_user_service
from core.exceptions import AuthenticationError, ErrorCode
from domain.services.user_service import UserService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

# Singleton auth provider
_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Get or create the auth provider singleton."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def get_token_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Dependency to get the user behind a valid bearer token.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    token = credentials.credentials
    user = await auth_provider.validate_token(token)

    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return user


async def get_current_user(
    token_user: Annotated[TokenUser, Depends(get_token_user)],
    user_service: UserService = Depends(get_user_service),
) -> TokenUser:
    """
    Dependency to get the current authenticated user.

    Provisions the account on first sight and rejects disabled accounts
    and revoked sessions.

    Raises:
        AuthenticationError: If the session was revoked
        AccountDisabledError: If the account is inactive or decommissioned
    """
    await user_service.authorize_session(
        token_user.id,
        token_user.email,
        full_name=token_user.display_name,
        issued_at=token_user.issued_at,
    )
    return token_user


# Type alias for convenience in route handlers
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]

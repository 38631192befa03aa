"""Unit tests for authentication dependencies."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies.auth import get_current_user, get_token_user
from core.exceptions import AccountDisabledError, AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser


@pytest.fixture
def mock_auth_provider() -> JWTAuthProvider:
    provider = JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)
    return provider


@pytest.fixture
def test_token_user() -> TokenUser:
    return TokenUser(id=uuid4(), email="test@example.com", display_name="Test User")


# --- get_token_user ---


class TestGetTokenUser:
    @pytest.mark.asyncio
    async def test_returns_user_with_valid_token(
        self, mock_auth_provider: JWTAuthProvider, test_token_user: TokenUser
    ):
        token = mock_auth_provider.create_token(test_token_user)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        result = await get_token_user(credentials, mock_auth_provider)

        assert result.email == test_token_user.email
        assert result.id == test_token_user.id
        assert result.issued_at is not None

    @pytest.mark.asyncio
    async def test_raises_when_no_credentials(self, mock_auth_provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_token_user(None, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_raises_when_invalid_token(self, mock_auth_provider: JWTAuthProvider):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="invalid.jwt.token")

        with pytest.raises(AuthenticationError) as exc_info:
            await get_token_user(credentials, mock_auth_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_raises_when_expired_token(self, test_token_user: TokenUser):
        # Create provider with negative expiry to generate expired tokens
        provider = JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=-1)
        token = provider.create_token(test_token_user)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        normal_provider = JWTAuthProvider(
            secret_key="test-secret", algorithm="HS256", expire_minutes=30
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await get_token_user(credentials, normal_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN


# --- get_current_user ---


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_authorizes_session_and_returns_token_user(self, test_token_user: TokenUser):
        user_service = AsyncMock()

        result = await get_current_user(test_token_user, user_service)

        assert result is test_token_user
        user_service.authorize_session.assert_awaited_once_with(
            test_token_user.id,
            test_token_user.email,
            full_name=test_token_user.display_name,
            issued_at=test_token_user.issued_at,
        )

    @pytest.mark.asyncio
    async def test_propagates_disabled_account(self, test_token_user: TokenUser):
        user_service = AsyncMock()
        user_service.authorize_session.side_effect = AccountDisabledError()

        with pytest.raises(AccountDisabledError):
            await get_current_user(test_token_user, user_service)

    @pytest.mark.asyncio
    async def test_propagates_revoked_session(self, test_token_user: TokenUser):
        user_service = AsyncMock()
        user_service.authorize_session.side_effect = AuthenticationError(
            message="Session has been revoked", error_code=ErrorCode.SESSION_REVOKED
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(test_token_user, user_service)

        assert exc_info.value.error_code == ErrorCode.SESSION_REVOKED

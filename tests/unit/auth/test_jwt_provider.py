"""Unit tests for JWT verification: identity claims, issued-at and signing keys."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import httpx
import pytest
from jose import jwt as jose_jwt

from infrastructure.auth import jwt_provider as jwt_provider_module
from infrastructure.auth.jwt_provider import JWKSKeySet, JWTAuthProvider, claims_to_token_user
from infrastructure.auth.provider import TokenUser

JWKS_URL = "https://identity.example.com/auth/v1/.well-known/jwks.json"
FAR_FUTURE = 9999999999


def _hs256(claims: dict, secret: str = "test-secret") -> str:
    return jose_jwt.encode(claims, secret, algorithm="HS256")


def _jwks_client(keys: list[dict]) -> AsyncMock:
    response = MagicMock()
    response.json.return_value = {"keys": keys}
    response.raise_for_status = MagicMock()

    client = AsyncMock()
    client.get.return_value = response
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


@pytest.fixture
def key_set() -> AsyncMock:
    return AsyncMock(spec=JWKSKeySet)


@pytest.fixture
def provider(key_set: AsyncMock) -> JWTAuthProvider:
    return JWTAuthProvider(
        secret_key="test-secret", algorithm="HS256", expire_minutes=30, key_set=key_set
    )


class TestClaims:
    @pytest.mark.parametrize(
        "claims",
        [
            {"email": "user@example.com"},
            {"sub": str(uuid4())},
            {"sub": "", "email": "user@example.com"},
            {"sub": "not-a-uuid", "email": "user@example.com"},
        ],
        ids=["no-sub", "no-email", "empty-sub", "sub-not-uuid"],
    )
    def test_unusable_identity_is_rejected(self, claims: dict):
        assert claims_to_token_user(claims) is None

    def test_display_name_prefers_metadata(self):
        user = claims_to_token_user(
            {
                "sub": str(uuid4()),
                "email": "ada@example.com",
                "name": "ada",
                "user_metadata": {"display_name": "", "full_name": "Ada Lovelace"},
            }
        )

        assert user is not None
        assert user.display_name == "Ada Lovelace"

    def test_falls_back_to_top_level_name(self):
        user = claims_to_token_user(
            {"sub": str(uuid4()), "email": "ada@example.com", "name": "ada"}
        )

        assert user is not None
        assert user.display_name == "ada"

    def test_issued_at_is_read_as_naive_utc(self):
        issued = datetime(2026, 1, 2, 3, 4, 5)
        epoch = int((issued - datetime(1970, 1, 1)) / timedelta(seconds=1))

        user = claims_to_token_user(
            {"sub": str(uuid4()), "email": "user@example.com", "iat": epoch}
        )

        assert user is not None
        assert user.issued_at == issued

    def test_issued_at_is_none_without_claim(self):
        user = claims_to_token_user({"sub": str(uuid4()), "email": "user@example.com"})

        assert user is not None
        assert user.issued_at is None


class TestHs256:
    async def test_created_token_round_trips(self, provider: JWTAuthProvider):
        before = datetime.utcnow().replace(microsecond=0)
        user = TokenUser(id=uuid4(), email="user@example.com", display_name="User")

        result = await provider.validate_token(provider.create_token(user))

        assert result is not None
        assert (result.id, result.email, result.display_name) == (
            user.id,
            user.email,
            "User",
        )
        assert result.issued_at is not None
        assert before <= result.issued_at <= datetime.utcnow()

    async def test_wrong_secret_is_rejected(self, provider: JWTAuthProvider):
        token = _hs256(
            {"sub": str(uuid4()), "email": "user@example.com", "exp": FAR_FUTURE},
            secret="other-secret",
        )

        assert await provider.validate_token(token) is None

    async def test_garbage_is_rejected(self, provider: JWTAuthProvider):
        assert await provider.validate_token("not-a-jwt") is None

    async def test_audience_checked_when_configured(self, key_set: AsyncMock):
        strict = JWTAuthProvider(
            secret_key="test-secret", algorithm="HS256", audience="authenticated", key_set=key_set
        )
        claims = {"sub": str(uuid4()), "email": "user@example.com", "exp": FAR_FUTURE}

        assert await strict.validate_token(_hs256({**claims, "aud": "anon"})) is None
        assert await strict.validate_token(_hs256({**claims, "aud": "authenticated"}))

    async def test_audience_ignored_when_not_configured(self, provider: JWTAuthProvider):
        token = _hs256(
            {"sub": str(uuid4()), "email": "u@example.com", "aud": "anything", "exp": FAR_FUTURE}
        )

        assert await provider.validate_token(token) is not None


class TestEs256:
    async def test_missing_kid_is_rejected(self, provider: JWTAuthProvider, key_set: AsyncMock):
        with patch.object(jwt_provider_module.jwt, "get_unverified_header") as header:
            header.return_value = {"alg": "ES256"}

            assert await provider.validate_token("es256.token.value") is None

        key_set.get.assert_not_called()

    async def test_unknown_kid_is_rejected(self, provider: JWTAuthProvider, key_set: AsyncMock):
        key_set.get.return_value = None

        with patch.object(jwt_provider_module.jwt, "get_unverified_header") as header:
            header.return_value = {"alg": "ES256", "kid": "missing"}

            assert await provider.validate_token("es256.token.value") is None

        key_set.get.assert_awaited_once_with("missing")

    async def test_verifies_with_the_published_key(
        self, provider: JWTAuthProvider, key_set: AsyncMock
    ):
        key_data = {"kid": "k1", "kty": "EC", "crv": "P-256"}
        user_id = uuid4()
        key_set.get.return_value = key_data

        with (
            patch.object(jwt_provider_module, "ECKey") as eckey_cls,
            patch.object(jwt_provider_module.jwt, "get_unverified_header") as header,
            patch.object(jwt_provider_module.jwt, "decode") as decode,
        ):
            header.return_value = {"alg": "ES256", "kid": "k1"}
            decode.return_value = {
                "sub": str(user_id),
                "email": "es@example.com",
                "user_metadata": {"display_name": "ES User"},
            }

            result = await provider.validate_token("es256.token.value")

        eckey_cls.assert_called_once_with(key_data, algorithm="ES256")
        assert decode.call_args.kwargs["algorithms"] == ["ES256"]
        assert result is not None
        assert (result.id, result.display_name) == (user_id, "ES User")


class TestJWKSKeySet:
    async def test_no_url_yields_no_keys(self):
        assert await JWKSKeySet("").get("k1") is None

    async def test_keys_are_cached_by_kid(self):
        client = _jwks_client(
            [
                {"kid": "k1", "kty": "EC"},
                {"kty": "EC"},
            ]
        )
        keys = JWKSKeySet(JWKS_URL)

        with patch.object(jwt_provider_module.httpx, "AsyncClient", return_value=client):
            first = await keys.get("k1")
            second = await keys.get("k1")

        assert first == {"kid": "k1", "kty": "EC"}
        assert second == first
        client.get.assert_awaited_once()

    async def test_unknown_kid_triggers_refetch(self):
        stale = _jwks_client([{"kid": "old", "kty": "EC"}])
        rotated = _jwks_client([{"kid": "new", "kty": "EC"}])
        keys = JWKSKeySet(JWKS_URL)

        with patch.object(
            jwt_provider_module.httpx, "AsyncClient", side_effect=[stale, rotated]
        ):
            assert await keys.get("old")
            assert await keys.get("new") == {"kid": "new", "kty": "EC"}

    async def test_http_error_yields_no_keys(self):
        client = _jwks_client([])
        client.get.side_effect = httpx.ConnectError("Connection refused")

        with patch.object(jwt_provider_module.httpx, "AsyncClient", return_value=client):
            assert await JWKSKeySet(JWKS_URL).get("k1") is None

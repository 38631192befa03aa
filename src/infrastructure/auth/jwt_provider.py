"""JWT verification for sessions issued by the identity platform.

Production tokens are signed with ES256; the public keys come from the
project's JWKS endpoint. HS256 tokens signed with the shared secret are
accepted for local development and tests.

Claims read from the token:
    sub            account id (UUID)
    email          account email
    iat            session start, checked against forced sign-outs
    user_metadata  display_name / name / full_name
"""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
import structlog
from jose import jwt
from jose.backends import ECKey
from jose.exceptions import JOSEError

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

ES256 = "ES256"
_NAME_KEYS = ("display_name", "name", "full_name")


class JWKSKeySet:
    """Public signing keys by ``kid``, fetched lazily and refreshed on rotation."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self._timeout = timeout
        self._keys: dict[str, dict[str, Any]] | None = None

    async def get(self, kid: str) -> dict[str, Any] | None:
        """Get a key, refetching once if it is not among the cached keys."""
        if self._keys is None or kid not in self._keys:
            self._keys = await self._fetch()
        return self._keys.get(kid)

    async def _fetch(self) -> dict[str, dict[str, Any]]:
        if not self.url:
            return {}
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.url, timeout=self._timeout)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError:
            logger.exception("jwks_fetch_failed", url=self.url)
            return {}

        keys = {k["kid"]: k for k in body.get("keys", []) if k.get("kid")}
        logger.info("jwks_loaded", key_count=len(keys))
        return keys


def claims_to_token_user(claims: dict[str, Any]) -> Optional[TokenUser]:
    """Build the token identity, or None when ``sub`` or ``email`` is unusable."""
    subject = claims.get("sub")
    email = claims.get("email")
    if not subject or not email:
        return None
    try:
        user_id = UUID(subject)
    except ValueError:
        return None

    metadata = claims.get("user_metadata") or {}
    display_name = next((metadata[k] for k in _NAME_KEYS if metadata.get(k)), None)

    iat = claims.get("iat")
    return TokenUser(
        id=user_id,
        email=email,
        display_name=display_name or claims.get("name"),
        issued_at=datetime.utcfromtimestamp(iat) if iat is not None else None,
    )


class JWTAuthProvider:
    """Validates bearer tokens and issues HS256 tokens for tests."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        audience: str | None = settings.jwt_audience or None,
        key_set: JWKSKeySet | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._audience = audience
        self._key_set = key_set or JWKSKeySet(settings.jwks_url)

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Verify the signature and expiry and read the identity claims."""
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == ES256:
                claims = await self._decode_es256(token, header.get("kid"))
            else:
                claims = self._decode(token, self._secret_key, self._algorithm)
        except JOSEError:
            return None

        if claims is None:
            return None
        return claims_to_token_user(claims)

    async def _decode_es256(self, token: str, kid: str | None) -> Optional[dict[str, Any]]:
        if not kid:
            return None
        key_data = await self._key_set.get(kid)
        if key_data is None:
            logger.warning("jwks_key_not_found", kid=kid)
            return None
        return self._decode(token, ECKey(key_data, algorithm=ES256), ES256)

    def _decode(self, token: str, key: Any, algorithm: str) -> dict[str, Any]:
        return jwt.decode(
            token,
            key,
            algorithms=[algorithm],
            audience=self._audience,
            options={"verify_aud": self._audience is not None},
        )

    def create_token(self, user: TokenUser) -> str:
        """Issue an HS256 token carrying ``iat`` so session revocation applies."""
        now = datetime.utcnow()
        claims: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
            "user_metadata": {"display_name": user.display_name},
        }
        if self._audience:
            claims["aud"] = self._audience
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

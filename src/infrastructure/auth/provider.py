"""Bearer token identity and the provider protocol that produces it."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class TokenUser:
    """Identity carried by a verified access token.

    ``issued_at`` is compared with the account's session revocation
    timestamp; tokens without an ``iat`` claim leave it unset.
    """

    id: UUID
    email: str
    display_name: Optional[str] = None
    issued_at: Optional[datetime] = None


class IAuthProvider(Protocol):
    """Verifies and issues bearer tokens."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's identity, or None when it does not verify."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a locally signed token. Used by tests and tooling."""
        ...

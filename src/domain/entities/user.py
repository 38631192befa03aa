"""User account entities and admin directory filters."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class AccountStatus(StrEnum):
    """Derived account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DECOMMISSIONED = "decommissioned"


@dataclass
class User:
    """Domain entity for a platform user."""

    email: str
    id: UUID = field(default_factory=uuid4)
    full_name: str | None = None
    is_active: bool = True
    is_decommissioned: bool = False
    sessions_revoked_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def status(self) -> AccountStatus:
        if self.is_decommissioned:
            return AccountStatus.DECOMMISSIONED
        return AccountStatus.ACTIVE if self.is_active else AccountStatus.INACTIVE

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass(frozen=True)
class UserFilter:
    """Admin directory filter. All status flags off matches nobody."""

    search: str | None = None
    show_active: bool = True
    show_inactive: bool = True
    show_decommissioned: bool = False

    @property
    def statuses(self) -> frozenset[AccountStatus]:
        selected = set()
        if self.show_active:
            selected.add(AccountStatus.ACTIVE)
        if self.show_inactive:
            selected.add(AccountStatus.INACTIVE)
        if self.show_decommissioned:
            selected.add(AccountStatus.DECOMMISSIONED)
        return frozenset(selected)

    @property
    def normalized_search(self) -> str | None:
        term = (self.search or "").strip()
        return term or None


@dataclass
class UserPage:
    """One page of the admin directory."""

    users: list[User]
    total: int
    page: int
    page_size: int

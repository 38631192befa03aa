"""Group role, role grant and role assignment entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.catalog import Permission


@dataclass
class GroupRole:
    """Domain entity for a role scoped to one group.

    ``source_template_id`` marks a template-derived role. Such roles are
    independent of their template after creation and cannot be deleted.
    """

    group_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    source_template_id: UUID | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_template_derived(self) -> bool:
        return self.source_template_id is not None


@dataclass
class UserRoleAssignment:
    """Domain entity for a (user, group, role) assignment."""

    user_id: UUID
    group_id: UUID
    role_id: UUID
    id: UUID = field(default_factory=uuid4)
    assigned_by_user_id: UUID | None = None
    assigned_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class RoleDetails:
    """A role with its granted permission names and holder count."""

    role: GroupRole
    permission_names: list[str]
    holder_count: int = 0


NOT_HELD_REASON = "You cannot grant a permission you do not hold"


@dataclass
class PermissionOption:
    """One row of the role editor's permission picker."""

    permission: Permission
    grantable: bool
    reason: str | None = None


class GrantOutcome(StrEnum):
    """Result kind of a role grant update."""

    OK = "ok"
    LOCKOUT_WARNING = "lockout_warning"


@dataclass
class LockoutWarning:
    """Editing user would lose critical permissions in the group."""

    role_id: UUID
    permissions: list[str]
    message: str = (
        "Saving will remove permissions you need to manage this group's roles. "
        "Confirm to save anyway."
    )


@dataclass
class RoleGrantResult:
    """Outcome of SetRoleGrants: either saved or a lockout warning."""

    outcome: GrantOutcome
    role_id: UUID
    permission_names: list[str] = field(default_factory=list)
    warning: LockoutWarning | None = None

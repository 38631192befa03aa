"""Group and membership domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4


class GroupKind(str, Enum):
    """Kind of group.

    System groups are platform scoped: their role grants apply in every
    context group. Engagement groups are the ordinary user-facing unit.
    """

    PERSONAL = "personal"
    ENGAGEMENT = "engagement"
    SYSTEM = "system"


class GroupVisibility(str, Enum):
    """Whether non-members can discover the group."""

    PUBLIC = "public"
    PRIVATE = "private"


class MembershipStatus(str, Enum):
    """Membership lifecycle status. Only ACTIVE participates in resolution."""

    INVITED = "invited"
    ACTIVE = "active"
    PAUSED = "paused"
    REMOVED = "removed"


# Administrative status changes; invited -> active happens only on acceptance
ALLOWED_STATUS_TRANSITIONS: dict[MembershipStatus, frozenset[MembershipStatus]] = {
    MembershipStatus.INVITED: frozenset(),
    MembershipStatus.ACTIVE: frozenset({MembershipStatus.PAUSED, MembershipStatus.REMOVED}),
    MembershipStatus.PAUSED: frozenset({MembershipStatus.ACTIVE, MembershipStatus.REMOVED}),
    MembershipStatus.REMOVED: frozenset(),
}


def can_transition(current: MembershipStatus, target: MembershipStatus) -> bool:
    """Check whether an administrative status change is allowed."""
    return target in ALLOWED_STATUS_TRANSITIONS[current]


@dataclass
class Group:
    """Domain entity for a group."""

    name: str
    id: UUID = field(default_factory=uuid4)
    kind: GroupKind = GroupKind.ENGAGEMENT
    visibility: GroupVisibility = GroupVisibility.PRIVATE
    show_member_list: bool = True
    description: str | None = None
    created_by: UUID | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_system(self) -> bool:
        return self.kind == GroupKind.SYSTEM

    @property
    def is_engagement(self) -> bool:
        return self.kind == GroupKind.ENGAGEMENT


@dataclass
class GroupMembership:
    """Domain entity for a group membership. Unique per (group, user)."""

    group_id: UUID
    user_id: UUID
    id: UUID = field(default_factory=uuid4)
    status: MembershipStatus = MembershipStatus.INVITED
    added_by_user_id: UUID | None = None
    added_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE


@dataclass
class GroupMemberView:
    """Membership joined with the member's profile and role names."""

    membership: GroupMembership
    full_name: str | None
    email: str
    role_names: list[str] = field(default_factory=list)


@dataclass
class OrphanedGroup:
    """An engagement group with no active steward, and who created it."""

    group: Group
    creator_email: str | None = None
    creator_name: str | None = None

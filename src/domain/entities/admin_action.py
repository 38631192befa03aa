"""Bulk admin actions: names, categories, eligibility rules and results.

Everything in this module is pure. ``compute_action_states`` decides which
actions the admin action bar offers for a heterogeneous selection; the
orchestrator in ``domain.services.admin_action_service`` executes them.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol
from uuid import UUID


class ActionName(StrEnum):
    """Bulk actions available on the admin user directory."""

    MESSAGE = "message"
    NOTIFY = "notify"
    DEACTIVATE = "deactivate"
    ACTIVATE = "activate"
    DELETE_SOFT = "delete_soft"
    DELETE_HARD = "delete_hard"
    LOGOUT = "logout"
    INVITE = "invite"
    JOIN = "join"
    REMOVE = "remove"


class ActionCategory(StrEnum):
    """UI grouping only; eligibility does not depend on the category."""

    COMMUNICATION = "communication"
    ACCOUNT = "account"
    GROUP = "group"


ACTION_CATEGORIES: dict[ActionCategory, tuple[ActionName, ...]] = {
    ActionCategory.COMMUNICATION: (ActionName.MESSAGE, ActionName.NOTIFY),
    ActionCategory.ACCOUNT: (
        ActionName.DEACTIVATE,
        ActionName.ACTIVATE,
        ActionName.DELETE_SOFT,
        ActionName.DELETE_HARD,
        ActionName.LOGOUT,
    ),
    ActionCategory.GROUP: (ActionName.INVITE, ActionName.JOIN, ActionName.REMOVE),
}

DESTRUCTIVE_ACTIONS: frozenset[ActionName] = frozenset(
    {
        ActionName.DEACTIVATE,
        ActionName.DELETE_SOFT,
        ActionName.DELETE_HARD,
        ActionName.LOGOUT,
        ActionName.REMOVE,
    }
)

# Only terminal account-state changes clear the operator's selection
SELECTION_CLEARING_ACTIONS: frozenset[ActionName] = frozenset(
    {ActionName.DEACTIVATE, ActionName.DELETE_SOFT, ActionName.DELETE_HARD}
)

GROUP_ACTIONS: frozenset[ActionName] = frozenset(ACTION_CATEGORIES[ActionCategory.GROUP])

COMMUNICATION_ACTIONS: frozenset[ActionName] = frozenset(
    ACTION_CATEGORIES[ActionCategory.COMMUNICATION]
)


class Reasons:
    """Human readable reasons for disabled actions."""

    NO_SELECTION = "No users selected"
    ALL_DECOMMISSIONED = "All selected users are decommissioned"
    ALREADY_INACTIVE = "All selected users are already inactive"
    ACTIVATE_DECOMMISSIONED = "Cannot activate decommissioned users"
    ALREADY_ACTIVE = "All selected users are already active"
    ALREADY_DECOMMISSIONED = "All selected users are already decommissioned"
    NO_COMMON_GROUPS = "Selected users share no common groups"


_CONFIRMATION_TEXT: dict[ActionName, str] = {
    ActionName.DEACTIVATE: (
        "Deactivate {count} user(s)? They will not be able to sign in until reactivated."
    ),
    ActionName.DELETE_SOFT: (
        "Decommission {count} user(s)? Decommissioned accounts cannot be reactivated "
        "from the admin directory."
    ),
    ActionName.DELETE_HARD: (
        "Permanently delete {count} user(s) and all of their memberships? "
        "This action cannot be undone."
    ),
    ActionName.LOGOUT: "Sign {count} user(s) out of every active session?",
    ActionName.REMOVE: (
        "Remove {count} user(s) from the selected group? Their roles in the group "
        "will be removed too."
    ),
}


def is_destructive_action(action: ActionName) -> bool:
    return action in DESTRUCTIVE_ACTIONS


def clears_selection_after(action: ActionName) -> bool:
    return action in SELECTION_CLEARING_ACTIONS


def confirmation_text(action: ActionName, count: int) -> str | None:
    """Dialog text shown before a destructive action, None for the others."""
    template = _CONFIRMATION_TEXT.get(action)
    return template.format(count=count) if template else None


class AccountState(Protocol):
    """Minimal account shape needed for eligibility."""

    is_active: bool
    is_decommissioned: bool


@dataclass(frozen=True)
class ActionState:
    """Enable/disable state of one action. Disabled states carry a reason."""

    disabled: bool
    reason: str | None = None


_ENABLED = ActionState(disabled=False)


def _disabled(reason: str) -> ActionState:
    return ActionState(disabled=True, reason=reason)


def compute_action_states(
    selected_users: Sequence[AccountState], common_group_count: int
) -> dict[ActionName, ActionState]:
    """Compute enable/disable state for every action for a selection."""
    if not selected_users:
        return {action: _disabled(Reasons.NO_SELECTION) for action in ActionName}

    all_active = all(u.is_active and not u.is_decommissioned for u in selected_users)
    all_decommissioned = all(u.is_decommissioned for u in selected_users)
    any_decommissioned = any(u.is_decommissioned for u in selected_users)
    all_inactive_or_decommissioned = all(
        u.is_decommissioned or not u.is_active for u in selected_users
    )

    states: dict[ActionName, ActionState] = {action: _ENABLED for action in ActionName}

    if all_decommissioned:
        states[ActionName.DEACTIVATE] = _disabled(Reasons.ALL_DECOMMISSIONED)
    elif all_inactive_or_decommissioned:
        states[ActionName.DEACTIVATE] = _disabled(Reasons.ALREADY_INACTIVE)

    if any_decommissioned:
        states[ActionName.ACTIVATE] = _disabled(Reasons.ACTIVATE_DECOMMISSIONED)
    elif all_active:
        states[ActionName.ACTIVATE] = _disabled(Reasons.ALREADY_ACTIVE)

    if all_decommissioned:
        states[ActionName.DELETE_SOFT] = _disabled(Reasons.ALREADY_DECOMMISSIONED)

    if common_group_count <= 0:
        states[ActionName.REMOVE] = _disabled(Reasons.NO_COMMON_GROUPS)

    return states


def common_group_ids(
    active_memberships: Iterable[tuple[UUID, UUID]], selected_user_ids: Iterable[UUID]
) -> set[UUID]:
    """Groups in which every selected user has an active membership.

    ``active_memberships`` yields ``(group_id, user_id)`` pairs for active
    memberships; pairs for users outside the selection are ignored.
    """
    selected = set(selected_user_ids)
    if not selected:
        return set()
    counts = Counter(
        group_id for group_id, user_id in set(active_memberships) if user_id in selected
    )
    return {group_id for group_id, count in counts.items() if count == len(selected)}


def compute_common_group_count(
    active_memberships: Iterable[tuple[UUID, UUID]], selected_user_ids: Iterable[UUID]
) -> int:
    return len(common_group_ids(active_memberships, selected_user_ids))


# --- Execution results ---


@dataclass
class BulkItemError:
    """A failure on one target of a bulk action."""

    user_id: UUID
    error_code: str
    message: str


@dataclass
class BulkResult:
    """Outcome of a bulk action with per-item error isolation."""

    action: ActionName
    succeeded: int = 0
    skipped: int = 0
    errors: list[BulkItemError] = field(default_factory=list)
    affected_ids: list[UUID] = field(default_factory=list)
    clear_selection: bool = False

    @property
    def is_partial_failure(self) -> bool:
        return bool(self.errors)

    def record_success(self, user_id: UUID) -> None:
        self.succeeded += 1
        self.affected_ids.append(user_id)

    def record_skip(self) -> None:
        self.skipped += 1

    def record_error(self, user_id: UUID, error_code: str, message: str) -> None:
        self.errors.append(BulkItemError(user_id=user_id, error_code=error_code, message=message))

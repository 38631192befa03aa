"""Permission catalog: permissions, categories, display order and role templates.

The catalog is static reference data. It is seeded into the ``permissions``
and ``role_templates`` tables and read back through the catalog repository;
the definitions below are the single source for seeding and for ordering.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class PermissionCategory(StrEnum):
    """Permission categories, declared in display order."""

    GROUP_MANAGEMENT = "group_management"
    JOURNEY_MANAGEMENT = "journey_management"
    JOURNEY_PARTICIPATION = "journey_participation"
    COMMUNICATION = "communication"
    FEEDBACK = "feedback"
    PLATFORM_ADMIN = "platform_admin"


CATEGORY_ORDER: tuple[PermissionCategory, ...] = tuple(PermissionCategory)

CATEGORY_LABELS: dict[PermissionCategory, str] = {
    PermissionCategory.GROUP_MANAGEMENT: "Group Management",
    PermissionCategory.JOURNEY_MANAGEMENT: "Journey Management",
    PermissionCategory.JOURNEY_PARTICIPATION: "Journey Participation",
    PermissionCategory.COMMUNICATION: "Communication",
    PermissionCategory.FEEDBACK: "Feedback",
    PermissionCategory.PLATFORM_ADMIN: "Platform Administration",
}

UNKNOWN_DISPLAY_ORDER = 9999


class Permissions:
    """Permission name constants."""

    # Group management
    VIEW_MEMBER_LIST = "view_member_list"
    VIEW_MEMBER_PROFILES = "view_member_profiles"
    INVITE_MEMBERS = "invite_members"
    ACTIVATE_MEMBERS = "activate_members"
    PAUSE_MEMBERS = "pause_members"
    REMOVE_MEMBERS = "remove_members"
    ASSIGN_ROLES = "assign_roles"
    REMOVE_ROLES = "remove_roles"
    MANAGE_ROLES = "manage_roles"
    EDIT_GROUP_SETTINGS = "edit_group_settings"
    SET_GROUP_VISIBILITY = "set_group_visibility"
    CONTROL_MEMBER_LIST_VISIBILITY = "control_member_list_visibility"
    DELETE_GROUP = "delete_group"
    BROWSE_PUBLIC_GROUPS = "browse_public_groups"
    CREATE_GROUP = "create_group"

    # Journey management
    ENROLL_SELF_IN_JOURNEY = "enroll_self_in_journey"
    ENROLL_GROUP_IN_JOURNEY = "enroll_group_in_journey"
    UNENROLL_FROM_JOURNEY = "unenroll_from_journey"
    FREEZE_JOURNEY = "freeze_journey"
    CREATE_JOURNEY = "create_journey"
    EDIT_JOURNEY = "edit_journey"
    PUBLISH_JOURNEY = "publish_journey"
    UNPUBLISH_JOURNEY = "unpublish_journey"
    DELETE_JOURNEY = "delete_journey"
    BROWSE_JOURNEY_CATALOG = "browse_journey_catalog"

    # Journey participation
    VIEW_JOURNEY_CONTENT = "view_journey_content"
    COMPLETE_JOURNEY_ACTIVITIES = "complete_journey_activities"
    VIEW_OWN_PROGRESS = "view_own_progress"
    VIEW_OTHERS_PROGRESS = "view_others_progress"
    VIEW_GROUP_PROGRESS = "view_group_progress"

    # Communication
    VIEW_FORUM = "view_forum"
    POST_FORUM_MESSAGES = "post_forum_messages"
    REPLY_TO_MESSAGES = "reply_to_messages"
    MODERATE_FORUM = "moderate_forum"
    SEND_DIRECT_MESSAGES = "send_direct_messages"

    # Feedback
    PROVIDE_FEEDBACK_TO_MEMBERS = "provide_feedback_to_members"
    RECEIVE_FEEDBACK = "receive_feedback"

    # Platform administration
    MANAGE_PLATFORM_SETTINGS = "manage_platform_settings"
    MANAGE_ALL_GROUPS = "manage_all_groups"
    MANAGE_ROLE_TEMPLATES = "manage_role_templates"
    MANAGE_GROUP_TEMPLATES = "manage_group_templates"
    VIEW_PLATFORM_ANALYTICS = "view_platform_analytics"


@dataclass(frozen=True)
class PermissionDefinition:
    """Static catalog entry used for seeding and ordering."""

    name: str
    category: PermissionCategory
    display_order: int
    description: str


def _defs(
    category: PermissionCategory, entries: list[tuple[str, int, str]]
) -> list[PermissionDefinition]:
    return [PermissionDefinition(name, category, order, desc) for name, order, desc in entries]


P = Permissions
C = PermissionCategory

PERMISSION_CATALOG: tuple[PermissionDefinition, ...] = tuple(
    _defs(
        C.GROUP_MANAGEMENT,
        [
            (P.VIEW_MEMBER_LIST, 100, "See who belongs to the group"),
            (P.VIEW_MEMBER_PROFILES, 101, "Open the profiles of group members"),
            (P.INVITE_MEMBERS, 200, "Invite users to join the group"),
            (P.ACTIVATE_MEMBERS, 201, "Reactivate paused members"),
            (P.PAUSE_MEMBERS, 202, "Temporarily pause a member"),
            (P.REMOVE_MEMBERS, 203, "Remove members from the group"),
            (P.ASSIGN_ROLES, 300, "Assign roles to members"),
            (P.REMOVE_ROLES, 301, "Remove roles from members"),
            (P.MANAGE_ROLES, 302, "Create, edit and delete group roles"),
            (P.EDIT_GROUP_SETTINGS, 400, "Change the group name and description"),
            (P.SET_GROUP_VISIBILITY, 401, "Make the group public or private"),
            (P.CONTROL_MEMBER_LIST_VISIBILITY, 402, "Choose who can see the member list"),
            (P.DELETE_GROUP, 403, "Delete the group permanently"),
            (P.BROWSE_PUBLIC_GROUPS, 500, "Browse public groups"),
            (P.CREATE_GROUP, 501, "Create new groups"),
        ],
    )
    + _defs(
        C.JOURNEY_MANAGEMENT,
        [
            (P.ENROLL_SELF_IN_JOURNEY, 100, "Enroll yourself in a journey"),
            (P.ENROLL_GROUP_IN_JOURNEY, 101, "Enroll the whole group in a journey"),
            (P.UNENROLL_FROM_JOURNEY, 102, "Unenroll the group from a journey"),
            (P.FREEZE_JOURNEY, 103, "Freeze a group's journey progress"),
            (P.CREATE_JOURNEY, 200, "Create journeys"),
            (P.EDIT_JOURNEY, 201, "Edit journeys"),
            (P.PUBLISH_JOURNEY, 202, "Publish journeys to the catalog"),
            (P.UNPUBLISH_JOURNEY, 203, "Withdraw journeys from the catalog"),
            (P.DELETE_JOURNEY, 204, "Delete journeys"),
            (P.BROWSE_JOURNEY_CATALOG, 300, "Browse the journey catalog"),
        ],
    )
    + _defs(
        C.JOURNEY_PARTICIPATION,
        [
            (P.VIEW_JOURNEY_CONTENT, 100, "View journey content"),
            (P.COMPLETE_JOURNEY_ACTIVITIES, 101, "Complete journey activities"),
            (P.VIEW_OWN_PROGRESS, 200, "View your own progress"),
            (P.VIEW_OTHERS_PROGRESS, 201, "View other members' progress"),
            (P.VIEW_GROUP_PROGRESS, 202, "View the group's progress"),
        ],
    )
    + _defs(
        C.COMMUNICATION,
        [
            (P.VIEW_FORUM, 100, "Read the group forum"),
            (P.POST_FORUM_MESSAGES, 101, "Start forum threads"),
            (P.REPLY_TO_MESSAGES, 102, "Reply in forum threads"),
            (P.MODERATE_FORUM, 103, "Moderate the group forum"),
            (P.SEND_DIRECT_MESSAGES, 200, "Send direct messages"),
        ],
    )
    + _defs(
        C.FEEDBACK,
        [
            (P.PROVIDE_FEEDBACK_TO_MEMBERS, 100, "Give feedback to members"),
            (P.RECEIVE_FEEDBACK, 101, "Receive feedback"),
        ],
    )
    + _defs(
        C.PLATFORM_ADMIN,
        [
            (P.MANAGE_PLATFORM_SETTINGS, 100, "Change platform settings"),
            (P.MANAGE_ALL_GROUPS, 101, "Administer every group and user"),
            (P.MANAGE_ROLE_TEMPLATES, 102, "Edit role templates"),
            (P.MANAGE_GROUP_TEMPLATES, 103, "Edit group templates"),
            (P.VIEW_PLATFORM_ANALYTICS, 104, "View platform analytics"),
        ],
    )
)

_CATALOG_BY_NAME: dict[str, PermissionDefinition] = {p.name: p for p in PERMISSION_CATALOG}


def display_sort_key(name: str, category: str | None = None) -> tuple[int, int, str]:
    """Sort key: category order, then display order, unknown names last."""
    definition = _CATALOG_BY_NAME.get(name)
    if definition is None:
        try:
            category_index = CATEGORY_ORDER.index(PermissionCategory(category or ""))
        except ValueError:
            category_index = len(CATEGORY_ORDER)
        return (category_index, UNKNOWN_DISPLAY_ORDER, name)
    return (CATEGORY_ORDER.index(definition.category), definition.display_order, name)


def sort_permission_names(names: list[str] | set[str] | frozenset[str]) -> list[str]:
    """Sort permission names in platform display order."""
    return sorted(names, key=display_sort_key)


# --- Role templates ---

STEWARD_TEMPLATE = "Steward"
GUIDE_TEMPLATE = "Guide"
MEMBER_TEMPLATE = "Member"
OBSERVER_TEMPLATE = "Observer"

# Every new engagement group is seeded with roles from these templates
MANDATORY_GROUP_TEMPLATES: tuple[str, ...] = (STEWARD_TEMPLATE, MEMBER_TEMPLATE)


@dataclass(frozen=True)
class RoleTemplateDefinition:
    """Static role template definition used for seeding."""

    name: str
    description: str
    permissions: frozenset[str]


ROLE_TEMPLATE_CATALOG: tuple[RoleTemplateDefinition, ...] = (
    RoleTemplateDefinition(
        name=STEWARD_TEMPLATE,
        description="Leads the group and manages its members and roles",
        permissions=frozenset(
            {
                P.VIEW_MEMBER_LIST,
                P.VIEW_MEMBER_PROFILES,
                P.INVITE_MEMBERS,
                P.ACTIVATE_MEMBERS,
                P.PAUSE_MEMBERS,
                P.REMOVE_MEMBERS,
                P.ASSIGN_ROLES,
                P.REMOVE_ROLES,
                P.MANAGE_ROLES,
                P.EDIT_GROUP_SETTINGS,
                P.SET_GROUP_VISIBILITY,
                P.CONTROL_MEMBER_LIST_VISIBILITY,
                P.DELETE_GROUP,
                P.ENROLL_GROUP_IN_JOURNEY,
                P.UNENROLL_FROM_JOURNEY,
                P.FREEZE_JOURNEY,
                P.VIEW_JOURNEY_CONTENT,
                P.COMPLETE_JOURNEY_ACTIVITIES,
                P.VIEW_OWN_PROGRESS,
                P.VIEW_OTHERS_PROGRESS,
                P.VIEW_GROUP_PROGRESS,
                P.VIEW_FORUM,
                P.POST_FORUM_MESSAGES,
                P.REPLY_TO_MESSAGES,
                P.MODERATE_FORUM,
            }
        ),
    ),
    RoleTemplateDefinition(
        name=GUIDE_TEMPLATE,
        description="Supports members through journeys and gives feedback",
        permissions=frozenset(
            {
                P.VIEW_MEMBER_LIST,
                P.VIEW_MEMBER_PROFILES,
                P.VIEW_JOURNEY_CONTENT,
                P.COMPLETE_JOURNEY_ACTIVITIES,
                P.VIEW_OWN_PROGRESS,
                P.VIEW_OTHERS_PROGRESS,
                P.VIEW_GROUP_PROGRESS,
                P.VIEW_FORUM,
                P.POST_FORUM_MESSAGES,
                P.REPLY_TO_MESSAGES,
                P.PROVIDE_FEEDBACK_TO_MEMBERS,
                P.RECEIVE_FEEDBACK,
                P.FREEZE_JOURNEY,
                P.UNENROLL_FROM_JOURNEY,
            }
        ),
    ),
    RoleTemplateDefinition(
        name=MEMBER_TEMPLATE,
        description="Takes part in the group's journeys and conversations",
        permissions=frozenset(
            {
                P.VIEW_MEMBER_LIST,
                P.VIEW_MEMBER_PROFILES,
                P.VIEW_JOURNEY_CONTENT,
                P.COMPLETE_JOURNEY_ACTIVITIES,
                P.VIEW_OWN_PROGRESS,
                P.VIEW_GROUP_PROGRESS,
                P.VIEW_FORUM,
                P.POST_FORUM_MESSAGES,
                P.REPLY_TO_MESSAGES,
                P.PROVIDE_FEEDBACK_TO_MEMBERS,
                P.RECEIVE_FEEDBACK,
                P.UNENROLL_FROM_JOURNEY,
            }
        ),
    ),
    RoleTemplateDefinition(
        name=OBSERVER_TEMPLATE,
        description="Follows the group without taking part",
        permissions=frozenset(
            {
                P.VIEW_MEMBER_LIST,
                P.VIEW_MEMBER_PROFILES,
                P.VIEW_JOURNEY_CONTENT,
                P.VIEW_OWN_PROGRESS,
                P.VIEW_GROUP_PROGRESS,
                P.VIEW_FORUM,
                P.RECEIVE_FEEDBACK,
            }
        ),
    ),
)


# --- System groups ---

ALL_MEMBERS_ROLE = "Member"
SUPER_ADMIN_ROLE = "Administrator"
PERSONAL_GROUP_ROLE = "Myself"

# Tier 1 grants every registered user receives through the "All Members" group
ALL_MEMBERS_PERMISSIONS: frozenset[str] = frozenset(
    {
        P.BROWSE_PUBLIC_GROUPS,
        P.CREATE_GROUP,
        P.BROWSE_JOURNEY_CATALOG,
        P.ENROLL_SELF_IN_JOURNEY,
        P.SEND_DIRECT_MESSAGES,
        P.VIEW_OWN_PROGRESS,
        P.RECEIVE_FEEDBACK,
        P.VIEW_JOURNEY_CONTENT,
    }
)

PERSONAL_GROUP_PERMISSIONS: frozenset[str] = frozenset(
    {
        P.VIEW_JOURNEY_CONTENT,
        P.COMPLETE_JOURNEY_ACTIVITIES,
        P.VIEW_OWN_PROGRESS,
        P.UNENROLL_FROM_JOURNEY,
    }
)

# The administrator role holds the whole catalog; seeding re-grants new entries
SUPER_ADMIN_PERMISSIONS: frozenset[str] = frozenset(p.name for p in PERMISSION_CATALOG)


# --- Persisted catalog rows ---


@dataclass
class Permission:
    """Domain entity for a catalog permission."""

    name: str
    category: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None

    @property
    def display_order(self) -> int:
        definition = _CATALOG_BY_NAME.get(self.name)
        return definition.display_order if definition else UNKNOWN_DISPLAY_ORDER


@dataclass
class RoleTemplate:
    """Domain entity for a platform role template."""

    name: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    permission_names: frozenset[str] = field(default_factory=frozenset)
    created_at: datetime = field(default_factory=datetime.utcnow)


def sort_permissions(permissions: list[Permission]) -> list[Permission]:
    """Sort permission entities in platform display order."""
    return sorted(permissions, key=lambda p: display_sort_key(p.name, p.category))

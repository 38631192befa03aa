"""Unit tests for the permission catalog, display ordering and membership states."""

import pytest

from domain.entities.catalog import (
    MANDATORY_GROUP_TEMPLATES,
    PERMISSION_CATALOG,
    ROLE_TEMPLATE_CATALOG,
    STEWARD_TEMPLATE,
    SUPER_ADMIN_PERMISSIONS,
    Permission,
    PermissionCategory,
    Permissions,
    sort_permission_names,
)
from domain.entities.group import MembershipStatus, can_transition
from domain.entities.user import AccountStatus, User, UserFilter
from domain.services.catalog_service import group_by_category


class TestCatalogDefinitions:
    def test_permission_names_are_unique(self):
        names = [p.name for p in PERMISSION_CATALOG]
        assert len(names) == len(set(names))

    def test_display_order_is_unique_within_a_category(self):
        for category in PermissionCategory:
            orders = [p.display_order for p in PERMISSION_CATALOG if p.category == category]
            assert len(orders) == len(set(orders)), category

    def test_templates_only_reference_catalog_permissions(self):
        known = {p.name for p in PERMISSION_CATALOG}
        for template in ROLE_TEMPLATE_CATALOG:
            assert template.permissions <= known, template.name

    def test_mandatory_templates_exist(self):
        names = {t.name for t in ROLE_TEMPLATE_CATALOG}
        assert set(MANDATORY_GROUP_TEMPLATES) <= names

    def test_steward_leads_the_group(self):
        steward = next(t for t in ROLE_TEMPLATE_CATALOG if t.name == STEWARD_TEMPLATE)
        assert Permissions.MANAGE_ROLES in steward.permissions
        assert Permissions.ASSIGN_ROLES in steward.permissions

    def test_administrator_holds_the_whole_catalog(self):
        assert SUPER_ADMIN_PERMISSIONS == {p.name for p in PERMISSION_CATALOG}


class TestDisplayOrder:
    def test_sorts_by_category_then_display_order(self):
        names = [
            Permissions.MANAGE_ALL_GROUPS,
            Permissions.VIEW_FORUM,
            Permissions.INVITE_MEMBERS,
            Permissions.VIEW_MEMBER_LIST,
        ]

        assert sort_permission_names(names) == [
            Permissions.VIEW_MEMBER_LIST,
            Permissions.INVITE_MEMBERS,
            Permissions.VIEW_FORUM,
            Permissions.MANAGE_ALL_GROUPS,
        ]

    def test_unknown_names_sort_last_alphabetically(self):
        names = ["zeta_custom", "alpha_custom", Permissions.VIEW_MEMBER_LIST]

        assert sort_permission_names(names) == [
            Permissions.VIEW_MEMBER_LIST,
            "alpha_custom",
            "zeta_custom",
        ]

    def test_group_by_category_in_display_order(self):
        permissions = [
            Permission(name=Permissions.RECEIVE_FEEDBACK, category="feedback"),
            Permission(name=Permissions.REMOVE_MEMBERS, category="group_management"),
            Permission(name="custom_thing", category="custom"),
            Permission(name=Permissions.VIEW_MEMBER_LIST, category="group_management"),
        ]

        groups = group_by_category(permissions)

        assert [g.category for g in groups] == ["group_management", "feedback", "custom"]
        assert [p.name for p in groups[0].permissions] == [
            Permissions.VIEW_MEMBER_LIST,
            Permissions.REMOVE_MEMBERS,
        ]
        assert groups[0].label == "Group Management"
        assert groups[2].label == "Custom"

    def test_empty_categories_are_omitted(self):
        groups = group_by_category(
            [Permission(name=Permissions.VIEW_FORUM, category="communication")]
        )
        assert [g.category for g in groups] == ["communication"]


class TestMembershipTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (MembershipStatus.ACTIVE, MembershipStatus.PAUSED),
            (MembershipStatus.ACTIVE, MembershipStatus.REMOVED),
            (MembershipStatus.PAUSED, MembershipStatus.ACTIVE),
            (MembershipStatus.PAUSED, MembershipStatus.REMOVED),
        ],
    )
    def test_allowed(self, current: MembershipStatus, target: MembershipStatus):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (MembershipStatus.INVITED, MembershipStatus.ACTIVE),
            (MembershipStatus.REMOVED, MembershipStatus.ACTIVE),
            (MembershipStatus.PAUSED, MembershipStatus.INVITED),
        ],
    )
    def test_rejected(self, current: MembershipStatus, target: MembershipStatus):
        assert not can_transition(current, target)


class TestAccountStatus:
    def test_decommissioned_wins_over_active_flag(self):
        user = User(email="x@example.com", is_active=True, is_decommissioned=True)
        assert user.status == AccountStatus.DECOMMISSIONED

    def test_filter_statuses(self):
        assert UserFilter().statuses == {AccountStatus.ACTIVE, AccountStatus.INACTIVE}
        assert UserFilter(show_active=False, show_inactive=False).statuses == set()

    def test_blank_search_is_no_search(self):
        assert UserFilter(search="   ").normalized_search is None
        assert UserFilter(search=" ada ").normalized_search == "ada"

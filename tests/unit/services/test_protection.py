"""Unit tests for ProtectionGuard."""

from uuid import UUID, uuid4

import pytest

from core.exceptions import LastPrivilegedHolderError, PermissionEscalationError
from domain.entities.catalog import Permission
from domain.entities.role import NOT_HELD_REASON, UserRoleAssignment
from domain.services.protection import ProtectionGuard
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def guard() -> ProtectionGuard:
    return ProtectionGuard(
        leadership_permission="manage_roles", critical_permissions=frozenset({"manage_roles"})
    )


def _holder(group_id: UUID, user_id: UUID | None = None, role_id: UUID | None = None):
    return UserRoleAssignment(
        user_id=user_id or uuid4(), group_id=group_id, role_id=role_id or uuid4()
    )


class TestEnsureLeadershipRetained:
    @pytest.mark.asyncio
    async def test_rejects_removing_the_only_holder(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.roles.list_permission_holders.return_value = [_holder(group_id, user_id)]

        with pytest.raises(LastPrivilegedHolderError) as exc_info:
            await guard.ensure_leadership_retained(
                uow, group_id, removing=lambda a: a.user_id == user_id
            )

        assert exc_info.value.status_code == 409
        uow.roles.list_permission_holders.assert_awaited_once_with(
            group_id, "manage_roles", for_update=True
        )

    @pytest.mark.asyncio
    async def test_allows_when_another_holder_remains(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.roles.list_permission_holders.return_value = [
            _holder(group_id, user_id),
            _holder(group_id),
        ]

        await guard.ensure_leadership_retained(
            uow, group_id, removing=lambda a: a.user_id == user_id
        )

    @pytest.mark.asyncio
    async def test_user_holding_two_leader_roles_can_drop_one(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        first, second = _holder(group_id, user_id), _holder(group_id, user_id)
        uow.roles.list_permission_holders.return_value = [first, second]

        await guard.ensure_leadership_retained(uow, group_id, removing=lambda a: a.id == first.id)

    @pytest.mark.asyncio
    async def test_rejects_removing_a_role_held_by_every_leader(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID
    ):
        role_id = uuid4()
        uow.roles.list_permission_holders.return_value = [
            _holder(group_id, role_id=role_id),
            _holder(group_id, role_id=role_id),
        ]

        with pytest.raises(LastPrivilegedHolderError):
            await guard.ensure_leadership_retained(
                uow, group_id, removing=lambda a: a.role_id == role_id
            )

    @pytest.mark.asyncio
    async def test_group_without_holders_is_not_protected(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID
    ):
        uow.roles.list_permission_holders.return_value = []

        await guard.ensure_leadership_retained(uow, group_id, removing=lambda a: True)


class TestEnsureGrantable:
    def test_allows_held_permissions(self):
        ProtectionGuard.ensure_grantable({"a", "b"}, ["a"])

    def test_rejects_unheld_permissions(self):
        with pytest.raises(PermissionEscalationError) as exc_info:
            ProtectionGuard.ensure_grantable({"a"}, ["c", "a", "b"])

        assert exc_info.value.details == {"permissions": ["b", "c"]}

    def test_empty_request_is_fine(self):
        ProtectionGuard.ensure_grantable(set(), [])


class TestPermissionOptions:
    def test_marks_unheld_permissions(self):
        catalog = [
            Permission(name="manage_roles", category="group_management"),
            Permission(name="view_member_list", category="group_management"),
        ]

        options = ProtectionGuard.permission_options(catalog, {"view_member_list"})

        assert [o.permission.name for o in options] == ["view_member_list", "manage_roles"]
        assert options[0].grantable and options[0].reason is None
        assert not options[1].grantable
        assert options[1].reason == NOT_HELD_REASON


class TestDetectSelfLockout:
    @pytest.mark.asyncio
    async def test_warns_when_editor_loses_critical_permission(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        role_id = uuid4()
        uow.roles.get_assignment.return_value = _holder(group_id, user_id, role_id)
        uow.roles.get_system_permission_names.return_value = set()
        uow.roles.get_group_permission_names.return_value = {"view_member_list"}

        warning = await guard.detect_self_lockout(
            uow, user_id, group_id, role_id, {"manage_roles", "view_forum"}
        )

        assert warning is not None
        assert warning.permissions == ["manage_roles"]
        uow.roles.get_group_permission_names.assert_awaited_once_with(
            user_id, group_id, exclude_role_id=role_id
        )

    @pytest.mark.asyncio
    async def test_no_warning_when_retained_through_another_role(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        role_id = uuid4()
        uow.roles.get_assignment.return_value = _holder(group_id, user_id, role_id)
        uow.roles.get_system_permission_names.return_value = set()
        uow.roles.get_group_permission_names.return_value = {"manage_roles"}

        assert (
            await guard.detect_self_lockout(uow, user_id, group_id, role_id, {"manage_roles"})
            is None
        )

    @pytest.mark.asyncio
    async def test_no_warning_when_retained_through_tier1(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        role_id = uuid4()
        uow.roles.get_assignment.return_value = _holder(group_id, user_id, role_id)
        uow.roles.get_system_permission_names.return_value = {"manage_roles"}
        uow.roles.get_group_permission_names.return_value = set()

        assert (
            await guard.detect_self_lockout(uow, user_id, group_id, role_id, {"manage_roles"})
            is None
        )

    @pytest.mark.asyncio
    async def test_no_warning_when_editor_does_not_hold_the_role(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.roles.get_assignment.return_value = None

        assert (
            await guard.detect_self_lockout(uow, user_id, group_id, uuid4(), {"manage_roles"})
            is None
        )

    @pytest.mark.asyncio
    async def test_non_critical_removals_skip_lookups(
        self, guard: ProtectionGuard, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        assert (
            await guard.detect_self_lockout(uow, user_id, group_id, uuid4(), {"view_forum"})
            is None
        )
        uow.roles.get_assignment.assert_not_awaited()

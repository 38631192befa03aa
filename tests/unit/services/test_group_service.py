"""Unit tests for GroupService."""

from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    GroupNotFoundError,
    InsufficientPermissionsError,
    RoleTemplateNotFoundError,
    SystemGroupProtectedError,
)
from domain.entities.catalog import (
    MEMBER_TEMPLATE,
    STEWARD_TEMPLATE,
    Permissions,
    RoleTemplate,
)
from domain.entities.group import (
    Group,
    GroupKind,
    GroupMembership,
    GroupVisibility,
    MembershipStatus,
)
from domain.services.audit_service import AuditService
from domain.services.group_service import GroupService
from domain.services.permission_service import PermissionService
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def service(uow: FakeUnitOfWork) -> GroupService:
    factory = lambda: uow  # noqa: E731
    return GroupService(factory, audit_service=AuditService(factory, PermissionService(factory)))


@pytest.fixture
def templates(uow: FakeUnitOfWork) -> dict[str, RoleTemplate]:
    templates = {name: RoleTemplate(name=name) for name in (STEWARD_TEMPLATE, MEMBER_TEMPLATE)}
    uow.catalog.get_role_template_by_name.side_effect = templates.get
    uow.catalog.get_template_permission_ids.return_value = [uuid4()]
    uow.roles.create.side_effect = lambda role: role
    uow.groups.create.side_effect = lambda group: group
    uow.audit.create.side_effect = lambda entry: entry
    return templates


class TestCreateGroup:
    @pytest.mark.asyncio
    async def test_creator_becomes_steward(
        self,
        service: GroupService,
        uow: FakeUnitOfWork,
        templates: dict[str, RoleTemplate],
        user_id: UUID,
    ):
        uow.roles.get_system_permission_names.return_value = {Permissions.CREATE_GROUP}

        group = await service.create(user_id, "Book Club", visibility=GroupVisibility.PUBLIC)

        assert group.kind == GroupKind.ENGAGEMENT
        assert group.created_by == user_id
        created_roles = [call.args[0] for call in uow.roles.create.await_args_list]
        assert {r.source_template_id for r in created_roles} == {
            t.id for t in templates.values()
        }

        membership = uow.groups.add_membership.await_args.args[0]
        assert membership.status == MembershipStatus.ACTIVE

        assignment = uow.roles.add_assignment.await_args.args[0]
        steward = next(r for r in created_roles if r.name == STEWARD_TEMPLATE)
        assert assignment.role_id == steward.id
        assert assignment.user_id == user_id
        assert uow.committed

    @pytest.mark.asyncio
    async def test_requires_create_group(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.roles.get_system_permission_names.return_value = set()

        with pytest.raises(InsufficientPermissionsError):
            await service.create(user_id, "Book Club")

        uow.groups.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_template_fails(
        self,
        service: GroupService,
        uow: FakeUnitOfWork,
        templates: dict[str, RoleTemplate],
        user_id: UUID,
    ):
        uow.roles.get_system_permission_names.return_value = {Permissions.CREATE_GROUP}
        uow.catalog.get_role_template_by_name.side_effect = lambda name: None

        with pytest.raises(RoleTemplateNotFoundError):
            await service.create(user_id, "Book Club")

        assert not uow.committed


class TestGetById:
    @pytest.mark.asyncio
    async def test_public_group_is_visible(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        group = Group(name="Open", visibility=GroupVisibility.PUBLIC)
        uow.groups.get.return_value = group

        assert await service.get_by_id(group.id, user_id) is group
        uow.groups.get_membership.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_private_group_visible_to_members(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        group = Group(name="Closed")
        uow.groups.get.return_value = group
        uow.groups.get_membership.return_value = GroupMembership(
            group_id=group.id, user_id=user_id, status=MembershipStatus.PAUSED
        )

        assert await service.get_by_id(group.id, user_id) is group

    @pytest.mark.asyncio
    async def test_private_group_hidden_from_outsiders(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        group = Group(name="Closed")
        uow.groups.get.return_value = group
        uow.groups.get_membership.return_value = None
        uow.roles.get_system_permission_names.return_value = set()

        with pytest.raises(GroupNotFoundError):
            await service.get_by_id(group.id, user_id)

    @pytest.mark.asyncio
    async def test_platform_admin_sees_private_groups(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        group = Group(name="Closed")
        uow.groups.get.return_value = group
        uow.groups.get_membership.return_value = None
        uow.roles.get_system_permission_names.return_value = {"manage_all_groups"}

        assert await service.get_by_id(group.id, user_id) is group


class TestListForUser:
    @pytest.mark.asyncio
    async def test_admin_lists_everything(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.roles.get_system_permission_names.return_value = {"manage_all_groups"}
        uow.groups.list_all.return_value = []

        await service.list_for_user(user_id)

        uow.groups.list_all.assert_awaited_once()
        uow.groups.list_discoverable.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_others_list_discoverable(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.roles.get_system_permission_names.return_value = set()
        uow.groups.list_discoverable.return_value = []

        await service.list_for_user(user_id)

        uow.groups.list_discoverable.assert_awaited_once_with(user_id)


class TestUpdateGroup:
    @pytest.mark.asyncio
    async def test_each_setting_has_its_own_permission(
        self, service: GroupService, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Book Club")
        uow.roles.get_system_permission_names.return_value = set()
        uow.roles.get_group_permission_names.return_value = {Permissions.EDIT_GROUP_SETTINGS}

        with pytest.raises(InsufficientPermissionsError) as exc_info:
            await service.update(group_id, user_id, visibility=GroupVisibility.PUBLIC)

        assert exc_info.value.details["required_permission"] == Permissions.SET_GROUP_VISIBILITY

    @pytest.mark.asyncio
    async def test_audits_only_changed_fields(
        self, service: GroupService, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Book Club", description="x")
        uow.roles.get_system_permission_names.return_value = set()
        uow.roles.get_group_permission_names.return_value = {Permissions.EDIT_GROUP_SETTINGS}
        uow.groups.update.side_effect = lambda group: group
        uow.audit.create.side_effect = lambda entry: entry

        updated = await service.update(group_id, user_id, name="Readers", description="x")

        assert updated.name == "Readers"
        entry = uow.audit.create.await_args.args[0]
        assert entry.metadata["changes"] == {"name": {"old": "Book Club", "new": "Readers"}}

    @pytest.mark.asyncio
    async def test_system_groups_cannot_be_edited(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.groups.get.return_value = Group(name="All Members", kind=GroupKind.SYSTEM)

        with pytest.raises(SystemGroupProtectedError):
            await service.update(uuid4(), user_id, name="Everyone")


class TestDeleteGroup:
    @pytest.mark.asyncio
    async def test_requires_delete_group(
        self, service: GroupService, uow: FakeUnitOfWork, group_id: UUID, user_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Book Club")
        uow.roles.get_system_permission_names.return_value = set()
        uow.roles.get_group_permission_names.return_value = {Permissions.MANAGE_ROLES}

        with pytest.raises(InsufficientPermissionsError):
            await service.delete(group_id, user_id)

        uow.groups.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_personal_group_is_protected(
        self, service: GroupService, uow: FakeUnitOfWork, user_id: UUID
    ):
        uow.groups.get.return_value = Group(name="Me", kind=GroupKind.PERSONAL)

        with pytest.raises(SystemGroupProtectedError):
            await service.delete(uuid4(), user_id)

"""Unit tests for bulk action eligibility and results."""

from dataclasses import dataclass
from uuid import uuid4

import pytest

from domain.entities.admin_action import (
    ActionName,
    BulkResult,
    Reasons,
    clears_selection_after,
    common_group_ids,
    compute_action_states,
    confirmation_text,
    is_destructive_action,
)


@dataclass
class Account:
    is_active: bool = True
    is_decommissioned: bool = False


ACTIVE = Account()
INACTIVE = Account(is_active=False)
DECOMMISSIONED = Account(is_active=False, is_decommissioned=True)


class TestComputeActionStates:
    def test_empty_selection_disables_everything(self):
        states = compute_action_states([], common_group_count=3)

        assert set(states) == set(ActionName)
        assert all(s.disabled and s.reason == Reasons.NO_SELECTION for s in states.values())

    def test_all_active(self):
        states = compute_action_states([ACTIVE, ACTIVE], common_group_count=1)

        assert states[ActionName.ACTIVATE].reason == Reasons.ALREADY_ACTIVE
        assert not states[ActionName.DEACTIVATE].disabled
        assert not states[ActionName.DELETE_SOFT].disabled
        assert not states[ActionName.REMOVE].disabled

    def test_all_inactive(self):
        states = compute_action_states([INACTIVE], common_group_count=1)

        assert states[ActionName.DEACTIVATE].reason == Reasons.ALREADY_INACTIVE
        assert not states[ActionName.ACTIVATE].disabled

    def test_all_decommissioned(self):
        states = compute_action_states([DECOMMISSIONED, DECOMMISSIONED], common_group_count=1)

        assert states[ActionName.DEACTIVATE].reason == Reasons.ALL_DECOMMISSIONED
        assert states[ActionName.ACTIVATE].reason == Reasons.ACTIVATE_DECOMMISSIONED
        assert states[ActionName.DELETE_SOFT].reason == Reasons.ALREADY_DECOMMISSIONED
        assert not states[ActionName.DELETE_HARD].disabled

    def test_mixed_selection_with_a_decommissioned_user(self):
        states = compute_action_states([ACTIVE, DECOMMISSIONED], common_group_count=1)

        assert not states[ActionName.DEACTIVATE].disabled
        assert states[ActionName.ACTIVATE].reason == Reasons.ACTIVATE_DECOMMISSIONED
        assert not states[ActionName.DELETE_SOFT].disabled

    def test_mixed_active_and_inactive_allows_both_directions(self):
        states = compute_action_states([ACTIVE, INACTIVE], common_group_count=1)

        assert not states[ActionName.ACTIVATE].disabled
        assert not states[ActionName.DEACTIVATE].disabled

    def test_inactive_and_decommissioned_cannot_be_deactivated(self):
        states = compute_action_states([INACTIVE, DECOMMISSIONED], common_group_count=0)

        assert states[ActionName.DEACTIVATE].reason == Reasons.ALREADY_INACTIVE

    def test_remove_requires_a_common_group(self):
        states = compute_action_states([ACTIVE], common_group_count=0)

        assert states[ActionName.REMOVE].reason == Reasons.NO_COMMON_GROUPS
        assert not states[ActionName.INVITE].disabled
        assert not states[ActionName.JOIN].disabled

    @pytest.mark.parametrize(
        "action",
        [ActionName.MESSAGE, ActionName.NOTIFY, ActionName.LOGOUT, ActionName.DELETE_HARD],
    )
    def test_always_enabled_for_a_non_empty_selection(self, action: ActionName):
        for selection in ([ACTIVE], [INACTIVE], [DECOMMISSIONED]):
            assert not compute_action_states(selection, 0)[action].disabled

    def test_enabled_states_carry_no_reason(self):
        states = compute_action_states([ACTIVE, INACTIVE], common_group_count=2)

        assert all(s.reason is None for s in states.values() if not s.disabled)


class TestCommonGroups:
    def test_only_groups_shared_by_every_selected_user(self):
        u1, u2, outsider = uuid4(), uuid4(), uuid4()
        g1, g2, g3 = uuid4(), uuid4(), uuid4()
        pairs = [(g1, u1), (g1, u2), (g2, u1), (g3, outsider), (g3, u1), (g3, u2)]

        assert common_group_ids(pairs, [u1, u2]) == {g1, g3}

    def test_duplicate_pairs_are_counted_once(self):
        u1, u2, g = uuid4(), uuid4(), uuid4()

        assert common_group_ids([(g, u1), (g, u1)], [u1, u2]) == set()

    def test_empty_selection(self):
        assert common_group_ids([(uuid4(), uuid4())], []) == set()


class TestConfirmation:
    def test_destructive_actions(self):
        assert {a for a in ActionName if is_destructive_action(a)} == {
            ActionName.DEACTIVATE,
            ActionName.DELETE_SOFT,
            ActionName.DELETE_HARD,
            ActionName.LOGOUT,
            ActionName.REMOVE,
        }

    def test_destructive_actions_have_dialog_text_with_count(self):
        for action in ActionName:
            text = confirmation_text(action, 7)
            if is_destructive_action(action):
                assert text is not None and "7 user(s)" in text
            else:
                assert text is None

    def test_hard_delete_dialog_warns_it_is_permanent(self):
        assert "cannot be undone" in confirmation_text(ActionName.DELETE_HARD, 1)

    def test_only_terminal_account_changes_clear_selection(self):
        assert {a for a in ActionName if clears_selection_after(a)} == {
            ActionName.DEACTIVATE,
            ActionName.DELETE_SOFT,
            ActionName.DELETE_HARD,
        }


class TestBulkResult:
    def test_records_outcomes(self):
        ok, bad = uuid4(), uuid4()
        result = BulkResult(action=ActionName.ACTIVATE)

        result.record_success(ok)
        result.record_skip()
        result.record_error(bad, "USER_NOT_FOUND", "User not found")

        assert result.succeeded == 1
        assert result.skipped == 1
        assert result.affected_ids == [ok]
        assert result.errors[0].user_id == bad
        assert result.is_partial_failure

    def test_no_errors_is_not_partial_failure(self):
        assert not BulkResult(action=ActionName.LOGOUT).is_partial_failure

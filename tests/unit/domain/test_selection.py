"""Unit tests for the admin directory selection model."""

from domain.services.selection import (
    SelectionState,
    deselect_all_visible,
    is_all_visible_selected,
    range_select,
    select_all_visible,
    toggle_selection,
)

PAGE = ["a", "b", "c", "d", "e"]


class TestToggleSelection:
    def test_adds_missing_id(self):
        assert toggle_selection(frozenset({"a"}), "b") == {"a", "b"}

    def test_removes_present_id(self):
        assert toggle_selection(frozenset({"a", "b"}), "a") == {"b"}

    def test_does_not_mutate_input(self):
        selection = frozenset({"a"})
        toggle_selection(selection, "b")
        assert selection == {"a"}


class TestRangeSelect:
    def test_selects_inclusive_range_in_either_direction(self):
        assert range_select(PAGE, frozenset(), 1, 3) == {"b", "c", "d"}
        assert range_select(PAGE, frozenset(), 3, 1) == {"b", "c", "d"}

    def test_keeps_ids_outside_the_page(self):
        result = range_select(PAGE, frozenset({"z"}), 0, 1)
        assert result == {"z", "a", "b"}

    def test_clamps_out_of_range_positions(self):
        assert range_select(PAGE, frozenset(), 3, 99) == {"d", "e"}
        assert range_select(PAGE, frozenset(), -5, 0) == {"a"}

    def test_range_entirely_off_page_is_a_no_op(self):
        assert range_select(PAGE, frozenset({"z"}), 10, 20) == {"z"}

    def test_empty_page_is_a_no_op(self):
        assert range_select([], frozenset({"z"}), 0, 3) == {"z"}


class TestPageSelection:
    def test_select_all_visible_adds_only_page_ids(self):
        assert select_all_visible(frozenset({"z"}), PAGE[:2]) == {"z", "a", "b"}

    def test_deselect_all_visible_keeps_other_pages(self):
        assert deselect_all_visible(frozenset({"a", "b", "z"}), PAGE) == {"z"}

    def test_all_visible_selected(self):
        assert is_all_visible_selected(frozenset(PAGE), PAGE)
        assert not is_all_visible_selected(frozenset(PAGE[:4]), PAGE)

    def test_empty_page_is_never_all_selected(self):
        assert not is_all_visible_selected(frozenset({"a"}), [])


class TestSelectionState:
    def test_click_toggles_and_sets_anchor(self):
        state = SelectionState().click(PAGE, 1)

        assert state.selected == {"b"}
        assert state.anchor_index == 1

    def test_shift_click_extends_from_anchor(self):
        state = SelectionState().click(PAGE, 1).click(PAGE, 3, shift=True)

        assert state.selected == {"b", "c", "d"}
        assert state.anchor_index == 3

    def test_shift_click_without_anchor_toggles(self):
        state = SelectionState().click(PAGE, 2, shift=True)

        assert state.selected == {"c"}

    def test_click_outside_page_is_ignored(self):
        state = SelectionState()
        assert state.click(PAGE, 9) is state

    def test_view_change_drops_anchor_but_keeps_selection(self):
        state = SelectionState(view_key=("", 0)).click(PAGE, 0)

        moved = state.with_view(("", 1))

        assert moved.selected == {"a"}
        assert moved.anchor_index is None
        # Shift-click on the new page cannot reach back to the old anchor
        assert moved.click(PAGE, 4, shift=True).selected == {"a", "e"}

    def test_same_view_keeps_anchor(self):
        state = SelectionState(view_key="k").click(PAGE, 2)
        assert state.with_view("k") is state

    def test_toggle_page_selects_then_clears(self):
        state = SelectionState(selected=frozenset({"z"}))

        selected = state.toggle_page(PAGE)
        cleared = selected.toggle_page(PAGE)

        assert selected.selected == {"z", *PAGE}
        assert cleared.selected == {"z"}

    def test_replace_selection_and_clear(self):
        state = SelectionState().click(PAGE, 0).replace_selection(["x", "y", "x"])

        assert state.count == 2
        assert state.anchor_index is None
        assert state.clear().count == 0

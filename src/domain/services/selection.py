"""Bulk selection model for the paginated admin user directory.

All functions are pure transforms over immutable sets: they never mutate
their inputs and never touch ids outside their documented scope.
Range selection is index based on the currently visible page, so a
``SelectionState`` drops its anchor whenever the view (filters or page)
changes. "Select all N results" is server evaluated, see
``AdminDirectoryService.select_all_matching``.
"""

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

T = TypeVar("T", bound=Hashable)


def toggle_selection(selection: frozenset[T], item_id: T) -> frozenset[T]:
    """Flip membership of one id."""
    if item_id in selection:
        return selection - {item_id}
    return selection | {item_id}


def range_select(
    visible_ids: Sequence[T],
    selection: frozenset[T],
    anchor_index: int,
    target_index: int,
) -> frozenset[T]:
    """Add every visible id between two row positions, inclusive.

    Out-of-range positions are clamped to the visible page.
    """
    if not visible_ids:
        return selection
    last = len(visible_ids) - 1
    start = max(0, min(anchor_index, target_index))
    end = min(last, max(anchor_index, target_index))
    if start > last or end < 0:
        return selection
    return selection | frozenset(visible_ids[start : end + 1])


def select_all_visible(selection: frozenset[T], visible_ids: Iterable[T]) -> frozenset[T]:
    """Add every id on the current page."""
    return selection | frozenset(visible_ids)


def deselect_all_visible(selection: frozenset[T], visible_ids: Iterable[T]) -> frozenset[T]:
    """Remove only the ids on the current page."""
    return selection - frozenset(visible_ids)


def is_all_visible_selected(selection: frozenset[T], visible_ids: Sequence[T]) -> bool:
    """True when the page is non-empty and every row on it is selected."""
    return bool(visible_ids) and all(item_id in selection for item_id in visible_ids)


def selected_count(selection: frozenset[T]) -> int:
    return len(selection)


@dataclass(frozen=True)
class SelectionState:
    """Selection plus the shift-click anchor for one view of the directory.

    ``view_key`` identifies the visible page (filters, search and page
    number). The anchor is a row index within that page.
    """

    selected: frozenset = frozenset()
    anchor_index: int | None = None
    view_key: Hashable = None

    def with_view(self, view_key: Hashable) -> "SelectionState":
        """Switch to another page or filter set, keeping the selection."""
        if view_key == self.view_key:
            return self
        return replace(self, view_key=view_key, anchor_index=None)

    def click(self, visible_ids: Sequence, index: int, shift: bool = False) -> "SelectionState":
        """Apply a row click; shift-click extends from the anchor."""
        if not 0 <= index < len(visible_ids):
            return self
        if shift and self.anchor_index is not None:
            selected = range_select(visible_ids, self.selected, self.anchor_index, index)
        else:
            selected = toggle_selection(self.selected, visible_ids[index])
        return replace(self, selected=selected, anchor_index=index)

    def toggle_page(self, visible_ids: Sequence) -> "SelectionState":
        """Header checkbox: select the page, or clear it when fully selected."""
        if is_all_visible_selected(self.selected, visible_ids):
            return replace(self, selected=deselect_all_visible(self.selected, visible_ids))
        return replace(self, selected=select_all_visible(self.selected, visible_ids))

    def replace_selection(self, ids: Iterable) -> "SelectionState":
        """Replace the selection, e.g. with the server's select-all result."""
        return replace(self, selected=frozenset(ids), anchor_index=None)

    def clear(self) -> "SelectionState":
        return replace(self, selected=frozenset(), anchor_index=None)

    @property
    def count(self) -> int:
        return selected_count(self.selected)

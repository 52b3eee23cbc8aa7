import logging
from typing import Callable, Dict, FrozenSet, Iterable, List

from attrs import define, field

from tabview.constants import Row, RowKey

logger = logging.getLogger(__name__)

SelectionCallback = Callable[[FrozenSet[RowKey]], None]


@define(eq=False)
class SelectionTracker:
    """The set of rows marked by the user for bulk operations.

    The selection is kept by row key, independently of the page or the
    filters, so rows stay selected while the user navigates. Rows that
    disappear from the data stay selected until `retain` is called.

    Attributes:
        key_fn: Computes the identity of a row. Defaults to the identity of
            the object.
        on_changed: Callbacks invoked with the selected keys after every
            change.
    """

    key_fn: Callable[[Row], RowKey] = field(default=id)
    on_changed: List[SelectionCallback] = field(factory=list, repr=False)
    _selected: Dict[RowKey, None] = field(factory=dict, init=False)

    def key_of(self, row: Row) -> RowKey:
        return self.key_fn(row)

    @property
    def selected_keys(self) -> FrozenSet[RowKey]:
        return frozenset(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, key: object) -> bool:
        return key in self._selected

    def is_selected(self, row: Row) -> bool:
        return self.key_of(row) in self._selected

    def toggle(self, key: RowKey) -> bool:
        """Flip the selection of one row.

        Args:
            key: The key of the row.

        Returns:
            True if the row is selected after the call.
        """
        if key in self._selected:
            del self._selected[key]
            result = False
        else:
            self._selected[key] = None
            result = True
        self._notify()
        return result

    def toggle_row(self, row: Row) -> bool:
        return self.toggle(self.key_of(row))

    def select(self, keys: Iterable[RowKey]) -> None:
        changed = False
        for key in keys:
            if key not in self._selected:
                self._selected[key] = None
                changed = True
        if changed:
            self._notify()

    def deselect(self, keys: Iterable[RowKey]) -> None:
        changed = False
        for key in keys:
            if key in self._selected:
                del self._selected[key]
                changed = True
        if changed:
            self._notify()

    def clear(self) -> None:
        if self._selected:
            self._selected = {}
            self._notify()

    def select_all_visible(self, page_rows: Iterable[Row]) -> None:
        """The header checkbox of the visible page.

        If every visible row is selected they are all deselected, otherwise
        they are all selected. Rows on other pages are not affected.
        """
        keys = [self.key_of(r) for r in page_rows]
        if not keys:
            return
        if all(k in self._selected for k in keys):
            self.deselect(keys)
        else:
            self.select(keys)

    def visible_selected_count(self, page_rows: Iterable[Row]) -> int:
        return sum(1 for r in page_rows if self.key_of(r) in self._selected)

    def is_all_selected(self, page_rows: Iterable[Row]) -> bool:
        """True if the page is not empty and all its rows are selected."""
        page_rows = list(page_rows)
        if not page_rows:
            return False
        return self.visible_selected_count(page_rows) == len(page_rows)

    def is_indeterminate(self, page_rows: Iterable[Row]) -> bool:
        """True if some, but not all, of the visible rows are selected."""
        page_rows = list(page_rows)
        count = self.visible_selected_count(page_rows)
        return 0 < count < len(page_rows)

    def selected_rows(self, base_rows: Iterable[Row]) -> List[Row]:
        """The selected rows, in the order of `base_rows`."""
        return [r for r in base_rows if self.key_of(r) in self._selected]

    def retain(self, rows: Iterable[Row]) -> int:
        """Drop the keys that do not belong to any of the rows.

        Returns:
            The number of keys that were dropped.
        """
        present = {self.key_of(r) for r in rows}
        stale = [k for k in self._selected if k not in present]
        if stale:
            logger.debug("Dropping %d stale selected keys", len(stale))
            self.deselect(stale)
        return len(stale)

    def _notify(self) -> None:
        keys = self.selected_keys
        for callback in self.on_changed:
            callback(keys)

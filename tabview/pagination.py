import logging
from math import ceil
from typing import Iterable, List, Tuple

from attrs import define, evolve, field, validators

from tabview.constants import DEFAULT_PAGE_SIZE, Row

logger = logging.getLogger(__name__)


def _positive(instance, attribute, value):
    if not isinstance(value, int) or value <= 0:
        raise ValueError(f"{attribute.name} must be a positive integer")


@define(frozen=True)
class PaginationState:
    """Page-based navigation over the filtered and sorted rows.

    Attributes:
        current_page: The 1-based index of the page being shown.
        page_size: The maximum number of rows in a page.
        total_items: The number of rows after filtering.
        previous_page_before_filter: The page the user was on when the
            first filter was applied.
        was_filtered: Whether a filter was active at the last filter change.
    """

    current_page: int = field(default=1, validator=_positive)
    page_size: int = field(default=DEFAULT_PAGE_SIZE, validator=_positive)
    total_items: int = field(
        default=0, validator=[validators.instance_of(int), validators.ge(0)]
    )
    previous_page_before_filter: int = field(default=1, validator=_positive)
    was_filtered: bool = field(default=False)

    @property
    def total_pages(self) -> int:
        """Number of pages; 0 when there are no rows."""
        return ceil(self.total_items / self.page_size)

    @property
    def last_page(self) -> int:
        """The last page that can be shown (1 for an empty table)."""
        return max(1, self.total_pages)

    @property
    def start_index(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def end_index(self) -> int:
        return min(self.start_index + self.page_size, self.total_items)

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    def page_range(self) -> Tuple[int, int, int]:
        """The "showing X to Y of Z" numbers, 1-based.

        Returns `(0, 0, 0)` when there are no rows.
        """
        if self.total_items == 0:
            return (0, 0, 0)
        return (self.start_index + 1, self.end_index, self.total_items)


@define
class PaginationController:
    """Slices rows into pages and keeps the current page consistent.

    The controller is stateless; every operation receives a state and
    returns the updated one.
    """

    def paginate(
        self, rows: Iterable[Row], state: PaginationState
    ) -> Tuple[List[Row], PaginationState]:
        """Extract the rows of the current page.

        If the number of rows shrank so that the current page no longer
        exists, the current page goes back to the first one. A page past
        the end without a shrink is clamped to the last page.

        Args:
            rows: The filtered and sorted rows.
            state: The pagination state.

        Returns:
            The rows of the page and the updated state.
        """
        rows = list(rows)
        state = self.set_total(state, len(rows))
        return rows[state.start_index : state.end_index], state

    def set_total(self, state: PaginationState, total: int) -> PaginationState:
        """Record a new number of rows, correcting an out-of-range page.

        When the rows shrank under the current page the first page is
        shown. Otherwise an out-of-range page is clamped to the last one.
        """
        page = state.current_page
        pages = max(1, ceil(total / state.page_size))
        if page > pages:
            if total < state.total_items:
                logger.debug(
                    "Rows shrank under page %d; back to the first page", page
                )
                page = 1
            else:
                page = pages
        if page == state.current_page and total == state.total_items:
            return state
        return evolve(state, current_page=page, total_items=total)

    def on_filter_change(
        self,
        state: PaginationState,
        filter_active: bool,
        total: int,
    ) -> PaginationState:
        """Update the page after the search query or a column filter changed.

        When filtering starts, the current page is remembered and the first
        page is shown; while filtering continues the first page is shown
        after every change. When all filters are cleared, the remembered
        page is restored, or the last page if the remembered one no longer
        exists.

        Args:
            state: The pagination state.
            filter_active: Whether any filter is active after the change.
            total: The number of rows after the change (the unfiltered
                count when the filters were cleared).
        """
        if filter_active:
            if not state.was_filtered:
                logger.debug(
                    "Filtering started on page %d", state.current_page
                )
                return evolve(
                    state,
                    previous_page_before_filter=state.current_page,
                    was_filtered=True,
                    current_page=1,
                    total_items=total,
                )
            return evolve(state, current_page=1, total_items=total)

        if state.was_filtered:
            pages = max(1, ceil(total / state.page_size))
            page = min(state.previous_page_before_filter, pages)
            logger.debug("Filtering ended; back to page %d", page)
            return evolve(
                state,
                was_filtered=False,
                current_page=page,
                total_items=total,
            )

        return self.set_total(state, total)

    def go_to_page(self, state: PaginationState, page: int) -> PaginationState:
        """Navigate to a page; out-of-range requests are clamped."""
        page = min(max(1, int(page)), state.last_page)
        if page == state.current_page:
            return state
        return evolve(state, current_page=page)

    def next_page(self, state: PaginationState) -> PaginationState:
        return self.go_to_page(state, state.current_page + 1)

    def previous_page(self, state: PaginationState) -> PaginationState:
        return self.go_to_page(state, state.current_page - 1)

    def set_page_size(
        self, state: PaginationState, page_size: int
    ) -> PaginationState:
        """Change the page size and go back to the first page.

        Raises:
            ValueError: The page size is not a positive integer.
        """
        if not isinstance(page_size, int) or page_size <= 0:
            raise ValueError(f"Invalid page size: {page_size}")
        return evolve(state, page_size=page_size, current_page=1)

import logging
from typing import IO, Any, Callable, Iterable, List, Optional, Union

from attrs import define, field

from tabview.column import Column
from tabview.constants import ID_COLUMN_KEY, Row, RowKey
from tabview.export import export_rows_csv, export_rows_xlsx
from tabview.filter import FilterEngine, FilterState
from tabview.pagination import PaginationController, PaginationState
from tabview.registry import ColumnRegistry
from tabview.selection import SelectionTracker
from tabview.settings import TableConfig
from tabview.sort import SortEngine, SortState, next_sort_state
from tabview.visibility import VisibilityStore

logger = logging.getLogger(__name__)


def _to_registry(
    value: Union[ColumnRegistry, Iterable[Column]],
) -> ColumnRegistry:
    if isinstance(value, ColumnRegistry):
        return value
    return ColumnRegistry(value)


@define(frozen=True)
class TableView:
    """What a table shows at one moment.

    Attributes:
        page_rows: The rows of the current page (all the rows when
            pagination is disabled).
        rows: All the rows that satisfy the filters, in display order.
        pagination: The pagination state the page was computed with.
        columns: The visible columns, in order.
        show_id_column: Whether the row number column is shown.
        id_column_title: The header of the row number column.
        filter_state: The filters in effect.
        sort_state: The sort order in effect; None for the natural order.
        selected_count: The number of selected rows in the whole table.
        all_selected: Whether every row of the page is selected.
        indeterminate: Whether some, but not all, rows of the page are
            selected.
    """

    page_rows: List[Row]
    rows: List[Row]
    pagination: PaginationState
    columns: List[Column]
    show_id_column: bool
    id_column_title: str
    filter_state: FilterState
    sort_state: Optional[SortState]
    selected_count: int = 0
    all_selected: bool = False
    indeterminate: bool = False

    @property
    def row_numbers(self) -> List[int]:
        """The 1-based positions of the page rows in `rows`."""
        first = self.pagination.start_index + 1 if self.page_rows else 1
        return list(range(first, first + len(self.page_rows)))

    def cells(self) -> List[List[Any]]:
        """The rendered cells of the page, one list per row."""
        return [
            [c.render_cell(row, index) for c in self.columns]
            for index, row in enumerate(self.page_rows)
        ]


@define(eq=False)
class Table:
    """A table over an in-memory list of rows.

    The table combines the engines: the rows are filtered, then sorted,
    then cut into pages. Selection and column visibility are kept on the
    side. Features disabled in the configuration turn the matching
    operations into no-ops.

    Attributes:
        columns: The columns of the table.
        rows: The unfiltered rows, in their natural order.
        config: The options of the table.
        key_fn: Computes the identity of a row for the selection. Defaults
            to the identity of the object.
        visibility: Where the column visibility preferences live.
        filter_engine: Applies the filters.
        sort_engine: Applies the sort order.
        paginator: Keeps the page consistent with the rows.
        filter_state: The current filters.
        sort_state: The current sort order.
        pagination: The current pagination state.
        selection: The selected rows.
    """

    columns: ColumnRegistry = field(converter=_to_registry)
    rows: List[Row] = field(factory=list, converter=list)
    config: TableConfig = field(factory=TableConfig)
    key_fn: Optional[Callable[[Row], RowKey]] = field(default=None)
    visibility: VisibilityStore = field(factory=VisibilityStore)
    filter_engine: FilterEngine = field(factory=FilterEngine)
    sort_engine: SortEngine = field(factory=SortEngine)
    paginator: PaginationController = field(factory=PaginationController)

    filter_state: FilterState = field(factory=FilterState, init=False)
    sort_state: Optional[SortState] = field(default=None, init=False)
    pagination: PaginationState = field(init=False)
    selection: SelectionTracker = field(init=False)

    def __attrs_post_init__(self):
        self.pagination = PaginationState(
            page_size=self.config.page_size, total_items=len(self.rows)
        )
        self.selection = SelectionTracker(key_fn=self.key_fn or id)
        self.visibility.get(
            self.table_id, self.columns, self.config.show_id_column
        )

    @property
    def table_id(self) -> str:
        return self.config.table_id

    def filtered_rows(self) -> List[Row]:
        """The rows that satisfy the filters, in display order."""
        result = self.filter_engine.apply(
            self.rows, self.columns, self.filter_state
        )
        return self.sort_engine.apply(result, self.columns, self.sort_state)

    def set_rows(self, rows: Iterable[Row]) -> None:
        """Replace the rows, for example after a fetch.

        If the current page no longer exists the first page is shown. The
        selection is left alone; see `prune_selection`.
        """
        self.rows = list(rows)
        self.pagination = self.paginator.set_total(
            self.pagination, len(self.filtered_rows())
        )

    def set_search(self, query: Optional[str]) -> None:
        if not self.config.searchable:
            logger.debug("Search is disabled for %s", self.table_id)
            return
        self._change_filter(self.filter_state.with_search(query))

    def set_column_filter(self, key: str, value: Optional[str]) -> None:
        """Set the filter of a column; a blank value removes it.

        Columns that are not filterable are left unfiltered.
        """
        column = self.columns.get(key, raise_e=False)
        if column is not None and not column.filterable:
            logger.warning(
                "Column %s of %s cannot be filtered", key, self.table_id
            )
            return
        self._change_filter(self.filter_state.with_column_filter(key, value))

    def clear_filters(self) -> None:
        self._change_filter(self.filter_state.cleared())

    def _change_filter(self, new_state: FilterState) -> None:
        if new_state == self.filter_state:
            return
        self.filter_state = new_state
        self.pagination = self.paginator.on_filter_change(
            self.pagination,
            new_state.is_active,
            len(self.filtered_rows()),
        )

    def toggle_sort(self, key: str) -> Optional[SortState]:
        """React to the user activating the header of a column.

        Returns:
            The sort state after the activation.
        """
        if not self.config.sortable:
            logger.debug("Sorting is disabled for %s", self.table_id)
            return self.sort_state
        column = self.columns.get(key, raise_e=False)
        if column is None or not column.sortable:
            logger.warning(
                "Column %s of %s cannot be sorted", key, self.table_id
            )
            return self.sort_state
        self.sort_state = next_sort_state(self.sort_state, key)
        return self.sort_state

    def go_to_page(self, page: int) -> int:
        """Show a page; out of range pages are clamped.

        Returns:
            The page that is now shown.
        """
        if self.config.pagination:
            self.pagination = self.paginator.go_to_page(self.pagination, page)
        return self.pagination.current_page

    def next_page(self) -> int:
        if self.config.pagination:
            self.pagination = self.paginator.next_page(self.pagination)
        return self.pagination.current_page

    def previous_page(self) -> int:
        if self.config.pagination:
            self.pagination = self.paginator.previous_page(self.pagination)
        return self.pagination.current_page

    def set_page_size(self, page_size: int) -> None:
        """Change the number of rows in a page and show the first page.

        Raises:
            ValueError: The page size is not a positive integer.
        """
        if not self.config.pagination:
            return
        if page_size not in self.config.page_size_options:
            logger.debug(
                "Page size %s is not one of %s",
                page_size,
                self.config.page_size_options,
            )
        self.pagination = self.paginator.set_page_size(
            self.pagination, page_size
        )

    def view(self) -> TableView:
        """Compute what the table shows."""
        rows = self.filtered_rows()
        if self.config.pagination:
            page_rows, self.pagination = self.paginator.paginate(
                rows, self.pagination
            )
            pagination = self.pagination
        else:
            page_rows = list(rows)
            pagination = PaginationState(
                page_size=max(1, len(rows)), total_items=len(rows)
            )

        if self.config.selectable:
            selected_count = self.selection.count
            all_selected = self.selection.is_all_selected(page_rows)
            indeterminate = self.selection.is_indeterminate(page_rows)
        else:
            selected_count = 0
            all_selected = False
            indeterminate = False

        return TableView(
            page_rows=page_rows,
            rows=rows,
            pagination=pagination,
            columns=self.visible_columns(),
            show_id_column=self.id_column_visible,
            id_column_title=self.config.id_column_title,
            filter_state=self.filter_state,
            sort_state=self.sort_state,
            selected_count=selected_count,
            all_selected=all_selected,
            indeterminate=indeterminate,
        )

    def visible_columns(self) -> List[Column]:
        return self.visibility.visible_columns(self.table_id, self.columns)

    @property
    def id_column_visible(self) -> bool:
        return self.config.show_id_column and self.visibility.is_visible(
            self.table_id, ID_COLUMN_KEY
        )

    def toggle_column(self, key: str) -> bool:
        """Show or hide a column.

        Returns:
            The new visibility of the column.
        """
        if key != ID_COLUMN_KEY and key not in self.columns:
            raise KeyError(key)
        return self.visibility.toggle(self.table_id, key)

    def reset_columns(self) -> None:
        """Show the default columns again."""
        self.visibility.reset(
            self.table_id, self.columns, self.config.show_id_column
        )

    def toggle_selection(self, row: Row) -> bool:
        """Select or deselect a row.

        Returns:
            True if the row is selected after the call.
        """
        if not self.config.selectable:
            return False
        return self.selection.toggle_row(row)

    def select_all_visible(self) -> None:
        """Select or deselect all the rows of the current page."""
        if not self.config.selectable:
            return
        self.selection.select_all_visible(self.view().page_rows)

    def clear_selection(self) -> None:
        self.selection.clear()

    def selected_rows(self) -> List[Row]:
        """The selected rows in their natural order."""
        if not self.config.selectable:
            return []
        return self.selection.selected_rows(self.rows)

    def prune_selection(self) -> int:
        """Deselect the rows that are no longer part of the table.

        Returns:
            The number of rows that were deselected.
        """
        return self.selection.retain(self.rows)

    def export_csv(self, stream: IO[str]) -> int:
        """Export the filtered and sorted rows with the visible columns."""
        return export_rows_csv(
            self.filtered_rows(), self.visible_columns(), stream
        )

    def export_xlsx(self, path: str) -> int:
        """Export the filtered and sorted rows with the visible columns."""
        return export_rows_xlsx(
            self.filtered_rows(),
            self.visible_columns(),
            path,
            sheet_title=self.table_id,
        )

"""Incremental ("load more") consumption of a paged data source.

Instead of showing one page at a time, the loader appends the pages it
fetches to a growing list. Changing the filter or the sort order discards
everything and starts again from the first page.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union

from attrs import define, field

from tabview.constants import DEFAULT_PAGE_SIZE, Row
from tabview.errors import FetchError
from tabview.filter import FilterState
from tabview.requests import PageRequest, PageRequestManager
from tabview.sort import SortState

logger = logging.getLogger(__name__)


class _KeepSort:
    """Type of `KEEP_SORT`."""

    def __repr__(self):
        return "KEEP_SORT"


# Default of the `sort_state` arguments: keep the current sort order.
KEEP_SORT = _KeepSort()


@define(frozen=True)
class PageResult:
    """The rows of one page, as returned by a data source.

    Attributes:
        rows: The rows of the page, at most a full page.
        total: The number of rows that satisfy the filters, when known.
    """

    rows: List[Row] = field(factory=list, converter=list)
    total: Optional[int] = field(default=None)


PageFetcher = Callable[[PageRequest], Awaitable[PageResult]]
LoaderCallback = Callable[["IncrementalLoader"], None]


@define(eq=False)
class IncrementalLoader:
    """Accumulates successive pages into one list.

    Only one load runs at a time: `load_more` is ignored while a load is in
    progress or when there is nothing more to load, and asking again for a
    page that is already being fetched waits for the pending fetch instead
    of issuing a new one. Responses that arrive after the filter or sort
    changed are discarded.

    Attributes:
        fetch_page: The data source; receives a request and returns the
            rows of that page.
        page_size: The number of rows in a full page.
        display_limit: If set, `visible_items` shows at most this many rows
            until `show_all` is called.
        key_fn: If set, rows whose key is already loaded are not appended
            a second time.
        filter_state: The current filters.
        sort_state: The current sort order.
        loaded_items: The rows loaded so far, in order.
        next_page_to_fetch: The page `load_more` asks for.
        has_more: Whether the data source may have more rows.
        is_loading: Whether the first page is being loaded.
        is_loading_more: Whether a subsequent page is being loaded.
        total: The number of matching rows reported by the data source.
        error: The message of the last failed fetch, None after a success.
        show_all_items: Whether the display limit was lifted.
        requests: The bookkeeping of the requests in progress.
        on_changed: Callbacks invoked after each change of the loaded rows
            or of the loading flags.
    """

    fetch_page: PageFetcher
    page_size: int = field(default=DEFAULT_PAGE_SIZE)
    display_limit: Optional[int] = field(default=None)
    key_fn: Optional[Callable[[Row], Any]] = field(default=None)
    filter_state: FilterState = field(factory=FilterState)
    sort_state: Optional[SortState] = field(default=None)

    loaded_items: List[Row] = field(factory=list, init=False)
    next_page_to_fetch: int = field(default=1, init=False)
    has_more: bool = field(default=True, init=False)
    is_loading: bool = field(default=False, init=False)
    is_loading_more: bool = field(default=False, init=False)
    total: Optional[int] = field(default=None, init=False)
    error: Optional[str] = field(default=None, init=False)
    show_all_items: bool = field(default=False, init=False)
    requests: PageRequestManager = field(
        factory=PageRequestManager, init=False, repr=False
    )
    on_changed: List[LoaderCallback] = field(factory=list, repr=False)
    _failed_page: Optional[int] = field(default=None, init=False, repr=False)

    def __attrs_post_init__(self):
        if self.page_size <= 0:
            raise ValueError(f"Invalid page size: {self.page_size}")

    @property
    def loaded_count(self) -> int:
        return len(self.loaded_items)

    @property
    def is_busy(self) -> bool:
        return self.is_loading or self.is_loading_more

    @property
    def visible_items(self) -> List[Row]:
        """The loaded rows, cut to the display limit unless lifted."""
        if self.display_limit is None or self.show_all_items:
            return list(self.loaded_items)
        return self.loaded_items[: self.display_limit]

    @property
    def can_show_more(self) -> bool:
        """True if the display limit hides some of the loaded rows."""
        return (
            self.display_limit is not None
            and not self.show_all_items
            and len(self.loaded_items) > self.display_limit
        )

    def show_all(self) -> None:
        """Lift the display limit."""
        self.show_all_items = True
        self._notify()

    def reset(
        self,
        filter_state: Optional[FilterState] = None,
        sort_state: Union[Optional[SortState], _KeepSort] = KEEP_SORT,
    ) -> None:
        """Discard the loaded rows and make pending responses stale.

        Args:
            filter_state: New filters; None keeps the current ones.
            sort_state: New sort order; None removes the sort, omitting
                the argument keeps the current one.
        """
        if filter_state is not None:
            self.filter_state = filter_state
        if not isinstance(sort_state, _KeepSort):
            self.sort_state = sort_state
        generation = self.requests.new_generation()
        logger.debug("Loader reset; generation %d", generation)
        self.loaded_items = []
        self.next_page_to_fetch = 1
        self.has_more = True
        self.is_loading = False
        self.is_loading_more = False
        self.total = None
        self.error = None
        self.show_all_items = False
        self._failed_page = None
        self._notify()

    async def load_initial(
        self,
        filter_state: Optional[FilterState] = None,
        sort_state: Union[Optional[SortState], _KeepSort] = KEEP_SORT,
    ) -> bool:
        """Load the first page, discarding whatever was loaded.

        If the first page is already being fetched with the same filters
        and sort order, the call waits for that fetch instead of issuing
        another one.

        Args:
            filter_state: New filters; None keeps the current ones.
            sort_state: New sort order; None removes the sort, omitting
                the argument keeps the current one.

        Returns:
            True if the page was loaded and applied.
        """
        new_filter = (
            self.filter_state if filter_state is None else filter_state
        )
        new_sort = (
            self.sort_state
            if isinstance(sort_state, _KeepSort)
            else sort_state
        )
        candidate = self.requests.new_request(
            1, self.page_size, new_filter, new_sort
        )
        pending = self.requests.find_pending(candidate)
        if pending is not None and pending.future is not None:
            logger.debug(
                "First page already requested (%d); waiting for it",
                pending.uniq_id,
            )
            return await pending.future

        self.reset(new_filter, new_sort)
        self.is_loading = True
        self._notify()
        return await self._load(1)

    async def refresh(self) -> bool:
        """Reload from the first page with the current filters and sort."""
        return await self.load_initial()

    async def load_more(self) -> bool:
        """Append the next page.

        Does nothing while another load is in progress or when there is
        nothing more to load.

        Returns:
            True if a page was loaded and appended.
        """
        if self.is_busy:
            logger.debug("Load in progress; load more ignored")
            return False
        if not self.has_more:
            logger.debug("Nothing more to load")
            return False
        self.is_loading_more = True
        self._notify()
        return await self._load(self.next_page_to_fetch)

    async def retry(self) -> bool:
        """Repeat the load that failed last.

        Returns:
            False if there is no failure to retry or the retry failed.
        """
        if self._failed_page is None:
            return False
        if self._failed_page == 1:
            return await self.load_initial()
        return await self.load_more()

    async def _load(self, page: int) -> bool:
        req = self.requests.new_request(
            page, self.page_size, self.filter_state, self.sort_state
        )
        pending = self.requests.find_pending(req)
        if pending is not None and pending.future is not None:
            logger.debug("Joining pending request %d", pending.uniq_id)
            return await pending.future

        self.requests.add_request(req)
        req.future = asyncio.ensure_future(self._execute(req))
        return await req.future

    async def _execute(self, req: PageRequest) -> bool:
        req.pushed = True
        logger.debug(
            "Request %d issued for page %d (generation %d)",
            req.uniq_id,
            req.page,
            req.generation,
        )
        try:
            result = await self.fetch_page(req)
        except Exception as e:
            self.requests.complete(req)
            if self.requests.is_stale(req):
                logger.debug("Stale request %d failed: %s", req.uniq_id, e)
                return False
            message = e.message if isinstance(e, FetchError) else str(e)
            logger.error(
                "Failed to load page %d: %s",
                req.page,
                message,
                exc_info=True,
            )
            self.error = message or "Failed to load rows"
            self._failed_page = req.page
            self._end_loading()
            return False

        self.requests.complete(req)
        if self.requests.is_stale(req):
            logger.debug("Discarding stale response %d", req.uniq_id)
            return False

        self._accept(req, result)
        self._end_loading()
        return True

    def _accept(self, req: PageRequest, result: PageResult) -> None:
        rows = list(result.rows)
        if req.page == 1:
            self.loaded_items = []

        if self.key_fn is None:
            self.loaded_items = self.loaded_items + rows
        else:
            known = {self.key_fn(r) for r in self.loaded_items}
            added = []
            for row in rows:
                key = self.key_fn(row)
                if key in known:
                    logger.debug("Row %r already loaded; skipped", key)
                    continue
                known.add(key)
                added.append(row)
            self.loaded_items = self.loaded_items + added

        self.total = result.total
        self.next_page_to_fetch = req.page + 1
        self.has_more = not (
            len(rows) < req.page_size
            or (
                result.total is not None
                and len(self.loaded_items) >= result.total
            )
        )
        self.error = None
        self._failed_page = None
        logger.debug(
            "Page %d loaded: %d rows, %d in total, more: %s",
            req.page,
            len(rows),
            len(self.loaded_items),
            self.has_more,
        )

    def _end_loading(self) -> None:
        self.is_loading = False
        self.is_loading_more = False
        self._notify()

    def _notify(self) -> None:
        for callback in self.on_changed:
            callback(self)

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Union

from attrs import define, field

from tabview.constants import Row
from tabview.errors import FetchError
from tabview.filter import FilterEngine, FilterState
from tabview.loader import PageResult
from tabview.registry import ColumnRegistry
from tabview.requests import PageRequest
from tabview.sort import SortEngine, SortState

logger = logging.getLogger(__name__)

RowsFetcher = Callable[
    [Dict[str, Any]], Union[Sequence[Row], Awaitable[Sequence[Row]]]
]


def filter_hints(
    filter_state: Optional[FilterState], sort_state: Optional[SortState]
) -> Dict[str, Any]:
    """Build the hints handed to a data source.

    The data source may use them to narrow what it returns but the engine
    filters and sorts the result itself anyway.
    """
    hints: Dict[str, Any] = {}
    if filter_state is not None:
        if filter_state.has_search:
            hints["search"] = filter_state.search_query.strip()
        hints.update(filter_state.active_filters())
    if sort_state is not None:
        hints["sort_by"] = sort_state.key
        hints["sort_direction"] = sort_state.direction
    return hints


async def fetch_all(fetch_rows: RowsFetcher, hints: Dict[str, Any]) -> list:
    """Call a data source that may be synchronous or asynchronous.

    Raises:
        FetchError: The data source failed. Errors that are not already a
            `FetchError` are wrapped.
    """
    try:
        rows = fetch_rows(hints)
        if inspect.isawaitable(rows):
            rows = await rows
    except FetchError:
        raise
    except Exception as e:
        raise FetchError(str(e) or "Failed to load rows", cause=e) from e
    if rows is None:
        raise FetchError("The data source returned no rows")
    return list(rows)


@define
class ClientSideSource:
    """Turns a "fetch everything" data source into a page fetcher.

    Each request fetches all the rows, filters and sorts them in memory and
    returns the requested slice together with the number of matching rows.

    Attributes:
        fetch_rows: The data source. Receives the filter hints and returns
            the rows (or an awaitable of them).
        columns: The columns of the table.
        filter_engine: Applies the filters.
        sort_engine: Applies the sort order.
    """

    fetch_rows: RowsFetcher
    columns: ColumnRegistry
    filter_engine: FilterEngine = field(factory=FilterEngine)
    sort_engine: SortEngine = field(factory=SortEngine)

    async def __call__(self, request: PageRequest) -> PageResult:
        hints = filter_hints(request.filter_state, request.sort_state)
        rows = await fetch_all(self.fetch_rows, hints)
        rows = self.filter_engine.apply(
            rows, self.columns, request.filter_state
        )
        rows = self.sort_engine.apply(rows, self.columns, request.sort_state)
        logger.debug(
            "Page %d of %d matching rows requested", request.page, len(rows)
        )
        return PageResult(
            rows=rows[request.start : request.start + request.page_size],
            total=len(rows),
        )

import asyncio
from typing import Dict, List, Optional

from attrs import define, field

from tabview.filter import FilterState
from tabview.sort import SortState


@define
class PageRequest:
    """A request for one page of rows from the data source.

    Attributes:
        page: The 1-based page to load.
        page_size: The number of rows in a full page.
        filter_state: The filters the rows should satisfy.
        sort_state: The order of the rows.
        uniq_id: A unique identifier for the request, assigned when the
            request is added to a manager.
        generation: The generation of the manager when the request was
            added. Responses for older generations are stale.
        pushed: Whether the request was handed to the data source.
        future: The task that executes the request; callers that ask for
            the same page while it is pending wait on it.
    """

    page: int
    page_size: int
    filter_state: Optional[FilterState] = field(default=None)
    sort_state: Optional[SortState] = field(default=None)
    uniq_id: int = field(default=-1, init=False)
    generation: int = field(default=-1, init=False)
    pushed: bool = field(default=False, init=False)
    future: Optional["asyncio.Future"] = field(
        default=None, init=False, eq=False, repr=False
    )

    def __hash__(self) -> int:
        return hash((self.page, self.page_size, self.uniq_id))

    @property
    def start(self) -> int:
        """0-based index of the first row of the page."""
        return (self.page - 1) * self.page_size

    def same_params(self, other: "PageRequest") -> bool:
        """Tell if the two requests ask for the same rows."""
        return (
            self.page == other.page
            and self.page_size == other.page_size
            and self.filter_state == other.filter_state
            and self.sort_state == other.sort_state
        )


class PageRequestManager:
    """Keeps track of the page requests in progress.

    Attributes:
        uniq_gen: A unique identifier generator for requests.
        generation: Incremented each time the loaded rows are discarded
            (filter or sort change, refresh). Monotonically increasing.
        requests: The requests in progress, keyed by their unique id.
    """

    uniq_gen: int
    generation: int
    requests: Dict[int, PageRequest]

    def __init__(self) -> None:
        self.uniq_gen = 0
        self.generation = 0
        self.requests = {}

    def new_request(
        self,
        page: int,
        page_size: int,
        filter_state: Optional[FilterState] = None,
        sort_state: Optional[SortState] = None,
    ) -> PageRequest:
        """Create a new request; it is not tracked until added."""
        return PageRequest(
            page=page,
            page_size=page_size,
            filter_state=filter_state,
            sort_state=sort_state,
        )

    def add_request(self, req: PageRequest) -> None:
        """Track a request, giving it a unique id and the current generation.

        Args:
            req: The request to add.
        """
        uniq_id = self.uniq_gen
        self.uniq_gen += 1
        req.uniq_id = uniq_id
        req.generation = self.generation
        self.requests[uniq_id] = req

    def find_pending(self, req: PageRequest) -> Optional[PageRequest]:
        """Locate a request of the current generation that asks for the
        same rows as `req`.

        Args:
            req: The request that is about to be issued.

        Returns:
            The pending request or None.
        """
        for other in self.requests.values():
            if other.generation == self.generation and other.same_params(req):
                return other
        return None

    def complete(self, req: PageRequest) -> None:
        """Stop tracking a request (it finished, successfully or not)."""
        self.requests.pop(req.uniq_id, None)

    def new_generation(self) -> int:
        """Make all the requests issued so far stale.

        Returns:
            The new generation.
        """
        self.generation += 1
        return self.generation

    def is_stale(self, req: PageRequest) -> bool:
        """Tell if the response for this request must be discarded."""
        return req.generation != self.generation

    @property
    def pending(self) -> List[PageRequest]:
        """Requests of the current generation still in progress."""
        return [
            r for r in self.requests.values() if r.generation == self.generation
        ]

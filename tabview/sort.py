import logging
from typing import Any, Iterable, List, Optional, Tuple

from attrs import define, field

from tabview.column import Column, stringify
from tabview.compare import to_bool
from tabview.constants import (
    SORT_ASC,
    SORT_DESC,
    ColumnKind,
    Row,
    SortDirection,
)
from tabview.registry import ColumnRegistry
from tabview.utils import to_timestamp

logger = logging.getLogger(__name__)


@define(frozen=True)
class SortState:
    """The active sort of a table.

    Attributes:
        key: The key of the column to sort by.
        direction: Either "asc" or "desc".
    """

    key: str
    direction: SortDirection = field(default=SORT_ASC)

    def __attrs_post_init__(self):
        if self.direction not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"Unknown sort direction: {self.direction}")

    @property
    def ascending(self) -> bool:
        return self.direction == SORT_ASC


def next_sort_state(
    current: Optional[SortState], key: str
) -> Optional[SortState]:
    """Compute the sort state after the user activates a column.

    Repeated activation of the same column cycles through ascending,
    descending and unsorted. Activating another column starts it at
    ascending and drops the previous one.

    Args:
        current: The sort state before the activation.
        key: The key of the activated column.

    Returns:
        The new sort state; None means the natural order.
    """
    if current is None or current.key != key:
        return SortState(key=key, direction=SORT_ASC)
    if current.direction == SORT_ASC:
        return SortState(key=key, direction=SORT_DESC)
    return None


def _default_key(column: Column, value: Any) -> Tuple[int, Any]:
    """Relational key that tolerates columns with mixed value types.

    Numbers come before strings, which come before everything else.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    if isinstance(value, str):
        if column.kind == ColumnKind.NUMBER:
            try:
                return (0, float(value))
            except ValueError:
                pass
        return (1, value)
    if isinstance(value, bool):
        return (0, int(value))
    return (2, stringify(value))


def sort_key(column: Column, value: Any) -> Optional[Any]:
    """Compute the ascending sort key of a value.

    Returns:
        The key, or None for values that are sorted to the end regardless
        of the direction (missing values, unparseable dates).
    """
    if value is None:
        return None
    if column.kind == ColumnKind.DATE:
        try:
            return to_timestamp(value)
        except (TypeError, ValueError, OverflowError):
            logger.debug("Unparseable date %r in %s", value, column.key)
            return None
    if column.kind == ColumnKind.BOOLEAN:
        flag = to_bool(value)
        if flag is None:
            return None
        # Ascending puts true first.
        return 0 if flag else 1
    return _default_key(column, value)


@define
class SortEngine:
    """Applies a sort state to a collection of rows.

    The sort is stable: rows with equal keys keep their relative order in
    both directions. Rows are never modified.
    """

    def apply(
        self,
        rows: Iterable[Row],
        columns: ColumnRegistry,
        state: Optional[SortState],
    ) -> List[Row]:
        """Sort the rows.

        Args:
            rows: The rows to sort.
            columns: The columns of the table.
            state: The sort state; None keeps the input order.

        Returns:
            A new list with the rows in the requested order.
        """
        result = list(rows)
        if state is None:
            return result

        column = columns.get(state.key, raise_e=False)
        if column is None:
            logger.warning("Sorting column %s not found", state.key)
            return result
        if not column.sortable:
            logger.warning("Sorting column %s not sortable", state.key)
            return result

        keyed = []
        missing = []
        for row in result:
            key = sort_key(column, column.value(row))
            if key is None:
                missing.append(row)
            else:
                keyed.append((key, row))

        try:
            ordered = sorted(
                keyed, key=lambda item: item[0], reverse=not state.ascending
            )
        except TypeError:
            logger.warning(
                "Values of %s are not comparable; sorting by text",
                column.key,
                exc_info=True,
            )
            ordered = sorted(
                keyed,
                key=lambda item: stringify(item[0]),
                reverse=not state.ascending,
            )
        return [row for _, row in ordered] + missing

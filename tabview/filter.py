"""Filter support.

A filter state holds the free-text search query and a map of per-column
filter values:

```python
    FilterState(
        search_query="smith",
        column_filters={"is_active": "active", "created_at": "2024-03-01"},
    )
```

The search query is OR-ed across the searchable columns, the column
filters are AND-ed together and the two parts are AND-ed with each other.
A blank value (empty or whitespace only) means "no filter".
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from attrs import define, evolve, field
from pyrsistent import pmap
from pyrsistent.typing import PMap
from unidecode import unidecode

from tabview.column import Column, stringify
from tabview.compare import KindOpRegistry, kind_op_registry
from tabview.constants import ColumnKind, Row
from tabview.registry import ColumnRegistry

logger = logging.getLogger(__name__)


def _to_pmap(value: Optional[Mapping[str, str]]) -> PMap[str, str]:
    return pmap(value or {})


@define(frozen=True)
class FilterState:
    """The user-driven filtering of a table.

    Attributes:
        search_query: The free-text search query.
        column_filters: Filter values keyed by column key.
    """

    search_query: str = field(default="")
    column_filters: PMap[str, str] = field(factory=pmap, converter=_to_pmap)

    @property
    def has_search(self) -> bool:
        return bool(self.search_query.strip())

    @property
    def is_active(self) -> bool:
        """True if the search query or any column filter is non-blank."""
        return self.has_search or bool(self.active_filters())

    def active_filters(self) -> Dict[str, str]:
        """The column filters that have a non-blank value."""
        return {
            k: v
            for k, v in self.column_filters.items()
            if v is not None and str(v).strip()
        }

    def with_search(self, query: Optional[str]) -> "FilterState":
        return evolve(self, search_query=query or "")

    def with_column_filter(
        self, key: str, value: Optional[str]
    ) -> "FilterState":
        """Set the filter of a column; a blank value removes it."""
        if value is None or not str(value).strip():
            return evolve(
                self, column_filters=self.column_filters.discard(key)
            )
        return evolve(
            self, column_filters=self.column_filters.set(key, str(value))
        )

    def cleared(self) -> "FilterState":
        return FilterState()


def validate_filter_state(
    state: FilterState, columns: ColumnRegistry
) -> List[List[str]]:
    """Validate the column filters against the columns of a table.

    Error codes:
    - unknown_column: the filter names a key that is not in the registry.
      Such filters still apply, with text semantics, on the raw row field.
    - not_filterable: the column exists but does not allow filtering.

    Args:
        state: The filter state to validate.
        columns: The columns of the table.

    Returns:
        A list of error information. First item is the error code, the
        second is the column key.
    """
    errors = []
    for key in state.active_filters():
        column = columns.get(key, raise_e=False)
        if column is None:
            errors.append(["unknown_column", key])
        elif not column.filterable:
            errors.append(["not_filterable", key])
    return errors


@define
class FilterEngine:
    """Applies a filter state to an in-memory collection of rows.

    Rows are never modified; the result is a new list that keeps the
    relative order of the input.

    Attributes:
        registry: The per-kind operators used for column filters.
        transliterate: Let an ASCII query also match the ASCII
            transliteration of the searched text. Other queries are only
            matched as written.
    """

    registry: KindOpRegistry = field(default=kind_op_registry)
    transliterate: bool = field(default=True)

    def apply(
        self,
        rows: Iterable[Row],
        columns: ColumnRegistry,
        state: Optional[FilterState],
    ) -> List[Row]:
        """Filter the rows.

        Args:
            rows: The rows to filter.
            columns: The columns of the table.
            state: The filter state. None or an empty state returns all rows.

        Returns:
            The rows that satisfy the search query and all column filters.
        """
        result = list(rows)
        if state is None or not state.is_active:
            return result

        if state.has_search:
            query = state.search_query.strip()
            result = [
                r for r in result if self.matches_search(r, columns, query)
            ]

        for key, value in state.active_filters().items():
            column = self._filter_column(columns, key)
            if column is None:
                continue
            op = self.registry.get(column.kind) or self.registry[
                ColumnKind.TEXT
            ]
            term = str(value).strip()
            result = [r for r in result if op.matches(column, r, term)]

        return result

    def matches_search(
        self, row: Row, columns: ColumnRegistry, query: str
    ) -> bool:
        """Tell if any searchable column of the row contains the query."""
        needle = query.strip().lower()
        if not needle:
            return True
        translit = self.transliterate and needle.isascii()
        for column in columns.search_columns:
            text = stringify(column.value(row)).lower()
            if not text:
                continue
            if needle in text:
                return True
            if translit and needle in unidecode(text).lower():
                return True
        return False

    def _filter_column(
        self, columns: ColumnRegistry, key: str
    ) -> Optional[Column]:
        column = columns.get(key, raise_e=False)
        if column is None:
            logger.warning(
                "Filter for unknown column %s applied as text on the row", key
            )
            return Column(key=key, kind=ColumnKind.TEXT)
        if not column.filterable:
            logger.warning("Column %s is not filterable; filter ignored", key)
            return None
        return column

from collections import OrderedDict as OrDi
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    OrderedDict,
    Union,
)

from tabview.column import Column, ColumnInfo
from tabview.errors import DuplicateColumnError


class ColumnRegistry:
    """Keeps the ordered list of columns of a table.

    The registry is pure data: it knows which columns exist and which of
    them take part in searching, filtering and sorting.

    Attributes:
        _columns: All the columns as an ordered dictionary keyed by the
            column key.
        _s_s_columns: The columns that take part in the free-text search.
        _f_columns: The columns that can be used for filtering.
        _s_columns: The columns that can be used for sorting.
    """

    _columns: OrderedDict[str, Column]
    _s_s_columns: List[Column]
    _f_columns: List[Column]
    _s_columns: List[Column]

    def __init__(self, columns: Optional[Iterable[Column]] = None):
        self.columns = list(columns or [])

    @classmethod
    def from_info(
        cls, infos: Iterable[Union[ColumnInfo, Dict[str, Any]]]
    ) -> "ColumnRegistry":
        """Build a registry out of declarative column descriptions."""
        result = []
        for info in infos:
            if not isinstance(info, ColumnInfo):
                info = ColumnInfo(**info)
            result.append(info.to_column())
        return cls(result)

    @property
    def columns(self) -> List[Column]:
        return list(self._columns.values())

    @columns.setter
    def columns(self, value: List[Column]):
        """Saves the list of columns and creates sub-lists for quick access.

        Args:
            value: The list of columns.

        Raises:
            DuplicateColumnError: Two columns share the same key.
        """
        columns: OrderedDict[str, Column] = OrDi()
        for c in value:
            if c.key in columns:
                raise DuplicateColumnError(c.key)
            columns[c.key] = c

        self._columns = columns
        self._s_s_columns = [c for c in columns.values() if c.qsearch]
        self._f_columns = [c for c in columns.values() if c.filterable]
        self._s_columns = [c for c in columns.values() if c.sortable]

    def add(self, column: Column) -> None:
        """Append a column at the end of the registry."""
        self.columns = self.columns + [column]

    def get(self, key: str, raise_e: Optional[bool] = True) -> Optional[Column]:
        """Return a column by key.

        Args:
            key: The key of the column.
            raise_e: If True, raise an error if the column is not found.

        Returns:
            The column or None if not found.
        """
        if raise_e:
            return self._columns[key]
        return self._columns.get(key)

    @property
    def keys(self) -> List[str]:
        return list(self._columns.keys())

    @property
    def search_columns(self) -> List[Column]:
        """Return the columns that are searched by the free-text query."""
        return self._s_s_columns

    @property
    def filter_columns(self) -> List[Column]:
        """Return the columns that can be filtered."""
        return self._f_columns

    @property
    def sortable_columns(self) -> List[Column]:
        """Return the columns that can be sorted."""
        return self._s_columns

    def __contains__(self, key: object) -> bool:
        return key in self._columns

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)

    def __getitem__(self, key: Union[int, str]) -> Column:
        if isinstance(key, int):
            return self.columns[key]
        return self._columns[key]

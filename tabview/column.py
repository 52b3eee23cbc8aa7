from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, List, Optional

from attrs import define, field
from pydantic import BaseModel

from tabview.constants import (
    BOOL_KEY_PREFIXES,
    DATE_KEY_SUFFIXES,
    ColumnKind,
    Row,
)
from tabview.utils import locale_day, text_name

CellRenderer = Callable[[Any, Row, int], Any]
ValueAccessor = Callable[[Row], Any]


def guess_kind(key: str) -> ColumnKind:
    """Guess the kind of a column from its key.

    Only used for columns that do not declare a kind.
    """
    last = key.rsplit(".", 1)[-1]
    if last.endswith(DATE_KEY_SUFFIXES):
        return ColumnKind.DATE
    if last.startswith(BOOL_KEY_PREFIXES):
        return ColumnKind.BOOLEAN
    return ColumnKind.TEXT


def read_field(row: Row, key: str) -> Any:
    """Read a field from a row.

    Rows may be mappings or plain objects. Dotted keys walk nested
    relations (`restaurant.name`). Missing fields read as `None`.
    """
    current = row
    for part in key.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def stringify(value: Any) -> str:
    """Convert a raw field value into the text used for matching."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return " ".join(
            stringify(v) for v in value.values() if not isinstance(v, Mapping)
        )
    return str(value)


@define
class Column:
    """A column (displayable field) of a table.

    Attributes:
        key: The unique key of the column inside its table. Usually the name
            of a field in the rows; dotted keys reach into nested relations.
            Synthetic keys need an `accessor` or a `render` function.
        title: A string suitable to be used as a header for the column. If
            not provided it is computed from the key.
        kind: The comparison and formatting semantics of the column. If not
            provided it is guessed from the key.
        sortable: Whether the user can sort the table by this column.
        filterable: Whether the user can filter the table by this column.
        qsearch: Whether the column is part of the free-text search set.
        visible: Whether the column is visible when no preference was
            stored yet.
        render: Optional cell renderer called as `render(value, row, index)`.
            Its result is opaque to the engine.
        accessor: Optional function that computes the value from the row.
        enum_values: The list of possible values for enum columns as
            `(value, label)` pairs.
        true_str: The string representation of `True` in exports.
        false_str: The string representation of `False` in exports.
    """

    key: str
    title: str = field(default="")
    kind: Optional[ColumnKind] = field(default=None)
    sortable: bool = field(default=True)
    filterable: bool = field(default=True)
    qsearch: bool = field(default=True)
    visible: bool = field(default=True)
    render: Optional[CellRenderer] = field(default=None, eq=False, repr=False)
    accessor: Optional[ValueAccessor] = field(
        default=None, eq=False, repr=False
    )
    enum_values: List[tuple] = field(factory=list, repr=False)
    true_str: str = field(default="Active", repr=False)
    false_str: str = field(default="Inactive", repr=False)

    def __attrs_post_init__(self):
        if not self.key:
            raise ValueError("A column needs a key")
        if self.kind is None:
            self.kind = guess_kind(self.key)
        else:
            self.kind = ColumnKind(self.kind)
        if not self.title:
            self.title = text_name(self.key.rsplit(".", 1)[-1])

    def __hash__(self):
        return hash(self.key)

    @property
    def is_date(self) -> bool:
        return self.kind == ColumnKind.DATE

    @property
    def is_boolean(self) -> bool:
        return self.kind == ColumnKind.BOOLEAN

    def value(self, row: Row) -> Any:
        """Get the raw value of this column for a row."""
        if self.accessor is not None:
            return self.accessor(row)
        return read_field(row, self.key)

    def text(self, row: Row) -> str:
        """Get the text used to search and filter by this column."""
        return stringify(self.value(row))

    def export_text(self, row: Row) -> str:
        """Get the text used when exporting this column.

        Booleans use `true_str` and `false_str`, dates use the `M/D/YYYY`
        form and enum values are replaced by their label when known.
        """
        value = self.value(row)
        if value is None:
            return ""
        if self.kind == ColumnKind.BOOLEAN and isinstance(value, bool):
            return self.true_str if value else self.false_str
        if self.kind == ColumnKind.DATE:
            try:
                return locale_day(value)
            except (TypeError, ValueError):
                return stringify(value)
        if self.kind == ColumnKind.ENUM:
            for enum_value, label in self.enum_values:
                if enum_value == value:
                    return label
        return stringify(value)

    def render_cell(self, row: Row, index: int) -> Any:
        """Compute the displayable content of a cell.

        Args:
            row: The row being rendered.
            index: The position of the row in the rendered page.
        """
        value = self.value(row)
        if self.render is not None:
            return self.render(value, row, index)
        return stringify(value)


class ColumnInfo(BaseModel):
    """Declarative description of a column.

    We use this mechanism when columns are described in configuration files
    or other plain data. The attributes have exactly the same names as those
    in the `Column` class, so that they can be used to create a `Column`.

    Attributes:
        key: The unique key of the column.
        title: The header of the column. Computed from the key if missing.
        kind: One of the `ColumnKind` values. Guessed from the key if
            missing.
        sortable: Whether the user can sort by this column.
        filterable: Whether the user can filter by this column.
        qsearch: Whether the column is part of the free-text search set.
        visible: Whether the column is visible by default.
        enum_values: Possible values of enum columns as `[value, label]`.
        true_str: Export text for `True`.
        false_str: Export text for `False`.
    """

    key: str
    title: Optional[str] = None
    kind: Optional[ColumnKind] = None
    sortable: Optional[bool] = None
    filterable: Optional[bool] = None
    qsearch: Optional[bool] = None
    visible: Optional[bool] = None
    enum_values: Optional[List[tuple]] = None
    true_str: Optional[str] = None
    false_str: Optional[str] = None

    def to_column(self, **kwargs: Any) -> Column:
        """Create a column; only the attributes that were set are passed.

        Args:
            kwargs: Extra arguments for the column (`render`, `accessor`).
        """
        values = self.model_dump(exclude_none=True)
        values.update(kwargs)
        return Column(**values)

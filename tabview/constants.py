# Constants for column kinds and table defaults
from enum import StrEnum
from typing import Any, Dict, Literal, Tuple


class ColumnKind(StrEnum):
    """The comparison and formatting semantics of a column.

    Attributes:
        TEXT: Free text; filtered by case-insensitive substring.
        NUMBER: Numeric values; filtered like text, sorted numerically.
        BOOLEAN: Flags; filtered through the boolean aliases.
        ENUM: One of a closed set of values; filtered by exact match.
        DATE: ISO-8601 date or date-time strings.
    """

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE = "date"


SortDirection = Literal["asc", "desc"]
SORT_ASC: SortDirection = "asc"
SORT_DESC: SortDirection = "desc"

# The key of the synthetic identity column.
ID_COLUMN_KEY = "__id__"
ID_COLUMN_TITLE = "ID"

# Only used to guess the kind of a column that does not declare one.
DATE_KEY_SUFFIXES: Tuple[str, ...] = ("_at", "_date", "_login", "_on")
BOOL_KEY_PREFIXES: Tuple[str, ...] = ("is_", "has_")

BOOL_ALIASES: Dict[str, bool] = {
    "true": True,
    "yes": True,
    "1": True,
    "active": True,
    "enabled": True,
    "false": False,
    "no": False,
    "0": False,
    "inactive": False,
    "disabled": False,
}

DEFAULT_PAGE_SIZE = 10
PAGE_SIZE_OPTIONS: Tuple[int, ...] = (10, 25, 50, 100)
DEFAULT_TABLE_ID = "default-table"

# Rows are mappings or arbitrary objects.
Row = Any
RowKey = Any

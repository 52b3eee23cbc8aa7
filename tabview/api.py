from tabview.column import (  # noqa: F401
    Column,
    ColumnInfo,
    guess_kind,
    read_field,
    stringify,
)
from tabview.compare import (  # noqa: F401
    BoolOp,
    DateOp,
    EnumOp,
    KindOp,
    KindOpRegistry,
    NumberOp,
    TextOp,
    kind_op_registry,
    to_bool,
)
from tabview.constants import (  # noqa: F401
    DEFAULT_PAGE_SIZE,
    ID_COLUMN_KEY,
    PAGE_SIZE_OPTIONS,
    SORT_ASC,
    SORT_DESC,
    ColumnKind,
    SortDirection,
)
from tabview.errors import (  # noqa: F401
    DuplicateColumnError,
    FetchError,
    PersistenceError,
    TableError,
)
from tabview.export import export_rows_csv, export_rows_xlsx  # noqa: F401
from tabview.filter import (  # noqa: F401
    FilterEngine,
    FilterState,
    validate_filter_state,
)
from tabview.loader import (  # noqa: F401
    KEEP_SORT,
    IncrementalLoader,
    PageResult,
)
from tabview.pagination import (  # noqa: F401
    PaginationController,
    PaginationState,
)
from tabview.registry import ColumnRegistry  # noqa: F401
from tabview.requests import PageRequest, PageRequestManager  # noqa: F401
from tabview.selection import SelectionTracker  # noqa: F401
from tabview.settings import LocalSettings, TableConfig  # noqa: F401
from tabview.sort import SortEngine, SortState, next_sort_state  # noqa: F401
from tabview.sources import (  # noqa: F401
    ClientSideSource,
    fetch_all,
    filter_hints,
)
from tabview.table import Table, TableView  # noqa: F401
from tabview.visibility import (  # noqa: F401
    MemoryVisibilityBackend,
    SettingsVisibilityBackend,
    VisibilityBackend,
    VisibilityStore,
)

"""
Available fixtures:

- **`columns`**: The columns of the user table used across the tests.
- **`users`**: 23 user rows; only the seventh one is named "John Smith".
- **`table`**: A `Table` over `users` with selection enabled and an
  in-memory visibility store.
- **`settings`**: A `LocalSettings` stored in a temporary directory.
"""

import pytest

from tabview.column import Column
from tabview.constants import ColumnKind
from tabview.registry import ColumnRegistry
from tabview.settings import LocalSettings, TableConfig
from tabview.table import Table


def make_user(i: int) -> dict:
    day = (i % 5) + 1
    hour = (i * 5) % 24
    return {
        "id": i,
        "customer_name": "JoHN SMITH" if i == 7 else f"Customer {i:02d}",
        "email": f"user{i}@example.com",
        "role": "admin" if i % 5 == 0 else "editor",
        "is_active": i % 3 != 0,
        "created_at": f"2024-03-{day:02d}T{hour:02d}:15:00Z",
    }


@pytest.fixture
def users():
    return [make_user(i) for i in range(1, 24)]


@pytest.fixture
def columns():
    return ColumnRegistry(
        [
            Column(key="id", title="ID", kind=ColumnKind.NUMBER),
            Column(key="customer_name"),
            Column(key="email", sortable=False),
            Column(
                key="role",
                kind=ColumnKind.ENUM,
                enum_values=[("admin", "Administrator"), ("editor", "Editor")],
            ),
            Column(key="is_active"),
            Column(key="created_at"),
        ]
    )


@pytest.fixture
def table(columns, users):
    return Table(
        columns=columns,
        rows=users,
        config=TableConfig(table_id="users", selectable=True),
        key_fn=lambda row: row["id"],
    )


@pytest.fixture
def settings(tmp_path):
    return LocalSettings(path=str(tmp_path / "settings.yaml"))

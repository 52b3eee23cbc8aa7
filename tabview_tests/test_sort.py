import pytest

from tabview.column import Column
from tabview.constants import SORT_ASC, SORT_DESC, ColumnKind
from tabview.registry import ColumnRegistry
from tabview.sort import SortEngine, SortState, next_sort_state, sort_key


@pytest.fixture
def engine():
    return SortEngine()


def ids(rows):
    return [r["id"] for r in rows]


class TestSortState:
    def test_default_direction(self):
        assert SortState(key="name").direction == SORT_ASC
        assert SortState(key="name").ascending

    def test_invalid_direction(self):
        with pytest.raises(ValueError):
            SortState(key="name", direction="up")


class TestCycle:
    def test_three_activations(self):
        state = next_sort_state(None, "name")
        assert state == SortState("name", SORT_ASC)
        state = next_sort_state(state, "name")
        assert state == SortState("name", SORT_DESC)
        state = next_sort_state(state, "name")
        assert state is None

    def test_other_column_starts_ascending(self):
        state = SortState("name", SORT_DESC)
        assert next_sort_state(state, "price") == SortState("price", SORT_ASC)
        state = SortState("name", SORT_ASC)
        assert next_sort_state(state, "price") == SortState("price", SORT_ASC)


class TestSortEngine:
    def test_none_keeps_order(self, engine, users, columns):
        assert engine.apply(users, columns, None) == users

    def test_numbers(self, engine, users, columns):
        result = engine.apply(users, columns, SortState("id", SORT_DESC))
        assert ids(result) == list(range(23, 0, -1))

    def test_text(self, engine):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "b"}, {"name": "c"}, {"name": "a"}]
        result = engine.apply(rows, columns, SortState("name"))
        assert [r["name"] for r in result] == ["a", "b", "c"]

    def test_numeric_strings(self, engine):
        columns = ColumnRegistry([Column(key="price", kind=ColumnKind.NUMBER)])
        rows = [{"price": "10"}, {"price": "9.5"}, {"price": 100}]
        result = engine.apply(rows, columns, SortState("price"))
        assert [r["price"] for r in result] == ["9.5", "10", 100]

    def test_dates_by_timestamp(self, engine):
        columns = ColumnRegistry([Column(key="created_at")])
        rows = [
            {"id": 1, "created_at": "2024-03-01T10:00:00+02:00"},
            {"id": 2, "created_at": "2024-03-01T09:00:00Z"},
            {"id": 3, "created_at": "2023-12-31"},
        ]
        result = engine.apply(rows, columns, SortState("created_at"))
        # 10:00+02:00 is 08:00 UTC.
        assert ids(result) == [3, 1, 2]

    def test_booleans(self, engine):
        columns = ColumnRegistry([Column(key="is_active")])
        rows = [
            {"id": 1, "is_active": False},
            {"id": 2, "is_active": True},
            {"id": 3, "is_active": False},
            {"id": 4, "is_active": True},
        ]
        result = engine.apply(rows, columns, SortState("is_active"))
        assert ids(result) == [2, 4, 1, 3]
        result = engine.apply(rows, columns, SortState("is_active", SORT_DESC))
        assert ids(result) == [1, 3, 2, 4]

    @pytest.mark.parametrize("direction", [SORT_ASC, SORT_DESC])
    def test_nulls_last(self, engine, direction):
        columns = ColumnRegistry([Column(key="name"), Column(key="opened_at")])
        rows = [
            {"id": 1, "name": None, "opened_at": None},
            {"id": 2, "name": "b", "opened_at": "2024-01-02"},
            {"id": 3, "name": "a", "opened_at": "garbage"},
            {"id": 4, "name": "c", "opened_at": "2024-01-01"},
        ]
        by_name = engine.apply(rows, columns, SortState("name", direction))
        assert ids(by_name)[-1] == 1
        by_date = engine.apply(rows, columns, SortState("opened_at", direction))
        assert ids(by_date)[-2:] == [1, 3]

    def test_mixed_types(self, engine):
        columns = ColumnRegistry([Column(key="code")])
        rows = [{"code": "b"}, {"code": 2}, {"code": "a"}, {"code": 1}]
        result = engine.apply(rows, columns, SortState("code"))
        assert [r["code"] for r in result] == [1, 2, "a", "b"]

    def test_unknown_column(self, engine, users, columns):
        assert engine.apply(users, columns, SortState("missing")) == users

    def test_not_sortable(self, engine, users, columns):
        assert engine.apply(users, columns, SortState("email")) == users

    def test_rows_not_modified(self, engine, users, columns):
        before = list(users)
        engine.apply(users, columns, SortState("id", SORT_DESC))
        assert users == before


@pytest.mark.parametrize("direction", [SORT_ASC, SORT_DESC])
def test_stability(engine, users, columns, direction):
    # Many rows share the same role; they must keep their relative order.
    result = engine.apply(users, columns, SortState("role", direction))
    admins = [r["id"] for r in result if r["role"] == "admin"]
    editors = [r["id"] for r in result if r["role"] == "editor"]
    assert admins == [5, 10, 15, 20]
    assert editors == [i for i in range(1, 24) if i % 5 != 0]
    if direction == SORT_ASC:
        assert result[0]["role"] == "admin"
    else:
        assert result[0]["role"] == "editor"


@pytest.mark.parametrize("direction", [SORT_ASC, SORT_DESC])
def test_stability_booleans(engine, users, columns, direction):
    result = engine.apply(users, columns, SortState("is_active", direction))
    active = [r["id"] for r in result if r["is_active"]]
    assert active == [i for i in range(1, 24) if i % 3 != 0]


def test_sort_key():
    date_column = Column(key="created_at")
    assert sort_key(date_column, None) is None
    assert sort_key(date_column, "nope") is None
    assert sort_key(Column(key="is_active"), True) == 0
    assert sort_key(Column(key="is_active"), "maybe") is None
    assert sort_key(Column(key="name"), "x") == (1, "x")

import logging

import pytest

from tabview.column import Column
from tabview.filter import FilterEngine, FilterState, validate_filter_state
from tabview.registry import ColumnRegistry


@pytest.fixture
def engine():
    return FilterEngine()


class TestFilterState:
    def test_empty(self):
        state = FilterState()
        assert not state.is_active
        assert not state.has_search
        assert state.active_filters() == {}

    def test_blank_values(self):
        state = FilterState(
            search_query="   ", column_filters={"name": "", "role": "  "}
        )
        assert not state.is_active

    def test_with_column_filter(self):
        state = FilterState().with_column_filter("role", "admin")
        assert state.is_active
        assert state.active_filters() == {"role": "admin"}
        # A blank value removes the filter.
        assert not state.with_column_filter("role", " ").is_active
        assert not state.with_column_filter("role", None).is_active

    def test_immutable(self):
        state = FilterState()
        other = state.with_search("pizza")
        assert state.search_query == ""
        assert other.search_query == "pizza"
        assert other.cleared() == FilterState()

    def test_equality(self):
        assert FilterState(column_filters={"a": "1"}) == FilterState(
            column_filters={"a": "1"}
        )


class TestSearch:
    def test_empty_query_returns_everything(self, engine, users, columns):
        result = engine.apply(users, columns, FilterState(search_query="  "))
        assert result == users

    def test_none_state(self, engine, users, columns):
        assert engine.apply(users, columns, None) == users

    def test_case_insensitive(self, engine, users, columns):
        state = FilterState(search_query="smith")
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [7]

    def test_trimmed(self, engine, users, columns):
        state = FilterState(search_query="  SMITH ")
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [7]

    def test_any_column(self, engine, users, columns):
        state = FilterState(search_query="user12@")
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [12]

    def test_search_columns_only(self, engine):
        columns = ColumnRegistry(
            [Column(key="name"), Column(key="secret", qsearch=False)]
        )
        rows = [{"name": "a", "secret": "pizza"}]
        state = FilterState(search_query="pizza")
        assert engine.apply(rows, columns, state) == []

    def test_transliteration(self, engine):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "Crème brûlée"}, {"name": "Tiramisu"}]
        assert engine.apply(rows, columns, FilterState("creme")) == rows[:1]
        assert engine.apply(rows, columns, FilterState("brûl")) == rows[:1]

    def test_non_latin_query(self, engine):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "Burger"}, {"name": "Kebab"}, {"name": "برگر"}]
        assert engine.apply(rows, columns, FilterState("ب")) == rows[2:]

    def test_accented_query(self, engine):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "hello"}, {"name": "café"}, {"name": "cafe"}]
        assert engine.apply(rows, columns, FilterState("é")) == rows[1:2]
        assert engine.apply(rows, columns, FilterState("cafe")) == rows[1:]

    def test_no_transliteration(self):
        engine = FilterEngine(transliterate=False)
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "Crème brûlée"}]
        assert engine.apply(rows, columns, FilterState("creme")) == []

    def test_rows_not_modified(self, engine, users, columns):
        before = [dict(r) for r in users]
        engine.apply(users, columns, FilterState(search_query="smith"))
        assert users == before


class TestColumnFilters:
    def test_text(self, engine, users, columns):
        state = FilterState(column_filters={"customer_name": "customer 1"})
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == list(range(10, 20))

    def test_boolean_alias(self, engine, users, columns):
        state = FilterState(column_filters={"is_active": "inactive"})
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [3, 6, 9, 12, 15, 18, 21]

    def test_enum(self, engine, users, columns):
        state = FilterState(column_filters={"role": "admin"})
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [5, 10, 15, 20]

    def test_and(self, engine, users, columns):
        state = FilterState(
            column_filters={"role": "admin", "is_active": "false"}
        )
        result = engine.apply(users, columns, state)
        assert [r["id"] for r in result] == [15]

    def test_search_and_filter(self, engine, users, columns):
        state = FilterState(
            search_query="smith", column_filters={"role": "admin"}
        )
        assert engine.apply(users, columns, state) == []

    def test_calendar_day(self, engine, columns):
        rows = [
            {"id": 1, "created_at": "2024-03-01T00:00:00Z"},
            {"id": 2, "created_at": "2024-02-29T23:59:59Z"},
            {"id": 3, "created_at": "2024-03-01T23:59:59Z"},
            {"id": 4, "created_at": "2024-03-02T00:00:00Z"},
            {"id": 5, "created_at": "2024-03-01"},
            {"id": 6, "created_at": None},
            {"id": 7, "created_at": "not a date"},
        ]
        state = FilterState(column_filters={"created_at": "2024-03-01"})
        result = engine.apply(rows, columns, state)
        assert [r["id"] for r in result] == [1, 3, 5]

    def test_null_excluded(self, engine):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": None}, {"name": "x"}, {}]
        state = FilterState(column_filters={"name": "x"})
        assert engine.apply(rows, columns, state) == [{"name": "x"}]

    def test_unknown_column_as_text(self, engine, caplog):
        columns = ColumnRegistry([Column(key="name")])
        rows = [{"name": "a", "city": "Rome"}, {"name": "b", "city": "Oslo"}]
        state = FilterState(column_filters={"city": "rom"})
        with caplog.at_level(logging.WARNING):
            result = engine.apply(rows, columns, state)
        assert result == rows[:1]
        assert "unknown column city" in caplog.text

    def test_not_filterable_ignored(self, engine):
        columns = ColumnRegistry([Column(key="name", filterable=False)])
        rows = [{"name": "a"}, {"name": "b"}]
        state = FilterState(column_filters={"name": "a"})
        assert engine.apply(rows, columns, state) == rows


class TestProperties:
    @pytest.mark.parametrize(
        "state",
        [
            FilterState(search_query="customer"),
            FilterState(column_filters={"role": "editor"}),
            FilterState(
                search_query="1", column_filters={"is_active": "active"}
            ),
            FilterState(column_filters={"created_at": "2024-03-02"}),
        ],
    )
    def test_idempotence(self, engine, users, columns, state):
        once = engine.apply(users, columns, state)
        twice = engine.apply(once, columns, state)
        assert once == twice

    @pytest.mark.parametrize(
        "key, value",
        [
            ("role", "editor"),
            ("is_active", "active"),
            ("customer_name", "2"),
            ("created_at", "3/"),
        ],
    )
    def test_monotonicity(self, engine, users, columns, key, value):
        base = FilterState(search_query="customer")
        narrower = base.with_column_filter(key, value)
        assert len(engine.apply(users, columns, narrower)) <= len(
            engine.apply(users, columns, base)
        )


def test_validate_filter_state():
    columns = ColumnRegistry(
        [Column(key="name"), Column(key="image", filterable=False)]
    )
    state = FilterState(
        column_filters={"name": "a", "image": "b", "city": "c", "x": ""}
    )
    assert sorted(validate_filter_state(state, columns)) == [
        ["not_filterable", "image"],
        ["unknown_column", "city"],
    ]

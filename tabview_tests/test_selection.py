import unittest

from tabview.pagination import PaginationController, PaginationState
from tabview.selection import SelectionTracker


def make_rows(count):
    return [{"id": i} for i in range(1, count + 1)]


class TestSelectionTracker(unittest.TestCase):
    def setUp(self):
        self.rows = make_rows(23)
        self.tracker = SelectionTracker(key_fn=lambda r: r["id"])
        self.changes = []
        self.tracker.on_changed.append(self.changes.append)

    def test_toggle(self):
        self.assertTrue(self.tracker.toggle(3))
        self.assertIn(3, self.tracker)
        self.assertFalse(self.tracker.toggle(3))
        self.assertNotIn(3, self.tracker)
        self.assertEqual(self.changes, [frozenset({3}), frozenset()])

    def test_toggle_row(self):
        self.tracker.toggle_row(self.rows[4])
        self.assertTrue(self.tracker.is_selected(self.rows[4]))
        self.assertEqual(self.tracker.selected_keys, frozenset({5}))

    def test_select_deselect(self):
        self.tracker.select([1, 2, 3])
        self.tracker.select([2, 3])
        self.assertEqual(self.tracker.count, 3)
        self.tracker.deselect([1, 9])
        self.assertEqual(self.tracker.selected_keys, frozenset({2, 3}))
        # Only actual changes are reported.
        self.assertEqual(len(self.changes), 2)

    def test_clear(self):
        self.tracker.clear()
        self.assertEqual(self.changes, [])
        self.tracker.select([1, 2])
        self.tracker.clear()
        self.assertEqual(len(self.tracker), 0)
        self.assertEqual(self.changes[-1], frozenset())

    def test_select_all_visible(self):
        page = self.rows[:10]
        self.tracker.toggle(15)
        self.tracker.select_all_visible(page)
        self.assertTrue(self.tracker.is_all_selected(page))
        self.assertFalse(self.tracker.is_indeterminate(page))
        self.assertEqual(self.tracker.count, 11)

        self.tracker.select_all_visible(page)
        self.assertEqual(self.tracker.selected_keys, frozenset({15}))

    def test_select_all_partial(self):
        page = self.rows[:10]
        self.tracker.select([1, 2])
        self.assertTrue(self.tracker.is_indeterminate(page))
        self.assertFalse(self.tracker.is_all_selected(page))
        self.assertEqual(self.tracker.visible_selected_count(page), 2)

        # A partial selection becomes a full one.
        self.tracker.select_all_visible(page)
        self.assertTrue(self.tracker.is_all_selected(page))

    def test_empty_page(self):
        self.tracker.select([1])
        self.tracker.select_all_visible([])
        self.assertFalse(self.tracker.is_all_selected([]))
        self.assertFalse(self.tracker.is_indeterminate([]))
        self.assertEqual(self.tracker.selected_keys, frozenset({1}))

    def test_selected_rows(self):
        self.tracker.select([9, 2, 5])
        self.assertEqual(
            [r["id"] for r in self.tracker.selected_rows(self.rows)],
            [2, 5, 9],
        )

    def test_rows_disappear(self):
        self.tracker.select([1, 22, 23])
        remaining = self.rows[:20]
        # Not dropped implicitly.
        self.assertEqual(self.tracker.count, 3)
        self.assertEqual(len(self.tracker.selected_rows(remaining)), 1)

        self.assertEqual(self.tracker.retain(remaining), 2)
        self.assertEqual(self.tracker.selected_keys, frozenset({1}))
        self.assertEqual(self.tracker.retain(remaining), 0)


def test_identity_by_default():
    row_a = {"id": 1}
    row_b = {"id": 1}
    tracker = SelectionTracker()
    tracker.toggle_row(row_a)
    assert tracker.is_selected(row_a)
    assert not tracker.is_selected(row_b)


def test_survives_navigation():
    rows = make_rows(23)
    ctrl = PaginationController()
    tracker = SelectionTracker(key_fn=lambda r: r["id"])

    state = PaginationState(total_items=23)
    page, state = ctrl.paginate(rows, state)
    tracker.toggle_row(page[0])
    tracker.toggle_row(page[4])

    state = ctrl.next_page(state)
    page, state = ctrl.paginate(rows, state)
    assert tracker.visible_selected_count(page) == 0
    tracker.toggle_row(page[1])

    state = ctrl.previous_page(state)
    page, state = ctrl.paginate(rows, state)
    assert [r["id"] for r in page if tracker.is_selected(r)] == [1, 5]
    assert tracker.selected_keys == frozenset({1, 5, 12})


def test_select_all_twice_restores():
    rows = make_rows(10)
    tracker = SelectionTracker(key_fn=lambda r: r["id"])
    for initial in (set(), {3}, {1, 2, 3, 4, 5, 6, 7, 8, 9, 10}):
        tracker.clear()
        tracker.select(initial)
        if initial and len(initial) < len(rows):
            # A partial selection cannot come back after two toggles: the
            # first one selects everything, the second clears the page.
            tracker.select_all_visible(rows)
            tracker.select_all_visible(rows)
            assert tracker.selected_keys == frozenset()
            continue
        tracker.select_all_visible(rows)
        tracker.select_all_visible(rows)
        assert tracker.selected_keys == frozenset(initial)

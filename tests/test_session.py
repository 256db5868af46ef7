"""
Test cases for Reorder Sessions, the Selection Set and the Session Registry
"""

from unittest import TestCase
from unittest.mock import MagicMock

from backoffice.reorder import (
    PersistError,
    ReorderSession,
    SelectionSet,
    SessionNotFoundError,
    SessionRegistry,
    UnknownItemError,
)
from tests.factories import make_items

TITLES = {
    "A": {"title": "Coffee Cashback", "category": "Food"},
    "B": {"title": "Airline Miles", "category": "Travel"},
    "C": {"title": "Burger Night", "category": "Food"},
    "D": {"title": "Gas Station", "category": "Fuel"},
    "E": {"title": "Pizza Friday", "category": "Food"},
}


def _items():
    return make_items(("A", 1), ("B", 2), ("C", 3), ("D", 4), ("E", 5), **TITLES)


######################################################################
#  S E L E C T I O N   T E S T   C A S E S
######################################################################
class TestSelectionSet(TestCase):
    """Selection Set Tests"""

    def setUp(self):
        self.session = ReorderSession(_items(), MagicMock())
        self.selection = self.session.selection

    def test_add_remove_contains(self):
        """It should support set semantics"""
        self.selection.add("A")
        self.selection.add("A")
        self.assertIn("A", self.selection)
        self.assertEqual(len(self.selection), 1)
        self.selection.remove("A")
        self.selection.remove("A")
        self.assertNotIn("A", self.selection)

    def test_toggle(self):
        """It should flip membership"""
        self.assertTrue(self.selection.toggle("B"))
        self.assertFalse(self.selection.toggle("B"))

    def test_unknown_id(self):
        """It should refuse ids outside the session"""
        self.assertRaises(UnknownItemError, self.selection.add, "Z")
        self.assertRaises(UnknownItemError, self.selection.toggle, "Z")

    def test_toggle_all(self):
        """It should select the visible items, or clear when all are selected"""
        self.selection.add("A")
        self.selection.toggle_all(["A", "B"])
        self.assertEqual(set(self.selection), {"A", "B"})
        self.selection.toggle_all(["A", "B"])
        self.assertEqual(len(self.selection), 0)

    def test_toggle_all_other_page(self):
        """It should select the visible items when the selection is on another page"""
        self.selection.add("A")
        self.selection.add("B")
        self.selection.toggle_all(["C", "D"])
        self.assertEqual(set(self.selection), {"C", "D"})

    def test_clear(self):
        """It should empty the selection"""
        selection = SelectionSet(self.session.store)
        selection.add("C")
        selection.clear()
        self.assertEqual(len(selection), 0)


######################################################################
#  S E S S I O N   T E S T   C A S E S
######################################################################
class TestReorderSession(TestCase):
    """Reorder Session Tests"""

    def setUp(self):
        self.persist = MagicMock()
        self.session = ReorderSession(_items(), self.persist, page_size=2)

    def test_view_and_paging(self):
        """It should project the current search and page"""
        page = self.session.view()
        self.assertEqual([i.id for i in page.items], ["A", "B"])
        page = self.session.goto_page(3)
        self.assertEqual([i.id for i in page.items], ["E"])
        page = self.session.goto_page(10)
        self.assertEqual(page.page_index, 3)
        self.assertEqual(self.session.page, 3)

    def test_search_resets_page(self):
        """It should go back to page 1 on a new search"""
        self.session.goto_page(2)
        page = self.session.search("food")
        self.assertEqual(self.session.page, 1)
        self.assertEqual([i.id for i in page.items], ["A", "C"])
        self.assertEqual(page.filtered_count, 3)
        self.assertEqual(page.total_count, 5)

    def test_move_from_filtered_view(self):
        """It should move by global index when the view is filtered"""
        self.session.search("food")
        self.assertTrue(self.session.drag("E", "C"))
        self.assertEqual(self.session.store.ids(), ["A", "B", "E", "C", "D"])
        self.assertEqual([i.id for i in self.session.view().items], ["A", "E"])

    def test_single_moves(self):
        """It should expose every single-item move"""
        self.assertTrue(self.session.move("A", 2))
        self.assertTrue(self.session.move_to_position("D", 1))
        self.assertTrue(self.session.move_to_bottom("D"))
        self.assertTrue(self.session.move_to_top("E"))
        self.assertFalse(self.session.move_to_position("E", 6))
        self.assertEqual(self.session.store.ids(), ["E", "B", "C", "A", "D"])

    def test_toggle_select_all_uses_current_page(self):
        """It should select exactly the items on the current page"""
        self.session.goto_page(2)
        self.session.toggle_select_all()
        self.assertEqual(set(self.session.selection), {"C", "D"})

    def test_toggle_select_all_after_other_page(self):
        """It should replace a same-sized selection made on another page"""
        self.session.toggle_select_all()
        self.assertEqual(set(self.session.selection), {"A", "B"})
        self.session.goto_page(2)
        self.session.toggle_select_all()
        self.assertEqual(set(self.session.selection), {"C", "D"})
        self.session.toggle_select_all()
        self.assertEqual(len(self.session.selection), 0)

    def test_batch_moves(self):
        """It should batch move the selection and clear it"""
        self.session.selection.add("D")
        self.session.selection.add("E")
        self.assertTrue(self.session.batch_move_to_top())
        self.assertEqual(self.session.store.ids(), ["D", "E", "A", "B", "C"])
        self.assertEqual(len(self.session.selection), 0)
        self.session.selection.add("D")
        self.assertTrue(self.session.batch_move_to_bottom())
        self.session.selection.add("A")
        self.assertTrue(self.session.batch_move(1))
        self.assertEqual(self.session.store.ids(), ["A", "E", "B", "C", "D"])

    def test_changes_and_save(self):
        """It should preview and save the diff"""
        self.session.move("B", 0)
        self.assertEqual(len(self.session.changes()), 2)
        result = self.session.save()
        self.assertTrue(result.ok)
        self.persist.assert_called_once()
        self.assertEqual(self.session.changes(), [])
        self.assertFalse(self.session.saving)

    def test_failed_save(self):
        """It should keep the edits after a failed save"""
        self.persist.side_effect = PersistError("down")
        self.session.move("B", 0)
        result = self.session.save()
        self.assertFalse(result.ok)
        self.assertEqual(len(self.session.changes()), 2)

    def test_cancel(self):
        """It should discard the order without calling the catalog"""
        self.session.move("B", 0)
        self.session.selection.add("A")
        self.session.cancel()
        self.assertTrue(self.session.closed)
        self.assertEqual(len(self.session.store), 0)
        self.assertEqual(len(self.session.selection), 0)
        self.persist.assert_not_called()


######################################################################
#  R E G I S T R Y   T E S T   C A S E S
######################################################################
class TestSessionRegistry(TestCase):
    """Session Registry Tests"""

    def test_open_get_close(self):
        """It should open, find and close sessions"""
        registry = SessionRegistry()
        session = registry.open(_items(), MagicMock())
        self.assertIs(registry.get(session.id), session)
        self.assertEqual(len(registry), 1)
        registry.close(session.id)
        self.assertTrue(session.closed)
        self.assertRaises(SessionNotFoundError, registry.get, session.id)
        self.assertRaises(SessionNotFoundError, registry.close, session.id)

    def test_sessions_are_independent(self):
        """It should give each session its own Working Order"""
        registry = SessionRegistry()
        first = registry.open(_items(), MagicMock())
        second = registry.open(_items(), MagicMock())
        first.move_to_top("E")
        self.assertEqual(second.store.ids(), ["A", "B", "C", "D", "E"])
        registry.clear()
        self.assertEqual(len(registry), 0)
        self.assertTrue(first.closed and second.closed)


######################################################################
#  I D L E   S E S S I O N   E V I C T I O N
######################################################################
class TestSessionEviction(TestCase):
    """Session Registry idle eviction Tests"""

    def setUp(self):
        self.now = 0.0
        self.registry = SessionRegistry(ttl=60, clock=lambda: self.now)

    def test_idle_session_dropped(self):
        """It should cancel and forget a session idle past the ttl"""
        session = self.registry.open(_items(), MagicMock())
        self.now = 61.0
        self.assertRaises(SessionNotFoundError, self.registry.get, session.id)
        self.assertTrue(session.closed)
        self.assertEqual(len(self.registry), 0)

    def test_access_keeps_session(self):
        """It should keep a session that is used within the ttl"""
        kept = self.registry.open(_items(), MagicMock())
        idle = self.registry.open(_items(), MagicMock())
        self.now = 50.0
        self.registry.get(kept.id)
        self.now = 100.0
        self.assertEqual(self.registry.evict_idle(), 1)
        self.assertIs(self.registry.get(kept.id), kept)
        self.assertTrue(idle.closed)

    def test_opening_evicts(self):
        """It should drop stale sessions when a new one opens"""
        self.registry.open(_items(), MagicMock())
        self.now = 120.0
        self.registry.open(_items(), MagicMock())
        self.assertEqual(len(self.registry), 1)

    def test_saving_session_kept(self):
        """It should not evict a session while its save is in flight"""
        session = self.registry.open(_items(), MagicMock())
        session.coordinator.in_flight = True
        self.now = 120.0
        self.assertEqual(self.registry.evict_idle(), 0)
        self.assertFalse(session.closed)

    def test_no_ttl(self):
        """It should keep sessions forever without a ttl"""
        registry = SessionRegistry(clock=lambda: self.now)
        session = registry.open(_items(), MagicMock())
        self.now = 10 ** 9
        self.assertIs(registry.get(session.id), session)

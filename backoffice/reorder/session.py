"""
Reorder Session

One operator's editing session over the catalog order: it owns the store,
the selection, the current search/page and the coordinator from the moment
the reorder surface opens until it is saved and closed or cancelled.
"""

import logging
import threading
import uuid
from typing import Hashable, Iterable, List, Optional, Sequence

from backoffice.reorder import operations
from backoffice.reorder.coordinator import Persist, PersistenceCoordinator, SaveResult
from backoffice.reorder.diff import Change, diff
from backoffice.reorder.projector import DEFAULT_SEARCH_FIELDS, Page, project
from backoffice.reorder.selection import SelectionSet
from backoffice.reorder.store import OrderedItem, OrderedItemStore

logger = logging.getLogger("flask.app")

DEFAULT_PAGE_SIZE = 20


class ReorderSession:
    """Working Order, Selection Set and save state of one reorder session

    Operations are serialised through ``lock``; callers that share a session
    between threads should hold it around each call.
    """

    def __init__(
        self,
        items: Iterable[OrderedItem],
        persist: Persist,
        page_size: int = DEFAULT_PAGE_SIZE,
        search_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
    ):
        self.id = uuid.uuid4().hex
        self.lock = threading.RLock()
        self.store = OrderedItemStore()
        self.store.load(items)
        self.selection = SelectionSet(self.store)
        self.coordinator = PersistenceCoordinator(persist)
        self.page_size = page_size
        self.search_fields = tuple(search_fields)
        self.query = ""
        self.page = 1
        self.closed = False

    def __repr__(self):
        return f"<ReorderSession id=[{self.id}] items=[{len(self.store)}]>"

    ##################################################
    # VIEW
    ##################################################

    def view(self, page_size: Optional[int] = None) -> Page:
        """Projects the Working Order with the current search and page"""
        result = project(
            self.store.current_order(),
            self.query,
            self.page,
            page_size or self.page_size,
            self.search_fields,
        )
        self.page = result.page_index
        return result

    def search(self, query_text: Optional[str]) -> Page:
        """Applies a new search and returns to the first page"""
        self.query = query_text or ""
        self.page = 1
        return self.view()

    def goto_page(self, page_index: int) -> Page:
        self.page = page_index
        return self.view()

    ##################################################
    # SINGLE ITEM MOVES
    ##################################################

    def move(self, item_id: Hashable, target_index: int) -> bool:
        return operations.move_item(self.store, item_id, target_index)

    def move_to_position(self, item_id: Hashable, target_position: int) -> bool:
        return operations.move_to_position(self.store, item_id, target_position)

    def move_to_top(self, item_id: Hashable) -> bool:
        return operations.move_to_top(self.store, item_id)

    def move_to_bottom(self, item_id: Hashable) -> bool:
        return operations.move_to_bottom(self.store, item_id)

    def drag(self, active_id: Hashable, over_id: Hashable) -> bool:
        return operations.drag(self.store, active_id, over_id)

    ##################################################
    # SELECTION & BATCH MOVES
    ##################################################

    def toggle_select_all(self) -> None:
        """Select-all checkbox for the items on the current page"""
        self.selection.toggle_all(item.id for item in self.view().items)

    def batch_move(self, target_position: int) -> bool:
        return operations.batch_move(self.store, self.selection, target_position)

    def batch_move_to_top(self) -> bool:
        return operations.batch_move_to_top(self.store, self.selection)

    def batch_move_to_bottom(self) -> bool:
        return operations.batch_move_to_bottom(self.store, self.selection)

    ##################################################
    # SAVE / CANCEL
    ##################################################

    def changes(self) -> List[Change]:
        """Previews what a save would send"""
        return diff(self.store.snapshot, self.store.current_order())

    @property
    def saving(self) -> bool:
        return self.coordinator.in_flight

    def save(self) -> SaveResult:
        return self.coordinator.save(self.store)

    def cancel(self) -> None:
        """Drops the edited order and selection without contacting the catalog"""
        logger.info("Cancelling reorder session %s", self.id)
        self.selection.clear()
        self.store.load([])
        self.closed = True

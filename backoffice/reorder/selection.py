"""
Selection Set used by the batch block move
"""

import logging
from typing import Hashable, Iterable, Iterator, Set

from backoffice.reorder.errors import UnknownItemError
from backoffice.reorder.store import OrderedItemStore

logger = logging.getLogger("flask.app")


class SelectionSet:
    """Set of selected item ids, validated against one store"""

    def __init__(self, store: OrderedItemStore):
        self._store = store
        self._ids: Set[Hashable] = set()

    def __contains__(self, item_id):
        return item_id in self._ids

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._ids)

    def __len__(self):
        return len(self._ids)

    def __repr__(self):
        return f"<SelectionSet size=[{len(self._ids)}]>"

    def _check(self, item_id: Hashable) -> None:
        if item_id not in self._store:
            raise UnknownItemError(item_id)

    def add(self, item_id: Hashable) -> None:
        self._check(item_id)
        self._ids.add(item_id)

    def remove(self, item_id: Hashable) -> None:
        """Removes an id; removing an id that is not selected is a no-op"""
        self._check(item_id)
        self._ids.discard(item_id)

    def toggle(self, item_id: Hashable) -> bool:
        """Flips membership and returns whether the id is now selected"""
        self._check(item_id)
        if item_id in self._ids:
            self._ids.discard(item_id)
            return False
        self._ids.add(item_id)
        return True

    def clear(self) -> None:
        self._ids.clear()

    def toggle_all(self, visible_ids: Iterable[Hashable]) -> None:
        """Select-all checkbox over the visible items

        Clears the selection when it already covers exactly the visible
        items, otherwise selects exactly the visible items.
        """
        visible = list(visible_ids)
        for item_id in visible:
            self._check(item_id)
        if visible and self._ids == set(visible):
            self._ids.clear()
        else:
            self._ids = set(visible)
        logger.info("Selection now holds %d items", len(self._ids))

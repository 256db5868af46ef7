"""
OrderedItem Store

Holds the full, unfiltered Working Order of one reorder session together with
the Session Snapshot it is diffed against.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Mapping

from backoffice.reorder.errors import (
    DuplicateItemError,
    DuplicatePositionError,
    UnknownItemError,
)

logger = logging.getLogger("flask.app")


@dataclass
class OrderedItem:
    """An item with a stable id and a mutable integer position

    ``fields`` holds the display strings the projector searches, ``payload``
    is carried through untouched.
    """

    id: Hashable
    position: int
    fields: Mapping[str, str] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict, repr=False)

    def serialize(self) -> dict:
        """Serializes an OrderedItem into a dictionary"""
        data = dict(self.payload)
        data.update(self.fields)
        data["id"] = self.id
        data["position"] = self.position
        return data


class OrderedItemStore:
    """The Working Order and Session Snapshot of a single session"""

    def __init__(self):
        self._order: List[OrderedItem] = []
        self._snapshot: Dict[Hashable, int] = {}

    def __len__(self):
        return len(self._order)

    def __repr__(self):
        return f"<OrderedItemStore items=[{len(self._order)}]>"

    def load(self, items: Iterable[OrderedItem]) -> None:
        """Seeds the Working Order sorted by position and takes the snapshot"""
        order = sorted(items, key=lambda item: item.position)
        seen_ids = set()
        seen_positions = set()
        for item in order:
            if item.id in seen_ids:
                raise DuplicateItemError(f"Item id '{item.id}' was loaded twice")
            if item.position in seen_positions:
                raise DuplicatePositionError(
                    f"Position {item.position} is shared by more than one item"
                )
            seen_ids.add(item.id)
            seen_positions.add(item.position)

        self._order = order
        self.take_snapshot()
        logger.info("Loaded %d items into reorder store", len(order))

    def take_snapshot(self) -> None:
        """Makes the current positions the new diff baseline"""
        self._snapshot = {item.id: item.position for item in self._order}

    @property
    def snapshot(self) -> Mapping[Hashable, int]:
        """Read-only copy of the Session Snapshot"""
        return dict(self._snapshot)

    def current_order(self) -> List[OrderedItem]:
        """Returns the live Working Order"""
        return self._order

    def ids(self) -> List[Hashable]:
        return [item.id for item in self._order]

    def index_of(self, item_id: Hashable) -> int:
        """Returns the global index of an item, raising for unknown ids"""
        for index, item in enumerate(self._order):
            if item.id == item_id:
                return index
        raise UnknownItemError(item_id)

    def get(self, item_id: Hashable) -> OrderedItem:
        return self._order[self.index_of(item_id)]

    def __contains__(self, item_id):
        return any(item.id == item_id for item in self._order)

    def replace_order(self, order: List[OrderedItem]) -> None:
        """Swaps in a re-sequenced Working Order

        Only the reorder operations call this; the new order must hold
        exactly the loaded items.
        """
        self._order[:] = order

"""
Reorder Operations

Two renumbering policies live here and are kept apart on purpose:

* single-item moves (drag, numeric entry, top/bottom) use a bounded rotation
  that renumbers only the index range between source and destination, so the
  saved diff stays proportional to the distance moved;
* the batch block move renumbers the whole collection 1..N, leaving a clean
  contiguous sequence after a bulk edit at the cost of a larger diff.

Unifying them would change how many rows the catalog writes per save.

All operations address items by id and work on the global Working Order.
They return True when the order changed. Targets outside the collection are
rejected silently; unknown ids raise UnknownItemError.
"""

import logging
from typing import Hashable

from backoffice.reorder.errors import UnknownItemError
from backoffice.reorder.selection import SelectionSet
from backoffice.reorder.store import OrderedItemStore

logger = logging.getLogger("flask.app")


######################################################################
# SINGLE ITEM MOVES (bounded rotation)
######################################################################
def move_item(store: OrderedItemStore, item_id: Hashable, target_index: int) -> bool:
    """Moves one item to a 0-based index of the Working Order

    Only items whose new index falls between the source and target index are
    renumbered, starting from the position that held the lower boundary
    before the move. Everything outside that range keeps its position.
    """
    source_index = store.index_of(item_id)
    order = store.current_order()

    if not 0 <= target_index < len(order):
        logger.warning(
            "Ignoring move of %s to index %s: outside [0, %d]",
            item_id, target_index, len(order) - 1,
        )
        return False
    if source_index == target_index:
        return False

    low = min(source_index, target_index)
    high = max(source_index, target_index)
    base = order[low].position

    order.insert(target_index, order.pop(source_index))
    for index in range(low, high + 1):
        order[index].position = base + (index - low)

    logger.info("Moved %s from index %d to index %d", item_id, source_index, target_index)
    return True


def move_to_top(store: OrderedItemStore, item_id: Hashable) -> bool:
    return move_item(store, item_id, 0)


def move_to_bottom(store: OrderedItemStore, item_id: Hashable) -> bool:
    return move_item(store, item_id, len(store) - 1)


def move_to_position(store: OrderedItemStore, item_id: Hashable, target_position: int) -> bool:
    """Numeric entry: moves an item to a 1-based slot in the list

    Entries outside [1, item count] are ignored.
    """
    store.index_of(item_id)
    if not 1 <= target_position <= len(store):
        logger.warning(
            "Ignoring numeric entry %s for %s: outside [1, %d]",
            target_position, item_id, len(store),
        )
        return False
    return move_item(store, item_id, target_position - 1)


def drag(store: OrderedItemStore, active_id: Hashable, over_id: Hashable) -> bool:
    """Drops the dragged item onto the slot currently held by another item

    Both ids are resolved in the global Working Order, so a drop inside a
    filtered or paginated view lands in the right place.
    """
    target_index = store.index_of(over_id)
    if active_id == over_id:
        store.index_of(active_id)
        return False
    return move_item(store, active_id, target_index)


######################################################################
# BATCH BLOCK MOVE (full renumber)
######################################################################
def batch_move(store: OrderedItemStore, selection: SelectionSet, target_position: int) -> bool:
    """Moves the selected items as one contiguous block

    The block keeps its relative order and is inserted at
    clamp(target_position - 1, 0, len(remaining)) among the unselected items.
    Afterwards every item is renumbered 1..N. The selection is cleared.
    """
    if not len(selection):
        return False

    order = store.current_order()
    for item_id in selection:
        if item_id not in store:
            raise UnknownItemError(item_id)

    selected = [item for item in order if item.id in selection]
    remaining = [item for item in order if item.id not in selection]
    insert_at = min(max(target_position - 1, 0), len(remaining))
    moved = remaining[:insert_at] + selected + remaining[insert_at:]
    selection.clear()

    if [item.id for item in moved] == [item.id for item in order]:
        logger.info("Batch move of %d items left the order unchanged", len(selected))
        return False

    for number, item in enumerate(moved, start=1):
        item.position = number
    store.replace_order(moved)

    logger.info("Batch moved %d items to position %d", len(selected), insert_at + 1)
    return True


def batch_move_to_top(store: OrderedItemStore, selection: SelectionSet) -> bool:
    return batch_move(store, selection, 1)


def batch_move_to_bottom(store: OrderedItemStore, selection: SelectionSet) -> bool:
    return batch_move(store, selection, len(store))

"""
Diff Engine

Compares the Working Order against the Session Snapshot and yields only the
items whose position moved.
"""

from dataclasses import dataclass
from typing import Hashable, List, Mapping, Sequence

from backoffice.reorder.errors import SnapshotMismatchError
from backoffice.reorder.store import OrderedItem


@dataclass(frozen=True)
class Change:
    """New position for one item"""

    id: Hashable
    new_position: int

    def serialize(self) -> dict:
        return {"id": self.id, "position": self.new_position}


def diff(snapshot: Mapping[Hashable, int], working_order: Sequence[OrderedItem]) -> List[Change]:
    """Returns the Changes that turn the snapshot into the Working Order

    Both sides must hold the same ids; anything else means the session lost
    or gained an item and is raised rather than dropped.
    """
    order_ids = {item.id for item in working_order}
    missing = [item_id for item_id in snapshot if item_id not in order_ids]
    if missing:
        raise SnapshotMismatchError(
            f"Items {missing!r} are in the snapshot but not in the working order"
        )

    changes = []
    for item in working_order:
        if item.id not in snapshot:
            raise SnapshotMismatchError(
                f"Item '{item.id}' is in the working order but not in the snapshot"
            )
        if item.position != snapshot[item.id]:
            changes.append(Change(item.id, item.position))
    return changes

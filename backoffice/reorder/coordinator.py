"""
Persistence Coordinator

Turns one save gesture into at most one persist call carrying only the diff.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from backoffice.reorder.diff import Change, diff
from backoffice.reorder.errors import PersistError
from backoffice.reorder.store import OrderedItemStore

logger = logging.getLogger("flask.app")

Persist = Callable[[List[Change]], None]


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save"""

    ok: bool
    changes: List[Change] = field(default_factory=list)
    error: Optional[PersistError] = None

    @property
    def no_changes(self) -> bool:
        return self.ok and not self.changes

    def serialize(self) -> dict:
        data = {
            "ok": self.ok,
            "no_changes": self.no_changes,
            "changes": [change.serialize() for change in self.changes],
        }
        if self.error is not None:
            data["error"] = str(self.error)
        return data


class PersistenceCoordinator:
    """Submits the diff of a store to the catalog

    Callers must not overlap saves; ``in_flight`` lets the UI boundary
    reject a second save while the first is outstanding.
    """

    def __init__(self, persist: Persist):
        self._persist = persist
        self.in_flight = False

    def save(self, store: OrderedItemStore) -> SaveResult:
        """Persists the changes since the last snapshot

        An empty diff never reaches the catalog. A successful persist
        advances the snapshot. A failed one leaves both the snapshot and the
        edited Working Order as they are so the operator can retry.
        """
        changes = diff(store.snapshot, store.current_order())
        if not changes:
            logger.info("Nothing to save: order matches the snapshot")
            return SaveResult(ok=True)

        logger.info("Saving %d position changes", len(changes))
        self.in_flight = True
        try:
            self._persist(changes)
        except PersistError as error:
            logger.error("Saving %d position changes failed: %s", len(changes), error)
            return SaveResult(ok=False, changes=changes, error=error)
        finally:
            self.in_flight = False

        store.take_snapshot()
        return SaveResult(ok=True, changes=changes)

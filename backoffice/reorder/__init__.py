"""
Package: backoffice.reorder

Position management and diff computation for a totally ordered collection of
stably identified items. Nothing in here knows about Flask or the database;
the catalog is reached only through the ``persist`` callable handed to a
session.
"""

from backoffice.reorder.coordinator import PersistenceCoordinator, SaveResult
from backoffice.reorder.diff import Change, diff
from backoffice.reorder.errors import (
    DuplicateItemError,
    DuplicatePositionError,
    PersistError,
    ReorderError,
    SessionNotFoundError,
    SnapshotMismatchError,
    UnknownItemError,
)
from backoffice.reorder.projector import Page, project
from backoffice.reorder.registry import SessionRegistry
from backoffice.reorder.selection import SelectionSet
from backoffice.reorder.session import ReorderSession
from backoffice.reorder.store import OrderedItem, OrderedItemStore

__all__ = [
    "Change",
    "DuplicateItemError",
    "DuplicatePositionError",
    "OrderedItem",
    "OrderedItemStore",
    "Page",
    "PersistError",
    "PersistenceCoordinator",
    "ReorderError",
    "ReorderSession",
    "SaveResult",
    "SelectionSet",
    "SessionNotFoundError",
    "SessionRegistry",
    "SnapshotMismatchError",
    "UnknownItemError",
    "diff",
    "project",
]

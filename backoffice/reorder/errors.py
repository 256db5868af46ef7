"""
Exceptions raised by the reorder engine

Input that merely points outside the collection (a numeric position past the
end, an index off the list) is not an error: the operations absorb it and
report that nothing changed. The exceptions below are structural and always
propagate to the caller.
"""


class ReorderError(Exception):
    """Base class for reorder engine errors"""


class UnknownItemError(ReorderError, KeyError):
    """An operation was addressed to an id that is not in the Working Order"""

    def __init__(self, item_id):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self):
        return f"Item with id '{self.item_id}' is not part of this reorder session"


class DuplicateItemError(ReorderError):
    """The same id was loaded twice"""


class DuplicatePositionError(ReorderError):
    """Two loaded items share a position"""


class SnapshotMismatchError(ReorderError):
    """The Working Order and the Session Snapshot hold different ids"""


class PersistError(ReorderError):
    """The catalog could not persist a change list"""


class SessionNotFoundError(ReorderError, KeyError):
    """No open reorder session has the requested id"""

    def __init__(self, session_id):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self):
        return f"Reorder session '{self.session_id}' was not found."

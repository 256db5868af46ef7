"""
Catalog service

Connects reorder sessions to the Benefit table: seeds a session with the
current order and persists a session's change list in one transaction.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from backoffice.models import Benefit, db
from backoffice.reorder import Change, OrderedItem, PersistError

logger = logging.getLogger("flask.app")


def to_ordered_item(benefit: Benefit) -> OrderedItem:
    """Wraps a Benefit for the reorder engine"""
    return OrderedItem(
        id=benefit.id,
        position=benefit.position,
        fields={"title": benefit.title or "", "category": benefit.category or ""},
        payload=benefit.serialize(),
    )


def seed_items() -> List[OrderedItem]:
    """Returns every benefit, in position order, as OrderedItems"""
    logger.info("Seeding reorder session from the benefits catalog")
    return [to_ordered_item(benefit) for benefit in Benefit.all()]


def persist(changes: List[Change]) -> None:
    """Applies new positions to the benefits, all or nothing

    Raises PersistError (after rolling back) when a benefit is gone or when a
    new position is already held by a benefit outside the change list.
    Database failures surface the same way.
    """
    if not changes:
        return

    ids = [change.id for change in changes]
    try:
        benefits = {b.id: b for b in Benefit.query.filter(Benefit.id.in_(ids)).all()}
        missing = [item_id for item_id in ids if item_id not in benefits]
        if missing:
            db.session.rollback()
            raise PersistError(f"Benefits {missing!r} no longer exist")

        # positions held by benefits the session never saw
        taken = (
            Benefit.query.filter(Benefit.position.in_([change.new_position for change in changes]))
            .filter(Benefit.id.notin_(ids))
            .all()
        )
        if taken:
            db.session.rollback()
            clashes = sorted(benefit.position for benefit in taken)
            raise PersistError(f"Positions {clashes!r} are held by other benefits")

        for change in changes:
            benefit = benefits[change.id]
            benefit.position = change.new_position
            benefit.version = (benefit.version or 0) + 1
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        logger.error("Error persisting %d position changes: %s", len(changes), error)
        raise PersistError("The benefits order could not be saved") from error

    logger.info("Persisted %d position changes", len(changes))

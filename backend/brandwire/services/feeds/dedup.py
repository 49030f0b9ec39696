import enum
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from brandwire.models.brand_update import BrandUpdate, UpdateOrigin
from brandwire.services.feeds.base import UpdateDraft, UpdatePersistenceError

logger = logging.getLogger(__name__)


class GateOutcome(enum.Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class DeduplicationGate:
    """
    Stores each external feed item at most once.

    The read-check in :meth:`reserve` only saves a pointless insert. The unique
    index on ``brand_updates.external_id`` is what actually guarantees
    uniqueness, so overlapping or retried runs can never double-insert.
    """

    def __init__(self, db: Session):
        self.db = db

    def reserve(self, external_id: str) -> GateOutcome:
        if BrandUpdate.exists_by_external_id(self.db, external_id):
            return GateOutcome.DUPLICATE
        return GateOutcome.ACCEPTED

    def admit(self, draft: UpdateDraft) -> GateOutcome:
        """Reserve ``draft.external_id`` and insert the draft as a feed update."""
        if self.reserve(draft.external_id) is GateOutcome.DUPLICATE:
            logger.debug(f"Skipping duplicate {draft.external_id}")
            return GateOutcome.DUPLICATE

        try:
            update = BrandUpdate(
                brand_id=draft.brand_id,
                title=draft.title,
                description=draft.description,
                image_url=draft.image_url,
                source_url=draft.source_url,
                update_type=draft.update_type,
                published_date=draft.published_date,
                external_id=draft.external_id,
                origin=UpdateOrigin.FEED,
            )
        except ValueError as e:
            raise UpdatePersistenceError(f"Invalid update: {e}") from e

        try:
            self.db.add(update)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if BrandUpdate.exists_by_external_id(self.db, draft.external_id):
                logger.debug(f"Skipping duplicate {draft.external_id} (lost insert race)")
                return GateOutcome.DUPLICATE
            raise UpdatePersistenceError(f"Integrity error: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise UpdatePersistenceError(f"Database error: {e}") from e

        return GateOutcome.ACCEPTED

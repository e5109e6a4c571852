# styledecor/infrastructure/repositories/tracking_repository.py

import logging
from enum import Enum

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from styledecor.infrastructure.db.models import TrackingEvent

logger = logging.getLogger(__name__)


def default_details(status: str) -> str:
    """
    Human-readable label derived from a status,
    e.g. "booking-paid" -> "booking paid".
    """
    return status.replace("-", " ").replace("_", " ")


class TrackingRepository:
    """
    Tracking ledger: one immutable event per (tracking_id, status).
    """

    def __init__(self, db: Session):
        self.db = db

    def log_event(
        self,
        tracking_id: str,
        status: str,
        details: str | None = None,
    ) -> TrackingEvent | None:
        """
        Append a tracking event. Returns None when the same status was
        already logged for this tracking id.

        The uniqueness constraint on (tracking_id, status) is the dedup
        signal, so concurrent duplicates cannot both land.
        """
        label = status.value if isinstance(status, Enum) else status
        event = TrackingEvent(
            tracking_id=tracking_id,
            status=label,
            details=details or default_details(label),
        )

        # Flush outstanding changes first so only this insert is guarded.
        self.db.flush()
        try:
            with self.db.begin_nested():
                self.db.add(event)
        except IntegrityError:
            logger.info(
                "Tracking event already logged. tracking_id=%s status=%s",
                tracking_id,
                label,
            )
            return None

        return event

    def list_events(self, tracking_id: str) -> list[TrackingEvent]:
        stmt = (
            select(TrackingEvent)
            .where(TrackingEvent.tracking_id == tracking_id)
            .order_by(TrackingEvent.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

import logging
import os

from sqlalchemy.orm import Session

from styledecor.domain.exceptions import BookingNotFoundError, BookingOwnershipError
from styledecor.domain.state_machine import (
    BookingStateMachine,
    ServiceStatus,
    TransitionActor,
)
from styledecor.domain.tracking_id import generate_tracking_id
from styledecor.infrastructure.db.models import Booking, TrackingEvent
from styledecor.infrastructure.repositories.booking_repository import BookingRepository
from styledecor.infrastructure.repositories.tracking_repository import TrackingRepository

logger = logging.getLogger(__name__)

BOOKING_PLACED = "booking-Placed"


class BookingService:
    """Application service coordinating the booking lifecycle."""

    def __init__(self, db: Session):
        self.db = db
        self.booking_repository = BookingRepository(db)
        self.tracking_repository = TrackingRepository(db)

    def create_booking(
        self,
        customer_email: str,
        service_id: str,
        service_name: str,
        cost: int,
        customer_name: str | None = None,
        location: str | None = None,
        booking_date: str | None = None,
    ) -> Booking:
        booking = self.booking_repository.create_booking(
            tracking_id=generate_tracking_id(),
            customer_email=customer_email,
            customer_name=customer_name,
            service_id=service_id,
            service_name=service_name,
            cost=cost,
            currency=os.getenv("PAYMENT_CURRENCY", "INR"),
            location=location,
            booking_date=booking_date,
        )
        self.tracking_repository.log_event(booking.tracking_id, BOOKING_PLACED)
        logger.info(
            "Booking placed. booking_id=%s tracking_id=%s customer=%s",
            booking.id,
            booking.tracking_id,
            customer_email,
        )
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    def list_customer_bookings(self, customer_email: str) -> list[Booking]:
        return self.booking_repository.list_by_customer(customer_email)

    def track(self, tracking_id: str) -> list[TrackingEvent]:
        return self.tracking_repository.list_events(tracking_id)

    def transition(
        self,
        booking: Booking,
        to_status: ServiceStatus,
        actor: TransitionActor,
        details: str | None = None,
        tracking_status: str | None = None,
        **fields,
    ) -> bool:
        """
        Move a booking to `to_status` and record it in the tracking ledger.

        The ledger entry carries `tracking_status` when given, else the new
        status. Extra keyword fields are written onto the booking together
        with the status. Returns False when the booking is already in the target
        status, in which case nothing is written.
        """
        if booking.service_status == to_status:
            logger.info(
                "Booking already in status. booking_id=%s status=%s",
                booking.id,
                to_status.value,
            )
            return False

        from_status = booking.service_status
        BookingStateMachine.validate_transition(from_status, to_status, actor)

        for name, value in fields.items():
            setattr(booking, name, value)
        self.booking_repository.update_status(booking, to_status)

        if booking.tracking_id:
            self.tracking_repository.log_event(
                booking.tracking_id,
                tracking_status or to_status,
                details,
            )

        logger.info(
            "Booking transitioned. booking_id=%s %s -> %s actor=%s",
            booking.id,
            from_status.value,
            to_status.value,
            actor.value,
        )
        return True

    def update_decorator_status(
        self,
        booking_id: str,
        decorator_email: str,
        to_status: ServiceStatus,
        details: str | None = None,
    ) -> tuple[Booking, bool]:
        booking = self.get_booking(booking_id)

        if booking.decorator_email != decorator_email:
            raise BookingOwnershipError(
                f"Booking {booking_id} is not assigned to {decorator_email}"
            )

        modified = self.transition(
            booking,
            to_status,
            TransitionActor.DECORATOR,
            details=details,
        )
        return booking, modified

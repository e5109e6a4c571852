from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session

from styledecor.application.booking_service import BookingService
from styledecor.domain.exceptions import (
    DecoratorNotApprovedError,
    DecoratorNotFoundError,
    InvalidStateTransitionError,
)
from styledecor.domain.state_machine import (
    PaymentStatus,
    ServiceStatus,
    TransitionActor,
)
from styledecor.infrastructure.db.models import Booking, Decorator
from styledecor.infrastructure.repositories.booking_repository import BookingRepository
from styledecor.infrastructure.repositories.user_repository import (
    DecoratorRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class AssignmentService:
    """Administrator-driven matching of decorators to paid bookings."""

    def __init__(self, db: Session):
        self.db = db
        self.booking_service = BookingService(db)
        self.booking_repository = BookingRepository(db)
        self.decorator_repository = DecoratorRepository(db)
        self.user_repository = UserRepository(db)

    def list_assignable_bookings(
        self,
        service_status: ServiceStatus | None = ServiceStatus.PENDING_ASSIGN,
        payment_status: PaymentStatus | None = PaymentStatus.PAID,
    ) -> list[Booking]:
        return self.booking_repository.list_by_status(service_status, payment_status)

    def list_available_decorators(self) -> list[Decorator]:
        return self.decorator_repository.list_available()

    def list_decorator_bookings(
        self,
        decorator_email: str,
        service_status: ServiceStatus | None = None,
    ) -> list[Booking]:
        return self.booking_repository.list_by_decorator(decorator_email, service_status)

    def assign(
        self,
        booking_id: str,
        decorator_id: str,
        to_status: ServiceStatus = ServiceStatus.DECORATOR_ASSIGNED,
        details: str | None = None,
    ) -> tuple[Booking, bool]:
        booking = self.booking_service.get_booking(booking_id)
        decorator = self.decorator_repository.get_by_id(decorator_id)
        if not decorator:
            raise DecoratorNotFoundError(f"Decorator {decorator_id} not found")
        if decorator.status != "approved":
            raise DecoratorNotApprovedError(
                f"Decorator {decorator_id} is not approved (status={decorator.status})"
            )

        if booking.decorator_id and booking.decorator_id != decorator.id:
            # Rebinding an assigned booking to someone else is not a lifecycle step.
            raise InvalidStateTransitionError(
                from_state=booking.service_status.value,
                to_state=to_status.value,
            )
        if booking.service_status == to_status:
            return booking, False

        binding = {}
        if booking.decorator_id is None:
            binding = {
                "decorator_id": decorator.id,
                "decorator_name": decorator.name,
                "decorator_email": decorator.email,
                "assigned_at": datetime.now(timezone.utc),
            }

        modified = self.booking_service.transition(
            booking,
            to_status,
            TransitionActor.ADMIN,
            details=details,
            **binding,
        )
        logger.info(
            "Decorator assigned. booking_id=%s decorator=%s",
            booking.id,
            decorator.email,
        )
        return booking, modified

    def update_status(
        self,
        booking_id: str,
        to_status: ServiceStatus,
        details: str | None = None,
    ) -> tuple[Booking, bool]:
        booking = self.booking_service.get_booking(booking_id)
        modified = self.booking_service.transition(
            booking,
            to_status,
            TransitionActor.ADMIN,
            details=details,
        )
        return booking, modified

    def apply_decorator(
        self,
        name: str,
        email: str,
        phone: str | None = None,
        district: str | None = None,
        specialities: str | None = None,
    ) -> Decorator:
        existing = self.decorator_repository.get_by_email(email)
        if existing:
            return existing

        decorator = self.decorator_repository.create_application(
            name=name,
            email=email,
            phone=phone,
            district=district,
            specialities=specialities,
        )
        logger.info("Decorator application received. email=%s", email)
        return decorator

    def review_decorator(self, decorator_id: str, status: str) -> Decorator:
        decorator = self.decorator_repository.get_by_id(decorator_id)
        if not decorator:
            raise DecoratorNotFoundError(f"Decorator {decorator_id} not found")

        decorator.status = status
        user = self.user_repository.get_by_email(decorator.email)
        if status == "approved":
            decorator.work_status = "available"
            if user and user.role != "admin":
                user.role = "decorator"
        else:
            decorator.work_status = "unavailable"
            if user and user.role == "decorator":
                user.role = "user"

        logger.info(
            "Decorator application reviewed. decorator_id=%s status=%s",
            decorator_id,
            status,
        )
        return decorator

# styledecor/infrastructure/repositories/booking_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from styledecor.infrastructure.db.models import Booking
from styledecor.domain.state_machine import PaymentStatus, ServiceStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_customer(self, customer_email: str) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.customer_email == customer_email)
            .order_by(Booking.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_by_status(
        self,
        service_status: ServiceStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> list[Booking]:
        stmt = select(Booking)
        if service_status is not None:
            stmt = stmt.where(Booking.service_status == service_status)
        if payment_status is not None:
            stmt = stmt.where(Booking.payment_status == payment_status)
        stmt = stmt.order_by(Booking.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def list_by_decorator(
        self,
        decorator_email: str,
        service_status: ServiceStatus | None = None,
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.decorator_email == decorator_email)
        if service_status is not None:
            stmt = stmt.where(Booking.service_status == service_status)
        stmt = stmt.order_by(Booking.assigned_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def create_booking(
        self,
        tracking_id: str,
        customer_email: str,
        service_id: str,
        service_name: str,
        cost: int,
        currency: str,
        customer_name: str | None = None,
        location: str | None = None,
        booking_date: str | None = None,
    ) -> Booking:

        booking = Booking(
            tracking_id=tracking_id,
            customer_email=customer_email,
            customer_name=customer_name,
            service_id=service_id,
            service_name=service_name,
            cost=cost,
            currency=currency,
            location=location,
            booking_date=booking_date,
            service_status=ServiceStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )

        self.db.add(booking)
        return booking

    def update_status(
        self,
        booking: Booking,
        new_status: ServiceStatus,
    ) -> None:

        booking.service_status = new_status

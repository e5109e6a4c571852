from dataclasses import dataclass
import logging

from sqlalchemy.orm import Session

from styledecor.application.booking_service import BookingService
from styledecor.domain.exceptions import (
    BookingOwnershipError,
    CheckoutNotAllowedError,
    InvalidStateTransitionError,
    PaymentMetadataError,
)
from styledecor.domain.state_machine import (
    BookingStateMachine,
    PaymentStatus,
    ServiceStatus,
    TransitionActor,
)
from styledecor.infrastructure.db.models import PaymentRecord
from styledecor.infrastructure.payments.razorpay_gateway import CheckoutSession
from styledecor.infrastructure.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)

BOOKING_PAID = "booking-paid"


@dataclass
class ReconciliationResult:
    success: bool
    message: str
    tracking_id: str | None = None
    transaction_id: str | None = None
    booking_modified: bool = False
    payment: PaymentRecord | None = None


class PaymentService:
    """
    Turns a confirmed external payment session into a payment record
    and a lifecycle transition, once per transaction.
    """

    def __init__(self, db: Session, gateway=None):
        self.db = db
        self.gateway = gateway
        self.booking_service = BookingService(db)
        self.payment_repository = PaymentRepository(db)

    def create_checkout_session(
        self,
        booking_id: str,
        customer_email: str,
    ) -> CheckoutSession:
        booking = self.booking_service.get_booking(booking_id)

        if booking.customer_email != customer_email:
            raise BookingOwnershipError(
                f"Booking {booking_id} does not belong to {customer_email}"
            )
        if booking.payment_status != PaymentStatus.PENDING:
            raise CheckoutNotAllowedError(f"Booking {booking_id} is already paid")

        session = self.gateway.create_session(
            amount=booking.cost,
            currency=booking.currency,
            receipt=booking.id,
            metadata={
                "booking_id": booking.id,
                "tracking_id": booking.tracking_id,
                "customer_email": booking.customer_email,
                "service_name": booking.service_name,
            },
        )
        booking.payment_session_id = session.session_id
        logger.info(
            "Checkout session created. booking_id=%s session_id=%s",
            booking.id,
            session.session_id,
        )
        return session

    def confirm_payment(self, session_id: str) -> ReconciliationResult:
        session = self.gateway.retrieve_session(session_id)

        if session.transaction_id:
            existing = self.payment_repository.get_by_transaction_id(
                session.transaction_id
            )
            if existing:
                logger.warning(
                    "Payment already reconciled. transaction_id=%s tracking_id=%s",
                    existing.transaction_id,
                    existing.tracking_id,
                )
                return self._already_exists(existing)

        if not session.paid:
            logger.warning(
                "Payment session not paid. session_id=%s status=%s",
                session_id,
                session.status,
            )
            return ReconciliationResult(
                success=False,
                message="payment not completed",
            )

        booking_id = session.metadata.get("booking_id")
        tracking_id = session.metadata.get("tracking_id")
        if not booking_id or not tracking_id:
            raise PaymentMetadataError(
                f"Payment session {session_id} carries no booking reference"
            )

        booking = self.booking_service.get_booking(booking_id)
        if booking.tracking_id != tracking_id:
            raise PaymentMetadataError(
                f"Payment session {session_id} does not match booking {booking_id}"
            )

        try:
            BookingStateMachine.validate_transition(
                booking.service_status,
                ServiceStatus.PENDING_ASSIGN,
                TransitionActor.SYSTEM,
            )
        except InvalidStateTransitionError:
            # Money was captured but no payment record will exist for it.
            logger.error(
                "Captured payment not applied, refund required. "
                "transaction_id=%s session_id=%s booking_id=%s status=%s amount=%s %s",
                session.transaction_id,
                session_id,
                booking.id,
                booking.service_status.value,
                session.amount,
                session.currency,
            )
            raise

        payment = self.payment_repository.claim_transaction(
            transaction_id=session.transaction_id,
            amount=session.amount,
            currency=session.currency,
            customer_email=session.customer_email,
            booking_id=booking.id,
            tracking_id=tracking_id,
        )
        if payment is None:
            # A concurrent confirmation recorded this transaction first.
            existing = self.payment_repository.get_by_transaction_id(
                session.transaction_id
            )
            return self._already_exists(existing)

        booking.payment_status = PaymentStatus.PAID
        modified = self.booking_service.transition(
            booking,
            ServiceStatus.PENDING_ASSIGN,
            TransitionActor.SYSTEM,
            tracking_status=BOOKING_PAID,
            transaction_id=session.transaction_id,
        )

        logger.info(
            "Payment confirmed. booking_id=%s tracking_id=%s transaction_id=%s amount=%s %s",
            booking.id,
            tracking_id,
            session.transaction_id,
            session.amount,
            session.currency,
        )
        return ReconciliationResult(
            success=True,
            message="payment confirmed",
            tracking_id=tracking_id,
            transaction_id=session.transaction_id,
            booking_modified=modified,
            payment=payment,
        )

    def list_customer_payments(self, customer_email: str) -> list[PaymentRecord]:
        return self.payment_repository.list_by_customer(customer_email)

    @staticmethod
    def _already_exists(record: PaymentRecord) -> ReconciliationResult:
        return ReconciliationResult(
            success=True,
            message="already exists",
            tracking_id=record.tracking_id,
            transaction_id=record.transaction_id,
            booking_modified=False,
            payment=record,
        )

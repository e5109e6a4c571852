# styledecor/infrastructure/repositories/payment_repository.py

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from styledecor.infrastructure.db.models import PaymentRecord


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_transaction_id(
        self,
        transaction_id: str,
    ) -> PaymentRecord | None:

        stmt = select(PaymentRecord).where(
            PaymentRecord.transaction_id == transaction_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_customer(self, customer_email: str) -> list[PaymentRecord]:
        stmt = (
            select(PaymentRecord)
            .where(PaymentRecord.customer_email == customer_email)
            .order_by(PaymentRecord.paid_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def claim_transaction(
        self,
        transaction_id: str,
        amount: int,
        currency: str,
        customer_email: str | None,
        booking_id: str,
        tracking_id: str,
    ) -> PaymentRecord | None:
        """
        Insert the payment record for a transaction.
        Returns None if another request already recorded it.
        """
        record = PaymentRecord(
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            customer_email=customer_email,
            booking_id=booking_id,
            tracking_id=tracking_id,
        )

        self.db.flush()
        try:
            with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            return None

        return record

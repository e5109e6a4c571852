# styledecor/infrastructure/payments/razorpay_gateway.py

from dataclasses import dataclass, field
import logging
import os

import razorpay
import requests

from styledecor.domain.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

# Razorpay amounts are in the smallest currency unit (paise).
MINOR_UNITS_PER_MAJOR = 100


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    amount: int
    currency: str
    key_id: str | None = None


@dataclass(frozen=True)
class PaymentSession:
    """Canonical state of an external payment session."""

    session_id: str
    status: str
    paid: bool
    transaction_id: str | None
    amount: int
    currency: str
    customer_email: str | None
    metadata: dict = field(default_factory=dict)


class RazorpayGateway:
    """
    Checkout sessions backed by Razorpay orders.
    Booking metadata travels in the order's notes.
    """

    def __init__(self, client: razorpay.Client, key_id: str | None = None):
        self.client = client
        self.key_id = key_id

    @classmethod
    def from_env(cls) -> "RazorpayGateway":
        key_id = os.getenv("RAZORPAY_KEY_ID")
        key_secret = os.getenv("RAZORPAY_KEY_SECRET")
        if not key_id or not key_secret:
            raise PaymentGatewayError(
                "Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET."
            )
        return cls(razorpay.Client(auth=(key_id, key_secret)), key_id=key_id)

    def create_session(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: dict,
    ) -> CheckoutSession:
        try:
            order = self.client.order.create(
                {
                    "amount": amount * MINOR_UNITS_PER_MAJOR,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": metadata,
                }
            )
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.ServerError,
            razorpay.errors.GatewayError,
            requests.RequestException,
        ) as exc:
            logger.exception("Razorpay order creation failed. receipt=%s", receipt)
            raise PaymentGatewayError(str(exc)) from exc

        return CheckoutSession(
            session_id=order["id"],
            amount=amount,
            currency=currency,
            key_id=self.key_id,
        )

    def retrieve_session(self, session_id: str) -> PaymentSession:
        try:
            order = self.client.order.fetch(session_id)
            payments = []
            if order.get("status") == "paid":
                payments = self.client.order.payments(session_id).get("items", [])
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.ServerError,
            razorpay.errors.GatewayError,
            requests.RequestException,
        ) as exc:
            logger.exception("Razorpay order lookup failed. order_id=%s", session_id)
            raise PaymentGatewayError(str(exc)) from exc

        captured = next(
            (item for item in payments if item.get("status") == "captured"),
            None,
        )
        # An order without notes comes back with an empty list.
        notes = order.get("notes")
        metadata = dict(notes) if isinstance(notes, dict) else {}

        customer_email = metadata.get("customer_email")
        if not customer_email and captured:
            customer_email = captured.get("email")

        return PaymentSession(
            session_id=order["id"],
            status=order.get("status", "created"),
            paid=order.get("status") == "paid" and captured is not None,
            transaction_id=captured["id"] if captured else None,
            amount=int(order.get("amount_paid", 0)) // MINOR_UNITS_PER_MAJOR,
            currency=order.get("currency", ""),
            customer_email=customer_email,
            metadata=metadata,
        )

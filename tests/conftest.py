import itertools

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from styledecor.api.dependencies import get_payment_gateway
from styledecor.domain.exceptions import PaymentGatewayError
from styledecor.infrastructure.db.models import Decorator, User
from styledecor.infrastructure.db.session import Base, create_session_factory
from styledecor.infrastructure.payments.razorpay_gateway import (
    CheckoutSession,
    PaymentSession,
)
from styledecor.main import create_app

TEST_JWT_SECRET = "test-secret"

ADMIN_EMAIL = "admin@styledecor.test"
CUSTOMER_EMAIL = "customer@styledecor.test"
DECORATOR_EMAIL = "rafi@styledecor.test"
OTHER_DECORATOR_EMAIL = "mitu@styledecor.test"


class FakePaymentGateway:
    """In-memory checkout sessions with the same surface as RazorpayGateway."""

    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.fail_lookups = False
        self._ids = itertools.count(1)

    def create_session(self, amount, currency, receipt, metadata):
        session_id = f"order_test{next(self._ids):04d}"
        self.sessions[session_id] = {
            "status": "created",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "metadata": dict(metadata),
            "transaction_id": None,
        }
        return CheckoutSession(
            session_id=session_id,
            amount=amount,
            currency=currency,
            key_id="rzp_test_key",
        )

    def mark_paid(self, session_id, transaction_id=None):
        session = self.sessions[session_id]
        session["status"] = "paid"
        session["transaction_id"] = transaction_id or f"pay_{session_id}"
        return session["transaction_id"]

    def retrieve_session(self, session_id):
        if self.fail_lookups:
            raise PaymentGatewayError("payment processor unreachable")
        session = self.sessions[session_id]
        paid = session["status"] == "paid"
        return PaymentSession(
            session_id=session_id,
            status=session["status"],
            paid=paid,
            transaction_id=session["transaction_id"],
            amount=session["amount"] if paid else 0,
            currency=session["currency"],
            customer_email=session["metadata"].get("customer_email"),
            metadata=session["metadata"],
        )


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", TEST_JWT_SECRET)
    monkeypatch.setenv("PAYMENT_CURRENCY", "INR")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs these to honour SAVEPOINT properly.
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(session_factory):
    session = session_factory()
    session.add_all(
        [
            User(email=ADMIN_EMAIL, name="Admin", role="admin"),
            User(email=CUSTOMER_EMAIL, name="Nadia", role="user"),
            User(email=DECORATOR_EMAIL, name="Rafi", role="decorator"),
            User(email=OTHER_DECORATOR_EMAIL, name="Mitu", role="decorator"),
        ]
    )
    rafi = Decorator(
        name="Rafi Decor Studio",
        email=DECORATOR_EMAIL,
        status="approved",
        work_status="available",
    )
    mitu = Decorator(
        name="Mitu Floral Works",
        email=OTHER_DECORATOR_EMAIL,
        status="approved",
        work_status="available",
    )
    pending = Decorator(
        name="Pending Applicant",
        email="pending@styledecor.test",
        status="pending",
        work_status="unavailable",
    )
    session.add_all([rafi, mitu, pending])
    session.commit()
    ids = {"rafi": rafi.id, "mitu": mitu.id, "pending": pending.id}
    session.close()
    return ids


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def client(engine, gateway):
    app = create_app(engine=engine)
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def auth_headers():
    def _headers(email: str) -> dict:
        token = jwt.encode({"email": email}, TEST_JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers

import pytest
from sqlalchemy import select

from styledecor.application.assignment_service import AssignmentService
from styledecor.application.booking_service import BookingService
from styledecor.application.payment_service import PaymentService
from styledecor.domain.exceptions import (
    BookingNotFoundError,
    BookingOwnershipError,
    DecoratorNotApprovedError,
    DecoratorNotFoundError,
    InvalidStateTransitionError,
    UnauthorizedTransitionError,
)
from styledecor.domain.state_machine import ServiceStatus
from styledecor.infrastructure.db.models import TrackingEvent, User

CUSTOMER = "customer@styledecor.test"
RAFI = "rafi@styledecor.test"
MITU = "mitu@styledecor.test"


def _events(db, tracking_id):
    stmt = (
        select(TrackingEvent)
        .where(TrackingEvent.tracking_id == tracking_id)
        .order_by(TrackingEvent.created_at)
    )
    return list(db.execute(stmt).scalars().all())


@pytest.fixture
def paid_booking(db, gateway, seed):
    booking = BookingService(db).create_booking(
        customer_email=CUSTOMER,
        service_id="svc-birthday",
        service_name="Birthday Balloon Setup",
        cost=250,
    )
    payments = PaymentService(db, gateway)
    session = payments.create_checkout_session(booking.id, CUSTOMER)
    gateway.mark_paid(session.session_id)
    payments.confirm_payment(session.session_id)
    db.commit()
    return booking


def test_lists_paid_bookings_awaiting_assignment(db, paid_booking):
    BookingService(db).create_booking(
        customer_email=CUSTOMER,
        service_id="svc-unpaid",
        service_name="Unpaid Booking",
        cost=100,
    )
    db.commit()

    bookings = AssignmentService(db).list_assignable_bookings()

    assert [booking.id for booking in bookings] == [paid_booking.id]


def test_lists_only_approved_available_decorators(db, seed):
    decorators = AssignmentService(db).list_available_decorators()

    assert sorted(decorator.email for decorator in decorators) == [MITU, RAFI]


def test_assign_binds_decorator_and_logs(db, seed, paid_booking):
    booking, modified = AssignmentService(db).assign(
        paid_booking.id,
        seed["rafi"],
        details="Rafi will handle the balloon arch",
    )
    db.commit()

    assert modified
    assert booking.service_status == ServiceStatus.DECORATOR_ASSIGNED
    assert booking.decorator_email == RAFI
    assert booking.decorator_name == "Rafi Decor Studio"
    assert booking.assigned_at is not None
    assigned = {event.status: event for event in _events(db, booking.tracking_id)}
    assert assigned["Decorator_Assigned"].details == "Rafi will handle the balloon arch"


def test_repeated_assignment_is_a_no_op(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])
    db.commit()
    before = len(_events(db, paid_booking.tracking_id))

    _, modified = service.assign(paid_booking.id, seed["rafi"])
    db.commit()

    assert not modified
    assert len(_events(db, paid_booking.tracking_id)) == before


def test_reassigning_to_another_decorator_is_rejected(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])
    db.commit()

    with pytest.raises(InvalidStateTransitionError):
        service.assign(paid_booking.id, seed["mitu"])


def test_accepted_booking_cannot_move_to_another_decorator(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])
    BookingService(db).update_decorator_status(
        paid_booking.id,
        RAFI,
        ServiceStatus.DECORATOR_ACCEPTED,
    )
    db.commit()
    db.refresh(paid_booking)
    assigned_at = paid_booking.assigned_at

    with pytest.raises(InvalidStateTransitionError):
        service.assign(paid_booking.id, seed["mitu"], to_status=ServiceStatus.WORKING)
    db.rollback()

    db.refresh(paid_booking)
    assert paid_booking.decorator_email == RAFI
    assert paid_booking.service_status == ServiceStatus.DECORATOR_ACCEPTED
    assert paid_booking.assigned_at == assigned_at
    assert "Working" not in {event.status for event in _events(db, paid_booking.tracking_id)}


def test_admin_can_advance_with_the_bound_decorator(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])
    BookingService(db).update_decorator_status(
        paid_booking.id,
        RAFI,
        ServiceStatus.DECORATOR_ACCEPTED,
    )
    db.commit()
    db.refresh(paid_booking)
    assigned_at = paid_booking.assigned_at

    booking, modified = service.assign(
        paid_booking.id,
        seed["rafi"],
        to_status=ServiceStatus.WORKING,
    )
    db.commit()

    assert modified
    db.refresh(booking)
    assert booking.service_status == ServiceStatus.WORKING
    assert booking.decorator_email == RAFI
    assert booking.assigned_at == assigned_at


def test_cannot_assign_unpaid_booking(db, seed):
    booking = BookingService(db).create_booking(
        customer_email=CUSTOMER,
        service_id="svc-unpaid",
        service_name="Unpaid Booking",
        cost=100,
    )
    db.commit()

    with pytest.raises(InvalidStateTransitionError):
        AssignmentService(db).assign(booking.id, seed["rafi"])


def test_assign_requires_approved_decorator(db, seed, paid_booking):
    with pytest.raises(DecoratorNotApprovedError):
        AssignmentService(db).assign(paid_booking.id, seed["pending"])


def test_assign_unknown_ids(db, seed, paid_booking):
    service = AssignmentService(db)
    with pytest.raises(DecoratorNotFoundError):
        service.assign(paid_booking.id, "missing-decorator")
    with pytest.raises(BookingNotFoundError):
        service.assign("missing-booking", seed["rafi"])


def test_decorator_self_service_lifecycle(db, seed, paid_booking):
    AssignmentService(db).assign(paid_booking.id, seed["rafi"])
    bookings = BookingService(db)

    for status in (
        ServiceStatus.DECORATOR_ACCEPTED,
        ServiceStatus.WORKING,
        ServiceStatus.COMPLETED,
    ):
        booking, modified = bookings.update_decorator_status(paid_booking.id, RAFI, status)
        assert modified
        assert booking.service_status == status
    db.commit()

    statuses = {event.status for event in _events(db, paid_booking.tracking_id)}
    assert {"Decorator_Accepted", "Working", "Completed"} <= statuses


def test_decorator_cannot_touch_foreign_booking(db, seed, paid_booking):
    AssignmentService(db).assign(paid_booking.id, seed["rafi"])
    db.commit()
    before = len(_events(db, paid_booking.tracking_id))

    with pytest.raises(BookingOwnershipError):
        BookingService(db).update_decorator_status(
            paid_booking.id,
            MITU,
            ServiceStatus.COMPLETED,
        )

    db.refresh(paid_booking)
    assert paid_booking.service_status == ServiceStatus.DECORATOR_ASSIGNED
    assert len(_events(db, paid_booking.tracking_id)) == before


def test_admin_cannot_accept_on_behalf_of_decorator(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])

    with pytest.raises(UnauthorizedTransitionError):
        service.update_status(paid_booking.id, ServiceStatus.DECORATOR_ACCEPTED)


def test_list_decorator_bookings(db, seed, paid_booking):
    service = AssignmentService(db)
    service.assign(paid_booking.id, seed["rafi"])
    db.commit()

    assert [b.id for b in service.list_decorator_bookings(RAFI)] == [paid_booking.id]
    assert service.list_decorator_bookings(MITU) == []
    assert service.list_decorator_bookings(RAFI, ServiceStatus.COMPLETED) == []


def test_decorator_application_review(db):
    db.add(User(email="new@styledecor.test", name="New", role="user"))
    service = AssignmentService(db)
    application = service.apply_decorator(name="New Studio", email="new@styledecor.test")
    db.flush()
    assert application.status == "pending"
    assert service.apply_decorator(name="Again", email="new@styledecor.test") is application

    reviewed = service.review_decorator(application.id, "approved")
    db.commit()

    assert reviewed.status == "approved"
    assert reviewed.work_status == "available"
    user = db.execute(select(User).where(User.email == "new@styledecor.test")).scalar_one()
    assert user.role == "decorator"

    service.review_decorator(application.id, "rejected")
    db.commit()
    db.refresh(user)
    assert user.role == "user"

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from styledecor.api.auth import (
    Principal,
    get_current_principal,
    require_admin,
    require_decorator,
)
from styledecor.api.dependencies import get_db, get_payment_gateway
from styledecor.api.schemas.schemas import (
    BookingRequest,
    BookingResponse,
    BookingStatusUpdateRequest,
    BookingStatusUpdateResponse,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    DecoratorApplication,
    DecoratorResponse,
    DecoratorReviewRequest,
    DecoratorStatusUpdateRequest,
    PaymentRecordResponse,
    PaymentSuccessResponse,
    TrackingEventResponse,
    UserCreate,
    UserResponse,
)
from styledecor.application.assignment_service import AssignmentService
from styledecor.application.booking_service import BookingService
from styledecor.application.payment_service import PaymentService
from styledecor.domain.exceptions import (
    BookingNotFoundError,
    BookingOwnershipError,
    CheckoutNotAllowedError,
    DecoratorNotApprovedError,
    DecoratorNotFoundError,
    InvalidStateTransitionError,
    PaymentGatewayError,
    PaymentMetadataError,
    StyleDecorError,
    UnauthorizedTransitionError,
)
from styledecor.domain.state_machine import PaymentStatus, ServiceStatus
from styledecor.infrastructure.db.models import Booking, Decorator, PaymentRecord
from styledecor.infrastructure.repositories.user_repository import UserRepository


router = APIRouter()
logger = logging.getLogger(__name__)

_DOMAIN_ERROR_STATUS = {
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
    DecoratorNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    CheckoutNotAllowedError: status.HTTP_409_CONFLICT,
    DecoratorNotApprovedError: status.HTTP_409_CONFLICT,
    UnauthorizedTransitionError: status.HTTP_403_FORBIDDEN,
    BookingOwnershipError: status.HTTP_403_FORBIDDEN,
    PaymentMetadataError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PaymentGatewayError: status.HTTP_502_BAD_GATEWAY,
}


def _http_error(exc: StyleDecorError) -> HTTPException:
    status_code = _DOMAIN_ERROR_STATUS.get(
        type(exc),
        status.HTTP_400_BAD_REQUEST,
    )
    return HTTPException(status_code=status_code, detail=str(exc))


def _booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        booking_id=booking.id,
        tracking_id=booking.tracking_id,
        customer_email=booking.customer_email,
        service_id=booking.service_id,
        service_name=booking.service_name,
        cost=booking.cost,
        currency=booking.currency,
        location=booking.location,
        booking_date=booking.booking_date,
        service_status=booking.service_status,
        payment_status=booking.payment_status,
        transaction_id=booking.transaction_id,
        decorator_id=booking.decorator_id,
        decorator_name=booking.decorator_name,
        decorator_email=booking.decorator_email,
        created_at=booking.created_at,
        assigned_at=booking.assigned_at,
    )


def _decorator_response(decorator: Decorator) -> DecoratorResponse:
    return DecoratorResponse(
        id=decorator.id,
        name=decorator.name,
        email=decorator.email,
        phone=decorator.phone,
        district=decorator.district,
        specialities=decorator.specialities,
        status=decorator.status,
        work_status=decorator.work_status,
    )


def _payment_response(record: PaymentRecord) -> PaymentRecordResponse:
    return PaymentRecordResponse(
        transaction_id=record.transaction_id,
        amount=record.amount,
        currency=record.currency,
        customer_email=record.customer_email,
        booking_id=record.booking_id,
        tracking_id=record.tracking_id,
        paid_at=record.paid_at,
    )


def _status_update_response(booking: Booking, modified: bool) -> BookingStatusUpdateResponse:
    return BookingStatusUpdateResponse(
        booking_id=booking.id,
        tracking_id=booking.tracking_id,
        service_status=booking.service_status,
        modified=modified,
    )


@router.get("/")
def root():
    return {"message": "StyleDecor server is styling"}


@router.get("/health")
def health():
    return {"message": "StyleDecor booking engine is running"}


# -----------------------------
# Users
# -----------------------------
@router.post("/users", response_model=UserResponse)
def create_user(request: UserCreate, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    user = repo.get_by_email(request.email)
    created = user is None
    if created:
        user = repo.create_user(
            email=request.email,
            name=request.name,
            photo_url=request.photo_url,
        )
        db.flush()

    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        created=created,
    )


# -----------------------------
# Bookings
# -----------------------------
@router.post("/bookings", response_model=BookingResponse)
def create_booking(
    request: BookingRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    booking = BookingService(db).create_booking(
        customer_email=principal.email,
        service_id=request.service_id,
        service_name=request.service_name,
        cost=request.cost,
        customer_name=request.customer_name,
        location=request.location,
        booking_date=request.booking_date,
    )
    db.flush()
    return _booking_response(booking)


@router.get("/bookings", response_model=list[BookingResponse])
def list_my_bookings(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    bookings = BookingService(db).list_customer_bookings(principal.email)
    return [_booking_response(booking) for booking in bookings]


@router.get("/bookings/track/{tracking_id}", response_model=list[TrackingEventResponse])
def track_booking(tracking_id: str, db: Session = Depends(get_db)):
    events = BookingService(db).track(tracking_id)
    return [
        TrackingEventResponse(
            tracking_id=event.tracking_id,
            status=event.status,
            details=event.details,
            created_at=event.created_at,
        )
        for event in events
    ]


# -----------------------------
# Payments
# -----------------------------
@router.post("/payment-checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    request: CheckoutSessionRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
):
    service = PaymentService(db, gateway)
    try:
        session = service.create_checkout_session(
            booking_id=request.booking_id,
            customer_email=principal.email,
        )
    except StyleDecorError as exc:
        raise _http_error(exc) from exc

    booking = service.booking_service.get_booking(request.booking_id)
    return CheckoutSessionResponse(
        booking_id=booking.id,
        tracking_id=booking.tracking_id,
        session_id=session.session_id,
        amount=session.amount,
        currency=session.currency,
        key_id=session.key_id,
    )


@router.patch("/payment-success", response_model=PaymentSuccessResponse)
def payment_success(
    session_id: str,
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
):
    try:
        result = PaymentService(db, gateway).confirm_payment(session_id)
    except StyleDecorError as exc:
        logger.warning(
            "Payment reconciliation rejected. session_id=%s reason=%s",
            session_id,
            exc,
        )
        raise _http_error(exc) from exc

    return PaymentSuccessResponse(
        success=result.success,
        message=result.message,
        tracking_id=result.tracking_id,
        transaction_id=result.transaction_id,
        booking_modified=result.booking_modified,
        payment=_payment_response(result.payment) if result.payment else None,
    )


@router.get("/payments", response_model=list[PaymentRecordResponse])
def list_my_payments(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    records = PaymentService(db).list_customer_payments(principal.email)
    return [_payment_response(record) for record in records]


# -----------------------------
# Assignment (admin)
# -----------------------------
@router.get("/bookings-assign", response_model=list[BookingResponse])
def list_assignable_bookings(
    service_status: ServiceStatus = ServiceStatus.PENDING_ASSIGN,
    payment_status: PaymentStatus = PaymentStatus.PAID,
    _admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    bookings = AssignmentService(db).list_assignable_bookings(
        service_status=service_status,
        payment_status=payment_status,
    )
    return [_booking_response(booking) for booking in bookings]


@router.get("/decorators/available", response_model=list[DecoratorResponse])
def list_available_decorators(
    _admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    decorators = AssignmentService(db).list_available_decorators()
    return [_decorator_response(decorator) for decorator in decorators]


@router.post("/decorators", response_model=DecoratorResponse)
def apply_as_decorator(
    request: DecoratorApplication,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    decorator = AssignmentService(db).apply_decorator(
        name=request.name,
        email=principal.email,
        phone=request.phone,
        district=request.district,
        specialities=request.specialities,
    )
    db.flush()
    return _decorator_response(decorator)


@router.patch("/decorators/{decorator_id}", response_model=DecoratorResponse)
def review_decorator(
    decorator_id: str,
    request: DecoratorReviewRequest,
    _admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        decorator = AssignmentService(db).review_decorator(decorator_id, request.status)
    except StyleDecorError as exc:
        raise _http_error(exc) from exc
    return _decorator_response(decorator)


@router.patch("/bookings/status/{booking_id}", response_model=BookingStatusUpdateResponse)
def update_booking_status(
    booking_id: str,
    request: BookingStatusUpdateRequest,
    _admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    service = AssignmentService(db)
    if request.status == ServiceStatus.DECORATOR_ASSIGNED and not request.decorator_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="decorator_id is required to assign a decorator",
        )

    try:
        if request.decorator_id:
            booking, modified = service.assign(
                booking_id=booking_id,
                decorator_id=request.decorator_id,
                to_status=request.status,
                details=request.details,
            )
        else:
            booking, modified = service.update_status(
                booking_id=booking_id,
                to_status=request.status,
                details=request.details,
            )
    except StyleDecorError as exc:
        raise _http_error(exc) from exc

    return _status_update_response(booking, modified)


# -----------------------------
# Decorator self-service
# -----------------------------
@router.get("/bookings/assigned", response_model=list[BookingResponse])
def list_assigned_bookings(
    service_status: ServiceStatus | None = None,
    principal: Principal = Depends(require_decorator),
    db: Session = Depends(get_db),
):
    bookings = AssignmentService(db).list_decorator_bookings(
        decorator_email=principal.email,
        service_status=service_status,
    )
    return [_booking_response(booking) for booking in bookings]


@router.patch(
    "/bookings/decorator-status/{booking_id}",
    response_model=BookingStatusUpdateResponse,
)
def update_decorator_status(
    booking_id: str,
    request: DecoratorStatusUpdateRequest,
    principal: Principal = Depends(require_decorator),
    db: Session = Depends(get_db),
):
    try:
        booking, modified = BookingService(db).update_decorator_status(
            booking_id=booking_id,
            decorator_email=principal.email,
            to_status=request.status,
            details=request.details,
        )
    except StyleDecorError as exc:
        raise _http_error(exc) from exc

    return _status_update_response(booking, modified)

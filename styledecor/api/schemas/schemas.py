from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

from styledecor.domain.state_machine import PaymentStatus, ServiceStatus


class UserCreate(BaseModel):
    email: str
    name: str | None = None
    photo_url: str | None = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    role: str
    created: bool


class BookingRequest(BaseModel):
    service_id: str
    service_name: str
    cost: int = Field(ge=0)
    customer_name: str | None = None
    location: str | None = None
    booking_date: str | None = None


class BookingResponse(BaseModel):
    booking_id: str
    tracking_id: str
    customer_email: str
    service_id: str
    service_name: str
    cost: int
    currency: str
    location: str | None = None
    booking_date: str | None = None
    service_status: ServiceStatus
    payment_status: PaymentStatus
    transaction_id: str | None = None
    decorator_id: str | None = None
    decorator_name: str | None = None
    decorator_email: str | None = None
    created_at: datetime
    assigned_at: datetime | None = None


class TrackingEventResponse(BaseModel):
    tracking_id: str
    status: str
    details: str
    created_at: datetime


class CheckoutSessionRequest(BaseModel):
    booking_id: str


class CheckoutSessionResponse(BaseModel):
    booking_id: str
    tracking_id: str
    session_id: str
    amount: int
    currency: str
    key_id: str | None = None


class PaymentRecordResponse(BaseModel):
    transaction_id: str
    amount: int
    currency: str
    customer_email: str | None = None
    booking_id: str
    tracking_id: str
    paid_at: datetime


class PaymentSuccessResponse(BaseModel):
    success: bool
    message: str
    tracking_id: str | None = None
    transaction_id: str | None = None
    booking_modified: bool = False
    payment: PaymentRecordResponse | None = None


class DecoratorApplication(BaseModel):
    name: str
    phone: str | None = None
    district: str | None = None
    specialities: str | None = None


class DecoratorReviewRequest(BaseModel):
    status: Literal["approved", "rejected"]


class DecoratorResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: str | None = None
    district: str | None = None
    specialities: str | None = None
    status: str
    work_status: str


class BookingStatusUpdateRequest(BaseModel):
    status: ServiceStatus
    decorator_id: str | None = None
    details: str | None = None


class DecoratorStatusUpdateRequest(BaseModel):
    status: ServiceStatus
    details: str | None = None


class BookingStatusUpdateResponse(BaseModel):
    booking_id: str
    tracking_id: str
    service_status: ServiceStatus
    modified: bool

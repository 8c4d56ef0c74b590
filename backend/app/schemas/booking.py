# backend/app/schemas/booking.py
"""
Booking schemas for the tour booking platform.

Request models forbid unknown fields, so ``amount`` can never be set by a
client; it is always derived from the tour price. Responses embed the tour
and tourist summaries, the latest payment status and what the requesting
user may do with the booking.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..core.constants import MAX_PARTICIPANTS, MIN_PARTICIPANTS
from ..core.enums import BookingStatus
from ..domain.policies import (
    Actor,
    can_cancel_booking,
    can_moderate_booking,
    can_update_booking,
)
from ..models.booking import TourBooking
from ._strict_base import StrictModel, StrictRequestModel

PAYMENT_STATUS_NONE = "none"


class BookingCreate(StrictRequestModel):
    tour_id: str = Field(..., description="Tour to book")
    participants_count: int = Field(
        ..., ge=MIN_PARTICIPANTS, le=MAX_PARTICIPANTS, description="Number of participants"
    )


class BookingUpdate(StrictRequestModel):
    """
    Partial update of a booking.

    ``participants_count`` is only accepted while the booking is pending;
    ``status`` is reserved for the tour's guide and admins.
    """

    participants_count: Optional[int] = Field(None, ge=MIN_PARTICIPANTS, le=MAX_PARTICIPANTS)
    status: Optional[BookingStatus] = None


class UserSummary(StrictModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None


class TourSummary(StrictModel):
    id: str
    title: str
    price: Decimal
    start_date: date
    start_time: Optional[time] = None
    guide_id: str


class BookingPermissions(BaseModel):
    can_update: bool
    can_cancel: bool
    can_approve: bool
    can_reject: bool


class BookingResponse(StrictModel):
    id: str
    tour_id: str
    tourist_id: str
    participants_count: int
    amount: Decimal
    status: str
    status_label: str
    payment_status: str = PAYMENT_STATUS_NONE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tour: Optional[TourSummary] = None
    tourist: Optional[UserSummary] = None
    permissions: Optional[BookingPermissions] = None


class BookingCreatedResponse(BaseModel):
    message: str
    booking: BookingResponse
    next_step: str


class BookingStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    total_amount: Decimal


class MyBookingsResponse(BaseModel):
    bookings: List[BookingResponse]
    stats: BookingStats


class BookingStatisticsResponse(BaseModel):
    scope: str
    total: int
    pending: int
    approved: int
    rejected: int
    total_revenue: Decimal
    total_participants: int


class TourBookingsSummary(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    total_participants: int
    total_revenue: Decimal


class TourBookingsResponse(BaseModel):
    tour: TourSummary
    bookings: List[BookingResponse]
    summary: TourBookingsSummary


def build_booking_response(
    booking: TourBooking, actor: Actor, payment_status: Optional[str] = None
) -> BookingResponse:
    """Shape a booking for ``actor``, including what they may do next."""
    latest_payment = payment_status or PAYMENT_STATUS_NONE
    moderator = can_moderate_booking(actor, booking)
    response = BookingResponse.model_validate(booking)
    response.payment_status = latest_payment
    response.permissions = BookingPermissions(
        can_update=can_update_booking(actor, booking) and booking.is_pending,
        can_cancel=can_cancel_booking(actor, booking)
        and (actor.is_admin or booking.is_pending or latest_payment != "approved"),
        can_approve=moderator and booking.is_pending and latest_payment == "approved",
        can_reject=moderator and not booking.is_rejected,
    )
    return response

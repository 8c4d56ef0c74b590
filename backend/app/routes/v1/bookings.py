# backend/app/routes/v1/bookings.py
"""
Tour booking routes - API v1

Versioned booking endpoints under /api/v1/tour-bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List bookings visible to the caller, paginated
    POST / - Book a tour (tourists and admins)
    GET /my-bookings - The caller's own bookings with totals
    GET /statistics - Booking statistics scoped to the caller
    GET /{booking_id} - Booking details
    PATCH /{booking_id} - Change participants or status
    DELETE /{booking_id} - Cancel a booking
    POST /{booking_id}/approve - Approve a paid booking (guide or admin)
    POST /{booking_id}/reject - Reject a booking (guide or admin)
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import get_booking_service, get_current_actor
from ...core.config import settings
from ...core.constants import NEXT_STEP_CREATE_PAYMENT
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...domain.policies import Actor
from ...models.booking import TourBooking
from ...schemas.base_responses import ErrorResponse, PaginatedResponse
from ...schemas.booking import (
    BookingCreate,
    BookingCreatedResponse,
    BookingResponse,
    BookingStatisticsResponse,
    BookingStats,
    BookingUpdate,
    MyBookingsResponse,
    build_booking_response,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tour-bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()


def shape_bookings(
    service: BookingService, actor: Actor, bookings: List[TourBooking]
) -> List[BookingResponse]:
    """Build responses for ``bookings`` with one payment status lookup."""
    statuses = service.payment_statuses(bookings)
    return [build_booking_response(b, actor, statuses.get(b.id)) for b in bookings]


def _shape_one(service: BookingService, actor: Actor, booking: TourBooking) -> BookingResponse:
    return shape_bookings(service, actor, [booking])[0]


@router.get("", response_model=PaginatedResponse[BookingResponse])
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    tour_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=settings.max_per_page),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    """List bookings: admins see all, guides their tours' bookings, tourists their own."""

    def _list() -> PaginatedResponse[BookingResponse]:
        bookings, total = service.list_bookings(
            actor,
            status=booking_status.value if booking_status else None,
            tour_id=tour_id,
            page=page,
            per_page=per_page,
        )
        return PaginatedResponse[BookingResponse].build(
            shape_bookings(service, actor, bookings), total, page, per_page
        )

    try:
        return await asyncio.to_thread(_list)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Booking not allowed"},
        403: {"model": ErrorResponse, "description": "Caller cannot book tours"},
        404: {"model": ErrorResponse, "description": "Tour not found"},
    },
)
async def create_booking(
    payload: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreatedResponse:
    """Create a pending booking. The amount is derived from the tour price."""

    def _create() -> BookingResponse:
        booking = service.create_booking(actor, payload)
        return _shape_one(service, actor, booking)

    try:
        booking = await asyncio.to_thread(_create)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingCreatedResponse(
        message="Booking created. Please submit a payment to confirm it.",
        booking=booking,
        next_step=NEXT_STEP_CREATE_PAYMENT,
    )


@router.get("/my-bookings", response_model=MyBookingsResponse)
async def my_bookings(
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> MyBookingsResponse:
    def _mine() -> MyBookingsResponse:
        bookings, stats = service.my_bookings(actor)
        return MyBookingsResponse(
            bookings=shape_bookings(service, actor, bookings), stats=BookingStats(**stats)
        )

    try:
        return await asyncio.to_thread(_mine)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/statistics", response_model=BookingStatisticsResponse)
async def booking_statistics(
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingStatisticsResponse:
    try:
        stats = await asyncio.to_thread(service.statistics, actor)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingStatisticsResponse(**stats)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"model": ErrorResponse, "description": "Booking not found"}},
)
async def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    def _get() -> BookingResponse:
        return _shape_one(service, actor, service.get_booking(actor, booking_id))

    try:
        return await asyncio.to_thread(_get)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Update a booking.

    Tourists may change ``participants_count`` while the booking is pending;
    the tour's guide and admins may set ``status`` to approved or rejected.
    """

    def _update() -> BookingResponse:
        return _shape_one(service, actor, service.update_booking(actor, booking_id, payload))

    try:
        return await asyncio.to_thread(_update)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={409: {"model": ErrorResponse, "description": "Booking is already paid"}},
)
async def cancel_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> Response:
    """Cancel a booking and delete its payments."""
    try:
        await asyncio.to_thread(service.cancel_booking, actor, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Approve a booking; requires an approved payment."""

    def _approve() -> BookingResponse:
        return _shape_one(service, actor, service.approve_booking(actor, booking_id))

    try:
        return await asyncio.to_thread(_approve)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    def _reject() -> BookingResponse:
        return _shape_one(service, actor, service.reject_booking(actor, booking_id))

    try:
        return await asyncio.to_thread(_reject)
    except DomainException as e:
        handle_domain_exception(e)

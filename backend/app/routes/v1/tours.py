# backend/app/routes/v1/tours.py
"""
Tour routes - API v1

Endpoints:
    GET /{tour_id}/bookings - Bookings of one tour with a summary (guide or admin)
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_booking_service, get_current_actor
from ...core.exceptions import DomainException
from ...domain.policies import Actor
from ...schemas.base_responses import ErrorResponse
from ...schemas.booking import TourBookingsResponse, TourBookingsSummary, TourSummary
from ...services.booking_service import BookingService
from .bookings import handle_domain_exception, shape_bookings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tours-v1"])


@router.get(
    "/{tour_id}/bookings",
    response_model=TourBookingsResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Caller is not the tour's guide"},
        404: {"model": ErrorResponse, "description": "Tour not found"},
    },
)
async def tour_bookings(
    tour_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> TourBookingsResponse:
    """All bookings of a tour, visible to its guide and to admins."""

    def _load() -> TourBookingsResponse:
        tour, bookings, summary = service.tour_bookings(actor, tour_id)
        return TourBookingsResponse(
            tour=TourSummary.model_validate(tour),
            bookings=shape_bookings(service, actor, bookings),
            summary=TourBookingsSummary(**summary),
        )

    try:
        return await asyncio.to_thread(_load)
    except DomainException as e:
        handle_domain_exception(e)

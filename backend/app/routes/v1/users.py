# backend/app/routes/v1/users.py
"""
User routes - API v1

Endpoints:
    GET /{user_id}/payments - Payments made by a user (the user themself or an admin)
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_actor, get_payment_service
from ...core.exceptions import DomainException
from ...domain.policies import Actor
from ...schemas.base_responses import ErrorResponse
from ...schemas.payment import PaymentListResponse, PaymentStats
from ...services.payment_service import PaymentService
from .bookings import handle_domain_exception
from .payments import shape_payments

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users-v1"])


@router.get(
    "/{user_id}/payments",
    response_model=PaymentListResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def user_payments(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentListResponse:
    def _load() -> PaymentListResponse:
        payments, stats = service.user_payments(actor, user_id)
        return PaymentListResponse(
            payments=shape_payments(service, actor, payments), stats=PaymentStats(**stats)
        )

    try:
        return await asyncio.to_thread(_load)
    except DomainException as e:
        handle_domain_exception(e)

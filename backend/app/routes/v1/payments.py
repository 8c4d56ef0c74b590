# backend/app/routes/v1/payments.py
"""
Payment routes - API v1

Versioned payment endpoints under /api/v1/payments.
All business logic delegated to PaymentService.

Payments are submitted as multipart forms so the receipt image can be
uploaded with them.

Endpoints:
    POST / - Submit a payment with an optional receipt image
    GET / - List all payments (admin), paginated
    GET /my-payments - The caller's payments with totals
    GET /statistics - Payment statistics (admin)
    POST /bulk-approve - Approve several payments (admin)
    GET /{payment_id} - Payment details
    PATCH /{payment_id} - Update payer details or replace the receipt
    DELETE /{payment_id} - Delete a payment and reopen its booking
    POST /{payment_id}/approve - Approve a payment (admin)
    POST /{payment_id}/reject - Mark a payment as failed (admin)
"""

import asyncio
from decimal import Decimal
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ...api.dependencies import get_current_actor, get_payment_service
from ...core.config import settings
from ...core.constants import NEXT_STEP_WAIT_FOR_APPROVAL
from ...core.enums import PaymentStatus
from ...core.exceptions import DomainException
from ...domain.payables import PayableType
from ...domain.policies import Actor
from ...models.payment import Payment
from ...schemas.base_responses import ErrorResponse, PaginatedResponse
from ...schemas.payment import (
    BulkApproveRequest,
    BulkApproveResponse,
    MyPaymentsResponse,
    PaymentApprovalResponse,
    PaymentCreate,
    PaymentCreatedResponse,
    PaymentRejectionResponse,
    PaymentResponse,
    PaymentStatisticsResponse,
    PaymentStats,
    PaymentUpdate,
    build_payment_response,
)
from ...services.payment_service import PaymentService, ReceiptUpload
from .bookings import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


def shape_payments(
    service: PaymentService, actor: Actor, payments: List[Payment]
) -> List[PaymentResponse]:
    """Build responses for ``payments`` with their payable summaries and receipt URLs."""
    payables = service.describe_payables(payments)
    return [
        build_payment_response(
            p,
            actor,
            receipt_url=service.receipt_storage.url_for(p.receipt_image),
            payable=payables.get((p.payable_type, p.payable_id)),
        )
        for p in payments
    ]


def _shape_one(service: PaymentService, actor: Actor, payment: Payment) -> PaymentResponse:
    return shape_payments(service, actor, [payment])[0]


async def _read_receipt(receipt: Optional[UploadFile]) -> Optional[ReceiptUpload]:
    """Read at most one byte past the size limit; anything longer is rejected as too large."""
    if receipt is None or not receipt.filename:
        return None
    content = await receipt.read(settings.receipt_max_bytes + 1)
    return ReceiptUpload(
        content=content, content_type=receipt.content_type, filename=receipt.filename
    )


def _build_form_model(model: type, **fields: object):  # type: ignore[no-untyped-def]
    """Validate form fields into ``model``; failures surface as the usual 422 list."""
    try:
        return model(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post(
    "",
    response_model=PaymentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid amount, receipt or booking state"},
        403: {"model": ErrorResponse, "description": "Caller does not own the payable"},
        404: {"model": ErrorResponse, "description": "Payable not found"},
        409: {"model": ErrorResponse, "description": "A pending payment already exists"},
    },
)
async def create_payment(
    amount: Decimal = Form(...),
    payable_type: str = Form(...),
    payable_id: str = Form(...),
    transaction_id: Optional[str] = Form(None),
    payment_method: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    receipt_image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentCreatedResponse:
    """Submit a payment for a booking or plan. It stays pending until an admin verifies it."""
    payload = _build_form_model(
        PaymentCreate,
        amount=amount,
        payable_type=payable_type,
        payable_id=payable_id,
        transaction_id=transaction_id,
        payment_method=payment_method,
        notes=notes,
    )
    receipt = await _read_receipt(receipt_image)

    def _create() -> PaymentResponse:
        payment = service.create_payment(actor, payload, receipt)
        return _shape_one(service, actor, payment)

    try:
        payment = await asyncio.to_thread(_create)
    except DomainException as e:
        handle_domain_exception(e)
    return PaymentCreatedResponse(
        message="Payment submitted and awaiting approval.",
        payment=payment,
        next_step=NEXT_STEP_WAIT_FOR_APPROVAL,
    )


@router.get("", response_model=PaginatedResponse[PaymentResponse])
async def list_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    payable_type: Optional[PayableType] = Query(None),
    payer_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=settings.max_per_page),
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaginatedResponse[PaymentResponse]:
    def _list() -> PaginatedResponse[PaymentResponse]:
        payments, total = service.list_payments(
            actor,
            status=payment_status.value if payment_status else None,
            payable_type=payable_type.value if payable_type else None,
            payer_id=payer_id,
            page=page,
            per_page=per_page,
        )
        return PaginatedResponse[PaymentResponse].build(
            shape_payments(service, actor, payments), total, page, per_page
        )

    try:
        return await asyncio.to_thread(_list)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/my-payments", response_model=MyPaymentsResponse)
async def my_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_per_page, ge=1, le=settings.max_per_page),
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> MyPaymentsResponse:
    """The caller's payments, newest first; ``stats`` covers all of them regardless of filter."""

    def _mine() -> MyPaymentsResponse:
        payments, total, stats = service.my_payments(
            actor,
            status=payment_status.value if payment_status else None,
            page=page,
            per_page=per_page,
        )
        return MyPaymentsResponse(
            payments=shape_payments(service, actor, payments),
            stats=PaymentStats(**stats),
            total=total,
            page=page,
            per_page=per_page,
            has_next=page * per_page < total,
            has_prev=page > 1,
        )

    try:
        return await asyncio.to_thread(_mine)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/statistics", response_model=PaymentStatisticsResponse)
async def payment_statistics(
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentStatisticsResponse:
    try:
        stats = await asyncio.to_thread(service.statistics, actor)
    except DomainException as e:
        handle_domain_exception(e)
    return PaymentStatisticsResponse(**stats)


@router.post("/bulk-approve", response_model=BulkApproveResponse)
async def bulk_approve_payments(
    payload: BulkApproveRequest,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> BulkApproveResponse:
    """
    Approve several payments at once.

    Each payment is approved on its own; failures are reported per id and do
    not roll back the others.
    """
    try:
        result = await asyncio.to_thread(service.bulk_approve, actor, payload.payment_ids)
    except DomainException as e:
        handle_domain_exception(e)
    return BulkApproveResponse(
        approved=result.approved, failed=result.failed, errors=result.errors
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse, "description": "Payment not found"}},
)
async def get_payment(
    payment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    def _get() -> PaymentResponse:
        return _shape_one(service, actor, service.get_payment(actor, payment_id))

    try:
        return await asyncio.to_thread(_get)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: str,
    transaction_id: Optional[str] = Form(None),
    payment_method: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    receipt_image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    """Update the payer-supplied details of a pending payment."""
    payload = _build_form_model(
        PaymentUpdate,
        transaction_id=transaction_id,
        payment_method=payment_method,
        notes=notes,
    )
    receipt = await _read_receipt(receipt_image)

    def _update() -> PaymentResponse:
        payment = service.update_payment(actor, payment_id, payload, receipt)
        return _shape_one(service, actor, payment)

    try:
        return await asyncio.to_thread(_update)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{payment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_payment(
    payment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> Response:
    """Delete a payment; the booking it settled goes back to pending."""
    try:
        await asyncio.to_thread(service.delete_payment, actor, payment_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{payment_id}/approve",
    response_model=PaymentApprovalResponse,
    responses={400: {"model": ErrorResponse, "description": "Payment is not pending"}},
)
async def approve_payment(
    payment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentApprovalResponse:
    """Approve a payment. A pending booking it settles is approved with it."""

    def _approve() -> PaymentApprovalResponse:
        result = service.approve_payment(actor, payment_id)
        return PaymentApprovalResponse(
            message="Payment approved",
            payment=_shape_one(service, actor, result.payment),
            booking_updated=result.booking_updated,
        )

    try:
        return await asyncio.to_thread(_approve)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{payment_id}/reject", response_model=PaymentRejectionResponse)
async def reject_payment(
    payment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentRejectionResponse:
    """Mark a payment as failed and reject the booking it was paying for."""

    def _reject() -> PaymentRejectionResponse:
        result = service.reject_payment(actor, payment_id)
        return PaymentRejectionResponse(
            message="Payment rejected", payment=_shape_one(service, actor, result.payment)
        )

    try:
        return await asyncio.to_thread(_reject)
    except DomainException as e:
        handle_domain_exception(e)

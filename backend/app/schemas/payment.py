# backend/app/schemas/payment.py
"""
Payment schemas for the tour booking platform.

Payments are submitted as multipart forms so the receipt image can travel
with them; the route collects the form fields into ``PaymentCreate``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.constants import MAX_NOTES_LENGTH, MAX_PAYMENT_METHOD_LENGTH, MAX_TRANSACTION_ID_LENGTH
from ..domain.policies import Actor, can_delete_payment, can_moderate_payment, can_update_payment
from ..models.payment import Payment
from ._strict_base import StrictModel, StrictRequestModel
from .booking import UserSummary


class PaymentCreate(StrictRequestModel):
    amount: Decimal
    payable_type: str
    payable_id: str
    transaction_id: Optional[str] = Field(None, max_length=MAX_TRANSACTION_ID_LENGTH)
    payment_method: Optional[str] = Field(None, max_length=MAX_PAYMENT_METHOD_LENGTH)
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class PaymentUpdate(StrictRequestModel):
    """Payer-editable details. Status changes go through approve/reject."""

    transaction_id: Optional[str] = Field(None, max_length=MAX_TRANSACTION_ID_LENGTH)
    payment_method: Optional[str] = Field(None, max_length=MAX_PAYMENT_METHOD_LENGTH)
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class BulkApproveRequest(StrictRequestModel):
    payment_ids: List[str] = Field(..., min_length=1, description="Payments to approve")


class BulkApproveError(BaseModel):
    payment_id: str
    code: str
    message: str


class BulkApproveResponse(BaseModel):
    approved: int
    failed: int
    errors: List[BulkApproveError]


class PaymentPermissions(BaseModel):
    can_update: bool
    can_delete: bool
    can_approve: bool
    can_reject: bool


class PaymentResponse(StrictModel):
    id: str
    payer_id: str
    amount: Decimal
    status: str
    status_label: str
    payable_type: str
    payable_id: str
    receipt_image: Optional[str] = None
    receipt_url: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    payer: Optional[UserSummary] = None
    payable: Optional[Dict[str, Any]] = None
    permissions: Optional[PaymentPermissions] = None


class PaymentCreatedResponse(BaseModel):
    message: str
    payment: PaymentResponse
    next_step: str


class PaymentApprovalResponse(BaseModel):
    message: str
    payment: PaymentResponse
    booking_updated: bool


class PaymentRejectionResponse(BaseModel):
    message: str
    payment: PaymentResponse


class PaymentStats(BaseModel):
    total: int
    pending: int
    approved: int
    failed: int
    total_amount: Decimal


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    stats: PaymentStats


class MyPaymentsResponse(PaymentListResponse):
    total: int
    page: int
    per_page: int
    has_next: bool
    has_prev: bool


class AmountBreakdown(BaseModel):
    count: int
    amount: Decimal


class PaymentStatisticsResponse(PaymentStats):
    by_status: Dict[str, AmountBreakdown]
    by_payable_type: Dict[str, AmountBreakdown]


def build_payment_response(
    payment: Payment,
    actor: Actor,
    receipt_url: Optional[str] = None,
    payable: Optional[Dict[str, Any]] = None,
) -> PaymentResponse:
    """Shape a payment for ``actor``."""
    moderator = can_moderate_payment(actor)
    response = PaymentResponse.model_validate(payment)
    response.payable = payable
    response.receipt_url = receipt_url
    response.permissions = PaymentPermissions(
        can_update=can_update_payment(actor, payment),
        can_delete=can_delete_payment(actor, payment),
        can_approve=moderator and payment.is_pending,
        can_reject=moderator and payment.is_pending,
    )
    return response

# backend/app/services/payment_service.py
"""
Payment Service for the tour booking platform.

Payers upload a receipt against a payable (a tour booking or a plan); admins
verify it. Status changes and deletion go through ApprovalCoordinator so the
booking side of the cascade is applied in the same transaction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import MAX_PAYMENT_AMOUNT, MIN_PAYMENT_AMOUNT, MONEY_QUANTUM
from ..core.enums import ActivityType, PaymentStatus
from ..core.exceptions import (
    AmountMismatchException,
    DomainException,
    DuplicatePendingPaymentException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from ..domain.payables import PayableRef, PayableType, resolve_payable
from ..domain.policies import (
    Actor,
    can_create_payment_for,
    can_moderate_payment,
    can_update_payment,
    can_view_payment,
    can_view_payment_statistics,
    can_view_user_payments,
    ensure,
)
from ..models.payment import Payment
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .activity_service import ActivityService
from .approval_coordinator import ApprovalCoordinator, ApprovalResult
from .base import BaseService
from .receipt_storage import ReceiptStorage, get_receipt_storage, validate_receipt

if TYPE_CHECKING:
    from ..repositories.payment_repository import PaymentRepository
    from ..schemas.payment import PaymentCreate, PaymentUpdate

logger = logging.getLogger(__name__)


@dataclass
class ReceiptUpload:
    """An uploaded receipt image, already read into memory."""

    content: bytes
    content_type: Optional[str]
    filename: Optional[str]


@dataclass
class BulkApprovalResult:
    approved: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


def validate_payment_amount(amount: Decimal) -> Decimal:
    if amount < MIN_PAYMENT_AMOUNT or amount > MAX_PAYMENT_AMOUNT:
        raise ValidationException(
            f"amount must be between {MIN_PAYMENT_AMOUNT} and {MAX_PAYMENT_AMOUNT}",
            code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )
    if amount != amount.quantize(MONEY_QUANTUM):
        raise ValidationException(
            "amount cannot have more than 2 decimal places",
            code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )
    return amount.quantize(MONEY_QUANTUM)


class PaymentService(BaseService):
    """Service layer for receipt-backed payments."""

    def __init__(
        self,
        db: Session,
        repository: Optional["PaymentRepository"] = None,
        coordinator: Optional[ApprovalCoordinator] = None,
        activity_service: Optional[ActivityService] = None,
        receipt_storage: Optional[ReceiptStorage] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_payment_repository(db)
        self.receipt_storage = receipt_storage or get_receipt_storage()
        self.coordinator = coordinator or ApprovalCoordinator(db, receipt_storage=self.receipt_storage)
        self.activity_service = activity_service or ActivityService(db)

    def _get_payment_or_404(self, payment_id: str) -> Payment:
        payment = self.repository.get_with_details(payment_id)
        if payment is None:
            raise NotFoundException("Resource not found", code="NOT_FOUND")
        return payment

    def _store_receipt(self, receipt: Optional[ReceiptUpload]) -> Optional[str]:
        if receipt is None:
            return None
        extension = validate_receipt(receipt.content, receipt.content_type, receipt.filename)
        return self.receipt_storage.store(
            receipt.content, receipt.content_type or "application/octet-stream", extension
        )

    @BaseService.measure_operation("create_payment")
    def create_payment(
        self,
        actor: Actor,
        data: "PaymentCreate",
        receipt: Optional[ReceiptUpload] = None,
    ) -> Payment:
        """
        Record a pending payment against a booking or plan.

        Raises:
            ValidationException: amount out of range, amount mismatch, bad receipt
            NotFoundException: payable does not exist
            ForbiddenException: actor does not own the payable
            ConflictException: the payer already has a pending payment for it
            PreconditionException: the booking cannot accept a payment now
        """
        amount = validate_payment_amount(data.amount)
        ref = PayableRef.parse(data.payable_type, data.payable_id)
        payable = resolve_payable(self.db, ref)
        ensure(can_create_payment_for(actor, payable), actor, "create_payment", ref.id)

        if self.repository.has_pending_payment(ref, payer_id=actor.id):
            raise DuplicatePendingPaymentException(ref.kind.value, ref.id)

        if ref.kind == PayableType.TOUR_BOOKING:
            if amount != Decimal(payable.amount).quantize(MONEY_QUANTUM):
                raise AmountMismatchException(expected=str(payable.amount), provided=str(amount))
            if not payable.is_pending or self.repository.has_pending_payment(ref):
                raise PreconditionException(
                    "This booking cannot accept a payment in its current state",
                    code="BOOKING_NOT_PAYABLE",
                    details={"booking_id": payable.id, "status": payable.status},
                )

        receipt_path = self._store_receipt(receipt)
        try:
            with self.transaction():
                payment = self.repository.create(
                    payer_id=actor.id,
                    amount=amount,
                    status=PaymentStatus.PENDING.value,
                    payable_type=ref.kind.value,
                    payable_id=ref.id,
                    receipt_image=receipt_path,
                    transaction_id=data.transaction_id,
                    payment_method=data.payment_method,
                    notes=data.notes,
                )
                self.activity_service.record(
                    actor.id,
                    ActivityType.PAYMENT,
                    {
                        "action": "payment_created",
                        "payment_id": payment.id,
                        "payable_type": ref.kind.value,
                        "payable_id": ref.id,
                        "amount": str(amount),
                    },
                )
        except Exception:
            if receipt_path:
                self.receipt_storage.delete(receipt_path)
            raise

        self.log_operation(
            "create_payment", payment_id=payment.id, payable=f"{ref.kind.value}:{ref.id}"
        )
        return self._get_payment_or_404(payment.id)

    @BaseService.measure_operation("get_payment")
    def get_payment(self, actor: Actor, payment_id: str) -> Payment:
        payment = self._get_payment_or_404(payment_id)
        ensure(can_view_payment(actor, payment), actor, "view_payment", payment_id)
        return payment

    @BaseService.measure_operation("list_payments")
    def list_payments(
        self,
        actor: Actor,
        *,
        status: Optional[str] = None,
        payable_type: Optional[str] = None,
        payer_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[Payment], int]:
        ensure(can_moderate_payment(actor), actor, "list_payments")
        return self.repository.list_payments(
            status=status,
            payable_type=payable_type,
            payer_id=payer_id,
            page=page,
            per_page=per_page,
        )

    @BaseService.measure_operation("my_payments")
    def my_payments(
        self,
        actor: Actor,
        *,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[Payment], int, Dict[str, Any]]:
        """One page of the caller's payments, newest first, with totals over all of them."""
        payments, total = self.repository.list_payments(
            status=status, payer_id=actor.id, page=page, per_page=per_page
        )
        return payments, total, self.repository.get_statistics(payer_id=actor.id)

    @BaseService.measure_operation("user_payments")
    def user_payments(self, actor: Actor, user_id: str) -> Tuple[List[Payment], Dict[str, Any]]:
        ensure(can_view_user_payments(actor, user_id), actor, "view_user_payments", user_id)
        if RepositoryFactory.create_user_repository(self.db).get_by_id(user_id) is None:
            raise NotFoundException("Resource not found", code="NOT_FOUND")
        return (
            self.repository.get_payer_payments(user_id),
            self.repository.get_statistics(payer_id=user_id),
        )

    @BaseService.measure_operation("update_payment")
    def update_payment(
        self,
        actor: Actor,
        payment_id: str,
        data: "PaymentUpdate",
        receipt: Optional[ReceiptUpload] = None,
    ) -> Payment:
        """Update the payer-supplied details of a payment and optionally swap its receipt."""
        payment = self._get_payment_or_404(payment_id)
        ensure(can_update_payment(actor, payment), actor, "update_payment", payment_id)

        changes = data.model_dump(exclude_unset=True)
        if not changes and receipt is None:
            raise ValidationException("No changes provided", code="EMPTY_UPDATE")

        old_receipt = payment.receipt_image
        new_receipt = self._store_receipt(receipt)
        try:
            with self.transaction():
                for key, value in changes.items():
                    setattr(payment, key, value)
                if new_receipt:
                    payment.receipt_image = new_receipt
                self.db.flush()
        except Exception:
            if new_receipt:
                self.receipt_storage.delete(new_receipt)
            raise

        if new_receipt and old_receipt:
            self.receipt_storage.delete(old_receipt)
        self.log_operation("update_payment", payment_id=payment.id, fields=sorted(changes))
        return payment

    def approve_payment(self, actor: Actor, payment_id: str) -> ApprovalResult:
        return self.coordinator.approve_payment(actor, payment_id)

    def reject_payment(self, actor: Actor, payment_id: str) -> ApprovalResult:
        return self.coordinator.fail_payment(actor, payment_id)

    def delete_payment(self, actor: Actor, payment_id: str) -> None:
        self.coordinator.delete_payment(actor, payment_id)

    @BaseService.measure_operation("bulk_approve_payments")
    def bulk_approve(self, actor: Actor, payment_ids: List[str]) -> BulkApprovalResult:
        """
        Approve each payment independently; one failure does not stop the batch.

        Every id runs in its own coordinator transaction, so a failed id leaves
        earlier approvals committed.
        """
        ensure(can_moderate_payment(actor), actor, "bulk_approve")

        result = BulkApprovalResult()
        for payment_id in dict.fromkeys(payment_ids):
            try:
                self.coordinator.approve_payment(actor, payment_id)
                result.approved += 1
            except DomainException as e:
                result.failed += 1
                result.errors.append(
                    {"payment_id": payment_id, "code": e.code, "message": e.message}
                )

        prometheus_metrics.record_bulk_approval(result.approved, result.failed)
        self.log_operation(
            "bulk_approve", actor_id=actor.id, approved=result.approved, failed=result.failed
        )
        return result

    @BaseService.measure_operation("payment_statistics")
    def statistics(self, actor: Actor) -> Dict[str, Any]:
        ensure(can_view_payment_statistics(actor), actor, "payment_statistics")
        stats = self.repository.get_statistics()
        stats["by_status"] = self.repository.breakdown_by_status()
        stats["by_payable_type"] = self.repository.breakdown_by_payable_type()
        return stats

    def describe_payables(self, payments: List[Payment]) -> Dict[Tuple[str, str], Dict[str, Any]]:
        """Summaries of the payables behind ``payments``, keyed by (payable_type, payable_id)."""
        summaries: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for payment in payments:
            key = (payment.payable_type, payment.payable_id)
            if key in summaries:
                continue
            try:
                payable = resolve_payable(self.db, payment.payable_ref)
            except NotFoundException:
                continue
            if payment.is_for_booking:
                summaries[key] = {
                    "id": payable.id,
                    "type": payment.payable_type,
                    "status": payable.status,
                    "amount": payable.amount,
                    "participants_count": payable.participants_count,
                    "tour_title": payable.tour.title if payable.tour else None,
                }
            else:
                summaries[key] = {
                    "id": payable.id,
                    "type": payment.payable_type,
                    "title": payable.title,
                }
        return summaries

# backend/app/services/approval_coordinator.py
"""
Approval coordinator for payments and the bookings they settle.

Owns the three cascades between a payment and its booking:

- payment approved  -> pending booking approved
- payment failed    -> booking rejected
- payment deleted   -> booking reopened (back to pending)

Each cascade loads both entities, validates, and persists both mutations in
a single transaction. Every step re-checks the target state first, so a
duplicate attempt (two admins acting at once) either fails with
InvalidStateException or is a no-op, never a second side effect.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingStatus, PaymentStatus
from ..core.exceptions import NotFoundException, PreconditionException
from ..domain.payment_state import assert_payment_transition
from ..domain.policies import Actor, can_delete_payment, can_moderate_payment, ensure
from ..models.booking import TourBooking
from ..models.payment import Payment
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .receipt_storage import ReceiptStorage, get_receipt_storage


@dataclass
class ApprovalResult:
    payment: Payment
    booking: Optional[TourBooking]
    booking_updated: bool


class ApprovalCoordinator(BaseService):
    def __init__(
        self,
        db: Session,
        receipt_storage: Optional[ReceiptStorage] = None,
    ):
        super().__init__(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.receipt_storage = receipt_storage or get_receipt_storage()

    def _load_payment(self, payment_id: str) -> Payment:
        payment = self.payment_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Resource not found", code="NOT_FOUND")
        return payment

    def _booking_for(self, payment: Payment) -> Optional[TourBooking]:
        if not payment.is_for_booking:
            return None
        return self.booking_repository.get_by_id(payment.payable_id)

    @BaseService.measure_operation("approve_payment")
    def approve_payment(self, actor: Actor, payment_id: str) -> ApprovalResult:
        """
        Approve a payment and, when it settles a pending booking, approve the booking.

        Raises:
            ForbiddenException: actor is not an admin
            NotFoundException: payment does not exist
            InvalidStateException: payment is not pending
            PreconditionException: the booking has already been rejected
        """
        ensure(can_moderate_payment(actor), actor, "moderate_payment", payment_id)

        with self.transaction():
            payment = self._load_payment(payment_id)
            assert_payment_transition(payment.status, PaymentStatus.APPROVED.value)

            booking = self._booking_for(payment)
            if booking is not None and booking.is_rejected:
                raise PreconditionException(
                    "Cannot approve a payment for a rejected booking",
                    code="BOOKING_REJECTED",
                    details={"booking_id": booking.id},
                )

            payment.approve()
            booking_updated = False
            if booking is not None and booking.is_pending:
                booking.approve()
                booking_updated = True
            self.db.flush()

        prometheus_metrics.record_status_transition("payment", PaymentStatus.APPROVED.value)
        if booking_updated:
            prometheus_metrics.record_status_transition("booking", BookingStatus.APPROVED.value)
        self.log_operation(
            "approve_payment",
            payment_id=payment.id,
            actor_id=actor.id,
            booking_updated=booking_updated,
        )
        return ApprovalResult(payment=payment, booking=booking, booking_updated=booking_updated)

    @BaseService.measure_operation("fail_payment")
    def fail_payment(self, actor: Actor, payment_id: str) -> ApprovalResult:
        """
        Mark a payment as failed and reject the booking it settles.

        Raises:
            ForbiddenException: actor is not an admin
            NotFoundException: payment does not exist
            InvalidStateException: payment is not pending
        """
        ensure(can_moderate_payment(actor), actor, "moderate_payment", payment_id)

        with self.transaction():
            payment = self._load_payment(payment_id)
            payment.mark_as_failed()

            booking = self._booking_for(payment)
            booking_updated = False
            if booking is not None and not booking.is_rejected:
                booking.reject()
                booking_updated = True
            self.db.flush()

        prometheus_metrics.record_status_transition("payment", PaymentStatus.FAILED.value)
        if booking_updated:
            prometheus_metrics.record_status_transition("booking", BookingStatus.REJECTED.value)
        self.log_operation(
            "fail_payment",
            payment_id=payment.id,
            actor_id=actor.id,
            booking_updated=booking_updated,
        )
        return ApprovalResult(payment=payment, booking=booking, booking_updated=booking_updated)

    @BaseService.measure_operation("delete_payment")
    def delete_payment(self, actor: Actor, payment_id: str) -> Optional[TourBooking]:
        """
        Delete a payment, reopen its booking and discard the stored receipt.

        The booking stays approved while another approved payment still
        settles it.
        """
        with self.transaction():
            payment = self._load_payment(payment_id)
            ensure(can_delete_payment(actor, payment), actor, "delete_payment", payment_id)

            booking = self._booking_for(payment)
            receipt_path = payment.receipt_image
            payable = payment.payable_ref

            self.db.delete(payment)
            self.db.flush()

            if booking is not None and not (
                booking.is_approved and self.payment_repository.has_approved_payment(payable)
            ):
                booking.reopen()
                self.db.flush()

        if receipt_path:
            self.receipt_storage.delete(receipt_path)
        self.log_operation("delete_payment", payment_id=payment_id, actor_id=actor.id)
        return booking

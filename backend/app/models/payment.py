"""
Payment model.

A payment is a claim, backed by an uploaded receipt, that the payer has
settled a payable (a tour booking or a plan). Admins verify the receipt and
approve or fail the payment. The payable is referenced by a
``(payable_type, payable_id)`` pair resolved through
``app.domain.payables``; there is no foreign key on ``payable_id``.
"""

from datetime import datetime, timezone
import logging
from typing import Any, cast

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import PAYMENT_STATUS_LABELS, PaymentStatus
from ..database import Base
from ..domain.payables import PayableRef, PayableType
from ..domain.payment_state import assert_payment_transition

logger = logging.getLogger(__name__)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    payer_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    payable_type = Column(String(32), nullable=False)
    payable_id = Column(String(26), nullable=False)
    receipt_image = Column(String(500), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    payment_method = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    payer = relationship("User", foreign_keys=[payer_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'failed')",
            name="ck_payments_status",
        ),
        CheckConstraint(
            "payable_type IN ('tour_bookings', 'plans')",
            name="ck_payments_payable_type",
        ),
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        Index("ix_payments_payable", "payable_type", "payable_id"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = PaymentStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Payment {self.id}: payer={self.payer_id}, amount={self.amount}, "
            f"payable={self.payable_type}:{self.payable_id}, status={self.status}>"
        )

    @property
    def payable_ref(self) -> PayableRef:
        return PayableRef(PayableType(self.payable_type), cast(str, self.payable_id))

    @property
    def is_for_booking(self) -> bool:
        return self.payable_type == PayableType.TOUR_BOOKING.value

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    @property
    def is_approved(self) -> bool:
        return self.status == PaymentStatus.APPROVED.value

    @property
    def is_failed(self) -> bool:
        return self.status == PaymentStatus.FAILED.value

    @property
    def status_label(self) -> str:
        return PAYMENT_STATUS_LABELS.get(PaymentStatus(self.status), str(self.status))

    def approve(self) -> None:
        assert_payment_transition(cast(str, self.status), PaymentStatus.APPROVED.value)
        self.status = PaymentStatus.APPROVED.value
        logger.info(f"Payment {self.id} approved")

    def mark_as_failed(self) -> None:
        assert_payment_transition(cast(str, self.status), PaymentStatus.FAILED.value)
        self.status = PaymentStatus.FAILED.value
        logger.info(f"Payment {self.id} marked as failed")

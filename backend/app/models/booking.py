# backend/app/models/booking.py
"""
Tour booking model.

A booking is a tourist's reservation request against a tour. The amount is
snapshotted from the tour price at creation and recomputed whenever the
participant count changes. Status only moves through the transitions in
``app.domain.booking_state``.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, cast

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..core.constants import MONEY_QUANTUM
from ..core.enums import BOOKING_STATUS_LABELS, BookingStatus
from ..database import Base
from ..domain.booking_state import assert_booking_transition

logger = logging.getLogger(__name__)


def compute_booking_amount(price: Decimal, participants_count: int) -> Decimal:
    """Tour price times participants, rounded to cents."""
    return (Decimal(price) * participants_count).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class TourBooking(Base):
    __tablename__ = "tour_bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tour_id = Column(String(26), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    tourist_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    participants_count = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    tour = relationship("Tour", backref="bookings")
    tourist = relationship("User", foreign_keys=[tourist_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_tour_bookings_status",
        ),
        CheckConstraint("participants_count > 0", name="check_participants_positive"),
        CheckConstraint("amount >= 0", name="check_booking_amount_non_negative"),
        Index("ix_tour_bookings_tour_tourist", "tour_id", "tourist_id"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<TourBooking {self.id}: tour={self.tour_id}, tourist={self.tourist_id}, "
            f"participants={self.participants_count}, amount={self.amount}, status={self.status}>"
        )

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.PENDING.value

    @property
    def is_approved(self) -> bool:
        return self.status == BookingStatus.APPROVED.value

    @property
    def is_rejected(self) -> bool:
        return self.status == BookingStatus.REJECTED.value

    @property
    def status_label(self) -> str:
        return BOOKING_STATUS_LABELS.get(BookingStatus(self.status), str(self.status))

    def set_participants(self, participants_count: int, price: Decimal) -> None:
        """Change the head count and recompute the amount from the tour price."""
        self.participants_count = participants_count
        self.amount = compute_booking_amount(price, participants_count)

    def approve(self) -> None:
        assert_booking_transition(cast(str, self.status), BookingStatus.APPROVED.value)
        self.status = BookingStatus.APPROVED.value
        logger.info(f"Booking {self.id} approved")

    def reject(self) -> None:
        assert_booking_transition(cast(str, self.status), BookingStatus.REJECTED.value)
        self.status = BookingStatus.REJECTED.value
        logger.info(f"Booking {self.id} rejected")

    def reopen(self) -> None:
        """Put the booking back to pending so a new payment can be made."""
        if self.is_pending:
            return
        assert_booking_transition(cast(str, self.status), BookingStatus.PENDING.value)
        self.status = BookingStatus.PENDING.value
        logger.info(f"Booking {self.id} reopened")

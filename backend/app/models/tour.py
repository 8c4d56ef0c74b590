# backend/app/models/tour.py
"""
Tour and Plan models.

Tours are published by guides and supply the price and start date that
bookings are computed against. Plans are user-built itineraries; the only
thing this service does with them is accept payments against them.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Optional, cast

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, Text, Time
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Tour(Base):
    __tablename__ = "tours"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    guide_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    payment_method = Column(String(50), nullable=True)
    details = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    guide = relationship("User", foreign_keys=[guide_id])

    __table_args__ = (CheckConstraint("price >= 0", name="check_tour_price_non_negative"),)

    def __repr__(self) -> str:
        return f"<Tour {self.id}: {self.title} price={self.price} start={self.start_date}>"

    def starts_at(self) -> datetime:
        """Start of the tour as an aware UTC datetime (midnight when no time is set)."""
        start_date = cast(date, self.start_date)
        start_time = cast(Optional[time], self.start_time) or time(0, 0)
        return datetime.combine(start_date, start_time, tzinfo=timezone.utc)

    def has_started(self, now: Optional[datetime] = None) -> bool:
        current = now or datetime.now(timezone.utc)
        return self.starts_at() <= current

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "start_date": self.start_date,
            "start_time": self.start_time,
            "guide_id": self.guide_id,
        }


class Plan(Base):
    __tablename__ = "plans"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"<Plan {self.id}: {self.title}>"

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "user_id": self.user_id}

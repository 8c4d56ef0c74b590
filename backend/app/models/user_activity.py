# backend/app/models/user_activity.py
"""Append-only log of user actions."""

from datetime import datetime, timezone

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, String
import ulid

from ..database import Base


class UserActivity(Base):
    __tablename__ = "user_activities"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_type = Column(String(32), nullable=False)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint(
            "activity_type IN ('search', 'visit', 'like', 'comment', 'plan_creation', "
            "'booking', 'payment')",
            name="ck_user_activities_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<UserActivity {self.id}: user={self.user_id} type={self.activity_type}>"

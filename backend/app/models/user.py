# backend/app/models/user.py
"""
User model for the tour booking platform.

Users carry a single role (tourist, guide or admin). Authentication
happens elsewhere; this table only supplies identity and role to the
booking and payment workflows.
"""

from datetime import datetime, timezone
import logging

from sqlalchemy import CheckConstraint, Column, DateTime, String
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.TOURIST.value)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("role IN ('tourist', 'guide', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_guide(self) -> bool:
        return self.role == RoleName.GUIDE.value

    @property
    def is_tourist(self) -> bool:
        return self.role == RoleName.TOURIST.value

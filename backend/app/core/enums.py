# backend/app/core/enums.py
"""
Core enums for the tour booking platform.

These values are persisted as plain strings and guarded by database
check constraints, so they double as the wire format of the API.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a user can hold. A user has exactly one role."""

    ADMIN = "admin"
    GUIDE = "guide"
    TOURIST = "tourist"


class BookingStatus(str, Enum):
    """Tour booking lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    """Payment lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    FAILED = "failed"


class ActivityType(str, Enum):
    """Kinds of entries in the user activity log."""

    SEARCH = "search"
    VISIT = "visit"
    LIKE = "like"
    COMMENT = "comment"
    PLAN_CREATION = "plan_creation"
    BOOKING = "booking"
    PAYMENT = "payment"


BOOKING_STATUS_LABELS = {
    BookingStatus.PENDING: "Pending",
    BookingStatus.APPROVED: "Approved",
    BookingStatus.REJECTED: "Rejected",
}

PAYMENT_STATUS_LABELS = {
    PaymentStatus.PENDING: "Pending",
    PaymentStatus.APPROVED: "Approved",
    PaymentStatus.FAILED: "Failed",
}

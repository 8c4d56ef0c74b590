"""
Database models for the tour booking platform.

- User: identity and role
- Tour, Plan: payable collaborators
- TourBooking: reservations against tours
- Payment: receipt-backed payments against a booking or plan
- UserActivity: append-only activity log
"""

from .booking import TourBooking
from .payment import Payment
from .tour import Plan, Tour
from .user import User
from .user_activity import UserActivity

__all__ = [
    "Payment",
    "Plan",
    "Tour",
    "TourBooking",
    "User",
    "UserActivity",
]

# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the tour booking platform.

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_with_details(booking_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .payment_repository import PaymentRepository
from .tour_repository import PlanRepository, TourRepository
from .user_activity_repository import UserActivityRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "PaymentRepository",
    "PlanRepository",
    "RepositoryFactory",
    "TourRepository",
    "UserActivityRepository",
    "UserRepository",
]

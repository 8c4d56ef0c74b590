# backend/app/repositories/factory.py
"""
Repository Factory for the tour booking platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .payment_repository import PaymentRepository
    from .tour_repository import PlanRepository, TourRepository
    from .user_activity_repository import UserActivityRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for tour booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment operations."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_tour_repository(db: Session) -> "TourRepository":
        from .tour_repository import TourRepository

        return TourRepository(db)

    @staticmethod
    def create_plan_repository(db: Session) -> "PlanRepository":
        from .tour_repository import PlanRepository

        return PlanRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_user_activity_repository(db: Session) -> "UserActivityRepository":
        from .user_activity_repository import UserActivityRepository

        return UserActivityRepository(db)

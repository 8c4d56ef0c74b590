# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.payment_service import PaymentService
from ...services.receipt_storage import ReceiptStorage, get_receipt_storage
from .database import get_db


def get_receipt_storage_dep() -> ReceiptStorage:
    """Get the configured receipt storage backend."""
    return get_receipt_storage()


def get_booking_service(
    db: Session = Depends(get_db),
    receipt_storage: ReceiptStorage = Depends(get_receipt_storage_dep),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        receipt_storage: Storage used to discard receipts of cancelled bookings

    Returns:
        BookingService instance
    """
    return BookingService(db, receipt_storage=receipt_storage)


def get_payment_service(
    db: Session = Depends(get_db),
    receipt_storage: ReceiptStorage = Depends(get_receipt_storage_dep),
) -> PaymentService:
    """Get payment service instance with all dependencies."""
    return PaymentService(db, receipt_storage=receipt_storage)

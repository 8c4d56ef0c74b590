"""Application-wide constants for the tour booking platform."""

from __future__ import annotations

from decimal import Decimal

BRAND_NAME = "Tour Booking"

# API metadata
API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = "Tour bookings, receipt payments and the admin approval workflow."
API_VERSION = "1.0.0"

# Booking constraints
MIN_PARTICIPANTS = 1
MAX_PARTICIPANTS = 50

# Payment constraints
MIN_PAYMENT_AMOUNT = Decimal("0.01")
MAX_PAYMENT_AMOUNT = Decimal("999999.99")
MONEY_QUANTUM = Decimal("0.01")
MAX_TRANSACTION_ID_LENGTH = 100
MAX_PAYMENT_METHOD_LENGTH = 50
MAX_NOTES_LENGTH = 500

# Receipt uploads
ALLOWED_RECEIPT_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
}
ALLOWED_RECEIPT_EXTENSIONS = {"jpg", "jpeg", "png"}

# Query limits
DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100

# Next-step hints returned to clients after a create
NEXT_STEP_CREATE_PAYMENT = "create_payment"
NEXT_STEP_WAIT_FOR_APPROVAL = "wait_for_approval"

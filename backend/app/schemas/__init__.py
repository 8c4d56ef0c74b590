# backend/app/schemas/__init__.py
"""
Pydantic schemas for the tour booking platform.

Request models reject unknown fields; response models are built from ORM
objects together with the caller's permissions.
"""

from .base_responses import ErrorDetail, ErrorResponse, HealthResponse, PaginatedResponse
from .booking import (
    BookingCreate,
    BookingCreatedResponse,
    BookingPermissions,
    BookingResponse,
    BookingStatisticsResponse,
    BookingStats,
    BookingUpdate,
    MyBookingsResponse,
    TourBookingsResponse,
    TourBookingsSummary,
    TourSummary,
    UserSummary,
)
from .payment import (
    AmountBreakdown,
    BulkApproveError,
    BulkApproveRequest,
    BulkApproveResponse,
    MyPaymentsResponse,
    PaymentApprovalResponse,
    PaymentCreate,
    PaymentCreatedResponse,
    PaymentListResponse,
    PaymentPermissions,
    PaymentRejectionResponse,
    PaymentResponse,
    PaymentStatisticsResponse,
    PaymentStats,
    PaymentUpdate,
)

__all__ = [
    # Common
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "PaginatedResponse",
    # Bookings
    "BookingCreate",
    "BookingCreatedResponse",
    "BookingPermissions",
    "BookingResponse",
    "BookingStatisticsResponse",
    "BookingStats",
    "BookingUpdate",
    "MyBookingsResponse",
    "TourBookingsResponse",
    "TourBookingsSummary",
    "TourSummary",
    "UserSummary",
    # Payments
    "AmountBreakdown",
    "BulkApproveError",
    "BulkApproveRequest",
    "BulkApproveResponse",
    "MyPaymentsResponse",
    "PaymentApprovalResponse",
    "PaymentCreate",
    "PaymentCreatedResponse",
    "PaymentListResponse",
    "PaymentPermissions",
    "PaymentRejectionResponse",
    "PaymentResponse",
    "PaymentStatisticsResponse",
    "PaymentStats",
    "PaymentUpdate",
]

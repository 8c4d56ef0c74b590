# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the tour booking platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the uniform error body."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class PreconditionException(DomainException):
    """Raised when the current state does not permit the action."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateException(DomainException):
    """Raised when an action is a no-op or contradicts a terminal state."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"WWW-Authenticate": "Bearer"}
        return exc


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class AmountMismatchException(ValidationException):
    """Raised when a payment amount differs from the booking amount."""

    def __init__(self, expected: str, provided: str):
        super().__init__(
            message="amount mismatch",
            code="AMOUNT_MISMATCH",
            details={"expected": expected, "provided": provided},
        )


class DuplicatePendingPaymentException(ConflictException):
    """Raised when the payer already has a pending payment for the payable."""

    def __init__(self, payable_type: str, payable_id: str):
        super().__init__(
            message="A pending payment already exists for this item",
            code="DUPLICATE_PENDING_PAYMENT",
            details={"payable_type": payable_type, "payable_id": payable_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """

"""Booking state machine."""

from ..core.enums import BookingStatus
from ..core.exceptions import InvalidStateException

# Moves back to pending happen only when a booking's payment is deleted.
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.REJECTED},
    BookingStatus.APPROVED: {BookingStatus.REJECTED, BookingStatus.PENDING},
    BookingStatus.REJECTED: {BookingStatus.PENDING},
}


def can_transition_booking(current: str, target: str) -> bool:
    allowed = BOOKING_TRANSITIONS.get(BookingStatus(current), set())
    return BookingStatus(target) in allowed


def assert_booking_transition(current: str, target: str) -> None:
    current_value = BookingStatus(current).value
    target_value = BookingStatus(target).value
    if current_value == target_value:
        raise InvalidStateException(
            f"Booking is already {current_value}",
            code=f"BOOKING_ALREADY_{current_value.upper()}",
            details={"status": current_value},
        )
    if not can_transition_booking(current_value, target_value):
        raise InvalidStateException(
            f"Invalid booking transition: {current_value} -> {target_value}",
            code="INVALID_BOOKING_TRANSITION",
            details={"from": current_value, "to": target_value},
        )

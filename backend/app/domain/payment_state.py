"""Payment state machine."""

from ..core.enums import PaymentStatus
from ..core.exceptions import InvalidStateException

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.APPROVED, PaymentStatus.FAILED},
    PaymentStatus.APPROVED: set(),
    PaymentStatus.FAILED: set(),
}


def can_transition_payment(current: str, target: str) -> bool:
    allowed = PAYMENT_TRANSITIONS.get(PaymentStatus(current), set())
    return PaymentStatus(target) in allowed


def assert_payment_transition(current: str, target: str) -> None:
    current_value = PaymentStatus(current).value
    target_value = PaymentStatus(target).value
    if current_value == target_value:
        raise InvalidStateException(
            f"Payment is already {current_value}",
            code=f"PAYMENT_ALREADY_{current_value.upper()}",
            details={"status": current_value},
        )
    if not can_transition_payment(current_value, target_value):
        raise InvalidStateException(
            f"Invalid payment transition: {current_value} -> {target_value}",
            code="INVALID_PAYMENT_TRANSITION",
            details={"from": current_value, "to": target_value},
        )

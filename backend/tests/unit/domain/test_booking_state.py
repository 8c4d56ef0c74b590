"""Booking state machine guards."""

import pytest

from app.core.exceptions import InvalidStateException
from app.domain.booking_state import assert_booking_transition, can_transition_booking


class TestBookingTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "approved"),
            ("pending", "rejected"),
            ("approved", "rejected"),
            ("approved", "pending"),
            ("rejected", "pending"),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert can_transition_booking(current, target)
        assert_booking_transition(current, target)

    def test_rejected_cannot_be_approved_directly(self):
        assert not can_transition_booking("rejected", "approved")
        with pytest.raises(InvalidStateException) as exc_info:
            assert_booking_transition("rejected", "approved")
        assert exc_info.value.code == "INVALID_BOOKING_TRANSITION"
        assert exc_info.value.details == {"from": "rejected", "to": "approved"}

    @pytest.mark.parametrize("status", ["pending", "approved", "rejected"])
    def test_same_state_is_reported_as_already(self, status):
        with pytest.raises(InvalidStateException) as exc_info:
            assert_booking_transition(status, status)
        assert exc_info.value.code == f"BOOKING_ALREADY_{status.upper()}"
        assert exc_info.value.status_code == 400

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValueError):
            assert_booking_transition("cancelled", "pending")

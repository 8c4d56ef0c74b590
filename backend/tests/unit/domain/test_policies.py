"""Authorization policies are pure functions of actor and resource."""

from types import SimpleNamespace

import pytest

from app.core.exceptions import ForbiddenException
from app.domain import policies
from app.domain.policies import Actor, ensure

ADMIN = Actor(id="admin", role="admin")
GUIDE = Actor(id="guide", role="guide")
OTHER_GUIDE = Actor(id="guide-2", role="guide")
TOURIST = Actor(id="tourist", role="tourist")
STRANGER = Actor(id="stranger", role="tourist")


def _booking(tourist_id="tourist", guide_id="guide"):
    return SimpleNamespace(tourist_id=tourist_id, tour=SimpleNamespace(guide_id=guide_id))


def _payment(status="pending", payer_id="tourist"):
    return SimpleNamespace(
        payer_id=payer_id,
        is_pending=status == "pending",
        is_failed=status == "failed",
        is_approved=status == "approved",
    )


class TestEnsure:
    def test_allowed_passes(self):
        ensure(True, TOURIST, "anything")

    def test_denied_raises_generic_forbidden(self):
        with pytest.raises(ForbiddenException) as exc_info:
            ensure(False, TOURIST, "moderate_payment", "p1")
        assert exc_info.value.message == "unauthorized"
        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.details == {}


class TestBookingPolicies:
    def test_only_tourists_and_admins_create(self):
        assert policies.can_create_booking(TOURIST)
        assert policies.can_create_booking(ADMIN)
        assert not policies.can_create_booking(GUIDE)

    def test_view(self):
        booking = _booking()
        assert policies.can_view_booking(TOURIST, booking)
        assert policies.can_view_booking(GUIDE, booking)
        assert policies.can_view_booking(ADMIN, booking)
        assert not policies.can_view_booking(OTHER_GUIDE, booking)
        assert not policies.can_view_booking(STRANGER, booking)

    def test_moderation_belongs_to_the_tour_guide(self):
        booking = _booking()
        assert policies.can_moderate_booking(GUIDE, booking)
        assert policies.can_moderate_booking(ADMIN, booking)
        assert not policies.can_moderate_booking(OTHER_GUIDE, booking)
        assert not policies.can_moderate_booking(TOURIST, booking)

    def test_guide_who_booked_is_not_treated_as_tour_guide(self):
        booking = _booking(tourist_id="guide-2", guide_id="guide")
        assert policies.can_update_booking(OTHER_GUIDE, booking)
        assert not policies.can_moderate_booking(OTHER_GUIDE, booking)

    def test_cancel(self):
        booking = _booking()
        assert policies.can_cancel_booking(TOURIST, booking)
        assert policies.can_cancel_booking(ADMIN, booking)
        assert not policies.can_cancel_booking(GUIDE, booking)

    def test_tour_bookings(self):
        tour = SimpleNamespace(guide_id="guide")
        assert policies.can_view_tour_bookings(GUIDE, tour)
        assert policies.can_view_tour_bookings(ADMIN, tour)
        assert not policies.can_view_tour_bookings(OTHER_GUIDE, tour)
        assert not policies.can_view_tour_bookings(TOURIST, tour)


class TestPaymentPolicies:
    def test_create_for_own_booking_or_plan(self):
        assert policies.can_create_payment_for(TOURIST, SimpleNamespace(tourist_id="tourist"))
        assert policies.can_create_payment_for(TOURIST, SimpleNamespace(user_id="tourist"))
        assert not policies.can_create_payment_for(STRANGER, SimpleNamespace(tourist_id="tourist"))
        assert policies.can_create_payment_for(ADMIN, SimpleNamespace(tourist_id="tourist"))

    def test_update_only_while_pending(self):
        assert policies.can_update_payment(TOURIST, _payment("pending"))
        assert not policies.can_update_payment(TOURIST, _payment("approved"))
        assert not policies.can_update_payment(STRANGER, _payment("pending"))
        assert policies.can_update_payment(ADMIN, _payment("approved"))

    @pytest.mark.parametrize("status,allowed", [("pending", True), ("failed", True), ("approved", False)])
    def test_payer_delete_depends_on_status(self, status, allowed):
        assert policies.can_delete_payment(TOURIST, _payment(status)) is allowed

    def test_admin_deletes_any_payment(self):
        assert policies.can_delete_payment(ADMIN, _payment("approved"))

    def test_moderation_and_statistics_are_admin_only(self):
        assert policies.can_moderate_payment(ADMIN)
        assert not policies.can_moderate_payment(GUIDE)
        assert policies.can_view_payment_statistics(ADMIN)
        assert not policies.can_view_payment_statistics(TOURIST)

    def test_user_payments(self):
        assert policies.can_view_user_payments(TOURIST, "tourist")
        assert not policies.can_view_user_payments(TOURIST, "someone-else")
        assert policies.can_view_user_payments(ADMIN, "someone-else")

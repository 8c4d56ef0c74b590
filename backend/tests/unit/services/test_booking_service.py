"""BookingService with mocked repositories."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from app.domain.policies import Actor
from app.models.booking import TourBooking
from app.models.payment import Payment
from app.models.tour import Tour
from app.schemas.booking import BookingCreate, BookingUpdate
from app.services.booking_service import BookingService, validate_participants_count

TOURIST = Actor(id="tourist-1", role="tourist")
GUIDE = Actor(id="guide-1", role="guide")
ADMIN = Actor(id="admin-1", role="admin")


def _tour(days_ahead: int = 10, guide_id: str = "guide-1") -> Tour:
    return Tour(
        id="tour-1",
        guide_id=guide_id,
        title="Canal Cruise",
        price=Decimal("100.00"),
        start_date=date.today() + timedelta(days=days_ahead),
    )


def _booking(status: str = "pending", tourist_id: str = "tourist-1") -> TourBooking:
    return TourBooking(
        id="booking-1",
        tour_id="tour-1",
        tourist_id=tourist_id,
        participants_count=3,
        amount=Decimal("300.00"),
        status=status,
        tour=_tour(),
    )


@pytest.fixture
def repos():
    return {
        "repository": MagicMock(),
        "payment_repository": MagicMock(),
        "tour_repository": MagicMock(),
        "activity_service": MagicMock(),
        "receipt_storage": MagicMock(),
    }


@pytest.fixture
def service(repos):
    return BookingService(MagicMock(), **repos)


class TestCreateBooking:
    def test_amount_is_price_times_participants(self, service, repos):
        tour = _tour()
        created = TourBooking(id="booking-1", participants_count=3, amount=Decimal("300.00"))
        repos["tour_repository"].get_by_id.return_value = tour
        repos["repository"].find_active_booking.return_value = None
        repos["repository"].create.return_value = created
        repos["repository"].get_with_details.return_value = created

        result = service.create_booking(TOURIST, BookingCreate(tour_id=tour.id, participants_count=3))

        assert result is created
        kwargs = repos["repository"].create.call_args.kwargs
        assert kwargs["amount"] == Decimal("300.00")
        assert kwargs["status"] == "pending"
        assert kwargs["tourist_id"] == TOURIST.id
        repos["activity_service"].record.assert_called_once()
        service.db.commit.assert_called_once()

    def test_guide_cannot_book(self, service, repos):
        with pytest.raises(ForbiddenException):
            service.create_booking(GUIDE, BookingCreate(tour_id="tour-1", participants_count=1))
        repos["repository"].create.assert_not_called()

    def test_missing_tour(self, service, repos):
        repos["tour_repository"].get_by_id.return_value = None
        with pytest.raises(NotFoundException):
            service.create_booking(TOURIST, BookingCreate(tour_id="nope", participants_count=1))

    def test_own_tour(self, service, repos):
        repos["tour_repository"].get_by_id.return_value = _tour(guide_id=ADMIN.id)
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(ADMIN, BookingCreate(tour_id="tour-1", participants_count=1))
        assert exc_info.value.code == "OWN_TOUR"

    def test_started_tour(self, service, repos):
        repos["tour_repository"].get_by_id.return_value = _tour(days_ahead=-1)
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(TOURIST, BookingCreate(tour_id="tour-1", participants_count=1))
        assert exc_info.value.code == "TOUR_ALREADY_STARTED"

    def test_duplicate_active_booking(self, service, repos):
        repos["tour_repository"].get_by_id.return_value = _tour()
        repos["repository"].find_active_booking.return_value = _booking()
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(TOURIST, BookingCreate(tour_id="tour-1", participants_count=2))
        assert exc_info.value.code == "DUPLICATE_BOOKING"
        repos["repository"].create.assert_not_called()


@pytest.mark.parametrize("count", [0, 51, -3])
def test_participants_outside_range(count):
    with pytest.raises(ValidationException) as exc_info:
        validate_participants_count(count)
    assert exc_info.value.code == "INVALID_PARTICIPANTS_COUNT"


class TestUpdateBooking:
    def test_participants_change_recomputes_amount(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking

        result = service.update_booking(TOURIST, booking.id, BookingUpdate(participants_count=5))

        assert result.participants_count == 5
        assert result.amount == Decimal("500.00")

    def test_participants_locked_after_approval(self, service, repos):
        booking = _booking(status="approved")
        repos["repository"].get_with_details.return_value = booking

        with pytest.raises(InvalidStateException) as exc_info:
            service.update_booking(TOURIST, booking.id, BookingUpdate(participants_count=5))

        assert exc_info.value.code == "BOOKING_NOT_PENDING"
        assert booking.participants_count == 3
        service.db.rollback.assert_called_once()

    def test_empty_update(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.update_booking(TOURIST, "booking-1", BookingUpdate())
        assert exc_info.value.code == "EMPTY_UPDATE"

    def test_status_back_to_pending_is_refused(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.update_booking(ADMIN, "booking-1", BookingUpdate(status="pending"))
        assert exc_info.value.code == "INVALID_STATUS_CHANGE"

    def test_refused_status_change_leaves_participants_untouched(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking

        with pytest.raises(ForbiddenException):
            service.update_booking(
                TOURIST, booking.id, BookingUpdate(participants_count=5, status="approved")
            )

        assert booking.participants_count == 3
        assert booking.amount == Decimal("300.00")
        service.db.commit.assert_not_called()
        service.db.rollback.assert_called_once()

    def test_admin_changes_participants_and_rejects_together(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking

        result = service.update_booking(
            ADMIN, booking.id, BookingUpdate(participants_count=4, status="rejected")
        )

        assert result.amount == Decimal("400.00")
        assert result.status == "rejected"
        service.db.commit.assert_called_once()

    def test_update_participants_directly(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking

        result = service.update_participants(TOURIST, booking.id, 2)

        assert result.participants_count == 2
        assert result.amount == Decimal("200.00")


class TestApproveBooking:
    def test_requires_approved_payment(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking
        repos["payment_repository"].has_approved_payment.return_value = False

        with pytest.raises(PreconditionException) as exc_info:
            service.approve_booking(GUIDE, booking.id)

        assert exc_info.value.code == "APPROVED_PAYMENT_REQUIRED"
        assert booking.status == "pending"

    def test_approves_with_approved_payment(self, service, repos):
        booking = _booking()
        repos["repository"].get_with_details.return_value = booking
        repos["payment_repository"].has_approved_payment.return_value = True

        assert service.approve_booking(GUIDE, booking.id).status == "approved"

    def test_other_guide_is_forbidden(self, service, repos):
        repos["repository"].get_with_details.return_value = _booking()
        with pytest.raises(ForbiddenException):
            service.approve_booking(Actor(id="guide-2", role="guide"), "booking-1")

    def test_already_approved(self, service, repos):
        repos["repository"].get_with_details.return_value = _booking(status="approved")
        with pytest.raises(InvalidStateException) as exc_info:
            service.approve_booking(ADMIN, "booking-1")
        assert exc_info.value.code == "BOOKING_ALREADY_APPROVED"
        repos["payment_repository"].has_approved_payment.assert_not_called()


class TestCancelBooking:
    def test_tourist_cannot_cancel_paid_booking(self, service, repos):
        repos["repository"].get_with_details.return_value = _booking(status="approved")
        repos["payment_repository"].has_approved_payment.return_value = True

        with pytest.raises(ConflictException) as exc_info:
            service.cancel_booking(TOURIST, "booking-1")

        assert exc_info.value.code == "BOOKING_HAS_APPROVED_PAYMENT"
        service.db.delete.assert_not_called()

    def test_admin_cancels_and_discards_receipts(self, service, repos):
        booking = _booking(status="approved")
        payment = Payment(id="pay-1", receipt_image="receipts/2026/10/a.png")
        repos["repository"].get_with_details.return_value = booking
        repos["payment_repository"].has_approved_payment.return_value = True
        repos["payment_repository"].get_for_payable.return_value = [payment]

        service.cancel_booking(ADMIN, booking.id)

        service.db.delete.assert_any_call(payment)
        service.db.delete.assert_any_call(booking)
        repos["receipt_storage"].delete.assert_called_once_with("receipts/2026/10/a.png")

    def test_stranger_is_forbidden(self, service, repos):
        repos["repository"].get_with_details.return_value = _booking()
        with pytest.raises(ForbiddenException):
            service.cancel_booking(Actor(id="tourist-2", role="tourist"), "booking-1")


class TestStatistics:
    def test_scope_follows_role(self, service, repos):
        repos["repository"].get_statistics.return_value = {"total": 0}

        assert service.statistics(ADMIN)["scope"] == "all"
        repos["repository"].get_statistics.assert_called_with()
        assert service.statistics(GUIDE)["scope"] == "guide"
        repos["repository"].get_statistics.assert_called_with(guide_id=GUIDE.id)
        assert service.statistics(TOURIST)["scope"] == "tourist"
        repos["repository"].get_statistics.assert_called_with(tourist_id=TOURIST.id)

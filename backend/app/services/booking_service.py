# backend/app/services/booking_service.py
"""
Booking Service for the tour booking platform.

Handles the tour booking lifecycle: creation against a tour, participant
changes, guide/admin approval and rejection, and cancellation. Approval of
a booking requires an approved payment; the payment side of the workflow
lives in PaymentService and ApprovalCoordinator.
"""

from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import MAX_PARTICIPANTS, MIN_PARTICIPANTS
from ..core.enums import ActivityType, BookingStatus
from ..core.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from ..domain.booking_state import assert_booking_transition
from ..domain.payables import PayableRef, PayableType
from ..domain.policies import (
    Actor,
    can_cancel_booking,
    can_create_booking,
    can_moderate_booking,
    can_update_booking,
    can_view_booking,
    can_view_tour_bookings,
    ensure,
)
from ..models.booking import TourBooking, compute_booking_amount
from ..models.tour import Tour
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .activity_service import ActivityService
from .base import BaseService
from .receipt_storage import ReceiptStorage, get_receipt_storage

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.payment_repository import PaymentRepository
    from ..repositories.tour_repository import TourRepository
    from ..schemas.booking import BookingCreate, BookingUpdate

logger = logging.getLogger(__name__)


def validate_participants_count(participants_count: int) -> None:
    if not MIN_PARTICIPANTS <= participants_count <= MAX_PARTICIPANTS:
        raise ValidationException(
            f"participants_count must be between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS}",
            code="INVALID_PARTICIPANTS_COUNT",
            details={"participants_count": participants_count},
        )


class BookingService(BaseService):
    """Service layer for tour booking operations."""

    def __init__(
        self,
        db: Session,
        repository: Optional["BookingRepository"] = None,
        payment_repository: Optional["PaymentRepository"] = None,
        tour_repository: Optional["TourRepository"] = None,
        activity_service: Optional[ActivityService] = None,
        receipt_storage: Optional[ReceiptStorage] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            repository: Optional BookingRepository instance
            payment_repository: Optional PaymentRepository instance
            tour_repository: Optional TourRepository instance
            activity_service: Optional activity log sink
            receipt_storage: Optional receipt storage used when cancelling
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.payment_repository = payment_repository or RepositoryFactory.create_payment_repository(db)
        self.tour_repository = tour_repository or RepositoryFactory.create_tour_repository(db)
        self.activity_service = activity_service or ActivityService(db)
        self._receipt_storage = receipt_storage

    @property
    def receipt_storage(self) -> ReceiptStorage:
        if self._receipt_storage is None:
            self._receipt_storage = get_receipt_storage()
        return self._receipt_storage

    def _get_booking_or_404(self, booking_id: str) -> TourBooking:
        booking = self.repository.get_with_details(booking_id)
        if booking is None:
            raise NotFoundException("Resource not found", code="NOT_FOUND")
        return booking

    def _get_tour_or_404(self, tour_id: str) -> Tour:
        tour = self.tour_repository.get_by_id(tour_id)
        if tour is None:
            raise NotFoundException("Resource not found", code="NOT_FOUND")
        return tour

    @staticmethod
    def _payable_ref(booking: TourBooking) -> PayableRef:
        return PayableRef(PayableType.TOUR_BOOKING, booking.id)

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self, actor: Actor, data: "BookingCreate", now: Optional[datetime] = None
    ) -> TourBooking:
        """
        Create a pending booking; the amount is tour price times participants.

        Raises:
            ForbiddenException: actor is neither a tourist nor an admin
            NotFoundException: tour does not exist
            ValidationException: bad head count, tour already started,
                own tour, or an active booking already exists
        """
        ensure(can_create_booking(actor), actor, "create_booking")
        validate_participants_count(data.participants_count)

        tour = self._get_tour_or_404(data.tour_id)
        if tour.guide_id == actor.id:
            raise ValidationException("You cannot book your own tour", code="OWN_TOUR")
        if tour.has_started(now or datetime.now(timezone.utc)):
            raise ValidationException(
                "This tour has already started", code="TOUR_ALREADY_STARTED"
            )
        if self.repository.find_active_booking(tour.id, actor.id) is not None:
            raise ValidationException(
                "You already have an active booking for this tour",
                code="DUPLICATE_BOOKING",
                details={"tour_id": tour.id},
            )

        with self.transaction():
            booking = self.repository.create(
                tour_id=tour.id,
                tourist_id=actor.id,
                participants_count=data.participants_count,
                amount=compute_booking_amount(tour.price, data.participants_count),
                status=BookingStatus.PENDING.value,
            )
            self.activity_service.record(
                actor.id,
                ActivityType.BOOKING,
                {
                    "action": "booking_created",
                    "booking_id": booking.id,
                    "tour_id": tour.id,
                    "tour_title": tour.title,
                    "participants_count": booking.participants_count,
                    "amount": str(booking.amount),
                },
            )

        self.log_operation("create_booking", booking_id=booking.id, tour_id=tour.id)
        return self._get_booking_or_404(booking.id)

    @BaseService.measure_operation("get_booking")
    def get_booking(self, actor: Actor, booking_id: str) -> TourBooking:
        booking = self._get_booking_or_404(booking_id)
        ensure(can_view_booking(actor, booking), actor, "view_booking", booking_id)
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        actor: Actor,
        *,
        status: Optional[str] = None,
        tour_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[TourBooking], int]:
        """Admins see every booking, guides the bookings of their tours, tourists their own."""
        scope: Dict[str, Any] = {}
        if actor.is_guide:
            scope["guide_id"] = actor.id
        elif not actor.is_admin:
            scope["tourist_id"] = actor.id
        return self.repository.list_bookings(
            status=status, tour_id=tour_id, page=page, per_page=per_page, **scope
        )

    @BaseService.measure_operation("my_bookings")
    def my_bookings(self, actor: Actor) -> Tuple[List[TourBooking], Dict[str, Any]]:
        bookings = self.repository.get_tourist_bookings(actor.id)
        stats = self.repository.get_statistics(tourist_id=actor.id)
        return bookings, {
            "total": stats["total"],
            "pending": stats["pending"],
            "approved": stats["approved"],
            "rejected": stats["rejected"],
            "total_amount": stats["total_revenue"],
        }

    def _check_participants_change(
        self, actor: Actor, booking: TourBooking, participants_count: int
    ) -> None:
        ensure(can_update_booking(actor, booking), actor, "update_booking", booking.id)
        if not booking.is_pending:
            raise InvalidStateException(
                "Only pending bookings can be changed",
                code="BOOKING_NOT_PENDING",
                details={"status": booking.status},
            )
        validate_participants_count(participants_count)

    def _check_status_change(self, actor: Actor, booking: TourBooking, target: str) -> None:
        ensure(can_moderate_booking(actor, booking), actor, "moderate_booking", booking.id)
        assert_booking_transition(booking.status, target)
        if target == BookingStatus.APPROVED.value and not self.payment_repository.has_approved_payment(
            self._payable_ref(booking)
        ):
            raise PreconditionException(
                "Booking cannot be approved without an approved payment",
                code="APPROVED_PAYMENT_REQUIRED",
                details={"booking_id": booking.id},
            )

    @BaseService.measure_operation("update_booking")
    def update_booking(self, actor: Actor, booking_id: str, data: "BookingUpdate") -> TourBooking:
        """
        Apply a participant change and/or a status change.

        All checks run before anything is modified; both changes share one
        transaction.
        """
        if data.participants_count is None and data.status is None:
            raise ValidationException("No changes provided", code="EMPTY_UPDATE")

        target: Optional[str] = None
        if data.status is not None:
            target = BookingStatus(data.status).value
            if target not in (BookingStatus.APPROVED.value, BookingStatus.REJECTED.value):
                raise ValidationException(
                    "Status can only be changed to approved or rejected",
                    code="INVALID_STATUS_CHANGE",
                )

        with self.transaction():
            booking = self._get_booking_or_404(booking_id)
            if data.participants_count is not None:
                self._check_participants_change(actor, booking, data.participants_count)
            if target is not None:
                self._check_status_change(actor, booking, target)

            if data.participants_count is not None:
                booking.set_participants(data.participants_count, booking.tour.price)
            if target == BookingStatus.APPROVED.value:
                booking.approve()
            elif target is not None:
                booking.reject()
            self.db.flush()

        if target is not None:
            prometheus_metrics.record_status_transition("booking", target)
        self.log_operation(
            "update_booking",
            booking_id=booking.id,
            participants_count=data.participants_count,
            status=target,
        )
        return booking

    @BaseService.measure_operation("update_participants")
    def update_participants(
        self, actor: Actor, booking_id: str, participants_count: int
    ) -> TourBooking:
        """
        Change the head count of a pending booking and recompute its amount.

        Raises:
            InvalidStateException: booking is no longer pending
            ValidationException: head count outside the allowed range
        """
        with self.transaction():
            booking = self._get_booking_or_404(booking_id)
            self._check_participants_change(actor, booking, participants_count)
            booking.set_participants(participants_count, booking.tour.price)
            self.db.flush()

        self.log_operation(
            "update_participants", booking_id=booking.id, participants_count=participants_count
        )
        return booking

    @BaseService.measure_operation("approve_booking")
    def approve_booking(self, actor: Actor, booking_id: str) -> TourBooking:
        """
        Approve a booking that already has an approved payment.

        Raises:
            InvalidStateException: booking already approved or rejected
            PreconditionException: no approved payment for the booking
        """
        with self.transaction():
            booking = self._get_booking_or_404(booking_id)
            self._check_status_change(actor, booking, BookingStatus.APPROVED.value)
            booking.approve()
            self.db.flush()

        prometheus_metrics.record_status_transition("booking", BookingStatus.APPROVED.value)
        self.log_operation("approve_booking", booking_id=booking.id, actor_id=actor.id)
        return booking

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, actor: Actor, booking_id: str) -> TourBooking:
        with self.transaction():
            booking = self._get_booking_or_404(booking_id)
            self._check_status_change(actor, booking, BookingStatus.REJECTED.value)
            booking.reject()
            self.db.flush()

        prometheus_metrics.record_status_transition("booking", BookingStatus.REJECTED.value)
        self.log_operation("reject_booking", booking_id=booking.id, actor_id=actor.id)
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, actor: Actor, booking_id: str) -> None:
        """
        Cancel (delete) a booking together with its payments.

        Tourists may cancel while the booking is pending or has no approved
        payment; admins may always cancel.

        Raises:
            ForbiddenException: actor is neither the owner nor an admin
            ConflictException: the booking is settled by an approved payment
        """
        receipts: List[str] = []
        with self.transaction():
            booking = self._get_booking_or_404(booking_id)
            ensure(can_cancel_booking(actor, booking), actor, "cancel_booking", booking_id)

            ref = self._payable_ref(booking)
            if (
                not actor.is_admin
                and not booking.is_pending
                and self.payment_repository.has_approved_payment(ref)
            ):
                raise ConflictException(
                    "Booking has an approved payment and cannot be cancelled",
                    code="BOOKING_HAS_APPROVED_PAYMENT",
                    details={"booking_id": booking.id},
                )

            for payment in self.payment_repository.get_for_payable(ref):
                if payment.receipt_image:
                    receipts.append(payment.receipt_image)
                self.db.delete(payment)
            self.db.delete(booking)
            self.db.flush()

        for path in receipts:
            self.receipt_storage.delete(path)
        self.log_operation("cancel_booking", booking_id=booking_id, actor_id=actor.id)

    @BaseService.measure_operation("booking_statistics")
    def statistics(self, actor: Actor) -> Dict[str, Any]:
        """Statistics scoped to the actor: global for admins, own tours for guides."""
        if actor.is_admin:
            scope = "all"
            stats = self.repository.get_statistics()
        elif actor.is_guide:
            scope = "guide"
            stats = self.repository.get_statistics(guide_id=actor.id)
        else:
            scope = "tourist"
            stats = self.repository.get_statistics(tourist_id=actor.id)
        return {"scope": scope, **stats}

    @BaseService.measure_operation("tour_bookings")
    def tour_bookings(
        self, actor: Actor, tour_id: str
    ) -> Tuple[Tour, List[TourBooking], Dict[str, Any]]:
        tour = self._get_tour_or_404(tour_id)
        ensure(can_view_tour_bookings(actor, tour), actor, "view_tour_bookings", tour_id)
        bookings = self.repository.get_tour_bookings(tour_id)
        summary = self.repository.get_statistics(tour_id=tour_id)
        return tour, bookings, summary

    def payment_statuses(self, bookings: List[TourBooking]) -> Dict[str, str]:
        """Latest payment status per booking, for response shaping."""
        return self.payment_repository.latest_status_by_booking(b.id for b in bookings)

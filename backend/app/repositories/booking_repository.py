# backend/app/repositories/booking_repository.py
"""
Booking Repository for the tour booking platform.

Data access for tour bookings: scoped listings for tourists, guides and
admins, duplicate-booking lookups and the aggregates behind the
statistics endpoints.
"""

from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import TourBooking
from ..models.tour import Tour
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[TourBooking]):
    def __init__(self, db: Session):
        super().__init__(db, TourBooking)

    def _base_query(self) -> Query:
        return self.db.query(TourBooking).options(
            joinedload(TourBooking.tour), joinedload(TourBooking.tourist)
        )

    def get_with_details(self, booking_id: str) -> Optional[TourBooking]:
        """Booking with its tour and tourist eager loaded."""
        try:
            return self._base_query().filter(TourBooking.id == booking_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def find_active_booking(self, tour_id: str, tourist_id: str) -> Optional[TourBooking]:
        """A pending or approved booking the tourist already holds for the tour."""
        try:
            return (
                self.db.query(TourBooking)
                .filter(
                    TourBooking.tour_id == tour_id,
                    TourBooking.tourist_id == tourist_id,
                    TourBooking.status.in_(
                        [BookingStatus.PENDING.value, BookingStatus.APPROVED.value]
                    ),
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking existing bookings: {str(e)}")
            raise RepositoryException(f"Failed to check existing bookings: {str(e)}")

    def list_bookings(
        self,
        *,
        tourist_id: Optional[str] = None,
        guide_id: Optional[str] = None,
        status: Optional[str] = None,
        tour_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[TourBooking], int]:
        """Page of bookings, newest first, scoped to a tourist or a guide's tours."""
        query = self._base_query()
        if tourist_id:
            query = query.filter(TourBooking.tourist_id == tourist_id)
        if guide_id:
            query = query.join(Tour, TourBooking.tour_id == Tour.id).filter(
                Tour.guide_id == guide_id
            )
        if status:
            query = query.filter(TourBooking.status == status)
        if tour_id:
            query = query.filter(TourBooking.tour_id == tour_id)
        query = query.order_by(TourBooking.created_at.desc(), TourBooking.id.desc())
        return self._paginate(query, page, per_page)

    def get_tourist_bookings(self, tourist_id: str) -> List[TourBooking]:
        try:
            return (
                self._base_query()
                .filter(TourBooking.tourist_id == tourist_id)
                .order_by(TourBooking.created_at.desc(), TourBooking.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading bookings for tourist {tourist_id}: {str(e)}")
            raise RepositoryException(f"Failed to load bookings: {str(e)}")

    def get_tour_bookings(self, tour_id: str) -> List[TourBooking]:
        try:
            return (
                self._base_query()
                .filter(TourBooking.tour_id == tour_id)
                .order_by(TourBooking.created_at.desc(), TourBooking.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading bookings for tour {tour_id}: {str(e)}")
            raise RepositoryException(f"Failed to load bookings: {str(e)}")

    def get_statistics(
        self,
        *,
        tourist_id: Optional[str] = None,
        guide_id: Optional[str] = None,
        tour_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Counts per status plus revenue and participant totals.

        Revenue and participants only count approved bookings.
        """
        try:
            query = self.db.query(
                TourBooking.status,
                func.count(TourBooking.id),
                func.coalesce(func.sum(TourBooking.amount), 0),
                func.coalesce(func.sum(TourBooking.participants_count), 0),
            )
            if tourist_id:
                query = query.filter(TourBooking.tourist_id == tourist_id)
            if guide_id:
                query = query.join(Tour, TourBooking.tour_id == Tour.id).filter(
                    Tour.guide_id == guide_id
                )
            if tour_id:
                query = query.filter(TourBooking.tour_id == tour_id)
            rows = query.group_by(TourBooking.status).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing booking statistics: {str(e)}")
            raise RepositoryException(f"Failed to compute booking statistics: {str(e)}")

        stats: Dict[str, Any] = {
            "total": 0,
            "pending": 0,
            "approved": 0,
            "rejected": 0,
            "total_revenue": Decimal("0.00"),
            "total_participants": 0,
        }
        for status, count, amount_sum, participants_sum in rows:
            stats["total"] += count
            stats[status] = count
            if status == BookingStatus.APPROVED.value:
                stats["total_revenue"] = Decimal(str(amount_sum)).quantize(Decimal("0.01"))
                stats["total_participants"] = int(participants_sum)
        return stats

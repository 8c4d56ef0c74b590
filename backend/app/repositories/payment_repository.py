# backend/app/repositories/payment_repository.py
"""
Payment Repository for the tour booking platform.

Payments reference their payable through ``(payable_type, payable_id)``,
so every lookup by payable filters on both columns.
"""

from decimal import Decimal
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import PaymentStatus
from ..core.exceptions import RepositoryException
from ..domain.payables import PayableRef, PayableType
from ..models.payment import Payment
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def _base_query(self) -> Query:
        return self.db.query(Payment).options(joinedload(Payment.payer))

    def _for_payable(self, ref: PayableRef) -> Query:
        return self.db.query(Payment).filter(
            Payment.payable_type == ref.kind.value, Payment.payable_id == ref.id
        )

    def get_with_details(self, payment_id: str) -> Optional[Payment]:
        try:
            return self._base_query().filter(Payment.id == payment_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payment {payment_id}: {str(e)}")
            raise RepositoryException(f"Failed to load payment: {str(e)}")

    def has_pending_payment(self, ref: PayableRef, payer_id: Optional[str] = None) -> bool:
        """Whether a pending payment exists for the payable, optionally for one payer."""
        try:
            query = self._for_payable(ref).filter(Payment.status == PaymentStatus.PENDING.value)
            if payer_id:
                query = query.filter(Payment.payer_id == payer_id)
            return query.first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking pending payments: {str(e)}")
            raise RepositoryException(f"Failed to check pending payments: {str(e)}")

    def has_approved_payment(self, ref: PayableRef) -> bool:
        try:
            return (
                self._for_payable(ref)
                .filter(Payment.status == PaymentStatus.APPROVED.value)
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking approved payments: {str(e)}")
            raise RepositoryException(f"Failed to check approved payments: {str(e)}")

    def get_for_payable(self, ref: PayableRef) -> List[Payment]:
        try:
            return (
                self._for_payable(ref)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payments for {ref}: {str(e)}")
            raise RepositoryException(f"Failed to load payments: {str(e)}")

    def latest_status_by_booking(self, booking_ids: Iterable[str]) -> Dict[str, str]:
        """Map booking id to the status of its most recent payment."""
        ids = list(booking_ids)
        if not ids:
            return {}
        try:
            rows = (
                self.db.query(Payment.payable_id, Payment.status)
                .filter(
                    Payment.payable_type == PayableType.TOUR_BOOKING.value,
                    Payment.payable_id.in_(ids),
                )
                .order_by(Payment.created_at.asc(), Payment.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payment statuses: {str(e)}")
            raise RepositoryException(f"Failed to load payment statuses: {str(e)}")

        # Later rows overwrite earlier ones, leaving the newest status per booking
        return {payable_id: status for payable_id, status in rows}

    def list_payments(
        self,
        *,
        status: Optional[str] = None,
        payable_type: Optional[str] = None,
        payer_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[Payment], int]:
        query = self._base_query()
        if status:
            query = query.filter(Payment.status == status)
        if payable_type:
            query = query.filter(Payment.payable_type == payable_type)
        if payer_id:
            query = query.filter(Payment.payer_id == payer_id)
        query = query.order_by(Payment.created_at.desc(), Payment.id.desc())
        return self._paginate(query, page, per_page)

    def get_payer_payments(self, payer_id: str) -> List[Payment]:
        try:
            return (
                self._base_query()
                .filter(Payment.payer_id == payer_id)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading payments for payer {payer_id}: {str(e)}")
            raise RepositoryException(f"Failed to load payments: {str(e)}")

    def get_statistics(self, payer_id: Optional[str] = None) -> Dict[str, Any]:
        """Counts per status and the approved total."""
        try:
            query = self.db.query(
                Payment.status,
                func.count(Payment.id),
                func.coalesce(func.sum(Payment.amount), 0),
            )
            if payer_id:
                query = query.filter(Payment.payer_id == payer_id)
            rows = query.group_by(Payment.status).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing payment statistics: {str(e)}")
            raise RepositoryException(f"Failed to compute payment statistics: {str(e)}")

        stats: Dict[str, Any] = {
            "total": 0,
            "pending": 0,
            "approved": 0,
            "failed": 0,
            "total_amount": Decimal("0.00"),
        }
        for status, count, amount_sum in rows:
            stats["total"] += count
            stats[status] = count
            if status == PaymentStatus.APPROVED.value:
                stats["total_amount"] = Decimal(str(amount_sum)).quantize(Decimal("0.01"))
        return stats

    def _breakdown(self, column: Any, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Count and summed amount of all payments grouped by ``column``."""
        try:
            rows = (
                self.db.query(
                    column,
                    func.count(Payment.id),
                    func.coalesce(func.sum(Payment.amount), 0),
                )
                .group_by(column)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error grouping payments: {str(e)}")
            raise RepositoryException(f"Failed to group payments: {str(e)}")

        breakdown = {key: {"count": 0, "amount": Decimal("0.00")} for key in keys}
        for key, count, amount_sum in rows:
            breakdown[key] = {
                "count": count,
                "amount": Decimal(str(amount_sum)).quantize(Decimal("0.01")),
            }
        return breakdown

    def breakdown_by_status(self) -> Dict[str, Dict[str, Any]]:
        return self._breakdown(Payment.status, [s.value for s in PaymentStatus])

    def breakdown_by_payable_type(self) -> Dict[str, Dict[str, Any]]:
        return self._breakdown(Payment.payable_type, [kind.value for kind in PayableType])

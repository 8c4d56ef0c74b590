"""
Authorization policies.

Every check is a pure function of the acting user and the resource. The
``ensure`` helper turns a failed check into a generic ForbiddenException
and logs which rule failed; the client never learns the rule.
"""

from dataclasses import dataclass
import logging
from typing import Any, Optional

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "unauthorized"


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    @property
    def is_guide(self) -> bool:
        return self.role == RoleName.GUIDE.value

    @property
    def is_tourist(self) -> bool:
        return self.role == RoleName.TOURIST.value

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        return cls(id=user.id, role=user.role)


def ensure(allowed: bool, actor: Actor, rule: str, resource_id: Optional[str] = None) -> None:
    if allowed:
        return
    logger.info(
        "Authorization denied: rule=%s actor=%s role=%s resource=%s",
        rule,
        actor.id,
        actor.role,
        resource_id,
    )
    raise ForbiddenException(UNAUTHORIZED_MESSAGE, code="FORBIDDEN")


def _guides_tour(actor: Actor, booking: Any) -> bool:
    tour = getattr(booking, "tour", None)
    return tour is not None and actor.is_guide and tour.guide_id == actor.id


# Bookings


def can_create_booking(actor: Actor) -> bool:
    return actor.is_tourist or actor.is_admin


def can_view_booking(actor: Actor, booking: Any) -> bool:
    return actor.is_admin or booking.tourist_id == actor.id or _guides_tour(actor, booking)


def can_update_booking(actor: Actor, booking: Any) -> bool:
    return actor.is_admin or booking.tourist_id == actor.id


def can_moderate_booking(actor: Actor, booking: Any) -> bool:
    """Approve or reject: the tour's guide or an admin."""
    return actor.is_admin or _guides_tour(actor, booking)


def can_cancel_booking(actor: Actor, booking: Any) -> bool:
    return actor.is_admin or booking.tourist_id == actor.id


def can_view_tour_bookings(actor: Actor, tour: Any) -> bool:
    return actor.is_admin or (actor.is_guide and tour.guide_id == actor.id)


# Payments


def can_create_payment_for(actor: Actor, payable: Any) -> bool:
    """A payer settles their own booking or plan; admins may record any payment."""
    if actor.is_admin:
        return True
    owner_id = getattr(payable, "tourist_id", None) or getattr(payable, "user_id", None)
    return owner_id == actor.id


def can_view_payment(actor: Actor, payment: Any) -> bool:
    return actor.is_admin or payment.payer_id == actor.id


def can_update_payment(actor: Actor, payment: Any) -> bool:
    return actor.is_admin or (payment.payer_id == actor.id and payment.is_pending)


def can_delete_payment(actor: Actor, payment: Any) -> bool:
    """Admins delete anything; payers only while the payment is pending or failed."""
    if actor.is_admin:
        return True
    return payment.payer_id == actor.id and (payment.is_pending or payment.is_failed)


def can_moderate_payment(actor: Actor) -> bool:
    return actor.is_admin


def can_view_user_payments(actor: Actor, user_id: str) -> bool:
    return actor.is_admin or actor.id == user_id


def can_view_payment_statistics(actor: Actor) -> bool:
    return actor.is_admin

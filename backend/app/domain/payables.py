"""
Polymorphic payable references.

A payment settles exactly one payable. Instead of storing class names, the
payable is a tagged reference ``PayableRef(kind, id)`` and each kind has a
loader registered in ``PAYABLE_LOADERS``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..core.exceptions import NotFoundException, ValidationException

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class PayableType(str, Enum):
    TOUR_BOOKING = "tour_bookings"
    PLAN = "plans"


@dataclass(frozen=True)
class PayableRef:
    kind: PayableType
    id: str

    @classmethod
    def parse(cls, kind: str, payable_id: str) -> "PayableRef":
        try:
            payable_kind = PayableType(kind)
        except ValueError:
            raise ValidationException(
                f"Unsupported payable type: {kind}",
                code="INVALID_PAYABLE_TYPE",
                details={"payable_type": kind, "allowed": [t.value for t in PayableType]},
            )
        return cls(payable_kind, payable_id)


PayableLoader = Callable[["Session", str], Optional[Any]]

PAYABLE_LOADERS: Dict[PayableType, PayableLoader] = {}


def register_payable_loader(kind: PayableType) -> Callable[[PayableLoader], PayableLoader]:
    def decorator(func: PayableLoader) -> PayableLoader:
        PAYABLE_LOADERS[kind] = func
        return func

    return decorator


@register_payable_loader(PayableType.TOUR_BOOKING)
def _load_tour_booking(db: "Session", payable_id: str) -> Optional[Any]:
    from ..repositories.factory import RepositoryFactory

    return RepositoryFactory.create_booking_repository(db).get_by_id(payable_id)


@register_payable_loader(PayableType.PLAN)
def _load_plan(db: "Session", payable_id: str) -> Optional[Any]:
    from ..repositories.factory import RepositoryFactory

    return RepositoryFactory.create_plan_repository(db).get_by_id(payable_id)


def resolve_payable(db: "Session", ref: PayableRef) -> Any:
    """Load the entity a payable reference points at, or raise NotFoundException."""
    loader = PAYABLE_LOADERS.get(ref.kind)
    if loader is None:
        raise ValidationException(
            f"Unsupported payable type: {ref.kind.value}",
            code="INVALID_PAYABLE_TYPE",
        )
    entity = loader(db, ref.id)
    if entity is None:
        raise NotFoundException("Resource not found", code="NOT_FOUND")
    return entity

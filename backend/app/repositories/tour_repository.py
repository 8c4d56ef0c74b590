# backend/app/repositories/tour_repository.py
"""Tour and plan lookups. Both are read-only collaborators of the booking workflow."""

from sqlalchemy.orm import Session

from ..models.tour import Plan, Tour
from .base_repository import BaseRepository


class TourRepository(BaseRepository[Tour]):
    def __init__(self, db: Session):
        super().__init__(db, Tour)


class PlanRepository(BaseRepository[Plan]):
    def __init__(self, db: Session):
        super().__init__(db, Plan)

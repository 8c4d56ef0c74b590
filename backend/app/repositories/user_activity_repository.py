# backend/app/repositories/user_activity_repository.py
"""Append-only access to the user activity log."""

from sqlalchemy.orm import Session

from ..models.user_activity import UserActivity
from .base_repository import BaseRepository


class UserActivityRepository(BaseRepository[UserActivity]):
    def __init__(self, db: Session):
        super().__init__(db, UserActivity)

# backend/app/services/activity_service.py
"""
Activity log sink.

Writes are appended inside the caller's transaction (flush only), so an
activity row exists exactly when the action it describes was committed.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ActivityType
from ..models.user_activity import UserActivity
from ..repositories.factory import RepositoryFactory
from .base import BaseService


class ActivityService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_user_activity_repository(db)

    def record(
        self, user_id: str, activity_type: ActivityType, details: Optional[Dict[str, Any]] = None
    ) -> UserActivity:
        activity = self.repository.create(
            user_id=user_id,
            activity_type=activity_type.value,
            details=details or {},
        )
        self.logger.debug(f"Recorded {activity_type.value} activity for user {user_id}")
        return activity

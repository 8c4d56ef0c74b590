# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Routes receive an explicit Actor (user id and role) instead of reaching for
a global "current user".
"""

import asyncio
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...core.exceptions import UnauthorizedException
from ...domain.policies import Actor
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def _load_user(db: Session, user_id: str) -> User | None:
    return RepositoryFactory.create_user_repository(db).get_by_id(user_id)


async def get_current_active_user(
    current_user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Load the authenticated user; an unknown subject is treated as invalid credentials."""
    user = await asyncio.to_thread(_load_user, db, current_user_id)
    if user is None:
        logger.warning(f"Token subject {current_user_id} does not match a user")
        raise UnauthorizedException(
            "Could not validate credentials", code="UNAUTHORIZED"
        ).to_http_exception()
    return user


async def get_current_actor(user: User = Depends(get_current_active_user)) -> Actor:
    return Actor.from_user(user)

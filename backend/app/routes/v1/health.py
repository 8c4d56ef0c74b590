# backend/app/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer health checks.
"""

import logging

from fastapi import APIRouter

from app.core.constants import API_VERSION
from app.schemas.base_responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Does not touch the database; used by load balancers and monitoring systems.
    """
    return HealthResponse(status="healthy", version=API_VERSION)

"""
Base response schemas for standardized API responses.

Every list endpoint returns the same pagination envelope, and every error
carries the same ``{"detail": {"message", "code", "details"}}`` body.
"""

from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated response for all list endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Total number of items")
    page: int = Field(default=1, description="Current page number", ge=1)
    per_page: int = Field(default=15, description="Items per page", ge=1)
    has_next: bool = Field(description="Whether there's a next page")
    has_prev: bool = Field(description="Whether there's a previous page")

    @classmethod
    def build(cls, items: List[Any], total: int, page: int, per_page: int) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            has_next=page * per_page < total,
            has_prev=page > 1,
        )


class ErrorDetail(BaseModel):
    message: str
    code: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    detail: ErrorDetail


class HealthResponse(BaseModel):
    status: str
    version: str

"""Strict schema baselines for request and response DTOs."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Response DTO base; built from ORM objects."""

    model_config = ConfigDict(from_attributes=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that rejects unexpected fields, e.g. a client-supplied amount."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

"""
Report Come Play Backend — Shared Pydantic Schemas
====================================================

What:  Response models reused across resources: error bodies, health,
       pagination metadata, plain messages and embedded summaries.
Who:   Every route module imports from here for its `responses=` docs.

Design Decision:
    Schemas are separate from SQLAlchemy models because the API contract
    changes independently of the tables, and because we control exactly
    what leaves the server (password_hash and verification_code never do).
"""

import math
import uuid
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import inspect

ModelT = TypeVar("ModelT", bound=BaseModel)


def from_loaded(schema: Type[ModelT], obj: Any, **overrides: Any) -> ModelT:
    """
    Builds `schema` from an ORM instance without triggering lazy loads.

    Relationships that were not eager-loaded are left at the schema default
    (None); touching them would need implicit async IO.
    """
    state = inspect(obj)
    relationships = state.mapper.relationships
    data = {}
    for name in schema.model_fields:
        if name in overrides:
            data[name] = overrides[name]
        elif name in relationships:
            if name not in state.unloaded:
                data[name] = getattr(obj, name)
        elif hasattr(obj, name):
            data[name] = getattr(obj, name)
    return schema.model_validate(data, from_attributes=True)


# ══════════════════════════════════════════════════════════════════════════
# Error & Status Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "duplicate_field",
            "message": "Duplicate Alert! It looks like this field ...",
            "details": {"existing_field": {"id": "...", "name": "...", "location": "..."}},
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class BannerResponse(BaseModel):
    success: bool = True
    message: str
    version: str


class HealthResponse(BaseModel):
    """
    Health check response showing service and dependency status.

    The database is the only critical dependency: without it the service
    answers 503 "unhealthy". Storage and email are reported for monitoring.
    """
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Configured storage backend: local or supabase")
    email: str = Field(description="Email delivery: configured or disabled")
    uptime_seconds: float = Field(description="Seconds since service started")


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class Pagination(BaseModel):
    """Offset pagination metadata attached to every list response."""
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


# ══════════════════════════════════════════════════════════════════════════
# Embedded Summaries
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    """The slice of a user embedded in field, report and payout responses."""
    id: uuid.UUID
    full_name: str
    email: str

    model_config = {"from_attributes": True}


class FieldSummary(BaseModel):
    id: uuid.UUID
    name: str
    location: str

    model_config = {"from_attributes": True}

"""
Report Come Play Backend — Field & Report Schemas
===================================================

What:  Request/response models for /api/fields and /api/reports.
Who:   FieldService, ReportService and their route handlers.

Validation split:
    The schema only rejects blank names/locations and malformed types.
    The image-count rule is a business rule checked by FieldService after
    the duplicate check, so a duplicate submission is answered with 409
    even when it also carries the wrong number of images.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from reportcomeplay.models.enums import ReportStatus
from reportcomeplay.schemas.common import FieldSummary, Pagination, UserSummary


def _required_text(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Fields
# ══════════════════════════════════════════════════════════════════════════


class FieldCreateRequest(BaseModel):
    name: str = Field(max_length=255)
    location: str = Field(max_length=500)
    description: Optional[str] = None
    surface_type: Optional[str] = Field(default=None, max_length=100)
    field_size: Optional[str] = Field(default=None, max_length=100)
    availability: Optional[str] = Field(default=None, max_length=255)
    contact_info: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    images: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_text(v, "Field name")

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        return _required_text(v, "Location")


class FieldUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_text(v, "Field name")

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_text(v, "Location")


class FieldResponse(BaseModel):
    id: uuid.UUID
    name: str
    location: str
    description: Optional[str] = None
    surface_type: Optional[str] = None
    field_size: Optional[str] = None
    availability: Optional[str] = None
    contact_info: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: List[str]
    status: str
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    owner: Optional[UserSummary] = None
    report_count: Optional[int] = None

    model_config = {"from_attributes": True}


class FieldReportItem(BaseModel):
    id: uuid.UUID
    content: str
    status: str
    created_at: datetime
    user: UserSummary


class FieldDetailResponse(FieldResponse):
    """GET /api/fields/{id}: the field plus its 10 latest reports."""
    reports: List[FieldReportItem] = Field(default_factory=list)


class FieldListResponse(BaseModel):
    fields: List[FieldResponse]
    pagination: Pagination


class FieldMutationResponse(BaseModel):
    success: bool = True
    message: str
    field: FieldResponse


# ══════════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════════


class ReportCreateRequest(BaseModel):
    content: str
    field_id: uuid.UUID

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _required_text(v, "Report content")


class ReportUpdateRequest(BaseModel):
    """Content is editable by the author; status only by an admin."""
    content: Optional[str] = None
    status: Optional[ReportStatus] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _required_text(v, "Report content")


class ReportResponse(BaseModel):
    id: uuid.UUID
    content: str
    status: str
    field_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    field: Optional[FieldSummary] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]
    pagination: Pagination


class ReportMutationResponse(BaseModel):
    success: bool = True
    message: str
    report: ReportResponse

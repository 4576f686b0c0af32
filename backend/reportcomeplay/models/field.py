"""
Report Come Play Backend — Field SQLAlchemy Model
===================================================

What:  ORM model for the `fields` table: one row per reported sports field.
Who:   FieldService (CRUD + duplicate detection), AdminService (verification,
       dashboard stats), ReportService (reports point at a field).

Table Design:
    - name / location: stored trimmed with whitespace runs collapsed; the
      duplicate detector compares them case-insensitively
    - images: JSON list of public image URLs (exactly three on creation)
    - status: PENDING until an admin approves or rejects the submission
    - owner_id: the user who submitted the field (reporter or owner)

Query Patterns:
    - Duplicate scan: SELECT id, name, location FROM fields (no filter)
    - Listing: ORDER BY created_at DESC with optional owner/status filters
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportcomeplay.database import Base
from reportcomeplay.models.enums import FieldStatus
from reportcomeplay.models.user import User, utcnow


class Field(Base):
    """A sports field submitted by the community."""

    __tablename__ = "fields"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    surface_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    field_size: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    availability: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_info: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FieldStatus.PENDING.value
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped[User] = relationship(back_populates="owned_fields")
    reports: Mapped[List["Report"]] = relationship(  # noqa: F821
        back_populates="field", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_fields_created_at", created_at.desc()),
        Index("idx_fields_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Field(id={self.id}, name='{self.name}', status='{self.status}')>"
